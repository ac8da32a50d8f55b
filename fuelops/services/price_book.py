"""Price book: effective prices from a time-ranged history.

Entries for one (product type, station) pair never overlap. Setting a new
price closes the open-ended entry at the new entry's ``effective_from`` and
inserts the replacement in the same unit, so every instant after the first
entry is covered by exactly one window ``[effective_from, effective_to)``.
"""

from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fuelops.core.clock import Clock
from fuelops.core.database import atomic
from fuelops.core.errors import ErrorCode
from fuelops.models.enums import ProductType
from fuelops.models.price_book import PriceBookEntry
from fuelops.schemas.price import AmountResult, PriceInfo, SetPriceResult

logger = structlog.get_logger()


def _scope(product_type: ProductType, station_id: int | None):
    """Filter for one book: station-specific, or global when station is None."""
    station_filter = (
        PriceBookEntry.station_id.is_(None)
        if station_id is None
        else PriceBookEntry.station_id == station_id
    )
    return (PriceBookEntry.product_type == product_type, station_filter)


class PriceBook:
    """Resolves and rotates product prices."""

    def __init__(self, db: Session, clock: Clock | None = None) -> None:
        self.db = db
        self.clock = clock or Clock()

    def get_current_price(
        self,
        product_type: ProductType,
        station_id: int | None = None,
        at: datetime | None = None,
    ) -> PriceInfo | None:
        """Entry whose window contains ``at``; else the latest entry; else None."""
        instant = at or self.clock.now()
        scope = _scope(product_type, station_id)

        entry = self.db.scalars(
            select(PriceBookEntry)
            .where(
                *scope,
                PriceBookEntry.effective_from <= instant,
                or_(
                    PriceBookEntry.effective_to.is_(None),
                    PriceBookEntry.effective_to > instant,
                ),
            )
            .order_by(PriceBookEntry.effective_from.desc(), PriceBookEntry.id.desc())
            .limit(1)
        ).first()

        if entry is None:
            # Historical gap or a future-dated book: use the latest known price
            entry = self.db.scalars(
                select(PriceBookEntry)
                .where(*scope)
                .order_by(PriceBookEntry.effective_from.desc(), PriceBookEntry.id.desc())
                .limit(1)
            ).first()

        if entry is None:
            return None
        return PriceInfo.model_validate(entry)

    def set_price(
        self,
        product_type: ProductType,
        retail_price: Decimal,
        wholesale_price: Decimal | None = None,
        station_id: int | None = None,
        effective_from: datetime | None = None,
        user_id: int | None = None,
    ) -> SetPriceResult:
        """Close the open-ended entry and insert the new one, atomically.

        The new entry must start after the open-ended entry does, so the
        closed window never ends before it begins.
        """
        starts = effective_from or self.clock.now()
        current_from = self.db.scalar(
            select(PriceBookEntry.effective_from).where(
                *_scope(product_type, station_id),
                PriceBookEntry.effective_to.is_(None),
                PriceBookEntry.effective_from >= starts,
            )
        )
        if current_from is not None:
            logger.info(
                "price.set_rejected",
                product_type=str(product_type),
                station_id=station_id,
                effective_from=starts.isoformat(),
            )
            return SetPriceResult.fail(
                ErrorCode.PRICE_STARTS_TOO_EARLY,
                f"New price must start after the current price ({current_from.isoformat()})",
            )

        entry = PriceBookEntry(
            product_type=product_type,
            station_id=station_id,
            retail_price=retail_price,
            wholesale_price=wholesale_price,
            effective_from=starts,
            effective_to=None,
            created_at=self.clock.now(),
            created_by_id=user_id,
        )

        try:
            with atomic(self.db):
                self.db.execute(
                    update(PriceBookEntry)
                    .where(
                        *_scope(product_type, station_id),
                        PriceBookEntry.effective_to.is_(None),
                    )
                    .values(effective_to=starts)
                    .execution_options(synchronize_session="fetch")
                )
                self.db.add(entry)
                self.db.flush()
        except SQLAlchemyError:
            logger.exception(
                "price.set_failed", product_type=str(product_type), station_id=station_id
            )
            return SetPriceResult.fail(ErrorCode.SET_PRICE_FAILED, "Failed to set price")

        logger.info(
            "price.set",
            product_type=str(product_type),
            station_id=station_id,
            retail_price=str(retail_price),
            effective_from=starts.isoformat(),
        )
        return SetPriceResult.ok(id=entry.id)

    def calculate_amount(
        self,
        product_type: ProductType,
        liters: Decimal,
        station_id: int | None = None,
        is_wholesale: bool = False,
    ) -> AmountResult:
        """Server-side amount for ``liters`` at the current price."""
        price_info = self.get_current_price(product_type, station_id)
        if price_info is None:
            return AmountResult.fail(
                ErrorCode.NO_PRICE_CONFIGURED,
                f"No price configured for {ProductType(product_type).value}",
            )

        if is_wholesale and price_info.wholesale_price:
            price, price_type = price_info.wholesale_price, "wholesale"
        else:
            price, price_type = price_info.retail_price, "retail"

        return AmountResult.ok(
            amount=(liters * price).quantize(Decimal("0.01")),
            price=price,
            price_type=price_type,
        )

    def get_price_history(
        self,
        product_type: ProductType,
        station_id: int | None = None,
        limit: int = 10,
    ) -> list[PriceInfo]:
        """Most recent entries first."""
        entries = self.db.scalars(
            select(PriceBookEntry)
            .where(*_scope(product_type, station_id))
            .order_by(PriceBookEntry.effective_from.desc(), PriceBookEntry.id.desc())
            .limit(limit)
        ).all()
        return [PriceInfo.model_validate(entry) for entry in entries]
