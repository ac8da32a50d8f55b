"""Tests for the time-ranged price book."""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from fuelops.core.errors import ErrorCode
from fuelops.models.enums import ProductType
from fuelops.models.price_book import PriceBookEntry
from fuelops.services.price_book import PriceBook


@pytest.fixture
def price_book(test_db, clock):
    return PriceBook(test_db, clock=clock)


class TestGetCurrentPrice:
    """Tests for price lookup."""

    def test_no_entries(self, price_book) -> None:
        """Test an empty book has no price."""
        assert price_book.get_current_price(ProductType.DIESEL) is None

    def test_current_entry(self, price_book, clock) -> None:
        """Test the entry in force now is returned."""
        price_book.set_price(
            ProductType.DIESEL,
            Decimal("31.94"),
            effective_from=clock.now() - timedelta(days=1),
        )

        info = price_book.get_current_price(ProductType.DIESEL)

        assert info.retail_price == Decimal("31.94")
        assert info.effective_to is None

    def test_windows_do_not_overlap(self, test_db, price_book, clock) -> None:
        """Test a new price closes the old one where the new one starts."""
        now = clock.now()
        price_book.set_price(
            ProductType.GASOHOL_95, Decimal("35.05"), effective_from=now - timedelta(days=2)
        )
        price_book.set_price(
            ProductType.GASOHOL_95, Decimal("35.45"), effective_from=now - timedelta(days=1)
        )
        test_db.expire_all()

        old, new = test_db.scalars(
            select(PriceBookEntry).order_by(PriceBookEntry.effective_from)
        ).all()

        assert old.effective_to == new.effective_from
        assert new.effective_to is None

        at_old = price_book.get_current_price(
            ProductType.GASOHOL_95, at=now - timedelta(days=1, hours=6)
        )
        at_new = price_book.get_current_price(
            ProductType.GASOHOL_95, at=now - timedelta(hours=6)
        )
        assert at_old.retail_price == Decimal("35.05")
        assert at_new.retail_price == Decimal("35.45")

    def test_future_book_falls_back_to_latest(self, price_book, clock) -> None:
        """Test an instant before any window uses the latest entry."""
        price_book.set_price(
            ProductType.E20, Decimal("29.95"), effective_from=clock.now() + timedelta(days=1)
        )

        info = price_book.get_current_price(ProductType.E20)

        assert info.retail_price == Decimal("29.95")

    def test_station_and_global_books_are_separate(
        self, price_book, make_station, clock
    ) -> None:
        """Test a station price does not leak into the global book."""
        station = make_station()
        starts = clock.now() - timedelta(hours=1)
        price_book.set_price(ProductType.DIESEL, Decimal("31.00"), effective_from=starts)
        price_book.set_price(
            ProductType.DIESEL, Decimal("32.50"), station_id=station.id, effective_from=starts
        )

        assert price_book.get_current_price(ProductType.DIESEL).retail_price == Decimal("31.00")
        assert price_book.get_current_price(
            ProductType.DIESEL, station_id=station.id
        ).retail_price == Decimal("32.50")

    def test_product_types_are_separate(self, price_book, clock) -> None:
        """Test a diesel price is not a gasohol price."""
        price_book.set_price(
            ProductType.DIESEL, Decimal("31.94"), effective_from=clock.now() - timedelta(days=1)
        )
        assert price_book.get_current_price(ProductType.GASOHOL_91) is None


class TestSetPrice:
    """Tests for price rotation."""

    def test_backdated_price_is_rejected(self, test_db, price_book, clock) -> None:
        """Test a price starting before the current one leaves the book unchanged."""
        now = clock.now()
        price_book.set_price(
            ProductType.DIESEL, Decimal("31.94"), effective_from=now - timedelta(days=1)
        )

        result = price_book.set_price(
            ProductType.DIESEL, Decimal("30.00"), effective_from=now - timedelta(days=2)
        )

        assert not result.success
        assert result.error_code == ErrorCode.PRICE_STARTS_TOO_EARLY
        test_db.expire_all()
        [entry] = test_db.scalars(select(PriceBookEntry)).all()
        assert entry.effective_to is None
        assert entry.retail_price == Decimal("31.94")

    def test_same_start_is_rejected(self, price_book, clock) -> None:
        """Test a price cannot replace the current one at the instant it starts."""
        starts = clock.now() - timedelta(hours=1)
        price_book.set_price(ProductType.E20, Decimal("29.95"), effective_from=starts)

        result = price_book.set_price(ProductType.E20, Decimal("30.45"), effective_from=starts)

        assert result.error_code == ErrorCode.PRICE_STARTS_TOO_EARLY

    def test_other_station_is_not_blocked(self, price_book, make_station, clock) -> None:
        """Test the start check only looks at the same book."""
        station = make_station()
        now = clock.now()
        price_book.set_price(ProductType.DIESEL, Decimal("31.94"), effective_from=now)

        result = price_book.set_price(
            ProductType.DIESEL,
            Decimal("32.50"),
            station_id=station.id,
            effective_from=now - timedelta(days=1),
        )

        assert result.success


class TestCalculateAmount:
    """Tests for server-side amounts."""

    @pytest.fixture
    def diesel(self, price_book, clock):
        price_book.set_price(
            ProductType.DIESEL,
            Decimal("31.94"),
            wholesale_price=Decimal("30.50"),
            effective_from=clock.now() - timedelta(days=1),
        )

    def test_retail(self, price_book, diesel) -> None:
        """Test litres times the retail price."""
        result = price_book.calculate_amount(ProductType.DIESEL, Decimal("10.5"))

        assert result.success
        assert result.amount == Decimal("335.37")
        assert result.price_type == "retail"

    def test_wholesale(self, price_book, diesel) -> None:
        """Test the wholesale price when requested."""
        result = price_book.calculate_amount(ProductType.DIESEL, Decimal("100"), is_wholesale=True)

        assert result.amount == Decimal("3050.00")
        assert result.price_type == "wholesale"

    def test_wholesale_falls_back_to_retail(self, price_book, clock) -> None:
        """Test an entry without a wholesale price charges retail."""
        price_book.set_price(
            ProductType.E85, Decimal("27.00"), effective_from=clock.now() - timedelta(days=1)
        )

        result = price_book.calculate_amount(ProductType.E85, Decimal("2"), is_wholesale=True)

        assert result.amount == Decimal("54.00")
        assert result.price_type == "retail"

    def test_no_price(self, price_book) -> None:
        """Test an unpriced product cannot be charged."""
        result = price_book.calculate_amount(ProductType.GAS, Decimal("1"))

        assert not result.success
        assert result.error_code == ErrorCode.NO_PRICE_CONFIGURED


class TestPriceHistory:
    """Tests for the history listing."""

    def test_newest_first_with_limit(self, price_book, clock) -> None:
        """Test history is most recent first and honours the limit."""
        now = clock.now()
        for days_ago, price in [(3, "30.00"), (2, "31.00"), (1, "32.00")]:
            price_book.set_price(
                ProductType.DIESEL, Decimal(price), effective_from=now - timedelta(days=days_ago)
            )

        history = price_book.get_price_history(ProductType.DIESEL, limit=2)

        assert [h.retail_price for h in history] == [Decimal("32.00"), Decimal("31.00")]
