"""Seed script to populate the database with sample data."""

from decimal import Decimal

from sqlalchemy import select

from fuelops import models  # noqa: F401
from fuelops.core.database import Base, SessionLocal, engine
from fuelops.models.enums import ProductType, StationType
from fuelops.models.product import Product
from fuelops.models.station import Station
from fuelops.services.inventory import InventoryLedger
from fuelops.services.price_book import PriceBook
from fuelops.services.shift_lifecycle import ShiftLifecycle

FUEL_PRICES = {
    ProductType.DIESEL: (Decimal("31.94"), Decimal("30.80")),
    ProductType.GASOHOL_95: (Decimal("35.45"), None),
    ProductType.GASOHOL_91: (Decimal("35.08"), None),
    ProductType.GAS: (Decimal("16.09"), None),
}

PRODUCTS = [
    ("Engine oil 1L", "bottle", Decimal("150.00"), Decimal("24")),
    ("Drinking water 600ml", "bottle", Decimal("10.00"), Decimal("120")),
    ("Coolant 1L", "bottle", Decimal("85.00"), Decimal("6")),
]


def seed_database() -> None:
    """Seed the database with sample data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # Check if data already exists
        if db.scalars(select(Station)).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        highway = Station(name="Highway 1", station_type=StationType.FULL, nozzle_count=4)
        lpg = Station(name="Ring Road LPG", station_type=StationType.GAS, nozzle_count=2)
        outlet = Station(name="Village Outlet", station_type=StationType.SIMPLE)
        db.add_all([highway, lpg, outlet])
        db.commit()

        print(f"Created stations: {highway.name}, {lpg.name}, {outlet.name}")

        price_book = PriceBook(db)
        for product_type, (retail, wholesale) in FUEL_PRICES.items():
            result = price_book.set_price(product_type, retail, wholesale_price=wholesale)
            if not result.success:
                raise RuntimeError(result.error)

        print(f"Set {len(FUEL_PRICES)} fuel prices in the global price book")

        ledger = InventoryLedger(db)
        for name, unit, sale_price, quantity in PRODUCTS:
            product = Product(name=name, unit=unit, sale_price=sale_price)
            db.add(product)
            db.commit()
            ledger.update_inventory(highway.id, product.id, quantity)

        print(f"Created {len(PRODUCTS)} products stocked at {highway.name}")

        lifecycle = ShiftLifecycle(db)
        opened = lifecycle.open_shift(highway.id)
        if not opened.success:
            raise RuntimeError(opened.error)

        print("\nSeed data created successfully!")
        print(f"\nStation ID: {highway.id}")
        print(f"Open shift ID: {opened.shift_id}")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
