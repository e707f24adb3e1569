import argparse
import logging
from datetime import date

from sqlalchemy import Date

from .database import Base, get_engine, get_transaction
from .models import MONEY  # also registers the tables on Base.metadata
from .sql_loader import execute_sql

logger = logging.getLogger(__name__)

DEMO_CATEGORIES = [
    {"category_id": 1, "category_name": "electronics"},
    {"category_id": 2, "category_name": "Clothing"},
    {"category_id": 3, "category_name": "Sports & Outdoors"},
]

DEMO_CUSTOMERS = [
    {"customer_id": 1, "first_name": "Jane", "last_name": "Doe", "state": "Texas"},
    {"customer_id": 2, "first_name": "Ahmed", "last_name": "Khan", "state": "Ohio"},
    {"customer_id": 3, "first_name": "Lucia", "last_name": "Ortiz", "state": "Texas"},
]

DEMO_SELLERS = [
    {"seller_id": 1, "seller_name": "Amazon", "origin": "USA"},
    {"seller_id": 2, "seller_name": "BestBuy", "origin": "USA"},
]

DEMO_PRODUCTS = [
    {"product_id": 1, "product_name": "Apple AirPods 3rd Gen", "price": 199.00, "cogs": 132.50, "category_id": 1},
    {"product_id": 2, "product_name": "Running Shorts", "price": 19.99, "cogs": 8.40, "category_id": 2},
    {"product_id": 3, "product_name": "Camping Tent", "price": 249.50, "cogs": 170.00, "category_id": 3},
]

DEMO_INVENTORY = [
    {"inventory_id": 1, "product_id": 1, "stock": 100, "warehouse_id": 1},
    {"inventory_id": 2, "product_id": 2, "stock": 250, "warehouse_id": 1},
    {"inventory_id": 3, "product_id": 3, "stock": 10, "warehouse_id": 2},
]


def seed_products(conn, products):
    execute_sql(conn, "seed_product", products, types={"price": MONEY, "cogs": MONEY})


def seed_inventory(conn, records):
    today = date.today()
    rows = [{"last_stock_date": today, **record} for record in records]
    execute_sql(conn, "seed_inventory", rows, types={"last_stock_date": Date()})


def seed_demo_data(conn):
    execute_sql(conn, "seed_category", DEMO_CATEGORIES)
    execute_sql(conn, "seed_customer", DEMO_CUSTOMERS)
    execute_sql(conn, "seed_seller", DEMO_SELLERS)
    seed_products(conn, DEMO_PRODUCTS)
    seed_inventory(conn, DEMO_INVENTORY)


def backfill_order_totals(engine=None) -> int:
    """Fill total_sale for line items that have none. Returns the number of rows updated."""
    with get_transaction(engine) as conn:
        updated = execute_sql(conn, "backfill_order_totals").rowcount
    logger.info(f"Backfilled total_sale on {updated} order items.")
    return updated


def reset_database(engine=None, seed: bool = True):
    engine = engine or get_engine()
    logger.info("Resetting database...")

    # 1. Drop existing tables
    Base.metadata.drop_all(engine)

    # 2. Create new tables
    Base.metadata.create_all(engine)

    # 3. Seed catalogue and inventory
    if seed:
        with get_transaction(engine) as conn:
            seed_demo_data(conn)
        logger.info(f"Seeded {len(DEMO_PRODUCTS)} products with inventory.")

    logger.info("Database reset complete.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Rebuild the sales schema.")
    parser.add_argument("--no-seed", action="store_true", help="create empty tables only")
    parser.add_argument(
        "--backfill-totals",
        action="store_true",
        help="compute total_sale for existing order items that lack one, without resetting",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    if args.backfill_totals:
        backfill_order_totals()
    else:
        reset_database(seed=not args.no_seed)


if __name__ == "__main__":
    main()
