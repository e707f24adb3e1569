from datetime import date
from decimal import Decimal

from sqlalchemy import Date, text

from sale_recorder.database import get_connection, get_transaction
from sale_recorder.lookups import get_order_detail, get_stock_level
from sale_recorder.models import MONEY
from sale_recorder.recorder import record_sale
from sale_recorder.reset_db import DEMO_INVENTORY, backfill_order_totals, reset_database
from sale_recorder.sql_loader import execute_sql


def test_reset_seeds_demo_catalogue(engine):
    reset_database(engine)

    with get_connection(engine) as conn:
        for record in DEMO_INVENTORY:
            level = get_stock_level(conn, record["product_id"])
            assert level.stock == record["stock"]
            assert level.last_stock_date == date.today()


def test_reset_without_seed_leaves_tables_empty(engine):
    reset_database(engine, seed=False)

    with get_connection(engine) as conn:
        assert conn.execute(text("SELECT COUNT(*) FROM products")).scalar_one() == 0


def test_backfill_only_fills_missing_totals(engine):
    reset_database(engine)
    record_sale(engine, 1, 1, 1, 1, 2, 3)

    with get_transaction(engine) as conn:
        execute_sql(
            conn,
            "insert_order",
            {"order_id": 2, "order_date": date(2023, 5, 1), "customer_id": 2, "seller_id": 1, "order_status": "Completed"},
            types={"order_date": Date()},
        )
        execute_sql(
            conn,
            "insert_order_item",
            {
                "order_item_id": 2,
                "order_id": 2,
                "product_id": 1,
                "quantity": 2,
                "price_per_unit": Decimal("199.00"),
                "total_sale": None,
            },
            types={"price_per_unit": MONEY, "total_sale": MONEY},
        )

    assert backfill_order_totals(engine) == 1
    assert backfill_order_totals(engine) == 0

    with get_connection(engine) as conn:
        assert get_order_detail(conn, 1).items[0].total_sale == Decimal("59.97")
        assert get_order_detail(conn, 2).items[0].total_sale == Decimal("398.00")
