import pytest

from sale_recorder.database import create_db_engine, get_connection, get_transaction
from sale_recorder.reset_db import reset_database, seed_inventory, seed_products
from sale_recorder.sql_loader import execute_sql


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite database with the schema and demo customers/sellers."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'sales.db'}")
    reset_database(engine, seed=False)
    with get_transaction(engine) as conn:
        execute_sql(conn, "seed_category", {"category_id": 1, "category_name": "electronics"})
        execute_sql(
            conn,
            "seed_customer",
            {"customer_id": 1, "first_name": "Jane", "last_name": "Doe", "state": "Texas"},
        )
        execute_sql(conn, "seed_seller", {"seller_id": 1, "seller_name": "Amazon", "origin": "USA"})
    yield engine
    engine.dispose()


@pytest.fixture
def add_product(engine):
    """Create a product, with an inventory record unless stock is None."""

    def _add(product_id, price=10.00, stock=10, name=None):
        with get_transaction(engine) as conn:
            seed_products(
                conn,
                [
                    {
                        "product_id": product_id,
                        "product_name": name or f"Product {product_id}",
                        "price": price,
                        "cogs": 1.00,
                        "category_id": 1,
                    }
                ],
            )
            if stock is not None:
                seed_inventory(
                    conn,
                    [{"inventory_id": product_id, "product_id": product_id, "stock": stock, "warehouse_id": 1}],
                )

    return _add


@pytest.fixture
def db_state(engine):
    """Snapshot helpers for asserting what was (not) persisted."""

    class State:
        def stock(self, product_id):
            with get_connection(engine) as conn:
                return execute_sql(conn, "get_stock", {"product_id": product_id}).fetchone().stock

        def order_exists(self, order_id):
            with get_connection(engine) as conn:
                return execute_sql(conn, "find_order", {"order_id": order_id}).first() is not None

        def order_item_exists(self, order_item_id):
            with get_connection(engine) as conn:
                return execute_sql(conn, "find_order_item", {"order_item_id": order_item_id}).first() is not None

        def order_item_count(self, product_id):
            with get_connection(engine) as conn:
                return execute_sql(conn, "count_order_items", {"product_id": product_id}).scalar_one()

    return State()
