"""
Sale Recorder

Records a single-item sale as one atomic transaction: validate stock, create
the order and its line item, decrement inventory. Either all three writes
commit or none do.

Concurrent sales of the same product are serialized by a row lock on
PostgreSQL (SELECT ... FOR UPDATE) and, on every backend, by a guarded
decrement that only succeeds while enough stock remains.
"""

import logging
import random
import time
from datetime import date

from sqlalchemy import Date
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError, TimeoutError

from .database import get_transaction
from .errors import (
    DuplicateOrder,
    InsufficientStock,
    InvalidIdentifier,
    InvalidQuantity,
    InventoryNotFound,
    ProductNotFound,
    SaleError,
    TransactionAborted,
    UnknownReference,
    is_foreign_key_violation,
    is_retryable_conflict,
    is_unique_violation,
)
from .models import CENT, MONEY, to_money
from .schemas import SaleConfirmation
from .sql_loader import execute_sql

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 8
DEFAULT_RETRY_BUDGET_SECONDS = 2.0
MAX_BACKOFF_SECONDS = 0.2

NEW_ORDER_STATUS = "Inprogress"


def record_sale(
    engine: Engine,
    order_id: int,
    customer_id: int,
    seller_id: int,
    order_item_id: int,
    product_id: int,
    quantity: int,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_budget_seconds: float = DEFAULT_RETRY_BUDGET_SECONDS,
) -> SaleConfirmation:
    """
    Record a sale and decrement inventory.

    Storage conflicts (deadlocks, lock timeouts, serialization failures, a
    busy SQLite database, pool exhaustion) are retried with exponential
    backoff, bounded by `max_attempts` and `retry_budget_seconds`.

    Returns:
        SaleConfirmation with the computed total and resulting stock level

    Raises:
        InvalidIdentifier, InvalidQuantity, DuplicateOrder, ProductNotFound,
        InventoryNotFound, InsufficientStock, UnknownReference: permanent outcomes, nothing written
        TransactionAborted: storage fault or retries exhausted, nothing written
    """
    if not _is_positive_int(quantity):
        raise InvalidQuantity(quantity)
    for field, value in (
        ("order_id", order_id),
        ("customer_id", customer_id),
        ("seller_id", seller_id),
        ("order_item_id", order_item_id),
        ("product_id", product_id),
    ):
        if not _is_positive_int(value):
            raise InvalidIdentifier(field, value)

    start_time = time.monotonic()
    attempts = 0
    while True:
        attempts += 1
        try:
            return _record_sale_once(
                engine, order_id, customer_id, seller_id, order_item_id, product_id, quantity
            )
        except SaleError:
            raise
        except IntegrityError as e:
            if is_unique_violation(e):
                raise DuplicateOrder(order_id, order_item_id) from e
            if is_foreign_key_violation(e):
                raise UnknownReference(customer_id, seller_id) from e
            logger.error(f"Sale {order_id} aborted by integrity error: {e}")
            raise TransactionAborted(f"Database integrity error: {e}", attempts) from e
        except (OperationalError, TimeoutError) as e:
            elapsed = time.monotonic() - start_time
            if not is_retryable_conflict(e):
                logger.error(f"Sale {order_id} aborted by storage error: {e}")
                raise TransactionAborted(f"Database operational error: {e}", attempts) from e
            if attempts >= max_attempts or elapsed >= retry_budget_seconds:
                logger.error(f"Sale {order_id} aborted after {attempts} attempts ({elapsed:.2f}s)")
                raise TransactionAborted("Database busy, please retry", attempts) from e
            delay = min(MAX_BACKOFF_SECONDS, 0.01 * (2 ** (attempts - 1))) + random.random() * 0.01
            logger.warning(f"Sale {order_id} hit a storage conflict, retrying in {delay:.3f}s: {e}")
            time.sleep(delay)
        except SQLAlchemyError as e:
            logger.error(f"Sale {order_id} aborted by storage error: {e}")
            raise TransactionAborted(f"Database error: {e}", attempts) from e


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _record_sale_once(engine, order_id, customer_id, seller_id, order_item_id, product_id, quantity):
    with get_transaction(engine) as conn:
        if (
            execute_sql(conn, "find_order", {"order_id": order_id}).first() is not None
            or execute_sql(conn, "find_order_item", {"order_item_id": order_item_id}).first() is not None
        ):
            raise DuplicateOrder(order_id, order_item_id)

        product = execute_sql(conn, "get_product", {"product_id": product_id}).fetchone()
        if not product:
            raise ProductNotFound(product_id)

        inventory = execute_sql(conn, "get_inventory_for_update", {"product_id": product_id}).fetchone()
        if not inventory:
            raise InventoryNotFound(product_id)

        if inventory.stock < quantity:
            logger.info(f"Insufficient inventory for product {product.product_name}")
            raise InsufficientStock(product_id, quantity, inventory.stock)

        params = {"product_id": product_id, "quantity": quantity}
        if execute_sql(conn, "decrement_stock", params).rowcount != 1:
            # A concurrent sale committed between our read and the guarded update
            current = execute_sql(conn, "get_stock", {"product_id": product_id}).fetchone()
            logger.info(f"Insufficient inventory for product {product.product_name} (lost race)")
            raise InsufficientStock(product_id, quantity, current.stock)

        unit_price = to_money(product.price)
        total = (unit_price * quantity).quantize(CENT)

        execute_sql(
            conn,
            "insert_order",
            {
                "order_id": order_id,
                "order_date": date.today(),
                "customer_id": customer_id,
                "seller_id": seller_id,
                "order_status": NEW_ORDER_STATUS,
            },
            types={"order_date": Date()},
        )
        execute_sql(
            conn,
            "insert_order_item",
            {
                "order_item_id": order_item_id,
                "order_id": order_id,
                "product_id": product_id,
                "quantity": quantity,
                "price_per_unit": unit_price,
                "total_sale": total,
            },
            types={"price_per_unit": MONEY, "total_sale": MONEY},
        )

        remaining = execute_sql(conn, "get_stock", {"product_id": product_id}).fetchone().stock

    logger.info(f"Product {product.product_name} sold successfully and inventory updated")
    return SaleConfirmation(
        order_id=order_id,
        order_item_id=order_item_id,
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        total=total,
        remaining_stock=remaining,
    )
