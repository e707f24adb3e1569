"""
Sale errors.

Every outcome of record_sale other than a confirmation is one of these
exceptions. `retryable` tells the caller whether resubmitting the same
request can succeed; `code` is the stable identifier exposed over HTTP.
"""

from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError

# PostgreSQL SQLSTATEs worth another attempt:
# deadlock_detected, lock_not_available, serialization_failure
RETRYABLE_PGCODES = {"40P01", "55P03", "40001"}
UNIQUE_VIOLATION_PGCODE = "23505"
FOREIGN_KEY_VIOLATION_PGCODE = "23503"

SQLITE_BUSY_MESSAGES = ("database is locked", "database table is locked", "database is busy")


class SaleError(Exception):
    code = "sale_error"
    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, **self.context}


class InvalidQuantity(SaleError):
    code = "invalid_quantity"

    def __init__(self, quantity):
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}", quantity=quantity)


class InvalidIdentifier(SaleError):
    code = "invalid_identifier"

    def __init__(self, field: str, value):
        super().__init__(f"{field} must be a positive integer, got {value!r}", field=field, value=value)


class ProductNotFound(SaleError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} does not exist", product_id=product_id)


class InventoryNotFound(SaleError):
    code = "inventory_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} has no inventory record", product_id=product_id)


class OrderNotFound(SaleError):
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} does not exist", order_id=order_id)


class InsufficientStock(SaleError):
    """Requested quantity exceeds stock at decision time. A business outcome, not a fault."""

    code = "insufficient_stock"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient inventory for product {product_id}: requested {requested}, available {available}",
            product_id=product_id,
            requested=requested,
            available=available,
        )


class DuplicateOrder(SaleError):
    code = "duplicate_order"

    def __init__(self, order_id: int, order_item_id: int):
        super().__init__(
            f"Order {order_id} or order item {order_item_id} already exists",
            order_id=order_id,
            order_item_id=order_item_id,
        )


class UnknownReference(SaleError):
    """Customer or seller id does not satisfy a foreign key."""

    code = "unknown_reference"

    def __init__(self, customer_id: int, seller_id: int):
        super().__init__(
            f"Customer {customer_id} or seller {seller_id} does not exist",
            customer_id=customer_id,
            seller_id=seller_id,
        )


class TransactionAborted(SaleError):
    """Storage conflict or fault; nothing was persisted and the caller may retry."""

    code = "transaction_aborted"
    retryable = True

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message, attempts=attempts)


def _sqlstate(exc) -> str:
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION_PGCODE:
        return True
    return "UNIQUE constraint failed" in str(getattr(exc, "orig", exc))


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == FOREIGN_KEY_VIOLATION_PGCODE:
        return True
    return "FOREIGN KEY constraint failed" in str(getattr(exc, "orig", exc))


def is_retryable_conflict(exc) -> bool:
    """True for lock conflicts, serialization failures and pool exhaustion."""
    if isinstance(exc, TimeoutError):
        return True
    if not isinstance(exc, OperationalError):
        return False
    if getattr(exc, "connection_invalidated", False):
        return True
    if _sqlstate(exc) in RETRYABLE_PGCODES:
        return True
    message = str(getattr(exc, "orig", exc)).lower()
    return any(busy in message for busy in SQLITE_BUSY_MESSAGES)
