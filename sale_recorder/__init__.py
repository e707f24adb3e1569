"""Atomic sale recording with stock validation against an e-commerce schema."""

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
)
from .recorder import record_sale
from .schemas import SaleConfirmation

__all__ = [
    "record_sale",
    "SaleConfirmation",
    "SaleError",
    "InvalidIdentifier",
    "InvalidQuantity",
    "ProductNotFound",
    "InventoryNotFound",
    "InsufficientStock",
    "DuplicateOrder",
    "UnknownReference",
    "TransactionAborted",
]
