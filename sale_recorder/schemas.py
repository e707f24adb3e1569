from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class SaleRequest(BaseModel):
    order_id: int = Field(..., gt=0, description="New order identifier")
    customer_id: int = Field(..., gt=0)
    seller_id: int = Field(..., gt=0)
    order_item_id: int = Field(..., gt=0, description="New order item identifier")
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0, description="Units to sell")


class SaleConfirmation(BaseModel):
    order_id: int
    order_item_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    total: Decimal
    remaining_stock: int


class StockLevel(BaseModel):
    product_id: int
    stock: int
    warehouse_id: Optional[int] = None
    last_stock_date: Optional[date] = None


class OrderLine(BaseModel):
    order_item_id: int
    product_id: int
    quantity: int
    price_per_unit: Decimal
    total_sale: Optional[Decimal] = None


class OrderDetail(BaseModel):
    order_id: int
    order_date: date
    customer_id: int
    seller_id: int
    order_status: str
    items: List[OrderLine]
