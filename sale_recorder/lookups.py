"""Read-only lookups of committed inventory and order state."""

from typing import Optional

from .models import to_money
from .schemas import OrderDetail, OrderLine, StockLevel
from .sql_loader import execute_sql


def get_stock_level(conn, product_id: int) -> Optional[StockLevel]:
    row = execute_sql(conn, "get_stock", {"product_id": product_id}).fetchone()
    if not row:
        return None
    return StockLevel(
        product_id=row.product_id,
        stock=row.stock,
        warehouse_id=row.warehouse_id,
        last_stock_date=row.last_stock_date,
    )


def get_order_detail(conn, order_id: int) -> Optional[OrderDetail]:
    rows = execute_sql(conn, "get_order", {"order_id": order_id}).fetchall()
    if not rows:
        return None

    header = rows[0]
    return OrderDetail(
        order_id=header.order_id,
        order_date=header.order_date,
        customer_id=header.customer_id,
        seller_id=header.seller_id,
        order_status=header.order_status,
        items=[
            OrderLine(
                order_item_id=row.order_item_id,
                product_id=row.product_id,
                quantity=row.quantity,
                price_per_unit=to_money(row.price_per_unit),
                total_sale=to_money(row.total_sale) if row.total_sale is not None else None,
            )
            for row in rows
        ],
    )
