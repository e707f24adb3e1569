from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
)

from .database import Base

CENT = Decimal("0.01")
MONEY = Numeric(12, 2)


def to_money(value) -> Decimal:
    """Normalize a price read from the driver (Decimal or float) to cents."""
    return Decimal(str(value)).quantize(CENT)


class Category(Base):
    __tablename__ = "category"

    category_id = Column(Integer, primary_key=True)
    category_name = Column(String(50), nullable=False)


class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(Integer, primary_key=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    state = Column(String(50))


class Seller(Base):
    __tablename__ = "sellers"

    seller_id = Column(Integer, primary_key=True)
    seller_name = Column(String(50), nullable=False)
    origin = Column(String(50))


class Product(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True)
    product_name = Column(String(50), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    cogs = Column(Numeric(12, 2), nullable=False)
    category_id = Column(Integer, ForeignKey("category.category_id"))


class Inventory(Base):
    __tablename__ = "inventory"

    inventory_id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), unique=True, nullable=False)
    stock = Column(Integer, nullable=False)
    warehouse_id = Column(Integer)
    last_stock_date = Column(Date)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_inventory_non_negative"),
    )


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True)
    order_date = Column(Date, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=False)
    seller_id = Column(Integer, ForeignKey("sellers.seller_id"), nullable=False)
    order_status = Column(String(15), nullable=False, server_default="Inprogress")


class OrderItem(Base):
    __tablename__ = "order_items"

    order_item_id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_per_unit = Column(Numeric(12, 2), nullable=False)
    total_sale = Column(Numeric(12, 2))

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_item_quantity_positive"),
    )
