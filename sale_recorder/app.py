import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy.engine import Engine

from .config import Settings, get_settings
from .database import get_connection, get_engine
from .errors import (
    DuplicateOrder,
    InsufficientStock,
    InventoryNotFound,
    OrderNotFound,
    ProductNotFound,
    SaleError,
    TransactionAborted,
    UnknownReference,
)
from .lookups import get_order_detail, get_stock_level
from .recorder import record_sale
from .schemas import OrderDetail, SaleConfirmation, SaleRequest, StockLevel

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ProductNotFound: status.HTTP_404_NOT_FOUND,
    InventoryNotFound: status.HTTP_404_NOT_FOUND,
    UnknownReference: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
    DuplicateOrder: status.HTTP_409_CONFLICT,
    TransactionAborted: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_db_engine() -> Engine:
    return get_engine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    logger.info("Sale Recorder API started.")
    yield
    get_engine().dispose()


app = FastAPI(title="Sale Recorder API", lifespan=lifespan)


@app.post("/sales", response_model=SaleConfirmation, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale: SaleRequest,
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
):
    """
    Records a sale: validates stock, creates the order and its line item,
    and decrements inventory in one transaction.
    """
    try:
        return record_sale(
            engine,
            sale.order_id,
            sale.customer_id,
            sale.seller_id,
            sale.order_item_id,
            sale.product_id,
            sale.quantity,
            max_attempts=settings.sale_max_attempts,
            retry_budget_seconds=settings.sale_retry_budget_seconds,
        )
    except SaleError as e:
        status_code = ERROR_STATUS.get(type(e), status.HTTP_400_BAD_REQUEST)
        headers = {"Retry-After": "1"} if e.retryable else None
        raise HTTPException(status_code=status_code, detail=e.to_dict(), headers=headers)


@app.get("/inventory/{product_id}", response_model=StockLevel)
def read_inventory(product_id: int, engine: Engine = Depends(get_db_engine)):
    """Current committed stock for a product."""
    with get_connection(engine) as conn:
        level = get_stock_level(conn, product_id)
    if not level:
        error = InventoryNotFound(product_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.to_dict())
    return level


@app.get("/orders/{order_id}", response_model=OrderDetail)
def read_order(order_id: int, engine: Engine = Depends(get_db_engine)):
    with get_connection(engine) as conn:
        order = get_order_detail(conn, order_id)
    if not order:
        error = OrderNotFound(order_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.to_dict())
    return order


@app.get("/health")
def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
