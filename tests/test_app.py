import pytest
from fastapi.testclient import TestClient

from sale_recorder import app as app_module
from sale_recorder.app import app, get_db_engine
from sale_recorder.config import Settings, get_settings
from sale_recorder.errors import TransactionAborted


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_db_engine] = lambda: engine
    app.dependency_overrides[get_settings] = lambda: Settings(database_url=str(engine.url))
    yield TestClient(app)
    app.dependency_overrides.clear()


def sale_payload(order_id=1, product_id=1, quantity=1, **overrides):
    payload = {
        "order_id": order_id,
        "customer_id": 1,
        "seller_id": 1,
        "order_item_id": order_id,
        "product_id": product_id,
        "quantity": quantity,
    }
    payload.update(overrides)
    return payload


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_create_sale(client, add_product):
    add_product(1, price=19.99, stock=10)

    response = client.post("/sales", json=sale_payload(quantity=3))

    assert response.status_code == 201
    body = response.json()
    assert body["order_id"] == 1
    assert body["remaining_stock"] == 7
    assert body["total"] == "59.97"

    inventory = client.get("/inventory/1").json()
    assert inventory["stock"] == 7


def test_read_order(client, add_product):
    add_product(1, price=4.00, stock=10)
    client.post("/sales", json=sale_payload(order_id=5, quantity=2, order_item_id=50))

    response = client.get("/orders/5")

    assert response.status_code == 200
    body = response.json()
    assert body["order_status"] == "Inprogress"
    assert body["items"] == [
        {
            "order_item_id": 50,
            "product_id": 1,
            "quantity": 2,
            "price_per_unit": "4.00",
            "total_sale": "8.00",
        }
    ]


def test_insufficient_stock_is_conflict(client, add_product):
    add_product(1, stock=2)

    response = client.post("/sales", json=sale_payload(quantity=3))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "insufficient_stock"
    assert detail["available"] == 2
    assert client.get("/inventory/1").json()["stock"] == 2
    assert client.get("/orders/1").status_code == 404


def test_duplicate_order_is_conflict(client, add_product):
    add_product(1, stock=5)
    assert client.post("/sales", json=sale_payload(order_id=9)).status_code == 201

    response = client.post("/sales", json=sale_payload(order_id=9))

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "duplicate_order"
    assert client.get("/inventory/1").json()["stock"] == 4


def test_unstocked_product_is_not_found(client, add_product):
    add_product(1, stock=None)

    response = client.post("/sales", json=sale_payload())

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "inventory_not_found"


def test_unknown_product_is_not_found(client):
    response = client.post("/sales", json=sale_payload(product_id=77))

    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "product_not_found"


def test_non_positive_quantity_is_rejected_by_schema(client, add_product):
    add_product(1, stock=5)

    response = client.post("/sales", json=sale_payload(quantity=0))

    assert response.status_code == 422


def test_aborted_transaction_is_retryable(client, monkeypatch):
    def aborted(*args, **kwargs):
        raise TransactionAborted("Database busy, please retry", attempts=8)

    monkeypatch.setattr(app_module, "record_sale", aborted)

    response = client.post("/sales", json=sale_payload())

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["detail"]["error"] == "transaction_aborted"


def test_missing_inventory_lookup(client):
    response = client.get("/inventory/404")

    assert response.status_code == 404
    assert response.json()["detail"] == {
        "error": "inventory_not_found",
        "message": "Product 404 has no inventory record",
        "product_id": 404,
    }


def test_missing_order_lookup(client):
    response = client.get("/orders/31")

    assert response.status_code == 404
    assert response.json()["detail"] == {
        "error": "order_not_found",
        "message": "Order 31 does not exist",
        "order_id": 31,
    }
