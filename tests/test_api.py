import pytest
from fastapi.testclient import TestClient

from barf_malai.main import app
from barf_malai.services.rpc import get_mock_sheet


@pytest.fixture
def client(settings):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    response = client.post("/admin/login", json={"password": "admin123"})
    assert response.status_code == 200
    return client


def checkout(client, **form):
    body = {"name": "Asha", "phone": "9876543210", "table": "3"}
    body.update(form)
    return client.post("/api/checkout", json=body)


def test_root_and_health(client):
    assert client.get("/").json()["storefront"] == "/api/storefront"

    health = client.get("/health").json()
    assert health["status"] == "operational"
    assert health["provider"] == "mock"
    assert health["menu_loaded"] is True


def test_storefront_loaded_on_startup(client):
    view = client.get("/api/storefront").json()
    assert view["loading"] is False
    assert len(view["grid"]["products"]) == 5
    assert view["categories"][0]["label"] == "All Items"


def test_menu_filter(client):
    data = client.get("/api/menu", params={"category": "Cones"}).json()
    assert [p["name"] for p in data["grid"]["products"]] == ["Mango Malai Cone"]


def test_cart_flow(client):
    client.post("/api/cart/items", json={"product_id": 1})
    panel = client.post("/api/cart/items", json={"product_id": 1}).json()
    assert panel["total_amount"] == 100
    assert panel["lines"][0]["quantity"] == 2

    panel = client.patch("/api/cart/items/1", json={"delta": -1}).json()
    assert panel["total_items"] == 1

    panel = client.delete("/api/cart/items/1").json()
    assert panel["lines"] == []

    assert client.post("/api/cart/toggle").json()["open"] is True


def test_checkout_success(client):
    client.delete("/api/cart")
    client.post("/api/cart/items", json={"product_id": 4})

    response = checkout(client)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["total_amount"] == 120

    assert client.get("/api/cart").json()["total_items"] == 0
    assert get_mock_sheet().find_order(data["order_id"])["Name"] == "Asha"


def test_checkout_validation_error(client):
    client.post("/api/cart/items", json={"product_id": 1})
    response = checkout(client, phone="12")
    assert response.status_code == 400
    assert response.json()["detail"] == "Phone must be 7-15 digits"


def test_checkout_empty_cart(client):
    client.delete("/api/cart")
    response = checkout(client)
    assert response.status_code == 400
    assert response.json()["detail"] == "Your cart is empty"


def test_admin_requires_login(client):
    assert client.get("/admin/dashboard").status_code == 401


def test_admin_wrong_password(client):
    assert client.post("/admin/login", json={"password": "nope"}).status_code == 401


def test_admin_dashboard(admin_client):
    data = admin_client.get("/admin/dashboard").json()
    assert data["stats"]["totalOrders"] == 0
    assert len(data["products"]) == 5


def test_admin_category_two_phase_delete(admin_client):
    response = admin_client.delete("/admin/categories/Cups")
    assert response.status_code == 409
    assert "force=true" in response.json()["detail"]

    response = admin_client.delete("/admin/categories/Cups", params={"force": "true"})
    assert response.status_code == 200
    assert get_mock_sheet().find_category("Cups") is None


def test_admin_add_category_validation(admin_client):
    response = admin_client.post("/admin/categories", json={"name": " "})
    assert response.status_code == 400


def test_admin_remote_error_is_bad_gateway(admin_client):
    response = admin_client.delete("/admin/products/Ghost")
    assert response.status_code == 502
    assert response.json()["detail"] == "Product not found"


def test_admin_products(admin_client):
    response = admin_client.post("/admin/products", json={
        "name": "Rose Kulfi", "price": 80, "category": "Cups",
    })
    assert response.status_code == 200
    assert response.json()["product"]["name"] == "Rose Kulfi"

    response = admin_client.post("/admin/products", json={"name": "No Price", "category": "Cups"})
    assert response.status_code == 400


def test_admin_order_status_and_bill(admin_client):
    admin_client.post("/api/cart/items", json={"product_id": 1})
    order_id = checkout(admin_client).json()["order_id"]

    response = admin_client.patch(
        f"/admin/orders/{order_id}/status", json={"status": "completed"},
    )
    assert response.status_code == 200

    bill = admin_client.get(f"/admin/orders/{order_id}/bill")
    assert bill.status_code == 200
    assert "text/html" in bill.headers["content-type"]
    assert "Thank you for your order!" in bill.text


def test_admin_image_upload(admin_client):
    png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
    response = admin_client.post(
        "/admin/images",
        files={"file": ("cone.png", png, "image/png")},
        data={"strategy": "data_url"},
    )
    assert response.status_code == 200
    assert response.json()["url"].startswith("data:image/png;base64,")

    response = admin_client.post(
        "/admin/images",
        files={"file": ("cone.png", png, "image/png")},
        data={"strategy": "ftp"},
    )
    assert response.status_code == 400
