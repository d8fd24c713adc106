import json
import re

import httpx
import pytest

from barf_malai.schemas import CategoriesResponse, OrderLine, OrderPayload, ProductCreate
from barf_malai.services.rpc import (
    CategoryInUseError,
    HttpRpcClient,
    MockRpcClient,
    RemoteServiceError,
    RpcNetworkError,
    RpcSchemaError,
    RpcTimeoutError,
)

SHEET_URL = "https://sheet.example.com/exec"


def make_http_client(handler, timeout=5.0):
    transport = httpx.MockTransport(handler)
    return HttpRpcClient(SHEET_URL, timeout=timeout, client=httpx.AsyncClient(transport=transport))


def jsonp(request: httpx.Request, payload: dict) -> httpx.Response:
    callback = request.url.params["callback"]
    return httpx.Response(200, text=f"{callback}({json.dumps(payload)});")


# =============================================================================
# Envelope handling
# =============================================================================

async def test_success_envelope_is_returned(rpc):
    response = await rpc.call("getCategories")
    assert response["status"] == "success"
    assert [c["name"] for c in response["categories"]] == ["Cups", "Cones", "Shakes"]


async def test_error_envelope_raises_with_message(rpc):
    with pytest.raises(RemoteServiceError) as exc:
        await rpc.call("deleteProduct", {"name": "Nope"})
    assert exc.value.message == "Product not found"
    assert exc.value.action == "deleteProduct"


async def test_error_without_message_uses_default(rpc, monkeypatch):
    async def dispatch(action, params, callback_name):
        return {"status": "error"}

    monkeypatch.setattr(rpc, "_dispatch", dispatch)
    with pytest.raises(RemoteServiceError, match="Unknown error occurred"):
        await rpc.call("getCategories")


async def test_unknown_action(rpc):
    with pytest.raises(RemoteServiceError, match="Unknown action: frobnicate"):
        await rpc.call("frobnicate")


async def test_category_in_use_is_classified(rpc):
    with pytest.raises(CategoryInUseError) as exc:
        await rpc.delete_category("Cups")
    assert "force=true" in exc.value.message


async def test_forced_delete_passes_force_flag(rpc, sheet):
    await rpc.delete_category("Cups", force=True)
    assert rpc.calls[-1] == ("deleteCategory", {"name": "Cups", "force": "true"})
    assert sheet.find_category("Cups") is None


async def test_unforced_delete_omits_force_flag(rpc):
    with pytest.raises(CategoryInUseError):
        await rpc.delete_category("Cups")
    assert "force" not in rpc.calls[-1][1]


async def test_schema_mismatch_raises(rpc, monkeypatch):
    async def dispatch(action, params, callback_name):
        return {"status": "success", "categories": [{"imageURL": "x"}]}

    monkeypatch.setattr(rpc, "_dispatch", dispatch)
    with pytest.raises(RpcSchemaError):
        await rpc.request("getCategories", CategoriesResponse)


# =============================================================================
# Timeouts and bookkeeping
# =============================================================================

async def test_unanswered_call_times_out_and_is_forgotten(sheet):
    client = MockRpcClient(sheet, timeout=0.05, unresponsive_actions={"getOrders"})

    with pytest.raises(RpcTimeoutError, match="Request timeout"):
        await client.get_orders()

    assert client.in_flight == {}


async def test_in_flight_empty_after_success(rpc):
    await rpc.get_categories()
    assert rpc.in_flight == {}


async def test_network_failure(sheet):
    client = MockRpcClient(sheet, failure_rate=1.0)
    with pytest.raises(RpcNetworkError):
        await client.get_categories()
    assert client.in_flight == {}


async def test_health_check(rpc, sheet):
    assert await rpc.health_check() is True
    assert await MockRpcClient(sheet, failure_rate=1.0).health_check() is False


def test_build_url_puts_callback_last(rpc):
    url = httpx.URL(rpc.build_url("getOrders", {"orderId": "a b"}, "jsonp_callback_1"))
    keys = list(url.params.keys())
    assert keys[0] == "action"
    assert keys[-1] == "callback"
    assert url.params["orderId"] == "a b"


async def test_callback_names_are_unique(rpc):
    names = {rpc._new_callback_name() for _ in range(50)}
    assert len(names) == 50
    assert all(re.fullmatch(r"jsonp_callback_[0-9a-f]{32}", n) for n in names)


def test_clean_params():
    cleaned = MockRpcClient._clean_params({"a": None, "b": True, "c": False, "d": 1.5})
    assert cleaned == {"b": "true", "c": "false", "d": "1.5"}


# =============================================================================
# Typed actions against the mock sheet
# =============================================================================

async def test_admin_login(rpc):
    assert await rpc.admin_login("admin123") is True
    assert await rpc.admin_login("wrong") is False


async def test_add_product_assigns_next_id(rpc, sheet):
    await rpc.add_product(ProductCreate(name="Rose Kulfi", price=80, category="Cups"))
    products = await rpc.get_all_products()
    assert products[-1].name == "Rose Kulfi"
    assert products[-1].id == 6


async def test_place_order_and_bill(rpc):
    payload = OrderPayload(
        name="Asha",
        phone="9876543210",
        table="4",
        cart=[OrderLine(name="Vanilla", price=50, quantity=2)],
        total_amount=100,
    )
    order_id = await rpc.place_order(payload)

    sent = json.loads(rpc.calls[-1][1]["orderData"])
    assert sent["totalAmount"] == 100
    assert sent["cart"] == [{"name": "Vanilla", "price": 50.0, "quantity": 2}]

    bill = await rpc.generate_bill(order_id)
    assert bill.order_id == order_id
    assert bill.total == 100
    assert bill.items[0].line_total == 100

    await rpc.update_order_status(order_id, "completed")
    orders = await rpc.get_orders()
    assert orders[0].status.value == "completed"

    stats = await rpc.get_dashboard_stats()
    assert stats.total_orders == 1
    assert stats.pending_orders == 0


# =============================================================================
# HTTP transport
# =============================================================================

async def test_http_strips_jsonp_wrapper():
    def handler(request):
        assert request.url.params["action"] == "getCategories"
        return jsonp(request, {"status": "success", "categories": [{"name": "Cups"}]})

    client = make_http_client(handler)
    categories = await client.get_categories()
    await client.aclose()

    assert [c.name for c in categories] == ["Cups"]


async def test_http_accepts_commented_jsonp():
    def handler(request):
        callback = request.url.params["callback"]
        return httpx.Response(200, text=f'/**/ {callback}({{"status": "success", "products": []}})')

    client = make_http_client(handler)
    assert await client.get_all_products() == []
    await client.aclose()


async def test_http_accepts_plain_json():
    def handler(request):
        return httpx.Response(200, json={"status": "success", "authenticated": True})

    client = make_http_client(handler)
    assert await client.admin_login("pw") is True
    await client.aclose()


async def test_http_ignores_other_callback_names():
    def handler(request):
        return httpx.Response(200, text='someone_else({"status": "success"});')

    client = make_http_client(handler)
    with pytest.raises(RpcNetworkError):
        await client.call("getCategories")
    await client.aclose()


async def test_http_malformed_body():
    def handler(request):
        return httpx.Response(200, text="<html>Sign in</html>")

    client = make_http_client(handler)
    with pytest.raises(RpcNetworkError):
        await client.call("getCategories")
    assert client.in_flight == {}
    await client.aclose()


async def test_http_status_error():
    client = make_http_client(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(RpcNetworkError, match="HTTP 500"):
        await client.call("getCategories")
    await client.aclose()


async def test_http_connect_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_http_client(handler)
    with pytest.raises(RpcNetworkError):
        await client.call("getCategories")
    await client.aclose()


async def test_http_transport_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = make_http_client(handler)
    with pytest.raises(RpcTimeoutError):
        await client.call("getCategories")
    await client.aclose()


async def test_http_remote_error_classification():
    def handler(request):
        return jsonp(request, {
            "status": "error",
            "error": 'Category "Cups" is used by 2 product(s). Use force=true to delete anyway.',
        })

    client = make_http_client(handler)
    with pytest.raises(CategoryInUseError):
        await client.delete_category("Cups")
    await client.aclose()
