import pytest

from barf_malai.services.checkout import CheckoutFlow, CheckoutValidationError, validate_checkout
from barf_malai.services.rpc import MockRpcClient

VALID_FORM = {"name": "Asha", "phone": "98765 43210", "table": "4", "review": "Less sugar"}


@pytest.fixture
async def shopping_state(loaded_state):
    loaded_state.add_to_cart(1)
    loaded_state.add_to_cart(1)
    loaded_state.toggle_cart()
    return loaded_state


def placed_orders(state):
    return [params for action, params in state.rpc.calls if action == "placeOrder"]


@pytest.mark.parametrize("form, message", [
    ({"name": "A", "phone": "9876543210"}, "Name must be at least 2 characters"),
    ({"name": "  A  ", "phone": "9876543210"}, "Name must be at least 2 characters"),
    ({"name": "Asha", "phone": "123"}, "Phone must be 7-15 digits"),
    ({"name": "Asha", "phone": "1234567890123456"}, "Phone must be 7-15 digits"),
    ({"name": "A", "phone": "1"}, "Name must be at least 2 characters"),
])
def test_validation_reports_first_failure(form, message):
    with pytest.raises(CheckoutValidationError) as exc:
        validate_checkout(form)
    assert exc.value.message == message


def test_phone_ignores_formatting():
    form = validate_checkout({"name": " Asha ", "phone": "+91 (987) 654-3210"})
    assert form.name == "Asha"


async def test_invalid_form_sends_nothing(shopping_state):
    result = await CheckoutFlow(shopping_state).submit({"name": "A", "phone": "9876543210"})

    assert result.success is False
    assert result.error_code == "validation_error"
    assert placed_orders(shopping_state) == []
    assert shopping_state.cart.total_items() == 2
    assert shopping_state.last_notice.level == "error"


async def test_empty_cart_is_rejected(loaded_state):
    result = await CheckoutFlow(loaded_state).submit(VALID_FORM)

    assert result.error_code == "empty_cart"
    assert result.error_message == "Your cart is empty"
    assert placed_orders(loaded_state) == []


async def test_successful_checkout(shopping_state, storage):
    assert shopping_state.cache.read() is not None

    result = await CheckoutFlow(shopping_state).submit(VALID_FORM)

    assert result.success is True
    assert result.order_id
    assert result.total_amount == 100
    assert len(shopping_state.cart) == 0
    assert shopping_state.cart_open is False
    assert shopping_state.cache.read() is None
    assert storage.get_item("barf_malai_cart") == "[]"
    assert shopping_state.last_notice.message == "Order placed successfully!"

    order = shopping_state.rpc.sheet.find_order(result.order_id)
    assert order["Name"] == "Asha"
    assert order["Table"] == "4"
    assert order["Review"] == "Less sugar"
    assert order["Total"] == 100


async def test_remote_failure_keeps_cart(shopping_state, sheet):
    shopping_state.rpc = MockRpcClient(sheet, failure_rate=1.0)

    result = await CheckoutFlow(shopping_state).submit(VALID_FORM)

    assert result.success is False
    assert result.error_code == "remote_error"
    assert result.error_message.startswith("Failed to place order: ")
    assert shopping_state.cart.total_items() == 2
    assert shopping_state.cart_open is True


async def test_timeout_keeps_cart(shopping_state, sheet):
    shopping_state.rpc = MockRpcClient(sheet, timeout=0.05, unresponsive_actions={"placeOrder"})

    result = await CheckoutFlow(shopping_state).submit(VALID_FORM)

    assert result.error_message == "Failed to place order: Request timeout"
    assert shopping_state.cart.total_items() == 2
    assert shopping_state.rpc.in_flight == {}


async def test_result_to_dict(shopping_state):
    result = await CheckoutFlow(shopping_state).submit(VALID_FORM)
    data = result.to_dict()
    assert data["success"] is True
    assert data["order_id"] == result.order_id
    assert data["error_code"] is None


@pytest.mark.parametrize("phone, accepted", [
    ("123456", False),
    ("1234567", True),
    ("123-4567", True),
    ("123456789012345", True),
    ("+1 234 567 890 123 45", True),
    ("1234567890123456", False),
])
def test_phone_digit_bounds(phone, accepted):
    if accepted:
        assert validate_checkout({"name": "Asha", "phone": phone}).phone == phone
    else:
        with pytest.raises(CheckoutValidationError, match="Phone must be 7-15 digits"):
            validate_checkout({"name": "Asha", "phone": phone})


def test_phone_counts_only_ascii_digits():
    # Arabic-Indic digits do not count toward the phone length
    with pytest.raises(CheckoutValidationError, match="Phone must be 7-15 digits"):
        validate_checkout({"name": "Asha", "phone": "٩٨٧٦٥٤٣٢"})
