"""
Checkout Flow

Validates the customer form, turns the cart into an order payload and
submits it with the ``placeOrder`` action.

Validation runs before anything is sent: the first failing rule is
reported and no request is made. After a successful order the cart is
emptied, the cart panel closed and the menu cache dropped so the next
menu load is fresh. A failed order leaves cart and form untouched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from barf_malai.schemas import CheckoutForm, OrderPayload
from barf_malai.services.rpc import RpcError
from barf_malai.state import AppState

logger = logging.getLogger(__name__)


class CheckoutValidationError(ValueError):
    """Form or cart rejected before submission."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


@dataclass
class CheckoutResult:
    """
    Outcome of a checkout attempt.

    Attributes:
        success: Whether the order was accepted
        order_id: Id assigned by the sheet (the order timestamp)
        total_amount: Amount that was submitted
        error_message: Message shown to the customer on failure
        error_code: "validation_error", "empty_cart" or "remote_error"
    """
    success: bool
    order_id: Optional[str] = None
    total_amount: float = 0.0
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "order_id": self.order_id,
            "total_amount": self.total_amount,
            "error_message": self.error_message,
            "error_code": self.error_code,
        }


def validate_checkout(data: Union[CheckoutForm, Mapping[str, Any]]) -> CheckoutForm:
    """
    Validate the checkout form.

    Raises:
        CheckoutValidationError: With the first failing rule's message
    """
    if isinstance(data, CheckoutForm):
        data = data.model_dump()
    try:
        return CheckoutForm.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        message = str(first.get("ctx", {}).get("error") or first["msg"])
        field_name = str(first["loc"][0]) if first.get("loc") else None
        raise CheckoutValidationError(message, field=field_name) from e


def build_order_payload(form: CheckoutForm, state: AppState) -> OrderPayload:
    return OrderPayload(
        name=form.name,
        phone=form.phone,
        email=form.email,
        table=form.table,
        review=form.review,
        cart=state.cart.order_lines(),
        total_amount=state.cart.total_amount(),
    )


class CheckoutFlow:
    """Checkout against the storefront state."""

    def __init__(self, state: AppState):
        self.state = state

    async def submit(self, data: Union[CheckoutForm, Mapping[str, Any]]) -> CheckoutResult:
        state = self.state

        if not len(state.cart):
            state.notify("Your cart is empty", "error")
            return CheckoutResult(
                success=False,
                error_message="Your cart is empty",
                error_code="empty_cart",
            )

        try:
            form = validate_checkout(data)
        except CheckoutValidationError as e:
            state.notify(e.message, "error")
            return CheckoutResult(
                success=False,
                error_message=e.message,
                error_code="validation_error",
            )

        payload = build_order_payload(form, state)
        logger.info(
            f"Placing order for {form.name}: {state.cart.total_items()} items, "
            f"total {payload.total_amount}"
        )

        try:
            order_id = await state.rpc.place_order(payload)
        except RpcError as e:
            message = f"Failed to place order: {e.message}"
            state.notify(message, "error")
            return CheckoutResult(
                success=False,
                total_amount=payload.total_amount,
                error_message=message,
                error_code="remote_error",
            )

        state.cart.clear()
        state.close_cart()
        state.cache.invalidate()
        state.notify("Order placed successfully!", "success")
        logger.info(f"Order {order_id} placed")

        return CheckoutResult(
            success=True,
            order_id=order_id,
            total_amount=payload.total_amount,
        )
