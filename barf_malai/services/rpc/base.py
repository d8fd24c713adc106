"""
Sheet RPC Client Abstract Base Class

Defines the request/response contract with the spreadsheet web app.
Both MockRpcClient and HttpRpcClient share the plumbing implemented here
and only supply ``_dispatch``, which delivers one request and returns the
decoded response envelope.

Every call:
    - gets a fresh callback name, sent as the ``callback`` parameter
    - is registered in ``in_flight`` until it settles
    - is bounded by the client timeout
    - is unwrapped from ``{status, error?, ...payload}``

Typed helpers validate each action's payload against its schema, so a
malformed response fails here with ``RpcSchemaError`` rather than later
as a missing field.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from barf_malai.schemas import (
    BillResponse,
    CategoriesResponse,
    DashboardStats,
    LoginResponse,
    Order,
    OrderPayload,
    OrdersResponse,
    PlaceOrderResponse,
    ProductCreate,
    ProductsResponse,
    StatsResponse,
    Category,
    Product,
)

logger = logging.getLogger(__name__)

ParamValue = Union[str, int, float, bool, None]
ModelT = TypeVar("ModelT", bound=BaseModel)


# =============================================================================
# ERRORS
# =============================================================================

class RpcError(Exception):
    """Base class for every failed remote call."""

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.action = action


class RpcNetworkError(RpcError):
    """The request could not be delivered or the response was unreadable."""


class RpcTimeoutError(RpcError):
    """No response arrived within the timeout window."""


class RemoteServiceError(RpcError):
    """The service answered with ``status: "error"``."""


class CategoryInUseError(RemoteServiceError):
    """deleteCategory refused because products still reference the category."""


class RpcSchemaError(RpcError):
    """The service answered successfully with an unexpected payload shape."""


# =============================================================================
# CALL BOOKKEEPING
# =============================================================================

@dataclass
class PendingCall:
    """A request that has been sent and not yet settled."""
    callback_name: str
    action: str
    url: str
    started_at: float = field(default_factory=time.monotonic)


class BaseRpcClient(ABC):
    """
    Abstract base class for sheet RPC clients.

    Attributes:
        base_url: Web app endpoint
        timeout: Seconds before a call fails with RpcTimeoutError
        in_flight: Calls currently awaiting a response, by callback name

    Example:
        >>> client = get_rpc_client("storefront")
        >>> categories = await client.get_categories()
    """

    CALLBACK_PREFIX = "jsonp_callback_"

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url
        self.timeout = timeout
        self.in_flight: dict[str, PendingCall] = {}

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the transport.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def _dispatch(
        self,
        action: str,
        params: dict[str, str],
        callback_name: str,
    ) -> Mapping[str, Any]:
        """
        Deliver one request and return the decoded response envelope.

        Raises:
            RpcNetworkError: If the request could not be delivered
        """
        pass

    async def health_check(self) -> bool:
        """
        Verify the service answers a lightweight catalog call.

        Returns:
            bool: True if the service responded successfully
        """
        try:
            await self.call("getCategories")
            return True
        except RpcError as e:
            logger.error(f"{self.provider_name}: Health check failed - {e}")
            return False

    async def aclose(self) -> None:
        """Release transport resources."""
        return None

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def _new_callback_name(self) -> str:
        return f"{self.CALLBACK_PREFIX}{uuid.uuid4().hex}"

    @staticmethod
    def _clean_params(params: Optional[Mapping[str, ParamValue]]) -> dict[str, str]:
        """Drop unset values and stringify the rest."""
        cleaned: dict[str, str] = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, bool):
                cleaned[key] = "true" if value else "false"
            else:
                cleaned[key] = str(value)
        return cleaned

    def build_url(
        self,
        action: str,
        params: Mapping[str, str],
        callback_name: str,
    ) -> str:
        """Full request URL: action, parameters, then the callback name."""
        query = {"action": action, **params, "callback": callback_name}
        return str(httpx.URL(self.base_url).copy_merge_params(query))

    async def call(
        self,
        action: str,
        params: Optional[Mapping[str, ParamValue]] = None,
    ) -> dict[str, Any]:
        """
        Issue a named action and return the success envelope.

        Args:
            action: Remote action name (e.g. "getCategories")
            params: Action parameters; None values are omitted

        Returns:
            dict: Response envelope with ``status == "success"``

        Raises:
            RpcNetworkError: Transport failure
            RpcTimeoutError: No response within ``timeout`` seconds
            RemoteServiceError: Service reported ``status: "error"``
        """
        cleaned = self._clean_params(params)
        callback_name = self._new_callback_name()
        url = self.build_url(action, cleaned, callback_name)
        self.in_flight[callback_name] = PendingCall(callback_name, action, url)

        logger.debug(f"{self.provider_name}: -> {action} ({callback_name})")

        try:
            response = await asyncio.wait_for(
                self._dispatch(action, cleaned, callback_name),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"{self.provider_name}: {action} timed out after {self.timeout}s")
            raise RpcTimeoutError("Request timeout", action=action)
        except RpcError as e:
            e.action = e.action or action
            logger.warning(f"{self.provider_name}: {action} failed - {e}")
            raise
        finally:
            self.in_flight.pop(callback_name, None)

        return self._unwrap(action, response)

    def _unwrap(self, action: str, response: Any) -> dict[str, Any]:
        if not isinstance(response, Mapping):
            raise RpcSchemaError(
                f"Response to {action} is not an object", action=action
            )

        if response.get("status") == "success":
            logger.debug(f"{self.provider_name}: <- {action} success")
            return dict(response)

        message = response.get("error") or "Unknown error occurred"
        if action == "deleteCategory" and "force=true" in str(message):
            raise CategoryInUseError(str(message), action=action)
        raise RemoteServiceError(str(message), action=action)

    async def request(
        self,
        action: str,
        schema: Type[ModelT],
        params: Optional[Mapping[str, ParamValue]] = None,
    ) -> ModelT:
        """Call ``action`` and validate the envelope against ``schema``."""
        response = await self.call(action, params)
        try:
            return schema.model_validate(response)
        except ValidationError as e:
            raise RpcSchemaError(
                f"Unexpected {action} payload: {e.error_count()} invalid field(s)",
                action=action,
            ) from e

    # -------------------------------------------------------------------------
    # Typed actions
    # -------------------------------------------------------------------------

    async def admin_login(self, password: str) -> bool:
        result = await self.request("adminLogin", LoginResponse, {"pw": password})
        return result.authenticated

    async def get_categories(self) -> list[Category]:
        return (await self.request("getCategories", CategoriesResponse)).categories

    async def get_all_products(self) -> list[Product]:
        return (await self.request("getAllProducts", ProductsResponse)).products

    async def get_dashboard_stats(self) -> DashboardStats:
        return (await self.request("getDashboardStats", StatsResponse)).stats

    async def get_orders(self) -> list[Order]:
        return (await self.request("getOrders", OrdersResponse)).orders

    async def add_category(self, name: str, image: str = "") -> None:
        await self.call("addCategory", {"name": name, "image": image})

    async def delete_category(self, name: str, force: bool = False) -> None:
        await self.call("deleteCategory", {"name": name, "force": True if force else None})

    async def add_product(self, product: ProductCreate) -> None:
        await self.call("addProduct", {
            "name": product.name,
            "price": product.price,
            "category": product.category,
            "type": product.type.value,
            "image": product.image,
            "description": product.description,
        })

    async def delete_product(self, name: str) -> None:
        await self.call("deleteProduct", {"name": name})

    async def place_order(self, payload: OrderPayload) -> str:
        order_data = json.dumps(payload.model_dump(by_alias=True))
        result = await self.request("placeOrder", PlaceOrderResponse, {"orderData": order_data})
        return result.order_id

    async def update_order_status(self, order_id: str, status: str) -> None:
        await self.call("updateOrderStatus", {"orderId": order_id, "status": status})

    async def generate_bill(self, order_id: str) -> Order:
        return (await self.request("generateBill", BillResponse, {"orderId": order_id})).bill
