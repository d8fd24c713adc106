"""
Mock Sheet RPC Client

Simulates the spreadsheet web app in memory, without network calls.
Used in development mode (ENV_MODE=development) to:
    - Run the storefront and admin flows locally
    - Test error handling (remote errors, dropped responses)
    - Demo the app without a deployed sheet

Behavior:
    - Implements every action of the web app against an in-memory sheet
    - Simulates latency and an optional random network failure rate
    - Actions listed in ``unresponsive_actions`` never answer, so the
      caller's timeout fires
    - Records every call in ``calls``

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from barf_malai.schemas import OrderStatusEnum
from barf_malai.services.rpc.base import BaseRpcClient, RpcNetworkError

logger = logging.getLogger(__name__)


def _seed_categories() -> list[dict[str, Any]]:
    return [
        {"name": "Cups", "imageURL": "https://images.example.com/cups.jpg"},
        {"name": "Cones", "imageURL": "https://images.example.com/cones.jpg"},
        {"name": "Shakes", "imageURL": "https://images.example.com/shakes.jpg"},
    ]


def _seed_products() -> list[dict[str, Any]]:
    return [
        {"id": 1, "name": "Vanilla", "price": 50, "category": "Cups", "type": "veg",
         "image": "https://images.example.com/vanilla.jpg",
         "description": "Classic vanilla bean scoop"},
        {"id": 2, "name": "Chocolate Fudge", "price": 70, "category": "Cups", "type": "veg",
         "image": "https://images.example.com/fudge.jpg",
         "description": "Dark chocolate with fudge swirl"},
        {"id": 3, "name": "Mango Malai Cone", "price": 60, "category": "Cones", "type": "veg",
         "image": "https://images.example.com/mango.jpg",
         "description": "Alphonso mango with malai"},
        {"id": 4, "name": "Kesar Pista Shake", "price": 120, "category": "Shakes", "type": "veg",
         "image": "https://images.example.com/kesar.jpg",
         "description": "Saffron and pistachio thick shake"},
        {"id": 5, "name": "Egg Custard Gelato", "price": 90, "category": "Cups", "type": "non-veg",
         "image": "https://images.example.com/custard.jpg",
         "description": "Rich custard gelato"},
    ]


@dataclass
class MockSheet:
    """In-memory stand-in for the order/catalog spreadsheet."""
    admin_password: str = "admin123"
    categories: list[dict[str, Any]] = field(default_factory=_seed_categories)
    products: list[dict[str, Any]] = field(default_factory=_seed_products)
    orders: list[dict[str, Any]] = field(default_factory=list)
    clock: Callable[[], datetime] = datetime.now

    def next_order_id(self) -> str:
        stamp = self.clock().isoformat(timespec="microseconds")
        taken = {o["Timestamp"] for o in self.orders}
        while stamp in taken:
            stamp = stamp + "0"
        return stamp

    def find_category(self, name: str) -> Optional[dict[str, Any]]:
        return next((c for c in self.categories if c["name"] == name), None)

    def find_product(self, name: str) -> Optional[dict[str, Any]]:
        return next((p for p in self.products if p["name"] == name), None)

    def find_order(self, order_id: str) -> Optional[dict[str, Any]]:
        return next((o for o in self.orders if o["Timestamp"] == order_id), None)


class MockRpcClient(BaseRpcClient):
    """
    Mock implementation of the sheet RPC client.

    Attributes:
        sheet: Backing in-memory sheet (shared between clients)
        failure_rate: Probability of a simulated network failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds
        unresponsive_actions: Actions whose response never arrives

    Example:
        >>> client = MockRpcClient(MockSheet(), min_latency=0, max_latency=0)
        >>> products = await client.get_all_products()
        >>> print(products[0].name)
        'Vanilla'
    """

    def __init__(
        self,
        sheet: Optional[MockSheet] = None,
        timeout: float = 30.0,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        unresponsive_actions: Iterable[str] = (),
    ):
        super().__init__("mock://sheet/exec", timeout)
        self.sheet = sheet if sheet is not None else MockSheet()
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(min_latency, max_latency)
        self.unresponsive_actions = set(unresponsive_actions)
        self.calls: list[tuple[str, dict[str, str]]] = []

        logger.info(
            f"MockRpcClient initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{self.max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def _dispatch(
        self,
        action: str,
        params: dict[str, str],
        callback_name: str,
    ) -> Mapping[str, Any]:
        self.calls.append((action, dict(params)))
        await self._simulate_latency()

        if action in self.unresponsive_actions:
            # The callback is never invoked; only the caller's timeout ends this
            await asyncio.Event().wait()

        if self._should_fail():
            logger.debug(f"Mock: {action} network failure (simulated)")
            raise RpcNetworkError(
                "Network error: Failed to load script. Check your web app URL.",
                action=action,
            )

        handler = getattr(self, f"_handle_{action}", None)
        if handler is None:
            return self._error(f"Unknown action: {action}")
        return handler(params)

    # -------------------------------------------------------------------------
    # Envelopes
    # -------------------------------------------------------------------------

    @staticmethod
    def _success(**payload: Any) -> dict[str, Any]:
        return {"status": "success", **payload}

    @staticmethod
    def _error(message: str) -> dict[str, Any]:
        return {"status": "error", "error": message}

    # -------------------------------------------------------------------------
    # Action handlers
    # -------------------------------------------------------------------------

    def _handle_adminLogin(self, params: dict[str, str]) -> dict[str, Any]:
        return self._success(authenticated=params.get("pw") == self.sheet.admin_password)

    def _handle_getCategories(self, params: dict[str, str]) -> dict[str, Any]:
        return self._success(categories=[dict(c) for c in self.sheet.categories])

    def _handle_getAllProducts(self, params: dict[str, str]) -> dict[str, Any]:
        return self._success(products=[dict(p) for p in self.sheet.products])

    def _handle_getOrders(self, params: dict[str, str]) -> dict[str, Any]:
        # Newest first, as the sheet returns them
        orders = sorted(self.sheet.orders, key=lambda o: o["Timestamp"], reverse=True)
        return self._success(orders=[dict(o) for o in orders])

    def _handle_getDashboardStats(self, params: dict[str, str]) -> dict[str, Any]:
        today = self.sheet.clock().date().isoformat()
        orders = self.sheet.orders
        return self._success(stats={
            "totalOrders": len(orders),
            "totalSales": sum(o["Total"] for o in orders),
            "todayOrders": sum(1 for o in orders if o["Timestamp"].startswith(today)),
            "pendingOrders": sum(
                1 for o in orders if o["Status"] == OrderStatusEnum.PENDING.value
            ),
        })

    def _handle_addCategory(self, params: dict[str, str]) -> dict[str, Any]:
        name = params.get("name", "").strip()
        if not name:
            return self._error("Category name is required")
        if self.sheet.find_category(name):
            return self._error(f'Category "{name}" already exists')
        self.sheet.categories.append({"name": name, "imageURL": params.get("image", "")})
        return self._success()

    def _handle_deleteCategory(self, params: dict[str, str]) -> dict[str, Any]:
        name = params.get("name", "")
        category = self.sheet.find_category(name)
        if category is None:
            return self._error(f'Category "{name}" not found')
        in_use = sum(1 for p in self.sheet.products if p["category"] == name)
        if in_use and params.get("force") != "true":
            return self._error(
                f'Category "{name}" is used by {in_use} product(s). '
                f"Use force=true to delete anyway."
            )
        self.sheet.categories.remove(category)
        return self._success()

    def _handle_addProduct(self, params: dict[str, str]) -> dict[str, Any]:
        name = params.get("name", "").strip()
        category = params.get("category", "").strip()
        try:
            price = float(params.get("price", ""))
        except ValueError:
            price = 0.0
        if not name or price <= 0 or not category:
            return self._error("Name, price and category are required")
        next_id = max((p["id"] for p in self.sheet.products), default=0) + 1
        self.sheet.products.append({
            "id": next_id,
            "name": name,
            "price": price,
            "category": category,
            "type": params.get("type", "veg"),
            "image": params.get("image", ""),
            "description": params.get("description", ""),
        })
        return self._success()

    def _handle_deleteProduct(self, params: dict[str, str]) -> dict[str, Any]:
        product = self.sheet.find_product(params.get("name", ""))
        if product is None:
            return self._error("Product not found")
        self.sheet.products.remove(product)
        return self._success()

    def _handle_placeOrder(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            data = json.loads(params.get("orderData", ""))
            items = [
                {"name": i["name"], "price": i["price"], "quantity": i["quantity"]}
                for i in data["cart"]
            ]
            total = data["totalAmount"]
            name = data["name"]
        except (json.JSONDecodeError, KeyError, TypeError):
            return self._error("Invalid order data")
        if not items:
            return self._error("Order has no items")

        order_id = self.sheet.next_order_id()
        self.sheet.orders.append({
            "Timestamp": order_id,
            "Name": name,
            "Phone": data.get("phone", ""),
            "Table": data.get("table", ""),
            "Items": items,
            "Total": total,
            "Status": OrderStatusEnum.PENDING.value,
            "Review": data.get("review", ""),
        })
        logger.info(f"Mock: Order {order_id} placed - {total}")
        return self._success(orderId=order_id)

    def _handle_updateOrderStatus(self, params: dict[str, str]) -> dict[str, Any]:
        status = params.get("status", "")
        if status not in {s.value for s in OrderStatusEnum}:
            return self._error(f"Invalid status: {status}")
        order = self.sheet.find_order(params.get("orderId", ""))
        if order is None:
            return self._error("Order not found")
        order["Status"] = status
        return self._success()

    def _handle_generateBill(self, params: dict[str, str]) -> dict[str, Any]:
        order = self.sheet.find_order(params.get("orderId", ""))
        if order is None:
            return self._error("Order not found")
        return self._success(bill=dict(order))
