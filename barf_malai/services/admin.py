"""
Admin Controller

Dashboard operations over the admin web app: login, catalog CRUD, order
status changes and bills.

There is no session token. ``is_authenticated`` only gates the dashboard
locally; every privileged action is still accepted or refused by the
web app itself.

Category deletion is two-phase: the first request is unforced. If the
web app reports the category is still used by products, the caller's
``confirm_force`` is asked and, only on approval, the request is repeated
with ``force=true``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from barf_malai.core.config import Settings, get_settings
from barf_malai.schemas import (
    Category,
    DashboardStats,
    Order,
    OrderStatusEnum,
    Product,
    ProductCreate,
)
from barf_malai.services.rpc import BaseRpcClient, CategoryInUseError, RpcError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

ConfirmForce = Callable[[str], Union[bool, Awaitable[bool]]]


class AdminValidationError(ValueError):
    """Admin form rejected before any request is made."""


class AdminAuthError(PermissionError):
    """Dashboard used before a successful login."""


@dataclass
class DashboardSnapshot:
    """Everything the dashboard shows after a load."""
    stats: DashboardStats = field(default_factory=DashboardStats)
    categories: list[Category] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    orders: list[Order] = field(default_factory=list)


class AdminController:
    """
    Admin dashboard façade.

    Example:
        >>> admin = AdminController(get_rpc_client("admin"))
        >>> if await admin.login("secret"):
        ...     snapshot = await admin.load_dashboard()
    """

    def __init__(
        self,
        rpc: BaseRpcClient,
        settings: Optional[Settings] = None,
        templates: Optional[Jinja2Templates] = None,
    ):
        self.rpc = rpc
        self.settings = settings or get_settings()
        self.templates = templates or Jinja2Templates(directory=str(TEMPLATES_DIR))
        self.is_authenticated = False
        self.snapshot = DashboardSnapshot()
        self.reload_error: Optional[str] = None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def login(self, password: str) -> bool:
        authenticated = await self.rpc.admin_login(password)
        self.is_authenticated = authenticated
        if authenticated:
            logger.info("Admin logged in")
        else:
            logger.warning("Admin login rejected: invalid password")
        return authenticated

    def logout(self) -> None:
        self.is_authenticated = False
        self.snapshot = DashboardSnapshot()
        logger.info("Admin logged out")

    def require_login(self) -> None:
        if not self.is_authenticated:
            raise AdminAuthError("Admin login required")

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    async def load_dashboard(self) -> DashboardSnapshot:
        """Fetch stats, categories, products and orders concurrently."""
        self.require_login()
        stats, categories, products, orders = await asyncio.gather(
            self.rpc.get_dashboard_stats(),
            self.rpc.get_categories(),
            self.rpc.get_all_products(),
            self.rpc.get_orders(),
        )
        self.reload_error = None
        self.snapshot = DashboardSnapshot(
            stats=stats,
            categories=categories,
            products=products,
            orders=orders,
        )
        logger.debug(
            f"Dashboard loaded: {len(categories)} categories, "
            f"{len(products)} products, {len(orders)} orders"
        )
        return self.snapshot

    def sales_series(self, limit: int = 7) -> list[tuple[str, float]]:
        """(date label, order total) for the latest orders, oldest first."""
        recent = self.snapshot.orders[:limit]
        return [(order.timestamp[:10], order.total) for order in reversed(recent)]

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def add_category(self, name: str, image: str = "") -> None:
        name = (name or "").strip()
        if not name:
            raise AdminValidationError("Category name is required")
        await self.rpc.add_category(name, (image or "").strip())
        logger.info(f"Category added: {name}")
        await self._reload()

    async def delete_category(
        self,
        name: str,
        confirm_force: Optional[ConfirmForce] = None,
    ) -> bool:
        """
        Delete a category, forcing only after confirmation.

        Returns:
            bool: True if deleted, False if the category is in use and
            forcing was declined
        """
        try:
            await self.rpc.delete_category(name)
        except CategoryInUseError as e:
            if confirm_force is None:
                logger.info(f"Category {name} in use; force not confirmed")
                return False
            confirmed = confirm_force(e.message)
            if inspect.isawaitable(confirmed):
                confirmed = await confirmed
            if not confirmed:
                logger.info(f"Category {name} in use; force declined")
                return False
            await self.rpc.delete_category(name, force=True)
            logger.warning(f"Category {name} force-deleted")
        else:
            logger.info(f"Category deleted: {name}")

        await self._reload()
        return True

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    async def add_product(
        self,
        name: str,
        price: Union[float, str, None],
        category: str,
        type: str = "veg",
        image: str = "",
        description: str = "",
    ) -> ProductCreate:
        try:
            product = ProductCreate(
                name=name,
                price=price,
                category=category,
                type=type,
                image=image,
                description=description,
            )
        except ValidationError as e:
            raise AdminValidationError("Name, price and category are required") from e

        await self.rpc.add_product(product)
        logger.info(f"Product added: {product.name} ({product.price})")
        await self._reload()
        return product

    async def delete_product(self, name: str) -> None:
        await self.rpc.delete_product(name)
        logger.info(f"Product deleted: {name}")
        await self._reload()

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    async def update_order_status(self, order_id: str, status: Union[str, OrderStatusEnum]) -> None:
        try:
            status = OrderStatusEnum(status)
        except ValueError:
            valid = [s.value for s in OrderStatusEnum]
            raise AdminValidationError(f"Invalid status. Options: {valid}")
        await self.rpc.update_order_status(order_id, status.value)
        logger.info(f"Order {order_id} -> {status.value}")
        await self._reload()

    async def generate_bill(self, order_id: str) -> Order:
        return await self.rpc.generate_bill(order_id)

    def render_bill(self, bill: Order) -> str:
        """Printable bill HTML."""
        template = self.templates.get_template("bill.html")
        return template.render(
            bill=bill,
            restaurant_name=self.settings.restaurant_name,
            restaurant_tagline=self.settings.restaurant_tagline,
            currency=self.settings.currency_symbol,
        )

    async def _reload(self) -> None:
        """Refresh the dashboard after a committed change; a failure here does not undo it."""
        if not self.is_authenticated:
            return
        try:
            await self.load_dashboard()
        except RpcError as e:
            self.reload_error = f"Failed to load dashboard data: {e.message}"
            logger.warning(self.reload_error)
