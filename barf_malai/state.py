"""
Storefront Application State

One ``AppState`` is built at startup and handed to the HTTP handlers and
the view functions. It owns the loaded catalog, the selected category,
the cart panel flag, the cart store, the menu cache and the notices
shown to the customer.

Menu loading renders the cached snapshot first (when fresh), then the
result of the remote fetch. A failed fetch keeps whatever is loaded.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from barf_malai.core.config import Settings, get_settings
from barf_malai.schemas import CachedMenu, CartItem, Category, Product
from barf_malai.services.cart import CartStore
from barf_malai.services.menu_cache import MenuCache
from barf_malai.services.rpc import BaseRpcClient, RpcError
from barf_malai.storage import LocalStorage

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"

RenderHook = Callable[["AppState", str], None]


@dataclass
class Notice:
    """Transient message for the customer (toast)."""
    message: str
    level: str = "success"
    created_at: datetime = field(default_factory=datetime.now)


class AppState:
    """
    Storefront state container.

    Args:
        rpc: Client for the storefront web app
        storage: Local storage for the cart and menu cache
        settings: Application settings (defaults to ``get_settings()``)
        on_render: Called with (state, source) whenever the menu changes;
            source is "cache" or "remote"
    """

    MAX_NOTICES = 20

    def __init__(
        self,
        rpc: BaseRpcClient,
        storage: LocalStorage,
        settings: Optional[Settings] = None,
        on_render: Optional[RenderHook] = None,
        cache: Optional[MenuCache] = None,
    ):
        self.settings = settings or get_settings()
        self.rpc = rpc
        self.storage = storage
        self.on_render = on_render

        self.categories: list[Category] = []
        self.products: list[Product] = []
        self.current_category: str = ALL_CATEGORIES
        self.cart_open: bool = False
        self.menu_loaded: bool = False
        self.menu_error: Optional[str] = None
        self.notices: deque[Notice] = deque(maxlen=self.MAX_NOTICES)

        self.cache = cache or MenuCache(storage, ttl_ms=self.settings.menu_cache_ttl_ms)
        self.cart = CartStore(storage, catalog=lambda: self.products)

    # -------------------------------------------------------------------------
    # Notices
    # -------------------------------------------------------------------------

    def notify(self, message: str, level: str = "success") -> Notice:
        notice = Notice(message=message, level=level)
        self.notices.append(notice)
        if level == "error":
            logger.warning(f"Notice: {message}")
        else:
            logger.info(f"Notice: {message}")
        return notice

    @property
    def last_notice(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None

    # -------------------------------------------------------------------------
    # Menu
    # -------------------------------------------------------------------------

    def _render(self, source: str) -> None:
        if self.on_render:
            self.on_render(self, source)

    def apply_menu(self, menu: CachedMenu, source: str) -> None:
        self.categories = list(menu.categories)
        self.products = list(menu.products)
        self.menu_loaded = True
        self._render(source)

    def render_from_cache(self) -> bool:
        """Show the cached menu if one is fresh. Returns True if it was used."""
        cached = self.cache.read()
        if cached is None:
            return False
        logger.info(
            f"Menu served from cache ({len(cached.categories)} categories, "
            f"{len(cached.products)} products)"
        )
        self.apply_menu(cached, "cache")
        return True

    async def load_menu_data(self, use_cache: bool = True) -> bool:
        """
        Load the menu: cached snapshot first, then a fresh fetch.

        Returns:
            bool: True if the fresh fetch succeeded
        """
        if use_cache:
            self.render_from_cache()

        try:
            categories, products = await asyncio.gather(
                self.rpc.get_categories(),
                self.rpc.get_all_products(),
            )
        except RpcError as e:
            logger.error(f"Failed to load menu: {e}")
            self.menu_error = e.message
            return False

        self.menu_error = None
        self.cache.write(categories, products)
        self.apply_menu(
            CachedMenu(categories=categories, products=products, timestamp=self.cache.clock()),
            "remote",
        )
        logger.info(f"Menu loaded ({len(categories)} categories, {len(products)} products)")
        return True

    async def refresh_menu(self) -> bool:
        """Forget the cached menu and fetch a fresh one."""
        self.cache.invalidate()
        loaded = await self.load_menu_data(use_cache=False)
        if loaded:
            self.notify("Menu refreshed", "success")
        else:
            self.notify(f"Failed to load menu: {self.menu_error}", "error")
        return loaded

    def filter_by_category(self, category_name: str) -> None:
        self.current_category = category_name or ALL_CATEGORIES

    def visible_products(self) -> list[Product]:
        if self.current_category == ALL_CATEGORIES:
            return list(self.products)
        return [p for p in self.products if p.category == self.current_category]

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------

    def add_to_cart(self, product_id: int) -> Optional[CartItem]:
        item = self.cart.add(product_id)
        if item:
            self.notify(f"Added {item.name} to cart", "success")
        return item

    def toggle_cart(self) -> bool:
        self.cart_open = not self.cart_open
        return self.cart_open

    def close_cart(self) -> None:
        self.cart_open = False
