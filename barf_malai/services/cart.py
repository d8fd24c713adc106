"""
Cart Store

Ordered line items, at most one per product id, persisted to local
storage after every mutation. Quantities never drop to zero in the
stored cart: such items are removed instead.
"""

import json
import logging
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from barf_malai.schemas import CartItem, OrderLine, Product
from barf_malai.storage import LocalStorage, StorageError

logger = logging.getLogger(__name__)


class CartStore:
    """
    Persistent cart.

    Args:
        storage: Local storage holding the cart
        catalog: Returns the currently loaded products
        on_change: Called after every mutation (view refresh)
    """

    STORAGE_KEY = "barf_malai_cart"

    def __init__(
        self,
        storage: LocalStorage,
        catalog: Callable[[], Iterable[Product]],
        on_change: Optional[Callable[["CartStore"], None]] = None,
    ):
        self.storage = storage
        self.catalog = catalog
        self.on_change = on_change
        self._items: list[CartItem] = []

    @property
    def items(self) -> list[CartItem]:
        return [item.model_copy() for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def _find(self, product_id: int) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == product_id), None)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """Restore the cart from storage; unreadable data gives an empty cart."""
        self._items = []
        try:
            saved = self.storage.get_item(self.STORAGE_KEY)
            raw_items = json.loads(saved) if saved else []
        except (StorageError, json.JSONDecodeError) as e:
            logger.warning(f"Cart load failed: {e}")
            return

        if not isinstance(raw_items, list):
            logger.warning("Cart load failed: stored cart is not a list")
            return

        for raw in raw_items:
            try:
                item = CartItem.model_validate(raw)
            except ValidationError:
                logger.warning(f"Dropping invalid cart entry: {raw!r}")
                continue
            existing = self._find(item.id)
            if existing:
                existing.quantity += item.quantity
            else:
                self._items.append(item)

        logger.debug(f"Cart loaded ({self.total_items()} items)")

    def _save(self) -> None:
        payload = json.dumps([item.model_dump() for item in self._items])
        try:
            self.storage.set_item(self.STORAGE_KEY, payload)
        except StorageError as e:
            logger.warning(f"Cart save failed: {e}")

    def _changed(self) -> None:
        self._save()
        if self.on_change:
            self.on_change(self)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, product_id: int) -> Optional[CartItem]:
        """Add one of ``product_id``; ignored if the product is not loaded."""
        product = next((p for p in self.catalog() if p.id == product_id), None)
        if product is None:
            logger.debug(f"Ignoring add of unknown product {product_id}")
            return None

        item = self._find(product_id)
        if item:
            item.quantity += 1
        else:
            item = CartItem(
                id=product.id,
                name=product.name,
                price=product.price,
                image=product.image,
                quantity=1,
            )
            self._items.append(item)

        self._changed()
        return item.model_copy()

    def remove(self, product_id: int) -> bool:
        """Drop the line item; returns False if there was none."""
        before = len(self._items)
        self._items = [item for item in self._items if item.id != product_id]
        if len(self._items) == before:
            return False
        self._changed()
        return True

    def adjust(self, product_id: int, delta: int) -> Optional[CartItem]:
        """
        Change the quantity by ``delta``.

        Returns the updated item, or None if the item was removed or
        was not in the cart.
        """
        item = self._find(product_id)
        if item is None:
            return None

        quantity = item.quantity + delta
        if quantity <= 0:
            self.remove(product_id)
            return None

        item.quantity = quantity
        self._changed()
        return item.model_copy()

    def clear(self) -> None:
        self._items = []
        self._changed()

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    def total_amount(self) -> float:
        return sum(item.price * item.quantity for item in self._items)

    def order_lines(self) -> list[OrderLine]:
        return [
            OrderLine(name=item.name, price=item.price, quantity=item.quantity)
            for item in self._items
        ]
