"""
Menu Cache

Keeps the last successful catalog fetch in local storage so the menu can
be shown immediately on startup while a fresh copy loads.

A snapshot is only served while it is younger than the TTL. Storage or
decoding problems are logged and treated as "no cache"; they never stop
the menu from rendering.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from barf_malai.schemas import CachedMenu, Category, Product
from barf_malai.storage import LocalStorage, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 15 * 60 * 1000


def epoch_ms() -> int:
    return int(time.time() * 1000)


class MenuCache:
    """Menu snapshot with a time-to-live."""

    MENU_KEY = "barf_malai_menu"
    TIMESTAMP_KEY = "barf_malai_timestamp"

    def __init__(
        self,
        storage: LocalStorage,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = epoch_ms,
    ):
        self.storage = storage
        self.ttl_ms = ttl_ms
        self.clock = clock

    def read(self) -> Optional[CachedMenu]:
        """Return the snapshot if it is still fresh, else None."""
        try:
            cached = self.storage.get_item(self.MENU_KEY)
            timestamp = self.storage.get_item(self.TIMESTAMP_KEY)
            if not cached or not timestamp:
                return None

            age = self.clock() - int(timestamp)
            if age >= self.ttl_ms:
                logger.debug(f"Menu cache expired ({age}ms old)")
                return None

            return CachedMenu.model_validate_json(cached)
        except (StorageError, ValidationError, ValueError) as e:
            logger.warning(f"Cache read failed: {e}")
            return None

    def write(self, categories: Iterable[Category], products: Iterable[Product]) -> None:
        """Replace the snapshot with the given catalog, stamped now."""
        now = self.clock()
        snapshot = CachedMenu(
            categories=list(categories),
            products=list(products),
            timestamp=now,
        )
        try:
            self.storage.set_item(self.MENU_KEY, snapshot.model_dump_json(by_alias=True))
            self.storage.set_item(self.TIMESTAMP_KEY, str(now))
        except StorageError as e:
            logger.warning(f"Cache write failed: {e}")

    def invalidate(self) -> None:
        """Drop the snapshot so the next load goes to the service."""
        try:
            self.storage.remove_item(self.MENU_KEY)
            self.storage.remove_item(self.TIMESTAMP_KEY)
        except StorageError as e:
            logger.warning(f"Cache invalidate failed: {e}")
