from barf_malai.schemas import Category, Product
from barf_malai.services.menu_cache import MenuCache

T0 = 1_700_000_000_000
TTL = 900_000

CATEGORIES = [Category(name="Cups", image_url="https://img/cups.jpg")]
PRODUCTS = [Product(id=1, name="Vanilla", price=50, category="Cups")]


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_cache(storage, clock):
    return MenuCache(storage, ttl_ms=TTL, clock=clock)


def test_fresh_snapshot_is_served(storage):
    clock = Clock(T0)
    cache = make_cache(storage, clock)
    cache.write(CATEGORIES, PRODUCTS)

    clock.now = T0 + 899_999
    cached = cache.read()

    assert cached is not None
    assert cached.timestamp == T0
    assert cached.categories[0].image_url == "https://img/cups.jpg"
    assert cached.products[0].name == "Vanilla"


def test_expired_snapshot_is_ignored(storage):
    clock = Clock(T0)
    cache = make_cache(storage, clock)
    cache.write(CATEGORIES, PRODUCTS)

    clock.now = T0 + 900_001
    assert cache.read() is None


def test_exact_ttl_counts_as_expired(storage):
    clock = Clock(T0)
    cache = make_cache(storage, clock)
    cache.write(CATEGORIES, PRODUCTS)

    clock.now = T0 + TTL
    assert cache.read() is None


def test_stored_under_sheet_keys(storage):
    make_cache(storage, Clock(T0)).write(CATEGORIES, PRODUCTS)

    assert storage.get_item("barf_malai_timestamp") == str(T0)
    assert '"imageURL"' in storage.get_item("barf_malai_menu")


def test_missing_cache(storage):
    assert make_cache(storage, Clock(T0)).read() is None


def test_corrupt_snapshot_reads_as_missing(storage):
    storage.set_item("barf_malai_menu", "{broken")
    storage.set_item("barf_malai_timestamp", str(T0))
    assert make_cache(storage, Clock(T0)).read() is None


def test_corrupt_timestamp_reads_as_missing(storage):
    make_cache(storage, Clock(T0)).write(CATEGORIES, PRODUCTS)
    storage.set_item("barf_malai_timestamp", "yesterday")
    assert make_cache(storage, Clock(T0)).read() is None


def test_invalidate(storage):
    cache = make_cache(storage, Clock(T0))
    cache.write(CATEGORIES, PRODUCTS)
    cache.invalidate()

    assert cache.read() is None
    assert storage.get_item("barf_malai_menu") is None


def test_write_failure_is_swallowed(tmp_path):
    from barf_malai.storage import LocalStorage

    storage = LocalStorage(tmp_path / "s.json", quota_bytes=10)
    cache = make_cache(storage, Clock(T0))
    cache.write(CATEGORIES, PRODUCTS)

    assert cache.read() is None


def test_unwritable_directory_is_swallowed(tmp_path):
    from barf_malai.storage import LocalStorage

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    cache = make_cache(LocalStorage(blocker / "data" / "storage.json"), Clock(T0))

    cache.write(CATEGORIES, PRODUCTS)
    cache.invalidate()
    assert cache.read() is None
