from barf_malai.schemas import Category, Product
from barf_malai.services.rpc import MockRpcClient
from barf_malai.state import ALL_CATEGORIES, AppState


async def test_load_menu_from_remote(state):
    assert await state.load_menu_data() is True

    assert state.menu_loaded is True
    assert [c.name for c in state.categories] == ["Cups", "Cones", "Shakes"]
    assert len(state.products) == 5
    assert state.cache.read() is not None


async def test_cached_menu_renders_before_remote(rpc, storage, settings):
    AppState(rpc, storage, settings=settings).cache.write(
        [Category(name="Old")],
        [Product(id=9, name="Stale Scoop", price=10, category="Old")],
    )

    renders = []

    def on_render(state, source):
        renders.append((source, [p.name for p in state.products]))

    state = AppState(rpc, storage, settings=settings, on_render=on_render)
    await state.load_menu_data()

    assert [source for source, _ in renders] == ["cache", "remote"]
    assert renders[0][1] == ["Stale Scoop"]
    assert "Vanilla" in renders[1][1]


async def test_failed_fetch_keeps_cached_menu(sheet, storage, settings, rpc):
    await AppState(rpc, storage, settings=settings).load_menu_data()

    state = AppState(MockRpcClient(sheet, failure_rate=1.0), storage, settings=settings)
    assert await state.load_menu_data() is False

    assert state.menu_error
    assert len(state.products) == 5


async def test_failed_fetch_without_cache(sheet, storage, settings):
    state = AppState(MockRpcClient(sheet, failure_rate=1.0), storage, settings=settings)
    assert await state.load_menu_data() is False
    assert state.menu_loaded is False
    assert state.products == []


async def test_refresh_picks_up_sheet_changes(loaded_state, sheet):
    sheet.products.append({
        "id": 6, "name": "Rose Kulfi", "price": 80, "category": "Cups", "type": "veg",
    })

    assert await loaded_state.refresh_menu() is True
    assert loaded_state.products[-1].name == "Rose Kulfi"
    assert loaded_state.last_notice.message == "Menu refreshed"


async def test_filter_by_category(loaded_state):
    loaded_state.filter_by_category("Cones")
    assert [p.name for p in loaded_state.visible_products()] == ["Mango Malai Cone"]

    loaded_state.filter_by_category("Nothing Here")
    assert loaded_state.visible_products() == []

    loaded_state.filter_by_category("")
    assert loaded_state.current_category == ALL_CATEGORIES
    assert len(loaded_state.visible_products()) == 5


async def test_add_to_cart_notifies(loaded_state):
    item = loaded_state.add_to_cart(1)
    assert item.name == "Vanilla"
    assert loaded_state.last_notice.message == "Added Vanilla to cart"

    assert loaded_state.add_to_cart(404) is None
    assert loaded_state.last_notice.message == "Added Vanilla to cart"


def test_toggle_cart(state):
    assert state.toggle_cart() is True
    assert state.toggle_cart() is False
    state.toggle_cart()
    state.close_cart()
    assert state.cart_open is False


def test_notices_are_bounded(state):
    for i in range(AppState.MAX_NOTICES + 5):
        state.notify(f"n{i}")
    assert len(state.notices) == AppState.MAX_NOTICES
    assert state.last_notice.message == f"n{AppState.MAX_NOTICES + 4}"
