import pytest

from barf_malai.core.config import get_settings
from barf_malai.services.rpc import MockRpcClient, MockSheet, reset_rpc_clients
from barf_malai.state import AppState
from barf_malai.storage import LocalStorage


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("ENV_MODE", "development")
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.setenv("MOCK_MIN_LATENCY", "0")
    monkeypatch.setenv("MOCK_MAX_LATENCY", "0")
    monkeypatch.setenv("MOCK_FAILURE_RATE", "0")
    get_settings.cache_clear()
    reset_rpc_clients()
    yield get_settings()
    get_settings.cache_clear()
    reset_rpc_clients()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def sheet():
    return MockSheet()


@pytest.fixture
def rpc(sheet):
    return MockRpcClient(sheet)


@pytest.fixture
def state(rpc, storage, settings):
    return AppState(rpc, storage, settings=settings)


@pytest.fixture
async def loaded_state(state):
    await state.load_menu_data()
    return state
