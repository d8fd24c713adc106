import pytest

from barf_malai.storage import LocalStorage, StorageError, StorageQuotaError


def test_missing_key_returns_none(storage):
    assert storage.get_item("nope") is None


def test_set_get_remove(storage):
    storage.set_item("barf_malai_cart", "[]")
    assert storage.get_item("barf_malai_cart") == "[]"

    storage.remove_item("barf_malai_cart")
    assert storage.get_item("barf_malai_cart") is None


def test_values_survive_a_new_instance(tmp_path):
    LocalStorage(tmp_path / "s.json").set_item("k", "v")
    assert LocalStorage(tmp_path / "s.json").get_item("k") == "v"


def test_creates_missing_directory(tmp_path):
    storage = LocalStorage(tmp_path / "nested" / "dir" / "s.json")
    storage.set_item("k", "v")
    assert storage.path.exists()


def test_quota_rejects_write_and_keeps_previous_value(tmp_path):
    storage = LocalStorage(tmp_path / "s.json", quota_bytes=64)
    storage.set_item("k", "small")

    with pytest.raises(StorageQuotaError):
        storage.set_item("k", "x" * 100)

    assert storage.get_item("k") == "small"


def test_corrupt_file_raises_storage_error(tmp_path):
    path = tmp_path / "s.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        LocalStorage(path).get_item("k")



def blocked_storage(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    return LocalStorage(blocker / "data" / "storage.json")


def test_unwritable_directory_raises_storage_error(tmp_path):
    storage = blocked_storage(tmp_path)

    with pytest.raises(StorageError):
        storage.set_item("k", "v")
    assert storage.get_item("k") is None
