"""Storage backends and the session environment"""

import json

import pytest

from storefront.core.environment import Environment, FileStorage, MemoryStorage, StorageError


def test_memory_storage():
    storage = MemoryStorage({"a": "1"})

    storage.set("b", "2")
    storage.remove("a")
    storage.remove("missing")

    assert storage.get("a") is None
    assert storage.get("b") == "2"


def test_file_storage_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "cart.json"
    FileStorage(path).set("cart", '{"items": []}')

    reopened = FileStorage(path)

    assert reopened.get("cart") == '{"items": []}'
    assert json.loads(path.read_text()) == {"cart": '{"items": []}'}


def test_file_storage_missing_file(tmp_path):
    assert FileStorage(tmp_path / "none.json").get("cart") is None


def test_file_storage_remove(tmp_path):
    storage = FileStorage(tmp_path / "s.json")
    storage.set("a", "1")
    storage.set("b", "2")

    storage.remove("a")

    assert storage.get("a") is None
    assert storage.get("b") == "2"


def test_file_storage_corrupt_file(tmp_path):
    path = tmp_path / "s.json"
    path.write_text("{not json")

    with pytest.raises(StorageError):
        FileStorage(path).get("cart")


def test_file_storage_non_object(tmp_path):
    path = tmp_path / "s.json"
    path.write_text("[1, 2]")

    with pytest.raises(StorageError):
        FileStorage(path).get("cart")


def test_environment_pathname():
    assert Environment().pathname == "/"
    assert Environment(location="http://localhost:8000/shop?q=lamp").pathname == "/shop"
