"""Tests for the key-value store backends."""

import re
import threading
from unittest import mock

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from config import Settings
from database import MemoryKVStore, MongoKVStore, StoreError, StoreTimeout, create_store


def test_memory_get_missing_returns_none():
    assert MemoryKVStore().get("nope") is None


def test_memory_set_overwrites():
    store = MemoryKVStore()
    store.set("k", {"a": 1})
    store.set("k", {"a": 2})
    assert store.get("k") == {"a": 2}
    assert len(store) == 1


def test_memory_delete_is_idempotent():
    store = MemoryKVStore({"k": 1})
    store.delete("k")
    store.delete("k")
    assert store.get("k") is None


def test_memory_scan_prefix_sorted_by_key():
    store = MemoryKVStore({"p:b": 2, "p:a": 1, "q:a": 3, "p": 0})
    assert store.scan_prefix("p:") == [("p:a", 1), ("p:b", 2)]
    assert store.values_with_prefix("q:") == [3]


def test_memory_values_are_copied():
    store = MemoryKVStore()
    doc = {"items": [1]}
    store.set("k", doc)
    doc["items"].append(2)
    fetched = store.get("k")
    fetched["items"].append(3)
    assert store.get("k") == {"items": [1]}


def test_memory_concurrent_writes_to_same_key():
    store = MemoryKVStore()

    def write():
        for _ in range(200):
            store.set("wishlist:u:1", "1")

    threads = [threading.Thread(target=write) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.scan_prefix("wishlist:u:") == [("wishlist:u:1", "1")]


def test_create_store_without_url_uses_memory():
    assert isinstance(create_store(Settings()), MemoryKVStore)


@pytest.fixture
def collection():
    return mock.MagicMock()


def test_mongo_get_unwraps_value(collection):
    collection.find_one.return_value = {"_id": "user:1", "value": {"id": "1"}}
    store = MongoKVStore(collection)
    assert store.get("user:1") == {"id": "1"}
    collection.find_one.assert_called_once_with({"_id": "user:1"})


def test_mongo_get_missing(collection):
    collection.find_one.return_value = None
    assert MongoKVStore(collection).get("user:1") is None


def test_mongo_set_upserts(collection):
    MongoKVStore(collection).set("k", {"a": 1})
    collection.replace_one.assert_called_once_with({"_id": "k"}, {"_id": "k", "value": {"a": 1}}, upsert=True)


def test_mongo_scan_uses_escaped_anchored_regex(collection):
    cursor = collection.find.return_value
    cursor.sort.return_value = [{"_id": "review:product:1.5:a", "value": {"r": 1}}]
    result = MongoKVStore(collection).scan_prefix("review:product:1.5:")
    assert result == [("review:product:1.5:a", {"r": 1})]
    query = collection.find.call_args[0][0]
    assert query == {"_id": {"$regex": "^" + re.escape("review:product:1.5:")}}


def test_mongo_timeout_is_classified(collection):
    collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
    with pytest.raises(StoreTimeout):
        MongoKVStore(collection).get("k")


def test_mongo_failure_is_store_error(collection):
    collection.delete_one.side_effect = OperationFailure("boom")
    with pytest.raises(StoreError) as excinfo:
        MongoKVStore(collection).delete("k")
    assert not isinstance(excinfo.value, StoreTimeout)
