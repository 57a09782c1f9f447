"""
Key-value record store.

The storefront keeps every entity as a single JSON-like document under a
string key. Secondary lookups (a user's orders, a user's wishlist, a
product's reviews) are done with prefix scans over the key space, so the only
operations a backend has to provide are point get/set/delete and scan_prefix.

Two backends:
- MemoryKVStore: process-local dict, used for tests and when no
  DATABASE_URL is configured
- MongoKVStore: one MongoDB collection of {_id: key, value: document}
"""

import copy
import logging
import re
import threading
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, MongoClient
from pymongo.errors import (
    ExecutionTimeout,
    NetworkTimeout,
    PyMongoError,
    ServerSelectionTimeoutError,
    WTimeoutError,
)

from config import Settings

logger = logging.getLogger(__name__)

MONGO_TIMEOUT_ERRORS = (ExecutionTimeout, NetworkTimeout, ServerSelectionTimeoutError, WTimeoutError)


class StoreError(Exception):
    """The backing store failed an operation."""


class StoreTimeout(StoreError):
    """The backing store did not answer within its bound."""


class KVStore:
    """Interface every backend implements. Writes are last-write-wins upserts."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        raise NotImplementedError

    def values_with_prefix(self, prefix: str) -> List[Any]:
        return [value for _, value in self.scan_prefix(prefix)]


class MemoryKVStore(KVStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        with self._lock:
            matches = [(k, v) for k, v in self._data.items() if k.startswith(prefix)]
        matches.sort(key=lambda item: item[0])
        return [(k, copy.deepcopy(v)) for k, v in matches]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class MongoKVStore(KVStore):
    def __init__(self, collection):
        self.collection = collection

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoKVStore":
        timeout_ms = int(settings.store_timeout * 1000)
        client = MongoClient(
            settings.database_url,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            socketTimeoutMS=timeout_ms,
        )
        db = client[settings.database_name]
        return cls(db[settings.kv_collection])

    def _run(self, operation: str, key: str, func):
        try:
            return func()
        except MONGO_TIMEOUT_ERRORS as e:
            logger.error("KV %s timed out for %s: %s", operation, key, e)
            raise StoreTimeout(f"{operation} timed out") from e
        except PyMongoError as e:
            logger.error("KV %s failed for %s: %s", operation, key, e)
            raise StoreError(f"{operation} failed") from e

    def get(self, key: str) -> Optional[Any]:
        doc = self._run("get", key, lambda: self.collection.find_one({"_id": key}))
        if not doc:
            return None
        return doc.get("value")

    def set(self, key: str, value: Any) -> None:
        self._run(
            "set",
            key,
            lambda: self.collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True),
        )

    def delete(self, key: str) -> None:
        self._run("delete", key, lambda: self.collection.delete_one({"_id": key}))

    def scan_prefix(self, prefix: str) -> List[Tuple[str, Any]]:
        query = {"_id": {"$regex": "^" + re.escape(prefix)}}
        docs = self._run(
            "scan",
            prefix,
            lambda: list(self.collection.find(query).sort("_id", ASCENDING)),
        )
        return [(doc["_id"], doc.get("value")) for doc in docs]


def create_store(settings: Settings) -> KVStore:
    if settings.database_url:
        logger.info("Using MongoDB key-value store (%s.%s)", settings.database_name, settings.kv_collection)
        return MongoKVStore.from_settings(settings)
    logger.warning("DATABASE_URL not set, falling back to in-memory key-value store")
    return MemoryKVStore()
