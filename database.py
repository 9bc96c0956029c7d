"""
Persistence Store: named collections of JSON records.

Two backends: flat JSON files in DATA_DIR (default), or MongoDB when
DATABASE_URL and DATABASE_NAME are both set. Every operation is a full
collection read followed by a full collection write, so callers that
mutate a collection must hold ``store.lock(name)`` around the pair.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, List, Optional

from pymongo import MongoClient

from config import DATA_DIR, DATABASE_NAME, DATABASE_URL, SERIALIZE_WRITES

logger = logging.getLogger(__name__)

PRODUCTS = "products"
CATEGORIES = "categories"
ORDERS = "orders"
REVIEWS = "reviews"
USERS = "users"

COLLECTIONS = (USERS, CATEGORIES, PRODUCTS, REVIEWS, ORDERS)


def _max_id(records: Iterable[dict]) -> int:
    return max((int(r.get("id", 0)) for r in records), default=0)


class Store(ABC):
    """Base store: id sequences and per-collection write locks."""

    def __init__(self, serialize_writes: bool = SERIALIZE_WRITES):
        self.serialize_writes = serialize_writes
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    # Backend hooks

    @abstractmethod
    def read(self, name: str) -> List[dict]:
        """Records of ``name``; empty when missing or unreadable."""

    @abstractmethod
    def write(self, name: str, records: List[dict]):
        """Replace the whole collection."""

    @abstractmethod
    def sequence(self, name: str) -> int:
        """Highest id ever issued for the collection."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Whether the collection has ever been written."""

    # Shared behaviour

    def next_id(self, name: str) -> int:
        """Next id for ``name``; never reuses an id freed by a delete."""
        return max(self.sequence(name), _max_id(self.read(name))) + 1

    def _lock_for(self, name: str) -> threading.RLock:
        with self._registry_lock:
            if name not in self._locks:
                self._locks[name] = threading.RLock()
            return self._locks[name]

    @contextmanager
    def lock(self, *names: str):
        """Hold the write locks of ``names`` (acquired in sorted order)."""
        if not self.serialize_writes:
            yield
            return
        with ExitStack() as stack:
            for name in sorted(set(names)):
                stack.enter_context(self._lock_for(name))
            yield


class JsonFileStore(Store):
    """One ``<name>.json`` file per collection.

    Files hold ``{"sequence": n, "records": [...]}``; a bare array (the
    older format) is accepted on read and upgraded on the next write.
    """

    def __init__(self, directory: str = DATA_DIR, serialize_writes: bool = SERIALIZE_WRITES):
        super().__init__(serialize_writes)
        self.directory = directory
        os.makedirs(directory, exist_ok=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}.json")

    def _load(self, name: str):
        path = self._path(name)
        if not os.path.exists(path):
            return 0, []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Collection %s is corrupt, reading as empty", name)
            return 0, []
        if isinstance(data, list):
            return 0, data
        if isinstance(data, dict) and isinstance(data.get("records"), list):
            return int(data.get("sequence", 0)), data["records"]
        logger.warning("Collection %s has an unexpected shape, reading as empty", name)
        return 0, []

    def exists(self, name: str) -> bool:
        return os.path.exists(self._path(name))

    def read(self, name: str) -> List[dict]:
        return self._load(name)[1]

    def sequence(self, name: str) -> int:
        return self._load(name)[0]

    def write(self, name: str, records: List[dict]):
        sequence = max(self.sequence(name), _max_id(records))
        payload = {"sequence": sequence, "records": list(records)}
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path(name))
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class MongoStore(Store):
    """Collections in a MongoDB database; sequences live in ``counters``."""

    COUNTERS = "counters"

    def __init__(self, db, serialize_writes: bool = SERIALIZE_WRITES):
        super().__init__(serialize_writes)
        self.db = db

    def exists(self, name: str) -> bool:
        return name in self.db.list_collection_names()

    def read(self, name: str) -> List[dict]:
        return list(self.db[name].find({}, {"_id": 0}))

    def sequence(self, name: str) -> int:
        doc = self.db[self.COUNTERS].find_one({"_id": name})
        return int(doc["seq"]) if doc else 0

    def write(self, name: str, records: List[dict]):
        collection = self.db[name]
        collection.delete_many({})
        if records:
            # insert_many adds _id to the dicts it is given
            collection.insert_many([dict(r) for r in records])
        self.db[self.COUNTERS].update_one(
            {"_id": name}, {"$max": {"seq": _max_id(records)}}, upsert=True
        )


_store: Optional[Store] = None


def create_store() -> Store:
    if DATABASE_URL and DATABASE_NAME:
        logger.info("Using MongoDB database %s", DATABASE_NAME)
        return MongoStore(MongoClient(DATABASE_URL)[DATABASE_NAME])
    logger.info("Using JSON collections in %s", DATA_DIR)
    return JsonFileStore(DATA_DIR)


def get_store() -> Store:
    """Process-wide store; FastAPI dependency."""
    global _store
    if _store is None:
        _store = create_store()
    return _store
