import json
import logging
import math
import threading
import time
import zlib
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from cachetools import TLRUCache

DEFAULT_STORE_NAME = "default"
DEFAULT_MAX_ENTRIES = 1024


class SetEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, set):
            return list(o)
        return json.JSONEncoder.default(self, o)


def compress(data):
    json_str = json.dumps(data, cls=SetEncoder)
    json_bytes = json_str.encode("utf-8")
    compressed = zlib.compress(json_bytes, level=1)

    return compressed


def decompress(compressed_data):
    try:
        decompressed = zlib.decompress(compressed_data)
        json_str = decompressed.decode("utf-8")
        data = json.loads(json_str)
        return data
    except Exception as e:
        raise ValueError(f"Decompression failed: {str(e)}") from e


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store used for transformation results and fetched content."""

    def get(self, key: str) -> Optional[Any]: ...

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> bool: ...

    def forget(self, key: str) -> bool: ...

    def flush(self) -> None: ...


def _time_to_use(_key: str, value: Tuple[Optional[int], bytes], now: float) -> float:
    ttl = value[0]
    if ttl is None:
        return math.inf
    return now + ttl


class MemoryCacheStore:
    """
    In-process cache store with a TTL per entry.

    Values must be JSON serializable; they are stored compressed so that
    callers always get a fresh copy back.
    """

    def __init__(
        self, maxsize: int = DEFAULT_MAX_ENTRIES, timer: Callable[[], float] = time.monotonic
    ):
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._cache.get(key)
        if item is None:
            return None
        return decompress(item[1])

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if ttl is not None and ttl <= 0:
            return False
        compressed = compress(value)
        with self._lock:
            self._cache[key] = (ttl, compressed)
        return True

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    def flush(self) -> None:
        with self._lock:
            self._cache.clear()

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def keys(self) -> list:
        with self._lock:
            return list(self._cache.keys())


class CacheManager:
    """
    Resolves named cache stores.

    Unknown store names fall back to the default store, the same way a missing
    store configuration should not break a transformation.
    """

    def __init__(self, stores: Optional[Dict[str, CacheStore]] = None):
        self._stores: Dict[str, CacheStore] = dict(stores or {})
        if DEFAULT_STORE_NAME not in self._stores:
            self._stores[DEFAULT_STORE_NAME] = MemoryCacheStore()

    def register(self, name: str, store: CacheStore) -> None:
        self._stores[name] = store

    def store(self, name: Optional[str] = None) -> CacheStore:
        if name is None or name == DEFAULT_STORE_NAME:
            return self._stores[DEFAULT_STORE_NAME]

        store = self._stores.get(name)
        if store is None:
            logging.warning(f"Cache store '{name}' is not registered, using the default store")
            return self._stores[DEFAULT_STORE_NAME]
        return store
