# stashable/backend/memory.py

import math
import threading
import time
from typing import Any, Callable, NamedTuple, Union

from cachetools import TLRUCache

from .base import MISS, BaseCacheBackend, Lookup, Number
from stashable.item import is_numeric
from stashable.key_codec import KeyCodec


class _Entry(NamedTuple):
    data: Any
    expires: float


def _entry_expiry(_key: str, entry: _Entry, _now: float) -> float:
    return entry.expires


class MemoryCacheBackend(BaseCacheBackend):
    """
    In-process cache backend implementation.
    Uses cachetools' TLRUCache, which drops entries once their deadline
    passes; every entry carries its own deadline.

    Entries live as long as the backend object, so this backend is only
    shared between threads of one process. Each operation runs under a
    lock, which makes increment atomic here.
    """

    def __init__(
        self,
        prefix: str = "",
        maxsize: int = 4096,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key_codec = KeyCodec(prefix)
        self.timer = timer
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=timer)
        self._lock = threading.RLock()

    def _deadline(self, minutes: int) -> float:
        if minutes == 0:
            return math.inf
        return self.timer() + minutes * 60

    def put(self, key: str, data: Any, minutes: int = 0) -> bool:
        native = self.key_codec.native_key(key)
        with self._lock:
            # TLRUCache silently skips already-expired entries, so drop any
            # older value explicitly.
            self._cache.pop(native, None)
            self._cache[native] = _Entry(data, self._deadline(minutes))
        return True

    def lookup(self, key: str) -> Lookup:
        with self._lock:
            entry = self._cache.get(self.key_codec.native_key(key))
        if entry is None:
            return MISS
        return Lookup(True, entry.data)

    def has(self, key: str) -> bool:
        with self._lock:
            return self.key_codec.native_key(key) in self._cache

    def increment(self, key: str, value: Number = 1) -> Union[Number, bool]:
        native = self.key_codec.native_key(key)
        with self._lock:
            entry = self._cache.get(native)
            if entry is None or not is_numeric(entry.data) or not is_numeric(value):
                return False
            result = entry.data + value
            self._cache[native] = entry._replace(data=result)
        return result

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(self.key_codec.native_key(key), None) is not None

    def flush(self) -> bool:
        with self._lock:
            self._cache.clear()
        return True
