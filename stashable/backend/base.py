# stashable/backend/base.py

"""
Abstract base class for cache backends.
Defines the contract every backend implements and the operations that are
expressed once on top of it (forever, get, has, remember, decrement).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, NamedTuple, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]


class Lookup(NamedTuple):
    """
    Result of a cache lookup.

    ``found`` tells a stored falsy value apart from a missing entry.
    """

    found: bool
    value: Any = None


MISS = Lookup(False)


class BaseCacheBackend(ABC):
    """
    Abstract base class for cache backends.
    All cache backends must implement this interface.

    Durations are given in minutes: ``0`` stores an item permanently and a
    negative duration stores one that is already expired.
    """

    @abstractmethod
    def put(self, key: str, data: Any, minutes: int = 0) -> bool:
        """
        Store a value, overwriting any existing entry.

        :param key: The key under which to store the value.
        :param data: The value to store in the cache.
        :param minutes: Lifetime in minutes, ``0`` for no expiry.
        :return: True if the value was stored.
        """
        raise NotImplementedError

    @abstractmethod
    def lookup(self, key: str) -> Lookup:
        """
        Retrieve a fresh entry.

        :param key: The key to look up in the cache.
        :return: ``Lookup(True, value)`` on a hit, ``MISS`` otherwise.
        """
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str, value: Number = 1) -> Union[Number, bool]:
        """
        Add ``value`` to a stored number.

        :return: The new value, or False if the key is missing or does not
            hold a number.
        """
        raise NotImplementedError

    @abstractmethod
    def forget(self, key: str) -> bool:
        """
        Delete a value from the cache by its key.

        :return: True if an entry was removed.
        """
        raise NotImplementedError

    @abstractmethod
    def flush(self) -> bool:
        """
        Remove every entry managed by this backend.

        :return: True only if every removal succeeded.
        """
        raise NotImplementedError

    def forever(self, key: str, data: Any) -> bool:
        return self.put(key, data, 0)

    def get(self, key: str, default: Any = False) -> Any:
        """
        Retrieve a value, or ``default`` when the key is missing or expired.

        Stored falsy values are returned as they are; use :meth:`has` to
        tell them apart from ``default``.
        """
        found, value = self.lookup(key)
        return value if found else default

    def has(self, key: str) -> bool:
        return self.lookup(key).found

    def remember(self, key: str, minutes: int, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value for ``key``, computing and storing it on a miss.

        ``compute`` runs at most once. If storing its result fails, False is
        returned instead of the result.
        """
        if self.has(key):
            return self.get(key)

        logger.debug("remember(%s): miss, computing value", key)
        data = compute()

        return data if self.put(key, data, minutes) else False

    def remember_forever(self, key: str, compute: Callable[[], Any]) -> Any:
        return self.remember(key, 0, compute)

    def decrement(self, key: str, value: Number = 1) -> Union[Number, bool]:
        return self.increment(key, -value)
