# stashable/item.py

"""
The unit of data persisted by the file backend.

An item pairs the cached payload with its absolute expiration time, so
freshness can be decided at read time without any sweeper.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from numbers import Number
from typing import Any, Optional


_LATEST = datetime.max.replace(tzinfo=timezone.utc)
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_numeric(value: Any) -> bool:
    """Whether ``value`` can be incremented. Booleans do not count."""
    return isinstance(value, Number) and not isinstance(value, bool)


@dataclass
class CacheItem:
    """
    Cached payload plus expiration metadata.

    ``expires_at`` is ``None`` for items that never expire.
    """

    data: Any
    expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        data: Any,
        minutes: int = 0,
        now: Optional[datetime] = None,
    ) -> CacheItem:
        """
        Build an item that lives for ``minutes`` from ``now``.

        ``0`` means the item never expires. A negative value yields an item
        that is already expired.
        """
        now = now or utcnow()
        expires_at = None
        if minutes:
            try:
                expires_at = now + timedelta(minutes=minutes)
            except OverflowError:
                # Past the end of the calendar: clamp to its first or last instant.
                expires_at = _LATEST if minutes > 0 else _EARLIEST
        return cls(data=data, expires_at=expires_at, created_at=now)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at

    def is_fresh(self, now: Optional[datetime] = None) -> bool:
        return not self.is_expired(now)

    def increment(self, delta: int | float = 1) -> int | float:
        """
        Add ``delta`` to the payload in place and return the new value.

        :raises TypeError: If the payload or ``delta`` is not numeric.
        """
        if not is_numeric(self.data) or not is_numeric(delta):
            raise TypeError(
                f"cannot increment a {type(self.data).__name__} payload"
            )
        self.data = self.data + delta
        return self.data

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.data,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> CacheItem:
        """
        Rebuild an item from :meth:`to_dict` output.

        :raises ValueError: If ``raw`` does not look like a stored item.
        """
        if not isinstance(raw, dict) or "data" not in raw:
            raise ValueError("not a cache item")

        expires_at = raw.get("expires_at")
        created_at = raw.get("created_at")
        if expires_at is not None and not isinstance(expires_at, datetime):
            raise ValueError(f"invalid expires_at: {expires_at!r}")
        if not isinstance(created_at, datetime):
            raise ValueError(f"invalid created_at: {created_at!r}")

        return cls(data=raw["data"], expires_at=expires_at, created_at=created_at)


__all__ = ["CacheItem", "is_numeric", "utcnow"]
