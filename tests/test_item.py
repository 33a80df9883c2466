"""Tests for CacheItem."""

from datetime import datetime, timedelta, timezone

import pytest

from stashable import CacheItem

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_zero_minutes_never_expires():
    """Test a zero lifetime means no expiry at all."""
    item = CacheItem.create("data", 0, now=NOW)

    assert item.expires_at is None
    assert item.is_fresh(NOW + timedelta(days=365 * 50))


def test_positive_minutes_sets_deadline():
    """Test the deadline is creation time plus the lifetime."""
    item = CacheItem.create("data", 5, now=NOW)

    assert item.created_at == NOW
    assert item.expires_at == NOW + timedelta(minutes=5)
    assert item.is_fresh(NOW + timedelta(minutes=4, seconds=59))
    assert item.is_expired(NOW + timedelta(minutes=5))


def test_negative_minutes_is_already_expired():
    """Test a negative lifetime yields an expired item."""
    item = CacheItem.create("data", -5, now=NOW)

    assert item.is_expired(NOW)


def test_increment_mutates_payload():
    """Test increment adds to the payload and returns the result."""
    item = CacheItem.create(1336, 5, now=NOW)

    assert item.increment() == 1337
    assert item.increment(-10) == 1327
    assert item.data == 1327
    assert item.expires_at == NOW + timedelta(minutes=5)


@pytest.mark.parametrize("payload", ["potato", True, None, [1]])
def test_increment_rejects_non_numbers(payload):
    """Test non-numeric payloads cannot be incremented."""
    item = CacheItem(payload)

    with pytest.raises(TypeError):
        item.increment()
    assert item.data == payload


def test_dict_round_trip():
    """Test to_dict/from_dict keep every field."""
    item = CacheItem.create({"k": [1, 2]}, 10, now=NOW)

    assert CacheItem.from_dict(item.to_dict()) == item


@pytest.mark.parametrize(
    "raw",
    [
        None,
        False,
        "string",
        {"expires_at": None, "created_at": NOW},
        {"data": 1, "expires_at": "tomorrow", "created_at": NOW},
        {"data": 1, "expires_at": None},
    ],
)
def test_from_dict_rejects_malformed_input(raw):
    """Test malformed mappings raise ValueError."""
    with pytest.raises(ValueError):
        CacheItem.from_dict(raw)


def test_lifetime_past_the_calendar_is_clamped():
    """Test huge lifetimes clamp instead of overflowing."""
    forever = CacheItem.create(1, 10**10, now=NOW)
    gone = CacheItem.create(1, -(10**10), now=NOW)

    assert forever.expires_at == datetime.max.replace(tzinfo=timezone.utc)
    assert forever.is_fresh(NOW)
    assert gone.expires_at == datetime.min.replace(tzinfo=timezone.utc)
    assert gone.is_expired(NOW)
