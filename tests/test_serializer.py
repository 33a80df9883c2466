"""Tests for the serializer registry and codecs."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest
from pydantic import BaseModel

from stashable import SerializationError, SerializationFormat, deserialize, serialize
from stashable.serializer import get_default_format, register_serializer, serialize_json, deserialize_json


class Color(Enum):
    RED = "red"


class User(BaseModel):
    id: int
    name: str


@dataclass
class Point:
    x: int
    y: int


@pytest.mark.parametrize("fmt", [SerializationFormat.JSON, SerializationFormat.MSGPACK])
def test_tagged_types_survive(fmt):
    """Test types JSON cannot express come back as the same type."""
    value = {
        "when": datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
        "day": date(2024, 5, 1),
        "span": timedelta(minutes=5),
        "id": UUID("12345678-1234-5678-1234-567812345678"),
        "price": Decimal("9.99"),
        "color": Color.RED,
        "tags": {"a"},
        "raw": b"\x00\x01",
        "user": User(id=1, name="ada"),
        "point": Point(1, 2),
    }

    assert deserialize(serialize(value, fmt), fmt) == value


def test_unknown_class_falls_back_to_raw_value():
    """Test tags whose class is gone decode to the plain value."""
    raw = b'{"__type__":"dataclass","class":"missing.module.Thing","value":{"a":1}}'

    assert deserialize(raw) == {"a": 1}


def test_errors_are_wrapped():
    """Test codec failures raise SerializationError."""
    with pytest.raises(SerializationError):
        serialize(object())
    with pytest.raises(SerializationError):
        deserialize(b"{not json")


def test_default_format_is_json():
    """Test JSON is used when no format is given."""
    assert get_default_format() is SerializationFormat.JSON


def test_register_serializer_replaces_codec():
    """Test a custom pair replaces the built-in codec."""
    register_serializer("json", lambda data: b"custom", lambda raw: "decoded")
    try:
        assert serialize(1) == b"custom"
        assert deserialize(b"anything") == "decoded"
    finally:
        register_serializer(SerializationFormat.JSON, serialize_json, deserialize_json)


class Level(str, Enum):
    HIGH = "high"


@pytest.mark.parametrize("fmt", [SerializationFormat.JSON, SerializationFormat.MSGPACK])
@pytest.mark.parametrize(
    "value",
    [
        (1, 2),
        {1: "a", 2: "b"},
        {(1, 2): [("x",)]},
        {"__type__": "uuid", "value": "user-data"},
        {(1, 2), (3, 4)},
        [{"nested": (1, {2: None})}],
        Level.HIGH,
    ],
)
def test_containers_come_back_unchanged(fmt, value):
    """Test tuples, non-string keys and user dicts using the tag key survive."""
    restored = deserialize(serialize(value, fmt), fmt)

    assert restored == value
    assert type(restored) is type(value)


def test_user_dict_with_tag_key_is_not_decoded():
    """Test a plain dict that happens to use __type__ stays a dict."""
    value = {"__type__": "datetime", "value": "2024-05-01T12:00:00"}

    assert deserialize(serialize(value)) == value
