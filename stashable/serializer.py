"""
Byte codecs shared by the cache backends.

The file backend writes a whole cache item (payload plus expiration
metadata) per file and the Redis backend writes the bare payload; both go
through :func:`serialize` / :func:`deserialize`. JSON is the default.
Values JSON cannot hold are written as ``{"__type__": tag, "value": ...}``
so they decode back to the same type.
"""

import json
import pickle
import warnings
from dataclasses import asdict, is_dataclass
from datetime import datetime, date, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional, Union
from uuid import UUID

import msgpack
from pydantic import BaseModel

from stashable.exceptions import SerializationError

TYPE_TAG = "__type__"


class SerializationFormat(str, Enum):
    """Supported serialization formats."""
    JSON = "json"
    PICKLE = "pickle"
    MSGPACK = "msgpack"


class _ValueCodec(NamedTuple):
    tag: str
    type: type
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


# Checked in order: datetime is a date subclass.
_VALUE_CODECS = (
    _ValueCodec("datetime", datetime, datetime.isoformat, datetime.fromisoformat),
    _ValueCodec("date", date, date.isoformat, date.fromisoformat),
    _ValueCodec("time", time, time.isoformat, time.fromisoformat),
    _ValueCodec("timedelta", timedelta, timedelta.total_seconds, lambda v: timedelta(seconds=v)),
    _ValueCodec("uuid", UUID, str, UUID),
    _ValueCodec("decimal", Decimal, str, Decimal),
    _ValueCodec("bytes", bytes, lambda b: b.decode("latin-1"), lambda s: s.encode("latin-1")),
    _ValueCodec("set", set, list, set),
    _ValueCodec("frozenset", frozenset, list, frozenset),
)

_CODECS_BY_TAG = {codec.tag: codec for codec in _VALUE_CODECS}


def _class_path(obj: Any) -> str:
    cls = type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


def _load_class(path: str) -> Optional[type]:
    module_path, _, name = path.rpartition(".")
    try:
        module = __import__(module_path, fromlist=[name])
        return getattr(module, name)
    except (ImportError, AttributeError, ValueError):
        return None


class JSONEncoder(json.JSONEncoder):
    """
    JSON encoder that tags values plain JSON cannot represent.

    Containers are rewritten by :meth:`tag` before encoding: tuples, and
    mappings whose keys are not all strings or that use ``__type__``
    themselves, would otherwise come back changed. Enums, Pydantic models
    and dataclasses record their class so the decoder can rebuild them.
    """

    def encode(self, o: Any) -> str:
        return super().encode(self.tag(o))

    def tag(self, obj: Any) -> Any:
        if isinstance(obj, Enum):
            # str and int enums would otherwise be written as plain values.
            return self.default(obj)

        if isinstance(obj, list):
            return [self.tag(item) for item in obj]

        if isinstance(obj, tuple):
            return {TYPE_TAG: "tuple", "value": [self.tag(item) for item in obj]}

        if isinstance(obj, dict):
            if TYPE_TAG in obj or not all(isinstance(key, str) for key in obj):
                return {
                    TYPE_TAG: "dict",
                    "value": [[self.tag(key), self.tag(value)] for key, value in obj.items()],
                }
            return {key: self.tag(value) for key, value in obj.items()}

        return obj

    def default(self, obj: Any) -> Any:
        for codec in _VALUE_CODECS:
            if isinstance(obj, codec.type):
                return {TYPE_TAG: codec.tag, "value": self.tag(codec.encode(obj))}

        if isinstance(obj, Enum):
            return {TYPE_TAG: "enum", "class": _class_path(obj), "value": self.tag(obj.value)}

        if isinstance(obj, BaseModel):
            return {TYPE_TAG: "pydantic", "class": _class_path(obj),
                    "value": self.tag(obj.model_dump(mode="json"))}

        if is_dataclass(obj) and not isinstance(obj, type):
            return {TYPE_TAG: "dataclass", "class": _class_path(obj),
                    "value": self.tag(asdict(obj))}

        return super().default(obj)


_CONTAINER_DECODERS: dict[str, Callable[[Any], Any]] = {
    "tuple": tuple,
    "dict": dict,
}


def _json_object_hook(obj: dict) -> Any:
    """
    Decode one tagged mapping.

    Untagged mappings pass through. If the class behind an enum, model or
    dataclass tag cannot be imported any more, the raw value is returned.
    """
    tag = obj.get(TYPE_TAG)
    if tag is None:
        return obj

    if tag in _CONTAINER_DECODERS:
        return _CONTAINER_DECODERS[tag](obj["value"])

    codec = _CODECS_BY_TAG.get(tag)
    if codec is not None:
        return codec.decode(obj["value"])

    if tag not in ("enum", "pydantic", "dataclass"):
        return obj

    cls = _load_class(obj["class"])
    if cls is None:
        return obj["value"]
    if tag == "enum":
        return cls(obj["value"])
    if tag == "pydantic":
        return cls.model_validate(obj["value"])
    return cls(**obj["value"])


def serialize_json(data: Any) -> bytes:
    return json.dumps(
        data, cls=JSONEncoder, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def deserialize_json(data: bytes) -> Any:
    return json.loads(data.decode("utf-8"), object_hook=_json_object_hook)


def serialize_pickle(data: Any) -> bytes:
    """
    Pickle keeps every Python type but will execute whatever a tampered
    cache file tells it to; only use it on storage nobody else can write.
    """
    warnings.warn(
        "Pickle serialization is unsafe for untrusted data. "
        "Only use with trusted cache storage.",
        RuntimeWarning,
        stacklevel=2,
    )
    return pickle.dumps(data, protocol=pickle.HIGHEST_PROTOCOL)


def deserialize_pickle(data: bytes) -> Any:
    return pickle.loads(data)


def serialize_msgpack(data: Any) -> bytes:
    # Tag through the JSON encoder first, MessagePack has no hook for it.
    tagged = json.loads(json.dumps(data, cls=JSONEncoder))
    return msgpack.packb(tagged, use_bin_type=True)


def deserialize_msgpack(data: bytes) -> Any:
    return msgpack.unpackb(data, raw=False, object_hook=_json_object_hook)


_DEFAULT_FORMAT = SerializationFormat.JSON

_CODECS: dict[SerializationFormat, tuple[Callable[[Any], bytes], Callable[[bytes], Any]]] = {
    SerializationFormat.JSON: (serialize_json, deserialize_json),
    SerializationFormat.PICKLE: (serialize_pickle, deserialize_pickle),
    SerializationFormat.MSGPACK: (serialize_msgpack, deserialize_msgpack),
}


def set_default_format(format: Union[str, SerializationFormat]) -> None:
    global _DEFAULT_FORMAT
    _DEFAULT_FORMAT = SerializationFormat(format)


def get_default_format() -> SerializationFormat:
    return _DEFAULT_FORMAT


def register_serializer(
    format: Union[str, SerializationFormat],
    serializer: Callable[[Any], bytes],
    deserializer: Callable[[bytes], Any],
) -> None:
    """Replace the codec pair used for ``format``."""
    _CODECS[SerializationFormat(format)] = (serializer, deserializer)


def _codec(format: Optional[SerializationFormat]) -> tuple[SerializationFormat, tuple]:
    format = _DEFAULT_FORMAT if format is None else format
    try:
        return format, _CODECS[SerializationFormat(format)]
    except (KeyError, ValueError):
        raise SerializationError(f"Unsupported serialization format: {format}") from None


def serialize(data: Any, format: Optional[SerializationFormat] = None) -> bytes:
    """
    Encode ``data`` with ``format``, or the default format when omitted.

    :raises SerializationError: If the format is unknown or encoding fails
    """
    format, (encode, _) = _codec(format)
    try:
        return encode(data)
    except Exception as e:
        raise SerializationError(f"Failed to serialize data with format {format}: {e}") from e


def deserialize(data: bytes, format: Optional[SerializationFormat] = None) -> Any:
    """
    Decode bytes produced by :func:`serialize` with the same format.

    :raises SerializationError: If the format is unknown or decoding fails
    """
    format, (_, decode) = _codec(format)
    try:
        return decode(data)
    except Exception as e:
        raise SerializationError(f"Failed to deserialize data with format {format}: {e}") from e


__all__ = [
    "serialize",
    "deserialize",
    "SerializationFormat",
    "set_default_format",
    "get_default_format",
    "register_serializer",
    "JSONEncoder",
    "TYPE_TAG",
    "serialize_json",
    "deserialize_json",
    "serialize_pickle",
    "deserialize_pickle",
    "serialize_msgpack",
    "deserialize_msgpack",
]
