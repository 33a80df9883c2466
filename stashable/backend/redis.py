# stashable/backend/redis.py

import logging
from typing import Any, Optional, Union

import redis

from .base import MISS, BaseCacheBackend, Lookup, Number
from stashable.exceptions import SerializationError
from stashable.item import is_numeric
from stashable.key_codec import KeyCodec
from stashable.serializer import SerializationFormat, deserialize, serialize

logger = logging.getLogger(__name__)


class RedisCacheBackend(BaseCacheBackend):
    """
    Redis cache backend implementation.
    Uses a synchronous redis-py client; expiry is left to Redis itself.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "",
        *,
        serialization_format: Optional[SerializationFormat] = None,
    ) -> None:
        self.client = client
        self.key_codec = KeyCodec(key_prefix)
        self.serialization_format = serialization_format

    @property
    def key_prefix(self) -> str:
        return self.key_codec.prefix

    def put(self, key: str, data: Any, minutes: int = 0) -> bool:
        redis_key = self.key_codec.native_key(key)
        try:
            if minutes < 0:
                # Already expired: nothing to store, but the old value must go.
                self.client.delete(redis_key)
                return True
            raw = serialize(data, self.serialization_format)
            return bool(self.client.set(redis_key, raw, ex=minutes * 60 or None))
        except (redis.RedisError, SerializationError):
            logger.exception("redis put failed for %s", key)
            return False

    def lookup(self, key: str) -> Lookup:
        try:
            raw = self.client.get(self.key_codec.native_key(key))
        except redis.RedisError:
            logger.exception("redis get failed for %s", key)
            return MISS

        if raw is None:
            return MISS

        try:
            return Lookup(True, deserialize(raw, self.serialization_format))
        except SerializationError:
            logger.warning("ignoring undecodable redis value for %s", key)
            return MISS

    def increment(self, key: str, value: Number = 1) -> Union[Number, bool]:
        """
        Add ``value`` inside a WATCH/MULTI transaction.

        The payload is serialized like any other value, so INCRBY cannot be
        used directly; the transaction retries if another client touches the
        key in between, and ``KEEPTTL`` keeps the remaining lifetime.
        """
        redis_key = self.key_codec.native_key(key)

        def _apply(pipe: Any) -> Union[Number, bool]:
            raw = pipe.get(redis_key)
            if raw is None:
                return False
            current = deserialize(raw, self.serialization_format)
            if not is_numeric(current) or not is_numeric(value):
                return False
            result = current + value
            pipe.multi()
            pipe.set(redis_key, serialize(result, self.serialization_format), keepttl=True)
            return result

        try:
            return self.client.transaction(_apply, redis_key, value_from_callable=True)
        except (redis.RedisError, SerializationError):
            logger.exception("redis increment failed for %s", key)
            return False

    def forget(self, key: str) -> bool:
        try:
            return bool(self.client.delete(self.key_codec.native_key(key)))
        except redis.RedisError:
            logger.exception("redis delete failed for %s", key)
            return False

    def flush(self) -> bool:
        """
        Delete every key under this backend's prefix.
        Without a prefix this clears the whole logical database.
        """
        try:
            if not self.key_prefix:
                return bool(self.client.flushdb())
            keys = list(self.client.scan_iter(match=f"{self.key_prefix}*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError:
            logger.exception("redis flush failed")
            return False
        return True
