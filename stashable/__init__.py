from stashable.backend.base import MISS, BaseCacheBackend, Lookup
from stashable.backend.file import FileCacheBackend
from stashable.backend.memory import MemoryCacheBackend
from stashable.backend.redis import RedisCacheBackend
from stashable.config import CacheConfig
from stashable.decorators import cacheable, cache_evict, cache_put
from stashable.exceptions import (
	CacheConfigError,
	CacheError,
	CacheNotInitializedError,
	SerializationError,
	StorageDirectoryError,
)
from stashable.item import CacheItem
from stashable.key_builder import DefaultKeyBuilder, KeyBuilder
from stashable.key_codec import KeyCodec
from stashable.serializer import (
	SerializationFormat,
	deserialize,
	get_default_format,
	serialize,
	set_default_format,
)

__all__ = [
	"BaseCacheBackend",
	"FileCacheBackend",
	"MemoryCacheBackend",
	"RedisCacheBackend",
	"Lookup",
	"MISS",
	"CacheConfig",
	"CacheConfigError",
	"CacheError",
	"CacheNotInitializedError",
	"SerializationError",
	"StorageDirectoryError",
	"cacheable",
	"cache_evict",
	"cache_put",
	"CacheItem",
	"KeyCodec",
	"DefaultKeyBuilder",
	"KeyBuilder",
	"SerializationFormat",
	"serialize",
	"deserialize",
	"get_default_format",
	"set_default_format",
]
