

class CacheError(RuntimeError):
	"""Base exception for cache-related errors."""


class CacheConfigError(CacheError):
	"""Raised when there is a configuration error in the cache setup."""


class StorageDirectoryError(CacheConfigError):
	"""Raised when a file backend is pointed at an unusable directory."""


class CacheNotInitializedError(CacheError):
	"""Raised when cache decorators are used before CacheConfig.init()."""


class SerializationError(CacheError, ValueError):
	"""Raised when a value cannot be encoded to or decoded from bytes."""


__all__ = [
	"CacheError",
	"CacheConfigError",
	"StorageDirectoryError",
	"CacheNotInitializedError",
	"SerializationError",
]
