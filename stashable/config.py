# stashable/config.py

from typing import Optional

from stashable.backend.base import BaseCacheBackend
from stashable.exceptions import CacheConfigError
from stashable.serializer import SerializationFormat, set_default_format


class CacheConfig:
    """
    Process-wide cache settings.

    Holds the backend the decorators talk to. Backends built without an
    explicit serialization format pick up the default configured here.
    """

    _backend: Optional[BaseCacheBackend] = None
    _initialized: bool = False

    @classmethod
    def init(
        cls,
        backend: BaseCacheBackend,
        *,
        default_serialization_format: Optional[SerializationFormat] = None,
    ) -> None:
        """
        Install ``backend``. Call once at startup.

        Args:
            backend: e.g. a FileCacheBackend or RedisCacheBackend
            default_serialization_format: format for backends created afterwards

        Raises:
            CacheConfigError: On a second call or a non-backend argument
        """
        if cls._initialized:
            raise CacheConfigError("CacheConfig is already initialized.")

        if not isinstance(backend, BaseCacheBackend):
            raise CacheConfigError(
                f"{type(backend).__name__} does not implement BaseCacheBackend."
            )

        if default_serialization_format is not None:
            set_default_format(default_serialization_format)
        cls._backend = backend
        cls._initialized = True

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def get_backend(cls) -> BaseCacheBackend:
        if not cls._initialized or cls._backend is None:
            raise CacheConfigError(
                "CacheConfig is not initialized. Call CacheConfig.init() first."
            )
        return cls._backend

    @classmethod
    def reset(cls) -> None:
        """Forget the backend and restore JSON as default format. For tests."""
        cls._backend = None
        cls._initialized = False
        set_default_format(SerializationFormat.JSON)


__all__ = ["CacheConfig", "CacheConfigError"]
