from .base import MISS, BaseCacheBackend, Lookup
from .file import FileCacheBackend
from .memory import MemoryCacheBackend
from .redis import RedisCacheBackend

__all__ = [
    "BaseCacheBackend",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "RedisCacheBackend",
    "Lookup",
    "MISS",
]
