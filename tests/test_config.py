"""Tests for CacheConfig."""

import pytest

from stashable import CacheConfig, CacheConfigError, FileCacheBackend, MemoryCacheBackend, SerializationFormat
from stashable.serializer import get_default_format


def test_get_backend_before_init_raises():
    """Test the backend cannot be read before init."""
    assert CacheConfig.is_initialized() is False
    with pytest.raises(CacheConfigError):
        CacheConfig.get_backend()


def test_init_once():
    """Test init stores the backend and refuses a second call."""
    backend = MemoryCacheBackend()
    CacheConfig.init(backend)

    assert CacheConfig.get_backend() is backend
    with pytest.raises(CacheConfigError):
        CacheConfig.init(MemoryCacheBackend())


def test_init_rejects_non_backends():
    """Test only BaseCacheBackend instances are accepted."""
    with pytest.raises(CacheConfigError):
        CacheConfig.init(object())


def test_default_format_flows_into_new_file_backends(storage_dir):
    """Test the configured format becomes the file backend default."""
    CacheConfig.init(MemoryCacheBackend(), default_serialization_format=SerializationFormat.MSGPACK)

    assert get_default_format() is SerializationFormat.MSGPACK
    assert FileCacheBackend(storage_dir).serialization_format is SerializationFormat.MSGPACK
