"""Pytest configuration and fixtures."""

import pytest

from stashable import CacheConfig, FileCacheBackend, MemoryCacheBackend


@pytest.fixture
def storage_dir(tmp_path):
    """Empty, writable cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def file_backend(storage_dir):
    backend = FileCacheBackend(storage_dir)
    yield backend
    backend.flush()


@pytest.fixture
def memory_backend():
    return MemoryCacheBackend()


@pytest.fixture(params=["file", "memory"])
def backend(request, storage_dir):
    """Every backend that keeps its data locally."""
    if request.param == "file":
        return FileCacheBackend(storage_dir)
    return MemoryCacheBackend()


@pytest.fixture(autouse=True)
def reset_cache_config():
    CacheConfig.reset()
    yield
    CacheConfig.reset()
