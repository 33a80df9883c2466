# stashable/backend/file.py

import fcntl
import glob
import logging
import os
from typing import Any, Optional, Union

from .base import MISS, BaseCacheBackend, Lookup, Number
from stashable.exceptions import SerializationError, StorageDirectoryError
from stashable.item import CacheItem, is_numeric
from stashable.key_codec import KeyCodec
from stashable.serializer import SerializationFormat, deserialize, get_default_format, serialize

logger = logging.getLogger(__name__)


class FileCacheBackend(BaseCacheBackend):
    """
    File cache backend implementation.

    Every key is stored as one ``<digest>.cache`` file in ``storage_path``
    holding the serialized :class:`CacheItem`. Expiration is checked when
    the file is read; expired files stay on disk until overwritten,
    forgotten or flushed.

    Writes hold an exclusive ``flock`` so concurrent writers never
    interleave. ``increment`` is a plain read-modify-write: two processes
    incrementing the same key at the same time can lose an update.
    """

    def __init__(
        self,
        storage_path: Union[str, os.PathLike],
        prefix: str = "",
        *,
        serialization_format: Optional[SerializationFormat] = None,
        key_codec: Optional[KeyCodec] = None,
    ) -> None:
        path = os.path.abspath(os.fspath(storage_path))
        if not os.path.isdir(path):
            raise StorageDirectoryError(f"Cache directory does not exist: {path}")
        if not os.access(path, os.W_OK | os.X_OK):
            raise StorageDirectoryError(f"Cache directory is not writable: {path}")

        self.storage_path = path.rstrip(os.sep) or os.sep
        self.key_codec = key_codec or KeyCodec(prefix)
        self.serialization_format = (
            serialization_format if serialization_format is not None else get_default_format()
        )

    @property
    def prefix(self) -> str:
        return self.key_codec.prefix

    def put(self, key: str, data: Any, minutes: int = 0) -> bool:
        return self._put_cache_contents(key, CacheItem.create(data, minutes))

    def lookup(self, key: str) -> Lookup:
        item = self._get_cache_contents(key)

        if item is None:
            logger.debug("file cache miss: %s", key)
            return MISS

        if item.is_expired():
            logger.debug("file cache entry expired: %s", key)
            return MISS

        return Lookup(True, item.data)

    def increment(self, key: str, value: Number = 1) -> Union[Number, bool]:
        item = self._get_cache_contents(key)

        if item is None or item.is_expired():
            return False

        if not is_numeric(item.data) or not is_numeric(value):
            logger.debug("increment(%s): payload is not numeric", key)
            return False

        result = item.increment(value)

        if not self._put_cache_contents(key, item):
            return False

        return result

    def forget(self, key: str) -> bool:
        try:
            os.unlink(self.file_path(key))
        except FileNotFoundError:
            return False
        except OSError:
            logger.warning("could not remove cache file for %s", key, exc_info=True)
            return False
        return True

    def flush(self) -> bool:
        pattern = os.path.join(glob.escape(self.storage_path), "*" + self.key_codec.extension)
        success = True

        for path in glob.glob(pattern):
            try:
                os.unlink(path)
            except OSError:
                logger.warning("could not remove cache file %s", path, exc_info=True)
                success = False

        return success

    def file_path(self, key: str) -> str:
        return self.key_codec.file_path(self.storage_path, key)

    def _put_cache_contents(self, key: str, item: CacheItem) -> bool:
        try:
            blob = serialize(item.to_dict(), self.serialization_format)
        except SerializationError:
            logger.exception("could not serialize cache item for %s", key)
            return False

        if not self._round_trips(item, blob):
            logger.warning("refusing to store %s: payload does not decode back unchanged", key)
            return False

        path = self.file_path(key)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT, 0o644)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                os.ftruncate(fd, 0)
                written = os.write(fd, blob)
            finally:
                # Closing the descriptor releases the lock.
                os.close(fd)
        except OSError:
            logger.exception("could not write cache file %s", path)
            return False

        logger.debug("wrote %d bytes for %s", written, key)
        return written == len(blob)

    def _round_trips(self, item: CacheItem, blob: bytes) -> bool:
        if self.serialization_format is SerializationFormat.PICKLE:
            return True
        try:
            data = CacheItem.from_dict(deserialize(blob, self.serialization_format)).data
            if data == item.data:
                return True
            # NaN is never equal to itself, so compare encodings as well.
            return serialize(data, self.serialization_format) == serialize(
                item.data, self.serialization_format
            )
        except (SerializationError, ValueError):
            return False

    def _get_cache_contents(self, key: str) -> Optional[CacheItem]:
        path = self.file_path(key)
        try:
            with open(path, "rb") as fh:
                # Waits for a writer holding LOCK_EX to finish.
                fcntl.flock(fh.fileno(), fcntl.LOCK_SH)
                contents = fh.read()
        except FileNotFoundError:
            return None
        except OSError:
            logger.warning("could not read cache file %s", path, exc_info=True)
            return None

        if not contents:
            return None

        try:
            return CacheItem.from_dict(deserialize(contents, self.serialization_format))
        except (SerializationError, ValueError):
            logger.warning("ignoring unreadable cache file %s", path)
            return None
