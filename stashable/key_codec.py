# stashable/key_codec.py

from __future__ import annotations

import hashlib
import os


class KeyCodec:
    """
    Maps logical cache keys to backend addresses.

    The prefix is applied once here so every backend derives its native key
    and the file backend its file name from the same ``prefix + key`` string.
    """

    extension = ".cache"

    def __init__(self, prefix: str = "", hash_name: str = "sha256") -> None:
        # Fails early on algorithms hashlib does not know.
        hashlib.new(hash_name)
        self.prefix = prefix
        self.hash_name = hash_name

    def native_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def digest(self, key: str) -> str:
        """Fixed-length hex digest of the prefixed key."""
        raw = self.native_key(key).encode("utf-8")
        return hashlib.new(self.hash_name, raw).hexdigest()

    def file_name(self, key: str) -> str:
        return self.digest(key) + self.extension

    def file_path(self, directory: str, key: str) -> str:
        return os.path.join(directory, self.file_name(key))

    def __repr__(self) -> str:
        return f"KeyCodec(prefix={self.prefix!r}, hash_name={self.hash_name!r})"


__all__ = ["KeyCodec"]
