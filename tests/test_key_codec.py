"""Tests for KeyCodec."""

import hashlib
import os

import pytest

from stashable import KeyCodec


def test_native_key_applies_prefix():
    """Test the backend key is prefix followed by key."""
    assert KeyCodec("app:").native_key("user:1") == "app:user:1"
    assert KeyCodec().native_key("user:1") == "user:1"


def test_digest_is_deterministic_fixed_length_hex():
    """Test digests are stable, hex and of constant length."""
    codec = KeyCodec("p")

    assert codec.digest("key") == codec.digest("key")
    assert codec.digest("key") == hashlib.sha256(b"pkey").hexdigest()
    assert len(codec.digest("")) == len(codec.digest("x" * 10_000)) == 64
    assert codec.digest("key") != codec.digest("key2")


def test_file_name_is_filesystem_safe():
    """Test keys with separators still map to a flat file name."""
    name = KeyCodec().file_name("../../etc/passwd")

    assert os.sep not in name
    assert name.endswith(".cache")


def test_file_path_joins_directory():
    """Test the path is inside the given directory."""
    codec = KeyCodec()

    assert codec.file_path("/var/cache", "k") == os.path.join("/var/cache", codec.file_name("k"))


def test_unknown_hash_is_rejected():
    """Test an unknown algorithm fails at construction."""
    with pytest.raises(ValueError):
        KeyCodec(hash_name="no-such-hash")
