"""Tests for DefaultKeyBuilder."""

from datetime import date

from stashable import DefaultKeyBuilder


def lookup(user_id, when=None, tags=()):
    return user_id


def test_positional_and_keyword_calls_share_a_key():
    """Test argument binding makes call style irrelevant."""
    builder = DefaultKeyBuilder()

    assert builder.build(lookup, (1,), {}) == builder.build(lookup, (), {"user_id": 1})


def test_key_layout():
    """Test the key names the prefix and the function."""
    key = DefaultKeyBuilder(prefix="app").build(lookup, (1,), {})

    assert key.startswith(f"app:{lookup.__module__}.lookup:")
    assert len(key.rsplit(":", 1)[1]) == 64


def test_different_arguments_give_different_keys():
    """Test distinct arguments do not collide."""
    builder = DefaultKeyBuilder()

    assert builder.build(lookup, (1,), {}) != builder.build(lookup, (2,), {})
    assert builder.build(lookup, (1, date(2024, 1, 1)), {}) != builder.build(lookup, (1, date(2024, 1, 2)), {})


def test_sets_and_unknown_objects_hash_stably():
    """Test set ordering and arbitrary objects do not break hashing."""
    class Opaque:
        def __repr__(self):
            return "Opaque()"

    first = DefaultKeyBuilder.hash_arguments({"tags": {"b", "a", "c"}, "obj": Opaque()})
    second = DefaultKeyBuilder.hash_arguments({"obj": Opaque(), "tags": {"c", "a", "b"}})

    assert first == second


def test_non_string_dict_keys_hash_independent_of_order():
    """Test mappings with non-string keys hash by content, not insertion order."""
    first = DefaultKeyBuilder.hash_arguments({"ids": {1: "a", 2: "b"}})
    second = DefaultKeyBuilder.hash_arguments({"ids": {2: "b", 1: "a"}})

    assert first == second
    assert first != DefaultKeyBuilder.hash_arguments({"ids": {"1": "a", "2": "b"}})
