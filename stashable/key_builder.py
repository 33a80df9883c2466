# stashable/key_builder.py

from __future__ import annotations

import hashlib
import inspect
import json
from typing import Any, Callable, Optional, Protocol

from stashable.serializer import TYPE_TAG, JSONEncoder


class KeyBuilder(Protocol):
    """
    Builds the cache key for one call of a decorated function.
    """

    def build(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> str:
        """
        :param func: The decorated function.
        :param args: Positional arguments of the call.
        :param kwargs: Keyword arguments of the call.
        :return: The cache key.
        """
        ...


class _ArgumentEncoder(JSONEncoder):
    """
    Stable JSON for hashing: sets and tagged mappings are ordered, unknown
    objects use repr.
    """

    def tag(self, obj: Any) -> Any:
        if isinstance(obj, (set, frozenset)):
            return sorted(repr(item) for item in obj)
        if isinstance(obj, dict) and (TYPE_TAG in obj or not all(isinstance(key, str) for key in obj)):
            pairs = [[repr(key), self.tag(value)] for key, value in obj.items()]
            return {TYPE_TAG: "dict", "value": sorted(pairs, key=lambda pair: pair[0])}
        return super().tag(obj)

    def default(self, obj: Any) -> Any:
        try:
            return super().default(obj)
        except TypeError:
            return repr(obj)


class DefaultKeyBuilder:
    """
    Keys of the form ``<prefix>:<module>.<qualname>:<sha256 of arguments>``.

    Arguments are bound to parameter names first, so ``f(1)`` and ``f(x=1)``
    share a key.
    """

    def __init__(self, prefix: Optional[str] = None) -> None:
        self.prefix = prefix or "stashable"

    def build(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> str:
        hashed = self.hash_arguments(self.bind_arguments(func, args, kwargs))
        return f"{self.prefix}:{func.__module__}.{func.__qualname__}:{hashed}"

    @staticmethod
    def bind_arguments(
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> dict[str, Any]:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)

    @staticmethod
    def hash_arguments(arguments: dict[str, Any]) -> str:
        raw = json.dumps(
            arguments, cls=_ArgumentEncoder, sort_keys=True, separators=(",", ":")
        )
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()


__all__ = ["KeyBuilder", "DefaultKeyBuilder"]
