from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union, cast

from stashable.backend.base import MISS, BaseCacheBackend, Lookup
from stashable.config import CacheConfig
from stashable.exceptions import CacheNotInitializedError
from stashable.key_builder import DefaultKeyBuilder, KeyBuilder

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

Predicate = Union[Callable[..., bool], Callable[..., Awaitable[bool]]]

_DEFAULT_EXCLUDED = frozenset({"request", "response", "db", "session", "self"})


def _ensure_initialized() -> None:
	if not CacheConfig.is_initialized():
		raise CacheNotInitializedError(
			"CacheConfig is not initialized. Call CacheConfig.init(...) at startup."
		)


def _check(predicate: Predicate, *args: Any, **kwargs: Any) -> bool:
	value = predicate(*args, **kwargs)
	if inspect.isawaitable(value):
		# Never awaited; close it so Python does not warn about it.
		if inspect.iscoroutine(value):
			value.close()
		raise TypeError("async condition/unless callables need an async decorated function")
	return bool(value)


async def _check_async(predicate: Predicate, *args: Any, **kwargs: Any) -> bool:
	value = predicate(*args, **kwargs)
	if inspect.isawaitable(value):
		return bool(await cast(Awaitable[bool], value))
	return bool(value)


def _build_cache_key(
	*,
	func: Callable[..., Any],
	args: tuple[Any, ...],
	kwargs: dict[str, Any],
	namespace: str,
	key: Optional[str],
	key_builder: Optional[KeyBuilder],
	excluded_params: Optional[set[str]],
) -> str:
	excluded = _DEFAULT_EXCLUDED if excluded_params is None else excluded_params
	builder = DefaultKeyBuilder()
	arguments = {
		name: value
		for name, value in builder.bind_arguments(func, args, kwargs).items()
		if name not in excluded
	}

	# A custom builder may override the final key completely.
	if key_builder is not None:
		try:
			return key_builder.build(func, (), arguments)
		except Exception:
			logger.exception("custom key_builder failed; falling back to default")

	key_id = key or f"{func.__module__}.{func.__qualname__}"
	return f"{namespace}:{key_id}:{builder.hash_arguments(arguments)}"


def _read(backend: BaseCacheBackend, cache_key: str, label: str) -> Lookup:
	try:
		if backend.has(cache_key):
			return Lookup(True, backend.get(cache_key))
	except Exception:
		logger.exception("%s: backend lookup failed", label)
	return MISS


def _write(backend: BaseCacheBackend, cache_key: str, result: Any, minutes: int, label: str) -> None:
	try:
		if not backend.put(cache_key, result, minutes):
			logger.warning("%s: backend.put reported failure for %s", label, cache_key)
	except Exception:
		logger.exception("%s: backend.put failed", label)


def cacheable(
	*,
	namespace: str,
	key: Optional[str] = None,
	minutes: int = 60,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Predicate] = None,
	unless: Optional[Callable[[Any], Any]] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[F], F]:
	"""Cache-aside decorator similar to Spring's @Cacheable.

	Returns the cached result when the key exists, including stored falsy
	results; on a miss runs the function and stores what it returned.
	"""

	def decorator(func: F) -> F:
		label = f"cacheable({namespace})"

		def _key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
			return _build_cache_key(
				func=func,
				args=args,
				kwargs=kwargs,
				namespace=namespace,
				key=key,
				key_builder=key_builder,
				excluded_params=excluded_params,
			)

		if inspect.iscoroutinefunction(func):

			@functools.wraps(func)
			async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
				_ensure_initialized()

				if condition is not None and not await _check_async(condition, *args, **kwargs):
					logger.debug("%s: condition false; bypass cache for %s", label, func.__qualname__)
					return await func(*args, **kwargs)

				backend = CacheConfig.get_backend()
				cache_key = _key(args, kwargs)
				hit = _read(backend, cache_key, label)
				if hit.found:
					return hit.value

				result = await func(*args, **kwargs)

				if unless is not None and await _check_async(unless, result):
					return result

				_write(backend, cache_key, result, minutes, label)
				return result

			return cast(F, async_wrapper)

		@functools.wraps(func)
		def wrapper(*args: Any, **kwargs: Any) -> Any:
			_ensure_initialized()

			if condition is not None and not _check(condition, *args, **kwargs):
				logger.debug("%s: condition false; bypass cache for %s", label, func.__qualname__)
				return func(*args, **kwargs)

			backend = CacheConfig.get_backend()
			cache_key = _key(args, kwargs)
			hit = _read(backend, cache_key, label)
			if hit.found:
				return hit.value

			result = func(*args, **kwargs)

			if unless is not None and _check(unless, result):
				return result

			_write(backend, cache_key, result, minutes, label)
			return result

		return cast(F, wrapper)

	return decorator


def cache_put(
	*,
	namespace: str,
	key: Optional[str] = None,
	minutes: int = 60,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Predicate] = None,
	unless: Optional[Callable[[Any], Any]] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[F], F]:
	"""Cache decorator similar to Spring's @CachePut.

	Always executes the function; then stores the result (unless skipped).
	"""

	def decorator(func: F) -> F:
		label = f"cache_put({namespace})"

		def _store(args: tuple[Any, ...], kwargs: dict[str, Any], result: Any) -> None:
			cache_key = _build_cache_key(
				func=func,
				args=args,
				kwargs=kwargs,
				namespace=namespace,
				key=key,
				key_builder=key_builder,
				excluded_params=excluded_params,
			)
			_write(CacheConfig.get_backend(), cache_key, result, minutes, label)

		if inspect.iscoroutinefunction(func):

			@functools.wraps(func)
			async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
				_ensure_initialized()

				result = await func(*args, **kwargs)

				if condition is not None and not await _check_async(condition, *args, **kwargs):
					return result
				if unless is not None and await _check_async(unless, result):
					return result

				_store(args, kwargs, result)
				return result

			return cast(F, async_wrapper)

		@functools.wraps(func)
		def wrapper(*args: Any, **kwargs: Any) -> Any:
			_ensure_initialized()

			result = func(*args, **kwargs)

			if condition is not None and not _check(condition, *args, **kwargs):
				return result
			if unless is not None and _check(unless, result):
				return result

			_store(args, kwargs, result)
			return result

		return cast(F, wrapper)

	return decorator


def cache_evict(
	*,
	namespace: Optional[str] = None,
	key: Optional[str] = None,
	all_entries: bool = False,
	before_invocation: bool = False,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Predicate] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[F], F]:
	"""Cache eviction decorator similar to Spring's @CacheEvict.

	``all_entries=True`` flushes the whole backend.
	"""
	if not all_entries and namespace is None:
		raise ValueError("cache_evict requires `namespace` when all_entries=False.")

	def decorator(func: F) -> F:

		def _evict(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
			try:
				backend = CacheConfig.get_backend()
				if all_entries:
					if not backend.flush():
						logger.warning("cache_evict: flush did not remove every entry")
					return

				cache_key = _build_cache_key(
					func=func,
					args=args,
					kwargs=kwargs,
					namespace=cast(str, namespace),
					key=key,
					key_builder=key_builder,
					excluded_params=excluded_params,
				)
				backend.forget(cache_key)
			except Exception:
				logger.exception("cache_evict: eviction failed for %s", func.__qualname__)

		if inspect.iscoroutinefunction(func):

			@functools.wraps(func)
			async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
				_ensure_initialized()

				if condition is not None and not await _check_async(condition, *args, **kwargs):
					return await func(*args, **kwargs)

				if before_invocation:
					_evict(args, kwargs)
				result = await func(*args, **kwargs)
				if not before_invocation:
					_evict(args, kwargs)
				return result

			return cast(F, async_wrapper)

		@functools.wraps(func)
		def wrapper(*args: Any, **kwargs: Any) -> Any:
			_ensure_initialized()

			if condition is not None and not _check(condition, *args, **kwargs):
				return func(*args, **kwargs)

			if before_invocation:
				_evict(args, kwargs)
			result = func(*args, **kwargs)
			if not before_invocation:
				_evict(args, kwargs)
			return result

		return cast(F, wrapper)

	return decorator
