"""
Template value resolution.

A bound variable is one of three tagged variants:

- ``LiteralValue``: used as-is
- ``SyncFactory``: zero-argument callable, invoked at render time
- ``AsyncFactory``: zero-argument coroutine function, awaited at render time

Values are classified once, when they are bound, and resolution dispatches
on the tag. Resolving a render's variables is a fan-out/fan-in: every value
resolves independently and the caller only formats once all are done.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Union

from ..errors import MissingVariableError


@dataclass(frozen=True)
class LiteralValue:
    value: Any


@dataclass(frozen=True)
class SyncFactory:
    func: Callable[[], Any]


@dataclass(frozen=True)
class AsyncFactory:
    func: Callable[[], Awaitable[Any]]


BoundValue = Union[LiteralValue, SyncFactory, AsyncFactory]


def _is_coroutine_function(func: Any) -> bool:
    while isinstance(func, functools.partial):
        func = func.func
    if inspect.iscoroutinefunction(func):
        return True
    # callable objects with an async __call__
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


def bind_value(value: Any) -> BoundValue:
    """Classify a raw value into its tagged variant."""
    if isinstance(value, (LiteralValue, SyncFactory, AsyncFactory)):
        return value
    if callable(value):
        if _is_coroutine_function(value):
            return AsyncFactory(value)
        return SyncFactory(value)
    return LiteralValue(value)


def bind_values(values: Mapping[str, Any]) -> Dict[str, BoundValue]:
    return {name: bind_value(value) for name, value in values.items()}


def _call_sync_factory(factory: SyncFactory) -> Any:
    result = factory.func()
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(
            f"{factory.func!r} returned an awaitable; bind it as an async function"
        )
    return result


def resolve(value: BoundValue) -> Any:
    """Resolve a value without an event loop. Async factories are rejected."""
    if isinstance(value, LiteralValue):
        return value.value
    if isinstance(value, SyncFactory):
        return _call_sync_factory(value)
    if isinstance(value, AsyncFactory):
        raise TypeError("async values must be resolved with aresolve()")
    raise TypeError(f"Unsupported bound value: {value!r}")


async def aresolve(value: BoundValue) -> Any:
    if isinstance(value, AsyncFactory):
        return await value.func()
    return resolve(value)


def _lookup(name: str, values: Mapping[str, BoundValue]) -> BoundValue:
    try:
        return values[name]
    except KeyError:
        raise MissingVariableError(name) from None


def requires_event_loop(values: Iterable[BoundValue]) -> bool:
    return any(isinstance(v, AsyncFactory) for v in values)


def run_sync(awaitable: Awaitable[Any]) -> Any:
    """Drive a coroutine to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(awaitable)
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    raise RuntimeError(
        "Cannot resolve async template values inside a running event loop; "
        "use the async API (aformat / aformat_messages) instead"
    )


async def aresolve_all(
    names: Iterable[str], values: Mapping[str, BoundValue]
) -> Dict[str, Any]:
    """Resolve ``names`` concurrently and return them once all are done."""
    names = list(names)
    bound = [_lookup(name, values) for name in names]
    results = await asyncio.gather(*(aresolve(v) for v in bound))
    return dict(zip(names, results))


def resolve_all(names: Iterable[str], values: Mapping[str, BoundValue]) -> Dict[str, Any]:
    """
    Synchronous counterpart of :func:`aresolve_all`.

    Falls back to a private event loop when an async factory is involved.
    """
    names = list(names)
    bound = [_lookup(name, values) for name in names]
    if requires_event_loop(bound):
        return run_sync(aresolve_all(names, values))
    return {name: resolve(v) for name, v in zip(names, bound)}
