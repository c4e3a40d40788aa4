"""Tagged union of everything a route handler may hand back."""

import inspect
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from central.problem import Problem


@dataclass(frozen=True)
class Value[T]:
    """Plain serializable data."""

    payload: T


@dataclass(frozen=True)
class Streamable:
    """A payload written to the response incrementally.

    ``release`` is called at most once, when the client goes away before the
    source has been fully written.
    """

    source: AsyncIterable[bytes] | Iterable[bytes]
    release: Callable[[], Any] | None = None
    media_type: str | None = None


@dataclass(frozen=True)
class LazyUnit:
    """A deferred query: nothing runs until the thunk is invoked."""

    thunk: Callable[[], Any]


@dataclass(frozen=True)
class Deferred:
    """An asynchronous computation still to be awaited."""

    awaitable: Awaitable[Any]


Result = Value | Problem | Streamable | LazyUnit | Deferred


def as_result(value: Any) -> Result:
    """Tag a raw handler return value with exactly one Result variant.

    ``None`` becomes the empty-response internal problem.
    """
    if value is None:
        return Problem.internal.empty_response()
    if isinstance(value, (Value, Problem, Streamable, LazyUnit, Deferred)):
        return value
    if inspect.isawaitable(value):
        return Deferred(value)
    return Value(value)
