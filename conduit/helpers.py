"""Normalization and continuation helpers used by every combinator."""

import inspect
from collections.abc import Iterable
from typing import Any, TypeVar

from .exceptions import InvalidMiddlewareError, NextCalledMultipleTimesError
from .types import HasMiddleware, Middleware, MiddlewareFn, MaybeAwaitable, MaybeSequence

T = TypeVar("T")


def flatten_middleware(middleware: Middleware) -> MiddlewareFn:
    """Normalize a middleware into its plain function form.

    Callables are returned as-is. Objects satisfying
    :class:`~conduit.types.HasMiddleware` are projected onto their
    ``middleware`` attribute. Anything else is returned unchanged so that
    validation can report it.
    """
    if callable(middleware):
        return middleware
    if isinstance(middleware, HasMiddleware):
        return middleware.middleware
    return middleware


def assert_middleware(middleware: Any) -> None:
    """Raise InvalidMiddlewareError unless ``middleware`` is callable."""
    if not callable(middleware):
        raise InvalidMiddlewareError(middleware)


def assert_middlewares(middlewares: Iterable[Any]) -> None:
    for middleware in middlewares:
        assert_middleware(middleware)


def as_list(value: MaybeSequence[T]) -> list[T]:
    """Wrap a single value in a list, copying sequences."""
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


async def resolve(value: MaybeAwaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it."""
    if inspect.isawaitable(value):
        return await value
    return value


async def noop_next() -> None:
    """Continuation that does nothing."""
    return None


async def observe(context: Any, middleware: MiddlewareFn) -> bool:
    """Run a middleware and report whether it invoked its continuation.

    The continuation handed to ``middleware`` only records that it was
    called. Calling it a second time raises NextCalledMultipleTimesError.

    Args:
        context: The context passed to the middleware.
        middleware: The middleware function to run.

    Returns:
        True if the middleware called ``next()`` exactly once, False if it
        never did.

    Raises:
        NextCalledMultipleTimesError: If ``next()`` is called twice.
        Exception: Anything raised by the middleware itself.
    """
    called = False

    async def next() -> None:
        nonlocal called
        if called:
            raise NextCalledMultipleTimesError()
        called = True

    await resolve(middleware(context, next))
    return called
