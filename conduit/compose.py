"""Continuation dispatcher.

:func:`compose` turns an ordered sequence of middleware into a single
middleware. Each stage receives the shared context and a continuation that
runs the rest of the chain, so stages nest like function calls: code before
``await next()`` runs downstream in declaration order, code after it runs in
reverse order on the way back.
"""

from collections.abc import Sequence
from typing import Any

from .exceptions import NextCalledMultipleTimesError
from .helpers import assert_middlewares, flatten_middleware, resolve
from .types import Middleware, MiddlewareFn, Next


class _Dispatch:
    """Dispatch state owned by one invocation of a composed handler.

    ``last_index`` only moves forward. A continuation whose index is not
    ahead of it has already been consumed.
    """

    __slots__ = ("handlers", "context", "terminal", "last_index")

    def __init__(self, handlers: Sequence[MiddlewareFn], context: Any, terminal: Next | None):
        self.handlers = handlers
        self.context = context
        self.terminal = terminal
        self.last_index = -1

    async def __call__(self, index: int) -> Any:
        if index <= self.last_index:
            raise NextCalledMultipleTimesError()
        self.last_index = index

        if index == len(self.handlers):
            if self.terminal is None:
                return None
            return await resolve(self.terminal())

        handler = self.handlers[index]
        return await resolve(handler(self.context, lambda: self(index + 1)))


def compose(*middleware: Middleware) -> MiddlewareFn:
    """Compose middleware into a single middleware function.

    Every argument is flattened and validated immediately.

    Args:
        *middleware: Middleware functions or objects carrying one.

    Returns:
        An async middleware function ``(context, next=None)``. Invoking it
        runs the stages in order and finally ``next`` (if given).

    Raises:
        InvalidMiddlewareError: If any argument is not callable after
            flattening.

    Examples:
        >>> async def first(ctx, next):
        ...     ctx["log"].append("first")
        ...     await next()
        >>> async def second(ctx, next):
        ...     ctx["log"].append("second")
        >>> handler = compose(first, second)
        >>> await handler({"log": []})
    """
    handlers = tuple(flatten_middleware(mw) for mw in middleware)
    assert_middlewares(handlers)

    async def composed(context: Any, next: Next | None = None) -> Any:
        return await _Dispatch(handlers, context, next)(0)

    return composed
