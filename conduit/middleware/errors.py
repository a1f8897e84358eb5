"""Error isolation combinators: caught and error boundaries."""

import logging
from typing import Any

from ..exceptions import BoundaryError
from ..helpers import assert_middlewares, flatten_middleware, resolve
from ..types import CaughtHandler, ErrorBoundaryHandler, Middleware, MiddlewareFn, Next

LOGGER = logging.getLogger(__name__)


def get_caught_middleware(handler: CaughtHandler) -> MiddlewareFn:
    """Catch errors raised downstream of this stage.

    Only the stages after this one are protected. The handler's result
    becomes the result of this stage.

    Args:
        handler: Called as ``handler(ctx, error)`` instead of propagating.
    """

    async def caught(ctx: Any, next: Next) -> Any:
        try:
            return await next()
        except Exception as error:
            LOGGER.debug("Caught %s downstream", type(error).__name__)
            return await resolve(handler(ctx, error))

    return caught


def get_error_boundary_middleware(
    handler: ErrorBoundaryHandler, middleware: Middleware
) -> MiddlewareFn:
    """Protect an isolated sub-chain with an error handler.

    The protected middleware runs with its own continuation. If it
    completes and called that continuation, the outer chain continues.
    If it raises, ``handler`` receives a :class:`BoundaryError` and a
    continuation of its own:

    - calling it resumes the outer chain past the failure;
    - not calling it halts the outer chain without raising;
    - raising from the handler propagates to the next enclosing boundary.

    Errors can therefore only leave the boundary through the handler.
    """
    protected = flatten_middleware(middleware)
    assert_middlewares([protected])

    async def error_boundary(ctx: Any, next: Next) -> Any:
        next_called = False

        async def cont() -> None:
            nonlocal next_called
            next_called = True

        try:
            await resolve(protected(ctx, cont))
        except Exception as error:
            LOGGER.debug("Error boundary intercepted %s", type(error).__name__)
            next_called = False
            await resolve(handler(BoundaryError(error, ctx), cont))

        if next_called:
            return await next()
        return None

    return error_boundary
