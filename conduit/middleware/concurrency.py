"""Fan-out combinators: concurrency and fork."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ..helpers import assert_middlewares, flatten_middleware, noop_next, observe, resolve
from ..types import Middleware, MiddlewareFn, Next

LOGGER = logging.getLogger(__name__)

# Strong references to running forks; the event loop only keeps weak ones
_forks: set[asyncio.Task[Any]] = set()


def get_concurrency_middleware(middlewares: Sequence[Middleware]) -> MiddlewareFn:
    """Launch middleware concurrently and continue if all of them do.

    Every middleware runs in its own task with an isolated continuation.
    The chain continues only when every one of them called ``next()``.

    Warning:
        The first error raised by any middleware propagates immediately.
        The remaining middleware are neither cancelled nor awaited, so
        their side effects may still be in flight when the caller sees the
        error.

    Example:
        >>> get_concurrency_middleware(
        ...     [initialize_user, initialize_session, initialize_database]
        ... )
    """
    handlers = [flatten_middleware(mw) for mw in middlewares]
    assert_middlewares(handlers)

    async def concurrency(ctx: Any, next: Next) -> Any:
        results = await asyncio.gather(*(observe(ctx, handler) for handler in handlers))
        if all(results):
            return await next()
        return None

    return concurrency


def _report_fork(task: asyncio.Task[Any]) -> None:
    _forks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        LOGGER.error(
            "Forked middleware failed",
            exc_info=error,
            extra={"task_name": task.get_name()},
        )


def get_fork_middleware(middleware: Middleware) -> MiddlewareFn:
    """Run a sub-chain alongside the rest of the chain.

    When reached, the sub-chain is started as a separate task with a no-op
    continuation and the outer chain continues right away. The outer chain
    does not wait for the fork, and whether the fork calls ``next()`` has no
    effect on it. Errors raised by the fork cannot reach any caller and are
    logged instead.

    Example:
        >>> get_fork_middleware(send_statistics)
    """
    handler = flatten_middleware(middleware)
    assert_middlewares([handler])

    async def run_fork(ctx: Any) -> None:
        await resolve(handler(ctx, noop_next))

    async def fork(ctx: Any, next: Next) -> Any:
        task = asyncio.create_task(run_fork(ctx))
        _forks.add(task)
        task.add_done_callback(_report_fork)
        return await next()

    return fork
