"""Sequencing and branching combinators."""

from typing import Any

from ..compose import compose
from ..helpers import as_list, assert_middlewares, flatten_middleware, noop_next, resolve
from ..types import (
    BranchCondition,
    LazyMiddlewareFactory,
    MaybeSequence,
    Middleware,
    MiddlewareFn,
    Next,
    Router,
    RouteTable,
)


async def skip_middleware(ctx: Any, next: Next) -> Any:
    """Pass-through: always calls ``next()``."""
    return await next()


async def stop_middleware(ctx: Any, next: Next) -> None:
    """Terminates the chain: never calls ``next()``."""
    return None


def get_tap_middleware(middleware: Middleware) -> MiddlewareFn:
    """Run a middleware for its side effects and always continue.

    The wrapped middleware receives a no-op continuation, so whether it
    calls ``next()`` has no influence on the chain.
    """
    handler = flatten_middleware(middleware)
    assert_middlewares([handler])

    async def tap(ctx: Any, next: Next) -> Any:
        await resolve(handler(ctx, noop_next))
        return await next()

    return tap


def get_lazy_middleware(factory: LazyMiddlewareFactory) -> MiddlewareFn:
    """Resolve the middleware to run when the chain reaches it.

    The factory is called with the context on every invocation and may
    return one middleware or a sequence of them, synchronously or as an
    awaitable.

    Example:
        >>> async def pick(ctx):
        ...     return await load_handlers(ctx["path"])
        >>> composer.use(get_lazy_middleware(pick))
    """

    async def lazy(ctx: Any, next: Next) -> Any:
        middleware = await resolve(factory(ctx))
        return await compose(*as_list(middleware))(ctx, next)

    return lazy


def get_branch_middleware(
    condition: BranchCondition,
    true_middleware: MaybeSequence[Middleware],
    false_middleware: MaybeSequence[Middleware],
) -> MiddlewareFn:
    """Choose between two sub-chains on every invocation.

    Args:
        condition: A literal bool, or a (possibly async) predicate over
            the context. Predicates are evaluated on every call.
        true_middleware: Middleware run when the condition holds.
        false_middleware: Middleware run otherwise.
    """

    async def select(ctx: Any) -> MaybeSequence[Middleware]:
        if not callable(condition):
            return true_middleware if condition else false_middleware
        return true_middleware if await resolve(condition(ctx)) else false_middleware

    return get_lazy_middleware(select)


def get_filter_middleware(
    condition: BranchCondition, middleware: MaybeSequence[Middleware]
) -> MiddlewareFn:
    """Run ``middleware`` when the condition holds, otherwise skip it."""
    return get_branch_middleware(condition, middleware, skip_middleware)


def get_drop_middleware(
    condition: BranchCondition, middleware: MaybeSequence[Middleware]
) -> MiddlewareFn:
    """Run ``middleware`` when the condition holds, otherwise stop the chain."""
    return get_branch_middleware(condition, middleware, stop_middleware)


def get_route_middleware(
    router: Router,
    routes: RouteTable,
    fallback: Middleware = skip_middleware,
) -> MiddlewareFn:
    """Dispatch to one of several middleware by key.

    The router maps the context to a key on every invocation. The matching
    entry of ``routes`` runs when the key is not None and maps to a value;
    ``fallback`` runs otherwise.

    Example:
        >>> get_route_middleware(
        ...     lambda ctx: "even" if ctx["update_id"] % 2 == 0 else "odd",
        ...     {"even": handle_even, "odd": handle_odd},
        ... )
    """

    async def select(ctx: Any) -> Middleware:
        key = await resolve(router(ctx))
        if key is None:
            return fallback
        try:
            middleware = routes.get(key)
        except TypeError:
            # Unhashable keys cannot be in the table
            return fallback
        return middleware or fallback

    return get_lazy_middleware(select)
