"""Chain builder accumulating middleware into one composed handler."""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from .compose import compose
from .context import RunContext, reset_run_context, set_run_context
from .helpers import as_list, noop_next
from .middleware import (
    get_after_middleware,
    get_before_middleware,
    get_branch_middleware,
    get_caught_middleware,
    get_concurrency_middleware,
    get_drop_middleware,
    get_enforce_middleware,
    get_error_boundary_middleware,
    get_filter_middleware,
    get_fork_middleware,
    get_lazy_middleware,
    get_route_middleware,
    get_tap_middleware,
    skip_middleware,
)
from .types import (
    BranchCondition,
    CaughtHandler,
    ErrorBoundaryHandler,
    LazyMiddlewareFactory,
    MaybeSequence,
    Middleware,
    MiddlewareFn,
    Next,
    Router,
    RouteTable,
)

C = TypeVar("C")


class Composer(Generic[C]):
    """A flexible middleware composer for building, routing and managing chains.

    A Composer owns exactly one composed handler. Every combinator method
    replaces it with the composition of the old handler and the new
    stage(s), so stages run in the order they were added.

    Methods that add a sub-chain (``tap``, ``fork``, ``filter``, ``drop``,
    ``error_boundary``) return the sub-chain's own Composer. It stays wired
    into this chain, so middleware added to it later also runs when this
    chain reaches it. All other methods return ``self`` for chaining.

    Examples:
        Build and run a pipeline:

        >>> composer = (
        ...     Composer[dict]()
        ...     .use(parse_request)
        ...     .route(lambda ctx: ctx["kind"], {"a": handle_a, "b": handle_b})
        ... )
        >>> await composer.run({"kind": "a"})

        Extend a conditional sub-chain:

        >>> admin = composer.filter(lambda ctx: ctx["user"].is_admin)
        >>> admin.use(load_audit_log).use(render_admin_panel)
    """

    @classmethod
    def builder(cls, *middleware: Middleware) -> "Composer[C]":
        return cls(*middleware)

    def __init__(self, *middleware: Middleware):
        """Create a composer.

        Args:
            *middleware: Initial stages. With none, the composer passes
                straight through to the continuation.

        Raises:
            InvalidMiddlewareError: If any stage is not callable.
        """
        self._handler: MiddlewareFn = compose(*middleware) if middleware else skip_middleware

    @property
    def middleware(self) -> MiddlewareFn:
        """The current composed handler."""
        return self._handler

    def clone(self) -> "Composer[C]":
        """Create an independent composer starting from the current handler."""
        return Composer(self._handler)

    def _attach(self, sub: "Composer[C]") -> None:
        # Late-bound so that stages added to ``sub`` afterwards still run
        self._handler = compose(self._handler, _delegate(sub))

    def use(self, *middleware: Middleware) -> "Composer[C]":
        """Add middleware to the chain."""
        self._attach(Composer(*middleware))
        return self

    def lazy(self, factory: LazyMiddlewareFactory) -> "Composer[C]":
        """Resolve the middleware to run from the context on every call."""
        return self.use(get_lazy_middleware(factory))

    def tap(self, *middleware: Middleware) -> "Composer[C]":
        """Run middleware for side effects and always continue."""
        sub: Composer[C] = Composer(*(get_tap_middleware(mw) for mw in middleware))
        self._attach(sub)
        return sub

    def fork(self, *middleware: Middleware) -> "Composer[C]":
        """Run middleware in a separate task alongside the main chain."""
        sub: Composer[C] = Composer(*middleware)
        self.use(get_fork_middleware(_delegate(sub)))
        return sub

    def branch(
        self,
        condition: BranchCondition,
        true_middleware: MaybeSequence[Middleware],
        false_middleware: MaybeSequence[Middleware],
    ) -> "Composer[C]":
        """Choose between two sets of middleware by condition."""
        return self.use(get_branch_middleware(condition, true_middleware, false_middleware))

    def filter(self, condition: BranchCondition, *middleware: Middleware) -> "Composer[C]":
        """Run middleware when the condition holds, otherwise skip it."""
        sub: Composer[C] = Composer(*middleware)
        self.use(get_filter_middleware(condition, _delegate(sub)))
        return sub

    def drop(self, condition: BranchCondition, *middleware: Middleware) -> "Composer[C]":
        """Run middleware when the condition holds, otherwise stop the chain."""
        sub: Composer[C] = Composer(*middleware)
        self.use(get_drop_middleware(condition, _delegate(sub)))
        return sub

    def route(
        self,
        router: Router,
        routes: RouteTable,
        fallback: Middleware = skip_middleware,
    ) -> "Composer[C]":
        """Pick middleware from a route table by key.

        Examples:
            >>> routes = {
            ...     "even": handle_even_updates,
            ...     "odd": handle_odd_updates,
            ... }
            >>> composer.route(
            ...     lambda ctx: "even" if ctx["update_id"] % 2 == 0 else "odd",
            ...     routes,
            ... )
        """
        return self.use(get_route_middleware(router, routes, fallback))

    def before(
        self,
        before_middleware: MaybeSequence[Middleware],
        middleware: MaybeSequence[Middleware],
    ) -> "Composer[C]":
        """Run ``before_middleware`` first; continue only if all of it does."""
        return self.use(get_before_middleware(as_list(before_middleware), as_list(middleware)))

    def after(
        self,
        middleware: MaybeSequence[Middleware],
        after_middleware: MaybeSequence[Middleware],
    ) -> "Composer[C]":
        """Run ``after_middleware`` once all of ``middleware`` continued."""
        return self.use(get_after_middleware(as_list(middleware), as_list(after_middleware)))

    def enforce(
        self,
        before_middleware: Sequence[Middleware],
        middleware: Sequence[Middleware],
        after_middleware: Sequence[Middleware],
    ) -> "Composer[C]":
        """Run before, main and after middleware as gated phases."""
        return self.use(get_enforce_middleware(before_middleware, middleware, after_middleware))

    def concurrency(self, middlewares: Sequence[Middleware]) -> "Composer[C]":
        """Launch middleware concurrently; continue if every one continues."""
        return self.use(get_concurrency_middleware(middlewares))

    def caught(self, handler: CaughtHandler) -> "Composer[C]":
        """Catch errors raised by middleware added after this call."""
        return self.use(get_caught_middleware(handler))

    def error_boundary(self, handler: ErrorBoundaryHandler, *middleware: Middleware) -> "Composer[C]":
        """Install an error boundary around the given middleware.

        > This is an advanced function.

        Errors raised inside the protected middleware cannot bubble out of
        the boundary unless ``handler`` re-raises them, in which case the
        next surrounding boundary sees them. The handler resumes the outer
        chain by calling the continuation it receives.

        Returns:
            The Composer of the protected middleware.
        """
        sub: Composer[C] = Composer(*middleware)
        self.use(get_error_boundary_middleware(handler, _delegate(sub)))
        return sub

    def enter(self, parent: "Composer[Any]") -> "Composer[Any]":
        """Append this composer's current chain to ``parent``.

        Examples:
            >>> parent = Composer()
            >>> child = Composer()
            >>> parent.tap(lambda ctx, next: print("1"))
            >>> child.tap(lambda ctx, next: print("2"))
            >>> await parent.run({})  # 1
            >>> child.enter(parent)
            >>> await parent.run({})  # 1 2
        """
        parent.use(self._handler)
        return parent

    async def run(self, ctx: C) -> Any:
        """Run the chain with a no-op terminal continuation.

        A fresh :class:`~conduit.context.RunContext` is current for the
        duration of the run.
        """
        token = set_run_context(RunContext.create())
        try:
            return await self._handler(ctx, noop_next)
        finally:
            reset_run_context(token)


def _delegate(composer: Composer[Any]) -> MiddlewareFn:
    async def delegate(ctx: Any, next: Next) -> Any:
        return await composer.middleware(ctx, next)

    return delegate
