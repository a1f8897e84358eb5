"""Combinators producing middleware functions.

Each ``get_*_middleware`` factory returns a plain ``(context, next)``
middleware that can be passed to :func:`~conduit.compose` or
:meth:`Composer.use <conduit.Composer.use>`.
"""

from .concurrency import get_concurrency_middleware, get_fork_middleware
from .errors import get_caught_middleware, get_error_boundary_middleware
from .flow import (
    get_branch_middleware,
    get_drop_middleware,
    get_filter_middleware,
    get_lazy_middleware,
    get_route_middleware,
    get_tap_middleware,
    skip_middleware,
    stop_middleware,
)
from .logging import LoggingMiddleware
from .ordering import get_after_middleware, get_before_middleware, get_enforce_middleware

__all__ = [
    # Sequencing
    "skip_middleware",
    "stop_middleware",
    "get_tap_middleware",
    "get_lazy_middleware",
    # Branching
    "get_branch_middleware",
    "get_filter_middleware",
    "get_drop_middleware",
    "get_route_middleware",
    # Ordering
    "get_before_middleware",
    "get_after_middleware",
    "get_enforce_middleware",
    # Fan-out
    "get_concurrency_middleware",
    "get_fork_middleware",
    # Error isolation
    "get_caught_middleware",
    "get_error_boundary_middleware",
    # Tracing
    "LoggingMiddleware",
]
