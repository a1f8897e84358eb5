"""Conduit - middleware composition engine for asyncio.

This module provides the public API for composing continuation-passing
middleware chains.
"""

from .compose import compose
from .composer import Composer
from .config import ConduitSettings, get_settings
from .context import RunContext, get_run_context
from .exceptions import (
    BoundaryError,
    ConduitError,
    InvalidMiddlewareError,
    NextCalledMultipleTimesError,
)
from .helpers import flatten_middleware, noop_next, observe
from .middleware import LoggingMiddleware, skip_middleware, stop_middleware
from .types import HasMiddleware, Middleware, MiddlewareFn, Next

__all__ = [
    # Composition
    "Composer",
    "compose",
    # Helpers
    "flatten_middleware",
    "noop_next",
    "observe",
    "skip_middleware",
    "stop_middleware",
    "LoggingMiddleware",
    # Types
    "HasMiddleware",
    "Middleware",
    "MiddlewareFn",
    "Next",
    # Errors
    "BoundaryError",
    "ConduitError",
    "InvalidMiddlewareError",
    "NextCalledMultipleTimesError",
    # Runtime
    "ConduitSettings",
    "RunContext",
    "get_run_context",
    "get_settings",
]
