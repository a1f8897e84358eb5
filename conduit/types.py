"""Type aliases and protocols shared by the dispatcher and combinators.

A middleware is either a plain two-argument callable ``(context, next)`` or
an object exposing such a callable through its ``middleware`` attribute.
Callables may be synchronous or return an awaitable.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from .exceptions import BoundaryError

T = TypeVar("T")

MaybeAwaitable: TypeAlias = T | Awaitable[T]
MaybeSequence: TypeAlias = T | Sequence[T]

# Continuation: runs everything downstream of the current stage
Next = Callable[[], Awaitable[Any]]

MiddlewareFn = Callable[[Any, Next], Any]


@runtime_checkable
class HasMiddleware(Protocol):
    """Protocol for objects carrying a middleware function.

    Anything with a ``middleware`` attribute holding a
    ``(context, next)`` callable can be used wherever a middleware is
    accepted. :class:`~conduit.Composer` is the canonical example.

    Examples:
        >>> class Auth:
        ...     @property
        ...     def middleware(self) -> MiddlewareFn:
        ...         return self.check
        ...
        ...     async def check(self, ctx, next):
        ...         if ctx.get("user"):
        ...             await next()
    """

    @property
    def middleware(self) -> MiddlewareFn:
        """The contained middleware function."""
        ...


Middleware: TypeAlias = MiddlewareFn | HasMiddleware

BranchCondition: TypeAlias = bool | Callable[[Any], MaybeAwaitable[bool]]

LazyMiddlewareFactory = Callable[[Any], MaybeAwaitable[MaybeSequence[Middleware]]]

Router = Callable[[Any], MaybeAwaitable[Any]]

RouteTable: TypeAlias = Mapping[Any, Middleware]

CaughtHandler = Callable[[Any, Exception], Any]

ErrorBoundaryHandler = Callable[["BoundaryError[Any]", Next], Any]
