"""Exceptions raised by the composition engine."""

from typing import Any, Generic, TypeVar

from .config import get_settings

C = TypeVar("C")


class ConduitError(Exception):
    """Base class for all errors raised by conduit."""

    pass


class InvalidMiddlewareError(ConduitError, TypeError):
    """Raised when a middleware value is not callable after flattening.

    This is raised eagerly, at composition time, never when the composed
    handler is invoked.
    """

    def __init__(self, middleware: Any):
        self.middleware = middleware
        super().__init__(
            f"Middleware must be composed of functions, got {type(middleware).__name__}"
        )


class NextCalledMultipleTimesError(ConduitError, RuntimeError):
    """Raised when a stage invokes its continuation a second time."""

    def __init__(self) -> None:
        super().__init__("next() called multiple times")


class BoundaryError(ConduitError, Generic[C]):
    """Error handed to an error boundary handler.

    Wraps the value raised inside the protected part of the chain together
    with the context that was flowing through it at the time.

    Attributes:
        error: The original raised value.

    Examples:
        >>> async def on_error(err: BoundaryError, next):
        ...     err.ctx["failed"] = True
        ...     if isinstance(err.error, ValueError):
        ...         await next()  # resume the outer chain
    """

    def __init__(self, error: Any, ctx: C):
        super().__init__(_describe(error))
        self.error = error
        self._ctx = ctx
        if isinstance(error, BaseException):
            self.__cause__ = error

    @property
    def ctx(self) -> C:
        """The context at the moment of failure."""
        return self._ctx

    @property
    def context(self) -> C:
        """Alias of :attr:`ctx`."""
        return self._ctx


def _describe(error: Any) -> str:
    if isinstance(error, BaseException):
        return f"{type(error).__name__} in middleware: {error}"

    message = f"Non-error value of type {type(error).__name__} thrown in middleware"
    if isinstance(error, bool | int | float | complex):
        return f"{message}: {error}"
    if isinstance(error, str):
        return f"{message}: {error[: get_settings().error_preview_length]}"
    return f"{message}!"
