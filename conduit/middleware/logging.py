"""Logging middleware for tracing pipeline runs."""

import logging
from typing import Any

from ..config import get_settings
from ..context import get_run_context
from ..types import MiddlewareFn, Next

LOGGER = logging.getLogger(__name__)


class LoggingMiddleware:
    """Middleware that logs when the chain passes through it.

    Logs ``"Entering stage"`` before calling ``next()`` and
    ``"Leaving stage"`` once everything downstream has finished, both at
    the configured level. The context itself is NOT logged to avoid
    exposing sensitive data; only the stage name and the run ID are
    attached as ``extra`` fields.

    The middleware always continues and never intercepts errors.

    Attributes:
        level: The numeric logging level (e.g., logging.INFO,
            logging.DEBUG).
        name: Name identifying this stage in log records.

    Examples:
        Trace a pipeline at INFO:

        >>> composer = Composer(LoggingMiddleware("INFO", name="auth"), check_auth)

        Level taken from CONDUIT_LOG_LEVEL:

        >>> composer.use(LoggingMiddleware())
    """

    __slots__ = ("level", "name")

    def __init__(self, level: str | None = None, name: str = "conduit"):
        """Initialize the logging middleware.

        Args:
            level: String representation of the log level (e.g.,
                "INFO", "DEBUG"). Case-insensitive. Defaults to the
                configured ``log_level``.
            name: Name identifying this stage in log records.

        Raises:
            ValueError: If ``level`` is not a known logging level.
        """
        level_name = (level or get_settings().log_level).upper()
        levels = logging.getLevelNamesMapping()
        if level_name not in levels:
            raise ValueError(f"Unknown log level: {level_name}")
        self.level = levels[level_name]
        self.name = name

    @property
    def middleware(self) -> MiddlewareFn:
        return self.log_stage

    async def log_stage(self, ctx: Any, next: Next) -> Any:
        """Log around the downstream chain.

        Args:
            ctx: The pipeline context (not logged).
            next: The continuation.

        Returns:
            The result of the downstream chain.
        """
        extra = {"stage": self.name}

        run = get_run_context()
        if run.run_id is not None:
            extra["run_id"] = str(run.run_id)

        LOGGER.log(self.level, "Entering stage", extra=extra)
        result = await next()
        LOGGER.log(self.level, "Leaving stage", extra=extra)
        return result
