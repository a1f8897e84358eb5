"""Runtime settings using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class ConduitSettings(BaseSettings):
    """Settings for the composition engine.

    All settings can be configured via environment variables with the
    CONDUIT_ prefix. For example:
    - CONDUIT_LOG_LEVEL=INFO
    - CONDUIT_ERROR_PREVIEW_LENGTH=80

    Attributes:
        log_level: Default level name used by LoggingMiddleware when none
            is given explicitly.
        error_preview_length: Number of characters of a raised text value
            kept in a BoundaryError message.

    Example:
        >>> settings = get_settings()
        >>> settings.error_preview_length
        50
    """

    log_level: str = "DEBUG"
    error_preview_length: int = Field(default=50, gt=0)

    model_config = {"env_prefix": "CONDUIT_"}


@lru_cache
def get_settings() -> ConduitSettings:
    """Get the process-wide settings.

    The instance is cached; call ``get_settings.cache_clear()`` to re-read
    the environment.
    """
    return ConduitSettings()
