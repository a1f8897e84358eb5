"""Central test fixtures."""

from typing import Any

import pytest

from conduit.config import get_settings
from conduit.context import clear_run_context


@pytest.fixture
def ctx() -> dict[str, Any]:
    """Create a fresh pipeline context with an ordered log."""
    return {"log": []}


@pytest.fixture
def recorder():
    """Build middleware that appends start/end markers to ``ctx["log"]``."""

    def make(name: str, *, call_next: bool = True):
        async def middleware(ctx: dict[str, Any], next) -> None:
            ctx["log"].append(f"start{name}")
            if call_next:
                await next()
            ctx["log"].append(f"end{name}")

        return middleware

    return make


@pytest.fixture(autouse=True)
def clear_run_context_and_settings():
    """Reset the run context and cached settings after each test."""
    yield
    clear_run_context()
    get_settings.cache_clear()
