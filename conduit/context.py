"""Execution context identifying the current pipeline run."""

import contextvars
from dataclasses import dataclass

from ulid import ULID


@dataclass(frozen=True)
class RunContext:
    """Immutable marker identifying one run of a composed pipeline.

    :meth:`Composer.run` creates a fresh RunContext for every run and keeps
    it current while the pipeline executes, so log records emitted by
    different stages of the same run share a ``run_id``. Tasks spawned by
    ``fork`` and ``concurrency`` inherit it through ``contextvars``.

    Attributes:
        run_id: Unique ID of the run, or None outside of any run.

    Examples:
        >>> ctx = RunContext.create()
        >>> print(ctx.run_id)  # Auto-generated ULID
    """

    run_id: ULID | None = None

    @classmethod
    def create(cls, run_id: ULID | None = None) -> "RunContext":
        """Create a new run context.

        Args:
            run_id: Optional run ID. If not provided, a new ULID is
                generated.

        Returns:
            A new RunContext instance.
        """
        if run_id is None:
            run_id = ULID()
        return cls(run_id=run_id)


_run_context: contextvars.ContextVar[RunContext | None] = contextvars.ContextVar(
    "run_context", default=None
)


def get_run_context() -> RunContext:
    """Get the current run context.

    If no run is in progress, returns an empty RunContext.
    """
    ctx = _run_context.get()
    if ctx is None:
        return RunContext()
    return ctx


def set_run_context(context: RunContext | None) -> contextvars.Token[RunContext | None]:
    """Set the current run context.

    Returns:
        A token that restores the previous context when passed to
        :func:`reset_run_context`.
    """
    return _run_context.set(context)


def reset_run_context(token: contextvars.Token[RunContext | None]) -> None:
    """Restore the run context that was current before ``set_run_context``."""
    _run_context.reset(token)


def clear_run_context() -> None:
    """Clear the current run context.

    This is useful for cleanup or testing.
    """
    _run_context.set(None)
