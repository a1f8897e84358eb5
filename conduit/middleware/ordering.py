"""Phase ordering combinators: before, after and enforce.

Each phase boundary is gated: every stage of the earlier phase must call
``next()`` before the later phase starts. Stages of a gated phase run one
after another, each with its own continuation. Every stage of the phase
runs even when an earlier one did not continue.
"""

from collections.abc import Sequence
from typing import Any

from ..compose import compose
from ..helpers import assert_middlewares, flatten_middleware, observe
from ..types import Middleware, MiddlewareFn, Next


async def _all_continue(ctx: Any, middlewares: Sequence[MiddlewareFn]) -> bool:
    results = [await observe(ctx, middleware) for middleware in middlewares]
    return all(results)


def get_before_middleware(
    before_middlewares: Sequence[Middleware],
    middlewares: Sequence[Middleware],
) -> MiddlewareFn:
    """Run ``before_middlewares`` ahead of the main middleware.

    Example:
        >>> get_before_middleware([load_user], [render_profile])
    """
    gates = [flatten_middleware(mw) for mw in before_middlewares]
    assert_middlewares(gates)
    main = compose(*middlewares)

    async def before(ctx: Any, next: Next) -> Any:
        if await _all_continue(ctx, gates):
            return await main(ctx, next)
        return None

    return before


def get_after_middleware(
    middlewares: Sequence[Middleware],
    after_middlewares: Sequence[Middleware],
) -> MiddlewareFn:
    """Run ``after_middlewares`` once the main middleware all continued.

    Example:
        >>> get_after_middleware([send_secure_data], [clear_secure_data])
    """
    gates = [flatten_middleware(mw) for mw in middlewares]
    assert_middlewares(gates)
    after_chain = compose(*after_middlewares)

    async def after(ctx: Any, next: Next) -> Any:
        if await _all_continue(ctx, gates):
            return await after_chain(ctx, next)
        return None

    return after


def get_enforce_middleware(
    before_middlewares: Sequence[Middleware],
    middlewares: Sequence[Middleware],
    after_middlewares: Sequence[Middleware],
) -> MiddlewareFn:
    """Run before, main and after phases in that order.

    Example:
        >>> get_enforce_middleware([prepare_data], [send_data], [clear_data])
    """
    return get_before_middleware(
        before_middlewares,
        [get_after_middleware(middlewares, after_middlewares)],
    )
