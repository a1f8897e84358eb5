import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from conduit import Composer, InvalidMiddlewareError, NextCalledMultipleTimesError, compose


@pytest.mark.asyncio
async def test_compose_runs_stages_as_nested_calls(ctx, recorder):
    handler = compose(recorder("1"), recorder("2"), recorder("3"))

    await handler(ctx, AsyncMock())

    assert ctx["log"] == ["start1", "start2", "start3", "end3", "end2", "end1"]


@pytest.mark.asyncio
async def test_compose_calls_terminal_continuation_last(ctx, recorder):
    async def terminal():
        ctx["log"].append("terminal")

    await compose(recorder("1"), recorder("2"))(ctx, terminal)

    assert ctx["log"] == ["start1", "start2", "terminal", "end2", "end1"]


@pytest.mark.asyncio
async def test_compose_without_handlers_only_calls_terminal(ctx):
    terminal = AsyncMock(return_value="done")

    result = await compose()(ctx, terminal)

    terminal.assert_awaited_once_with()
    assert result == "done"


@pytest.mark.asyncio
async def test_compose_without_terminal_resolves(ctx, recorder):
    await compose(recorder("1"))(ctx)

    assert ctx["log"] == ["start1", "end1"]


@pytest.mark.asyncio
async def test_compose_passes_same_context_instance(ctx):
    seen = []

    async def first(c, next):
        seen.append(c)
        await next()

    def second(c, next):
        seen.append(c)

    await compose(first, second)(ctx)

    assert seen[0] is ctx
    assert seen[1] is ctx


@pytest.mark.asyncio
async def test_compose_accepts_sync_middleware(ctx):
    def sync_stage(c, next):
        c["sync"] = True
        return next()

    terminal = AsyncMock()

    await compose(sync_stage)(ctx, terminal)

    assert ctx["sync"] is True
    terminal.assert_awaited_once()


@pytest.mark.asyncio
async def test_compose_returns_first_stage_result(ctx):
    async def first(c, next):
        inner = await next()
        return f"first({inner})"

    async def second(c, next):
        return "second"

    assert await compose(first, second)(ctx) == "first(second)"


@pytest.mark.asyncio
async def test_stage_not_calling_next_halts_chain(ctx, recorder):
    terminal = AsyncMock()

    await compose(recorder("1"), recorder("2", call_next=False), recorder("3"))(ctx, terminal)

    assert ctx["log"] == ["start1", "start2", "end2", "end1"]
    terminal.assert_not_awaited()


@pytest.mark.asyncio
async def test_calling_next_twice_raises(ctx):
    async def twice(c, next):
        await next()
        await next()

    with pytest.raises(NextCalledMultipleTimesError, match="next\\(\\) called multiple times"):
        await compose(twice, AsyncMock())(ctx)


@pytest.mark.asyncio
async def test_stale_continuation_of_upstream_stage_raises(ctx):
    captured = {}

    async def first(c, next):
        captured["next"] = next
        await next()

    async def second(c, next):
        await captured["next"]()

    with pytest.raises(NextCalledMultipleTimesError):
        await compose(first, second)(ctx)


@pytest.mark.asyncio
async def test_concurrent_invocations_are_independent():
    gate = asyncio.Event()

    async def wait(c, next):
        await gate.wait()
        await next()

    async def mark(c, next):
        c["done"] = True

    handler = compose(wait, mark)
    first, second = {}, {}
    tasks = [asyncio.create_task(handler(first)), asyncio.create_task(handler(second))]
    await asyncio.sleep(0)
    gate.set()
    await asyncio.gather(*tasks)

    assert first == {"done": True}
    assert second == {"done": True}


@pytest.mark.asyncio
async def test_compose_propagates_errors(ctx, recorder):
    async def failing(c, next):
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await compose(recorder("1"), failing)(ctx)

    assert ctx["log"] == ["start1"]


@pytest.mark.asyncio
async def test_compose_flattens_middleware_objects(ctx, recorder):
    inner = Composer(recorder("inner"))

    await compose(inner, recorder("outer"))(ctx)

    assert ctx["log"] == ["startinner", "startouter", "endouter", "endinner"]


def test_compose_rejects_non_callable_eagerly():
    with pytest.raises(InvalidMiddlewareError, match="got int"):
        compose(Mock(), 42)


def test_invalid_middleware_error_is_type_error():
    with pytest.raises(TypeError):
        compose("not a middleware")
