import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from conduit.middleware import get_concurrency_middleware, get_fork_middleware


@pytest.mark.asyncio
async def test_concurrency_continues_when_all_continue(ctx):
    next_handler = AsyncMock()

    async def s1(c, next):
        c["s1"] = True
        await next()

    async def s2(c, next):
        c["s2"] = True
        await next()

    await get_concurrency_middleware([s1, s2])(ctx, next_handler)

    assert ctx["s1"] and ctx["s2"]
    next_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrency_halts_when_one_does_not_continue(ctx):
    next_handler = AsyncMock()

    async def s1(c, next):
        await next()

    async def s2(c, next):
        pass

    await get_concurrency_middleware([s1, s2])(ctx, next_handler)

    next_handler.assert_not_called()


@pytest.mark.asyncio
async def test_concurrency_starts_stages_together(ctx):
    started = []
    both_started = asyncio.Event()

    def make(name):
        async def stage(c, next):
            started.append(name)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            await next()

        return stage

    next_handler = AsyncMock()

    await get_concurrency_middleware([make("a"), make("b")])(ctx, next_handler)

    assert sorted(started) == ["a", "b"]
    next_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrency_fails_fast_without_waiting_for_siblings(ctx):
    release = asyncio.Event()
    next_handler = AsyncMock()

    async def slow(c, next):
        await release.wait()
        c["slow_done"] = True
        await next()

    async def failing(c, next):
        raise RuntimeError("fail fast")

    with pytest.raises(RuntimeError, match="fail fast"):
        await get_concurrency_middleware([slow, failing])(ctx, next_handler)

    # The sibling is still running when the error surfaces
    assert "slow_done" not in ctx
    next_handler.assert_not_called()

    release.set()
    await asyncio.sleep(0.01)
    assert ctx["slow_done"] is True


@pytest.mark.asyncio
async def test_fork_continues_without_waiting(ctx):
    release = asyncio.Event()
    finished = asyncio.Event()
    next_handler = AsyncMock(return_value="downstream")

    async def background(c, next):
        await release.wait()
        c["forked"] = True
        finished.set()

    result = await get_fork_middleware(background)(ctx, next_handler)

    assert result == "downstream"
    next_handler.assert_awaited_once()
    assert "forked" not in ctx

    release.set()
    await asyncio.wait_for(finished.wait(), timeout=1)
    assert ctx["forked"] is True


@pytest.mark.asyncio
async def test_fork_continuation_does_not_reach_outer_chain(ctx):
    finished = asyncio.Event()
    next_handler = AsyncMock()

    async def background(c, next):
        await next()
        finished.set()

    await get_fork_middleware(background)(ctx, next_handler)
    await asyncio.wait_for(finished.wait(), timeout=1)

    next_handler.assert_awaited_once()


@pytest.mark.asyncio
async def test_fork_errors_are_logged(ctx, caplog):
    failed = asyncio.Event()

    async def background(c, next):
        failed.set()
        raise ValueError("fork failed")

    with caplog.at_level(logging.ERROR, logger="conduit.middleware.concurrency"):
        await get_fork_middleware(background)(ctx, AsyncMock())
        await asyncio.wait_for(failed.wait(), timeout=1)
        # Let the done callback run
        for _ in range(3):
            await asyncio.sleep(0)

    assert "Forked middleware failed" in caplog.text
    assert "fork failed" in caplog.text
