from __future__ import annotations

import asyncio

import pytest

from launchwing.utils.async_helpers import run_sync, with_timeout

# ---------------------------------------------------------------------------
# run_sync
# ---------------------------------------------------------------------------


def test_run_sync_returns_value() -> None:
    async def _coro() -> int:
        return 42

    assert run_sync(_coro()) == 42


def test_run_sync_propagates_exception() -> None:
    async def _boom() -> None:
        raise ValueError("oops")

    with pytest.raises(ValueError, match="oops"):
        run_sync(_boom())


async def test_run_sync_in_running_loop() -> None:
    """Inside a running loop the coroutine runs on a worker thread."""

    async def _coro() -> str:
        await asyncio.sleep(0)
        return "from-thread"

    assert run_sync(_coro()) == "from-thread"


# ---------------------------------------------------------------------------
# with_timeout
# ---------------------------------------------------------------------------


async def test_with_timeout_completes_within_limit() -> None:
    async def _fast() -> str:
        return "quick"

    assert await with_timeout(_fast(), seconds=5.0) == "quick"


async def test_with_timeout_raises_on_expiry() -> None:
    async def _slow() -> None:
        await asyncio.sleep(10)

    with pytest.raises(asyncio.TimeoutError):
        await with_timeout(_slow(), seconds=0.01)
