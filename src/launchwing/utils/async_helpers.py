from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async coroutine synchronously.

    Creates a new event loop if none is running. If a loop is already running
    (e.g. inside Jupyter or an existing async context), runs the coroutine on
    a fresh event loop in a worker thread and blocks until it finishes.

    Args:
        coro: The coroutine to run.

    Returns:
        The value returned by *coro*.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(asyncio.run, coro)
        return future.result()


async def with_timeout(coro: Coroutine[Any, Any, T], seconds: float) -> T:
    """Run *coro* with a deadline, raising ``asyncio.TimeoutError`` if it exceeds *seconds*.

    The coroutine is cancelled when the deadline passes.
    """
    return await asyncio.wait_for(coro, timeout=seconds)
