"""Bridge from synchronous entry points (Celery tasks, the CLI) to async services."""

import asyncio
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

_local = threading.local()


def _runner() -> asyncio.Runner:
    runner: asyncio.Runner | None = getattr(_local, "runner", None)
    if runner is None or runner.get_loop().is_closed():
        runner = asyncio.Runner()
        _local.runner = runner
    return runner


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine on the calling thread's long-lived event loop.

    Each thread keeps one loop across calls, so an httpx client opened by one
    task invocation is still usable by the next.

    Raises:
        RuntimeError: If called while an event loop is already running.
    """
    return _runner().run(coro)
