from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)

# Strong references keep scheduled tasks alive until they finish.
_pending: set[asyncio.Task] = set()


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        logger.info("%s task cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        logger.error("%s task failed", task.get_name(), exc_info=exc)


def fire_and_forget(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    task = asyncio.create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def pending_count() -> int:
    return len(_pending)


async def drain() -> None:
    """Wait for every scheduled task; used at shutdown and by tests."""
    while _pending:
        await asyncio.gather(*list(_pending), return_exceptions=True)
