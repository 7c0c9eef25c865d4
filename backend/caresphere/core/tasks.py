"""
Helpers for side effects whose failure must not fail the caller
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Set

logger = logging.getLogger(__name__)

# Strong references keep fire-and-forget tasks alive until they finish
_background_tasks: Set["asyncio.Task[Any]"] = set()


async def best_effort(operation: Awaitable[Any], description: str) -> Optional[Any]:
    """
    Await `operation`; on failure log a warning and return None.

    Used for hit counters and fan-out notifications where the primary
    operation has already succeeded.
    """
    try:
        return await operation
    except Exception as e:
        logger.warning(f"Best-effort operation failed ({description}): {str(e)}")
        return None


def run_in_background(operation: Awaitable[Any], description: str) -> "asyncio.Task[Any]":
    """Schedule a best-effort operation without waiting for it"""
    task = asyncio.ensure_future(best_effort(operation, description))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def drain_background_tasks() -> None:
    """Wait for every scheduled background operation to finish"""
    while True:
        pending = [task for task in _background_tasks if not task.done()]
        if not pending:
            return
        await asyncio.gather(*pending, return_exceptions=True)
