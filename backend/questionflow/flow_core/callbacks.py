"""Output callback contracts and fire-and-forget dispatch."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

# Pending async callbacks; the loop only keeps weak references to tasks
_pending: set[asyncio.Future[Any]] = set()

Direction = Literal["next", "previous"]

AnswerChangeCallback = Callable[[str, Any, dict[str, Any]], Any]
QuestionFlagCallback = Callable[[str, bool], Any]
CompleteCallback = Callable[[dict[str, Any], list[str]], Any]
AutoSaveCallback = Callable[[dict[str, Any]], Any]
NavigationChangeCallback = Callable[[int, Direction], Any]


@dataclass(slots=True)
class FlowCallbacks:
    """Optional observers of a flow. Every one of them may be sync or async."""

    on_answer_change: AnswerChangeCallback | None = None
    on_question_flag: QuestionFlagCallback | None = None
    on_complete: CompleteCallback | None = None
    on_auto_save: AutoSaveCallback | None = None
    on_navigation_change: NavigationChangeCallback | None = None


def _log_task_failure(task: asyncio.Future[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Async flow callback failed: %s", exc, exc_info=exc)


def fire_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Invoke a callback without waiting on it.

    Synchronous exceptions propagate to the caller. Awaitables are scheduled on
    the running loop and their failures are logged.
    """
    if callback is None:
        return
    result = callback(*args)
    if not inspect.isawaitable(result):
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("Dropping async callback %r: no running event loop", callback)
        if inspect.iscoroutine(result):
            result.close()
        return
    future = asyncio.ensure_future(result, loop=loop)
    _pending.add(future)
    future.add_done_callback(_pending.discard)
    future.add_done_callback(_log_task_failure)
