"""Timers for auto-advance and auto-save.

Every timer belongs to a ``TimerScope``; disposing the scope cancels whatever is
still pending so nothing fires after a session is torn down. Timers read the
flow state when they fire, never when they are scheduled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from questionflow.exceptions import SchedulerError

from .callbacks import AutoSaveCallback, fire_callback
from .constants import (
    AUTO_ADVANCE_TYPES,
    DEFAULT_AUTO_ADVANCE_DELAY_MS,
    DEFAULT_AUTO_SAVE_INTERVAL_MS,
)

if TYPE_CHECKING:
    from .engine import QuestionFlowEngine
    from .ir import BaseQuestion

logger = logging.getLogger(__name__)


class TimerScope:
    """Owns a set of event-loop timer handles with a single disposal point."""

    def __init__(self) -> None:
        self._handles: set[asyncio.TimerHandle] = set()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled())

    def call_later(self, delay_ms: float, fn: Callable[[], Any]) -> asyncio.TimerHandle | None:
        """Schedule ``fn`` after ``delay_ms``; returns None once disposed."""
        if self._disposed:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            msg = "Flow timers need a running asyncio event loop"
            raise SchedulerError(msg) from exc

        handle: asyncio.TimerHandle | None = None

        def _run() -> None:
            if handle is not None:
                self._handles.discard(handle)
            if self._disposed:
                return
            fn()

        handle = loop.call_later(max(delay_ms, 0) / 1000.0, _run)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def dispose(self) -> None:
        """Cancel every outstanding timer. Safe to call more than once."""
        self._disposed = True
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()


class AutoAdvanceScheduler:
    """Debounced automatic ``next()`` after a single-select answer."""

    def __init__(
        self,
        engine: QuestionFlowEngine,
        scope: TimerScope,
        *,
        delay_ms: int = DEFAULT_AUTO_ADVANCE_DELAY_MS,
    ) -> None:
        self._engine = engine
        self._scope = scope
        self._delay_ms = delay_ms
        self._handle: asyncio.TimerHandle | None = None
        self._question_id: str | None = None

    @property
    def pending_question_id(self) -> str | None:
        return self._question_id if self._handle is not None else None

    @staticmethod
    def qualifies(question: BaseQuestion, answer: Any) -> bool:
        """Yes/no and single-select multiple choice advance on their own."""
        if not answer:
            return False
        if question.type not in AUTO_ADVANCE_TYPES:
            return False
        if question.type == "multiple-choice":
            return not question.config.allow_multiple  # type: ignore[attr-defined]
        return True

    def on_answer(self, question: BaseQuestion, answer: Any) -> None:
        """Reschedule on every answer; a fresh answer replaces the pending one."""
        if self._question_id == question.id:
            self.cancel()

        current = self._engine.current_question
        if current is None or current.id != question.id:
            return
        if not self.qualifies(question, answer):
            return

        self.cancel()
        self._question_id = question.id
        self._handle = self._scope.call_later(self._delay_ms, self._fire)

    def cancel(self) -> None:
        self._scope.cancel(self._handle)
        self._handle = None
        self._question_id = None

    def _fire(self) -> None:
        question_id = self._question_id
        self._handle = None
        self._question_id = None

        engine = self._engine
        if engine.is_complete or not engine.can_advance:
            return
        current = engine.current_question
        if current is None or current.id != question_id:
            # The respondent already moved on
            logger.debug("Auto-advance for %s dropped; active question changed", question_id)
            return
        # next() validates whatever answer is present now
        engine.next()


class AutoSaveScheduler:
    """Periodically hands a detached answer snapshot to a persistence callback."""

    def __init__(
        self,
        engine: QuestionFlowEngine,
        scope: TimerScope,
        on_auto_save: AutoSaveCallback,
        *,
        interval_ms: int = DEFAULT_AUTO_SAVE_INTERVAL_MS,
    ) -> None:
        self._engine = engine
        self._scope = scope
        self._on_auto_save = on_auto_save
        self._interval_ms = interval_ms
        self._handle: asyncio.TimerHandle | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None or self._engine.is_complete:
            return
        self._handle = self._scope.call_later(self._interval_ms, self._tick)

    def stop(self) -> None:
        self._scope.cancel(self._handle)
        self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._engine.is_complete:
            return
        # Re-arm before calling out so a failing callback cannot stop the timer
        self._handle = self._scope.call_later(self._interval_ms, self._tick)
        self.ticks += 1
        try:
            fire_callback(self._on_auto_save, self._engine.store.snapshot_answers())
        except Exception:
            logger.warning("Auto-save callback failed", exc_info=True)
