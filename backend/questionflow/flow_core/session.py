"""A flow session: one engine plus the timers that drive it, with one teardown."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from .callbacks import FlowCallbacks, fire_callback
from .engine import NavigationResult, QuestionFlowEngine
from .ir import FlowOptions
from .scheduling import AutoAdvanceScheduler, AutoSaveScheduler, TimerScope

if TYPE_CHECKING:
    from .ir import BaseQuestion
    from .validation import CustomValidator

logger = logging.getLogger(__name__)


class FlowSession:
    """Composes the navigation controller with its optional schedulers.

    All timers live in a single ``TimerScope``; ``dispose()`` cancels them. The
    auto-save timer also stops on completion. Auto-save only runs when the
    options enable it and an ``on_auto_save`` callback is supplied.
    """

    def __init__(
        self,
        questions: Sequence[BaseQuestion],
        *,
        options: FlowOptions | None = None,
        initial_answers: dict[str, Any] | None = None,
        initial_flagged: Iterable[str] | None = None,
        validate_answer: CustomValidator | None = None,
        callbacks: FlowCallbacks | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._options = options or FlowOptions()
        self._user_callbacks = callbacks or FlowCallbacks()
        self._scope = TimerScope()

        engine_callbacks = FlowCallbacks(
            on_answer_change=self._user_callbacks.on_answer_change,
            on_question_flag=self._user_callbacks.on_question_flag,
            on_complete=self._handle_complete,
            on_navigation_change=self._user_callbacks.on_navigation_change,
        )
        self.engine = QuestionFlowEngine(
            questions,
            options=self._options,
            initial_answers=initial_answers,
            initial_flagged=initial_flagged,
            validate_answer=validate_answer,
            callbacks=engine_callbacks,
        )

        self.auto_advance: AutoAdvanceScheduler | None = None
        if self._options.auto_advance:
            self.auto_advance = AutoAdvanceScheduler(
                self.engine, self._scope, delay_ms=self._options.auto_advance_delay_ms
            )

        self.auto_save: AutoSaveScheduler | None = None
        on_auto_save = self._user_callbacks.on_auto_save
        if self._options.auto_save and on_auto_save is not None:
            self.auto_save = AutoSaveScheduler(
                self.engine,
                self._scope,
                on_auto_save,
                interval_ms=self._options.auto_save_interval_ms,
            )

    @property
    def options(self) -> FlowOptions:
        return self._options

    @property
    def disposed(self) -> bool:
        return self._scope.disposed

    def start(self) -> None:
        """Arm the auto-save timer. Must run inside an event loop."""
        if self.auto_save is not None:
            self.auto_save.start()
        logger.info("Flow session %s started", self.session_id)

    def dispose(self) -> None:
        """Cancel every pending timer; the session must not be driven afterwards."""
        if self._scope.disposed:
            return
        if self.auto_advance is not None:
            self.auto_advance.cancel()
        self._scope.dispose()
        logger.info("Flow session %s disposed", self.session_id)

    # ------------------------------------------------------------------
    # Widget onChange contract
    # ------------------------------------------------------------------
    def answer(self, value: Any, question_id: str | None = None) -> BaseQuestion | None:
        question = self.engine.answer(value, question_id)
        if question is not None and self.auto_advance is not None and not self.disposed:
            self.auto_advance.on_answer(question, value)
        return question

    # ------------------------------------------------------------------
    # Manual navigation supersedes a pending auto-advance
    # ------------------------------------------------------------------
    def next(self) -> NavigationResult:
        self._cancel_auto_advance()
        return self.engine.next()

    def previous(self) -> NavigationResult:
        self._cancel_auto_advance()
        return self.engine.previous()

    def skip(self) -> NavigationResult:
        self._cancel_auto_advance()
        return self.engine.skip()

    def toggle_flag(self, question_id: str | None = None) -> bool | None:
        return self.engine.toggle_flag(question_id)

    def flag(self, question_id: str | None = None) -> bool | None:
        return self.engine.flag(question_id)

    def unflag(self, question_id: str | None = None) -> bool | None:
        return self.engine.unflag(question_id)

    def _cancel_auto_advance(self) -> None:
        if self.auto_advance is not None:
            self.auto_advance.cancel()

    def _handle_complete(self, answers: dict[str, Any], flagged: list[str]) -> None:
        self._cancel_auto_advance()
        if self.auto_save is not None:
            self.auto_save.stop()
        fire_callback(self._user_callbacks.on_complete, answers, flagged)
