"""Navigation controller - a pure state machine over the flow state store."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from questionflow.exceptions import UnknownQuestionError

from .callbacks import Direction, FlowCallbacks, fire_callback
from .constants import DIRECTION_NEXT, DIRECTION_PREVIOUS
from .ir import FlowOptions
from .state import FlowPhase, FlowState, FlowStateStore
from .validation import CustomValidator, validate_answer

if TYPE_CHECKING:
    from .ir import BaseQuestion

logger = logging.getLogger(__name__)

ResultKind = Literal["advanced", "retreated", "completed", "invalid", "noop"]


@dataclass(slots=True)
class NavigationResult:
    """Outcome of a navigation attempt."""

    kind: ResultKind
    index: int
    question_id: str | None
    direction: Direction | None = None
    error: str | None = None
    reason: str | None = None

    @property
    def moved(self) -> bool:
        return self.kind in ("advanced", "retreated", "completed")


class QuestionFlowEngine:
    """
    Drives one questionnaire session.

    Key principles:
    1. Validation runs only when advancing with ``next()``
    2. Recording an answer clears that question's error straight away
    3. The active question is always re-derived from ``visible_questions``
    4. Completion is terminal; later calls are inert and never raise
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
    ) -> None:
        self._store = FlowStateStore(
            questions, initial_answers=initial_answers, initial_flagged=initial_flagged
        )
        self._options = options or FlowOptions()
        self._custom_validator = validate_answer
        self._callbacks = callbacks or FlowCallbacks()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def store(self) -> FlowStateStore:
        return self._store

    @property
    def state(self) -> FlowState:
        return self._store.state

    @property
    def options(self) -> FlowOptions:
        return self._options

    @property
    def callbacks(self) -> FlowCallbacks:
        return self._callbacks

    @property
    def phase(self) -> FlowPhase:
        return self.state.phase

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    @property
    def current_question(self) -> BaseQuestion | None:
        return self._store.current_question()

    @property
    def can_advance(self) -> bool:
        """False while complete or while a caller-side validation is in flight."""
        return self.phase is FlowPhase.ACTIVE

    @property
    def can_skip(self) -> bool:
        question = self.current_question
        return (
            not self.is_complete
            and self._options.allow_skip
            and question is not None
            and not question.required
        )

    def flagged_in_order(self) -> list[str]:
        """Flagged ids in definition order, unknown ids last."""
        flagged = self.state.flagged_questions
        ordered = [q.id for q in self._store.questions if q.id in flagged]
        extra = sorted(flagged.difference(ordered))
        return ordered + extra

    # ------------------------------------------------------------------
    # Answers and flags
    # ------------------------------------------------------------------
    def answer(self, value: Any, question_id: str | None = None) -> BaseQuestion | None:
        """Record an answer, defaulting to the active question.

        Returns the answered question, or None when nothing was recorded.
        """
        if self.is_complete:
            logger.debug("Ignoring answer after completion")
            return None

        if question_id is None:
            question = self.current_question
            if question is None:
                return None
        else:
            question = self._store.get_question(question_id)
            if question is None:
                raise UnknownQuestionError(question_id)

        self._store.record_answer(question.id, value)
        fire_callback(
            self._callbacks.on_answer_change,
            question.id,
            value,
            self._store.snapshot_answers(),
        )
        return question

    def toggle_flag(self, question_id: str | None = None) -> bool | None:
        """Flip the flag on a question; returns the new status or None if inert."""
        if self.is_complete:
            return None
        target = self._resolve_flag_target(question_id)
        if target is None:
            return None
        is_flagged = self._store.toggle_flag(target)
        fire_callback(self._callbacks.on_question_flag, target, is_flagged)
        return is_flagged

    def flag(self, question_id: str | None = None) -> bool | None:
        return self._set_flag(question_id, flagged=True)

    def unflag(self, question_id: str | None = None) -> bool | None:
        return self._set_flag(question_id, flagged=False)

    def _set_flag(self, question_id: str | None, *, flagged: bool) -> bool | None:
        if self.is_complete:
            return None
        target = self._resolve_flag_target(question_id)
        if target is None:
            return None
        if (target in self.state.flagged_questions) == flagged:
            return flagged
        return self.toggle_flag(target)

    def _resolve_flag_target(self, question_id: str | None) -> str | None:
        if question_id is None:
            question = self.current_question
            return question.id if question else None
        if not self._store.has_question(question_id):
            raise UnknownQuestionError(question_id)
        return question_id

    # ------------------------------------------------------------------
    # Validating flag (the controller never waits on it)
    # ------------------------------------------------------------------
    def begin_validation(self) -> None:
        if not self.is_complete:
            self.state.is_validating = True

    def end_validation(self) -> None:
        self.state.is_validating = False

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> NavigationResult:
        """Validate the active answer, then advance or complete."""
        if self.is_complete:
            return self._noop("complete")

        question = self.current_question
        if question is None:
            # Nothing left to show: finish instead of getting stuck
            return self._complete()

        error = validate_answer(
            question, self.state.answers.get(question.id), self._custom_validator
        )
        if error:
            self._store.set_error(question.id, error)
            logger.debug("Validation failed for %s: %s", question.id, error)
            return NavigationResult(
                kind="invalid",
                index=self.state.current_index,
                question_id=question.id,
                error=error,
            )

        self._store.clear_error(question.id)
        return self._advance()

    def previous(self) -> NavigationResult:
        """Step back one question. No validation is performed."""
        if self.is_complete:
            return self._noop("complete")
        state = self.state
        if state.current_index <= 0:
            return self._noop("at_start")

        state.current_index -= 1
        current = self.current_question
        fire_callback(self._callbacks.on_navigation_change, state.current_index, DIRECTION_PREVIOUS)
        return NavigationResult(
            kind="retreated",
            index=state.current_index,
            question_id=current.id if current else None,
            direction=DIRECTION_PREVIOUS,
        )

    def skip(self) -> NavigationResult:
        """Advance past an optional question without validating it.

        Inert unless skipping is allowed for the flow and the active question
        is not required.
        """
        if self.is_complete:
            return self._noop("complete")
        if self.current_question is None:
            return self._complete()
        if not self.can_skip:
            return self._noop("skip_not_allowed")
        return self._advance()

    def _advance(self) -> NavigationResult:
        state = self.state
        if state.current_index >= len(state.visible_questions) - 1:
            return self._complete()

        state.current_index += 1
        current = self.current_question
        logger.debug("Advanced to index %d (%s)", state.current_index, current.id if current else None)
        fire_callback(self._callbacks.on_navigation_change, state.current_index, DIRECTION_NEXT)
        return NavigationResult(
            kind="advanced",
            index=state.current_index,
            question_id=current.id if current else None,
            direction=DIRECTION_NEXT,
        )

    def _complete(self) -> NavigationResult:
        state = self.state
        state.is_complete = True
        state.is_validating = False
        logger.info(
            "Flow complete: %d answers, %d flagged",
            len(state.answers),
            len(state.flagged_questions),
        )
        fire_callback(
            self._callbacks.on_complete,
            self._store.snapshot_answers(),
            self.flagged_in_order(),
        )
        return NavigationResult(kind="completed", index=state.current_index, question_id=None)

    def _noop(self, reason: str) -> NavigationResult:
        current = None if self.is_complete else self.current_question
        return NavigationResult(
            kind="noop",
            index=self.state.current_index,
            question_id=current.id if current else None,
            reason=reason,
        )
