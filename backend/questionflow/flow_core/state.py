"""Flow state: the single source of truth for one questionnaire session."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from questionflow.exceptions import DuplicateQuestionError

from .conditions import visible_questions

if TYPE_CHECKING:
    from .ir import BaseQuestion

logger = logging.getLogger(__name__)


class FlowPhase(str, Enum):
    """Logical state of the navigation state machine."""

    ACTIVE = "active"
    VALIDATING = "validating"
    COMPLETE = "complete"


@dataclass(slots=True)
class FlowState:
    """Mutable session state.

    ``visible_questions`` is a derived cache: it is always rebuilt from the full
    question list and ``answers``, never patched in place.
    """

    current_index: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    flagged_questions: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)
    visible_questions: list[BaseQuestion] = field(default_factory=list)
    is_complete: bool = False
    is_validating: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def phase(self) -> FlowPhase:
        if self.is_complete:
            return FlowPhase.COMPLETE
        if self.is_validating:
            return FlowPhase.VALIDATING
        return FlowPhase.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict for persistence."""
        return {
            "current_index": self.current_index,
            "answers": copy.deepcopy(self.answers),
            "flagged_questions": sorted(self.flagged_questions),
            "errors": dict(self.errors),
            "visible_question_ids": [q.id for q in self.visible_questions],
            "is_complete": self.is_complete,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlowState:
        """Rebuild a state from ``to_dict()`` output.

        ``visible_questions`` is left empty; the owning store derives it again.
        """
        created = data.get("created_at")
        updated = data.get("updated_at")
        return cls(
            current_index=int(data.get("current_index", 0)),
            answers=copy.deepcopy(data.get("answers") or {}),
            flagged_questions=set(data.get("flagged_questions") or ()),
            errors=dict(data.get("errors") or {}),
            is_complete=bool(data.get("is_complete", False)),
            created_at=datetime.fromisoformat(created) if created else datetime.now(),
            updated_at=datetime.fromisoformat(updated) if updated else datetime.now(),
        )


class FlowStateStore:
    """Owns a ``FlowState`` and keeps its derived fields consistent.

    The store knows nothing about navigation rules; it records answers, toggles
    flags and recomputes visibility.
    """

    def __init__(
        self,
        questions: Sequence[BaseQuestion],
        *,
        initial_answers: dict[str, Any] | None = None,
        initial_flagged: Iterable[str] | None = None,
    ) -> None:
        seen: set[str] = set()
        for q in questions:
            if q.id in seen:
                raise DuplicateQuestionError(q.id)
            seen.add(q.id)

        self._questions: tuple[BaseQuestion, ...] = tuple(questions)
        self._by_id: dict[str, BaseQuestion] = {q.id: q for q in self._questions}
        answers = copy.deepcopy(initial_answers) if initial_answers else {}
        self._state = FlowState(
            answers=answers,
            flagged_questions=set(initial_flagged or ()),
            visible_questions=visible_questions(self._questions, answers),
        )

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def questions(self) -> tuple[BaseQuestion, ...]:
        return self._questions

    @property
    def visible_questions(self) -> list[BaseQuestion]:
        return self._state.visible_questions

    def get_question(self, question_id: str) -> BaseQuestion | None:
        return self._by_id.get(question_id)

    def has_question(self, question_id: str) -> bool:
        return question_id in self._by_id

    def current_question(self) -> BaseQuestion | None:
        """Re-derive the active question from the current index.

        Never cache the returned object across answer changes: the question at
        a given index may change when visibility is recomputed.
        """
        visible = self._state.visible_questions
        index = self._state.current_index
        if 0 <= index < len(visible):
            return visible[index]
        return None

    def record_answer(self, question_id: str, value: Any) -> None:
        """Store an answer, clear its error and recompute visibility."""
        state = self._state
        state.answers[question_id] = value
        state.errors.pop(question_id, None)
        self._recompute_visibility()
        state.updated_at = datetime.now()

    def toggle_flag(self, question_id: str) -> bool:
        """Flip flag membership and return the new flagged status."""
        flagged = self._state.flagged_questions
        if question_id in flagged:
            flagged.discard(question_id)
            is_flagged = False
        else:
            flagged.add(question_id)
            is_flagged = True
        self._state.updated_at = datetime.now()
        return is_flagged

    def set_error(self, question_id: str, message: str) -> None:
        self._state.errors[question_id] = message

    def clear_error(self, question_id: str) -> None:
        self._state.errors.pop(question_id, None)

    def snapshot_answers(self) -> dict[str, Any]:
        """Return a deep copy of the answer map, detached from live state."""
        return copy.deepcopy(self._state.answers)

    def _recompute_visibility(self) -> None:
        state = self._state
        before = len(state.visible_questions)
        state.visible_questions = visible_questions(self._questions, state.answers)
        after = len(state.visible_questions)
        if before != after:
            logger.debug("Visible questions changed: %d -> %d", before, after)
        # The index is kept numerically; only clamp when it fell off the end
        if after == 0:
            state.current_index = 0
        elif state.current_index >= after:
            state.current_index = after - 1
