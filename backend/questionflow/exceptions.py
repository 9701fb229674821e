"""Exception hierarchy for the question flow service."""

from __future__ import annotations


class QuestionFlowError(Exception):
    """Base class for errors raised by the question flow service."""


class UnknownQuestionError(QuestionFlowError, KeyError):
    """An answer or flag referenced a question id absent from the definition."""

    def __init__(self, question_id: str) -> None:
        self.question_id = question_id
        super().__init__(f"Unknown question id: {question_id}")

    def __str__(self) -> str:
        return f"Unknown question id: {self.question_id}"


class DuplicateQuestionError(QuestionFlowError, ValueError):
    """Two questions in one definition share the same id."""

    def __init__(self, question_id: str) -> None:
        self.question_id = question_id
        super().__init__(f"Duplicate question id: {question_id}")


class SessionNotFoundError(QuestionFlowError, LookupError):
    """No live session is registered under the given id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SchedulerError(QuestionFlowError, RuntimeError):
    """Timers were requested without a running event loop."""


class AdvanceBlockedError(QuestionFlowError):
    """Advancing was requested while an answer validation is still in flight."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} is validating; cannot advance")
