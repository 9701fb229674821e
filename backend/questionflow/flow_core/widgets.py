"""Rendering boundary between the engine and the answer-input widgets.

A widget reads ``value`` and reports back through a single ``onChange`` call;
the engine never looks inside widget props. This module is the only place with
a fallback for question kinds that have no widget.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .engine import QuestionFlowEngine
    from .ir import BaseQuestion

WIDGETS: dict[str, str] = {
    "multiple-choice": "MultipleChoice",
    "yes-no": "YesNoQuestion",
    "rating": "RatingScale",
    "text": "TextFeedback",
    "ranking": "RankingQuestion",
    "code-comparison": "CodeApproachComparison",
    "architecture": "ArchitectureChoice",
    "time-estimate": "TimestampEstimate",
    "difficulty": "DifficultyRating",
    "tech-debt": "TechDebtTolerance",
}


def widget_props(question: BaseQuestion) -> dict[str, Any]:
    config = getattr(question, "config", None)
    if config is None:
        return {}
    return config.model_dump(by_alias=True, exclude_none=True)


def render_question(
    question: BaseQuestion,
    value: Any,
    *,
    error: str | None = None,
    is_flagged: bool = False,
    allow_skip: bool = False,
) -> dict[str, Any]:
    """Describe the active question for a client-side widget."""
    payload: dict[str, Any] = {
        "id": question.id,
        "type": question.type,
        "questionText": question.question_text,
        "description": question.description,
        "required": question.required,
        "value": value,
        "error": error,
        "isFlagged": is_flagged,
        "allowSkip": allow_skip,
    }
    widget = WIDGETS.get(question.type)
    if widget is None:
        payload["widget"] = None
        payload["props"] = {}
        payload["unsupported"] = f"Unsupported question type: {question.type}"
        return payload
    payload["widget"] = widget
    payload["props"] = widget_props(question)
    return payload


def flow_summary(engine: QuestionFlowEngine) -> dict[str, Any]:
    """Progress and status of a flow as the question card displays it."""
    state = engine.state
    total = len(state.visible_questions)
    if state.is_complete:
        return {
            "isComplete": True,
            "questionCount": total,
            "flaggedCount": len(state.flagged_questions),
            "flagged": engine.flagged_in_order(),
        }

    question = engine.current_question
    summary: dict[str, Any] = {
        "isComplete": False,
        "isValidating": state.is_validating,
        "currentIndex": state.current_index,
        "total": total,
        "counter": f"Question {state.current_index + 1} of {total}" if total else None,
        "progress": round((state.current_index + 1) / total * 100, 2) if total else 0.0,
        "canGoPrevious": state.current_index > 0,
        "flaggedCount": len(state.flagged_questions),
        "question": None,
    }
    if question is not None:
        summary["question"] = render_question(
            question,
            state.answers.get(question.id),
            error=state.errors.get(question.id),
            is_flagged=question.id in state.flagged_questions,
            allow_skip=engine.can_skip,
        )
    return summary
