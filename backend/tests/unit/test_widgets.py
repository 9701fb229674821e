from __future__ import annotations

import pytest

from questionflow.flow_core.engine import QuestionFlowEngine
from questionflow.flow_core.ir import FlowOptions, parse_question
from questionflow.flow_core.widgets import flow_summary, render_question

pytestmark = pytest.mark.unit


def test_rating_widget_gets_default_scale() -> None:
    question = parse_question({"id": "r", "type": "rating", "questionText": "Rate it"})
    payload = render_question(question, 7)
    assert payload["widget"] == "RatingScale"
    assert payload["value"] == 7
    assert payload["props"]["min"] == 1
    assert payload["props"]["max"] == 10
    assert payload["props"]["step"] == 1
    assert payload["props"]["showLabels"] is True


def test_multiple_choice_props_use_camel_case() -> None:
    question = parse_question(
        {
            "id": "mc",
            "type": "multiple-choice",
            "questionText": "Pick",
            "config": {"options": [{"id": "a", "label": "A"}], "allowMultiple": True},
        }
    )
    props = render_question(question, None)["props"]
    assert props["layout"] == "vertical"
    assert props["allowMultiple"] is True
    assert props["options"][0] == {"id": "a", "label": "A", "disabled": False}


def test_summary_reports_progress_and_active_question(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(
        sample_questions,
        options=FlowOptions(allow_skip=True),
        initial_answers={"q1": ["js"]},
        initial_flagged=["q2"],
    )
    engine.next()
    summary = flow_summary(engine)

    assert summary["currentIndex"] == 1
    assert summary["total"] == 3
    assert summary["counter"] == "Question 2 of 3"
    assert summary["canGoPrevious"] is True
    question = summary["question"]
    assert question["id"] == "q2"
    assert question["isFlagged"] is True
    assert question["allowSkip"] is True
    assert question["widget"] == "YesNoQuestion"


def test_summary_on_completion(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(
        sample_questions, initial_answers={"q1": ["js"], "q3": 2}, initial_flagged=["q3"]
    )
    for _ in range(3):
        engine.next()
    summary = flow_summary(engine)
    assert summary == {
        "isComplete": True,
        "questionCount": 3,
        "flaggedCount": 1,
        "flagged": ["q3"],
    }
