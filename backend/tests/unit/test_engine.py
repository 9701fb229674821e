"""Navigation controller: transitions, callbacks and edge-case normalization."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from questionflow.exceptions import UnknownQuestionError
from questionflow.flow_core.callbacks import FlowCallbacks
from questionflow.flow_core.engine import QuestionFlowEngine
from questionflow.flow_core.ir import FlowOptions, parse_questions
from questionflow.flow_core.state import FlowPhase

pytestmark = pytest.mark.unit


@pytest.fixture
def mentoring_questions():  # type: ignore[no-untyped-def]
    return parse_questions(
        [
            {
                "id": "role",
                "type": "multiple-choice",
                "questionText": "What is your role?",
                "required": True,
                "config": {
                    "options": [
                        {"id": "dev", "label": "Developer"},
                        {"id": "designer", "label": "Designer"},
                    ]
                },
            },
            {
                "id": "years",
                "type": "rating",
                "questionText": "Years of experience?",
                "required": True,
            },
            {
                "id": "mentor",
                "type": "yes-no",
                "questionText": "Would you mentor others?",
                "required": True,
                "conditions": [
                    {"dependsOn": "years", "operator": "greater-than", "requiredValue": 5}
                ],
            },
        ]
    )


def test_junior_respondent_completes_without_mentor_question(mentoring_questions) -> None:  # type: ignore[no-untyped-def]
    on_complete = Mock()
    engine = QuestionFlowEngine(
        mentoring_questions, callbacks=FlowCallbacks(on_complete=on_complete)
    )

    engine.answer("dev")
    assert engine.next().kind == "advanced"
    engine.answer(3)
    result = engine.next()

    assert result.kind == "completed"
    assert engine.is_complete
    on_complete.assert_called_once_with({"role": "dev", "years": 3}, [])


def test_senior_respondent_must_answer_mentor_question(mentoring_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(mentoring_questions)

    engine.answer("dev")
    engine.next()
    engine.answer(8)
    assert [q.id for q in engine.state.visible_questions] == ["role", "years", "mentor"]
    engine.next()
    assert engine.current_question.id == "mentor"

    result = engine.next()
    assert result.kind == "invalid"
    assert result.error == "This question is required."
    assert engine.state.current_index == 2
    assert engine.state.errors == {"mentor": "This question is required."}
    assert not engine.is_complete


def test_skip_on_required_question_is_inert() -> None:
    questions = parse_questions(
        [
            {"id": f"q{i}", "type": "text", "questionText": f"Q{i}", "required": True}
            for i in range(1, 4)
        ]
    )
    on_nav = Mock()
    engine = QuestionFlowEngine(
        questions,
        options=FlowOptions(allow_skip=True),
        callbacks=FlowCallbacks(on_navigation_change=on_nav),
    )

    assert engine.can_skip is False
    result = engine.skip()

    assert result.kind == "noop"
    assert result.reason == "skip_not_allowed"
    assert engine.state.current_index == 0
    assert engine.state.errors == {}
    on_nav.assert_not_called()


def test_skip_advances_optional_question_without_validation(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(
        sample_questions,
        options=FlowOptions(allow_skip=True),
        initial_answers={"q1": ["js"]},
    )
    engine.next()
    assert engine.current_question.id == "q2"
    assert engine.can_skip is True

    result = engine.skip()
    assert result.kind == "advanced"
    assert engine.current_question.id == "q3"


def test_skip_is_inert_when_flow_disallows_it(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(sample_questions, initial_answers={"q1": ["js"]})
    engine.next()
    assert engine.skip().kind == "noop"
    assert engine.current_question.id == "q2"


def test_required_error_wins_over_other_rules() -> None:
    questions = parse_questions(
        [
            {
                "id": "bio",
                "type": "text",
                "questionText": "Bio",
                "required": True,
                "validationRules": {"minLength": 20},
            }
        ]
    )
    engine = QuestionFlowEngine(questions)
    assert engine.next().error == "This question is required."


def test_answer_clears_error_immediately(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(sample_questions)
    engine.next()
    assert "q1" in engine.state.errors
    engine.answer(["ts"])
    assert "q1" not in engine.state.errors


def test_next_after_completion_is_idempotent(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_complete = Mock()
    engine = QuestionFlowEngine(
        sample_questions,
        initial_answers={"q1": ["js"], "q3": 7},
        callbacks=FlowCallbacks(on_complete=on_complete),
    )
    for _ in range(3):
        engine.next()
    assert engine.is_complete
    snapshot = engine.state.to_dict()

    result = engine.next()

    assert result.kind == "noop"
    assert result.reason == "complete"
    assert on_complete.call_count == 1
    assert engine.state.to_dict() == snapshot
    assert engine.previous().kind == "noop"
    assert engine.answer("late") is None
    assert engine.toggle_flag() is None


def test_previous_at_start_is_noop_and_does_not_validate(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_nav = Mock()
    engine = QuestionFlowEngine(
        sample_questions, callbacks=FlowCallbacks(on_navigation_change=on_nav)
    )
    result = engine.previous()
    assert result.kind == "noop"
    assert result.reason == "at_start"
    assert engine.state.errors == {}
    on_nav.assert_not_called()


def test_navigation_callbacks_report_direction(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_nav = Mock()
    engine = QuestionFlowEngine(
        sample_questions,
        initial_answers={"q1": ["js"]},
        callbacks=FlowCallbacks(on_navigation_change=on_nav),
    )
    engine.next()
    engine.previous()
    assert [c.args for c in on_nav.call_args_list] == [(1, "next"), (0, "previous")]


def test_failed_validation_does_not_fire_navigation(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_nav = Mock()
    engine = QuestionFlowEngine(
        sample_questions, callbacks=FlowCallbacks(on_navigation_change=on_nav)
    )
    engine.next()
    on_nav.assert_not_called()


def test_answer_change_callback_receives_detached_map(sample_questions) -> None:  # type: ignore[no-untyped-def]
    received: list[dict] = []
    engine = QuestionFlowEngine(
        sample_questions,
        callbacks=FlowCallbacks(on_answer_change=lambda qid, value, full: received.append(full)),
    )
    engine.answer(["js"])
    received[0]["q1"].append("ts")
    assert engine.state.answers["q1"] == ["js"]


def test_answer_for_unknown_question_raises(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(sample_questions)
    with pytest.raises(UnknownQuestionError):
        engine.answer("x", question_id="nope")
    with pytest.raises(UnknownQuestionError):
        engine.toggle_flag("nope")


def test_flagging_is_orthogonal_to_navigation(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_flag = Mock()
    on_nav = Mock()
    engine = QuestionFlowEngine(
        sample_questions,
        callbacks=FlowCallbacks(on_question_flag=on_flag, on_navigation_change=on_nav),
    )
    assert engine.toggle_flag() is True
    assert engine.flag("q3") is True
    assert engine.unflag() is False
    on_flag.assert_any_call("q1", True)
    on_flag.assert_any_call("q3", True)
    on_flag.assert_any_call("q1", False)
    on_nav.assert_not_called()
    assert engine.state.current_index == 0


def test_flagged_list_follows_definition_order(sample_questions) -> None:  # type: ignore[no-untyped-def]
    on_complete = Mock()
    engine = QuestionFlowEngine(
        sample_questions,
        initial_answers={"q1": ["js"], "q3": 4},
        initial_flagged=["q3", "q1"],
        callbacks=FlowCallbacks(on_complete=on_complete),
    )
    for _ in range(3):
        engine.next()
    on_complete.assert_called_once_with({"q1": ["js"], "q3": 4}, ["q1", "q3"])


def test_empty_visible_list_completes_immediately() -> None:
    questions = parse_questions(
        [
            {
                "id": "only",
                "type": "text",
                "questionText": "Hidden",
                "required": True,
                "conditions": [{"dependsOn": "missing", "requiredValue": "x"}],
            }
        ]
    )
    on_complete = Mock()
    engine = QuestionFlowEngine(questions, callbacks=FlowCallbacks(on_complete=on_complete))

    assert engine.current_question is None
    assert engine.next().kind == "completed"
    on_complete.assert_called_once_with({}, [])


def test_validating_phase_is_exposed_not_enforced(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(sample_questions, initial_answers={"q1": ["js"]})
    engine.begin_validation()
    assert engine.phase is FlowPhase.VALIDATING
    assert engine.can_advance is False
    engine.end_validation()
    assert engine.phase is FlowPhase.ACTIVE
    assert engine.can_advance is True


def test_custom_validator_failure_leaves_state_untouched(sample_questions) -> None:  # type: ignore[no-untyped-def]
    def boom(question, answer):  # type: ignore[no-untyped-def]
        raise RuntimeError("validator crashed")

    engine = QuestionFlowEngine(
        sample_questions, initial_answers={"q1": ["js"]}, validate_answer=boom
    )
    before = engine.state.to_dict()
    with pytest.raises(RuntimeError):
        engine.next()
    assert engine.state.to_dict() == before


def test_custom_validator_message_is_recorded(sample_questions) -> None:  # type: ignore[no-untyped-def]
    engine = QuestionFlowEngine(
        sample_questions,
        initial_answers={"q1": ["js"]},
        validate_answer=lambda q, a: "Pick exactly one" if q.id == "q1" else None,
    )
    result = engine.next()
    assert result.kind == "invalid"
    assert engine.state.errors["q1"] == "Pick exactly one"
