"""Flow state store: answers, flags, visibility recomputation and clamping."""

from __future__ import annotations

import pytest

from questionflow.exceptions import DuplicateQuestionError
from questionflow.flow_core.ir import parse_questions
from questionflow.flow_core.state import FlowPhase, FlowState, FlowStateStore

pytestmark = pytest.mark.unit


def test_duplicate_ids_are_rejected() -> None:
    questions = parse_questions(
        [
            {"id": "q1", "type": "text", "questionText": "a"},
            {"id": "q1", "type": "text", "questionText": "b"},
        ]
    )
    with pytest.raises(DuplicateQuestionError):
        FlowStateStore(questions)


def test_initial_answers_drive_initial_visibility(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(conditional_questions, initial_answers={"q1": "yes"})
    assert [q.id for q in store.visible_questions] == ["q1", "q2", "q3"]


def test_initial_answers_are_copied(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    seed = {"q1": "yes"}
    store = FlowStateStore(conditional_questions, initial_answers=seed)
    store.record_answer("q1", "no")
    assert seed == {"q1": "yes"}


def test_record_answer_clears_error_and_recomputes(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(conditional_questions)
    store.set_error("q1", "This question is required.")
    store.record_answer("q1", "yes")
    assert "q1" not in store.state.errors
    assert [q.id for q in store.visible_questions] == ["q1", "q2", "q3"]


def test_hidden_question_answer_is_kept(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(conditional_questions)
    store.record_answer("q1", "yes")
    store.record_answer("q2", "generics")
    store.record_answer("q1", "no")
    assert [q.id for q in store.visible_questions] == ["q1", "q3"]
    assert store.state.answers["q2"] == "generics"

    store.record_answer("q1", "yes")
    assert [q.id for q in store.visible_questions] == ["q1", "q2", "q3"]
    assert store.state.answers["q2"] == "generics"


def test_index_clamps_when_visible_list_shrinks(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(conditional_questions, initial_answers={"q1": "yes"})
    store.state.current_index = 2
    store.record_answer("q1", "no")
    assert store.state.current_index == 1
    assert store.current_question().id == "q3"


def test_index_is_kept_numerically_when_still_in_range(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(conditional_questions, initial_answers={"q1": "yes"})
    store.state.current_index = 1
    store.record_answer("q1", "no")
    assert store.state.current_index == 1
    assert store.current_question().id == "q3"


def test_toggle_flag_round_trip(sample_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(sample_questions)
    assert store.toggle_flag("q2") is True
    assert store.state.flagged_questions == {"q2"}
    assert store.toggle_flag("q2") is False
    assert store.state.flagged_questions == set()


def test_snapshot_is_detached(sample_questions) -> None:  # type: ignore[no-untyped-def]
    store = FlowStateStore(sample_questions)
    store.record_answer("q1", ["js"])
    snapshot = store.snapshot_answers()
    snapshot["q1"].append("ts")
    assert store.state.answers["q1"] == ["js"]


def test_state_dict_round_trip_restores_answers_and_flags() -> None:
    state = FlowState(current_index=2, answers={"q1": "yes"}, flagged_questions={"q3", "q1"})
    restored = FlowState.from_dict(state.to_dict())
    assert restored.current_index == 2
    assert restored.answers == {"q1": "yes"}
    assert restored.flagged_questions == {"q1", "q3"}
    assert restored.created_at == state.created_at
    assert restored.phase is FlowPhase.ACTIVE


def test_phase_reflects_flags() -> None:
    state = FlowState()
    state.is_validating = True
    assert state.phase is FlowPhase.VALIDATING
    state.is_complete = True
    assert state.phase is FlowPhase.COMPLETE
