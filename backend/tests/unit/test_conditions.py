"""Condition evaluator: operator semantics and visibility filtering."""

from __future__ import annotations

import pytest

from questionflow.flow_core.conditions import (
    DEFAULT_OPERATORS,
    evaluate_condition,
    is_visible,
    strict_equals,
    to_number,
    visible_questions,
)
from questionflow.flow_core.ir import Condition, parse_question

pytestmark = pytest.mark.unit


def _question(*conditions: dict) -> object:
    return parse_question(
        {"id": "target", "type": "text", "questionText": "?", "conditions": list(conditions)}
    )


@pytest.mark.parametrize(
    ("operator", "actual", "expected", "result"),
    [
        ("equals", "yes", "yes", True),
        ("equals", "3", 3, False),
        ("equals", 3, 3.0, True),
        ("equals", True, 1, False),
        ("equals", ["a", "b"], ["a", "b"], True),
        ("not-equals", "no", "yes", True),
        ("not-equals", "yes", "yes", False),
        ("contains", "typescript", "script", True),
        ("contains", ["js", "ts"], "ts", True),
        ("contains", ["js", "ts"], "go", False),
        ("greater-than", 7, 5, True),
        ("greater-than", "7", 5, True),
        ("greater-than", 5, 5, False),
        ("greater-than", "abc", 5, False),
        ("less-than", 2, 5, True),
        ("less-than", "abc", 5, False),
        ("less-than", "", 1, True),
    ],
)
def test_operator_table(operator: str, actual: object, expected: object, result: bool) -> None:
    assert DEFAULT_OPERATORS[operator](actual, expected) is result


def test_missing_answer_never_satisfies_any_operator() -> None:
    for operator in DEFAULT_OPERATORS:
        cond = Condition(depends_on="q1", required_value="x", operator=operator)
        assert evaluate_condition(cond, {}) is False
        assert evaluate_condition(cond, {"q1": None}) is False


def test_not_equals_with_missing_answer_is_false() -> None:
    question = _question({"dependsOn": "q1", "requiredValue": "yes", "operator": "not-equals"})
    assert is_visible(question, {}) is False
    assert is_visible(question, {"q1": "no"}) is True


def test_unconditional_question_is_always_visible() -> None:
    assert is_visible(_question(), {}) is True


def test_multiple_conditions_are_anded() -> None:
    question = _question(
        {"dependsOn": "q1", "requiredValue": "yes"},
        {"dependsOn": "q2", "requiredValue": 5, "operator": "greater-than"},
    )
    assert is_visible(question, {"q1": "yes", "q2": 7}) is True
    assert is_visible(question, {"q1": "yes", "q2": 3}) is False
    assert is_visible(question, {"q1": "no", "q2": 7}) is False


def test_condition_on_unknown_question_id_hides_question() -> None:
    question = _question({"dependsOn": "does-not-exist", "requiredValue": "x"})
    assert is_visible(question, {"q1": "x"}) is False


def test_visible_questions_preserves_definition_order(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    assert [q.id for q in visible_questions(conditional_questions, {})] == ["q1", "q3"]
    assert [q.id for q in visible_questions(conditional_questions, {"q1": "yes"})] == [
        "q1",
        "q2",
        "q3",
    ]


def test_visibility_is_deterministic_and_leaves_answers_alone(conditional_questions) -> None:  # type: ignore[no-untyped-def]
    answers = {"q1": "yes", "q2": "generics"}
    before = dict(answers)
    target = conditional_questions[1]

    assert is_visible(target, answers) is True
    assert is_visible(target, answers) is True
    first = [q.id for q in visible_questions(conditional_questions, answers)]
    second = [q.id for q in visible_questions(conditional_questions, answers)]

    assert first == second == ["q1", "q2", "q3"]
    assert answers == before


def test_strict_equals_treats_bools_separately_from_ints() -> None:
    assert strict_equals(True, True) is True
    assert strict_equals(0, False) is False


def test_to_number_handles_blank_and_garbage() -> None:
    assert to_number("  ") == 0.0
    assert to_number(" 4.5 ") == 4.5
    assert to_number(True) == 1.0
    assert to_number("nope") != to_number("nope")  # NaN
    assert to_number(None) != to_number(None)
