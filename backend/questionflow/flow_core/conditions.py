"""Condition evaluation: decides which questions are visible for a set of answers.

Every function here is pure. An answer that is absent or ``None`` never
satisfies a condition, whatever the operator, and a condition pointing at a
question id that does not exist is treated the same way.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .constants import (
    OPERATOR_CONTAINS,
    OPERATOR_EQUALS,
    OPERATOR_GREATER_THAN,
    OPERATOR_LESS_THAN,
    OPERATOR_NOT_EQUALS,
)

if TYPE_CHECKING:
    from .ir import BaseQuestion, Condition

OperatorFunction = Callable[[Any, Any], bool]


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """Type-aware equality: ``3 == "3"`` and ``1 == True`` are both false here.

    Integers and floats count as one numeric type.
    """
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return bool(left == right)


def to_number(value: Any) -> float:
    """Coerce a value to a float, returning NaN when it has no numeric reading."""
    if isinstance(value, bool):
        return float(value)
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def stringify(value: Any) -> str:
    """Render an answer as text for substring and length checks."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list | tuple):
        return ",".join(stringify(v) for v in value)
    return str(value)


def op_equals(actual: Any, expected: Any) -> bool:
    return strict_equals(actual, expected)


def op_not_equals(actual: Any, expected: Any) -> bool:
    return not strict_equals(actual, expected)


def op_contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list | tuple | set | frozenset):
        return any(strict_equals(item, expected) for item in actual)
    return stringify(expected) in stringify(actual)


def op_greater_than(actual: Any, expected: Any) -> bool:
    # Comparisons involving NaN are always False
    return to_number(actual) > to_number(expected)


def op_less_than(actual: Any, expected: Any) -> bool:
    return to_number(actual) < to_number(expected)


DEFAULT_OPERATORS: dict[str, OperatorFunction] = {
    OPERATOR_EQUALS: op_equals,
    OPERATOR_NOT_EQUALS: op_not_equals,
    OPERATOR_CONTAINS: op_contains,
    OPERATOR_GREATER_THAN: op_greater_than,
    OPERATOR_LESS_THAN: op_less_than,
}


def evaluate_condition(condition: Condition, answers: Mapping[str, Any]) -> bool:
    actual = answers.get(condition.depends_on)
    if actual is None:
        return False
    fn = DEFAULT_OPERATORS.get(condition.operator, op_equals)
    return fn(actual, condition.required_value)


def is_visible(question: BaseQuestion, answers: Mapping[str, Any]) -> bool:
    """Return True when every condition on the question holds (logical AND)."""
    if not question.conditions:
        return True
    return all(evaluate_condition(c, answers) for c in question.conditions)


def visible_questions(
    questions: Iterable[BaseQuestion], answers: Mapping[str, Any]
) -> list[BaseQuestion]:
    """Filter questions down to the visible ones, preserving definition order."""
    return [q for q in questions if is_visible(q, answers)]
