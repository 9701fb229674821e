"""Answer validation run when the respondent attempts to advance.

Checks run in a fixed order and the first failure wins:

1. required
2. the caller-supplied custom validator
3. rule checks: ``min_length``, ``max_length``, ``min``, ``max``, ``pattern``

Validation never mutates anything; callers store the returned reason.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from .conditions import stringify, to_number
from .constants import (
    MAX_LENGTH_ERROR,
    MAX_VALUE_ERROR,
    MIN_LENGTH_ERROR,
    MIN_VALUE_ERROR,
    PATTERN_ERROR,
    REQUIRED_ERROR,
)

if TYPE_CHECKING:
    from .ir import BaseQuestion, ValidationRules

CustomValidator = Callable[[Any, Any], str | None]


def is_empty(answer: Any) -> bool:
    return answer is None or answer == ""


def _format_limit(limit: float) -> str:
    return str(int(limit)) if float(limit).is_integer() else str(limit)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def check_rules(rules: ValidationRules, answer: Any) -> str | None:
    """Apply declarative rules to a non-empty answer."""
    text = stringify(answer)

    if rules.min_length is not None and len(text) < rules.min_length:
        return MIN_LENGTH_ERROR.format(limit=rules.min_length)
    if rules.max_length is not None and len(text) > rules.max_length:
        return MAX_LENGTH_ERROR.format(limit=rules.max_length)

    number = to_number(answer)
    if rules.min_value is not None and not math.isnan(number) and number < rules.min_value:
        return MIN_VALUE_ERROR.format(limit=_format_limit(rules.min_value))
    if rules.max_value is not None and not math.isnan(number) and number > rules.max_value:
        return MAX_VALUE_ERROR.format(limit=_format_limit(rules.max_value))

    if rules.pattern is not None and not _compile(rules.pattern).search(text):
        return PATTERN_ERROR
    return None


def validate_answer(
    question: BaseQuestion,
    answer: Any,
    custom_validator: CustomValidator | None = None,
) -> str | None:
    """Return the first validation failure for ``answer`` or None when it passes."""
    if question.required and is_empty(answer):
        return REQUIRED_ERROR

    if custom_validator is not None:
        custom_error = custom_validator(question, answer)
        if custom_error:
            return custom_error

    # Optional questions left blank have nothing to check
    if question.validation_rules is None or is_empty(answer):
        return None
    return check_rules(question.validation_rules, answer)
