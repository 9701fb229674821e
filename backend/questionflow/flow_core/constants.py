"""Constants for the question flow engine.

This module defines the defaults shared by the engine, the schedulers and the
HTTP layer, avoiding magic numbers scattered through the code.
"""

# Scheduler defaults
DEFAULT_AUTO_ADVANCE_DELAY_MS = 1000
DEFAULT_AUTO_SAVE_INTERVAL_MS = 10000

# Navigation directions reported to onNavigationChange
DIRECTION_NEXT = "next"
DIRECTION_PREVIOUS = "previous"

# Condition operators
OPERATOR_EQUALS = "equals"
OPERATOR_NOT_EQUALS = "not-equals"
OPERATOR_CONTAINS = "contains"
OPERATOR_GREATER_THAN = "greater-than"
OPERATOR_LESS_THAN = "less-than"

# Validation messages
REQUIRED_ERROR = "This question is required."
MIN_LENGTH_ERROR = "Answer must be at least {limit} characters."
MAX_LENGTH_ERROR = "Answer must be no more than {limit} characters."
MIN_VALUE_ERROR = "Value must be at least {limit}."
MAX_VALUE_ERROR = "Value must be no more than {limit}."
PATTERN_ERROR = "Answer format is invalid."

# Question types that may trigger auto-advance
AUTO_ADVANCE_TYPES = frozenset({"yes-no", "multiple-choice"})
