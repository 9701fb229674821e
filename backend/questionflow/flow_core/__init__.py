from .callbacks import FlowCallbacks
from .conditions import DEFAULT_OPERATORS, is_visible, visible_questions
from .engine import NavigationResult, QuestionFlowEngine
from .ir import (
    BaseQuestion,
    Condition,
    FlowOptions,
    Question,
    Questionnaire,
    ValidationRules,
    parse_question,
    parse_questions,
)
from .scheduling import AutoAdvanceScheduler, AutoSaveScheduler, TimerScope
from .session import FlowSession
from .state import FlowPhase, FlowState, FlowStateStore
from .validation import validate_answer

__all__ = [
    "DEFAULT_OPERATORS",
    "AutoAdvanceScheduler",
    "AutoSaveScheduler",
    "BaseQuestion",
    "Condition",
    "FlowCallbacks",
    "FlowOptions",
    "FlowPhase",
    "FlowSession",
    "FlowState",
    "FlowStateStore",
    "NavigationResult",
    "Question",
    "QuestionFlowEngine",
    "Questionnaire",
    "TimerScope",
    "ValidationRules",
    "is_visible",
    "parse_question",
    "parse_questions",
    "validate_answer",
    "visible_questions",
]
