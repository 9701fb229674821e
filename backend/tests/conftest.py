import os
import sys

import pytest

# Ensure the backend root (containing the `questionflow` package) is importable
_TESTS_DIR = os.path.dirname(__file__)
_BACKEND_ROOT = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _BACKEND_ROOT not in sys.path:
    sys.path.insert(0, _BACKEND_ROOT)

from questionflow.flow_core.ir import parse_questions  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: Fast unit tests with mocks only")


@pytest.fixture
def sample_questions():  # type: ignore[no-untyped-def]
    """q1 required choice, q2 optional yes/no, q3 required rating 1..10."""
    return parse_questions(
        [
            {
                "id": "q1",
                "type": "multiple-choice",
                "questionText": "What is your preferred programming language?",
                "required": True,
                "config": {
                    "options": [
                        {"id": "js", "label": "JavaScript"},
                        {"id": "ts", "label": "TypeScript"},
                        {"id": "python", "label": "Python"},
                    ]
                },
            },
            {
                "id": "q2",
                "type": "yes-no",
                "questionText": "Do you have experience with TypeScript?",
                "config": {"showUnsure": True},
            },
            {
                "id": "q3",
                "type": "rating",
                "questionText": "How would you rate your React skills?",
                "required": True,
                "validationRules": {"min": 1, "max": 10},
            },
        ]
    )


@pytest.fixture
def conditional_questions():  # type: ignore[no-untyped-def]
    """q2 is only visible when q1 == "yes"."""
    return parse_questions(
        [
            {"id": "q1", "type": "yes-no", "questionText": "Do you use TypeScript?"},
            {
                "id": "q2",
                "type": "text",
                "questionText": "Which TypeScript features do you rely on?",
                "conditions": [{"dependsOn": "q1", "requiredValue": "yes"}],
            },
            {"id": "q3", "type": "rating", "questionText": "Rate your tooling."},
        ]
    )
