from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from questionflow.flow_core.ir import Questionnaire

logger = logging.getLogger(__name__)


def load_questionnaire(path: str | Path) -> Questionnaire:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        data: Any = json.load(f)

    # Basic validation to fail fast on common mistakes
    if not isinstance(data, dict):
        msg = f"Questionnaire JSON root must be an object: {p}"
        raise TypeError(msg)
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        msg_questions = f"'questions' must be a non-empty array: {p}"
        raise ValueError(msg_questions)
    if "id" not in data:
        data = {**data, "id": p.stem}

    questionnaire = Questionnaire.model_validate(data)
    ids = [q.id for q in questionnaire.questions]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        msg_dup = f"Duplicate question ids in {p}: {', '.join(duplicates)}"
        raise ValueError(msg_dup)
    return questionnaire


def load_questionnaire_dir(directory: str | Path) -> dict[str, Questionnaire]:
    """Load every ``*.json`` questionnaire in ``directory`` keyed by its id.

    A missing directory yields an empty registry; a malformed file raises.
    """
    d = Path(directory)
    if not d.is_dir():
        logger.info("Questionnaire directory %s not found; no definitions loaded", d)
        return {}

    registry: dict[str, Questionnaire] = {}
    for path in sorted(d.glob("*.json")):
        questionnaire = load_questionnaire(path)
        if questionnaire.id in registry:
            msg = f"Questionnaire id '{questionnaire.id}' defined twice (second in {path})"
            raise ValueError(msg)
        registry[questionnaire.id] = questionnaire
        logger.info(
            "Loaded questionnaire %s (%d questions) from %s",
            questionnaire.id,
            len(questionnaire.questions),
            path.name,
        )
    return registry


def default_questionnaire_dir() -> Path:
    # __file__ = backend/questionflow/config/loader.py -> parents[2] = backend
    return Path(__file__).resolve().parents[2] / "playground"
