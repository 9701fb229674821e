from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

if TYPE_CHECKING:
    from fastapi import FastAPI

    from questionflow.core.state import SnapshotStore
    from questionflow.flow_core.ir import Questionnaire
    from questionflow.services.flow_session_service import FlowSessionService
    from questionflow.services.question_bank import QuestionBankProvider
    from questionflow.settings import Settings


@dataclass(slots=True)
class AppContext:
    settings: Settings
    snapshots: SnapshotStore
    sessions: FlowSessionService
    question_banks: QuestionBankProvider
    questionnaires: dict[str, Questionnaire] = field(default_factory=dict)


def set_app_context(app: FastAPI, ctx: AppContext) -> None:
    # Store one typed context object under app.state
    app.state.ctx = ctx


def get_app_context(app: FastAPI) -> AppContext:
    return cast("AppContext", app.state.ctx)
