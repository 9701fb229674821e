from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from questionflow.core.app_context import get_app_context
from questionflow.core.logging import flow_session_ctx_var
from questionflow.exceptions import (
    AdvanceBlockedError,
    DuplicateQuestionError,
    SessionNotFoundError,
    UnknownQuestionError,
)
from questionflow.flow_core.ir import parse_questions
from questionflow.flow_core.widgets import flow_summary
from questionflow.services.flow_session_service import FlowSessionService, ManagedSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/flows", tags=["flows"])


class CreateSessionRequest(BaseModel):
    questionnaire_id: str | None = None
    questions: list[dict[str, Any]] | None = None
    options: dict[str, Any] | None = None
    initial_answers: dict[str, Any] | None = None
    initial_flagged: list[str] | None = None
    respondent_id: str | None = None


class AnswerRequest(BaseModel):
    question_id: str | None = None
    value: Any = None


class FlagRequest(BaseModel):
    question_id: str | None = None
    flagged: bool | None = None


class ValidatingRequest(BaseModel):
    active: bool = Field(description="True while an external answer check is running")


def _sessions(request: Request) -> FlowSessionService:
    return get_app_context(request.app).sessions


def _lookup(request: Request, session_id: str) -> ManagedSession:
    try:
        managed = _sessions(request).get(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    flow_session_ctx_var.set(session_id)
    return managed


def _session_view(managed: ManagedSession) -> dict[str, Any]:
    session = managed.session
    engine = session.engine
    state = engine.state
    view: dict[str, Any] = {
        "session_id": managed.session_id,
        "questionnaire_id": managed.questionnaire_id,
        "respondent_id": managed.respondent_id,
        "resumed": managed.resumed,
        "phase": engine.phase.value,
        "options": session.options.model_dump(by_alias=True),
        "answers": dict(state.answers),
        "flagged": engine.flagged_in_order(),
        "errors": dict(state.errors),
        "visible_question_ids": [q.id for q in state.visible_questions],
        "summary": flow_summary(engine),
        "auto_advance_pending": (
            session.auto_advance.pending_question_id if session.auto_advance else None
        ),
        "last_saved_at": managed.last_saved_at.isoformat() if managed.last_saved_at else None,
    }
    return view


@router.post("/sessions", status_code=201)
async def create_session(request: Request, body: CreateSessionRequest) -> dict[str, Any]:
    """Start a flow from a loaded questionnaire or an inline question list."""
    ctx = get_app_context(request.app)
    if body.questionnaire_id is None and not body.questions:
        raise HTTPException(
            status_code=422, detail="Provide either 'questionnaire_id' or 'questions'"
        )

    questionnaire_options: dict[str, Any] | None = None
    if body.questionnaire_id is not None:
        questionnaire = ctx.questionnaires.get(body.questionnaire_id)
        if questionnaire is None:
            raise HTTPException(
                status_code=404, detail=f"Questionnaire not found: {body.questionnaire_id}"
            )
        questions = list(questionnaire.questions)
        questionnaire_options = questionnaire.options.model_dump(exclude_unset=True)
    else:
        try:
            questions = parse_questions(body.questions or [])
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc

    try:
        options = ctx.sessions.merge_options(questionnaire_options, body.options)
        managed = ctx.sessions.create(
            questions,
            options=options,
            initial_answers=body.initial_answers,
            initial_flagged=body.initial_flagged,
            questionnaire_id=body.questionnaire_id,
            respondent_id=body.respondent_id,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False)) from exc
    except DuplicateQuestionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    flow_session_ctx_var.set(managed.session_id)
    return _session_view(managed)


@router.get("/sessions/{session_id}")
async def get_session(request: Request, session_id: str) -> dict[str, Any]:
    return _session_view(_lookup(request, session_id))


@router.post("/sessions/{session_id}/answer")
async def answer(request: Request, session_id: str, body: AnswerRequest) -> dict[str, Any]:
    """Record a widget value; defaults to the active question."""
    managed = _lookup(request, session_id)
    try:
        managed.session.answer(body.value, body.question_id)
    except UnknownQuestionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _session_view(managed)


@router.post("/sessions/{session_id}/next")
async def go_next(request: Request, session_id: str) -> dict[str, Any]:
    managed = _lookup(request, session_id)
    try:
        result = _sessions(request).next(session_id)
    except AdvanceBlockedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"result": _result_view(result), **_session_view(managed)}


@router.post("/sessions/{session_id}/previous")
async def go_previous(request: Request, session_id: str) -> dict[str, Any]:
    managed = _lookup(request, session_id)
    result = managed.session.previous()
    return {"result": _result_view(result), **_session_view(managed)}


@router.post("/sessions/{session_id}/skip")
async def skip(request: Request, session_id: str) -> dict[str, Any]:
    managed = _lookup(request, session_id)
    try:
        result = _sessions(request).skip(session_id)
    except AdvanceBlockedError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {"result": _result_view(result), **_session_view(managed)}


@router.post("/sessions/{session_id}/flag")
async def flag(
    request: Request, session_id: str, body: FlagRequest | None = None
) -> dict[str, Any]:
    """Toggle the flag, or set it explicitly when ``flagged`` is given."""
    managed = _lookup(request, session_id)
    body = body or FlagRequest()
    session = managed.session
    try:
        if body.flagged is None:
            session.toggle_flag(body.question_id)
        elif body.flagged:
            session.flag(body.question_id)
        else:
            session.unflag(body.question_id)
    except UnknownQuestionError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _session_view(managed)


@router.post("/sessions/{session_id}/validating")
async def set_validating(
    request: Request, session_id: str, body: ValidatingRequest
) -> dict[str, Any]:
    managed = _lookup(request, session_id)
    engine = managed.session.engine
    if body.active:
        engine.begin_validation()
    else:
        engine.end_validation()
    return _session_view(managed)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(request: Request, session_id: str) -> None:
    _lookup(request, session_id)
    _sessions(request).dispose(session_id)
    logger.info("Session %s deleted", session_id)


def _result_view(result: Any) -> dict[str, Any]:
    return {
        "kind": result.kind,
        "moved": result.moved,
        "index": result.index,
        "question_id": result.question_id,
        "direction": result.direction,
        "error": result.error,
        "reason": result.reason,
    }
