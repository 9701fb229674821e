from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from questionflow.core.app_context import get_app_context

router = APIRouter(prefix="/questionnaires", tags=["questionnaires"])


@router.get("")
async def list_questionnaires(request: Request) -> list[dict[str, Any]]:
    registry = get_app_context(request.app).questionnaires
    return [
        {
            "id": q.id,
            "title": q.title,
            "category": q.category,
            "question_count": len(q.questions),
        }
        for q in registry.values()
    ]


@router.get("/{questionnaire_id}")
async def get_questionnaire(request: Request, questionnaire_id: str) -> dict[str, Any]:
    """Return the full definition with camelCase keys, as widgets consume it."""
    questionnaire = get_app_context(request.app).questionnaires.get(questionnaire_id)
    if questionnaire is None:
        raise HTTPException(status_code=404, detail=f"Questionnaire not found: {questionnaire_id}")
    return questionnaire.model_dump(mode="json", by_alias=True)
