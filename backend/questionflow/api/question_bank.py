from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from questionflow.core.app_context import get_app_context
from questionflow.services.question_bank import BankCategory, QuestionBank

router = APIRouter(prefix="/question-bank", tags=["question-bank"])


def _bank_for(request: Request, respondent_id: str) -> QuestionBank:
    return get_app_context(request.app).question_banks.for_respondent(respondent_id)


@router.get("/next")
async def next_question(
    request: Request,
    respondent_id: str = Query(min_length=1),
    category: BankCategory | None = Query(default=None),
) -> dict[str, Any]:
    """Draw the respondent's next unused poll question, preferring ``category``."""
    question = _bank_for(request, respondent_id).next_question(category)
    if question is None:
        raise HTTPException(status_code=404, detail="Question bank is empty")
    return question.model_dump()


@router.get("/sample")
async def sample_questions(
    request: Request,
    count: int = Query(default=3, ge=1, le=50),
    category: BankCategory | None = Query(default=None),
) -> list[dict[str, Any]]:
    bank = get_app_context(request.app).question_banks.shared()
    return [q.model_dump() for q in bank.sample(count, category)]


@router.get("/stats")
async def bank_stats(request: Request, respondent_id: str = Query(min_length=1)) -> dict[str, Any]:
    return _bank_for(request, respondent_id).stats()
