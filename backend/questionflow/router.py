from __future__ import annotations

from fastapi import APIRouter

from questionflow.api.flows import router as flows_router
from questionflow.api.question_bank import router as question_bank_router
from questionflow.api.questionnaires import router as questionnaires_router

api_router = APIRouter(prefix="/api")

api_router.include_router(questionnaires_router)
api_router.include_router(flows_router)
api_router.include_router(question_bank_router)
