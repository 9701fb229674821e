from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

import redis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from questionflow.config.loader import default_questionnaire_dir, load_questionnaire_dir
from questionflow.core.app_context import AppContext, get_app_context, set_app_context
from questionflow.core.logging import RequestIdMiddleware, setup_logging
from questionflow.core.state import InMemorySnapshotStore, RedisSnapshotStore
from questionflow.flow_core.ir import FlowOptions
from questionflow.router import api_router
from questionflow.services.flow_session_service import FlowSessionService
from questionflow.services.question_bank import QuestionBankProvider
from questionflow.settings import get_settings

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """FastAPI lifespan handler for startup/shutdown."""
    settings = get_settings()
    ctx = get_app_context(app)
    ctx.settings = settings

    # Questionnaire definitions; a malformed file aborts startup
    directory = settings.questionnaire_dir or default_questionnaire_dir()
    ctx.questionnaires = load_questionnaire_dir(directory)
    logger.info("Loaded %d questionnaire(s) from %s", len(ctx.questionnaires), directory)

    # Snapshot store and question bank storage: prefer Redis when configured
    redis_url = settings.redis_conn_url
    if redis_url:
        try:
            snapshots = RedisSnapshotStore(
                redis_url,
                namespace=settings.redis_namespace,
                ttl=timedelta(days=settings.snapshot_ttl_days),
            )
            snapshots.redis_client.ping()  # type: ignore[attr-defined]
            ctx.snapshots = snapshots
            ctx.question_banks = QuestionBankProvider.from_redis(
                snapshots.redis_client,  # type: ignore[arg-type]
                namespace=settings.redis_namespace,
            )
            logger.info("Snapshot store initialized with Redis: %s", redis_url)
        except redis.RedisError as e:
            logger.warning("Redis connection failed (%s), falling back to in-memory store", e)
            ctx.snapshots = InMemorySnapshotStore()
            ctx.question_banks = QuestionBankProvider()
    else:
        ctx.snapshots = InMemorySnapshotStore()
        ctx.question_banks = QuestionBankProvider()
        logger.info("Snapshot store initialized with in-memory backend")

    ctx.sessions = FlowSessionService(
        ctx.snapshots,
        default_options=FlowOptions(
            auto_advance_delay_ms=settings.auto_advance_delay_ms,
            auto_save_interval_ms=settings.auto_save_interval_ms,
        ),
    )

    yield

    ctx.sessions.dispose_all()
    logger.info("Application shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Question Flow API",
        version="0.1.0",
        description="Conditional questionnaires with validated navigation and auto-save",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RequestIdMiddleware)

    settings = get_settings()
    snapshots = InMemorySnapshotStore()
    set_app_context(
        app,
        AppContext(
            settings=settings,
            snapshots=snapshots,
            sessions=FlowSessionService(snapshots),
            question_banks=QuestionBankProvider(),
        ),
    )

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str:
        return "ok"

    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("questionflow.main:app", host="0.0.0.0", port=8080)
