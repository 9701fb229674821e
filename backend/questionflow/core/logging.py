"""Application logging configuration and middleware.

Logging is configured with ``logging.config.dictConfig`` using a key-value
formatter. A FastAPI middleware injects request IDs, and the flow routes bind
the session they operate on, so every record carries both.
"""

from __future__ import annotations

import logging
import logging.config
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware  # type: ignore[import-not-found]

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
flow_session_ctx_var: ContextVar[str | None] = ContextVar("flow_session", default=None)


class ContextFilter(logging.Filter):
    """Inject request and flow session IDs from contextvars into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - small
        record.request_id = request_id_ctx_var.get() or "-"
        record.flow_session = flow_session_ctx_var.get() or "-"
        return True


def _build_config(log_level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context": {"()": ContextFilter}},
        "formatters": {
            "kv": {
                "format": (
                    "level=%(levelname)s logger=%(name)s request_id=%(request_id)s "
                    "session=%(flow_session)s message=%(message)s"
                )
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "kv",
                "filters": ["context"],
                "level": log_level,
            }
        },
        "root": {"handlers": ["default"], "level": log_level},
    }


def setup_logging(log_level: str | None = None) -> None:
    """Configure root logging using key-value formatting.

    The level defaults to the ``LOG_LEVEL`` setting.
    """
    if log_level is None:
        from questionflow.settings import get_settings

        log_level = get_settings().log_level
    logging.config.dictConfig(_build_config(log_level.upper()))


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Populate a unique request ID for each incoming HTTP request.

    Uses the ``X-Request-ID`` header when present, otherwise a fresh UUID4. The
    ID is echoed back in the ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        token = request_id_ctx_var.set(request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx_var.reset(token)


__all__ = ["RequestIdMiddleware", "flow_session_ctx_var", "request_id_ctx_var", "setup_logging"]
