from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

import redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedisKeyBuilder:
    """Single source of truth for the Redis key patterns used by the service."""

    namespace: str = "questionflow"

    def snapshot_key(self, questionnaire_id: str, respondent_id: str) -> str:
        return f"{self.namespace}:snapshot:{questionnaire_id}:{respondent_id}"

    def used_questions_key(self, respondent_id: str) -> str:
        return f"{self.namespace}:question_bank:used:{respondent_id}"


class SnapshotStore(Protocol):
    def load(self, questionnaire_id: str, respondent_id: str) -> dict[str, Any] | None: ...

    def save(self, questionnaire_id: str, respondent_id: str, snapshot: dict[str, Any]) -> None: ...

    def delete(self, questionnaire_id: str, respondent_id: str) -> None: ...


class InMemorySnapshotStore:
    def __init__(self) -> None:
        self._snapshots: dict[tuple[str, str], str] = {}

    def load(self, questionnaire_id: str, respondent_id: str) -> dict[str, Any] | None:
        raw = self._snapshots.get((questionnaire_id, respondent_id))
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, questionnaire_id: str, respondent_id: str, snapshot: dict[str, Any]) -> None:
        # Stored serialized so later mutation of the caller's dict has no effect
        self._snapshots[(questionnaire_id, respondent_id)] = json.dumps(snapshot)

    def delete(self, questionnaire_id: str, respondent_id: str) -> None:
        self._snapshots.pop((questionnaire_id, respondent_id), None)


class RedisSnapshotStore:
    """Flow snapshots backed by Redis.

    Each (questionnaire_id, respondent_id) pair maps to one JSON document that
    expires after ``ttl``.
    """

    def __init__(
        self,
        redis_url: str,
        *,
        namespace: str = "questionflow",
        ttl: timedelta | None = timedelta(days=30),
    ) -> None:
        self._r = redis.from_url(redis_url)
        self._keys = RedisKeyBuilder(namespace=namespace.rstrip(":"))
        self._ttl = int(ttl.total_seconds()) if ttl else None

    @property
    def redis_client(self) -> object:
        return self._r

    def load(self, questionnaire_id: str, respondent_id: str) -> dict[str, Any] | None:
        raw = self._r.get(self._keys.snapshot_key(questionnaire_id, respondent_id))
        if not raw:
            return None
        try:
            body = raw.decode("utf-8") if isinstance(raw, bytes | bytearray) else raw
            data = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(
                "Failed to decode snapshot for %s/%s: %s", questionnaire_id, respondent_id, e
            )
            return None
        return data if isinstance(data, dict) else None

    def save(self, questionnaire_id: str, respondent_id: str, snapshot: dict[str, Any]) -> None:
        key = self._keys.snapshot_key(questionnaire_id, respondent_id)
        body = json.dumps(snapshot)
        if self._ttl:
            self._r.setex(key, self._ttl, body)
        else:
            self._r.set(key, body)

    def delete(self, questionnaire_id: str, respondent_id: str) -> None:
        self._r.delete(self._keys.snapshot_key(questionnaire_id, respondent_id))
