"""Randomized, non-repeating selection of two-option poll questions.

The bank draws from three categories (``auth``, ``platform``, ``general``) and
remembers which questions were already shown through an injected storage, so a
respondent sees every question once before any repeats. ``QuestionBankProvider``
builds a separate bank, over separate storage, for each respondent.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Callable
from functools import partial
from typing import Literal, Protocol

import redis
from pydantic import BaseModel, ConfigDict, Field

from questionflow.core.state import RedisKeyBuilder

logger = logging.getLogger(__name__)

BankCategory = Literal["auth", "platform", "general"]
CATEGORY_ORDER: tuple[BankCategory, ...] = ("auth", "platform", "general")
FALLBACK_CATEGORY: BankCategory = "general"


class BankQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: BankCategory
    text: str
    options: tuple[str, str] = Field(description="Always exactly two options")


QUESTION_BANK: tuple[BankQuestion, ...] = (
    BankQuestion(
        id="auth-1",
        category="auth",
        text="What's your preference for authentication?",
        options=("Magic links only", "Traditional login forms"),
    ),
    BankQuestion(
        id="auth-2",
        category="auth",
        text="Anonymous feedback vs. tracked contributions?",
        options=("Full anonymity", "Optional profiles"),
    ),
    BankQuestion(
        id="auth-3",
        category="auth",
        text="How long should magic links stay valid?",
        options=("15 minutes", "1 hour"),
    ),
    BankQuestion(
        id="platform-1",
        category="platform",
        text="Primary device for filling surveys?",
        options=("Mobile phone", "Desktop computer"),
    ),
    BankQuestion(
        id="platform-2",
        category="platform",
        text="Preferred interaction method?",
        options=("Touch/tap", "Click/keyboard"),
    ),
    BankQuestion(
        id="platform-3",
        category="platform",
        text="Survey length preference?",
        options=("Quick 2-3 questions", "Detailed 10+ questions"),
    ),
    BankQuestion(
        id="general-1",
        category="general",
        text="What motivates you to give feedback?",
        options=("Improving the product", "Helping the community"),
    ),
    BankQuestion(
        id="general-2",
        category="general",
        text="Ideal feedback frequency?",
        options=("Weekly check-ins", "Only major milestones"),
    ),
    BankQuestion(
        id="general-3",
        category="general",
        text="Transparency level preference?",
        options=("See all decisions", "Just final results"),
    ),
    BankQuestion(
        id="general-4",
        category="general",
        text="Community involvement style?",
        options=("Active participant", "Passive observer"),
    ),
    BankQuestion(
        id="general-5",
        category="general",
        text="Feature priority preference?",
        options=("User experience", "Technical robustness"),
    ),
)


class UsedQuestionStorage(Protocol):
    def load(self) -> set[str]: ...

    def save(self, used: set[str]) -> None: ...


class InMemoryUsedQuestionStorage:
    def __init__(self) -> None:
        self._used: set[str] = set()

    def load(self) -> set[str]:
        return set(self._used)

    def save(self, used: set[str]) -> None:
        self._used = set(used)


class RedisUsedQuestionStorage:
    """One respondent's used-question set, a JSON list under its own Redis key."""

    def __init__(
        self, redis_client: redis.Redis, respondent_id: str, *, namespace: str = "questionflow"
    ) -> None:
        self._r = redis_client
        self._key = RedisKeyBuilder(namespace=namespace.rstrip(":")).used_questions_key(
            respondent_id
        )

    def load(self) -> set[str]:
        raw = self._r.get(self._key)
        if not raw:
            return set()
        body = raw.decode("utf-8") if isinstance(raw, bytes | bytearray) else raw
        return set(json.loads(body))

    def save(self, used: set[str]) -> None:
        self._r.set(self._key, json.dumps(sorted(used)))


class QuestionBank:
    """Draws each bank question once before any question repeats.

    Storage is best-effort: a failing ``load`` starts from an empty used set
    and a failing ``save`` keeps the in-process set.
    """

    def __init__(
        self,
        questions: tuple[BankQuestion, ...] | list[BankQuestion] = QUESTION_BANK,
        storage: UsedQuestionStorage | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._questions = tuple(questions)
        self._by_id = {q.id: q for q in self._questions}
        self._storage = storage or InMemoryUsedQuestionStorage()
        self._rng = rng or random.Random()
        self._used: set[str] = self._load_used()

    @property
    def questions(self) -> tuple[BankQuestion, ...]:
        return self._questions

    @property
    def used(self) -> frozenset[str]:
        return frozenset(self._used)

    def get(self, question_id: str) -> BankQuestion | None:
        return self._by_id.get(question_id)

    def next_question(self, preferred_category: BankCategory | None = None) -> BankQuestion | None:
        if preferred_category is not None:
            question = self._draw_from(preferred_category)
            if question is not None:
                return question

        for category in CATEGORY_ORDER:
            if category == preferred_category:
                continue
            question = self._draw_from(category)
            if question is not None:
                return question

        logger.info("Question bank exhausted; resetting used questions")
        self.reset()
        return self._draw_from(FALLBACK_CATEGORY)

    def sample(self, count: int, category: BankCategory | None = None) -> list[BankQuestion]:
        """Random distinct questions, without marking any of them used."""
        pool = [q for q in self._questions if category is None or q.category == category]
        if count <= 0:
            return []
        if count >= len(pool):
            picked = list(pool)
            self._rng.shuffle(picked)
            return picked
        return self._rng.sample(pool, count)

    def reset(self) -> None:
        self._used.clear()
        self._save_used()

    def stats(self) -> dict[str, object]:
        total = len(self._questions)
        used = len(self._used)
        return {
            "total_questions": total,
            "used_questions": used,
            "remaining_questions": total - used,
            "category_breakdown": {
                category: sum(1 for q in self._questions if q.category == category)
                for category in CATEGORY_ORDER
            },
        }

    def _draw_from(self, category: BankCategory) -> BankQuestion | None:
        available = [
            q for q in self._questions if q.category == category and q.id not in self._used
        ]
        if not available:
            return None
        selected = self._rng.choice(available)
        self._used.add(selected.id)
        self._save_used()
        return selected

    def _load_used(self) -> set[str]:
        try:
            return set(self._storage.load())
        except Exception as e:
            logger.warning("Could not load used questions: %s", e)
            return set()

    def _save_used(self) -> None:
        try:
            self._storage.save(set(self._used))
        except Exception as e:
            logger.warning("Could not save used questions: %s", e)


StorageFactory = Callable[[str], UsedQuestionStorage]


class QuestionBankProvider:
    """Hands out one bank per respondent, each over that respondent's storage.

    Without a ``storage_factory`` the used sets live in process memory, one per
    respondent id.
    """

    def __init__(
        self,
        storage_factory: StorageFactory | None = None,
        *,
        questions: tuple[BankQuestion, ...] | list[BankQuestion] = QUESTION_BANK,
        rng: random.Random | None = None,
    ) -> None:
        self._questions = tuple(questions)
        self._rng = rng
        self._memory: dict[str, InMemoryUsedQuestionStorage] = {}
        self._storage_factory = storage_factory or self._memory_storage

    @classmethod
    def from_redis(
        cls, redis_client: redis.Redis, *, namespace: str = "questionflow"
    ) -> QuestionBankProvider:
        return cls(partial(RedisUsedQuestionStorage, redis_client, namespace=namespace))

    def for_respondent(self, respondent_id: str) -> QuestionBank:
        return QuestionBank(
            self._questions, storage=self._storage_factory(respondent_id), rng=self._rng
        )

    def shared(self) -> QuestionBank:
        """A bank with no used-set history, for stateless reads like sampling."""
        return QuestionBank(self._questions, storage=InMemoryUsedQuestionStorage(), rng=self._rng)

    def _memory_storage(self, respondent_id: str) -> InMemoryUsedQuestionStorage:
        return self._memory.setdefault(respondent_id, InMemoryUsedQuestionStorage())
