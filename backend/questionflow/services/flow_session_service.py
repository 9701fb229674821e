"""Registry of live flow sessions used by the HTTP layer.

Each session is wired so that auto-save ticks and completion write a snapshot
to the snapshot store, which is what lets a respondent resume later.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, Any

from questionflow.exceptions import AdvanceBlockedError, SessionNotFoundError
from questionflow.flow_core.callbacks import FlowCallbacks
from questionflow.flow_core.ir import FlowOptions
from questionflow.flow_core.session import FlowSession
from questionflow.flow_core.state import FlowState

if TYPE_CHECKING:
    from questionflow.core.state import SnapshotStore
    from questionflow.flow_core.engine import NavigationResult
    from questionflow.flow_core.ir import BaseQuestion

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ManagedSession:
    session: FlowSession
    questionnaire_id: str | None = None
    respondent_id: str | None = None
    resumed: bool = False
    last_saved_at: datetime | None = None
    completed_answers: dict[str, Any] | None = None
    completed_flagged: list[str] = field(default_factory=list)

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def persistent(self) -> bool:
        return self.questionnaire_id is not None and self.respondent_id is not None


class FlowSessionService:
    """Live sessions plus a bounded tail of recently completed ones.

    A session is disposed and leaves the live registry as soon as it
    completes. The last ``completed_retention`` completed sessions stay
    readable so a client can still fetch the final view.
    """

    def __init__(
        self,
        snapshots: SnapshotStore,
        *,
        default_options: FlowOptions | None = None,
        completed_retention: int = 100,
    ) -> None:
        self._snapshots = snapshots
        self._default_options = default_options or FlowOptions()
        self._sessions: dict[str, ManagedSession] = {}
        self._completed: OrderedDict[str, ManagedSession] = OrderedDict()
        self._completed_retention = max(completed_retention, 0)

    @property
    def default_options(self) -> FlowOptions:
        return self._default_options

    @property
    def completed_count(self) -> int:
        return len(self._completed)

    def __len__(self) -> int:
        return len(self._sessions)

    def merge_options(self, *overrides: dict[str, Any] | None) -> FlowOptions:
        """Apply override layers, in order, on top of the configured defaults.

        Each layer may use snake_case or camelCase keys; only keys it sets apply.
        """
        merged = self._default_options.model_dump()
        for layer in overrides:
            if layer:
                merged.update(FlowOptions.model_validate(layer).model_dump(exclude_unset=True))
        return FlowOptions.model_validate(merged)

    def create(
        self,
        questions: Sequence[BaseQuestion],
        *,
        options: FlowOptions | None = None,
        initial_answers: dict[str, Any] | None = None,
        initial_flagged: Iterable[str] | None = None,
        questionnaire_id: str | None = None,
        respondent_id: str | None = None,
    ) -> ManagedSession:
        """Build, start and register a session. Must run inside an event loop."""
        answers: dict[str, Any] = {}
        flagged: set[str] = set()
        resumed = False
        if questionnaire_id and respondent_id:
            snapshot = self._snapshots.load(questionnaire_id, respondent_id)
            if snapshot is not None:
                restored = FlowState.from_dict(snapshot)
                if not restored.is_complete:
                    answers.update(restored.answers)
                    flagged.update(restored.flagged_questions)
                    resumed = True

        # Explicit seeds win over a stored snapshot
        answers.update(initial_answers or {})
        flagged.update(initial_flagged or ())

        session_id = uuid.uuid4().hex
        callbacks = FlowCallbacks(
            on_complete=partial(self._on_complete, session_id),
            on_auto_save=partial(self._on_auto_save, session_id),
        )
        session = FlowSession(
            questions,
            options=options or self._default_options,
            initial_answers=answers,
            initial_flagged=flagged,
            callbacks=callbacks,
            session_id=session_id,
        )
        managed = ManagedSession(
            session=session,
            questionnaire_id=questionnaire_id,
            respondent_id=respondent_id,
            resumed=resumed,
        )
        self._sessions[session_id] = managed
        session.start()
        logger.info(
            "Created flow session %s (questionnaire=%s, resumed=%s)",
            session_id,
            questionnaire_id,
            resumed,
        )
        return managed

    def get(self, session_id: str) -> ManagedSession:
        managed = self._sessions.get(session_id) or self._completed.get(session_id)
        if managed is None:
            raise SessionNotFoundError(session_id)
        return managed

    def next(self, session_id: str) -> NavigationResult:
        managed = self._advanceable(session_id)
        return managed.session.next()

    def skip(self, session_id: str) -> NavigationResult:
        managed = self._advanceable(session_id)
        return managed.session.skip()

    def dispose(self, session_id: str) -> None:
        managed = self._sessions.pop(session_id, None) or self._completed.pop(session_id, None)
        if managed is None:
            raise SessionNotFoundError(session_id)
        managed.session.dispose()

    def dispose_all(self) -> None:
        for session_id in list(self._sessions) + list(self._completed):
            self.dispose(session_id)

    def _advanceable(self, session_id: str) -> ManagedSession:
        managed = self.get(session_id)
        engine = managed.session.engine
        if not engine.is_complete and not engine.can_advance:
            raise AdvanceBlockedError(session_id)
        return managed

    def _retire(self, managed: ManagedSession) -> None:
        self._sessions.pop(managed.session_id, None)
        managed.session.dispose()
        if self._completed_retention == 0:
            return
        self._completed[managed.session_id] = managed
        while len(self._completed) > self._completed_retention:
            self._completed.popitem(last=False)

    def _snapshot(self, managed: ManagedSession, answers: dict[str, Any]) -> dict[str, Any]:
        data = managed.session.engine.state.to_dict()
        data.update(
            answers=answers,
            flagged_questions=managed.session.engine.flagged_in_order(),
            questionnaire_id=managed.questionnaire_id,
            respondent_id=managed.respondent_id,
        )
        return data

    def _on_auto_save(self, session_id: str, answers: dict[str, Any]) -> None:
        managed = self._sessions.get(session_id)
        if managed is None:
            return
        managed.last_saved_at = datetime.now()
        if not managed.persistent:
            logger.debug("Auto-save tick for %s (no respondent; not persisted)", session_id)
            return
        self._snapshots.save(
            managed.questionnaire_id,  # type: ignore[arg-type]
            managed.respondent_id,  # type: ignore[arg-type]
            self._snapshot(managed, answers),
        )
        logger.debug("Auto-saved %d answers for session %s", len(answers), session_id)

    def _on_complete(self, session_id: str, answers: dict[str, Any], flagged: list[str]) -> None:
        managed = self._sessions.get(session_id)
        if managed is None:
            return
        managed.completed_answers = answers
        managed.completed_flagged = list(flagged)
        if managed.persistent:
            try:
                self._snapshots.save(
                    managed.questionnaire_id,  # type: ignore[arg-type]
                    managed.respondent_id,  # type: ignore[arg-type]
                    self._snapshot(managed, answers),
                )
            except Exception as e:
                # Completion is already committed
                logger.warning("Could not save final snapshot for %s: %s", session_id, e)
        self._retire(managed)
        logger.info("Flow session %s completed", session_id)
