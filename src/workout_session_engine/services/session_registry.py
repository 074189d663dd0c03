"""In-memory registry of live workout sessions for the HTTP API."""
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple, Union

from workout_session_engine.config import Settings, settings as default_settings
from workout_session_engine.engine.scheduler import AsyncioTickSource, TickSource
from workout_session_engine.engine.session import WorkoutSessionEngine
from workout_session_engine.models import SessionState, SessionStatus, Workout

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is not in the registry."""


class SessionRegistry:
    """Owns one WorkoutSessionEngine per session id.

    Engines are only touched from the event loop that serves the API, which
    serializes ticks and user operations.

    Sessions are released on two rules, both checked whenever a session is
    created or looked up:

    - a finished session is dropped ``FINISHED_SESSION_TTL_SECONDS`` after it
      reached ``finished``, leaving clients that long to read its result;
    - any session not looked up for ``SESSION_IDLE_TIMEOUT_SECONDS`` is
      treated as abandoned and dropped, timer included.

    A setting of 0 disables that rule.
    """

    def __init__(
        self,
        tick_source_factory: Callable[[], TickSource] = AsyncioTickSource,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._tick_source_factory = tick_source_factory
        self._settings = settings or default_settings
        self._clock = clock
        self._sessions: Dict[str, WorkoutSessionEngine] = {}
        self._last_seen: Dict[str, float] = {}
        self._finished_at: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, workout: Union[Workout, dict]) -> Tuple[str, WorkoutSessionEngine]:
        self.prune()
        session_id = uuid.uuid4().hex
        engine = WorkoutSessionEngine(
            workout,
            tick_source=self._tick_source_factory(),
            settings=self._settings,
        )
        engine.subscribe(lambda state: self._on_state(session_id, state))
        self._sessions[session_id] = engine
        self._last_seen[session_id] = self._clock()
        logger.info("Created session %s for workout %s", session_id, engine.workout_id)
        return session_id, engine

    def get(self, session_id: str) -> WorkoutSessionEngine:
        self.prune()
        try:
            engine = self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None
        self._last_seen[session_id] = self._clock()
        return engine

    def discard(self, session_id: str) -> None:
        """Cancel the session's timer and forget it."""
        if session_id not in self._sessions:
            raise SessionNotFoundError(session_id)
        self._release(session_id)
        logger.info("Discarded session %s", session_id)

    def prune(self) -> List[str]:
        """Release finished and abandoned sessions. Returns the released ids."""
        now = self._clock()
        finished_ttl = self._settings.FINISHED_SESSION_TTL_SECONDS
        idle_timeout = self._settings.SESSION_IDLE_TIMEOUT_SECONDS

        expired: List[str] = []
        for session_id in self._sessions:
            finished_at = self._finished_at.get(session_id)
            if finished_ttl and finished_at is not None and now - finished_at >= finished_ttl:
                expired.append(session_id)
            elif idle_timeout and now - self._last_seen[session_id] >= idle_timeout:
                expired.append(session_id)

        for session_id in expired:
            self._release(session_id)
        if expired:
            logger.info("Released %d expired sessions", len(expired))
        return expired

    def _on_state(self, session_id: str, state: SessionState) -> None:
        if state.status == SessionStatus.FINISHED:
            self._finished_at.setdefault(session_id, self._clock())

    def _release(self, session_id: str) -> None:
        engine = self._sessions.pop(session_id)
        self._last_seen.pop(session_id, None)
        self._finished_at.pop(session_id, None)
        engine.close()
