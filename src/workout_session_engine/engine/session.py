"""
Workout session state machine.

Walks the flattened block sequence of a workout:

    idle -> exercising <-> resting -> finished

Every public operation returns immediately. The only time-driven behavior is
the rest countdown, which is ticked by the injected TickSource. Operations
invoked in the wrong state are ignored rather than raised, so a stale UI
event can never break a live session.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

from workout_session_engine.config import Settings, settings as default_settings
from workout_session_engine.engine.flattener import FlatBlockType, flatten
from workout_session_engine.engine.performance import PerformanceRecorder
from workout_session_engine.engine.scheduler import (
    CountdownScheduler,
    ManualTickSource,
    TickSource,
)
from workout_session_engine.models import (
    ExerciseBlock,
    PerformanceEntry,
    PerformanceValue,
    RestBlock,
    RestReason,
    SessionResult,
    SessionState,
    SessionStatus,
    Workout,
    WorkoutSet,
)
from workout_session_engine.utils import format_time

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkoutSessionEngine:
    """Drives one user through one workout.

    Args:
        workout: The workout to run. A dict is validated into a Workout.
            None leaves the engine idle with nothing to start.
        tick_source: Host timer facility for rest countdowns. Defaults to a
            ManualTickSource, which only advances when ticked explicitly.
        settings: Overrides the module-level settings (tick interval,
            round expansion).
        clock: Returns the current time, used for the session result.
    """

    def __init__(
        self,
        workout: Optional[Union[Workout, dict]] = None,
        tick_source: Optional[TickSource] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self._settings = settings or default_settings
        self._clock = clock or _utcnow
        self._tick_source = tick_source or ManualTickSource()
        self._scheduler = CountdownScheduler(
            self._tick_source,
            on_expire=self._on_rest_expired,
            on_tick=self._on_rest_tick,
            interval_ms=self._settings.TICK_INTERVAL_MS,
        )
        self._listeners: List[StateListener] = []

        self._workout: Optional[Workout] = None
        self._blocks: List[FlatBlockType] = []
        self._recorder = PerformanceRecorder()
        self._status = SessionStatus.IDLE
        self._block_index = 0
        self._set_index = 0
        self._rest_reason: Optional[RestReason] = None
        self._started_at: Optional[datetime] = None
        self._finished_at: Optional[datetime] = None
        self._completed = False

        self.load(workout)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load(self, workout: Optional[Union[Workout, dict]]) -> None:
        """(Re)initialize the session for ``workout``, discarding all progress."""
        if isinstance(workout, dict):
            workout = Workout.model_validate(workout)

        self._scheduler.cancel()
        self._workout = workout
        self._blocks = (
            flatten(workout.blocks, expand_rounds=self._settings.EXPAND_GROUP_ROUNDS)
            if workout is not None
            else []
        )
        self._recorder.reset(self._blocks)
        self._status = SessionStatus.IDLE
        self._block_index = 0
        self._set_index = 0
        self._rest_reason = None
        self._started_at = None
        self._finished_at = None
        self._completed = False
        logger.debug("Loaded workout %s with %d flattened blocks",
                     workout.id if workout else None, len(self._blocks))
        self._notify()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Release the timer and listeners when the host discards the engine."""
        self._scheduler.cancel()
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin the session at the first block. No-op for an empty workout."""
        if self._status != SessionStatus.IDLE:
            logger.warning("start() ignored: session is %s", self._status.value)
            return
        if not self._blocks:
            logger.warning("start() ignored: workout has no blocks")
            return

        self._block_index = 0
        self._set_index = 0
        self._started_at = self._clock()
        logger.info("Session started for workout %s", self.workout_id)
        self._enter_current_block()
        self._notify()

    def complete_set(self, reps: PerformanceValue, weight: PerformanceValue = None) -> None:
        """Record the current set and move on.

        With more sets left, either rests for the block's inter-set rest or
        moves straight to the next set. After the last set the session
        advances to the next block.
        """
        block = self.current_block
        if self._status != SessionStatus.EXERCISING or not isinstance(block, ExerciseBlock):
            logger.warning("complete_set() ignored: session is %s", self._status.value)
            return

        self._recorder.record(block.id, self._set_index, reps, weight)
        logger.debug("Block %s set %d completed: reps=%s weight=%s",
                     block.id, self._set_index, reps, weight)

        if self._set_index + 1 < len(block.sets):
            rest = block.rest_seconds()
            if rest > 0:
                self._status = SessionStatus.RESTING
                self._rest_reason = "between_sets"
                self._scheduler.arm(rest)
            else:
                self._set_index += 1
        else:
            self._advance()
        self._notify()

    def skip_rest(self) -> None:
        """End the current rest now. Identical in effect to the countdown reaching zero."""
        if self._status != SessionStatus.RESTING:
            logger.debug("skip_rest() ignored: session is %s", self._status.value)
            return
        if self._scheduler.is_active:
            self._scheduler.expire_now()
        else:
            self._on_rest_expired()

    def end(self) -> None:
        """Finish the session immediately, wherever it is."""
        if self._status == SessionStatus.FINISHED:
            return
        self._scheduler.cancel()
        logger.info("Session for workout %s ended early at block %d/%d",
                    self.workout_id, self._block_index, len(self._blocks))
        self._finish(completed=False)
        self._notify()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _enter_current_block(self) -> None:
        block = self._blocks[self._block_index]
        if isinstance(block, RestBlock):
            self._status = SessionStatus.RESTING
            self._rest_reason = "block"
            self._scheduler.arm(block.duration)
        else:
            self._status = SessionStatus.EXERCISING
            self._rest_reason = None
        logger.debug("Entered block %d (%s): %s", self._block_index, block.type, self._status.value)

    def _advance(self) -> None:
        self._scheduler.cancel()
        self._block_index += 1
        if self._block_index >= len(self._blocks):
            self._block_index = len(self._blocks)
            logger.info("Session for workout %s reached the end", self.workout_id)
            self._finish(completed=True)
            return
        self._set_index = 0
        self._enter_current_block()

    def _finish(self, completed: bool) -> None:
        self._status = SessionStatus.FINISHED
        self._rest_reason = None
        self._completed = completed
        self._finished_at = self._clock()

    def _on_rest_expired(self) -> None:
        if self._status != SessionStatus.RESTING:
            return
        if self._rest_reason == "between_sets":
            self._set_index += 1
            self._status = SessionStatus.EXERCISING
            self._rest_reason = None
        else:
            self._advance()
        self._notify()

    def _on_rest_tick(self, remaining: int) -> None:
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.warning("Session listener %r failed", listener, exc_info=True)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def workout(self) -> Optional[Workout]:
        return self._workout

    @property
    def workout_id(self) -> Optional[str]:
        return self._workout.id if self._workout else None

    @property
    def tick_source(self) -> TickSource:
        return self._tick_source

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def flattened_blocks(self) -> List[FlatBlockType]:
        return list(self._blocks)

    @property
    def current_block_index(self) -> int:
        return self._block_index

    @property
    def current_set_index(self) -> int:
        return self._set_index

    @property
    def current_block(self) -> Optional[FlatBlockType]:
        if 0 <= self._block_index < len(self._blocks):
            return self._blocks[self._block_index]
        return None

    @property
    def next_block(self) -> Optional[FlatBlockType]:
        index = self._block_index + 1
        if 0 <= index < len(self._blocks):
            return self._blocks[index]
        return None

    @property
    def current_set(self) -> Optional[WorkoutSet]:
        block = self.current_block
        if isinstance(block, ExerciseBlock) and self._set_index < len(block.sets):
            return block.sets[self._set_index]
        return None

    @property
    def timer(self) -> int:
        """Seconds left in the current rest; 0 when not resting."""
        if self._status != SessionStatus.RESTING:
            return 0
        return self._scheduler.remaining

    @property
    def is_timer_active(self) -> bool:
        return self._scheduler.is_active

    @property
    def rest_reason(self) -> Optional[RestReason]:
        return self._rest_reason

    @property
    def workout_progress(self) -> float:
        """Position in the flattened sequence as a percentage."""
        if not self._blocks:
            return 0
        if self._status == SessionStatus.FINISHED:
            return 100
        return self._block_index / len(self._blocks) * 100

    @property
    def performance_data(self) -> Dict[str, PerformanceEntry]:
        return self._recorder.get_all()

    def get_state(self) -> SessionState:
        return SessionState(
            status=self._status,
            current_block=self.current_block,
            next_block=self.next_block,
            current_block_index=self._block_index,
            current_set_index=self._set_index,
            total_blocks=len(self._blocks),
            timer=self.timer,
            timer_display=format_time(self.timer),
            is_timer_active=self.is_timer_active,
            rest_reason=self._rest_reason,
            workout_progress=self.workout_progress,
            performance_data=self.performance_data,
        )

    def result(self) -> Optional[SessionResult]:
        """Session outcome for persistence, or None until the session has finished."""
        if self._status != SessionStatus.FINISHED or self._finished_at is None:
            return None
        duration = 0.0
        if self._started_at is not None:
            duration = max((self._finished_at - self._started_at).total_seconds(), 0.0)
        return SessionResult(
            workout_id=self.workout_id,
            started_at=self._started_at,
            finished_at=self._finished_at,
            duration_seconds=duration,
            completed=self._completed,
            performance_data=self.performance_data,
        )
