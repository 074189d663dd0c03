"""Drive a user through a structured workout session."""
from .engine import (
    AsyncioTickSource,
    ManualTickSource,
    TickSource,
    WorkoutSessionEngine,
    extract_exercise_ids,
    flatten,
)
from .models import (
    ExerciseBlock,
    GroupBlock,
    RestBlock,
    SessionResult,
    SessionState,
    SessionStatus,
    Workout,
    WorkoutSet,
)

__all__ = [
    "AsyncioTickSource",
    "ExerciseBlock",
    "GroupBlock",
    "ManualTickSource",
    "RestBlock",
    "SessionResult",
    "SessionState",
    "SessionStatus",
    "TickSource",
    "Workout",
    "WorkoutSessionEngine",
    "WorkoutSet",
    "extract_exercise_ids",
    "flatten",
]
