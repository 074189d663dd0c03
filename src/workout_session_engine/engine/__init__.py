"""Workout session engine: flattening, rest countdown, performance capture and the state machine."""
from .flattener import extract_exercise_ids, flatten
from .performance import PerformanceRecorder
from .scheduler import (
    AsyncioTickSource,
    CountdownScheduler,
    ManualTickSource,
    TickSource,
)
from .session import WorkoutSessionEngine

__all__ = [
    "AsyncioTickSource",
    "CountdownScheduler",
    "ManualTickSource",
    "PerformanceRecorder",
    "TickSource",
    "WorkoutSessionEngine",
    "extract_exercise_ids",
    "flatten",
]
