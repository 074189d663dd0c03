"""
Test fixtures for workout-session-engine.

Rest countdowns are driven by ManualTickSource so every test runs
synchronously without wall-clock waiting.
"""

import sys
from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import workout_session_engine...`
for p in {ROOT, SRC}:
    p_str = str(p)
    if p_str not in sys.path:
        sys.path.insert(0, p_str)

from workout_session_engine.api.routes import get_exercise_library, get_session_registry
from workout_session_engine.config import Settings
from workout_session_engine.engine.scheduler import ManualTickSource
from workout_session_engine.engine.session import WorkoutSessionEngine
from workout_session_engine.main import app
from workout_session_engine.models import ExerciseInfo
from workout_session_engine.services.exercise_library import ExerciseLibrary
from workout_session_engine.services.session_registry import SessionRegistry


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine_settings() -> Settings:
    """Settings independent of the test runner's environment."""
    s = Settings()
    s.TICK_INTERVAL_MS = 1000
    s.EXPAND_GROUP_ROUNDS = False
    s.FINISHED_SESSION_TTL_SECONDS = 600
    s.SESSION_IDLE_TIMEOUT_SECONDS = 3600
    return s


@pytest.fixture
def ticks() -> ManualTickSource:
    return ManualTickSource()


@pytest.fixture
def make_engine(ticks, engine_settings):
    """Factory for engines wired to the shared manual tick source."""

    def _make(workout, **kwargs) -> WorkoutSessionEngine:
        kwargs.setdefault("tick_source", ticks)
        kwargs.setdefault("settings", engine_settings)
        return WorkoutSessionEngine(workout, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Sample Data Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def example_workout_dict() -> Dict[str, Any]:
    """Two-set exercise with inter-set rest, a rest block, then a one-set exercise."""
    return {
        "id": "w1",
        "name": "Example",
        "blocks": [
            {
                "type": "exercise",
                "id": "e1",
                "exerciseId": "bench-press",
                "sets": [{"id": "s1", "value": 10}, {"id": "s2", "value": 10}],
                "restBetweenSets": 30,
            },
            {"type": "rest", "id": "r1", "duration": 60},
            {
                "type": "exercise",
                "id": "e2",
                "exerciseId": "squat",
                "sets": [{"id": "s3", "value": 5}],
            },
        ],
    }


@pytest.fixture
def superset_workout_dict() -> Dict[str, Any]:
    """Exercise, a two-exercise superset repeated 3 times, then a rest."""
    return {
        "id": "w2",
        "name": "Superset Day",
        "description": "Push/pull superset",
        "blocks": [
            {
                "type": "exercise",
                "id": "a",
                "exerciseId": "deadlift",
                "sets": [{"id": "a1", "metric": "reps", "value": "5", "weight": "100"}],
            },
            {
                "type": "group",
                "id": "g1",
                "name": "Superset",
                "rounds": 3,
                "restBetweenRounds": 90,
                "blocks": [
                    {
                        "type": "exercise",
                        "id": "b",
                        "exerciseId": "pull-up",
                        "sets": [{"id": "b1", "value": 8}],
                    },
                    {
                        "type": "exercise",
                        "id": "c",
                        "exerciseId": "push-up",
                        "sets": [{"id": "c1", "value": 15}],
                    },
                ],
            },
            {"type": "rest", "id": "d", "duration": 120},
        ],
    }


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def exercise_library() -> ExerciseLibrary:
    return ExerciseLibrary([
        ExerciseInfo(
            id="bench-press",
            name="Bench Press",
            bodyParts=["chest", "triceps"],
            equipmentNeeded="Barbell",
            trackingMetrics=["reps", "weight"],
            mediaUrl="https://www.youtube.com/watch?v=abc123",
        ),
    ])


@pytest.fixture
def session_registry(engine_settings) -> SessionRegistry:
    return SessionRegistry(tick_source_factory=ManualTickSource, settings=engine_settings)


@pytest.fixture
def client(session_registry, exercise_library) -> TestClient:
    """TestClient with an isolated registry using manual tick sources."""
    app.dependency_overrides[get_session_registry] = lambda: session_registry
    app.dependency_overrides[get_exercise_library] = lambda: exercise_library
    yield TestClient(app)
    app.dependency_overrides.clear()
