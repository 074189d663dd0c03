"""API routes for driving live workout sessions."""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from workout_session_engine.config import settings
from workout_session_engine.engine.flattener import extract_exercise_ids
from workout_session_engine.engine.session import WorkoutSessionEngine
from workout_session_engine.models import (
    ExerciseBlock,
    ExerciseInfo,
    PerformanceValue,
    SessionResult,
    SessionState,
    Workout,
)
from workout_session_engine.services.exercise_library import ExerciseLibrary
from workout_session_engine.services.session_registry import (
    SessionNotFoundError,
    SessionRegistry,
)

logger = logging.getLogger(__name__)

BUILD_TIMESTAMP = datetime.now().isoformat()

router = APIRouter()

# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

session_registry = SessionRegistry()

if settings.EXERCISE_LIBRARY_PATH:
    exercise_library = ExerciseLibrary.from_file(settings.EXERCISE_LIBRARY_PATH)
else:
    exercise_library = ExerciseLibrary()


def get_session_registry() -> SessionRegistry:
    return session_registry


def get_exercise_library() -> ExerciseLibrary:
    return exercise_library


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class CompleteSetRequest(BaseModel):
    reps: PerformanceValue = None
    weight: PerformanceValue = None


class SessionResponse(BaseModel):
    session_id: str
    state: SessionState
    current_exercise: Optional[ExerciseInfo] = None
    next_exercise: Optional[ExerciseInfo] = None
    exercises: Dict[str, ExerciseInfo] = Field(
        default_factory=dict,
        description="Metadata for every exercise in the workout, keyed by exercise id",
    )


def _exercise_for(block, library: ExerciseLibrary) -> Optional[ExerciseInfo]:
    if isinstance(block, ExerciseBlock):
        return library.get(block.exercise_id)
    return None


def _session_response(
    session_id: str,
    engine: WorkoutSessionEngine,
    library: ExerciseLibrary,
    include_exercises: bool = False,
) -> SessionResponse:
    exercises: Dict[str, ExerciseInfo] = {}
    if include_exercises and engine.workout is not None:
        exercises = library.get_many(extract_exercise_ids(engine.workout))
    return SessionResponse(
        session_id=session_id,
        state=engine.get_state(),
        current_exercise=_exercise_for(engine.current_block, library),
        next_exercise=_exercise_for(engine.next_block, library),
        exercises=exercises,
    )


def _get_engine(registry: SessionRegistry, session_id: str) -> WorkoutSessionEngine:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# ---------------------------------------------------------------------------
# Version / health
# ---------------------------------------------------------------------------


@router.get("/version")
async def get_version():
    """Get API version and build information."""
    return {
        "service": "workout-session-engine",
        "environment": settings.ENVIRONMENT,
        "build_timestamp": BUILD_TIMESTAMP,
    }


@router.get("/health")
def health():
    """Health check endpoint."""
    return {"ok": True}


# ---------------------------------------------------------------------------
# Exercise library
# ---------------------------------------------------------------------------


@router.get("/exercises", response_model=List[ExerciseInfo])
def list_exercises(library: ExerciseLibrary = Depends(get_exercise_library)):
    """All exercises known to the metadata library."""
    return library.all()


# ---------------------------------------------------------------------------
# Sessions
#
# Handlers are async so engines (and their asyncio tick sources) are only
# ever touched from the event loop.
# ---------------------------------------------------------------------------


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    workout: Workout,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    """Create an idle session for a workout."""
    session_id, engine = registry.create(workout)
    return _session_response(session_id, engine, library, include_exercises=True)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    """Current snapshot of a session."""
    engine = _get_engine(registry, session_id)
    return _session_response(session_id, engine, library, include_exercises=True)


@router.post("/sessions/{session_id}/start", response_model=SessionResponse)
async def start_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    engine = _get_engine(registry, session_id)
    engine.start()
    return _session_response(session_id, engine, library)


@router.post("/sessions/{session_id}/complete-set", response_model=SessionResponse)
async def complete_set(
    session_id: str,
    request: CompleteSetRequest,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    """Record reps/weight for the current set. Ignored unless the session is exercising."""
    engine = _get_engine(registry, session_id)
    engine.complete_set(request.reps, request.weight)
    return _session_response(session_id, engine, library)


@router.post("/sessions/{session_id}/skip-rest", response_model=SessionResponse)
async def skip_rest(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    engine = _get_engine(registry, session_id)
    engine.skip_rest()
    return _session_response(session_id, engine, library)


@router.post("/sessions/{session_id}/end", response_model=SessionResponse)
async def end_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    library: ExerciseLibrary = Depends(get_exercise_library),
):
    engine = _get_engine(registry, session_id)
    engine.end()
    return _session_response(session_id, engine, library)


@router.get("/sessions/{session_id}/result", response_model=SessionResult)
async def get_session_result(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Performance data and timing of a finished session."""
    engine = _get_engine(registry, session_id)
    result = engine.result()
    if result is None:
        raise HTTPException(
            status_code=409,
            detail=f"Session {session_id} is {engine.status.value}, not finished",
        )
    return result


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Discard a session and stop its timer."""
    try:
        registry.discard(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
