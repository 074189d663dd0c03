"""Read-only exercise metadata lookup.

The session engine only ever deals in exercise ids. Names and media for
display come from here, and a missing entry is simply None.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from workout_session_engine.models import ExerciseInfo

logger = logging.getLogger(__name__)


class ExerciseLibraryError(RuntimeError):
    """Raised when an exercise library file cannot be loaded."""


class ExerciseLibrary:
    """Exercise metadata keyed by exercise id."""

    def __init__(self, exercises: Union[Mapping[str, ExerciseInfo], Iterable[ExerciseInfo], None] = None):
        self._exercises: Dict[str, ExerciseInfo] = {}
        if exercises is None:
            return
        if isinstance(exercises, Mapping):
            exercises = exercises.values()
        for exercise in exercises:
            self._exercises[exercise.id] = exercise

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ExerciseLibrary":
        """Load a JSON list of exercise objects."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            raise ExerciseLibraryError(f"Could not read exercise library {path}: {e}") from e

        if not isinstance(raw, list):
            raise ExerciseLibraryError(f"Exercise library {path} must contain a JSON list")
        try:
            exercises = [ExerciseInfo.model_validate(item) for item in raw]
        except ValidationError as e:
            raise ExerciseLibraryError(f"Invalid exercise in {path}: {e}") from e

        logger.info("Loaded %d exercises from %s", len(exercises), path)
        return cls(exercises)

    def __len__(self) -> int:
        return len(self._exercises)

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._exercises

    def get(self, exercise_id: Optional[str]) -> Optional[ExerciseInfo]:
        if exercise_id is None:
            return None
        exercise = self._exercises.get(exercise_id)
        if exercise is None:
            logger.debug("Exercise %s not in library", exercise_id)
        return exercise

    def get_many(self, exercise_ids: Iterable[str]) -> Dict[str, ExerciseInfo]:
        """Look up several ids at once, leaving out misses."""
        found: Dict[str, ExerciseInfo] = {}
        for exercise_id in exercise_ids:
            exercise = self.get(exercise_id)
            if exercise is not None:
                found[exercise_id] = exercise
        return found

    def all(self) -> List[ExerciseInfo]:
        return list(self._exercises.values())
