"""Staging buffer for the reps and weight a user reports per set."""
import logging
from typing import Dict, Iterable, List, Optional

from workout_session_engine.models import ExerciseBlock, PerformanceEntry, PerformanceValue

logger = logging.getLogger(__name__)


class PerformanceRecorder:
    """Per-set reps/weight keyed by exercise block id.

    Every exercise block gets its slots up front, null-filled, one per set.
    Nothing is aggregated here.
    """

    def __init__(self, blocks: Iterable = ()):
        self._data: Dict[str, Dict[str, List[PerformanceValue]]] = {}
        self.reset(blocks)

    def reset(self, blocks: Iterable) -> None:
        """Drop all recorded values and pre-size slots for ``blocks``."""
        self._data = {}
        for block in blocks:
            if not isinstance(block, ExerciseBlock):
                continue
            size = len(block.sets)
            existing = self._data.get(block.id)
            if existing is not None and len(existing["reps"]) >= size:
                continue
            self._data[block.id] = {"reps": [None] * size, "weight": [None] * size}

    def record(
        self,
        block_id: str,
        set_index: int,
        reps: PerformanceValue,
        weight: PerformanceValue,
    ) -> bool:
        """Write one set's values. Returns False if the slot doesn't exist."""
        entry = self._data.get(block_id)
        if entry is None or not 0 <= set_index < len(entry["reps"]):
            logger.warning("No performance slot for block %s set %s", block_id, set_index)
            return False
        entry["reps"][set_index] = reps
        entry["weight"][set_index] = weight
        return True

    def get(self, block_id: str) -> Optional[PerformanceEntry]:
        entry = self._data.get(block_id)
        if entry is None:
            return None
        return PerformanceEntry(reps=list(entry["reps"]), weight=list(entry["weight"]))

    def get_all(self) -> Dict[str, PerformanceEntry]:
        """Copy of every entry; mutating it does not touch the recorder."""
        return {
            block_id: PerformanceEntry(reps=list(entry["reps"]), weight=list(entry["weight"]))
            for block_id, entry in self._data.items()
        }
