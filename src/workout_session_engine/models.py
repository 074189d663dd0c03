"""Data models for workouts and live workout sessions."""
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from workout_session_engine.utils import to_seconds

SetMetric = Literal["reps", "time", "distance"]
TrackingMetric = Literal["reps", "weight", "time", "distance"]
RestReason = Literal["block", "between_sets"]

# Reported reps/weight; None until the set is completed
PerformanceValue = Optional[Union[int, float]]


class WorkoutSet(BaseModel):
    """A single set inside an exercise block, e.g. 10 reps at 50kg."""
    id: Optional[str] = None
    metric: Optional[SetMetric] = None
    value: Optional[Union[int, float, str]] = None  # Target for the metric ('10', '60s')
    weight: Optional[Union[int, float, str]] = None

    class Config:
        extra = "ignore"


class ExerciseBlock(BaseModel):
    """One exercise performed for an ordered list of sets."""
    type: Literal["exercise"] = "exercise"
    id: str
    exercise_id: Optional[str] = Field(default=None, alias="exerciseId")
    sets: List[WorkoutSet] = Field(default_factory=list)
    # Seconds, stored as a string by the workout builder ('60')
    rest_between_sets: Optional[Union[int, str]] = Field(default=None, alias="restBetweenSets")
    notes: Optional[str] = None

    class Config:
        extra = "ignore"
        populate_by_name = True

    def rest_seconds(self) -> int:
        """Inter-set rest in whole seconds, 0 when absent or unparseable."""
        return to_seconds(self.rest_between_sets)


class RestBlock(BaseModel):
    """A timed rest period."""
    type: Literal["rest"] = "rest"
    id: str
    duration: int = Field(..., ge=0, description="Rest duration in seconds")

    class Config:
        extra = "ignore"


class GroupBlock(BaseModel):
    """
    A superset or circuit.

    Children are exercise blocks only; rest inside the group is expressed
    through rest_between_rounds.
    """
    type: Literal["group"] = "group"
    id: str
    name: str = "Group"
    rounds: int = Field(default=1, ge=1)
    blocks: List[ExerciseBlock] = Field(default_factory=list)
    rest_between_rounds: Optional[int] = Field(default=None, ge=0, alias="restBetweenRounds")

    class Config:
        extra = "ignore"
        populate_by_name = True


WorkoutBlock = Annotated[
    Union[ExerciseBlock, RestBlock, GroupBlock],
    Field(discriminator="type"),
]

# Entries of a flattened sequence: groups have been unwrapped
FlatBlock = Annotated[
    Union[ExerciseBlock, RestBlock],
    Field(discriminator="type"),
]


class Workout(BaseModel):
    """A complete workout definition as stored by the coach."""
    id: Optional[str] = None
    name: str = "Workout"
    description: str = ""
    blocks: List[WorkoutBlock] = Field(default_factory=list)
    duration: Optional[int] = Field(default=None, description="Estimated duration in minutes")

    class Config:
        extra = "ignore"


class ExerciseInfo(BaseModel):
    """Exercise metadata from the exercise library."""
    id: str
    name: str
    description: str = ""
    body_parts: List[str] = Field(default_factory=list, alias="bodyParts")
    equipment_needed: str = Field(default="", alias="equipmentNeeded")
    tracking_metrics: List[TrackingMetric] = Field(default_factory=list, alias="trackingMetrics")
    media_url: Optional[str] = Field(default=None, alias="mediaUrl")

    class Config:
        extra = "ignore"
        populate_by_name = True


class SessionStatus(str, Enum):
    IDLE = "idle"
    EXERCISING = "exercising"
    RESTING = "resting"
    FINISHED = "finished"


class PerformanceEntry(BaseModel):
    """Reported reps and weight for one exercise block, one slot per set."""
    reps: List[PerformanceValue] = Field(default_factory=list)
    weight: List[PerformanceValue] = Field(default_factory=list)


class SessionState(BaseModel):
    """Read-only snapshot of a session, taken after every operation."""
    status: SessionStatus
    current_block: Optional[FlatBlock] = None
    next_block: Optional[FlatBlock] = None
    current_block_index: int = 0
    current_set_index: int = 0
    total_blocks: int = 0
    timer: int = 0
    timer_display: str = "0:00"
    is_timer_active: bool = False
    rest_reason: Optional[RestReason] = None
    workout_progress: float = 0
    performance_data: Dict[str, PerformanceEntry] = Field(default_factory=dict)


class SessionResult(BaseModel):
    """Outcome of a finished session, handed to whoever persists it."""
    workout_id: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: datetime
    duration_seconds: float = 0
    completed: bool = Field(
        ..., description="True when the end of the workout was reached, False when ended early"
    )
    performance_data: Dict[str, PerformanceEntry] = Field(default_factory=dict)
