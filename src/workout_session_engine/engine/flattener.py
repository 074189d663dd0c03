"""
Flattening of a workout's block tree into the linear sequence a session walks.

Group blocks are replaced in place by their exercise children. By default a
group's ``rounds`` count is not expanded: the children appear once. With
``expand_rounds=True`` the children are repeated once per round and a rest
block is inserted between rounds when the group declares
``rest_between_rounds``.
"""
from typing import List, Sequence, Set, Union

from workout_session_engine.models import (
    ExerciseBlock,
    GroupBlock,
    RestBlock,
    Workout,
)
from workout_session_engine.utils import to_seconds

FlatBlockType = Union[ExerciseBlock, RestBlock]


def flatten(
    blocks: Sequence[Union[ExerciseBlock, RestBlock, GroupBlock]],
    expand_rounds: bool = False,
) -> List[FlatBlockType]:
    """Expand group blocks into a single ordered list of exercise and rest blocks."""
    taken = _block_ids(blocks) if expand_rounds else set()
    flattened: List[FlatBlockType] = []
    for block in blocks:
        if isinstance(block, GroupBlock):
            if expand_rounds:
                flattened.extend(_expand_group(block, taken))
            else:
                flattened.extend(block.blocks)
        else:
            flattened.append(block)
    return flattened


def _block_ids(blocks: Sequence[Union[ExerciseBlock, RestBlock, GroupBlock]]) -> Set[str]:
    ids: Set[str] = set()
    for block in blocks:
        ids.add(block.id)
        if isinstance(block, GroupBlock):
            ids.update(child.id for child in block.blocks)
    return ids


def _unique_id(base: str, taken: Set[str]) -> str:
    """Return ``base``, or ``base.<k>`` for the first k that is still free."""
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}.{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def _expand_group(group: GroupBlock, taken: Set[str]) -> List[FlatBlockType]:
    """Repeat a group's children once per round.

    Copies for round 2 onwards get ``<id>#r<round>`` ids so each one owns its
    own performance slots. Rest between rounds becomes ``<group id>#rest<n>``
    after round n, never after the last round. A generated id that clashes
    with a block already in the workout gets a ``.<k>`` suffix.
    """
    expanded: List[FlatBlockType] = []
    rest = to_seconds(group.rest_between_rounds)

    for round_number in range(1, group.rounds + 1):
        if round_number > 1 and rest > 0:
            rest_id = _unique_id(f"{group.id}#rest{round_number - 1}", taken)
            expanded.append(RestBlock(id=rest_id, duration=rest))
        for child in group.blocks:
            if round_number == 1:
                expanded.append(child)
            else:
                copy_id = _unique_id(f"{child.id}#r{round_number}", taken)
                expanded.append(child.model_copy(update={"id": copy_id}))
    return expanded


def extract_exercise_ids(workout: Workout) -> List[str]:
    """Unique exercise ids referenced by a workout, in first-seen order."""
    ids: List[str] = []
    seen = set()

    def _add(block: ExerciseBlock) -> None:
        if block.exercise_id and block.exercise_id not in seen:
            seen.add(block.exercise_id)
            ids.append(block.exercise_id)

    for block in workout.blocks:
        if isinstance(block, ExerciseBlock):
            _add(block)
        elif isinstance(block, GroupBlock):
            for child in block.blocks:
                _add(child)
    return ids
