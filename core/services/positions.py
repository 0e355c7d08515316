"""Project-local sequence position maintenance.

Positions of a project's takes always form 1..count after an operation
completes. Records are replaced, never mutated.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone

from core.models import TakeRecord
from core.services.sort_service import SortService

_sorter = SortService()


def _with_position(take: TakeRecord, position: int) -> TakeRecord:
    if take.sequence_position == position:
        return take
    return replace(take, sequence_position=position, updated_at=datetime.now(timezone.utc))


def project_count(takes: Sequence[TakeRecord], project_id: str) -> int:
    return sum(1 for t in takes if t.project_id == project_id)


def next_position(takes: Sequence[TakeRecord], project_id: str) -> int:
    """Position an appended take receives."""
    positions = [
        t.sequence_position
        for t in takes
        if t.project_id == project_id and t.sequence_position is not None
    ]
    return max(positions, default=0) + 1


def compact_positions(takes: Sequence[TakeRecord], project_id: str) -> list[TakeRecord]:
    """Reassign 1..count to a project's takes in their current sequence order."""
    renumbered = {
        t.identifier: _with_position(t, index)
        for index, t in enumerate(_sorter.order(takes, project_id), start=1)
    }
    return [renumbered.get(t.identifier, t) for t in takes]


def insert_before(
    takes: Sequence[TakeRecord], project_id: str, anchor_position: int, new_take: TakeRecord
) -> tuple[list[TakeRecord], TakeRecord]:
    """Insert `new_take` at `anchor_position`, pushing later takes down by one.

    The anchor is clamped to [1, count + 1]; positions are densified first so
    legacy gaps do not leak into the result.

    Returns:
        The new collection (with `new_take` appended) and the placed take.
    """
    dense = compact_positions(takes, project_id)
    anchor = max(1, min(anchor_position, project_count(dense, project_id) + 1))

    result: list[TakeRecord] = []
    for take in dense:
        if (
            take.project_id == project_id
            and take.sequence_position is not None
            and take.sequence_position >= anchor
        ):
            result.append(_with_position(take, take.sequence_position + 1))
        else:
            result.append(take)

    placed = replace(new_take, project_id=project_id, sequence_position=anchor)
    result.append(placed)
    return result, placed


def move_before(
    takes: Sequence[TakeRecord], project_id: str, moving_id: str, target_position: int
) -> list[TakeRecord]:
    """Move a take so it sits right before the take at `target_position`.

    Raises:
        KeyError: If `moving_id` is not a take of the project.
    """
    dense = compact_positions(takes, project_id)
    moving = next(
        (t for t in dense if t.identifier == moving_id and t.project_id == project_id), None
    )
    if moving is None:
        raise KeyError(moving_id)

    count = project_count(dense, project_id)
    old = moving.sequence_position
    target = max(1, min(target_position, count + 1))

    if target <= old:
        # Backward: [target, old) slides down
        new_pos = target
        low, high, step = target, old - 1, 1
    else:
        # Forward: (old, target) slides up, the take lands before target
        new_pos = target - 1
        low, high, step = old + 1, target - 1, -1

    result: list[TakeRecord] = []
    for take in dense:
        if take.identifier == moving_id:
            result.append(_with_position(take, new_pos))
        elif take.project_id == project_id and low <= take.sequence_position <= high:
            result.append(_with_position(take, take.sequence_position + step))
        else:
            result.append(take)
    return result
