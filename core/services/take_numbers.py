"""Take-number renumbering inside a scene+shot group."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone

from loguru import logger

from core.models import TakeRecord


def _in_group(take: TakeRecord, project_id: str, scene: str, shot: str) -> bool:
    return take.project_id == project_id and take.group_key == (
        (scene or "").strip(),
        (shot or "").strip(),
    )


def _with_take_number(take: TakeRecord, number: int) -> TakeRecord:
    return replace(take, take_number=str(number), updated_at=datetime.now(timezone.utc))


def renumber_take_numbers(
    takes: Sequence[TakeRecord],
    project_id: str,
    scene: str,
    shot: str,
    from_take_number: int,
    increment: int,
    exclude_id: str | None = None,
    max_take_number: int | None = None,
) -> list[TakeRecord]:
    """Add `increment` to take numbers in [from, max] of one scene+shot group.

    Takes with a non-numeric take number and the excluded take are left as is.
    """
    result: list[TakeRecord] = []
    for take in takes:
        current = take.take_number_value
        if (
            take.identifier != exclude_id
            and current is not None
            and _in_group(take, project_id, scene, shot)
            and current >= from_take_number
            and (max_take_number is None or current <= max_take_number)
        ):
            logger.debug(
                "take {}: take number {} -> {}", take.identifier, current, current + increment
            )
            result.append(_with_take_number(take, current + increment))
        else:
            result.append(take)
    return result


def close_take_number_gap(takes: Sequence[TakeRecord], deleted: TakeRecord) -> list[TakeRecord]:
    """Decrement take numbers above a deleted take in the same group."""
    deleted_num = deleted.take_number_value
    scene, shot = deleted.group_key
    if deleted_num is None or not scene or not shot:
        return list(takes)
    return renumber_take_numbers(
        takes,
        deleted.project_id,
        scene,
        shot,
        deleted_num + 1,
        -1,
        exclude_id=deleted.identifier,
    )


def highest_take_number(takes: Sequence[TakeRecord], project_id: str, scene: str, shot: str) -> int:
    """Highest numeric take number in the group (0 when empty)."""
    numbers = [
        t.take_number_value
        for t in takes
        if _in_group(t, project_id, scene, shot) and t.take_number_value is not None
    ]
    return max(numbers, default=0)


def next_take_number(takes: Sequence[TakeRecord], project_id: str, scene: str, shot: str) -> int:
    return highest_take_number(takes, project_id, scene, shot) + 1
