"""File-number sequencer.

Walks the takes of a project in sequence order and rewrites camera or sound
file numbers so that every non-blank take starts right after the previous
non-blank take ends. Camera channels are sequenced inside one scene+shot
group, the sound channel across the whole project.

All functions are pure: they return a new list in the input order where
changed takes are replacement records and unchanged takes are the original
objects.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone

from loguru import logger

from core.models import Channel, TakeRecord
from core.services.anchor_resolver import resolve_anchor
from core.services.delta import field_delta
from core.services.field_values import parse_take, write_field
from core.services.sort_service import SortService

_sorter = SortService()


def _reference_take(
    ordered: Sequence[TakeRecord],
    anchor_id: str | None,
    exclude_id: str | None,
    position_hint: int | None,
) -> TakeRecord | None:
    """Take whose scene+shot group scopes a camera shift."""
    by_id = {t.identifier: t for t in ordered}
    for ident in (anchor_id, exclude_id):
        if ident is not None and ident in by_id:
            return by_id[ident]
    if position_hint is not None:
        for take in ordered:
            if take.sequence_position == position_hint:
                return take
    return None


def _scope(
    ordered: Sequence[TakeRecord], channel: Channel, group_key: tuple[str, str] | None
) -> list[TakeRecord]:
    if channel.is_sound or group_key is None:
        return list(ordered)
    return [t for t in ordered if t.group_key == group_key]


def _index_of(scope: Sequence[TakeRecord], identifier: str) -> int:
    for index, take in enumerate(scope):
        if take.identifier == identifier:
            return index
    raise ValueError(f"Take {identifier} not in scope")


def _position_index(scope: Sequence[TakeRecord], position: int | None) -> int:
    """Index of the first take at or after `position`."""
    if position is None:
        return 0
    for index, take in enumerate(scope):
        if take.sequence_position is not None and take.sequence_position >= position:
            return index
    return len(scope)


def _prior_upper(
    scope: Sequence[TakeRecord], end: int, channel: Channel, exclude_id: str | None
) -> int | None:
    """Upper bound of the nearest non-blank take before index `end`."""
    for take in reversed(scope[:end]):
        if take.identifier == exclude_id:
            continue
        value = parse_take(take, channel)
        if not value.is_blank:
            return value.upper
    return None


def _walk(
    walk: Sequence[TakeRecord],
    channel: Channel,
    bound: int,
    from_number: int | None,
    exclude_id: str | None,
) -> dict[str, TakeRecord]:
    """Re-place every non-blank take of `walk` after `bound`."""
    updates: dict[str, TakeRecord] = {}
    for take in walk:
        if take.identifier == exclude_id:
            continue
        value = parse_take(take, channel)
        if value.is_blank:
            continue
        if from_number is not None and value.upper < from_number:
            # Entirely before the shifted material
            continue

        delta = field_delta(value)
        new_lower = bound + 1
        new_upper = new_lower + delta - 1
        if (new_lower, new_upper) != (value.lower, value.upper):
            logger.debug(
                "[{}] take {}: {}-{} -> {}-{} (delta={})",
                channel.label,
                take.identifier,
                value.lower,
                value.upper,
                new_lower,
                new_upper,
                delta,
            )
            updates[take.identifier] = replace(
                take,
                data=write_field(take.data, channel, value, new_lower, new_upper),
                updated_at=datetime.now(timezone.utc),
            )
        bound = new_upper
    return updates


def _merge(takes: Sequence[TakeRecord], updates: dict[str, TakeRecord]) -> list[TakeRecord]:
    return [updates.get(t.identifier, t) for t in takes]


def shift_file_numbers(
    takes: Sequence[TakeRecord],
    project_id: str,
    channel: Channel,
    from_number: int | None,
    increment: int = 1,
    *,
    exclude_id: str | None = None,
    anchor_id: str | None = None,
    anchor_position_hint: int | None = None,
) -> list[TakeRecord]:
    """Shift file numbers on `channel` after new or edited material.

    Args:
        takes: Full take collection (any projects, any order).
        project_id: Project whose takes are shifted.
        channel: Channel to sequence.
        from_number: First file number of the new/edited material, or None
            when that material is blank on this channel.
        increment: Files consumed by the new material; only used when no
            anchor take resolves and the walk is seeded from `from_number`.
        exclude_id: Take to leave untouched (the one just inserted/edited).
        anchor_id: Explicit anchor take.
        anchor_position_hint: Sequence position where the new material sits.

    Returns:
        The updated collection in input order.
    """
    ordered = _sorter.order(takes, project_id)
    reference = _reference_take(ordered, anchor_id, exclude_id, anchor_position_hint)
    scope = _scope(ordered, channel, reference.group_key if reference else None)

    anchor = resolve_anchor(scope, channel, anchor_id, from_number).take
    if anchor is not None and reference is None:
        scope = _scope(ordered, channel, anchor.group_key)

    bound: int | None
    if anchor is not None:
        anchor_index = _index_of(scope, anchor.identifier)
        start = anchor_index + 1
        value = parse_take(anchor, channel)
        if not value.is_blank:
            bound = value.upper
        else:
            bound = _prior_upper(scope, anchor_index, channel, exclude_id)
            if bound is None and from_number is not None:
                bound = from_number - 1
    else:
        start = _position_index(scope, anchor_position_hint)
        if from_number is not None:
            bound = from_number + increment - 1
        else:
            bound = _prior_upper(scope, start, channel, exclude_id)

    if bound is None:
        logger.debug("[{}] nothing seeds the sequence, no shift", channel.label)
        return list(takes)

    logger.debug(
        "[{}] shifting project {} from bound {} ({} takes to walk)",
        channel.label,
        project_id,
        bound,
        len(scope) - start,
    )
    updates = _walk(scope[start:], channel, bound, from_number, exclude_id)
    return _merge(takes, updates)


def resequence_from(
    takes: Sequence[TakeRecord],
    project_id: str,
    channel: Channel,
    start_position: int,
    end_position: int | None = None,
    group_key: tuple[str, str] | None = None,
) -> list[TakeRecord]:
    """Renumber `channel` from `start_position` onward after a move.

    The walk is seeded from the nearest non-blank take before
    `start_position`, or from the lowest number found in the window
    [start_position, end_position] when nothing precedes it.
    """
    ordered = _sorter.order(takes, project_id)
    scope = _scope(ordered, channel, group_key)
    start = _position_index(scope, start_position)

    bound = _prior_upper(scope, start, channel, None)
    if bound is None:
        lows = [
            parse_take(t, channel).lower
            for t in scope[start:]
            if (end_position is None or (t.sequence_position or 0) <= end_position)
            and not parse_take(t, channel).is_blank
        ]
        if not lows:
            return list(takes)
        bound = min(lows) - 1

    updates = _walk(scope[start:], channel, bound, None, None)
    return _merge(takes, updates)
