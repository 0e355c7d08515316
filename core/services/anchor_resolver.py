"""Insertion-point (anchor) resolution for file-number shifting.

The anchor is the take whose upper bound seeds the running counter of a
shift. Strategies are tried in order and the first one that finds a take
wins:

1. an explicit anchor identifier;
2. a take whose lower or upper bound equals `from_number`;
3. a take whose lower or upper bound equals `from_number - 1`;
4. no anchor; the caller seeds from `from_number` directly.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from core.models import Channel, TakeRecord
from core.services.field_values import parse_take
from core.services.interfaces import AnchorResolution, AnchorStrategy


def _match_bound(
    candidates: Sequence[TakeRecord], channel: Channel, number: int
) -> TakeRecord | None:
    """Lowest take number wins, ties go to the earliest take in sequence."""
    best: tuple[tuple[bool, int, int], TakeRecord] | None = None
    for index, take in enumerate(candidates):
        value = parse_take(take, channel)
        if value.is_blank or number not in (value.lower, value.upper):
            continue
        take_num = take.take_number_value
        key = (take_num is None, take_num if take_num is not None else 0, index)
        if best is None or key < best[0]:
            best = (key, take)
    return best[1] if best else None


def resolve_anchor(
    candidates: Sequence[TakeRecord],
    channel: Channel,
    anchor_id: str | None = None,
    from_number: int | None = None,
) -> AnchorResolution:
    """Locate the anchor take among `candidates` (already in sequence order)."""
    if anchor_id is not None:
        for take in candidates:
            if take.identifier == anchor_id:
                logger.debug("[{}] anchor {} resolved explicitly", channel.label, anchor_id)
                return AnchorResolution(take, AnchorStrategy.EXPLICIT)

    if from_number is not None:
        take = _match_bound(candidates, channel, from_number)
        if take is not None:
            logger.debug(
                "[{}] anchor {} matched from_number {}", channel.label, take.identifier, from_number
            )
            return AnchorResolution(take, AnchorStrategy.VALUE_MATCH)

        take = _match_bound(candidates, channel, from_number - 1)
        if take is not None:
            logger.debug(
                "[{}] anchor {} matched from_number-1 {}",
                channel.label,
                take.identifier,
                from_number - 1,
            )
            return AnchorResolution(take, AnchorStrategy.PREVIOUS_VALUE)

    logger.debug("[{}] no anchor resolved (from_number={})", channel.label, from_number)
    return AnchorResolution(None, AnchorStrategy.FALLBACK)
