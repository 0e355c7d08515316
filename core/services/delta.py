"""Span ("delta") of file-number fields.

A blank field consumes no numbers, a single number consumes one, and a
range consumes every number it covers: "0001-0003" is three files.
"""

from __future__ import annotations

from core.models import Channel, FieldValue, TakeRecord
from core.services.camera_config import all_channels
from core.services.field_values import parse_take


def field_delta(value: FieldValue) -> int:
    """Number of files `value` consumes."""
    if value.is_blank:
        return 0
    if value.is_range:
        return value.upper - value.lower + 1
    return 1


def take_delta(take: TakeRecord, channel: Channel) -> int:
    return field_delta(parse_take(take, channel))


def channel_deltas(take: TakeRecord, camera_count: int) -> dict[str, int]:
    """Deltas of every channel of a take keyed by channel label."""
    return {ch.label: take_delta(take, ch) for ch in all_channels(camera_count)}
