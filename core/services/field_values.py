"""Parsing and writing of camera/sound file-number fields.

A channel field is stored either as a single zero-padded number
("0004"), an inline range ("0004-0006"), or a pair of companion fields
("camera1_from"/"camera1_to"). Parsing is lenient: anything that does not
hold a number is reported as blank and never raises.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from core.models import Channel, FieldValue, Representation, TakeRecord

PAD_WIDTH = 4


def format_file_number(number: int) -> str:
    """Zero-pad a file number to four digits ("7" -> "0007")."""
    return str(number).zfill(PAD_WIDTH)


def _to_int(raw: Any) -> int | None:
    """Return an int for digit strings or JSON integers, else None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None


def _parse_pair(data: Mapping[str, Any], channel: Channel) -> FieldValue | None:
    low = _to_int(data.get(channel.from_key))
    high = _to_int(data.get(channel.to_key))
    if low is None or high is None:
        return None
    return FieldValue.range(low, high, Representation.PAIR)


def _parse_inline(raw: Any) -> FieldValue | None:
    if not isinstance(raw, str) or "-" not in raw:
        return None
    parts = raw.split("-")
    if len(parts) != 2:
        return None
    low, high = _to_int(parts[0]), _to_int(parts[1])
    if low is None or high is None:
        return None
    return FieldValue.range(low, high, Representation.INLINE)


def parse_field(data: Mapping[str, Any] | None, channel: Channel) -> FieldValue:
    """Parse the value stored for `channel` in a take's data map.

    Companion fields win over an inline range, which wins over a single
    number. Each form falls through to the next when absent or malformed.
    """
    if not data:
        return FieldValue.blank()

    value = _parse_pair(data, channel)
    if value is not None:
        return value

    raw = data.get(channel.field_id)
    value = _parse_inline(raw)
    if value is not None:
        return value

    number = _to_int(raw)
    if number is not None:
        return FieldValue.single(number)
    return FieldValue.blank()


def parse_take(take: TakeRecord, channel: Channel) -> FieldValue:
    """Shortcut for `parse_field(take.data, channel)`."""
    return parse_field(take.data, channel)


def write_field(
    data: Mapping[str, Any],
    channel: Channel,
    value: FieldValue,
    lower: int,
    upper: int,
) -> dict[str, Any]:
    """Return a copy of `data` with new bounds in the representation of `value`.

    Blank values are returned unchanged; nothing is ever written into them.
    """
    result = dict(data)
    rep = value.representation
    if value.is_blank or rep is Representation.NONE:
        return result

    low_s, high_s = format_file_number(lower), format_file_number(upper)
    if rep is Representation.PAIR:
        result[channel.from_key] = low_s
        result[channel.to_key] = high_s
        main = data.get(channel.field_id)
        if isinstance(main, str) and main.strip():
            result[channel.field_id] = f"{low_s}-{high_s}" if "-" in main else low_s
    elif rep is Representation.INLINE:
        result[channel.field_id] = f"{low_s}-{high_s}"
    else:
        result[channel.field_id] = low_s
    return result


def display_value(value: FieldValue) -> str:
    """Render a parsed value for listings ("" for blank)."""
    if value.is_blank:
        return ""
    if value.is_range:
        return f"{format_file_number(value.lower)}-{format_file_number(value.upper)}"
    return format_file_number(value.lower)


def highest_file_number(takes: Iterable[TakeRecord], channel: Channel) -> int:
    """Highest number used on `channel` across `takes` (0 when none)."""
    highest = 0
    for take in takes:
        value = parse_take(take, channel)
        if not value.is_blank:
            highest = max(highest, value.upper)
    return highest


def next_file_number(takes: Iterable[TakeRecord], channel: Channel) -> int:
    """Number a newly appended take would start at on `channel`."""
    return highest_file_number(takes, channel) + 1
