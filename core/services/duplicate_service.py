"""Duplicate detection for take numbers and file numbers.

Used before a take is saved: a hit tells the caller which existing take
already holds the number so it can offer to insert the new take before it.
"""

from __future__ import annotations

from collections.abc import Iterable

from core.models import Channel, FieldValue, TakeRecord
from core.services.field_values import display_value, parse_take
from core.services.interfaces import DuplicateInfo
from core.services.sort_service import SortService
from core.services.take_numbers import highest_take_number


class DuplicateService:
    """Finds existing takes that collide with a new entry."""

    def __init__(self, sorter: SortService | None = None) -> None:
        self._sorter = sorter or SortService()

    def find_take_number_duplicate(
        self,
        takes: Iterable[TakeRecord],
        project_id: str,
        scene: str,
        shot: str,
        take_number: str,
        exclude_id: str | None = None,
    ) -> DuplicateInfo | None:
        """Return the take with the same scene/shot/take number, if any."""
        wanted = (take_number or "").strip()
        group = ((scene or "").strip(), (shot or "").strip())
        if not wanted or not group[0] or not group[1]:
            return None

        items = self._sorter.order(takes, project_id)
        for take in items:
            if (
                take.identifier != exclude_id
                and take.group_key == group
                and take.take_number.strip() == wanted
            ):
                highest = highest_take_number(items, project_id, *group)
                return DuplicateInfo(
                    kind="take_number",
                    existing=take,
                    highest_take_number=highest,
                    message=(
                        f"Take {wanted} already exists in scene {group[0]}, shot {group[1]}. "
                        f"Next free take number is {highest + 1}."
                    ),
                )
        return None

    @staticmethod
    def classify_conflict(new: FieldValue, existing: FieldValue) -> str | None:
        """Describe how `new` overlaps `existing` ("exact", "lower", "upper", "within")."""
        if new.is_blank or existing.is_blank:
            return None
        if (new.lower, new.upper) == (existing.lower, existing.upper):
            return "exact"
        if existing.contains(new.lower):
            return "lower"
        if existing.contains(new.upper):
            return "upper"
        if new.lower <= existing.lower and existing.upper <= new.upper:
            return "within"
        return None

    def find_file_duplicate(
        self,
        takes: Iterable[TakeRecord],
        project_id: str,
        channel: Channel,
        value: FieldValue,
        group_key: tuple[str, str] | None = None,
        exclude_id: str | None = None,
    ) -> DuplicateInfo | None:
        """Return the first take (in sequence order) whose number overlaps `value`.

        Camera channels are checked inside `group_key` when given; sound is
        always checked across the project.
        """
        if value.is_blank:
            return None
        for take in self._sorter.order(takes, project_id):
            if take.identifier == exclude_id:
                continue
            if not channel.is_sound and group_key is not None and take.group_key != group_key:
                continue
            existing = parse_take(take, channel)
            conflict = self.classify_conflict(value, existing)
            if conflict is None:
                continue
            return DuplicateInfo(
                kind="file",
                existing=take,
                channel=channel.label,
                conflict=conflict,
                message=(
                    f"{channel.label} {display_value(value)} overlaps take "
                    f"{take.take_number or '?'} ({display_value(existing)}, {conflict})."
                ),
            )
        return None
