from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from core.models import Channel, Project, TakeRecord
from core.services.camera_config import all_channels
from core.services.field_values import display_value, parse_take
from core.services.interfaces import RuleViolation
from core.services.sort_service import SortService


class RuleEngine:
    """Checks a project's takes against the sequence invariants.

    - positions form 1..count exactly once each;
    - for every channel, each non-blank take starts one past the previous
      non-blank take (camera per scene+shot group, sound per project).
    """

    def __init__(self, sorter: SortService | None = None) -> None:
        self._sorter = sorter or SortService()

    def execute(self, project: Project, takes: Iterable[TakeRecord]) -> list[RuleViolation]:
        ordered = self._sorter.order(takes, project.identifier)
        violations = self._check_positions(project.identifier, ordered)
        for channel in all_channels(project.settings.camera_configuration):
            if channel.is_sound:
                violations.extend(self._check_contiguity(project.identifier, channel, ordered))
                continue
            groups: dict[tuple[str, str], list[TakeRecord]] = defaultdict(list)
            for take in ordered:
                groups[take.group_key].append(take)
            for items in groups.values():
                violations.extend(self._check_contiguity(project.identifier, channel, items))
        return violations

    @staticmethod
    def _check_positions(project_id: str, ordered: list[TakeRecord]) -> list[RuleViolation]:
        positions = [t.sequence_position for t in ordered]
        expected = list(range(1, len(ordered) + 1))
        if positions == expected:
            return []
        return [
            RuleViolation(
                rule="position_density",
                project_id=project_id,
                message=f"positions {positions} are not 1..{len(ordered)}",
                take_ids=[t.identifier for t in ordered],
            )
        ]

    @staticmethod
    def _check_contiguity(
        project_id: str, channel: Channel, ordered: list[TakeRecord]
    ) -> list[RuleViolation]:
        violations: list[RuleViolation] = []
        previous: TakeRecord | None = None
        previous_upper: int | None = None
        for take in ordered:
            value = parse_take(take, channel)
            if value.is_blank:
                continue
            if previous is not None and value.lower != previous_upper + 1:
                violations.append(
                    RuleViolation(
                        rule="contiguity",
                        project_id=project_id,
                        message=(
                            f"{channel.label}: take {take.identifier} starts at "
                            f"{display_value(value)}, expected {previous_upper + 1}"
                        ),
                        take_ids=[previous.identifier, take.identifier],
                    )
                )
            previous, previous_upper = take, value.upper
        return violations
