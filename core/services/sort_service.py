"""Ordering service for take collections.

Takes are ordered by their project-local `sequence_position`, then by the
numeric take number. Legacy records without a position sort after the
positioned ones, in creation order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from core.models import TakeRecord

_MAX_DT = datetime.max


class SortService:
    """Provides sorting utilities for `TakeRecord` collections."""

    def sequence_key(self, take: TakeRecord) -> tuple[Any, ...]:
        """Sort key for sequence order without mutating the record."""
        position = take.sequence_position
        take_num = take.take_number_value
        created = take.created_at.replace(tzinfo=None) if take.created_at else _MAX_DT
        return (
            position is None,
            position if position is not None else 0,
            # Non-numeric take numbers after numeric ones
            take_num is None,
            take_num if take_num is not None else 0,
            created,
            take.identifier,
        )

    def order(self, takes: Iterable[TakeRecord], project_id: str | None = None) -> list[TakeRecord]:
        """Return takes in sequence order, optionally limited to one project."""
        items = [t for t in takes if project_id is None or t.project_id == project_id]
        return sorted(items, key=self.sequence_key)

    def group(self, takes: Iterable[TakeRecord], group_key: tuple[str, str]) -> list[TakeRecord]:
        """Ordered takes of one scene+shot group."""
        return [t for t in self.order(takes) if t.group_key == group_key]
