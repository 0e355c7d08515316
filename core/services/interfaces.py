"""Core service interfaces and shared data structures.

This module defines simple dataclasses that describe anchor resolution,
duplicate detection and rule checking results used across the
infrastructure and view-model layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from core.models import Project, TakeRecord


class AnchorStrategy(str, Enum):
    """Which resolver step produced the anchor."""

    EXPLICIT = "explicit"
    VALUE_MATCH = "value_match"
    PREVIOUS_VALUE = "previous_value"
    FALLBACK = "fallback"


@dataclass
class AnchorResolution:
    """Outcome of anchor resolution.

    Attributes:
        take: The anchor take, or None when every strategy failed.
        strategy: The strategy that succeeded (FALLBACK when `take` is None).
    """

    take: TakeRecord | None
    strategy: AnchorStrategy


@dataclass
class DuplicateInfo:
    """A detected duplicate or overlap against an existing take.

    Attributes:
        kind: "take_number" or "file".
        existing: The take already holding the number.
        channel: Channel label for file duplicates ("sound", "camera:2").
        conflict: For file duplicates, one of "exact", "lower", "upper", "within".
        highest_take_number: For take-number duplicates, highest take in the shot.
        message: Human readable summary.
    """

    kind: str
    existing: TakeRecord
    channel: str | None = None
    conflict: str | None = None
    highest_take_number: int | None = None
    message: str = ""

    @property
    def can_insert_before(self) -> bool:
        """True when the new take may be placed before `existing`."""
        return self.existing.sequence_position is not None


@dataclass
class RuleViolation:
    """A broken sequence invariant.

    Attributes:
        rule: "position_density" or "contiguity".
        project_id: Project the violation belongs to.
        message: Description with the offending values.
        take_ids: Takes involved, in sequence order.
    """

    rule: str
    project_id: str
    message: str
    take_ids: list[str] = field(default_factory=list)


@dataclass
class Logbook:
    """Everything a repository loads or saves."""

    projects: list[Project] = field(default_factory=list)
    takes: list[TakeRecord] = field(default_factory=list)


class ILogbookRepository:
    """Interface for logbook persistence."""

    def load(self, path: str) -> Logbook:
        """Load projects and takes stored at `path`."""
        raise NotImplementedError

    def save(self, path: str, projects: list[Project], takes: list[TakeRecord]) -> None:
        """Replace the logbook stored at `path`."""
        raise NotImplementedError
