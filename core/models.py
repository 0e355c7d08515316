"""Core domain models for projects, take records and file-number fields."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import re
from typing import Any

SOUND_FIELD = "soundFile"
CAMERA_FIELD = "cameraFile"

_CHANNEL_RE = re.compile(r"^camera:(\d+)$")
_CAMERA_FIELD_RE = re.compile(r"^cameraFile(\d*)$")


class Classification(str, Enum):
    """Take classification as entered on set."""

    NONE = ""
    WASTE = "Waste"
    INSERT = "Insert"
    AMBIENCE = "Ambience"
    SFX = "SFX"

    @classmethod
    def parse(cls, value: Any) -> Classification:
        """Return the matching member; unknown or empty values map to NONE."""
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.NONE


class FieldKind(str, Enum):
    BLANK = "blank"
    SINGLE = "single"
    RANGE = "range"


class Representation(str, Enum):
    """How a field value is stored in a take's data map."""

    NONE = "none"
    SINGLE = "single"  # "0004" in the main field
    INLINE = "inline"  # "0004-0006" in the main field
    PAIR = "pair"  # companion *_from / *_to fields


@dataclass(frozen=True)
class FieldValue:
    """Parsed content of one channel field.

    `lower` and `upper` are both None for blank values and equal for singles.
    """

    kind: FieldKind
    lower: int | None = None
    upper: int | None = None
    representation: Representation = Representation.NONE

    @classmethod
    def blank(cls) -> FieldValue:
        return cls(FieldKind.BLANK)

    @classmethod
    def single(cls, number: int) -> FieldValue:
        return cls(FieldKind.SINGLE, number, number, Representation.SINGLE)

    @classmethod
    def range(cls, a: int, b: int, representation: Representation) -> FieldValue:
        return cls(FieldKind.RANGE, min(a, b), max(a, b), representation)

    @property
    def is_blank(self) -> bool:
        return self.kind is FieldKind.BLANK

    @property
    def is_range(self) -> bool:
        return self.kind is FieldKind.RANGE

    def contains(self, number: int) -> bool:
        """True if `number` lies within [lower, upper]."""
        if self.is_blank:
            return False
        return self.lower <= number <= self.upper  # type: ignore[operator]


@dataclass(frozen=True)
class Channel:
    """A file-number channel: the sound field or one camera field.

    Attributes:
        field_id: Main data key, e.g. "soundFile", "cameraFile", "cameraFile2".
        camera_index: 1-based camera number, None for sound.
    """

    field_id: str
    camera_index: int | None = None

    @classmethod
    def sound(cls) -> Channel:
        return cls(SOUND_FIELD)

    @classmethod
    def camera(cls, index: int, camera_count: int = 1) -> Channel:
        """Camera channel `index`; single camera projects use the bare field."""
        if index < 1:
            raise ValueError(f"Camera index must be >= 1, got {index}")
        field_id = CAMERA_FIELD if camera_count <= 1 else f"{CAMERA_FIELD}{index}"
        return cls(field_id, index)

    @classmethod
    def parse(cls, value: str, camera_count: int = 1) -> Channel:
        """Parse "sound", "camera:<n>" or a raw field id into a channel.

        Raises:
            ValueError: If the text names no known channel.
        """
        text = str(value).strip()
        if text in ("sound", SOUND_FIELD):
            return cls.sound()
        match = _CHANNEL_RE.match(text)
        if match:
            return cls.camera(int(match.group(1)), camera_count)
        match = _CAMERA_FIELD_RE.match(text)
        if match:
            index = int(match.group(1)) if match.group(1) else 1
            if index < 1:
                raise ValueError(f"Unknown channel: {value!r}")
            return cls(text, index)
        raise ValueError(f"Unknown channel: {value!r}")

    @property
    def is_sound(self) -> bool:
        return self.camera_index is None

    @property
    def from_key(self) -> str:
        return "sound_from" if self.is_sound else f"camera{self.camera_index}_from"

    @property
    def to_key(self) -> str:
        return "sound_to" if self.is_sound else f"camera{self.camera_index}_to"

    @property
    def label(self) -> str:
        return "sound" if self.is_sound else f"camera:{self.camera_index}"


@dataclass
class ProjectSettings:
    """Per-project settings consumed by the sequencing engine."""

    camera_configuration: int = 1


@dataclass
class Project:
    identifier: str
    name: str
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class TakeRecord:
    """A single logged take.

    Records are treated as values by the services: every change produces a
    replacement record via `dataclasses.replace`.
    """

    identifier: str
    project_id: str
    sequence_position: int | None
    scene_label: str = ""
    shot_label: str = ""
    take_number: str = ""
    classification: Classification = Classification.NONE
    data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def group_key(self) -> tuple[str, str]:
        """Scene+shot group used to scope camera sequences."""
        return (self.scene_label.strip(), self.shot_label.strip())

    @property
    def take_number_value(self) -> int | None:
        """Numeric take number, or None when it is not an integer."""
        text = str(self.take_number or "").strip()
        return int(text) if text.isascii() and text.isdigit() else None
