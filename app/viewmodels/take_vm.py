"""Lightweight view model wrapper around `TakeRecord`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Classification, TakeRecord
from core.services.camera_config import all_channels
from core.services.field_values import display_value, parse_take

_SKIP_CLASSES = {Classification.WASTE, Classification.AMBIENCE, Classification.SFX}


@dataclass
class TakeVM:
    """Expose convenient properties for listings."""

    record: TakeRecord
    camera_count: int = 1

    @property
    def slate(self) -> str:
        """Scene/shot/take as written on the slate, e.g. "12A/3/4"."""
        rec = self.record
        return f"{rec.scene_label or '-'}/{rec.shot_label or '-'}/{rec.take_number or '-'}"

    @property
    def position(self) -> int:
        return int(self.record.sequence_position or 0)

    @property
    def classification(self) -> str:
        return self.record.classification.value

    @property
    def is_skip(self) -> bool:
        """True for Waste, Ambience and SFX takes."""
        return self.record.classification in _SKIP_CLASSES

    @property
    def file_numbers(self) -> dict[str, str]:
        """Display value per channel label ("" for blank)."""
        return {
            ch.label: display_value(parse_take(self.record, ch))
            for ch in all_channels(self.camera_count)
        }
