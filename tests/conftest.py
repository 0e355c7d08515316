# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from core.models import Classification, TakeRecord

_BASE_TIME = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def build_take(
    identifier: str,
    position: int | None,
    data: dict[str, Any] | None = None,
    *,
    scene: str = "1",
    shot: str = "1",
    take: str | int = "1",
    project: str = "p1",
    classification: Classification = Classification.NONE,
    minutes: int = 0,
) -> TakeRecord:
    stamp = _BASE_TIME + timedelta(minutes=minutes)
    return TakeRecord(
        identifier=identifier,
        project_id=project,
        sequence_position=position,
        scene_label=scene,
        shot_label=shot,
        take_number=str(take),
        classification=classification,
        data=dict(data or {}),
        created_at=stamp,
        updated_at=stamp,
    )


@pytest.fixture
def make_take():
    """Factory fixture building `TakeRecord`s with sensible defaults."""
    return build_take


def by_id(takes: list[TakeRecord]) -> dict[str, TakeRecord]:
    return {t.identifier: t for t in takes}


@pytest.fixture
def index():
    """Map a take list to {identifier: take}."""
    return by_id
