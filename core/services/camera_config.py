"""Camera configuration normalization and channel enumeration."""

from __future__ import annotations

from typing import Any

from core.models import Channel, ProjectSettings

MIN_CAMERAS = 1
MAX_CAMERAS = 10


def normalize_camera_configuration(value: Any) -> int:
    """Clamp a camera count to 1..10; missing or invalid values become 1."""
    if isinstance(value, bool):
        return MIN_CAMERAS
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return MIN_CAMERAS
    if count < MIN_CAMERAS:
        return MIN_CAMERAS
    return min(count, MAX_CAMERAS)


def normalize_settings(settings: ProjectSettings | None) -> ProjectSettings:
    """Return settings with a valid camera configuration."""
    raw = settings.camera_configuration if settings is not None else None
    return ProjectSettings(camera_configuration=normalize_camera_configuration(raw))


def camera_channels(camera_count: int) -> list[Channel]:
    count = normalize_camera_configuration(camera_count)
    return [Channel.camera(i, count) for i in range(1, count + 1)]


def all_channels(camera_count: int) -> list[Channel]:
    """Every camera channel followed by the sound channel."""
    return camera_channels(camera_count) + [Channel.sound()]
