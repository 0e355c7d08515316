"""JSON persistence for projects and takes.

The whole logbook is one JSON document. Loading is lenient: a malformed
project or take is logged and skipped so one bad record never hides the
rest of the log.
"""

from __future__ import annotations

from collections.abc import Iterable
import json
from pathlib import Path
from typing import Any

from loguru import logger

from core.models import Classification, Project, ProjectSettings, TakeRecord
from core.services.camera_config import normalize_settings
from core.services.interfaces import ILogbookRepository, Logbook
from infrastructure.utils import format_iso_datetime, parse_iso_datetime

FORMAT_VERSION = 1


def _parse_position(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None


def _project_from_dict(row: dict[str, Any]) -> Project:
    settings = row.get("settings") or {}
    return Project(
        identifier=str(row["id"]),
        name=str(row.get("name", "")),
        settings=normalize_settings(
            ProjectSettings(camera_configuration=settings.get("cameraConfiguration"))
        ),
        created_at=parse_iso_datetime(row.get("createdAt")),
        updated_at=parse_iso_datetime(row.get("updatedAt")),
    )


def _take_from_dict(row: dict[str, Any]) -> TakeRecord:
    data = row.get("data") or {}
    if not isinstance(data, dict):
        raise TypeError(f"take data must be an object, got {type(data).__name__}")
    return TakeRecord(
        identifier=str(row["id"]),
        project_id=str(row["projectId"]),
        sequence_position=_parse_position(row.get("sequencePosition")),
        scene_label=str(row.get("sceneNumber") or "").strip(),
        shot_label=str(row.get("shotNumber") or "").strip(),
        take_number=str(row.get("takeNumber") or "").strip(),
        classification=Classification.parse(row.get("classification")),
        data=dict(data),
        created_at=parse_iso_datetime(row.get("createdAt")),
        updated_at=parse_iso_datetime(row.get("updatedAt")),
    )


def _project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "id": project.identifier,
        "name": project.name,
        "settings": {"cameraConfiguration": project.settings.camera_configuration},
        "createdAt": format_iso_datetime(project.created_at),
        "updatedAt": format_iso_datetime(project.updated_at),
    }


def _take_to_dict(take: TakeRecord) -> dict[str, Any]:
    return {
        "id": take.identifier,
        "projectId": take.project_id,
        "sequencePosition": take.sequence_position,
        "sceneNumber": take.scene_label,
        "shotNumber": take.shot_label,
        "takeNumber": take.take_number,
        "classification": take.classification.value,
        "data": take.data,
        "createdAt": format_iso_datetime(take.created_at),
        "updatedAt": format_iso_datetime(take.updated_at),
    }


class JsonLogbookRepository(ILogbookRepository):
    """Load and save a logbook in JSON format."""

    def load(self, path: str) -> Logbook:
        """Read the logbook at `path`; a missing file is an empty logbook.

        Raises:
            ValueError: If the file is not a JSON object.
        """
        file_path = Path(path)
        if not file_path.exists():
            logger.info("Logbook {} not found, starting empty", file_path)
            return Logbook()

        with file_path.open("r", encoding="utf-8") as f:
            try:
                doc = json.load(f)
            except json.JSONDecodeError as ex:
                raise ValueError(f"Invalid logbook JSON in {file_path}: {ex}") from ex
        if not isinstance(doc, dict):
            raise ValueError(f"Logbook {file_path} must contain a JSON object")

        book = Logbook()
        for row in doc.get("projects") or []:
            try:
                book.projects.append(_project_from_dict(row))
            except (KeyError, TypeError, ValueError, AttributeError) as ex:
                logger.error("Project record error: {} | row={}", ex, row)

        for row in doc.get("takes") or []:
            try:
                book.takes.append(_take_from_dict(row))
            except (KeyError, TypeError, ValueError, AttributeError) as ex:
                logger.error("Take record error: {} | row={}", ex, row)

        logger.info(
            "Loaded logbook {}: {} projects, {} takes",
            file_path,
            len(book.projects),
            len(book.takes),
        )
        return book

    def save(self, path: str, projects: Iterable[Project], takes: Iterable[TakeRecord]) -> None:
        """Write the logbook to `path`, replacing any previous content."""
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        doc = {
            "version": FORMAT_VERSION,
            "projects": [_project_to_dict(p) for p in projects],
            "takes": [_take_to_dict(t) for t in takes],
        }
        tmp_path = file_path.with_suffix(file_path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False, indent=2)
            tmp_path.replace(file_path)
        finally:
            # Only left behind when writing failed
            tmp_path.unlink(missing_ok=True)
