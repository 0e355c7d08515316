"""ViewModel owning the project/take collection and its sequencing rules."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from core.models import Channel, Classification, Project, ProjectSettings, TakeRecord
from core.rules.engine import RuleEngine
from core.services import positions, sequencer, take_numbers
from core.services.camera_config import all_channels, normalize_camera_configuration
from core.services.delta import field_delta
from core.services.duplicate_service import DuplicateService
from core.services.field_values import next_file_number, parse_field, parse_take
from core.services.interfaces import DuplicateInfo, ILogbookRepository, RuleViolation
from core.services.sort_service import SortService
from infrastructure.utils import new_identifier, now_utc

_HEADER_KEYS = ("sceneNumber", "shotNumber", "takeNumber", "classification")


def _clean(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def split_take_fields(fields: Mapping[str, Any]) -> tuple[str, str, str, Classification, dict]:
    """Split a take form into (scene, shot, take, classification, data).

    Scene, shot and take number are trimmed; everything else is field data.
    """
    data = {k: v for k, v in fields.items() if k not in _HEADER_KEYS}
    return (
        _clean(fields.get("sceneNumber")),
        _clean(fields.get("shotNumber")),
        _clean(fields.get("takeNumber")),
        Classification.parse(fields.get("classification")),
        data,
    )


class ProjectVM:
    """Project store.

    Holds every project and take, applies the core sequencing services and
    persists the result through a repository. Each operation reads the
    current collection, computes a replacement and stores it before the next
    dependent step runs.
    """

    def __init__(
        self,
        repo: ILogbookRepository | None = None,
        store_path: str | None = None,
        sorter: SortService | None = None,
        default_camera_configuration: int = 1,
    ) -> None:
        """Create a ProjectVM.

        Args:
            repo: Repository with `load(path)` and `save(path, projects, takes)`.
            store_path: Where the logbook is persisted; None keeps it in memory.
            sorter: Ordering service (defaults to `SortService`).
            default_camera_configuration: Camera count for new projects.
        """
        self._repo = repo
        self._store_path = store_path
        self._sorter = sorter or SortService()
        self._duplicates = DuplicateService(self._sorter)
        self._rules = RuleEngine(self._sorter)
        self._default_cameras = normalize_camera_configuration(default_camera_configuration)
        self.projects: list[Project] = []
        self._takes: list[TakeRecord] = []

    # ----- persistence -------------------------------------------------------

    def load(self, path: str | None = None) -> None:
        """Load projects and takes from `path` (or the configured store path)."""
        if self._repo is None:
            raise RuntimeError("No repository configured")
        if path is not None:
            self._store_path = path
        if self._store_path is None:
            raise RuntimeError("No store path configured")
        book = self._repo.load(self._store_path)
        self.projects = list(book.projects)
        takes = list(book.takes)
        for project in self.projects:
            takes = positions.compact_positions(takes, project.identifier)
        self._takes = takes

    def save(self, path: str | None = None) -> None:
        """Write the current state to `path` (or the store path); errors propagate."""
        if self._repo is None:
            raise RuntimeError("No repository configured")
        if path is not None:
            self._store_path = path
        if self._store_path is None:
            raise RuntimeError("No store path configured")
        self._repo.save(self._store_path, self.projects, self._takes)

    def _persist(self) -> None:
        """Write the current state; failures are logged, never raised."""
        if self._repo is None or self._store_path is None:
            return
        try:
            self._repo.save(self._store_path, self.projects, self._takes)
        except (OSError, TypeError, ValueError) as ex:
            logger.error("Persisting logbook to {} failed: {}", self._store_path, ex)

    # ----- lookups -----------------------------------------------------------

    @property
    def takes(self) -> list[TakeRecord]:
        """Snapshot of the current take collection."""
        return list(self._takes)

    def project_takes(self, project_id: str) -> list[TakeRecord]:
        """Takes of one project in sequence order."""
        return self._sorter.order(self._takes, project_id)

    def get_project(self, project_id: str) -> Project:
        for project in self.projects:
            if project.identifier == project_id:
                return project
        raise KeyError(project_id)

    def get_take(self, take_id: str) -> TakeRecord:
        for take in self._takes:
            if take.identifier == take_id:
                return take
        raise KeyError(take_id)

    def camera_count(self, project_id: str) -> int:
        return self.get_project(project_id).settings.camera_configuration

    def channels(self, project_id: str) -> list[Channel]:
        return all_channels(self.camera_count(project_id))

    def _channel(self, project_id: str, channel: Channel | str) -> Channel:
        """Resolve a channel name and check it exists in the project.

        Raises:
            ValueError: If the name is unknown or the camera index exceeds the
                project's camera configuration.
        """
        count = self.camera_count(project_id)
        resolved = channel if isinstance(channel, Channel) else Channel.parse(channel, count)
        if not resolved.is_sound and resolved.camera_index > count:
            raise ValueError(f"Project {project_id} has {count} camera(s), got {resolved.label}")
        return resolved

    # ----- projects ----------------------------------------------------------

    def add_project(self, name: str, camera_configuration: int | None = None) -> Project:
        count = normalize_camera_configuration(
            camera_configuration if camera_configuration is not None else self._default_cameras
        )
        now = now_utc()
        project = Project(
            identifier=new_identifier(),
            name=name.strip(),
            settings=ProjectSettings(camera_configuration=count),
            created_at=now,
            updated_at=now,
        )
        self.projects.append(project)
        logger.info("Project {} created ({} cameras)", project.identifier, count)
        self._persist()
        return project

    def update_project_settings(self, project_id: str, camera_configuration: int) -> Project:
        project = self.get_project(project_id)
        updated = replace(
            project,
            settings=ProjectSettings(
                camera_configuration=normalize_camera_configuration(camera_configuration)
            ),
            updated_at=now_utc(),
        )
        self.projects = [updated if p.identifier == project_id else p for p in self.projects]
        self._persist()
        return updated

    def delete_project(self, project_id: str) -> None:
        self.get_project(project_id)
        self.projects = [p for p in self.projects if p.identifier != project_id]
        self._takes = [t for t in self._takes if t.project_id != project_id]
        logger.info("Project {} deleted", project_id)
        self._persist()

    # ----- takes -------------------------------------------------------------

    def _new_take(self, project_id: str, fields: Mapping[str, Any]) -> TakeRecord:
        scene, shot, take_num, classification, data = split_take_fields(fields)
        now = now_utc()
        return TakeRecord(
            identifier=new_identifier(),
            project_id=project_id,
            sequence_position=None,
            scene_label=scene,
            shot_label=shot,
            take_number=take_num,
            classification=classification,
            data=data,
            created_at=now,
            updated_at=now,
        )

    def add_take(self, project_id: str, fields: Mapping[str, Any]) -> TakeRecord:
        """Append a take at the end of the project's sequence."""
        self.get_project(project_id)
        take = self._new_take(project_id, fields)
        if not take.take_number and take.scene_label and take.shot_label:
            take = replace(
                take,
                take_number=str(
                    take_numbers.next_take_number(
                        self._takes, project_id, take.scene_label, take.shot_label
                    )
                ),
            )
        take = replace(take, sequence_position=positions.next_position(self._takes, project_id))
        self._takes = self._takes + [take]
        logger.info(
            "Take {} appended at {} ({}/{}/{})",
            take.identifier,
            take.sequence_position,
            take.scene_label,
            take.shot_label,
            take.take_number,
        )
        self._persist()
        return take

    def insert_before(
        self, project_id: str, anchor_position: int, fields: Mapping[str, Any]
    ) -> TakeRecord:
        """Insert a take before `anchor_position` and renumber what follows.

        The take number defaults to the displaced take's number when it is in
        the same scene/shot. Later takes of the group are bumped when the take
        number collides, and every channel is shifted after the new take.
        """
        self.get_project(project_id)
        new_take = self._new_take(project_id, fields)
        displaced = next(
            (t for t in self.project_takes(project_id) if t.sequence_position == anchor_position),
            None,
        )
        if not new_take.take_number and new_take.scene_label and new_take.shot_label:
            if displaced is not None and displaced.group_key == new_take.group_key:
                number = displaced.take_number
            else:
                number = str(
                    take_numbers.next_take_number(
                        self._takes, project_id, new_take.scene_label, new_take.shot_label
                    )
                )
            new_take = replace(new_take, take_number=number)

        takes, placed = positions.insert_before(self._takes, project_id, anchor_position, new_take)
        self._takes = takes
        logger.info(
            "Take {} inserted at position {} ({}/{}/{})",
            placed.identifier,
            placed.sequence_position,
            placed.scene_label,
            placed.shot_label,
            placed.take_number,
        )

        wanted = placed.take_number_value
        collides = wanted is not None and any(
            t.identifier != placed.identifier
            and t.project_id == project_id
            and t.group_key == placed.group_key
            and t.take_number_value == wanted
            for t in self._takes
        )
        if collides:
            self._takes = take_numbers.renumber_take_numbers(
                self._takes,
                project_id,
                placed.scene_label,
                placed.shot_label,
                wanted,
                1,
                exclude_id=placed.identifier,
            )

        for channel in self.channels(project_id):
            value = parse_take(placed, channel)
            self._shift(
                project_id,
                channel,
                None if value.is_blank else value.lower,
                max(field_delta(value), 1),
                exclude_id=placed.identifier,
                anchor_id=placed.identifier,
                anchor_position_hint=placed.sequence_position,
            )
        self._persist()
        return self.get_take(placed.identifier)

    def move_before(self, project_id: str, moving_id: str, target_position: int) -> None:
        """Move a take before `target_position`, renumbering positions, takes and files."""
        self.get_project(project_id)
        self._takes = positions.compact_positions(self._takes, project_id)
        moving = self.get_take(moving_id)
        if moving.project_id != project_id:
            raise KeyError(moving_id)
        target = next(
            (t for t in self.project_takes(project_id) if t.sequence_position == target_position),
            None,
        )
        old_position = moving.sequence_position

        self._takes = positions.move_before(self._takes, project_id, moving_id, target_position)
        new_position = self.get_take(moving_id).sequence_position
        if new_position == old_position:
            # Compaction may still have repaired legacy positions
            self._persist()
            return
        logger.info("Take {} moved {} -> {}", moving_id, old_position, new_position)

        self._renumber_for_move(project_id, moving, target)

        low, high = min(old_position, new_position), max(old_position, new_position)
        for channel in self.channels(project_id):
            self._takes = sequencer.resequence_from(
                self._takes,
                project_id,
                channel,
                low,
                high,
                group_key=None if channel.is_sound else moving.group_key,
            )
        self._persist()

    def _renumber_for_move(
        self, project_id: str, moving: TakeRecord, target: TakeRecord | None
    ) -> None:
        """Keep take numbers in shooting order when a take moves inside its group."""
        if target is None or target.group_key != moving.group_key:
            return
        moving_num, target_num = moving.take_number_value, target.take_number_value
        if moving_num is None or target_num is None or moving_num == target_num:
            return
        scene, shot = moving.group_key
        if target_num < moving_num:
            # Backward: [target, moving) moves up by one
            start, increment, stop, new_num = target_num, 1, moving_num - 1, target_num
        else:
            # Forward: (moving, target) moves down by one
            start, increment, stop, new_num = moving_num + 1, -1, target_num - 1, target_num - 1
        self._takes = take_numbers.renumber_take_numbers(
            self._takes,
            project_id,
            scene,
            shot,
            start,
            increment,
            exclude_id=moving.identifier,
            max_take_number=stop,
        )
        self._takes = [
            replace(t, take_number=str(new_num), updated_at=now_utc())
            if t.identifier == moving.identifier
            else t
            for t in self._takes
        ]

    def update_take(
        self,
        take_id: str,
        fields: Mapping[str, Any],
        reshift: bool = True,
    ) -> TakeRecord:
        """Replace a take's form fields; shift later takes on channels that changed."""
        old = self.get_take(take_id)
        scene, shot, take_num, classification, data = split_take_fields(fields)
        updated = replace(
            old,
            scene_label=scene or old.scene_label,
            shot_label=shot or old.shot_label,
            take_number=take_num or old.take_number,
            classification=(
                classification if "classification" in fields else old.classification
            ),
            data=data,
            updated_at=now_utc(),
        )
        self._takes = [updated if t.identifier == take_id else t for t in self._takes]

        if reshift:
            for channel in self.channels(old.project_id):
                if parse_field(old.data, channel) == parse_field(updated.data, channel):
                    continue
                self._shift(
                    old.project_id,
                    channel,
                    None,
                    exclude_id=take_id,
                    anchor_id=take_id,
                )
        self._persist()
        return self.get_take(take_id)

    def delete_take(self, take_id: str) -> None:
        """Remove a take, close its take-number gap and compact positions."""
        take = self.get_take(take_id)
        remaining = [t for t in self._takes if t.identifier != take_id]
        remaining = take_numbers.close_take_number_gap(remaining, take)
        self._takes = positions.compact_positions(remaining, take.project_id)
        logger.info("Take {} deleted", take_id)
        self._persist()

    # ----- sequencing operations -------------------------------------------

    def _shift(
        self,
        project_id: str,
        channel: Channel,
        from_number: int | None,
        increment: int = 1,
        exclude_id: str | None = None,
        anchor_id: str | None = None,
        anchor_position_hint: int | None = None,
    ) -> None:
        self._takes = sequencer.shift_file_numbers(
            self._takes,
            project_id,
            channel,
            from_number,
            increment,
            exclude_id=exclude_id,
            anchor_id=anchor_id,
            anchor_position_hint=anchor_position_hint,
        )

    def shift_file_numbers(
        self,
        project_id: str,
        channel: Channel | str,
        from_number: int | None,
        increment: int = 1,
        exclude_id: str | None = None,
        anchor_position_hint: int | None = None,
        anchor_id: str | None = None,
    ) -> None:
        """Shift one channel's file numbers after new material at `from_number`."""
        resolved = self._channel(project_id, channel)
        logger.info(
            "Shift {} in project {} from {} (+{}, exclude={})",
            resolved.label,
            project_id,
            from_number,
            increment,
            exclude_id,
        )
        self._shift(
            project_id,
            resolved,
            from_number,
            increment,
            exclude_id=exclude_id,
            anchor_id=anchor_id,
            anchor_position_hint=anchor_position_hint,
        )
        self._persist()

    def renumber_take_numbers(
        self,
        project_id: str,
        scene: str,
        shot: str,
        from_take_number: int,
        increment: int,
        exclude_id: str | None = None,
        max_take_number: int | None = None,
    ) -> None:
        self._takes = take_numbers.renumber_take_numbers(
            self._takes,
            project_id,
            scene,
            shot,
            from_take_number,
            increment,
            exclude_id=exclude_id,
            max_take_number=max_take_number,
        )
        self._persist()

    # ----- checks and suggestions -------------------------------------------

    def find_duplicates(
        self, project_id: str, fields: Mapping[str, Any], exclude_id: str | None = None
    ) -> list[DuplicateInfo]:
        """Existing takes colliding with a take form (take number, then each channel)."""
        scene, shot, take_num, _, data = split_take_fields(fields)
        found: list[DuplicateInfo] = []
        dup = self._duplicates.find_take_number_duplicate(
            self._takes, project_id, scene, shot, take_num, exclude_id=exclude_id
        )
        if dup is not None:
            found.append(dup)
        for channel in self.channels(project_id):
            dup = self._duplicates.find_file_duplicate(
                self._takes,
                project_id,
                channel,
                parse_field(data, channel),
                group_key=(scene, shot),
                exclude_id=exclude_id,
            )
            if dup is not None:
                found.append(dup)
        return found

    def suggest_next_numbers(self, project_id: str, scene: str, shot: str) -> dict[str, int]:
        """Next take number for the shot and next file number per channel."""
        group = (scene.strip(), shot.strip())
        project_takes = self.project_takes(project_id)
        group_takes = self._sorter.group(project_takes, group)
        result = {"take": take_numbers.next_take_number(project_takes, project_id, *group)}
        for channel in self.channels(project_id):
            source = project_takes if channel.is_sound else group_takes
            result[channel.label] = next_file_number(source, channel)
        return result

    def check_sequences(self, project_id: str) -> list[RuleViolation]:
        return self._rules.execute(self.get_project(project_id), self._takes)

    @property
    def project_count(self) -> int:
        """Number of projects currently loaded."""
        return len(self.projects)
