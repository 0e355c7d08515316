import json

from loguru import logger
import pytest

from app.viewmodels.project_vm import ProjectVM, split_take_fields
from app.viewmodels.take_vm import TakeVM
from core.models import Channel, Classification, Project
from infrastructure.json_repository import JsonLogbookRepository


def _fields(take=None, scene="1", shot="1", **data):
    fields = {"sceneNumber": scene, "shotNumber": shot, **data}
    if take is not None:
        fields["takeNumber"] = str(take)
    return fields


def _numbers(vm, project_id, key):
    return [t.data.get(key) for t in vm.project_takes(project_id)]


def _take_numbers(vm, project_id):
    return [t.take_number for t in vm.project_takes(project_id)]


@pytest.fixture
def vm():
    return ProjectVM()


@pytest.fixture
def project(vm):
    return vm.add_project("Feature", camera_configuration=1)


def test_split_take_fields():
    scene, shot, take, cls, data = split_take_fields(
        {
            "sceneNumber": " 12 ",
            "shotNumber": "A",
            "takeNumber": 3,
            "classification": "waste",
            "soundFile": "0001",
        }
    )
    assert (scene, shot, take, cls) == ("12", "A", "3", Classification.WASTE)
    assert data == {"soundFile": "0001"}


def test_add_take_assigns_positions_and_take_numbers(vm, project):
    first = vm.add_take(project.identifier, _fields())
    second = vm.add_take(project.identifier, _fields())
    other = vm.add_take(project.identifier, _fields(shot="2"))
    assert [first.sequence_position, second.sequence_position] == [1, 2]
    assert [first.take_number, second.take_number, other.take_number] == ["1", "2", "1"]


def test_insert_shifts_sound(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, soundFile="0005"))
    vm.add_take(pid, _fields(2, soundFile="0006"))

    new = vm.insert_before(pid, 1, _fields(soundFile="0005"))

    assert new.sequence_position == 1
    assert new.take_number == "1"
    assert _numbers(vm, pid, "soundFile") == ["0005", "0006", "0007"]
    assert _take_numbers(vm, pid) == ["1", "2", "3"]
    assert vm.check_sequences(pid) == []


def test_insert_range_shifts_camera_and_skips_blank_waste(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, camera1_from="0001", camera1_to="0003"))
    waste = vm.add_take(pid, _fields(2, classification="Waste"))
    vm.add_take(pid, _fields(3, cameraFile="0004"))

    vm.insert_before(pid, 1, _fields(camera1_from="0001", camera1_to="0002"))

    takes = vm.project_takes(pid)
    assert (takes[1].data["camera1_from"], takes[1].data["camera1_to"]) == ("0003", "0005")
    assert takes[2].identifier == waste.identifier
    assert takes[2].data == {}
    assert takes[3].data["cameraFile"] == "0006"
    assert _take_numbers(vm, pid) == ["1", "2", "3", "4"]


def test_insert_with_two_cameras(vm):
    pid = vm.add_project("Two cams", camera_configuration=2).identifier
    vm.add_take(pid, _fields(1, cameraFile1="0001", cameraFile2="0001"))
    vm.add_take(pid, _fields(2, cameraFile1="0002", cameraFile2="0002"))

    vm.insert_before(pid, 2, _fields(cameraFile1="0002"))

    assert _numbers(vm, pid, "cameraFile1") == ["0001", "0002", "0003"]
    assert _numbers(vm, pid, "cameraFile2") == ["0001", None, "0002"]
    assert vm.suggest_next_numbers(pid, "1", "1") == {
        "take": 4,
        "camera:1": 4,
        "camera:2": 3,
        "sound": 1,
    }


def test_delete_closes_take_gap_and_positions(vm, project):
    pid = project.identifier
    takes = [vm.add_take(pid, _fields(n)) for n in range(1, 6)]
    vm.delete_take(takes[2].identifier)

    assert _take_numbers(vm, pid) == ["1", "2", "3", "4"]
    assert [t.sequence_position for t in vm.project_takes(pid)] == [1, 2, 3, 4]
    with pytest.raises(KeyError):
        vm.get_take(takes[2].identifier)


def test_move_renumbers_positions_takes_and_files(vm, project):
    pid = project.identifier
    added = [vm.add_take(pid, _fields(n, soundFile=f"000{n}")) for n in range(1, 5)]
    moving = added[3]

    vm.move_before(pid, moving.identifier, 2)

    ordered = vm.project_takes(pid)
    assert [t.identifier for t in ordered] == [added[i].identifier for i in (0, 3, 1, 2)]
    assert _numbers(vm, pid, "soundFile") == ["0001", "0002", "0003", "0004"]
    assert _take_numbers(vm, pid) == ["1", "2", "3", "4"]
    assert vm.get_take(moving.identifier).take_number == "2"


def test_move_to_same_place_changes_nothing(vm, project):
    pid = project.identifier
    first = vm.add_take(pid, _fields(1, soundFile="0001"))
    vm.add_take(pid, _fields(2, soundFile="0002"))
    before = vm.takes
    vm.move_before(pid, first.identifier, 1)
    assert all(a is b for a, b in zip(before, vm.takes))


def test_update_reshifts_changed_channel(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, soundFile="0001", cameraFile="0001"))
    middle = vm.add_take(pid, _fields(2, soundFile="0002", cameraFile="0002"))
    vm.add_take(pid, _fields(3, soundFile="0003", cameraFile="0003"))

    vm.update_take(middle.identifier, _fields(2, soundFile="0002-0004", cameraFile="0002"))

    assert _numbers(vm, pid, "soundFile") == ["0001", "0002-0004", "0005"]
    assert _numbers(vm, pid, "cameraFile") == ["0001", "0002", "0003"]


def test_update_without_reshift(vm, project):
    pid = project.identifier
    first = vm.add_take(pid, _fields(1, soundFile="0001"))
    vm.add_take(pid, _fields(2, soundFile="0002"))
    vm.update_take(first.identifier, _fields(soundFile="0001-0003"), reshift=False)
    assert _numbers(vm, pid, "soundFile") == ["0001-0003", "0002"]


def test_public_shift_accepts_channel_names(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, soundFile="0010"))
    vm.add_take(pid, _fields(2, soundFile="0011"))

    vm.shift_file_numbers(pid, "sound", 5)
    # nothing holds 5 or 4: the new material takes 5, the walk resumes at 6
    assert _numbers(vm, pid, "soundFile") == ["0006", "0007"]

    with pytest.raises(ValueError):
        vm.shift_file_numbers(pid, "video", 5)


def test_renumber_take_numbers_via_store(vm, project):
    pid = project.identifier
    for n in (1, 2, 3):
        vm.add_take(pid, _fields(n))
    vm.renumber_take_numbers(pid, "1", "1", 2, 10)
    assert _take_numbers(vm, pid) == ["1", "12", "13"]


def test_find_duplicates(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, soundFile="0001"))
    existing = vm.add_take(pid, _fields(2, soundFile="0002-0003"))

    found = vm.find_duplicates(pid, _fields(2, soundFile="0003"))
    assert [d.kind for d in found] == ["take_number", "file"]
    assert all(d.existing.identifier == existing.identifier for d in found)
    assert found[1].conflict == "lower"

    assert vm.find_duplicates(pid, _fields(2, soundFile="0002-0003"), existing.identifier) == []


def test_check_sequences_reports_gap(vm, project):
    pid = project.identifier
    vm.add_take(pid, _fields(1, soundFile="0001"))
    vm.add_take(pid, _fields(2, soundFile="0005"))
    assert [v.rule for v in vm.check_sequences(pid)] == ["contiguity"]


def test_project_management(vm):
    project = vm.add_project("  Short  ", camera_configuration=99)
    assert project.name == "Short"
    assert vm.camera_count(project.identifier) == 10
    vm.update_project_settings(project.identifier, 3)
    assert [c.label for c in vm.channels(project.identifier)][-1] == "sound"
    assert vm.camera_count(project.identifier) == 3

    vm.add_take(project.identifier, _fields(1))
    vm.delete_project(project.identifier)
    assert vm.project_count == 0
    assert vm.takes == []
    with pytest.raises(KeyError):
        vm.get_project(project.identifier)


def test_state_survives_reload(tmp_path):
    path = str(tmp_path / "logbook.json")
    vm = ProjectVM(JsonLogbookRepository(), path)
    pid = vm.add_project("Feature", camera_configuration=2).identifier
    vm.add_take(pid, _fields(1, cameraFile1="0001"))
    vm.insert_before(pid, 1, _fields(cameraFile1="0001"))

    reloaded = ProjectVM(JsonLogbookRepository())
    reloaded.load(path)
    assert reloaded.camera_count(pid) == 2
    assert _numbers(reloaded, pid, "cameraFile1") == ["0001", "0002"]
    assert _take_numbers(reloaded, pid) == ["1", "2"]


class _FailingRepo(JsonLogbookRepository):
    def save(self, path, projects, takes):
        raise OSError("disk full")


def test_persistence_failure_is_logged_not_raised(tmp_path):
    errors = []
    handler = logger.add(errors.append, level="ERROR")
    try:
        vm = ProjectVM(_FailingRepo(), str(tmp_path / "logbook.json"))
        pid = vm.add_project("Feature").identifier
        take = vm.add_take(pid, _fields(1, soundFile="0001"))
    finally:
        logger.remove(handler)

    assert vm.get_take(take.identifier).data == {"soundFile": "0001"}
    assert errors
    assert "disk full" in str(errors[0])


def test_load_requires_repository():
    with pytest.raises(RuntimeError):
        ProjectVM().load("somewhere.json")


def test_take_vm_listing(make_take):
    record = make_take(
        "a",
        3,
        {"cameraFile": "0001-0002", "soundFile": ""},
        scene="12A",
        take=4,
        classification=Classification.SFX,
    )
    row = TakeVM(record)
    assert row.slate == "12A/1/4"
    assert row.position == 3
    assert row.is_skip
    assert row.classification == "SFX"
    assert row.file_numbers == {"camera:1": "0001-0002", "sound": ""}


def test_explicit_save_propagates_errors(tmp_path):
    vm = ProjectVM(_FailingRepo())
    vm.add_project("Feature")
    with pytest.raises(OSError):
        vm.save(str(tmp_path / "logbook.json"))

    in_memory = ProjectVM()
    with pytest.raises(RuntimeError):
        in_memory.save("logbook.json")


def test_save_to_new_path(tmp_path):
    vm = ProjectVM(JsonLogbookRepository())
    pid = vm.add_project("Feature").identifier
    vm.add_take(pid, _fields(1, soundFile="0001"))
    path = tmp_path / "copy.json"
    vm.save(str(path))

    reloaded = ProjectVM(JsonLogbookRepository(), str(path))
    reloaded.load()
    assert [t.data for t in reloaded.project_takes(pid)] == [{"soundFile": "0001"}]


def test_channel_beyond_camera_configuration_is_rejected(vm):
    pid = vm.add_project("Two cams", camera_configuration=2).identifier
    vm.add_take(pid, _fields(1, cameraFile2="0001"))
    with pytest.raises(ValueError):
        vm.shift_file_numbers(pid, "camera:7", 1)
    with pytest.raises(ValueError):
        vm.shift_file_numbers(pid, Channel.camera(3, 3), 1)
    vm.shift_file_numbers(pid, "camera:2", 5)
    assert _numbers(vm, pid, "cameraFile2") == ["0001"]


def test_move_in_place_persists_repaired_positions(tmp_path, make_take):
    path = tmp_path / "logbook.json"
    repo = JsonLogbookRepository()
    takes = [make_take("a", 5, {"soundFile": "0001"}), make_take("b", 9, {"soundFile": "0002"})]
    repo.save(str(path), [Project("p1", "Feature")], takes)

    vm = ProjectVM(repo)
    vm.load(str(path))
    vm.move_before("p1", "a", 1)

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert [t["sequencePosition"] for t in stored["takes"]] == [1, 2]
