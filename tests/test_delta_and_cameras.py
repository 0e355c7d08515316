import pytest

from core.models import Channel, FieldValue, ProjectSettings, Representation
from core.services.camera_config import (
    all_channels,
    camera_channels,
    normalize_camera_configuration,
    normalize_settings,
)
from core.services.delta import channel_deltas, field_delta, take_delta


def test_field_delta_rules():
    assert field_delta(FieldValue.blank()) == 0
    assert field_delta(FieldValue.single(12)) == 1
    # "0001-0003" is three files
    assert field_delta(FieldValue.range(1, 3, Representation.INLINE)) == 3
    assert field_delta(FieldValue.range(5, 5, Representation.PAIR)) == 1


def test_take_and_channel_deltas(make_take):
    take = make_take(
        "a",
        1,
        {"cameraFile1": "0004", "camera2_from": "0001", "camera2_to": "0004", "soundFile": ""},
    )
    assert take_delta(take, Channel.camera(2, 2)) == 4
    assert channel_deltas(take, 2) == {"camera:1": 1, "camera:2": 4, "sound": 0}


def test_normalize_camera_configuration():
    assert normalize_camera_configuration(None) == 1
    assert normalize_camera_configuration("3") == 3
    assert normalize_camera_configuration(0) == 1
    assert normalize_camera_configuration(25) == 10
    assert normalize_camera_configuration("many") == 1
    assert normalize_camera_configuration(True) == 1
    assert normalize_settings(ProjectSettings(camera_configuration=-2)).camera_configuration == 1
    assert normalize_settings(None).camera_configuration == 1


def test_channel_lists():
    assert [c.field_id for c in camera_channels(1)] == ["cameraFile"]
    assert [c.label for c in all_channels(3)] == ["camera:1", "camera:2", "camera:3", "sound"]


def test_channel_parse():
    assert Channel.parse("sound") == Channel.sound()
    assert Channel.parse("soundFile").is_sound
    assert Channel.parse("camera:2", camera_count=2) == Channel("cameraFile2", 2)
    assert Channel.parse("camera:1", camera_count=1) == Channel("cameraFile", 1)
    assert Channel.parse("cameraFile3").from_key == "camera3_from"
    assert Channel.parse("cameraFile").to_key == "camera1_to"


def test_channel_parse_rejects_unknown():
    for bad in ("video", "camera:0", "camera:x", "cameraFile0"):
        with pytest.raises(ValueError):
            Channel.parse(bad)


def test_normalize_camera_configuration_overflow():
    assert normalize_camera_configuration(float("inf")) == 1
