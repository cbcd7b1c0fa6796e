import struct

import pytest

from kmpedit.errors import InvalidFormat
from kmpedit.parsers import (
    Area,
    AreaShape,
    Camera,
    CameraKind,
    CannonPoint,
    EnemyPathSetting1,
    EnemyPoint,
    FirstPlayerPos,
    Route,
    RouteLoopStyle,
    Checkpoint,
    CheckpointKind,
    CheckpointType,
    ItemPoint,
    RespawnPoint,
    StageInfo,
    decode_area_kind,
    decode_checkpoint_type,
    encode_area_kind,
    encode_item_flags,
    truncate_speed_mod,
)
from kmpedit.parsers.settings import (
    AreaCamera,
    AreaEnvEffect,
    AreaFallBoundary,
    AreaMovingRoad,
    AreaObjectUnload,
    EnvEffectObject,
)
from kmpedit.utils.binary import BinaryReader, BinaryWriter


def _encode(record) -> bytes:
    writer = BinaryWriter()
    record.write(writer)
    return writer.getvalue()


@pytest.mark.parametrize("value, kind, key", [
    (-1, CheckpointKind.NORMAL, None),
    (0, CheckpointKind.LAP_COUNT, None),
    (1, CheckpointKind.KEY, 1),
    (127, CheckpointKind.KEY, 127),
])
def test_checkpoint_type_decoding(value, kind, key):
    decoded = decode_checkpoint_type(value)
    assert decoded == CheckpointType(kind, key)
    assert decoded.encode() == value


@pytest.mark.parametrize("value", [-2, -128])
def test_invalid_checkpoint_type_is_a_decode_error(value):
    with pytest.raises(InvalidFormat):
        decode_checkpoint_type(value)


def test_checkpoint_record_with_invalid_type_fails_to_load():
    data = bytearray(_encode(Checkpoint()))
    data[17] = 0xFE  # type byte = -2
    with pytest.raises(InvalidFormat):
        Checkpoint.read(BinaryReader(bytes(data)))


@pytest.mark.parametrize("setting, cannot_drop, low_priority", [
    (0, False, False),
    (1, True, False),
    (2, False, True),
    (3, True, True),
    (5, True, False),
    (6, False, True),
    (7, True, True),
    (9, True, False),
    (10, False, True),
])
def test_item_point_flags_follow_modular_rule(setting, cannot_drop, low_priority):
    point = ItemPoint(setting_2=setting)
    assert point.bullet_cannot_drop is cannot_drop
    assert point.low_shell_priority is low_priority


def test_encode_item_flags_round_trips_through_properties():
    point = ItemPoint(setting_2=encode_item_flags(True, True))
    assert point.bullet_cannot_drop and point.low_shell_priority


def test_area_kinds_decode_their_owned_fields():
    assert decode_area_kind(0, 4, 0, 0, 0xFF) == AreaCamera(4)
    assert decode_area_kind(1, 0xFF, 1, 0, 0xFF) == AreaEnvEffect(EnvEffectObject.ENV_KAREHA_UP)
    assert decode_area_kind(3, 0xFF, 0, 0, 2) == AreaMovingRoad(2)
    assert decode_area_kind(9, 0xFF, 0, 7, 0xFF) == AreaObjectUnload(7)
    assert decode_area_kind(10, 0xFF, 0, 0, 0xFF) == AreaFallBoundary()


@pytest.mark.parametrize("kind, setting_1", [(11, 0), (0xFF, 0), (1, 5)])
def test_invalid_area_kind_is_a_decode_error(kind, setting_1):
    with pytest.raises(InvalidFormat):
        decode_area_kind(kind, 0xFF, setting_1, 0, 0xFF)


def test_encode_area_kind_updates_record_fields():
    fields = encode_area_kind(AreaMovingRoad(3))
    area = Area(shape=AreaShape.CYLINDER, **fields)
    assert area.kind == 3
    assert area.route == 3
    assert area.kind_info == AreaMovingRoad(3)


def test_area_record_with_unknown_kind_fails_to_load():
    data = bytearray(_encode(Area()))
    data[1] = 42
    with pytest.raises(InvalidFormat):
        Area.read(BinaryReader(bytes(data)))


def test_stage_info_speed_mod_exact_value_round_trips():
    data = _encode(StageInfo(speed_mod=1.5))
    assert len(data) == 12
    assert data[-2:] == b"\x3f\xc0"
    assert StageInfo.read(BinaryReader(data)).speed_mod == 1.5


def test_stage_info_speed_mod_is_truncated_to_high_bytes():
    data = _encode(StageInfo(speed_mod=1.0000001))
    decoded = StageInfo.read(BinaryReader(data)).speed_mod

    assert decoded == 1.0
    assert decoded == truncate_speed_mod(1.0000001)
    assert struct.pack('>f', decoded)[2:] == b"\x00\x00"


def test_stage_info_keeps_flare_color_and_padding():
    info = StageInfo(lap_count=5, flare_color=(1, 2, 3, 4), padding=9, unknown_04=7)
    decoded = StageInfo.read(BinaryReader(_encode(info)))
    assert decoded.flare_color == (1, 2, 3, 4)
    assert decoded.padding == 9
    assert decoded.unknown_04 == 7
    assert decoded.lap_count == 5


@pytest.mark.parametrize("extra, trigger", [(-1, -1), (100, 0), (350, 2)])
def test_respawn_sound_trigger(extra, trigger):
    assert RespawnPoint(extra_data=extra).sound_trigger == trigger


def test_record_widths():
    assert len(_encode(Checkpoint())) == 0x14
    assert len(_encode(Area())) == 0x30
    assert len(_encode(RespawnPoint())) == 0x1C


def test_typed_setting_views():
    assert EnemyPoint(setting_1=3).path_setting_1 is EnemyPathSetting1.WHEELIE
    assert Camera(kind=5).camera_kind is CameraKind.OP_FIX_MOVE_AT
    assert Route(loop_style=1).loop is RouteLoopStyle.MIRROR
    assert StageInfo(pole_position=1).first_player_pos is FirstPlayerPos.RIGHT
    assert StageInfo(driver_distance=1).narrow_player_spacing
    with pytest.raises(InvalidFormat):
        CannonPoint(shoot_effect=9).effect
