"""
KMP Record Codecs

One dataclass per KMP record kind. Each provides a `read` classmethod
that consumes exactly the record's byte width and a `write` method that
emits the same fields in the same order. Padding and unknown fields are
kept so that a decoded file re-encodes byte-for-byte.

Record layouts (big-endian):
- StartPoint   (KTPT, 0x1C): vec3 position, vec3 rotation, i16 player index, u16 pad
- EnemyPoint   (ENPT, 0x14): vec3 position, f32 leniency, u16 s1, u8 s2, u8 s3
- ItemPoint    (ITPT, 0x14): vec3 position, f32 bullet control, u16 s1, u16 s2
- PathGroup    (ENPH/ITPH/CKPH, 0x10): u8 start, u8 length, u8[6] prev, u8[6] next, u16 link
- Checkpoint   (CKPT, 0x14): f32[2] left, f32[2] right, u8 respawn, i8 type, u8 prev, u8 next
- GeoObject    (GOBJ, 0x3C): u16 id, u16 ext. presence, 3x vec3, u16 route, u16[8], u16 presence
- Route        (POTI, variable): u16 count, u8 smooth, u8 loop, count x RoutePoint
- Area         (AREA, 0x30): u8 shape/kind/camera/priority, 3x vec3, u16 s1, u16 s2, u8 route, u8 enemy, u16 pad
- Camera       (CAME, 0x48)
- RespawnPoint (JGPT, 0x1C), CannonPoint (CNPT, 0x1C), FinishPoint (MSPT, 0x1C)
- StageInfo    (STGI, 0x0C)
"""

import struct
from dataclasses import dataclass, field
from typing import ClassVar, List, Tuple

from kmpedit.constants import GROUP_SENTINEL, MAX_GROUP_LINKS
from kmpedit.utils.binary import BinaryReader, BinaryWriter, Vec2, Vec3
from .settings import (
    AreaKind,
    CameraKind,
    CannonShootEffect,
    CheckpointType,
    EnemyPathSetting1,
    EnemyPathSetting2,
    FirstPlayerPos,
    ItemBulletHeight,
    RouteLoopStyle,
    bullet_cannot_drop,
    decode_area_kind,
    decode_checkpoint_type,
    low_shell_priority,
    typed_setting,
)

_ZERO3: Vec3 = (0.0, 0.0, 0.0)
_UNIT3: Vec3 = (1.0, 1.0, 1.0)


@dataclass
class StartPoint:
    """KTPT: kart start position."""
    position: Vec3 = _ZERO3
    rotation: Vec3 = _ZERO3
    player_index: int = -1
    padding: int = 0

    SECTION_NAME: ClassVar[str] = "KTPT"

    @classmethod
    def read(cls, reader: BinaryReader) -> 'StartPoint':
        return cls(
            position=reader.read_vec3(),
            rotation=reader.read_vec3(),
            player_index=reader.read_i16(),
            padding=reader.read_u16(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_vec3(self.position)
        writer.write_vec3(self.rotation)
        writer.write_i16(self.player_index)
        writer.write_u16(self.padding)


@dataclass
class EnemyPoint:
    """ENPT: a point on the CPU racers' path."""
    position: Vec3 = _ZERO3
    leniency: float = 10.0
    setting_1: int = 0
    setting_2: int = 0
    setting_3: int = 0

    SECTION_NAME: ClassVar[str] = "ENPT"

    @property
    def path_setting_1(self) -> EnemyPathSetting1:
        return typed_setting(EnemyPathSetting1, self.setting_1, "enemy point setting 1")

    @property
    def path_setting_2(self) -> EnemyPathSetting2:
        return typed_setting(EnemyPathSetting2, self.setting_2, "enemy point setting 2")

    @classmethod
    def read(cls, reader: BinaryReader) -> 'EnemyPoint':
        return cls(
            position=reader.read_vec3(),
            leniency=reader.read_f32(),
            setting_1=reader.read_u16(),
            setting_2=reader.read_u8(),
            setting_3=reader.read_u8(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_vec3(self.position)
        writer.write_f32(self.leniency)
        writer.write_u16(self.setting_1)
        writer.write_u8(self.setting_2)
        writer.write_u8(self.setting_3)


@dataclass
class ItemPoint:
    """ITPT: a point on the red shell / bullet bill path."""
    position: Vec3 = _ZERO3
    bullet_control: float = 1.0
    setting_1: int = 1
    setting_2: int = 0

    SECTION_NAME: ClassVar[str] = "ITPT"

    @property
    def bullet_height(self) -> ItemBulletHeight:
        return typed_setting(ItemBulletHeight, self.setting_1, "item bullet height")

    @property
    def bullet_cannot_drop(self) -> bool:
        return bullet_cannot_drop(self.setting_2)

    @property
    def low_shell_priority(self) -> bool:
        return low_shell_priority(self.setting_2)

    @classmethod
    def read(cls, reader: BinaryReader) -> 'ItemPoint':
        return cls(
            position=reader.read_vec3(),
            bullet_control=reader.read_f32(),
            setting_1=reader.read_u16(),
            setting_2=reader.read_u16(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_vec3(self.position)
        writer.write_f32(self.bullet_control)
        writer.write_u16(self.setting_1)
        writer.write_u16(self.setting_2)


def _pack_group_list(indices: List[int]) -> Tuple[int, ...]:
    slots = list(indices[:MAX_GROUP_LINKS])
    slots += [GROUP_SENTINEL] * (MAX_GROUP_LINKS - len(slots))
    return tuple(slots)


@dataclass
class PathGroup:
    """
    ENPH/ITPH/CKPH: a contiguous run of path points and its neighbours.

    Unused prev/next slots hold 0xFF.
    """
    start: int = 0
    length: int = 0
    prev_groups: Tuple[int, ...] = (GROUP_SENTINEL,) * MAX_GROUP_LINKS
    next_groups: Tuple[int, ...] = (GROUP_SENTINEL,) * MAX_GROUP_LINKS
    group_link: int = 0

    @classmethod
    def from_links(cls, start: int, length: int, prev_groups: List[int],
                   next_groups: List[int], group_link: int = 0) -> 'PathGroup':
        return cls(start, length, _pack_group_list(prev_groups),
                   _pack_group_list(next_groups), group_link)

    def prev_indices(self) -> List[int]:
        return [g for g in self.prev_groups if g != GROUP_SENTINEL]

    def next_indices(self) -> List[int]:
        return [g for g in self.next_groups if g != GROUP_SENTINEL]

    @classmethod
    def read(cls, reader: BinaryReader) -> 'PathGroup':
        return cls(
            start=reader.read_u8(),
            length=reader.read_u8(),
            prev_groups=reader.read_array('B', MAX_GROUP_LINKS),
            next_groups=reader.read_array('B', MAX_GROUP_LINKS),
            group_link=reader.read_u16(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_u8(self.start)
        writer.write_u8(self.length)
        writer.write_array('B', self.prev_groups)
        writer.write_array('B', self.next_groups)
        writer.write_u16(self.group_link)


@dataclass
class Checkpoint:
    """CKPT: a checkpoint line between two 2D (x, z) edge points."""
    left: Vec2 = (0.0, 0.0)
    right: Vec2 = (0.0, 0.0)
    respawn_index: int = 0
    checkpoint_type: int = -1
    prev_index: int = 0xFF
    next_index: int = 0xFF

    SECTION_NAME: ClassVar[str] = "CKPT"

    @property
    def type_info(self) -> CheckpointType:
        return decode_checkpoint_type(self.checkpoint_type)

    @classmethod
    def read(cls, reader: BinaryReader) -> 'Checkpoint':
        record = cls(
            left=reader.read_vec2(),
            right=reader.read_vec2(),
            respawn_index=reader.read_u8(),
            checkpoint_type=reader.read_i8(),
            prev_index=reader.read_u8(),
            next_index=reader.read_u8(),
        )
        # reject types with no meaning (-128..-2)
        decode_checkpoint_type(record.checkpoint_type)
        return record

    def write(self, writer: BinaryWriter):
        writer.write_vec2(self.left)
        writer.write_vec2(self.right)
        writer.write_u8(self.respawn_index)
        writer.write_i8(self.checkpoint_type)
        writer.write_u8(self.prev_index)
        writer.write_u8(self.next_index)


@dataclass
class GeoObject:
    """GOBJ: a placed object (item box, obstacle, sound trigger...)."""
    object_id: int = 0
    extended_presence: int = 0
    position: Vec3 = _ZERO3
    rotation: Vec3 = _ZERO3
    scale: Vec3 = _UNIT3
    route: int = 0xFFFF
    settings: Tuple[int, ...] = (0,) * 8
    presence_flags: int = 0x3F

    SECTION_NAME: ClassVar[str] = "GOBJ"

    @classmethod
    def read(cls, reader: BinaryReader) -> 'GeoObject':
        return cls(
            object_id=reader.read_u16(),
            extended_presence=reader.read_u16(),
            position=reader.read_vec3(),
            rotation=reader.read_vec3(),
            scale=reader.read_vec3(),
            route=reader.read_u16(),
            settings=reader.read_array('H', 8),
            presence_flags=reader.read_u16(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_u16(self.object_id)
        writer.write_u16(self.extended_presence)
        writer.write_vec3(self.position)
        writer.write_vec3(self.rotation)
        writer.write_vec3(self.scale)
        writer.write_u16(self.route)
        writer.write_array('H', self.settings)
        writer.write_u16(self.presence_flags)


@dataclass
class RoutePoint:
    position: Vec3 = _ZERO3
    setting_1: int = 0
    setting_2: int = 0

    @classmethod
    def read(cls, reader: BinaryReader) -> 'RoutePoint':
        return cls(reader.read_vec3(), reader.read_u16(), reader.read_u16())

    def write(self, writer: BinaryWriter):
        writer.write_vec3(self.position)
        writer.write_u16(self.setting_1)
        writer.write_u16(self.setting_2)


@dataclass
class Route:
    """
    POTI: an ordered route used by objects, areas and cameras.

    The point count is written from len(points), never cached.
    """
    smooth_motion: int = 0
    loop_style: int = 0
    points: List[RoutePoint] = field(default_factory=list)

    SECTION_NAME: ClassVar[str] = "POTI"

    @property
    def smooth(self) -> bool:
        return self.smooth_motion != 0

    @property
    def loop(self) -> RouteLoopStyle:
        return typed_setting(RouteLoopStyle, self.loop_style, "route loop style")

    @classmethod
    def read(cls, reader: BinaryReader) -> 'Route':
        count = reader.read_u16()
        smooth_motion = reader.read_u8()
        loop_style = reader.read_u8()
        points = [RoutePoint.read(reader) for _ in range(count)]
        return cls(smooth_motion, loop_style, points)

    def write(self, writer: BinaryWriter):
        writer.write_u16(len(self.points))
        writer.write_u8(self.smooth_motion)
        writer.write_u8(self.loop_style)
        for point in self.points:
            point.write(writer)


@dataclass
class Area:
    """AREA: a box/cylinder volume whose meaning depends on `kind`."""
    shape: int = 0
    kind: int = 0
    camera_index: int = 0xFF
    priority: int = 0
    position: Vec3 = _ZERO3
    rotation: Vec3 = _ZERO3
    scale: Vec3 = _UNIT3
    setting_1: int = 0
    setting_2: int = 0
    route: int = 0xFF
    enemy_point_id: int = 0
    padding: int = 0

    SECTION_NAME: ClassVar[str] = "AREA"

    @property
    def kind_info(self) -> AreaKind:
        return decode_area_kind(self.kind, self.camera_index, self.setting_1,
                                self.setting_2, self.route)

    @classmethod
    def read(cls, reader: BinaryReader) -> 'Area':
        record = cls(
            shape=reader.read_u8(),
            kind=reader.read_u8(),
            camera_index=reader.read_u8(),
            priority=reader.read_u8(),
            position=reader.read_vec3(),
            rotation=reader.read_vec3(),
            scale=reader.read_vec3(),
            setting_1=reader.read_u16(),
            setting_2=reader.read_u16(),
            route=reader.read_u8(),
            enemy_point_id=reader.read_u8(),
            padding=reader.read_u16(),
        )
        # reject unknown kind tags
        decode_area_kind(record.kind, record.camera_index, record.setting_1,
                         record.setting_2, record.route)
        return record

    def write(self, writer: BinaryWriter):
        writer.write_u8(self.shape)
        writer.write_u8(self.kind)
        writer.write_u8(self.camera_index)
        writer.write_u8(self.priority)
        writer.write_vec3(self.position)
        writer.write_vec3(self.rotation)
        writer.write_vec3(self.scale)
        writer.write_u16(self.setting_1)
        writer.write_u16(self.setting_2)
        writer.write_u8(self.route)
        writer.write_u8(self.enemy_point_id)
        writer.write_u16(self.padding)


@dataclass
class Camera:
    """CAME: a race, intro or replay camera."""
    kind: int = 0
    next_index: int = 0xFF
    shake: int = 0
    route: int = 0xFF
    point_velocity: int = 0
    zoom_velocity: int = 0
    view_velocity: int = 0
    start: int = 0
    movie: int = 0
    position: Vec3 = _ZERO3
    rotation: Vec3 = _ZERO3
    zoom_start: float = 0.0
    zoom_end: float = 0.0
    view_start: Vec3 = _ZERO3
    view_end: Vec3 = _ZERO3
    time: float = 0.0

    SECTION_NAME: ClassVar[str] = "CAME"

    @property
    def camera_kind(self) -> CameraKind:
        return typed_setting(CameraKind, self.kind, "camera kind")

    @classmethod
    def read(cls, reader: BinaryReader) -> 'Camera':
        return cls(
            kind=reader.read_u8(),
            next_index=reader.read_u8(),
            shake=reader.read_u8(),
            route=reader.read_u8(),
            point_velocity=reader.read_u16(),
            zoom_velocity=reader.read_u16(),
            view_velocity=reader.read_u16(),
            start=reader.read_u8(),
            movie=reader.read_u8(),
            position=reader.read_vec3(),
            rotation=reader.read_vec3(),
            zoom_start=reader.read_f32(),
            zoom_end=reader.read_f32(),
            view_start=reader.read_vec3(),
            view_end=reader.read_vec3(),
            time=reader.read_f32(),
        )

    def write(self, writer: BinaryWriter):
        writer.write_u8(self.kind)
        writer.write_u8(self.next_index)
        writer.write_u8(self.shake)
        writer.write_u8(self.route)
        writer.write_u16(self.point_velocity)
        writer.write_u16(self.zoom_velocity)
        writer.write_u16(self.view_velocity)
        writer.write_u8(self.start)
        writer.write_u8(self.movie)
        writer.write_vec3(self.position)
        writer.write_vec3(self.rotation)
        writer.write_f32(self.zoom_start)
        writer.write_f32(self.zoom_end)
        writer.write_vec3(self.view_start)
        writer.write_vec3(self.view_end)
        writer.write_f32(self.time)


@dataclass
class _PlacedPoint:
    """Shared layout of JGPT/CNPT/MSPT: vec3, vec3, u16, 16-bit extra."""
    position: Vec3 = _ZERO3
    rotation: Vec3 = _ZERO3
    id: int = 0

    EXTRA_SIGNED: ClassVar[bool] = True

    def _extra(self) -> int:
        raise NotImplementedError

    @classmethod
    def read(cls, reader: BinaryReader):
        position = reader.read_vec3()
        rotation = reader.read_vec3()
        point_id = reader.read_u16()
        extra = reader.read_i16() if cls.EXTRA_SIGNED else reader.read_u16()
        return cls(position, rotation, point_id, extra)

    def write(self, writer: BinaryWriter):
        writer.write_vec3(self.position)
        writer.write_vec3(self.rotation)
        writer.write_u16(self.id)
        if self.EXTRA_SIGNED:
            writer.write_i16(self._extra())
        else:
            writer.write_u16(self._extra())


@dataclass
class RespawnPoint(_PlacedPoint):
    """JGPT: respawn position; checkpoints refer to it by index."""
    extra_data: int = -1

    SECTION_NAME: ClassVar[str] = "JGPT"

    @property
    def sound_trigger(self) -> int:
        if self.extra_data >= 0:
            return self.extra_data // 100 - 1
        return -1

    def _extra(self) -> int:
        return self.extra_data


@dataclass
class CannonPoint(_PlacedPoint):
    """CNPT: cannon landing target."""
    shoot_effect: int = 0

    SECTION_NAME: ClassVar[str] = "CNPT"

    @property
    def effect(self) -> CannonShootEffect:
        return typed_setting(CannonShootEffect, self.shoot_effect, "cannon shoot effect")

    def _extra(self) -> int:
        return self.shoot_effect


@dataclass
class FinishPoint(_PlacedPoint):
    """MSPT: where players are placed after a battle/mission ends."""
    unknown: int = 0

    SECTION_NAME: ClassVar[str] = "MSPT"
    EXTRA_SIGNED: ClassVar[bool] = False

    def _extra(self) -> int:
        return self.unknown


def _speed_mod_from_bytes(high: bytes) -> float:
    return struct.unpack('>f', high + b'\x00\x00')[0]


def truncate_speed_mod(value: float) -> float:
    """Return `value` as it survives the 2-byte on-disk encoding."""
    return _speed_mod_from_bytes(struct.pack('>f', value)[:2])


@dataclass
class StageInfo:
    """
    STGI: lap count, start layout, lens flare and speed modifier.

    The speed modifier is stored as the two most significant bytes of a
    big-endian f32; the low half is dropped on write.
    """
    lap_count: int = 3
    pole_position: int = 0
    driver_distance: int = 0
    lens_flare_flashing: int = 0
    unknown_04: int = 0
    flare_color: Tuple[int, int, int, int] = (0xE6, 0xE6, 0xE6, 0x00)
    padding: int = 0
    speed_mod: float = 0.0

    SECTION_NAME: ClassVar[str] = "STGI"

    @property
    def first_player_pos(self) -> FirstPlayerPos:
        return typed_setting(FirstPlayerPos, self.pole_position, "first player position")

    @property
    def narrow_player_spacing(self) -> bool:
        return self.driver_distance == 1

    @property
    def flare_flashing(self) -> bool:
        return self.lens_flare_flashing == 1

    @classmethod
    def read(cls, reader: BinaryReader) -> 'StageInfo':
        return cls(
            lap_count=reader.read_u8(),
            pole_position=reader.read_u8(),
            driver_distance=reader.read_u8(),
            lens_flare_flashing=reader.read_u8(),
            unknown_04=reader.read_u8(),
            flare_color=reader.read_array('B', 4),
            padding=reader.read_u8(),
            speed_mod=_speed_mod_from_bytes(reader.read_bytes(2)),
        )

    def write(self, writer: BinaryWriter):
        writer.write_u8(self.lap_count)
        writer.write_u8(self.pole_position)
        writer.write_u8(self.driver_distance)
        writer.write_u8(self.lens_flare_flashing)
        writer.write_u8(self.unknown_04)
        writer.write_array('B', self.flare_color)
        writer.write_u8(self.padding)
        writer.write_bytes(struct.pack('>f', self.speed_mod)[:2])
