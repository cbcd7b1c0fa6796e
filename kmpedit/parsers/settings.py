"""
Typed interpretation of KMP record settings.

Several KMP fields are small integers whose meaning depends on a tag
(checkpoint type, area kind, ...). This module maps them to Python types
and back. Tags with no valid interpretation raise InvalidFormat.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Optional, Union

from kmpedit.errors import InvalidFormat


# =============================================================================
# Checkpoints
# =============================================================================

class CheckpointKind(Enum):
    NORMAL = "Normal"
    LAP_COUNT = "Lap Count"
    KEY = "Key"


@dataclass(frozen=True)
class CheckpointType:
    """Decoded checkpoint type byte. `key` is set for key checkpoints only."""
    kind: CheckpointKind
    key: Optional[int] = None

    def encode(self) -> int:
        if self.kind is CheckpointKind.NORMAL:
            return -1
        if self.kind is CheckpointKind.LAP_COUNT:
            return 0
        if self.key is None or not 1 <= self.key <= 127:
            raise ValueError(f"Key checkpoint index must be 1..127, got {self.key}")
        return self.key


def decode_checkpoint_type(value: int) -> CheckpointType:
    """
    Decode the signed checkpoint type byte.

    -1 is a normal checkpoint, 0 the lap counter, 1..127 key checkpoints.
    """
    if value == -1:
        return CheckpointType(CheckpointKind.NORMAL)
    if value == 0:
        return CheckpointType(CheckpointKind.LAP_COUNT)
    if 1 <= value <= 127:
        return CheckpointType(CheckpointKind.KEY, value)
    raise InvalidFormat(f"Invalid checkpoint type {value}")


# =============================================================================
# Enemy / item points
# =============================================================================

class EnemyPathSetting1(IntEnum):
    NONE = 0
    REQUIRES_MUSHROOM = 1
    USE_MUSHROOM = 2
    WHEELIE = 3
    END_WHEELIE = 4


class EnemyPathSetting2(IntEnum):
    NONE = 0
    END_DRIFT = 1
    FORBID_DRIFT = 2
    FORCE_DRIFT = 3


class ItemBulletHeight(IntEnum):
    IGNORE_POINT_HEIGHT = 0
    AUTO = 1
    FOLLOW_POINT_HEIGHT = 2
    MUSHROOM_PADS = 3


_CANNOT_DROP_RESIDUES = frozenset((1, 3, 5, 7))
_LOW_PRIORITY_RESIDUES = frozenset((2, 3, 6, 7))


def bullet_cannot_drop(setting: int) -> bool:
    return setting % 8 in _CANNOT_DROP_RESIDUES


def low_shell_priority(setting: int) -> bool:
    return setting % 8 in _LOW_PRIORITY_RESIDUES


def encode_item_flags(cannot_drop: bool, low_priority: bool) -> int:
    return (1 if cannot_drop else 0) | (2 if low_priority else 0)


# =============================================================================
# Routes, cameras, cannons, stage info
# =============================================================================

class RouteLoopStyle(IntEnum):
    CYCLIC = 0
    MIRROR = 1


class CameraKind(IntEnum):
    GOAL = 0
    FIX_SEARCH = 1
    PATH_SEARCH = 2
    KART_FOLLOW = 3
    KART_PATH_FOLLOW = 4
    OP_FIX_MOVE_AT = 5
    OP_PATH_MOVE_AT = 6
    MINI_GAME = 7
    MISSION_SUCCESS = 8
    UNKNOWN = 9


class CannonShootEffect(IntEnum):
    STRAIGHT = 0
    CURVED = 1
    CURVED_SLOW = 2


class FirstPlayerPos(IntEnum):
    LEFT = 0
    RIGHT = 1


# =============================================================================
# Areas
# =============================================================================

class AreaShape(IntEnum):
    BOX = 0
    CYLINDER = 1


class EnvEffectObject(IntEnum):
    ENV_KAREHA = 0
    ENV_KAREHA_UP = 1


@dataclass(frozen=True)
class AreaCamera:
    camera_index: int
    TAG = 0


@dataclass(frozen=True)
class AreaEnvEffect:
    effect: EnvEffectObject
    TAG = 1


@dataclass(frozen=True)
class AreaFogEffect:
    bfg_entry: int
    setting_2: int
    TAG = 2


@dataclass(frozen=True)
class AreaMovingRoad:
    route_id: int
    TAG = 3


@dataclass(frozen=True)
class AreaForceRecalc:
    TAG = 4


@dataclass(frozen=True)
class AreaMinimapControl:
    setting_1: int
    setting_2: int
    TAG = 5


@dataclass(frozen=True)
class AreaBloomEffect:
    bblm_file: int
    fade_time: int
    TAG = 6


@dataclass(frozen=True)
class AreaEnableBoos:
    TAG = 7


@dataclass(frozen=True)
class AreaObjectGroup:
    group_id: int
    TAG = 8


@dataclass(frozen=True)
class AreaObjectUnload:
    group_id: int
    TAG = 9


@dataclass(frozen=True)
class AreaFallBoundary:
    TAG = 10


AreaKind = Union[
    AreaCamera, AreaEnvEffect, AreaFogEffect, AreaMovingRoad, AreaForceRecalc,
    AreaMinimapControl, AreaBloomEffect, AreaEnableBoos, AreaObjectGroup,
    AreaObjectUnload, AreaFallBoundary,
]


def decode_area_kind(kind: int, camera_index: int, setting_1: int,
                     setting_2: int, route: int) -> AreaKind:
    """
    Decode the area kind tag and the fields it gives meaning to.

    Args:
        kind: On-disk kind byte
        camera_index: Camera index byte
        setting_1: First generic u16 setting
        setting_2: Second generic u16 setting
        route: Route index byte

    Returns:
        One of the Area* variants

    Raises:
        InvalidFormat: Unknown kind tag or env effect object
    """
    if kind == 0:
        return AreaCamera(camera_index)
    if kind == 1:
        try:
            return AreaEnvEffect(EnvEffectObject(setting_1))
        except ValueError:
            raise InvalidFormat(f"Invalid area env effect object {setting_1}") from None
    if kind == 2:
        return AreaFogEffect(setting_1, setting_2)
    if kind == 3:
        return AreaMovingRoad(route)
    if kind == 4:
        return AreaForceRecalc()
    if kind == 5:
        return AreaMinimapControl(setting_1, setting_2)
    if kind == 6:
        return AreaBloomEffect(setting_1, setting_2)
    if kind == 7:
        return AreaEnableBoos()
    if kind == 8:
        return AreaObjectGroup(setting_1)
    if kind == 9:
        return AreaObjectUnload(setting_2)
    if kind == 10:
        return AreaFallBoundary()
    raise InvalidFormat(f"Invalid area kind {kind}")


def encode_area_kind(area_kind: AreaKind) -> Dict[str, int]:
    """
    Return the record fields an area kind variant owns.

    Fields the variant does not mention are left to the caller.
    """
    fields = {'kind': area_kind.TAG}
    if isinstance(area_kind, AreaCamera):
        fields['camera_index'] = area_kind.camera_index
    elif isinstance(area_kind, AreaEnvEffect):
        fields['setting_1'] = int(area_kind.effect)
    elif isinstance(area_kind, AreaFogEffect):
        fields['setting_1'] = area_kind.bfg_entry
        fields['setting_2'] = area_kind.setting_2
    elif isinstance(area_kind, AreaMovingRoad):
        fields['route'] = area_kind.route_id
    elif isinstance(area_kind, AreaMinimapControl):
        fields['setting_1'] = area_kind.setting_1
        fields['setting_2'] = area_kind.setting_2
    elif isinstance(area_kind, AreaBloomEffect):
        fields['setting_1'] = area_kind.bblm_file
        fields['setting_2'] = area_kind.fade_time
    elif isinstance(area_kind, AreaObjectGroup):
        fields['setting_1'] = area_kind.group_id
    elif isinstance(area_kind, AreaObjectUnload):
        fields['setting_2'] = area_kind.group_id
    return fields


def typed_setting(enum_type, value: int, what: str):
    """
    Interpret a raw setting as `enum_type`.

    Raises:
        InvalidFormat: The value has no member in `enum_type`
    """
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidFormat(f"Invalid {what} {value}") from None
