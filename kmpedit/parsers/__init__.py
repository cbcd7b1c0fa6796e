"""
KMP / KCL Binary File Parsers

- records: one dataclass codec per KMP record kind
- sections: Section container and file Header
- settings: typed views over record setting fields
- kmp_file: KmpFile, the complete 15-section course file
- kcl: KclFile, collision triangles bucketed by surface type

Usage:
    from kmpedit.parsers import KmpFile, KclFile

    kmp = KmpFile.from_file("course.kmp")
    for point in kmp.enemy_points:
        print(point.position)

    kcl = KclFile.from_file("course.kcl")
    print(kcl.counts())
"""

# Records
from .records import (
    StartPoint,
    EnemyPoint,
    ItemPoint,
    PathGroup,
    Checkpoint,
    GeoObject,
    RoutePoint,
    Route,
    Area,
    Camera,
    RespawnPoint,
    CannonPoint,
    FinishPoint,
    StageInfo,
    truncate_speed_mod,
)

# Sections
from .sections import (
    Section,
    Header,
)

# Typed setting views
from .settings import (
    CheckpointKind,
    CheckpointType,
    decode_checkpoint_type,
    EnemyPathSetting1,
    EnemyPathSetting2,
    ItemBulletHeight,
    bullet_cannot_drop,
    low_shell_priority,
    encode_item_flags,
    RouteLoopStyle,
    CameraKind,
    CannonShootEffect,
    FirstPlayerPos,
    AreaShape,
    EnvEffectObject,
    AreaKind,
    decode_area_kind,
    encode_area_kind,
    typed_setting,
)

# Files
from .kmp_file import KmpFile, SECTION_LAYOUT
from .kcl import KclFile, KclFlag

__all__ = [
    # Records
    'StartPoint',
    'EnemyPoint',
    'ItemPoint',
    'PathGroup',
    'Checkpoint',
    'GeoObject',
    'RoutePoint',
    'Route',
    'Area',
    'Camera',
    'RespawnPoint',
    'CannonPoint',
    'FinishPoint',
    'StageInfo',
    'truncate_speed_mod',
    # Sections
    'Section',
    'Header',
    # Settings
    'CheckpointKind',
    'CheckpointType',
    'decode_checkpoint_type',
    'EnemyPathSetting1',
    'EnemyPathSetting2',
    'ItemBulletHeight',
    'bullet_cannot_drop',
    'low_shell_priority',
    'encode_item_flags',
    'RouteLoopStyle',
    'CameraKind',
    'CannonShootEffect',
    'FirstPlayerPos',
    'AreaShape',
    'EnvEffectObject',
    'AreaKind',
    'decode_area_kind',
    'encode_area_kind',
    'typed_setting',
    # Files
    'KmpFile',
    'SECTION_LAYOUT',
    'KclFile',
    'KclFlag',
]
