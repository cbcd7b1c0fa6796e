import pytest

from kmpedit.parsers import (
    Area,
    Camera,
    CannonPoint,
    Checkpoint,
    EnemyPoint,
    FinishPoint,
    GeoObject,
    ItemPoint,
    KmpFile,
    PathGroup,
    RespawnPoint,
    Route,
    RoutePoint,
    StageInfo,
    StartPoint,
)
from kmpedit.utils import close_logging, init_logging


@pytest.fixture(autouse=True)
def log_file(tmp_path):
    path = tmp_path / "kmpedit.log"
    init_logging(path, console=False)
    yield path
    close_logging()


def build_sample_kmp() -> KmpFile:
    """
    A small course touching every section.

    Paths are already cut into maximal runs, so going through the course
    model reproduces the same bytes:
    - enemy: one looping group of 3 points
    - item: group 0 (2 points) branches into groups 1 and 2, both loop back
    - checkpoints: one looping group of 3, first one is the lap counter
    - routes: route 0 (2 points) held by an object, route 1 (1 point) held by an area
    """
    kmp = KmpFile()
    kmp.start_points.entries = [StartPoint((0.0, 0.0, -50.0), (0.0, 90.0, 0.0))]

    kmp.enemy_points.entries = [
        EnemyPoint((0.0, 0.0, 0.0), 12.0),
        EnemyPoint((0.0, 0.0, 100.0), 12.0, setting_1=1),
        EnemyPoint((100.0, 0.0, 100.0), 8.0, setting_2=2),
    ]
    kmp.enemy_groups.entries = [PathGroup.from_links(0, 3, [0], [0])]

    kmp.item_points.entries = [
        ItemPoint((0.0, 10.0, 0.0)),
        ItemPoint((0.0, 10.0, 100.0), setting_2=3),
        ItemPoint((-50.0, 10.0, 150.0)),
        ItemPoint((50.0, 10.0, 150.0)),
    ]
    kmp.item_groups.entries = [
        PathGroup.from_links(0, 2, [1, 2], [1, 2]),
        PathGroup.from_links(2, 1, [0], [0]),
        PathGroup.from_links(3, 1, [0], [0]),
    ]

    kmp.checkpoints.entries = [
        Checkpoint((-20.0, 0.0), (20.0, 0.0), 0, 0, 0xFF, 1),
        Checkpoint((-20.0, 100.0), (20.0, 100.0), 0, -1, 0, 2),
        Checkpoint((80.0, 80.0), (120.0, 120.0), 0, -1, 1, 0xFF),
    ]
    kmp.checkpoint_groups.entries = [PathGroup.from_links(0, 3, [0], [0])]

    kmp.objects.entries = [
        GeoObject(object_id=0x65, position=(10.0, 0.0, 10.0), route=0),
        GeoObject(object_id=0x66, position=(20.0, 0.0, 20.0)),
    ]
    kmp.routes.entries = [
        Route(0, 0, [RoutePoint((0.0, 0.0, 0.0)), RoutePoint((10.0, 0.0, 0.0), 5, 0)]),
        Route(1, 1, [RoutePoint((5.0, 5.0, 5.0))]),
    ]
    kmp.areas.entries = [
        Area(kind=3, position=(0.0, 0.0, 50.0), route=1),
        Area(kind=0, camera_index=0),
    ]
    kmp.cameras.entries = [Camera(kind=1, position=(0.0, 50.0, 0.0), time=5.0)]
    kmp.respawn_points.entries = [RespawnPoint((0.0, 0.0, 10.0), (0.0, 0.0, 0.0), 0, -1)]
    kmp.cannon_points.entries = [CannonPoint((0.0, 100.0, 0.0), (0.0, 0.0, 0.0), 0, 1)]
    kmp.finish_points.entries = [FinishPoint()]
    kmp.stage_info.entries = [StageInfo(speed_mod=1.5)]
    return kmp


@pytest.fixture
def sample_kmp() -> KmpFile:
    return build_sample_kmp()


@pytest.fixture
def sample_bytes() -> bytes:
    return build_sample_kmp().write()
