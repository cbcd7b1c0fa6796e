import pytest

from kmpedit.constants import NO_ROUTE_U8, NO_ROUTE_U16
from kmpedit.course import Course, EntityKind, empty_course
from kmpedit.errors import OutOfRangeIndex, PathGroupError, TooManyGroupLinks
from kmpedit.parsers import Checkpoint, EnemyPoint, GeoObject, KmpFile, PathGroup


def _load(kmp: KmpFile) -> Course:
    course, report = Course.from_kmp(KmpFile.read(kmp.write()))
    assert report.ok
    return course


def _straight_enemy_path() -> KmpFile:
    kmp = KmpFile()
    kmp.enemy_points.entries = [
        EnemyPoint((0.0, 0.0, 0.0)),
        EnemyPoint((0.0, 0.0, 100.0)),
        EnemyPoint((0.0, 0.0, 200.0)),
    ]
    kmp.enemy_groups.entries = [PathGroup.from_links(0, 3, [], [])]
    return kmp


def test_delete_middle_enemy_point_then_save_and_reload():
    course = _load(_straight_enemy_path())
    first, middle, last = course.enemy_paths.handles()

    course.delete_point(EntityKind.ENEMY, middle)
    saved = KmpFile.read(course.to_kmp().write())

    assert [p.position for p in saved.enemy_points] == [(0.0, 0.0, 0.0), (0.0, 0.0, 200.0)]
    assert saved.enemy_groups.entries == [PathGroup.from_links(0, 2, [], [])]

    reloaded = _load(saved)
    a, b = reloaded.enemy_paths.handles()
    assert reloaded.enemy_paths.successors(a) == [b]
    assert reloaded.enemy_paths.node(a).position == (0.0, 0.0, 0.0)
    assert reloaded.enemy_paths.node(b).position == (0.0, 0.0, 200.0)


def test_unedited_course_round_trips_byte_identical(sample_bytes):
    course, report = Course.from_kmp(KmpFile.read(sample_bytes))
    assert report.ok
    assert course.to_kmp().write() == sample_bytes


def test_holders_resolve_to_route_starts(sample_kmp):
    course = _load(sample_kmp)
    obj, plain = course.points[EntityKind.OBJECT].handles()
    moving_road, camera_area = course.points[EntityKind.AREA].handles()
    route_0, route_1 = course.routes.starts()

    assert course.route_of(EntityKind.OBJECT, obj) == route_0
    assert course.route_of(EntityKind.OBJECT, plain) is None
    assert course.route_of(EntityKind.AREA, moving_road) == route_1
    assert course.route_of(EntityKind.AREA, camera_area) is None


def test_deleting_route_start_keeps_holder_reference(sample_kmp):
    course = _load(sample_kmp)
    route_0, route_1 = course.routes.starts()
    obj = course.points[EntityKind.OBJECT].handles()[0]

    course.delete_point(EntityKind.ROUTE, route_0)
    course.delete_point(EntityKind.ROUTE, route_1)
    saved = course.to_kmp()

    assert len(saved.routes) == 1
    assert saved.routes[0].points[0].position == (10.0, 0.0, 0.0)
    assert course.route_of(EntityKind.OBJECT, obj) is not None
    assert saved.objects[0].route == 0
    # route 1 had a single point; its area lost the reference
    assert saved.areas[0].route == NO_ROUTE_U8


def test_deleted_holder_leaves_the_index(sample_kmp):
    course = _load(sample_kmp)
    obj = course.points[EntityKind.OBJECT].handles()[0]
    route_0 = course.routes.starts()[0]

    course.delete_point(EntityKind.OBJECT, obj)

    assert course.routes.holders_of(route_0) == set()
    assert len(course.to_kmp().objects) == 1


def test_set_route_on_object(sample_kmp):
    course = _load(sample_kmp)
    plain = course.points[EntityKind.OBJECT].handles()[1]
    route_1 = course.routes.starts()[1]

    course.set_route(EntityKind.OBJECT, plain, route_1)
    assert course.to_kmp().objects[1].route == 1

    course.set_route(EntityKind.OBJECT, plain, None)
    assert course.to_kmp().objects[1].route == NO_ROUTE_U16


def test_checkpoint_links_recomputed_on_save(sample_kmp):
    course = _load(sample_kmp)
    a, b, c = course.checkpoints.handles()

    course.unlink(EntityKind.CHECKPOINT, a, b)
    saved = course.to_kmp()

    # a stays the start but is now a run of its own; b, c form the second run
    assert [(cp.prev_index, cp.next_index) for cp in saved.checkpoints] == [
        (0xFF, 0xFF), (0xFF, 2), (1, 0xFF),
    ]
    assert saved.checkpoints[0].checkpoint_type == 0
    assert saved.checkpoint_groups[0].prev_indices() == [1]
    assert saved.checkpoint_groups[1].next_indices() == [0]


def test_moved_checkpoint_edges_are_saved(sample_kmp):
    course = _load(sample_kmp)
    a = course.checkpoints.handles()[0]

    course.checkpoints.set_transform(course.checkpoints.right(a), position=(30.0, 0.0, 5.0))

    assert course.to_kmp().checkpoints[0].right == (30.0, 5.0)


def test_create_point_links_selected_predecessors(sample_kmp):
    course = _load(sample_kmp)
    a, b, c = course.enemy_paths.handles()

    new = course.create_point(EntityKind.ENEMY, position=(5.0, 0.0, 5.0), predecessors=[a, c])

    assert course.enemy_paths.predecessors(new) == [a, c]
    assert course.enemy_paths.node(new).position == (5.0, 0.0, 5.0)


def test_create_checkpoint_keeps_edge_offset():
    course = empty_course()
    record = Checkpoint((0.0, 0.0), (10.0, 0.0))

    handle = course.create_point(EntityKind.CHECKPOINT, record, position=(100.0, 0.0, 50.0))

    assert course.checkpoints.edges(handle) == ((100.0, 50.0), (110.0, 50.0))


def test_create_and_save_plain_points():
    course = empty_course()
    course.create_point(EntityKind.OBJECT, GeoObject(object_id=0x65), position=(1.0, 2.0, 3.0))
    course.create_point(EntityKind.START)

    saved = KmpFile.read(course.to_kmp().write())
    assert saved.objects[0].object_id == 0x65
    assert saved.objects[0].position == (1.0, 2.0, 3.0)
    assert saved.objects[0].route == NO_ROUTE_U16
    assert len(saved.start_points) == 1
    assert len(saved.stage_info) == 1


def test_standalone_points_cannot_be_linked(sample_kmp):
    course = _load(sample_kmp)
    a, = course.points[EntityKind.START].handles()
    with pytest.raises(TypeError):
        course.link(EntityKind.START, a, a)


def test_save_refuses_junction_over_limit():
    course = empty_course()
    hub = course.create_point(EntityKind.ENEMY)
    for _ in range(7):
        course.create_point(EntityKind.ENEMY, predecessors=[hub])

    with pytest.raises(TooManyGroupLinks):
        course.to_kmp()


def test_out_of_range_route_reference_is_reported(sample_kmp):
    sample_kmp.objects[1].route = 7
    course, report = Course.from_kmp(KmpFile.read(sample_kmp.write()))

    assert len(report.warnings) == 1
    assert isinstance(report.warnings[0], OutOfRangeIndex)
    assert course.to_kmp().objects[1].route == NO_ROUTE_U16


def _long_checkpoint_course() -> KmpFile:
    kmp = KmpFile()
    kmp.checkpoints.entries = [Checkpoint((float(i), 0.0), (float(i), 10.0)) for i in range(300)]
    kmp.checkpoint_groups.entries = [
        PathGroup.from_links(0, 200, [], []),
        PathGroup.from_links(200, 100, [], []),
    ]
    return kmp


def test_save_refuses_checkpoint_links_past_u8():
    course, report = Course.from_kmp(_long_checkpoint_course())
    assert report.ok

    with pytest.raises(PathGroupError):
        course.to_kmp()
