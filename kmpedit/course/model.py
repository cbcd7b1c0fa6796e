"""
Course Model

Editable view of a KMP file. Paths (enemy, item, checkpoint, route) are
graphs; every other placed point lives in a per-kind arena so that it has
a stable handle. Objects, areas and cameras refer to routes through the
route graph's holder index instead of raw route numbers.

Usage:
    course, report = Course.from_kmp(KmpFile.from_file("course.kmp"))
    middle = course.enemy_paths.handles()[1]
    course.delete_point(EntityKind.ENEMY, middle)
    course.to_kmp().to_file("course_out.kmp")
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from kmpedit.constants import NO_ROUTE_U8, NO_ROUTE_U16
from kmpedit.errors import KmpError, OutOfRangeIndex, PathGroupError
from kmpedit.parsers.kmp_file import KmpFile
from kmpedit.parsers.records import (
    Area,
    Camera,
    CannonPoint,
    Checkpoint,
    EnemyPoint,
    FinishPoint,
    GeoObject,
    ItemPoint,
    RespawnPoint,
    RoutePoint,
    StageInfo,
    StartPoint,
)
from kmpedit.parsers.sections import Header
from kmpedit.paths import (
    CheckpointGraph,
    NodeHandle,
    PathGraph,
    RouteGraph,
    build_graph_from_groups,
    build_route_graph,
    flatten_graph_to_groups,
    link_indices,
    position_to_edge,
)
from kmpedit.utils import log, logWarning, source_scope, tally
from kmpedit.utils.binary import Vec3


class EntityKind(Enum):
    START = "start"
    ENEMY = "enemy"
    ITEM = "item"
    CHECKPOINT = "checkpoint"
    OBJECT = "object"
    ROUTE = "route"
    AREA = "area"
    CAMERA = "camera"
    RESPAWN = "respawn"
    CANNON = "cannon"
    FINISH = "finish"


PATH_KINDS = (EntityKind.ENEMY, EntityKind.ITEM, EntityKind.CHECKPOINT, EntityKind.ROUTE)

# (section attribute, record class) of each standalone point kind
POINT_SECTIONS = {
    EntityKind.START: ('start_points', StartPoint),
    EntityKind.OBJECT: ('objects', GeoObject),
    EntityKind.AREA: ('areas', Area),
    EntityKind.CAMERA: ('cameras', Camera),
    EntityKind.RESPAWN: ('respawn_points', RespawnPoint),
    EntityKind.CANNON: ('cannon_points', CannonPoint),
    EntityKind.FINISH: ('finish_points', FinishPoint),
}

# Holder kinds and the "no route" marker of their route field
ROUTE_HOLDERS = {
    EntityKind.OBJECT: NO_ROUTE_U16,
    EntityKind.AREA: NO_ROUTE_U8,
    EntityKind.CAMERA: NO_ROUTE_U8,
}

RECORD_TYPES = {
    EntityKind.ENEMY: EnemyPoint,
    EntityKind.ITEM: ItemPoint,
    EntityKind.CHECKPOINT: Checkpoint,
    EntityKind.ROUTE: RoutePoint,
    **{kind: record_type for kind, (_, record_type) in POINT_SECTIONS.items()},
}


@dataclass
class LoadReport:
    """Non-fatal problems found while building a course."""
    source: str = "KMP"
    warnings: List[KmpError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


class Course:
    """
    Graphs and point arenas for one course.

    Args:
        checkpoint_height: y coordinate given to checkpoint nodes
    """

    def __init__(self, checkpoint_height: float = 0.0):
        self.header = Header()
        self.stage_info: List = []
        self.enemy_paths = PathGraph("enemy")
        self.item_paths = PathGraph("item")
        self.checkpoints = CheckpointGraph("checkpoint", checkpoint_height)
        self.routes = RouteGraph("route")
        self.points: Dict[EntityKind, PathGraph] = {
            kind: PathGraph(kind.value) for kind in POINT_SECTIONS
        }
        # additional_value of each section, re-emitted on save
        self.section_values: Dict[str, int] = {}

    def graph(self, kind: EntityKind) -> PathGraph:
        if kind is EntityKind.ENEMY:
            return self.enemy_paths
        if kind is EntityKind.ITEM:
            return self.item_paths
        if kind is EntityKind.CHECKPOINT:
            return self.checkpoints
        if kind is EntityKind.ROUTE:
            return self.routes
        return self.points[kind]

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_kmp(cls, kmp: KmpFile, checkpoint_height: float = 0.0,
                 source: str = "KMP") -> Tuple['Course', LoadReport]:
        """
        Build a course from a decoded KMP file.

        Out-of-range group or route indices are skipped and reported in the
        LoadReport; they never abort the load.
        """
        course = cls(checkpoint_height)
        report = LoadReport(source)
        course.header = replace(kmp.header, section_offsets=list(kmp.header.section_offsets))
        course.stage_info = list(kmp.stage_info.entries)
        course.section_values = {s.name: s.additional_value for s in kmp.sections()}

        for kind, (attr, _) in POINT_SECTIONS.items():
            arena = course.points[kind]
            for record in getattr(kmp, attr):
                arena.create(record, record.position, record.rotation)

        with source_scope(source):
            report.warnings += build_graph_from_groups(
                course.enemy_paths, kmp.enemy_points.entries, kmp.enemy_groups.entries).warnings
            report.warnings += build_graph_from_groups(
                course.item_paths, kmp.item_points.entries, kmp.item_groups.entries).warnings
            report.warnings += build_graph_from_groups(
                course.checkpoints, kmp.checkpoints.entries, kmp.checkpoint_groups.entries,
                node_factory=lambda index, record: course.checkpoints.create_pair(record)).warnings

            _, starts = build_route_graph(kmp.routes.entries, course.routes)
            for kind, none_value in ROUTE_HOLDERS.items():
                for handle in course.points[kind].handles():
                    route_index = course.points[kind].node(handle).record.route
                    if route_index == none_value:
                        continue
                    if route_index >= len(starts) or starts[route_index] is None:
                        error = OutOfRangeIndex(
                            f"{kind.value} {handle!r} refers to route {route_index} "
                            f"but only {len(starts)} exist; reference dropped")
                        logWarning(str(error))
                        tally("dropped route references")
                        report.warnings.append(error)
                        continue
                    course.routes.attach((kind, handle), starts[route_index])

        log(f"{source}: {len(course.enemy_paths)} enemy, {len(course.item_paths)} item, "
            f"{len(course.checkpoints)} checkpoint nodes, {len(course.routes.starts())} routes"
            + (f" ({len(report.warnings)} warnings)" if report.warnings else ""))
        return course, report

    # =========================================================================
    # Saving
    # =========================================================================

    def to_kmp(self) -> KmpFile:
        """
        Flatten every graph back into sections.

        Raises:
            TooManyGroupLinks: A path junction needs more than 6 group links
            PathGroupError: Indices do not fit the on-disk field widths
        """
        kmp = KmpFile(header=replace(self.header, section_offsets=list(self.header.section_offsets)))

        enemy = flatten_graph_to_groups(self.enemy_paths)
        kmp.enemy_points.entries = [self._moved(self.enemy_paths, h) for h in enemy.order]
        kmp.enemy_groups.entries = enemy.groups

        item = flatten_graph_to_groups(self.item_paths)
        kmp.item_points.entries = [self._moved(self.item_paths, h) for h in item.order]
        kmp.item_groups.entries = item.groups

        checkpoints = flatten_graph_to_groups(self.checkpoints)
        kmp.checkpoints.entries = [
            self._checkpoint_record(handle, links)
            for handle, links in zip(checkpoints.order, link_indices(checkpoints))
        ]
        kmp.checkpoint_groups.entries = checkpoints.groups

        routes, route_index = self.routes.to_routes()
        kmp.routes.entries = routes

        for kind, (attr, _) in POINT_SECTIONS.items():
            arena = self.points[kind]
            records = []
            for handle in arena.handles():
                record = self._moved(arena, handle, rotation=True)
                if kind in ROUTE_HOLDERS:
                    record = replace(record, route=self._route_field(kind, handle, route_index))
                records.append(record)
            getattr(kmp, attr).entries = records

        kmp.stage_info.entries = list(self.stage_info)

        for section in kmp.sections():
            if section.name != "POTI":
                section.additional_value = self.section_values.get(section.name, 0)
        return kmp

    @staticmethod
    def _moved(graph: PathGraph, handle: NodeHandle, rotation: bool = False):
        node = graph.node(handle)
        if rotation:
            return replace(node.record, position=node.position, rotation=node.rotation)
        return replace(node.record, position=node.position)

    def _checkpoint_record(self, handle: NodeHandle, links: Dict[str, int]) -> Checkpoint:
        left = position_to_edge(self.checkpoints.node(handle).position)
        right = position_to_edge(self.checkpoints.node(self.checkpoints.right(handle)).position)
        return replace(self.checkpoints.node(handle).record, left=left, right=right,
                       prev_index=links['prev'], next_index=links['next'])

    def _route_field(self, kind: EntityKind, handle: NodeHandle,
                     route_index: Dict[NodeHandle, int]) -> int:
        none_value = ROUTE_HOLDERS[kind]
        start = self.routes.route_of((kind, handle))
        if start is None:
            return none_value
        index = route_index[start]
        if index >= none_value:
            raise PathGroupError(f"{kind.value} {handle!r}: route index {index} does not fit its field")
        return index

    # =========================================================================
    # Editing
    # =========================================================================

    def create_point(self, kind: EntityKind, record=None, position: Optional[Vec3] = None,
                     predecessors: Iterable[NodeHandle] = ()) -> NodeHandle:
        """
        Add a point of any kind.

        Args:
            kind: Entity kind
            record: Record to carry (a default record when None)
            position: Initial position; for checkpoints, the left edge point
                with the right edge keeping its offset
            predecessors: Path nodes to link to the new node

        Returns:
            Handle of the new node (the left node for checkpoints)
        """
        if record is None:
            record = RECORD_TYPES[kind]()
        graph = self.graph(kind)

        if kind is EntityKind.CHECKPOINT:
            left, right = record.left, record.right
            if position is not None:
                dx, dz = right[0] - left[0], right[1] - left[1]
                left = position_to_edge(position)
                right = (left[0] + dx, left[1] + dz)
            handle = self.checkpoints.create_pair(record, left, right)
        elif kind in POINT_SECTIONS:
            handle = graph.create(record, position, getattr(record, 'rotation', (0.0, 0.0, 0.0)))
        else:
            handle = graph.create(record, position)

        for prev in predecessors:
            graph.link(prev, handle)
        return handle

    def delete_point(self, kind: EntityKind, handle: NodeHandle):
        self.graph(kind).delete(handle)
        if kind in ROUTE_HOLDERS:
            self.routes.detach((kind, handle))

    def link(self, kind: EntityKind, prev: NodeHandle, next: NodeHandle) -> bool:
        if kind not in PATH_KINDS:
            raise TypeError(f"{kind.value} points cannot be linked")
        return self.graph(kind).link(prev, next)

    def unlink(self, kind: EntityKind, prev: NodeHandle, next: NodeHandle) -> bool:
        if kind not in PATH_KINDS:
            raise TypeError(f"{kind.value} points cannot be linked")
        return self.graph(kind).unlink(prev, next)

    def set_route(self, kind: EntityKind, handle: NodeHandle, route_node: Optional[NodeHandle]):
        """Point a holder at the route containing `route_node` (None clears it)."""
        if kind not in ROUTE_HOLDERS:
            raise TypeError(f"{kind.value} points have no route")
        self.points[kind].node(handle)
        if route_node is None:
            self.routes.detach((kind, handle))
        else:
            self.routes.attach((kind, handle), route_node)

    def route_of(self, kind: EntityKind, handle: NodeHandle) -> Optional[NodeHandle]:
        return self.routes.route_of((kind, handle))

    def counts(self) -> Dict[str, int]:
        counts = {kind.value: len(self.graph(kind)) for kind in EntityKind}
        counts['routes'] = len(self.routes.starts())
        return counts


def empty_course(checkpoint_height: float = 0.0, stage_info: Optional[Sequence] = None) -> Course:
    """A course with no points and a default stage info entry."""
    course = Course(checkpoint_height)
    course.stage_info = list(stage_info) if stage_info is not None else [StageInfo()]
    return course
