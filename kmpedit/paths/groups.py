"""
Path Group Conversion

Converts between the on-disk group encoding of a path (a flat point
array plus ENPH/ITPH/CKPH group records) and a PathGraph.

Load: each group materializes one node per point in [start, start+length),
linked in order; the last node of a group links to the first node of every
next group.

Save: the graph is cut into maximal straight runs. A node starts a new run
when it is a traversal root, has other than one predecessor, or its
predecessor has other than one successor. Each run becomes one group with
a contiguous range in the new flat array.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from kmpedit.constants import CHECKPOINT_NO_LINK, MAX_GROUP_LINKS, MAX_U8_INDEX
from kmpedit.errors import OutOfRangeIndex, PathGroupError, TooManyGroupLinks
from kmpedit.parsers.records import PathGroup
from kmpedit.utils import logDebug, logWarning, tally
from .graph import NodeHandle, PathGraph

NodeFactory = Callable[[int, object], NodeHandle]


@dataclass
class GroupBuildResult:
    """Nodes materialized per group (empty list for skipped groups)."""
    group_nodes: List[List[NodeHandle]] = field(default_factory=list)
    warnings: List[OutOfRangeIndex] = field(default_factory=list)

    def first_node(self, group_index: int) -> Optional[NodeHandle]:
        if 0 <= group_index < len(self.group_nodes) and self.group_nodes[group_index]:
            return self.group_nodes[group_index][0]
        return None


@dataclass
class FlattenedPath:
    """
    Result of cutting a graph into runs.

    `order` is the new flat point array (as handles), `groups` the group
    records describing it and `runs` the handles of each group.
    """
    order: List[NodeHandle] = field(default_factory=list)
    groups: List[PathGroup] = field(default_factory=list)
    runs: List[List[NodeHandle]] = field(default_factory=list)

    def position_of(self) -> Dict[NodeHandle, int]:
        return {handle: i for i, handle in enumerate(self.order)}


def _warn(result: GroupBuildResult, graph: PathGraph, message: str):
    error = OutOfRangeIndex(f"{graph.name}: {message}")
    result.warnings.append(error)
    logWarning(str(error))
    tally("skipped group indices")


def build_graph_from_groups(graph: PathGraph, points: Sequence, groups: Sequence[PathGroup],
                            node_factory: Optional[NodeFactory] = None) -> GroupBuildResult:
    """
    Materialize a grouped path into `graph`.

    Args:
        graph: Graph receiving the nodes (normally empty)
        points: Flat point records (ENPT, ITPT or CKPT entries)
        groups: Group records referring into `points`
        node_factory: Called as factory(point_index, record) to create each
            node; defaults to graph.create(record)

    Returns:
        GroupBuildResult with the nodes of each group and any
        OutOfRangeIndex warnings (the offending group/link is skipped)
    """
    if node_factory is None:
        node_factory = lambda index, record: graph.create(record)

    result = GroupBuildResult()

    for group_index, group in enumerate(groups):
        end = group.start + group.length
        if end > len(points):
            _warn(result, graph,
                  f"group {group_index} covers points {group.start}..{end - 1} "
                  f"but only {len(points)} exist; group skipped")
            result.group_nodes.append([])
            continue

        nodes = [node_factory(i, points[i]) for i in range(group.start, end)]
        for a, b in zip(nodes, nodes[1:]):
            graph.link(a, b)
        if nodes:
            graph.node(nodes[0]).group_link = group.group_link
        else:
            logDebug(f"{graph.name}: group {group_index} is empty")
        result.group_nodes.append(nodes)

    for group_index, group in enumerate(groups):
        nodes = result.group_nodes[group_index]
        if not nodes:
            continue
        for next_index in group.next_indices():
            if next_index >= len(groups):
                _warn(result, graph,
                      f"group {group_index} links to group {next_index} "
                      f"but only {len(groups)} exist; link skipped")
                continue
            target = result.first_node(next_index)
            if target is None:
                continue
            if target == nodes[-1]:
                _warn(result, graph,
                      f"group {group_index} is a single point linked to itself; link skipped")
                continue
            graph.link(nodes[-1], target)

    graph.start = result.first_node(0)
    return result


def _traversal_roots(graph: PathGraph) -> List[NodeHandle]:
    handles = graph.handles()
    roots = []
    if graph.start is not None and graph.is_alive(graph.start):
        roots.append(graph.start)
    roots += [h for h in handles if not graph.node(h).prev and h != graph.start]
    roots += [h for h in handles if graph.node(h).prev and h != graph.start]
    return roots


def flatten_graph_to_groups(graph: PathGraph) -> FlattenedPath:
    """
    Cut a graph into maximal straight runs and encode them as groups.

    Runs are discovered by depth-first traversal: the overall start first,
    then unvisited nodes without predecessors, then everything else, each
    in creation order.

    Returns:
        FlattenedPath with the new point order and group records

    Raises:
        TooManyGroupLinks: A run needs more than 6 next or prev groups
        PathGroupError: A group or point index does not fit in a u8
    """
    runs: List[List[NodeHandle]] = []
    run_of: Dict[NodeHandle, int] = {}

    for root in _traversal_roots(graph):
        if root in run_of:
            continue
        stack = [(root, True)]
        while stack:
            handle, is_root = stack.pop()
            if handle in run_of:
                continue
            node = graph.node(handle)
            pred = next(iter(node.prev)) if len(node.prev) == 1 else None
            if is_root or pred is None or len(graph.node(pred).next) != 1:
                run_of[handle] = len(runs)
                runs.append([handle])
            else:
                run_of[handle] = run_of[pred]
                runs[run_of[pred]].append(handle)
            # reversed so the lowest-serial successor is visited first
            for succ in reversed(graph.successors(handle)):
                if succ not in run_of:
                    stack.append((succ, False))

    if len(runs) > MAX_U8_INDEX:
        raise PathGroupError(
            f"{graph.name}: {len(runs)} groups needed, at most {MAX_U8_INDEX} can be indexed")

    result = FlattenedPath(runs=runs)
    for group_index, run in enumerate(runs):
        start = len(result.order)
        result.order.extend(run)
        if start > MAX_U8_INDEX or len(run) > MAX_U8_INDEX:
            raise PathGroupError(
                f"{graph.name}: group {group_index} spans points {start}..{start + len(run) - 1}, "
                f"beyond the u8 index range")

        next_groups = _unique(run_of[s] for s in graph.successors(run[-1]))
        prev_groups = _unique(run_of[p] for p in graph.predecessors(run[0]))
        if len(next_groups) > MAX_GROUP_LINKS:
            raise TooManyGroupLinks(group_index, "next", len(next_groups), MAX_GROUP_LINKS)
        if len(prev_groups) > MAX_GROUP_LINKS:
            raise TooManyGroupLinks(group_index, "prev", len(prev_groups), MAX_GROUP_LINKS)

        result.groups.append(PathGroup.from_links(
            start, len(run), prev_groups, next_groups, graph.node(run[0]).group_link))

    logDebug(f"{graph.name}: flattened {len(result.order)} points into {len(runs)} groups")
    return result


def _unique(values) -> List[int]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


def link_indices(flattened: FlattenedPath, name: str = "checkpoint") -> List[Dict[str, int]]:
    """
    Per-point prev/next indices within each group.

    The first point of a group has no prev and the last no next
    (0xFF); otherwise the neighbour's index in the flat array.

    Raises:
        PathGroupError: A linked neighbour sits at flat index 0xFF or
            beyond, which the u8 field cannot tell apart from "no link"
    """
    links = []
    for run in flattened.runs:
        base = len(links)
        if len(run) > 1 and base + len(run) - 1 >= CHECKPOINT_NO_LINK:
            raise PathGroupError(
                f"{name}: points {base}..{base + len(run) - 1} are linked in one group, "
                f"prev/next indices must stay below 0x{CHECKPOINT_NO_LINK:X}")
        for i in range(len(run)):
            links.append({
                'prev': base + i - 1 if i > 0 else CHECKPOINT_NO_LINK,
                'next': base + i + 1 if i < len(run) - 1 else CHECKPOINT_NO_LINK,
            })
    return links
