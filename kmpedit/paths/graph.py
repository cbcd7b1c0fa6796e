"""
Path Graph

Mutable directed graph of path points stored in a generation-tagged arena.

Nodes are addressed by NodeHandle(index, generation). Deleting a node
frees its slot; when the slot is reused its generation is bumped, so a
handle held by a caller never silently refers to a different node.

Edges are kept symmetric: B in node(A).next  <=>  A in node(B).prev.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Set

from kmpedit.utils.binary import Vec3


class NodeState(Enum):
    UNLINKED = "unlinked"
    LINKED = "linked"
    DELETED = "deleted"


@dataclass(frozen=True, order=True)
class NodeHandle:
    """Opaque reference to a node slot. Stale handles are rejected."""
    index: int
    generation: int

    def __repr__(self) -> str:
        return f"NodeHandle({self.index}@{self.generation})"


@dataclass
class PathNode:
    """
    A single point in a path graph.

    `record` is the decoded on-disk record the node was created from;
    position and rotation are the live transform and win over the record
    on save.
    """
    record: Any
    position: Vec3
    rotation: Vec3
    serial: int
    prev: Set[NodeHandle] = field(default_factory=set)
    next: Set[NodeHandle] = field(default_factory=set)
    pair: Optional[NodeHandle] = None
    # group_link field of the group this node heads (kept for re-encoding)
    group_link: int = 0


class PathGraph:
    """
    Directed graph of path points.

    Usage:
        graph = PathGraph("enemy")
        a = graph.create(EnemyPoint(), position=(0.0, 0.0, 0.0))
        b = graph.create(EnemyPoint(), position=(0.0, 0.0, 100.0))
        graph.link(a, b)
        graph.delete(a)
    """

    def __init__(self, name: str = "path"):
        self.name = name
        self._slots: List[Optional[PathNode]] = []
        self._generations: List[int] = []
        self._free: List[int] = []
        self._serial = 0
        # First node of group 0 at load time; the traversal root on save
        self.start: Optional[NodeHandle] = None

    # =========================================================================
    # Arena
    # =========================================================================

    def _allocate(self, node: PathNode) -> NodeHandle:
        if self._free:
            index = self._free.pop()
            self._generations[index] += 1
            self._slots[index] = node
        else:
            index = len(self._slots)
            self._slots.append(node)
            self._generations.append(0)
        return NodeHandle(index, self._generations[index])

    def create(self, record: Any, position: Optional[Vec3] = None,
               rotation: Vec3 = (0.0, 0.0, 0.0)) -> NodeHandle:
        """
        Add an unlinked node.

        Args:
            record: Record carried by the node
            position: Initial position (defaults to record.position)
            rotation: Initial rotation

        Returns:
            Handle of the new node
        """
        if position is None:
            position = getattr(record, 'position', (0.0, 0.0, 0.0))
        node = PathNode(record, tuple(position), tuple(rotation), self._serial)
        self._serial += 1
        return self._allocate(node)

    def is_alive(self, handle: NodeHandle) -> bool:
        return (0 <= handle.index < len(self._slots)
                and self._generations[handle.index] == handle.generation
                and self._slots[handle.index] is not None)

    def node(self, handle: NodeHandle) -> PathNode:
        """
        Resolve a handle.

        Raises:
            KeyError: The handle is stale or was never issued by this graph
        """
        if not self.is_alive(handle):
            raise KeyError(f"{self.name}: {handle!r} does not refer to a live node")
        return self._slots[handle.index]

    def state(self, handle: NodeHandle) -> NodeState:
        if not self.is_alive(handle):
            return NodeState.DELETED
        node = self._slots[handle.index]
        return NodeState.LINKED if node.prev or node.next else NodeState.UNLINKED

    def _all_handles(self) -> List[NodeHandle]:
        live = [(node.serial, NodeHandle(i, self._generations[i]))
                for i, node in enumerate(self._slots) if node is not None]
        return [handle for _, handle in sorted(live)]

    def handles(self) -> List[NodeHandle]:
        """Live nodes in creation order."""
        return self._all_handles()

    def __iter__(self) -> Iterator[NodeHandle]:
        return iter(self.handles())

    def __len__(self) -> int:
        return len(self.handles())

    def __contains__(self, handle: NodeHandle) -> bool:
        return self.is_alive(handle)

    def _sorted(self, handles: Set[NodeHandle]) -> List[NodeHandle]:
        return sorted(handles, key=lambda h: self._slots[h.index].serial)

    def successors(self, handle: NodeHandle) -> List[NodeHandle]:
        return self._sorted(self.node(handle).next)

    def predecessors(self, handle: NodeHandle) -> List[NodeHandle]:
        return self._sorted(self.node(handle).prev)

    def set_transform(self, handle: NodeHandle, position: Optional[Vec3] = None,
                      rotation: Optional[Vec3] = None):
        node = self.node(handle)
        if position is not None:
            node.position = tuple(position)
        if rotation is not None:
            node.rotation = tuple(rotation)

    # =========================================================================
    # Topology
    # =========================================================================

    def link(self, prev: NodeHandle, next: NodeHandle) -> bool:
        """
        Add the edge prev -> next.

        Linking a node to itself or re-adding an existing edge does nothing.
        Cycles are allowed.

        Returns:
            True if an edge was added
        """
        prev_node = self.node(prev)
        next_node = self.node(next)
        if prev == next or next in prev_node.next:
            return False
        prev_node.next.add(next)
        next_node.prev.add(prev)
        return True

    def unlink(self, prev: NodeHandle, next: NodeHandle) -> bool:
        """Remove the edge prev -> next. Returns True if it existed."""
        prev_node = self.node(prev)
        next_node = self.node(next)
        if next not in prev_node.next:
            return False
        prev_node.next.discard(next)
        next_node.prev.discard(prev)
        return True

    def delete(self, handle: NodeHandle):
        """
        Remove a node, bridging each predecessor to each successor.

        If the node was the overall start, the start moves to its first
        successor (or is cleared).
        """
        node = self.node(handle)
        preds = self._sorted(node.prev)
        succs = self._sorted(node.next)

        for p in preds:
            self._slots[p.index].next.discard(handle)
        for s in succs:
            self._slots[s.index].prev.discard(handle)

        if self.start == handle:
            self.start = succs[0] if succs else None

        self._slots[handle.index] = None
        self._free.append(handle.index)

        for p in preds:
            for s in succs:
                self.link(p, s)

    def edge_count(self) -> int:
        return sum(len(self.node(h).next) for h in self.handles())
