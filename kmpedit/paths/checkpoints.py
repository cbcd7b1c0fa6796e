"""
Checkpoint Graph

Each checkpoint is a pair of nodes (left and right edge points) that
always share the same topology. Only left nodes are visible through
handles(); every public operation accepts either side and is applied to
both.
"""

from typing import Any, List, Optional, Set

from kmpedit.errors import PairedNodeError
from kmpedit.utils.binary import Vec2, Vec3
from .graph import NodeHandle, PathGraph


def edge_to_position(point: Vec2, height: float) -> Vec3:
    """Lift a 2D (x, z) checkpoint edge point to 3D at `height`."""
    return (point[0], height, point[1])


def position_to_edge(position: Vec3) -> Vec2:
    return (position[0], position[2])


class CheckpointGraph(PathGraph):
    """
    Path graph whose nodes come in coupled left/right pairs.

    Usage:
        graph = CheckpointGraph()
        a = graph.create_pair(Checkpoint(left=(0, 0), right=(10, 0)))
        b = graph.create_pair(Checkpoint(left=(0, 50), right=(10, 50)))
        graph.link(a, b)               # also links the right nodes
        graph.delete(graph.right(b))   # deletes both sides of b
    """

    def __init__(self, name: str = "checkpoint", height: float = 0.0):
        super().__init__(name)
        self.height = height
        self._right: Set[NodeHandle] = set()

    def create(self, record: Any, position: Optional[Vec3] = None,
               rotation: Vec3 = (0.0, 0.0, 0.0)) -> NodeHandle:
        raise PairedNodeError(f"{self.name}: checkpoint nodes must be created as a pair")

    def create_pair(self, record: Any, left: Optional[Vec2] = None,
                    right: Optional[Vec2] = None) -> NodeHandle:
        """
        Add an unlinked checkpoint.

        Args:
            record: Checkpoint record
            left: Left edge point (defaults to record.left)
            right: Right edge point (defaults to record.right)

        Returns:
            Handle of the left node
        """
        left = record.left if left is None else left
        right = record.right if right is None else right
        left_handle = super().create(record, edge_to_position(left, self.height))
        right_handle = super().create(record, edge_to_position(right, self.height))
        self.node(left_handle).pair = right_handle
        self.node(right_handle).pair = left_handle
        self._right.add(right_handle)
        return left_handle

    def is_right(self, handle: NodeHandle) -> bool:
        return handle in self._right

    def left(self, handle: NodeHandle) -> NodeHandle:
        """Left node of the checkpoint `handle` belongs to."""
        return self.node(handle).pair if handle in self._right else handle

    def right(self, handle: NodeHandle) -> NodeHandle:
        """Right node of the checkpoint `handle` belongs to."""
        return handle if handle in self._right else self.node(handle).pair

    def handles(self) -> List[NodeHandle]:
        return [h for h in self._all_handles() if h not in self._right]

    def edges(self, handle: NodeHandle) -> tuple:
        """(left, right) 2D edge points of a checkpoint."""
        return (position_to_edge(self.node(self.left(handle)).position),
                position_to_edge(self.node(self.right(handle)).position))

    # =========================================================================
    # Paired topology
    # =========================================================================

    def link(self, prev: NodeHandle, next: NodeHandle) -> bool:
        added = super().link(self.left(prev), self.left(next))
        mirrored = super().link(self.right(prev), self.right(next))
        self._check_mirrored(added, mirrored)
        return added

    def unlink(self, prev: NodeHandle, next: NodeHandle) -> bool:
        removed = super().unlink(self.left(prev), self.left(next))
        mirrored = super().unlink(self.right(prev), self.right(next))
        self._check_mirrored(removed, mirrored)
        return removed

    def delete(self, handle: NodeHandle):
        left = self.left(handle)
        right = self.right(handle)
        super().delete(left)
        super().delete(right)
        self._right.discard(right)

    def _check_mirrored(self, left_changed: bool, right_changed: bool):
        if left_changed != right_changed:
            raise PairedNodeError(f"{self.name}: left and right topology diverged")
