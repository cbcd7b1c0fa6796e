"""
Route Graph

POTI routes are chains of points. Objects, areas and cameras ("holders")
refer to a route by its first node. The graph keeps both directions of
that reference:

- route start -> set of holders
- holder -> route start

and repairs them whenever the start node changes: deleting a start moves
its holders (and the route settings) to the next point, and joining one
route's end onto another route's start merges the second route's holders
into the first.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set, Tuple

from kmpedit.errors import DanglingRouteReference
from kmpedit.parsers.records import Route
from kmpedit.utils import logDebug
from kmpedit.utils.binary import Vec3
from .graph import NodeHandle, PathGraph


@dataclass
class RouteSettings:
    smooth_motion: int = 0
    loop_style: int = 0


class RouteGraph(PathGraph):
    """
    Graph of route chains plus the holder link index.

    Usage:
        graph = RouteGraph()
        start = graph.create_route(route_record)
        graph.attach(("object", obj_handle), start)
        graph.delete(start)   # holder now points at the second point
    """

    def __init__(self, name: str = "route"):
        super().__init__(name)
        self._holders: Dict[NodeHandle, Set[Hashable]] = {}
        self._route_of: Dict[Hashable, NodeHandle] = {}
        self._settings: Dict[NodeHandle, RouteSettings] = {}

    # =========================================================================
    # Routes
    # =========================================================================

    def create(self, record: Any, position: Optional[Vec3] = None,
               rotation: Vec3 = (0.0, 0.0, 0.0)) -> NodeHandle:
        handle = super().create(record, position, rotation)
        self._settings[handle] = RouteSettings()
        return handle

    def create_route(self, route: Route) -> Optional[NodeHandle]:
        """
        Materialize a POTI route as a chain.

        Returns:
            Handle of the first point, or None for a route with no points
        """
        nodes = [self.create(point) for point in route.points]
        for a, b in zip(nodes, nodes[1:]):
            self.link(a, b)
        if not nodes:
            return None
        self._settings[nodes[0]] = RouteSettings(route.smooth_motion, route.loop_style)
        return nodes[0]

    def route_start(self, handle: NodeHandle) -> NodeHandle:
        """Walk back to the first node of the chain containing `handle`."""
        seen = {handle}
        node = self.node(handle)
        while node.prev:
            handle = next(iter(node.prev))
            if handle in seen:
                break
            seen.add(handle)
            node = self.node(handle)
        return handle

    def starts(self) -> List[NodeHandle]:
        """First nodes of every route, in creation order."""
        return [h for h in self.handles() if not self.node(h).prev]

    def chain(self, start: NodeHandle) -> List[NodeHandle]:
        handles = [start]
        node = self.node(start)
        while node.next:
            handle = next(iter(node.next))
            if handle == start:
                break
            handles.append(handle)
            node = self.node(handle)
        return handles

    def settings(self, handle: NodeHandle) -> RouteSettings:
        return self._settings[self.route_start(handle)]

    # =========================================================================
    # Holder index
    # =========================================================================

    def attach(self, holder: Hashable, handle: NodeHandle):
        """Point `holder` at the route containing `handle`."""
        start = self.route_start(handle)
        self.detach(holder)
        self._route_of[holder] = start
        self._holders.setdefault(start, set()).add(holder)

    def detach(self, holder: Hashable):
        start = self._route_of.pop(holder, None)
        if start is not None:
            holders = self._holders.get(start)
            if holders is not None:
                holders.discard(holder)
                if not holders:
                    del self._holders[start]

    def route_of(self, holder: Hashable) -> Optional[NodeHandle]:
        return self._route_of.get(holder)

    def holders_of(self, start: NodeHandle) -> Set[Hashable]:
        return set(self._holders.get(start, ()))

    def _move_holders(self, old: NodeHandle, new: Optional[NodeHandle]):
        holders = self._holders.pop(old, set())
        for holder in holders:
            if new is None:
                del self._route_of[holder]
            else:
                self._route_of[holder] = new
        if new is not None and holders:
            self._holders.setdefault(new, set()).update(holders)

    # =========================================================================
    # Chain topology
    # =========================================================================

    def link(self, prev: NodeHandle, next: NodeHandle) -> bool:
        """
        Join prev -> next if both ends are free.

        Refused (returns False) when prev already has a successor, next
        already has a predecessor, or next is the start of prev's own route.
        Holders of next's route move to prev's route start.
        """
        prev_node = self.node(prev)
        next_node = self.node(next)
        if prev == next or prev_node.next or next_node.prev:
            return False
        head = self.route_start(prev)
        if head == next:
            return False
        super().link(prev, next)
        self._move_holders(next, head)
        self._settings.pop(next, None)
        return True

    def unlink(self, prev: NodeHandle, next: NodeHandle) -> bool:
        """Split a route; `next` starts a new route with a copy of the settings."""
        settings = self.settings(prev)
        if not super().unlink(prev, next):
            return False
        self._settings[next] = replace(settings)
        return True

    def delete(self, handle: NodeHandle):
        node = self.node(handle)
        if not node.prev:
            successor = next(iter(node.next)) if node.next else None
            self._move_holders(handle, successor)
            settings = self._settings.pop(handle, None)
            if successor is not None and settings is not None:
                self._settings[successor] = settings
            logDebug(f"{self.name}: route start {handle!r} deleted, holders moved to {successor!r}")
        super().delete(handle)

    # =========================================================================
    # Consistency and encoding
    # =========================================================================

    def validate(self):
        """
        Check that every holder points at a live route start.

        Raises:
            DanglingRouteReference: The index refers to a dead or non-start node
        """
        for holder, start in self._route_of.items():
            if not self.is_alive(start) or self.node(start).prev:
                raise DanglingRouteReference(f"{self.name}: {holder!r} refers to {start!r}")
            if holder not in self._holders.get(start, ()):
                raise DanglingRouteReference(
                    f"{self.name}: {holder!r} missing from the holders of {start!r}")
        for start, holders in self._holders.items():
            for holder in holders:
                if self._route_of.get(holder) != start:
                    raise DanglingRouteReference(
                        f"{self.name}: {start!r} lists {holder!r} which points elsewhere")

    def to_routes(self) -> Tuple[List[Route], Dict[NodeHandle, int]]:
        """
        Encode every chain as a POTI route.

        Returns:
            (routes, start handle -> route index)
        """
        self.validate()
        routes = []
        index_of = {}
        for start in self.starts():
            points = [replace(self.node(h).record, position=self.node(h).position)
                      for h in self.chain(start)]
            settings = self._settings.get(start, RouteSettings())
            index_of[start] = len(routes)
            routes.append(Route(settings.smooth_motion, settings.loop_style, points))
        return routes, index_of


def build_route_graph(routes: Sequence[Route], graph: Optional[RouteGraph] = None
                      ) -> Tuple[RouteGraph, List[Optional[NodeHandle]]]:
    """
    Load POTI routes into a RouteGraph.

    Returns:
        (graph, start handle per route index; None for empty routes)
    """
    graph = graph if graph is not None else RouteGraph()
    starts = [graph.create_route(route) for route in routes]
    return graph, starts

