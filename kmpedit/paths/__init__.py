"""
Path Topology Engine

- graph: PathGraph node arena and link/unlink/delete
- groups: conversion between group tables and graphs
- checkpoints: CheckpointGraph with paired left/right nodes
- routes: RouteGraph chains and the holder link index
"""

from .graph import NodeHandle, NodeState, PathGraph, PathNode
from .groups import (
    FlattenedPath,
    GroupBuildResult,
    build_graph_from_groups,
    flatten_graph_to_groups,
    link_indices,
)
from .checkpoints import CheckpointGraph, edge_to_position, position_to_edge
from .routes import RouteGraph, RouteSettings, build_route_graph

__all__ = [
    # Graph
    'NodeHandle',
    'NodeState',
    'PathGraph',
    'PathNode',
    # Groups
    'FlattenedPath',
    'GroupBuildResult',
    'build_graph_from_groups',
    'flatten_graph_to_groups',
    'link_indices',
    # Checkpoints
    'CheckpointGraph',
    'edge_to_position',
    'position_to_edge',
    # Routes
    'RouteGraph',
    'RouteSettings',
    'build_route_graph',
]
