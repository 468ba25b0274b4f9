# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Layered layout by bounded longest-path rank relaxation."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .cycle_detector import detect_cycle
from .graph_builder import DependencyGraph, GraphEdge, GraphNode, Position

LOGGER = logging.getLogger(__name__)

REFERENCE_PASSES = 5


@dataclass(frozen=True)
class LayoutSpacing:
    origin: int = 50
    level_width: int = 280
    level_height: int = 120


def assign_ranks(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    passes: Optional[int] = None,
) -> Dict[str, int]:
    """Return a rank per node id.

    Every rank starts at 0; each pass applies ``rank(target) = max(rank(target),
    rank(source) + 1)`` over all edges in order. ``passes=None`` runs one pass per
    node, enough for a fixed point on any acyclic graph. Relaxation stops early
    once a pass changes nothing.
    """
    ranks: Dict[str, int] = {n.id: 0 for n in nodes}
    if passes is None:
        passes = len(ranks)
    for _ in range(max(passes, 0)):
        changed = False
        for edge in edges:
            source_rank = ranks.get(edge.source, 0)
            if source_rank + 1 > ranks.get(edge.target, 0):
                ranks[edge.target] = source_rank + 1
                changed = True
        if not changed:
            break
    return ranks


def layout_graph(
    graph: DependencyGraph,
    passes: Optional[int] = None,
    spacing: Optional[LayoutSpacing] = None,
) -> DependencyGraph:
    """Assign ranks and positions to every node of *graph* in place and return it.

    Nodes sharing a rank are stacked top to bottom in insertion order.
    """
    spacing = spacing or LayoutSpacing()
    nodes, edges = graph.nodes, graph.edges

    cycle = detect_cycle([n.id for n in nodes], [(e.source, e.target) for e in edges])
    if cycle is not None:
        LOGGER.warning(
            f"Dependency cycle detected: {' -> '.join(cycle + cycle[:1])}. "
            "Ranks on the cycle are bounded by the relaxation pass count."
        )

    ranks = assign_ranks(nodes, edges, passes)
    level_counts: Dict[int, int] = {}
    for node in nodes:
        rank = ranks[node.id]
        index = level_counts.get(rank, 0)
        level_counts[rank] = index + 1
        node.rank = rank
        node.position = Position(
            x=spacing.origin + rank * spacing.level_width,
            y=spacing.origin + index * spacing.level_height,
        )
    return graph


def levels(graph: DependencyGraph) -> List[List[GraphNode]]:
    """Group nodes by rank, lowest first, preserving insertion order within a level."""
    grouped: Dict[int, List[GraphNode]] = {}
    for node in graph.nodes:
        grouped.setdefault(node.rank, []).append(node)
    return [grouped[rank] for rank in sorted(grouped)]
