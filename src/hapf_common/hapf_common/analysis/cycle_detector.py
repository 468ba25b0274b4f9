# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Cycle detection for dependency graphs.

Rank relaxation in :mod:`.layout` never reaches a fixed point on a cycle; this
module reports the offending path so the layout can say why.
"""

from typing import Dict, Iterable, List, Optional, Tuple


def detect_cycle(
    node_ids: Iterable[str],
    edges: Iterable[Tuple[str, str]],
) -> Optional[List[str]]:
    """Return an ordered list of node ids forming a cycle, or ``None``.

    Parameters
    ----------
    node_ids:
        All node ids in the graph, in a stable order.
    edges:
        ``(source, target)`` pairs. Pairs referencing unknown ids are ignored.
    """
    order = list(dict.fromkeys(node_ids))
    graph: Dict[str, List[str]] = {n: [] for n in order}
    for src, dst in edges:
        if src in graph and dst in graph:
            graph[src].append(dst)

    WHITE, GRAY, BLACK = 0, 1, 2
    color: Dict[str, int] = {n: WHITE for n in order}
    parent: Dict[str, Optional[str]] = {n: None for n in order}

    for root in order:
        if color[root] != WHITE:
            continue
        color[root] = GRAY
        stack: List[Tuple[str, int]] = [(root, 0)]
        while stack:
            node, next_child = stack[-1]
            if next_child >= len(graph[node]):
                color[node] = BLACK
                stack.pop()
                continue
            stack[-1] = (node, next_child + 1)
            nbr = graph[node][next_child]
            if color[nbr] == GRAY:
                # Walk parents back to nbr to recover the cycle
                cycle = [nbr]
                cur: Optional[str] = node
                while cur is not None and cur != nbr:
                    cycle.append(cur)
                    cur = parent[cur]
                cycle.reverse()
                return cycle
            if color[nbr] == WHITE:
                parent[nbr] = node
                color[nbr] = GRAY
                stack.append((nbr, 0))
    return None
