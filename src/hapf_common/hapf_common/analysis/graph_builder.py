# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Dependency-graph extraction from HAPF source text.

Module declarations become nodes; pipeline bodies contribute data edges from
two surface forms:

* functional calls, ``let out = run module(input.x, previous)``;
* arrow chains, ``ingest -> analyze -> generate`` (``→`` is accepted too).

Node ids are ``mod-<name>``, ``runtime-<name>``, ``input-<name>`` and
``inferred-<name>``; edge ids are ``e-<source>-<target>``. Adding a node or an
edge twice is a no-op, and self-referential edges are never added.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .block_scanner import NOT_FOUND, code_mask, find_matching_paren, find_word
from .declarations import (
    Declaration,
    DeclarationKind,
    collect_declarations,
    find_nested_block,
)
from .symbols import module_declarations

MODULE_PREFIX = "mod-"
RUNTIME_PREFIX = "runtime-"
INPUT_PREFIX = "input-"
INFERRED_PREFIX = "inferred-"

CALL_RE = re.compile(r"(?:\blet\s+(\w+)\s*=\s*)?\brun\s+([\w.]+)\s*\(")
ARROW_RE = re.compile(r"(?P<source>[\w.]+)\s*(?P<arrow>->|→)\s*(?=(?P<target>[\w.]+))")
INPUT_RE = re.compile(r"(?<![\w.])input\.(\w+)")


class NodeKind(Enum):
    MODULE = "module"
    RUNTIME = "runtime"
    INPUT = "input"
    INFERRED = "inferred"


class EdgeKind(Enum):
    DATA = "data"
    STRUCTURAL = "structural"


@dataclass
class Position:
    x: int = 0
    y: int = 0


@dataclass
class GraphNode:
    id: str
    kind: NodeKind
    label: str
    rank: int = 0
    position: Position = field(default_factory=Position)
    active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "rank": self.rank,
            "position": {"x": self.position.x, "y": self.position.y},
            "active": self.active,
        }


@dataclass(frozen=True)
class GraphEdge:
    id: str
    source: str
    target: str
    kind: EdgeKind = EdgeKind.DATA

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
        }


def edge_id(source: str, target: str) -> str:
    return f"e-{source}-{target}"


class DependencyGraph:
    """Insertion-ordered nodes and edges with idempotent insertion."""

    def __init__(self):
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[str, GraphEdge] = {}

    @property
    def nodes(self) -> List[GraphNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[GraphEdge]:
        return list(self._edges.values())

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._nodes.get(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.kind is kind]

    def add_node(self, node_id: str, kind: NodeKind, label: str) -> GraphNode:
        """Return the node with *node_id*, creating it first if needed."""
        node = self._nodes.get(node_id)
        if node is None:
            node = GraphNode(id=node_id, kind=kind, label=label)
            self._nodes[node_id] = node
        return node

    def add_edge(
        self, source: str, target: str, kind: EdgeKind = EdgeKind.DATA
    ) -> Optional[GraphEdge]:
        """Add an edge between two existing nodes.

        Returns None for a self-referential edge, which is never added.
        Raises KeyError when an endpoint is not a node of this graph.
        """
        for endpoint in (source, target):
            if endpoint not in self._nodes:
                raise KeyError(f"Unknown graph node '{endpoint}'")
        if source == target:
            return None
        eid = edge_id(source, target)
        edge = self._edges.get(eid)
        if edge is None:
            edge = GraphEdge(id=eid, source=source, target=target, kind=kind)
            self._edges[eid] = edge
        return edge

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_dict() for n in self._nodes.values()],
            "edges": [e.to_dict() for e in self._edges.values()],
        }


def _add_modules(
    graph: DependencyGraph, text: str, declarations: Sequence[Declaration], mask: Sequence[bool]
) -> None:
    for declaration in declarations:
        if declaration.kind is not DeclarationKind.MODULE:
            continue
        module_id = MODULE_PREFIX + declaration.name
        graph.add_node(module_id, NodeKind.MODULE, declaration.name)
        if find_nested_block(text, declaration, "runtime", mask) is not None:
            runtime_id = RUNTIME_PREFIX + declaration.name
            graph.add_node(runtime_id, NodeKind.RUNTIME, f"{declaration.name} runtime")
            graph.add_edge(module_id, runtime_id, EdgeKind.STRUCTURAL)


def _resolve_endpoint(graph: DependencyGraph, name: str, modules: Dict[str, Declaration]) -> str:
    if name in modules:
        return MODULE_PREFIX + name
    if name.startswith("input.") and len(name) > len("input."):
        input_name = name[len("input.") :]
        return graph.add_node(INPUT_PREFIX + input_name, NodeKind.INPUT, name).id
    return graph.add_node(INFERRED_PREFIX + name, NodeKind.INFERRED, name).id


def _add_call(
    graph: DependencyGraph,
    text: str,
    match: "re.Match[str]",
    body_end: int,
    modules: Dict[str, Declaration],
    bindings: Dict[str, str],
    mask: Sequence[bool],
) -> None:
    var, module = match.group(1), match.group(2)
    module_id = MODULE_PREFIX + module if module in modules else None

    args_start = match.end()
    close_paren = find_matching_paren(text, args_start - 1, body_end, mask)
    args_end = close_paren if close_paren != NOT_FOUND else body_end

    for input_match in INPUT_RE.finditer(text, args_start, args_end):
        if not mask[input_match.start()]:
            continue
        input_name = input_match.group(1)
        input_id = graph.add_node(
            INPUT_PREFIX + input_name, NodeKind.INPUT, f"input.{input_name}"
        ).id
        if module_id is not None:
            graph.add_edge(input_id, module_id)

    # previous bindings only; the call's own binding takes effect afterwards
    if module_id is not None:
        for name, producer in bindings.items():
            if find_word(text, name, args_start, args_end, mask) != NOT_FOUND:
                graph.add_edge(producer, module_id)

    if var:
        if module_id is not None:
            bindings[var] = module_id
        else:
            bindings.pop(var, None)


def _add_arrow(
    graph: DependencyGraph, match: "re.Match[str]", modules: Dict[str, Declaration]
) -> None:
    source_id = _resolve_endpoint(graph, match.group("source"), modules)
    target_id = _resolve_endpoint(graph, match.group("target"), modules)
    graph.add_edge(source_id, target_id)


def _add_pipeline(
    graph: DependencyGraph,
    text: str,
    pipeline: Declaration,
    modules: Dict[str, Declaration],
    mask: Sequence[bool],
) -> None:
    start, end = pipeline.body_start + 1, pipeline.body_end
    forms: List[Tuple[int, str, "re.Match[str]"]] = []
    for match in CALL_RE.finditer(text, start, end):
        if mask[match.start()]:
            forms.append((match.start(), "call", match))
    for match in ARROW_RE.finditer(text, start, end):
        if mask[match.start("source")] and mask[match.start("arrow")]:
            forms.append((match.start("arrow"), "arrow", match))
    forms.sort(key=lambda f: f[0])

    bindings: Dict[str, str] = {}
    for _, form, match in forms:
        if form == "call":
            _add_call(graph, text, match, end, modules, bindings, mask)
        else:
            _add_arrow(graph, match, modules)


def _mark_active(graph: DependencyGraph, hint: str) -> None:
    candidates = {hint, MODULE_PREFIX + hint}
    if hint.startswith(MODULE_PREFIX):
        candidates.add(hint[len(MODULE_PREFIX) :])
    for node in graph.nodes:
        if node.id in candidates or (node.kind is NodeKind.MODULE and node.label in candidates):
            node.active = True


def build_graph(
    text: str,
    declarations: Optional[Sequence[Declaration]] = None,
    active_module_hint: Optional[str] = None,
    mask: Optional[Sequence[bool]] = None,
) -> DependencyGraph:
    """Extract the dependency graph of *text*. Positions are left at the origin.

    Parameters
    ----------
    text:
        Raw, possibly malformed document text.
    declarations:
        Pre-collected declarations; collected from *text* when omitted.
    active_module_hint:
        Name or ``mod-`` id of the module currently executing; the matching
        node is flagged ``active``.
    """
    if mask is None:
        mask = code_mask(text)
    if declarations is None:
        declarations = collect_declarations(text, mask)

    graph = DependencyGraph()
    modules = module_declarations(declarations)
    _add_modules(graph, text, declarations, mask)
    for declaration in declarations:
        if declaration.kind is DeclarationKind.PIPELINE:
            _add_pipeline(graph, text, declaration, modules, mask)
    if active_module_hint:
        _mark_active(graph, active_module_hint)
    return graph
