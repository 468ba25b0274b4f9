# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""``hapf graph``: print or export the dependency graph of a document."""

import argparse
import json
from typing import List

import yaml
from rich.console import Console
from rich.table import Table
from rich.text import Text

from hapf_common.analysis import (
    DependencyGraph,
    EdgeKind,
    NodeKind,
    build_document_graph,
    detect_cycle,
    levels,
)
from hapf_core.cli.config import HapfConfig
from hapf_core.cli.errors import show_error

console = Console()

_DOT_SHAPES = {
    NodeKind.MODULE: "box",
    NodeKind.RUNTIME: "component",
    NodeKind.INPUT: "ellipse",
    NodeKind.INFERRED: "box",
}


def add_graph_parser(subparsers: "argparse._SubParsersAction") -> argparse.ArgumentParser:
    graph_parser = subparsers.add_parser(
        "graph",
        help="Show the dependency graph of a document",
        description=(
            "Extract modules, inputs and data-flow edges from a HAPF document "
            "and print them with their layered layout."
        ),
    )
    graph_parser.add_argument("path", help="Path to a HAPF document")
    graph_parser.add_argument(
        "--format",
        choices=["table", "json", "yaml", "dot"],
        default="table",
        help="Output format (default: table)",
    )
    graph_parser.add_argument(
        "--passes",
        type=int,
        default=None,
        help="Rank relaxation passes (default: HAPF_LAYOUT_PASSES, else one per node)",
    )
    graph_parser.add_argument(
        "--active",
        default=None,
        metavar="MODULE",
        help="Flag the node of MODULE as active",
    )
    return graph_parser


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_dot(graph: DependencyGraph) -> str:
    """Render *graph* in Graphviz DOT, one rank per column."""
    lines: List[str] = ["digraph hapf {", "  rankdir=LR;"]
    for node in graph.nodes:
        attrs = [f"label={_quote(node.label)}", f"shape={_DOT_SHAPES[node.kind]}"]
        if node.kind in (NodeKind.INPUT, NodeKind.INFERRED):
            attrs.append("style=dashed")
        if node.active:
            attrs.append("penwidth=2")
        lines.append(f"  {_quote(node.id)} [{', '.join(attrs)}];")
    for edge in graph.edges:
        style = " [style=dotted, arrowhead=none]" if edge.kind is EdgeKind.STRUCTURAL else ""
        lines.append(f"  {_quote(edge.source)} -> {_quote(edge.target)}{style};")
    for level in levels(graph):
        ids = " ".join(_quote(n.id) for n in level)
        lines.append(f"  {{ rank=same; {ids} }}")
    lines.append("}")
    return "\n".join(lines)


def print_graph_table(graph: DependencyGraph):
    nodes = Table(title="Nodes")
    nodes.add_column("Rank", style="magenta")
    nodes.add_column("Id", style="cyan")
    nodes.add_column("Kind")
    nodes.add_column("Position")
    nodes.add_column("Active", style="green")
    for level in levels(graph):
        for node in level:
            nodes.add_row(
                str(node.rank),
                Text(node.id),
                node.kind.value,
                f"({node.position.x}, {node.position.y})",
                "●" if node.active else "",
            )
    console.print(nodes)

    if not graph.edges:
        console.print("[dim]No edges.[/dim]")
        return
    edges = Table(title="Edges")
    edges.add_column("Source", style="cyan")
    edges.add_column("Target", style="cyan")
    edges.add_column("Kind")
    for edge in graph.edges:
        edges.add_row(Text(edge.source), Text(edge.target), edge.kind.value)
    console.print(edges)


def cmd_graph(args: argparse.Namespace, config: HapfConfig) -> int:
    """Execute the graph command."""
    if args.passes is not None and args.passes < 1:
        console.print("[red]Error: --passes must be >= 1[/red]")
        return 1
    try:
        with open(args.path, "rb") as f:
            text = f.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        show_error(f"Cannot read {args.path}", str(e))
        return 1

    passes = args.passes if args.passes is not None else config.layout_passes
    graph = build_document_graph(
        text,
        active_module_hint=args.active,
        passes=passes,
        spacing=config.layout_spacing(),
    )

    if args.format == "json":
        console.print(
            json.dumps(graph.to_dict(), indent=2, ensure_ascii=False),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
    elif args.format == "yaml":
        console.print(
            yaml.safe_dump(graph.to_dict(), sort_keys=False, allow_unicode=True),
            markup=False,
            highlight=False,
            soft_wrap=True,
            end="",
        )
    elif args.format == "dot":
        console.print(to_dot(graph), markup=False, highlight=False, soft_wrap=True)
    else:
        print_graph_table(graph)
        cycle = detect_cycle(
            [n.id for n in graph.nodes], [(e.source, e.target) for e in graph.edges]
        )
        if cycle:
            console.print(
                Text(f"Warning: dependency cycle {' → '.join(cycle + cycle[:1])}", style="yellow"),
                soft_wrap=True,
            )
    return 0
