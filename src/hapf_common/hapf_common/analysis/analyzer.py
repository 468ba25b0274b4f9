# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""One-call entry points combining the checkers, the graph builder and the layout."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .block_scanner import code_mask
from .declarations import collect_declarations
from .diagnostics import Diagnostic, sort_diagnostics
from .diagnostics import errors as error_diagnostics
from .diagnostics import warnings as warning_diagnostics
from .graph_builder import DependencyGraph, build_graph
from .layout import LayoutSpacing, layout_graph
from .line_tracker import LineIndex
from .semantic_checker import check_semantics
from .structure_checker import check_structure
from .symbols import build_symbol_table

LOGGER = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    diagnostics: List[Diagnostic] = field(default_factory=list)
    graph: DependencyGraph = field(default_factory=DependencyGraph)

    @property
    def has_errors(self) -> bool:
        return bool(error_diagnostics(self.diagnostics))

    @property
    def errors(self) -> List[Diagnostic]:
        return error_diagnostics(self.diagnostics)

    @property
    def warnings(self) -> List[Diagnostic]:
        return warning_diagnostics(self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "graph": self.graph.to_dict(),
        }


def check_document(text: str) -> List[Diagnostic]:
    """Return the structural and semantic diagnostics of *text*, sorted by position."""
    mask = code_mask(text)
    index = LineIndex(text)
    declarations = collect_declarations(text, mask)
    symbols = build_symbol_table(declarations)

    diagnostics = check_structure(text, declarations, mask, index)
    diagnostics.extend(check_semantics(text, declarations, symbols, mask, index))
    LOGGER.debug(
        f"Checked document: {len(declarations)} declaration(s), "
        f"{len(diagnostics)} diagnostic(s)"
    )
    return sort_diagnostics(diagnostics)


def build_document_graph(
    text: str,
    active_module_hint: Optional[str] = None,
    passes: Optional[int] = None,
    spacing: Optional[LayoutSpacing] = None,
) -> DependencyGraph:
    """Return the laid-out dependency graph of *text*."""
    graph = build_graph(text, active_module_hint=active_module_hint)
    layout_graph(graph, passes=passes, spacing=spacing)
    LOGGER.debug(f"Built graph: {len(graph.nodes)} node(s), {len(graph.edges)} edge(s)")
    return graph


def analyze(
    text: str,
    active_module_hint: Optional[str] = None,
    passes: Optional[int] = None,
    spacing: Optional[LayoutSpacing] = None,
) -> AnalysisResult:
    """Run every pass over *text*. The result depends only on the arguments."""
    return AnalysisResult(
        diagnostics=check_document(text),
        graph=build_document_graph(text, active_module_hint, passes, spacing),
    )
