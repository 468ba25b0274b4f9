# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""HAPF document analysis, shared between the CLI and the server.

Public API
----------
analyze                 Run every pass and return diagnostics plus a laid-out graph.
check_document          Structural and semantic diagnostics, sorted by position.
build_document_graph    Dependency graph with ranks and positions assigned.
collect_declarations    Find top-level module and pipeline declarations.
find_block_end          Match a ``{`` to its ``}``, ignoring strings and comments.
build_symbol_table      Built-in I/O modules plus every declared module name.
check_structure         Unbalanced braces, unquoted names, duplicate declarations.
check_semantics         Undefined modules and variables, unused bindings.
build_graph             Extract nodes and edges without layout.
layout_graph            Assign ranks and positions by bounded relaxation.
detect_cycle            Detect graph cycles and return the offending path.
runtime_failure_diagnostics  Mark lines calling a module that crashed in a simulation.
run_metrics             Latency, token counts and estimated cost of a simulated run.
suggest                 Return edit-distance suggestions for a misspelled reference.
"""

from .analyzer import AnalysisResult, analyze, build_document_graph, check_document
from .block_scanner import NOT_FOUND, code_mask, find_block_end
from .cycle_detector import detect_cycle
from .declarations import (
    Declaration,
    DeclarationKind,
    collect_declarations,
    find_nested_block,
)
from .diagnostics import Diagnostic, DiagnosticCode, Severity, sort_diagnostics
from .graph_builder import (
    DependencyGraph,
    EdgeKind,
    GraphEdge,
    GraphNode,
    NodeKind,
    Position,
    build_graph,
)
from .layout import LayoutSpacing, assign_ranks, layout_graph, levels
from .line_tracker import LineIndex
from .semantic_checker import check_semantics
from .simulation import (
    RunMetrics,
    SimulationResult,
    SimulationService,
    SimulationStep,
    TokenUsage,
    active_module_hints,
    run_metrics,
    runtime_failure_diagnostics,
)
from .structure_checker import check_structure
from .suggestions import suggest
from .symbols import BUILTIN_MODULES, build_symbol_table, module_declarations

__all__ = [
    "AnalysisResult",
    "analyze",
    "build_document_graph",
    "check_document",
    "NOT_FOUND",
    "code_mask",
    "find_block_end",
    "detect_cycle",
    "Declaration",
    "DeclarationKind",
    "collect_declarations",
    "find_nested_block",
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "sort_diagnostics",
    "DependencyGraph",
    "EdgeKind",
    "GraphEdge",
    "GraphNode",
    "NodeKind",
    "Position",
    "build_graph",
    "LayoutSpacing",
    "assign_ranks",
    "layout_graph",
    "levels",
    "LineIndex",
    "check_semantics",
    "RunMetrics",
    "SimulationResult",
    "SimulationService",
    "SimulationStep",
    "TokenUsage",
    "active_module_hints",
    "run_metrics",
    "runtime_failure_diagnostics",
    "check_structure",
    "suggest",
    "BUILTIN_MODULES",
    "build_symbol_table",
    "module_declarations",
]
