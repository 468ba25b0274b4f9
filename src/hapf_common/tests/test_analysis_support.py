# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Unit tests for hapf_common.analysis leaf modules:
   cycle_detector, line_tracker, suggestions, diagnostics.
"""

import pytest

from hapf_common.analysis.cycle_detector import detect_cycle
from hapf_common.analysis.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    Severity,
    errors,
    sort_diagnostics,
    warnings,
)
from hapf_common.analysis.line_tracker import LineIndex
from hapf_common.analysis.suggestions import suggest


# ---------------------------------------------------------------------------
# detect_cycle
# ---------------------------------------------------------------------------


class TestCycleDetector:
    def _is_cycle(self, path, edges):
        pairs = set(edges)
        closed = path + path[:1]
        return all((a, b) in pairs for a, b in zip(closed, closed[1:]))

    def test_no_cycle_linear(self):
        assert detect_cycle(["A", "B", "C"], [("A", "B"), ("B", "C")]) is None

    def test_simple_three_node_cycle(self):
        edges = [("A", "B"), ("B", "C"), ("C", "A")]
        cycle = detect_cycle(["A", "B", "C"], edges)
        assert cycle is not None
        assert sorted(cycle) == ["A", "B", "C"]
        assert self._is_cycle(cycle, edges)

    def test_self_loop(self):
        assert detect_cycle(["A", "B"], [("A", "A"), ("A", "B")]) == ["A"]

    def test_two_node_cycle(self):
        edges = [("A", "B"), ("B", "A")]
        cycle = detect_cycle(["A", "B"], edges)
        assert cycle is not None
        assert self._is_cycle(cycle, edges)

    def test_empty_graph(self):
        assert detect_cycle([], []) is None

    def test_cycle_in_subgraph(self):
        edges = [("A", "B"), ("B", "C"), ("D", "E"), ("E", "D")]
        cycle = detect_cycle(["A", "B", "C", "D", "E"], edges)
        assert cycle is not None
        assert set(cycle) == {"D", "E"}

    def test_diamond_is_not_a_cycle(self):
        edges = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]
        assert detect_cycle(["A", "B", "C", "D"], edges) is None

    def test_unknown_endpoints_ignored(self):
        assert detect_cycle(["A"], [("A", "Z"), ("Z", "A")]) is None


# ---------------------------------------------------------------------------
# LineIndex
# ---------------------------------------------------------------------------


class TestLineIndex:
    TEXT = "ab\ncde\n\nf"

    def test_line_count(self):
        assert LineIndex(self.TEXT).line_count == 4
        assert LineIndex("").line_count == 1

    def test_position_is_one_based(self):
        index = LineIndex(self.TEXT)
        assert index.position(0) == (1, 1)
        assert index.position(3) == (2, 1)
        assert index.position(5) == (2, 3)
        assert index.position(8) == (4, 1)

    def test_position_is_clamped(self):
        index = LineIndex(self.TEXT)
        assert index.position(-5) == (1, 1)
        assert index.position(1000) == (4, 2)

    def test_line_text_excludes_newline(self):
        index = LineIndex(self.TEXT)
        assert index.line_text(2) == "cde"
        assert index.line_text(3) == ""

    def test_span(self):
        index = LineIndex(self.TEXT)
        assert index.span(3, 6) == (2, 1, 2, 4)

    def test_lines_are_clipped_to_range(self):
        index = LineIndex(self.TEXT)
        assert list(index.lines(1, 5)) == [(1, 1, 2), (2, 3, 5)]


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------


class TestSuggestions:
    def test_close_match(self):
        assert suggest("io.write_fil", ["io.write_file", "summarize"]) == "'io.write_file'"

    def test_no_match(self):
        assert suggest("zzz", ["io.write_file", "io.read_fs"]) is None

    def test_empty_ref(self):
        assert suggest("", ["a"]) is None

    def test_duplicates_collapsed(self):
        assert suggest("summarise", ["summarize", "summarize"]) == "'summarize'"

    def test_limit(self):
        result = suggest("stage", ["stage1", "stage2", "stage3", "stage4"], n=2)
        assert result is not None
        assert result.count("'") == 4


# ---------------------------------------------------------------------------
# Diagnostic
# ---------------------------------------------------------------------------


def _diag(line, col, severity=Severity.ERROR, code=DiagnosticCode.UNDEFINED_MODULE, suggestion=None):
    return Diagnostic(line, col, line, col + 3, "boom", severity, code, suggestion)


class TestDiagnostic:
    def test_marker(self):
        marker = _diag(2, 5).to_marker()
        assert marker == {
            "startLineNumber": 2,
            "startColumn": 5,
            "endLineNumber": 2,
            "endColumn": 8,
            "message": "boom",
            "severity": 8,
        }
        assert _diag(1, 1, Severity.WARNING).to_marker()["severity"] == 4

    def test_str_includes_suggestion(self):
        assert str(_diag(3, 4, suggestion="'x'")) == "3:4: error: boom Did you mean 'x'?"

    def test_sorted_by_position(self):
        ordered = sort_diagnostics([_diag(3, 1), _diag(1, 9), _diag(1, 2)])
        assert [(d.start_line, d.start_col) for d in ordered] == [(1, 2), (1, 9), (3, 1)]

    @pytest.mark.parametrize("severity", [Severity.ERROR, Severity.WARNING])
    def test_partition(self, severity):
        diagnostics = [_diag(1, 1, severity)]
        if severity is Severity.ERROR:
            assert errors(diagnostics) == diagnostics and warnings(diagnostics) == []
        else:
            assert warnings(diagnostics) == diagnostics and errors(diagnostics) == []
