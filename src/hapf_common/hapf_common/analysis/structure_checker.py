# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Lightweight structural checks that do not need scope information."""

import re
from typing import List, Optional, Sequence, Set, Tuple

from .block_scanner import brace_delta, code_mask
from .declarations import Declaration, DeclarationKind, collect_declarations
from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .line_tracker import LineIndex

_DECLARATION_LINE_RE = re.compile(r"^\s*(module|pipeline)\b")


def _missing_quoted_names(
    index: LineIndex, mask: Sequence[bool]
) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    for line in range(1, index.line_count + 1):
        line_text = index.line_text(line)
        match = _DECLARATION_LINE_RE.match(line_text)
        if not match or not mask[index.line_start(line) + match.start(1)]:
            continue
        if '"' in line_text:
            continue
        keyword = match.group(1)
        diagnostics.append(
            Diagnostic(
                start_line=line,
                start_col=1,
                end_line=line,
                end_col=len(line_text) + 1,
                message=(
                    f"{keyword.capitalize()} definition requires a name in quotes: "
                    f'{keyword} "name" {{'
                ),
                severity=Severity.ERROR,
                code=DiagnosticCode.MISSING_QUOTED_NAME,
            )
        )
    return diagnostics


def _unbalanced_braces(
    text: str, index: LineIndex, mask: Sequence[bool]
) -> Optional[Diagnostic]:
    balance = brace_delta(text, 0, len(text), mask)
    if balance == 0:
        return None
    last_line = index.line_count
    return Diagnostic(
        start_line=last_line,
        start_col=1,
        end_line=last_line,
        end_col=1,
        message="Missing closing brace '}'" if balance > 0 else "Unexpected extra '}'",
        severity=Severity.ERROR,
        code=DiagnosticCode.UNBALANCED_BRACES,
    )


def _duplicate_declarations(
    declarations: Sequence[Declaration], index: LineIndex
) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    seen: Set[Tuple[DeclarationKind, str]] = set()
    for declaration in declarations:
        key = (declaration.kind, declaration.name)
        if key in seen:
            start_line, start_col, end_line, end_col = index.span(
                declaration.name_start, declaration.name_start + len(declaration.name)
            )
            diagnostics.append(
                Diagnostic(
                    start_line=start_line,
                    start_col=start_col,
                    end_line=end_line,
                    end_col=end_col,
                    message=(
                        f"Duplicate {declaration.kind.value} '{declaration.name}'; "
                        "the last definition is used."
                    ),
                    severity=Severity.WARNING,
                    code=DiagnosticCode.DUPLICATE_DECLARATION,
                )
            )
        seen.add(key)
    return diagnostics


def check_structure(
    text: str,
    declarations: Optional[Sequence[Declaration]] = None,
    mask: Optional[Sequence[bool]] = None,
    index: Optional[LineIndex] = None,
) -> List[Diagnostic]:
    """Report unbalanced braces, unquoted declaration names and duplicate declarations."""
    if mask is None:
        mask = code_mask(text)
    if index is None:
        index = LineIndex(text)
    if declarations is None:
        declarations = collect_declarations(text, mask)

    diagnostics = _missing_quoted_names(index, mask)
    braces = _unbalanced_braces(text, index, mask)
    if braces is not None:
        diagnostics.append(braces)
    diagnostics.extend(_duplicate_declarations(declarations, index))
    return diagnostics
