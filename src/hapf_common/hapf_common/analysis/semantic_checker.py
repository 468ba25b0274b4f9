# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Scope-tracked checks over pipeline bodies.

Each pipeline is walked line by line with a fresh scope seeded with ``input``.
A ``let`` binding is visible from its own line on; ``run <module>(...)`` calls
are resolved against the symbol table and their arguments against the scope.
"""

import logging
import re
from typing import AbstractSet, List, Optional, Sequence, Set, Tuple

from .block_scanner import (
    NOT_FOUND,
    brace_delta,
    code_mask,
    find_matching_paren,
    find_word,
    is_unescaped_quote,
)
from .declarations import Declaration, DeclarationKind, collect_declarations
from .diagnostics import Diagnostic, DiagnosticCode, Severity
from .line_tracker import LineIndex
from .suggestions import suggest
from .symbols import build_symbol_table

LOGGER = logging.getLogger(__name__)

LET_RE = re.compile(r"\blet\s+([A-Za-z_]\w*)\s*=")
RUN_RE = re.compile(r"\brun\s+([A-Za-z0-9_.]+)\s*\(")
TOKEN_RE = re.compile(r"(?<!\w)[A-Za-z_][\w.]*")
NUMBER_RE = re.compile(r"\d+(\.\d+)?([eE][+-]?\d+)?")

LITERAL_ROOTS = frozenset({"true", "false", "null", "input"})


def _inside_string(text: str, line_start: int, offset: int) -> bool:
    quotes = sum(1 for i in range(line_start, offset) if is_unescaped_quote(text, i))
    return quotes % 2 == 1


def _is_numeric(root: str) -> bool:
    # decimal literals only; identifiers such as nan or inf stay references
    return NUMBER_RE.fullmatch(root) is not None


def _is_excluded(text: str, token_start: int, token: str, line_start: int) -> bool:
    """Apply the token exclusion rules in order: object key, string, literal, number."""
    token_end = token_start + len(token)
    if token_end < len(text) and text[token_end] == ":":
        return True
    if _inside_string(text, line_start, token_start):
        return True
    root = token.split(".", 1)[0]
    if root in LITERAL_ROOTS:
        return True
    return _is_numeric(root)


def _diagnostic(
    index: LineIndex,
    start: int,
    end: int,
    message: str,
    severity: Severity,
    code: DiagnosticCode,
    suggestion: Optional[str] = None,
) -> Diagnostic:
    start_line, start_col, end_line, end_col = index.span(start, end)
    return Diagnostic(
        start_line=start_line,
        start_col=start_col,
        end_line=end_line,
        end_col=end_col,
        message=message,
        severity=severity,
        code=code,
        suggestion=suggestion,
    )


def _check_arguments(
    text: str,
    open_paren: int,
    close_paren: int,
    line_start: int,
    scope: AbstractSet[str],
    index: LineIndex,
) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    args_start = open_paren + 1
    for match in TOKEN_RE.finditer(text[args_start:close_paren]):
        token = match.group(0)
        token_start = args_start + match.start()
        if _is_excluded(text, token_start, token, line_start):
            continue
        root = token.split(".", 1)[0]
        if root in scope:
            continue
        diagnostics.append(
            _diagnostic(
                index,
                token_start,
                token_start + len(token),
                f"Undefined variable '{root}'.",
                Severity.ERROR,
                DiagnosticCode.UNDEFINED_VARIABLE,
                suggest(root, scope),
            )
        )
    return diagnostics


def _is_used(
    text: str,
    name: str,
    name_start: int,
    end: int,
    mask: Sequence[bool],
    targets: AbstractSet[int],
) -> bool:
    """True when *name* is referenced in ``(name_start, end)``, rebinding targets aside."""
    cursor = name_start + len(name)
    while True:
        found = find_word(text, name, cursor, end, mask)
        if found == NOT_FOUND:
            return False
        if found not in targets:
            return True
        cursor = found + len(name)


def _check_pipeline(
    text: str,
    pipeline: Declaration,
    symbols: AbstractSet[str],
    mask: Sequence[bool],
    index: LineIndex,
) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    scope: Set[str] = {"input"}
    bindings: List[Tuple[str, int]] = []
    depth = 0

    for line, seg_start, seg_end in index.lines(pipeline.body_start + 1, pipeline.body_end):
        depth += brace_delta(text, seg_start, seg_end, mask)
        if depth < 0:
            break

        segment = text[seg_start:seg_end]
        for match in LET_RE.finditer(segment):
            if not mask[seg_start + match.start()]:
                continue
            scope.add(match.group(1))
            bindings.append((match.group(1), seg_start + match.start(1)))

        line_start = index.line_start(line)
        for match in RUN_RE.finditer(segment):
            if not mask[seg_start + match.start()]:
                continue
            module = match.group(1)
            name_start = seg_start + match.start(1)
            if module not in symbols:
                diagnostics.append(
                    _diagnostic(
                        index,
                        name_start,
                        name_start + len(module),
                        f"Undefined module '{module}'. "
                        f"Ensure it is defined with 'module \"{module}\"'.",
                        Severity.ERROR,
                        DiagnosticCode.UNDEFINED_MODULE,
                        suggest(module, symbols),
                    )
                )

            open_paren = seg_start + match.end() - 1
            # arguments are only checked when the call closes on the same line
            close_paren = find_matching_paren(text, open_paren, seg_end, mask)
            if close_paren == NOT_FOUND:
                continue
            diagnostics.extend(
                _check_arguments(text, open_paren, close_paren, line_start, scope, index)
            )

    targets = {name_start for _, name_start in bindings}
    for i, (name, name_start) in enumerate(bindings):
        # uses stop at the next rebinding; that line's arguments still read the old value
        end = pipeline.body_end
        for other, other_start in bindings[i + 1 :]:
            if other == name:
                end = min(index.line_end(index.position(other_start)[0]), end)
                break
        if not _is_used(text, name, name_start, end, mask, targets):
            diagnostics.append(
                _diagnostic(
                    index,
                    name_start,
                    name_start + len(name),
                    f"Variable '{name}' is assigned but never used.",
                    Severity.WARNING,
                    DiagnosticCode.UNUSED_VARIABLE,
                )
            )
    return diagnostics


def check_semantics(
    text: str,
    declarations: Optional[Sequence[Declaration]] = None,
    symbols: Optional[AbstractSet[str]] = None,
    mask: Optional[Sequence[bool]] = None,
    index: Optional[LineIndex] = None,
) -> List[Diagnostic]:
    """Resolve module and variable references inside every pipeline body.

    Never raises on malformed text: pipelines whose bodies cannot be delimited
    are absent from *declarations* and therefore unchecked.
    """
    if mask is None:
        mask = code_mask(text)
    if index is None:
        index = LineIndex(text)
    if declarations is None:
        declarations = collect_declarations(text, mask)
    if symbols is None:
        symbols = build_symbol_table(declarations)

    diagnostics: List[Diagnostic] = []
    for declaration in declarations:
        if declaration.kind is not DeclarationKind.PIPELINE:
            continue
        found = _check_pipeline(text, declaration, symbols, mask, index)
        LOGGER.debug(f"Pipeline '{declaration.name}': {len(found)} semantic issue(s)")
        diagnostics.extend(found)
    return diagnostics
