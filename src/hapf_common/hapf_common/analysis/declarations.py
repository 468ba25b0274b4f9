# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Discovery of top-level ``module "<name>" { ... }`` and ``pipeline "<name>" { ... }`` forms."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .block_scanner import (
    NOT_FOUND,
    brace_delta,
    code_mask,
    find_block_end,
    find_keyword,
    skip_whitespace,
)


class DeclarationKind(Enum):
    MODULE = "module"
    PIPELINE = "pipeline"


@dataclass(frozen=True)
class Declaration:
    """A successfully delimited declaration.

    ``body_start`` and ``body_end`` are the indices of the opening and the
    matching closing brace in the analysed text.
    """

    kind: DeclarationKind
    name: str
    body_start: int
    body_end: int
    keyword_start: int
    name_start: int

    def body(self, text: str) -> str:
        return text[self.body_start + 1 : self.body_end]


def _next_keyword(
    text: str, cursor: int, mask: Sequence[bool]
) -> Optional[Tuple[int, DeclarationKind]]:
    """Return the earliest declaration keyword at or after *cursor*."""
    best: Optional[Tuple[int, DeclarationKind]] = None
    for kind in DeclarationKind:
        idx = find_keyword(text, kind.value, cursor, mask)
        if idx != NOT_FOUND and (best is None or idx < best[0]):
            best = (idx, kind)
    return best


def _parse_declaration(
    text: str, keyword_start: int, kind: DeclarationKind
) -> Optional[Declaration]:
    open_quote = skip_whitespace(text, keyword_start + len(kind.value))
    if open_quote >= len(text) or text[open_quote] != '"':
        return None

    close_quote = text.find('"', open_quote + 1)
    if close_quote == NOT_FOUND:
        return None
    name = text[open_quote + 1 : close_quote]
    if not name or "\n" in name:
        return None

    open_brace = skip_whitespace(text, close_quote + 1)
    if open_brace >= len(text) or text[open_brace] != "{":
        return None

    close_brace = find_block_end(text, open_brace)
    if close_brace == NOT_FOUND:
        return None

    return Declaration(
        kind=kind,
        name=name,
        body_start=open_brace,
        body_end=close_brace,
        keyword_start=keyword_start,
        name_start=open_quote + 1,
    )


def collect_declarations(
    text: str, mask: Optional[Sequence[bool]] = None
) -> List[Declaration]:
    """Return every well-formed top-level declaration in *text*, in document order.

    Malformed declarations (missing quotes, missing ``{``, unclosed body) are
    dropped. The cursor always moves forward, past a resolved body on success
    and past the keyword on failure, so the scan terminates on any input.
    """
    if mask is None:
        mask = code_mask(text)

    declarations: List[Declaration] = []
    cursor = 0
    while cursor < len(text):
        found = _next_keyword(text, cursor, mask)
        if found is None:
            break
        keyword_start, kind = found
        declaration = _parse_declaration(text, keyword_start, kind)
        if declaration is None:
            cursor = keyword_start + len(kind.value)
            continue
        declarations.append(declaration)
        cursor = declaration.body_end + 1
    return declarations


def find_nested_block(
    text: str,
    declaration: Declaration,
    keyword: str,
    mask: Optional[Sequence[bool]] = None,
) -> Optional[Tuple[int, int]]:
    """Return ``(open_brace, close_brace)`` of a ``<keyword>: { ... }`` block inside *declaration*.

    Only keys directly in the declaration body count, not keys of deeper
    blocks. The colon is optional. Returns None when no such block closes
    inside the declaration body.
    """
    if mask is None:
        mask = code_mask(text)

    cursor = declaration.body_start + 1
    while cursor < declaration.body_end:
        idx = find_keyword(text, keyword, cursor, mask)
        if idx == NOT_FOUND or idx >= declaration.body_end:
            return None
        cursor = idx + len(keyword)
        if brace_delta(text, declaration.body_start + 1, idx, mask) != 0:
            continue

        pos = skip_whitespace(text, cursor)
        if pos < len(text) and text[pos] == ":":
            pos = skip_whitespace(text, pos + 1)
        if pos >= declaration.body_end or text[pos] != "{":
            continue
        end = find_block_end(text, pos)
        if end != NOT_FOUND and end < declaration.body_end:
            return pos, end
    return None
