# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""String- and comment-aware brace matching for HAPF source text.

Every collector in this package finds blocks through :func:`find_block_end`
and classifies characters through :func:`code_mask`, so the escaping rules for
``"`` and the ``#`` comment rule live in exactly one place.
"""

from typing import Final, List, Optional, Sequence

NOT_FOUND: Final[int] = -1


def is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _is_escaped(text: str, index: int) -> bool:
    """Return True if ``text[index]`` follows an odd run of backslashes."""
    backslashes = 0
    i = index - 1
    while i >= 0 and text[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 1


def is_unescaped_quote(text: str, index: int) -> bool:
    return text[index] == '"' and not _is_escaped(text, index)


def find_block_end(text: str, open_brace_index: int) -> int:
    """Return the index of the ``}`` matching the ``{`` at *open_brace_index*.

    Characters inside double-quoted strings and ``#`` comments are opaque.
    Returns :data:`NOT_FOUND` when the block is never closed or when
    *open_brace_index* does not point at a ``{``.
    """
    if not 0 <= open_brace_index < len(text) or text[open_brace_index] != "{":
        return NOT_FOUND

    depth = 1
    in_string = False
    in_comment = False
    for i in range(open_brace_index + 1, len(text)):
        ch = text[i]
        if in_comment:
            if ch == "\n":
                in_comment = False
            continue
        if ch == '"' and not _is_escaped(text, i):
            in_string = not in_string
        elif in_string:
            continue
        elif ch == "#":
            in_comment = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return NOT_FOUND


def code_mask(text: str) -> List[bool]:
    """Return one flag per character: True for code, False inside strings or comments.

    Quote characters delimiting a string are themselves marked False.
    """
    mask = [True] * len(text)
    in_string = False
    in_comment = False
    for i, ch in enumerate(text):
        if in_comment:
            if ch == "\n":
                in_comment = False
            else:
                mask[i] = False
        elif in_string:
            mask[i] = False
            if ch == '"' and not _is_escaped(text, i):
                in_string = False
        elif ch == '"' and not _is_escaped(text, i):
            in_string = True
            mask[i] = False
        elif ch == "#":
            in_comment = True
            mask[i] = False
    return mask


def brace_delta(text: str, start: int, end: int, mask: Sequence[bool]) -> int:
    """Return ``{`` count minus ``}`` count over ``text[start:end]``, code only."""
    delta = 0
    for i in range(max(start, 0), min(end, len(text))):
        if not mask[i]:
            continue
        if text[i] == "{":
            delta += 1
        elif text[i] == "}":
            delta -= 1
    return delta


def find_keyword(
    text: str,
    keyword: str,
    start: int = 0,
    mask: Optional[Sequence[bool]] = None,
) -> int:
    """Return the index of the next standalone *keyword* at or after *start*.

    A match is rejected when it is glued to a longer identifier on either side
    (``mymodule``, ``modules``) or, when *mask* is given, when it sits inside a
    string or comment.
    """
    idx = text.find(keyword, start)
    while idx != NOT_FOUND:
        end = idx + len(keyword)
        glued_before = idx > 0 and is_identifier_char(text[idx - 1])
        glued_after = end < len(text) and is_identifier_char(text[end])
        in_code = mask is None or mask[idx]
        if not glued_before and not glued_after and in_code:
            return idx
        idx = text.find(keyword, idx + 1)
    return NOT_FOUND


def skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index].isspace():
        index += 1
    return index


def find_word(
    text: str,
    word: str,
    start: int = 0,
    end: Optional[int] = None,
    mask: Optional[Sequence[bool]] = None,
) -> int:
    """Return the index of *word* as a whole reference in ``text[start:end]``.

    A match glued to an identifier character, or to a preceding ``.`` (a member
    access such as ``input.word``), is rejected. A following ``.`` is allowed so
    ``word.field`` counts as a reference to *word*.
    """
    if not word:
        return NOT_FOUND
    if end is None:
        end = len(text)
    idx = text.find(word, start, end)
    while idx != NOT_FOUND:
        after = idx + len(word)
        glued_before = idx > 0 and (is_identifier_char(text[idx - 1]) or text[idx - 1] == ".")
        glued_after = after < len(text) and is_identifier_char(text[after])
        in_code = mask is None or mask[idx]
        if not glued_before and not glued_after and in_code:
            return idx
        idx = text.find(word, idx + 1, end)
    return NOT_FOUND


def find_matching_paren(
    text: str, open_paren: int, limit: int, mask: Sequence[bool]
) -> int:
    """Return the ``)`` closing the ``(`` at *open_paren*, searching before *limit*.

    Parentheses inside strings and comments are ignored.
    """
    depth = 0
    for i in range(open_paren, min(limit, len(text))):
        if not mask[i]:
            continue
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    return NOT_FOUND
