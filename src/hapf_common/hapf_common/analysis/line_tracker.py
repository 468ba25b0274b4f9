# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Map absolute character offsets to 1-based line/column positions."""

from bisect import bisect_right
from typing import Iterator, List, Tuple


class LineIndex:
    """Offset ↔ position conversion for one source text.

    Lines are separated by ``\\n``; a trailing ``\\r`` stays part of its line.
    Offsets outside the text are clamped, so every position produced lies in
    the text's line/column space.
    """

    def __init__(self, text: str):
        self._text = text
        self._starts: List[int] = [0]
        self._starts.extend(i + 1 for i, ch in enumerate(text) if ch == "\n")

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_start(self, line: int) -> int:
        return self._starts[line - 1]

    def line_end(self, line: int) -> int:
        """Offset just past the last character of *line*, excluding the newline."""
        if line < self.line_count:
            return self._starts[line] - 1
        return len(self._text)

    def line_text(self, line: int) -> str:
        return self._text[self.line_start(line) : self.line_end(line)]

    def position(self, offset: int) -> Tuple[int, int]:
        offset = min(max(offset, 0), len(self._text))
        line = bisect_right(self._starts, offset) - 1
        return line + 1, offset - self._starts[line] + 1

    def span(self, start: int, end: int) -> Tuple[int, int, int, int]:
        """Return ``(start_line, start_col, end_line, end_col)`` for ``[start, end)``."""
        start_line, start_col = self.position(start)
        end_line, end_col = self.position(max(start, end))
        return start_line, start_col, end_line, end_col

    def lines(self, start: int = 0, end: int = -1) -> Iterator[Tuple[int, int, int]]:
        """Yield ``(line, segment_start, segment_end)`` for lines overlapping ``[start, end)``.

        Segments are clipped to the range; *end* of -1 means the end of the text.
        """
        if end < 0:
            end = len(self._text)
        first, _ = self.position(start)
        last, _ = self.position(end)
        for line in range(first, last + 1):
            seg_start = max(self.line_start(line), start)
            seg_end = min(self.line_end(line), end)
            if seg_start <= seg_end:
                yield line, seg_start, seg_end
