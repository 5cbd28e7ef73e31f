"""Offset to line/column bookkeeping shared by the scanners."""
from __future__ import annotations

from bisect import bisect_right
from typing import List, Optional, Sequence

from prose_renderer.model.elements import SourcePosition


class LineIndex:
    """Maps character offsets of a text onto 1-based source positions.

    ``first_line`` and ``column_shifts`` let a nested scanner (block quote or
    list item content with its markers stripped) report positions in terms of the
    original input.
    """

    def __init__(self, text: str, first_line: int = 1, column_shifts: Optional[Sequence[int]] = None) -> None:
        self._starts: List[int] = [0]
        for idx, char in enumerate(text):
            if char == "\n":
                self._starts.append(idx + 1)
        self._first_line = first_line
        self._shifts = list(column_shifts or ())

    @property
    def line_starts(self) -> Sequence[int]:
        return self._starts

    def line_of(self, offset: int) -> int:
        """Return the 0-based line index containing ``offset``."""
        return max(bisect_right(self._starts, offset) - 1, 0)

    def position(self, offset: int) -> SourcePosition:
        line_idx = self.line_of(offset)
        shift = self._shifts[line_idx] if line_idx < len(self._shifts) else 0
        return SourcePosition(self._first_line + line_idx, offset - self._starts[line_idx] + 1 + shift)

    def line_number(self, line_idx: int) -> int:
        return self._first_line + line_idx

    def column_shift(self, line_idx: int) -> int:
        return self._shifts[line_idx] if line_idx < len(self._shifts) else 0
