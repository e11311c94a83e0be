# ============================================================
# DBTerm - Terminal Database Client
# core/results_grid.py - Scrollable Results Grid Model
# ============================================================

import unicodedata
from typing import List, Optional, Tuple

from rich.cells import cell_len, set_cell_size

from core.models import Direction, QueryResult

# Padding on both sides of a cell plus one separator character
COLUMN_GAP = 3
TRUNCATION_MARKER = "..."
LINE_BREAK_MARKER = "↵"


def display_value(value: str) -> str:
    """One-line form of a cell value: line breaks become ↵, tabs a space."""
    text = value.replace("\r\n", LINE_BREAK_MARKER)
    text = text.replace("\n", LINE_BREAK_MARKER).replace("\r", LINE_BREAK_MARKER)
    text = text.replace("\t", " ")
    return "".join("?" if unicodedata.category(c) == "Cc" else c for c in text)


class ResultsGrid:
    """
    A QueryResult plus the (row_offset, col_offset) viewport into it.

    The result is never mutated; only the offsets move. Offsets are clamped
    to [0, max_offset] after every change, where the row bound is
    max(0, row_count - viewport_rows) and the column bound is the smallest
    offset from which every remaining column fits the available width.
    """

    def __init__(self, max_column_width: int = 30):
        self.max_column_width = max(len(TRUNCATION_MARKER) + 1, max_column_width)
        self._result: Optional[QueryResult] = None
        self._widths: Tuple[int, ...] = ()
        self._viewport_rows = 1
        self._viewport_width = 80
        self.row_offset = 0
        self.col_offset = 0

    # ── Content ───────────────────────────────────────────────

    @property
    def result(self) -> Optional[QueryResult]:
        return self._result

    @property
    def row_count(self) -> int:
        return self._result.row_count if self._result else 0

    @property
    def column_count(self) -> int:
        return self._result.column_count if self._result else 0

    def load(self, result: QueryResult) -> None:
        """Replace the result; the viewport always restarts at (0, 0)."""
        self._result = result
        self._widths = self._compute_widths(result)
        self.home()

    def clear(self) -> None:
        self._result = None
        self._widths = ()
        self.home()

    def _compute_widths(self, result: QueryResult) -> Tuple[int, ...]:
        widths = []
        for i, name in enumerate(result.columns):
            longest = cell_len(display_value(name))
            for row in result.rows:
                if i < len(row):
                    longest = max(longest, cell_len(display_value(row[i])))
            widths.append(max(1, min(longest, self.max_column_width)))
        return tuple(widths)

    # ── Viewport ──────────────────────────────────────────────

    @property
    def viewport_rows(self) -> int:
        return self._viewport_rows

    @property
    def viewport_width(self) -> int:
        return self._viewport_width

    def set_viewport(self, rows: int, width: int) -> None:
        self._viewport_rows = max(1, rows)
        self._viewport_width = max(1, width)
        self._clamp()

    @property
    def column_widths(self) -> Tuple[int, ...]:
        return self._widths

    @property
    def max_row_offset(self) -> int:
        return max(0, self.row_count - self._viewport_rows)

    @property
    def max_col_offset(self) -> int:
        if not self._widths:
            return 0
        used = 0
        offset = len(self._widths)
        for i in range(len(self._widths) - 1, -1, -1):
            used += self._widths[i] + COLUMN_GAP
            if used > self._viewport_width:
                break
            offset = i
        return min(offset, len(self._widths) - 1)

    def visible_columns(self) -> List[int]:
        """Column indexes that fit in the width, starting at col_offset."""
        indexes: List[int] = []
        used = 0
        for i in range(self.col_offset, len(self._widths)):
            used += self._widths[i] + COLUMN_GAP
            if indexes and used > self._viewport_width:
                break
            indexes.append(i)
        return indexes

    def visible_rows(self) -> List[Tuple[str, ...]]:
        if not self._result:
            return []
        return list(self._result.rows[self.row_offset:self.row_offset + self._viewport_rows])

    def cell_text(self, value: str, column: int) -> str:
        """
        Cell value on one line, cut to its column's width in terminal cells.
        Wide characters count as two cells.
        """
        width = self._widths[column] if column < len(self._widths) else self.max_column_width
        text = display_value(value)
        if cell_len(text) <= width:
            return text
        return set_cell_size(text, width - len(TRUNCATION_MARKER)) + TRUNCATION_MARKER

    def padded_cell(self, value: str, column: int) -> str:
        """cell_text padded with spaces to exactly the column width."""
        width = self._widths[column] if column < len(self._widths) else self.max_column_width
        return set_cell_size(self.cell_text(value, column), width)

    # ── Scrolling ─────────────────────────────────────────────

    def scroll(self, direction: Direction, page: bool = False) -> None:
        if direction == Direction.UP:
            self.row_offset -= self._viewport_rows if page else 1
        elif direction == Direction.DOWN:
            self.row_offset += self._viewport_rows if page else 1
        elif direction == Direction.LEFT:
            self.col_offset -= self._column_page() if page else 1
        elif direction == Direction.RIGHT:
            self.col_offset += self._column_page() if page else 1
        else:
            raise ValueError(f"Cannot scroll the grid {direction.value}")
        self._clamp()

    def home(self) -> None:
        self.row_offset = 0
        self.col_offset = 0

    def end(self) -> None:
        self.row_offset = self.max_row_offset
        self.col_offset = self.max_col_offset

    def _column_page(self) -> int:
        return max(1, len(self.visible_columns()))

    def _clamp(self) -> None:
        self.row_offset = min(max(0, self.row_offset), self.max_row_offset)
        self.col_offset = min(max(0, self.col_offset), self.max_col_offset)

    def __repr__(self):
        return (
            f"<ResultsGrid rows={self.row_count} cols={self.column_count} "
            f"offset=({self.row_offset}, {self.col_offset})>"
        )
