# ============================================================
# DBTerm - Terminal Database Client
# core/text_buffer.py - Multi-line Query Buffer with Cursor
# ============================================================

from typing import Optional, Tuple

from core.models import Direction


class QueryBuffer:
    """
    Line-oriented text buffer with a single cursor.

    Invariants held after every operation:
      0 <= cursor_line < len(lines)
      0 <= cursor_col <= len(lines[cursor_line])

    Vertical movement uses a sticky goal column: the column is remembered on
    the first Up/Down and reused while the cursor keeps moving vertically, so
    passing through a short line does not lose the original column.
    """

    def __init__(self, text: str = "", tab_width: int = 4):
        self.tab_width = tab_width
        self._lines = [""]
        self._line = 0
        self._col = 0
        self._goal_col: Optional[int] = None
        if text:
            self.set_text(text)

    # ── Read-only Accessors ───────────────────────────────────

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)

    @property
    def cursor(self) -> Tuple[int, int]:
        return self._line, self._col

    @property
    def cursor_line(self) -> int:
        return self._line

    @property
    def cursor_col(self) -> int:
        return self._col

    @property
    def text(self) -> str:
        """Buffer content joined with newlines, as submitted for execution."""
        return "\n".join(self._lines)

    def is_empty(self) -> bool:
        return not self.text.strip()

    # ── Editing ───────────────────────────────────────────────

    def insert_char(self, c: str) -> None:
        """Insert at the cursor; longer text (a paste) goes in one character at a time."""
        if len(c) != 1:
            for ch in c.replace("\r\n", "\n").replace("\r", "\n"):
                self.insert_char(ch)
            return
        if c == "\n":
            self.insert_newline()
            return
        if c == "\t":
            self.insert_tab()
            return
        self._insert_text(c)

    def insert_newline(self) -> None:
        self._goal_col = None
        line = self._lines[self._line]
        self._lines[self._line] = line[: self._col]
        self._lines.insert(self._line + 1, line[self._col:])
        self._line += 1
        self._col = 0

    def insert_tab(self) -> None:
        self._insert_text(" " * self.tab_width)

    def backspace(self) -> None:
        self._goal_col = None
        if self._col > 0:
            line = self._lines[self._line]
            self._lines[self._line] = line[: self._col - 1] + line[self._col:]
            self._col -= 1
        elif self._line > 0:
            previous = self._lines[self._line - 1]
            self._lines[self._line - 1] = previous + self._lines[self._line]
            del self._lines[self._line]
            self._line -= 1
            self._col = len(previous)

    def delete_forward(self) -> None:
        self._goal_col = None
        line = self._lines[self._line]
        if self._col < len(line):
            self._lines[self._line] = line[: self._col] + line[self._col + 1:]
        elif self._line < len(self._lines) - 1:
            self._lines[self._line] = line + self._lines[self._line + 1]
            del self._lines[self._line + 1]

    def clear(self) -> None:
        self._lines = [""]
        self._line = 0
        self._col = 0
        self._goal_col = None

    def set_text(self, text: str) -> None:
        """Replace the whole content and put the cursor at the end."""
        self._lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        self._line = len(self._lines) - 1
        self._col = len(self._lines[self._line])
        self._goal_col = None

    def _insert_text(self, s: str) -> None:
        self._goal_col = None
        line = self._lines[self._line]
        self._lines[self._line] = line[: self._col] + s + line[self._col:]
        self._col += len(s)

    # ── Cursor Movement ───────────────────────────────────────

    def move_cursor(self, direction: Direction) -> None:
        if direction in (Direction.UP, Direction.DOWN):
            self._move_vertical(-1 if direction == Direction.UP else 1)
            return

        self._goal_col = None
        if direction == Direction.LEFT:
            if self._col > 0:
                self._col -= 1
            elif self._line > 0:
                self._line -= 1
                self._col = len(self._lines[self._line])
        elif direction == Direction.RIGHT:
            if self._col < len(self._lines[self._line]):
                self._col += 1
            elif self._line < len(self._lines) - 1:
                self._line += 1
                self._col = 0
        elif direction == Direction.HOME:
            self._line = 0
            self._col = 0
        elif direction == Direction.END:
            self._line = len(self._lines) - 1
            self._col = len(self._lines[self._line])
        elif direction == Direction.LINE_START:
            self._col = 0
        elif direction == Direction.LINE_END:
            self._col = len(self._lines[self._line])

    def _move_vertical(self, delta: int) -> None:
        target = self._line + delta
        if target < 0 or target >= len(self._lines):
            return
        if self._goal_col is None:
            self._goal_col = self._col
        self._line = target
        self._col = min(self._goal_col, len(self._lines[target]))

    def __repr__(self):
        return f"<QueryBuffer lines={len(self._lines)} cursor={self.cursor}>"
