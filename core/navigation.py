# ============================================================
# DBTerm - Terminal Database Client
# core/navigation.py - Modal Navigation State Machine
# ============================================================

from enum import Enum
from typing import Optional

NO_SELECTION = -1


class Mode(str, Enum):
    CONNECTION_LIST = "connection_list"
    CONNECTION_FORM = "connection_form"
    TABLE_BROWSER = "table_browser"
    QUERY_EDITOR = "query_editor"
    RESULTS_VIEW = "results_view"
    HELP_POPUP = "help_popup"
    ERROR_POPUP = "error_popup"

    @property
    def is_popup(self) -> bool:
        return self in (Mode.HELP_POPUP, Mode.ERROR_POPUP)

    @property
    def title(self) -> str:
        return MODE_TITLES[self]


MODE_TITLES = {
    Mode.CONNECTION_LIST: "Connections",
    Mode.CONNECTION_FORM: "Connection",
    Mode.TABLE_BROWSER: "Tables",
    Mode.QUERY_EDITOR: "Query Editor",
    Mode.RESULTS_VIEW: "Results",
    Mode.HELP_POPUP: "Help",
    Mode.ERROR_POPUP: "Error",
}


class ListCursor:
    """
    Selection index and scroll offset over a list of known length.

    An empty list holds NO_SELECTION. Otherwise the index is in
    [0, length - 1] and the offset keeps it inside the visible window.
    """

    def __init__(self, length: int = 0, viewport: int = 10):
        self._length = 0
        self._viewport = max(1, viewport)
        self.index = NO_SELECTION
        self.offset = 0
        self.clamp(length)

    @property
    def length(self) -> int:
        return self._length

    @property
    def viewport(self) -> int:
        return self._viewport

    def has_selection(self) -> bool:
        return self.index != NO_SELECTION

    def clamp(self, length: int) -> None:
        """Re-fit the selection after the underlying list changed length."""
        self._length = max(0, length)
        if self._length == 0:
            self.index = NO_SELECTION
        elif self.index == NO_SELECTION:
            self.index = 0
        else:
            self.index = min(max(0, self.index), self._length - 1)
        self._follow()

    def reset(self, length: int) -> None:
        self.index = NO_SELECTION
        self.offset = 0
        self.clamp(length)

    def select(self, index: int) -> None:
        if self._length:
            self.index = min(max(0, index), self._length - 1)
            self._follow()

    def move(self, delta: int) -> None:
        """Move the selection, wrapping around at either end."""
        if not self._length:
            return
        self.index = (self.index + delta) % self._length
        self._follow()

    def set_viewport(self, height: int) -> None:
        self._viewport = max(1, height)
        self._follow()

    def _follow(self) -> None:
        if self.index == NO_SELECTION:
            self.offset = 0
            return
        if self.index < self.offset:
            self.offset = self.index
        elif self.index >= self.offset + self._viewport:
            self.offset = self.index - self._viewport + 1
        self.offset = min(max(0, self.offset), max(0, self._length - self._viewport))

    def __repr__(self):
        return f"<ListCursor index={self.index} offset={self.offset} length={self._length}>"


class NavigationState:
    """
    Current mode plus the popup overlay.

    Exactly one mode is active. Popups (help, error) sit on top of a base
    mode and remember it; dismissing a popup restores the base mode.
    """

    def __init__(self, mode: Mode = Mode.CONNECTION_LIST):
        if mode.is_popup:
            raise ValueError("Initial mode cannot be a popup")
        self._base = mode
        self._overlay: Optional[Mode] = None
        self.error_text: Optional[str] = None

    @property
    def mode(self) -> Mode:
        return self._overlay or self._base

    @property
    def base_mode(self) -> Mode:
        """The mode under any popup; never a popup itself."""
        return self._base

    def go(self, mode: Mode) -> None:
        """Switch the base mode. Any open popup stays on top."""
        if mode.is_popup:
            raise ValueError(f"Use show_help/show_error for {mode.value}")
        self._base = mode

    def show_help(self) -> None:
        if self._overlay is None:
            self._overlay = Mode.HELP_POPUP

    def show_error(self, text: str) -> None:
        self.error_text = text
        self._overlay = Mode.ERROR_POPUP

    def dismiss(self) -> Mode:
        self._overlay = None
        self.error_text = None
        return self._base

    def __repr__(self):
        return f"<NavigationState mode={self.mode.value} base={self._base.value}>"
