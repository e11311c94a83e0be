# ============================================================
# DBTerm - Terminal Database Client
# core/router.py - Event Router (Mode, Key) -> Action
# ============================================================

from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional

from core.models import Direction
from core.navigation import Mode


class KeyPress(NamedTuple):
    """A key event, named the way Textual names keys ("a", "ctrl+e", "pagedown")."""

    key: str
    character: Optional[str] = None

    @property
    def printable(self) -> Optional[str]:
        c = self.character
        if c and len(c) == 1 and c.isprintable() and not self.key.startswith("ctrl+"):
            return c
        return None

    @classmethod
    def char(cls, c: str) -> "KeyPress":
        return cls(CHARACTER_KEY_NAMES.get(c, c), c)


CHARACTER_KEY_NAMES = {
    " ": "space",
    "?": "question_mark",
    "*": "asterisk",
    ",": "comma",
    ".": "full_stop",
    ";": "semicolon",
    "(": "left_parenthesis",
    ")": "right_parenthesis",
    "=": "equals_sign",
    "'": "apostrophe",
    ":": "colon",
}


class ActionKind(str, Enum):
    IGNORE = "ignore"
    QUIT = "quit"
    SHOW_HELP = "show_help"
    DISMISS_POPUP = "dismiss_popup"

    # lists
    LIST_MOVE = "list_move"

    # connection list
    NEW_PROFILE = "new_profile"
    EDIT_PROFILE = "edit_profile"
    DELETE_PROFILE = "delete_profile"
    CONNECT = "connect"
    CANCEL_CONNECT = "cancel_connect"

    # connection form
    FORM_NEXT_FIELD = "form_next_field"
    FORM_PREV_FIELD = "form_prev_field"
    FORM_INPUT = "form_input"
    FORM_BACKSPACE = "form_backspace"
    FORM_SAVE = "form_save"
    FORM_CANCEL = "form_cancel"

    # table browser
    QUICK_SELECT = "quick_select"
    OPEN_EDITOR = "open_editor"
    REFRESH_TABLES = "refresh_tables"
    DISCONNECT = "disconnect"

    # query editor
    INSERT_CHAR = "insert_char"
    INSERT_NEWLINE = "insert_newline"
    INSERT_TAB = "insert_tab"
    BACKSPACE = "backspace"
    DELETE_FORWARD = "delete_forward"
    MOVE_CURSOR = "move_cursor"
    CLEAR_BUFFER = "clear_buffer"
    EXECUTE_QUERY = "execute_query"
    INSERT_TEMPLATE = "insert_template"
    HISTORY = "history"
    SHOW_RESULTS = "show_results"
    LEAVE_EDITOR = "leave_editor"

    # results view
    SCROLL = "scroll"
    SCROLL_PAGE = "scroll_page"
    GRID_HOME = "grid_home"
    GRID_END = "grid_end"
    LEAVE_RESULTS = "leave_results"


class Action(NamedTuple):
    kind: ActionKind
    arg: Any = None


IGNORE = Action(ActionKind.IGNORE)

QUIT_KEYS = {"ctrl+q"}
HELP_KEYS = {"f1"}
EXECUTE_KEYS = {"ctrl+e", "f5", "ctrl+enter"}

TEMPLATE_KEYS = {
    "ctrl+s": "select",
    "ctrl+n": "insert",
    "ctrl+u": "update",
    "ctrl+d": "delete",
    "ctrl+c": "create_table",
    "ctrl+t": "truncate",
}

EDITOR_MOVES = {
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
    "up": Direction.UP,
    "down": Direction.DOWN,
    "home": Direction.LINE_START,
    "end": Direction.LINE_END,
    "ctrl+home": Direction.HOME,
    "ctrl+end": Direction.END,
}

GRID_STEPS = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}

GRID_PAGES = {
    "pageup": Direction.UP,
    "pagedown": Direction.DOWN,
    "shift+left": Direction.LEFT,
    "shift+right": Direction.RIGHT,
}


# ── Per-mode Routing ──────────────────────────────────────────

def _route_connection_list(key: KeyPress) -> Action:
    k = key.key
    if k in ("up", "k"):
        return Action(ActionKind.LIST_MOVE, -1)
    if k in ("down", "j"):
        return Action(ActionKind.LIST_MOVE, 1)
    if k == "n":
        return Action(ActionKind.NEW_PROFILE)
    if k == "e":
        return Action(ActionKind.EDIT_PROFILE)
    if k == "d":
        return Action(ActionKind.DELETE_PROFILE)
    if k == "enter":
        return Action(ActionKind.CONNECT)
    if k == "escape":
        return Action(ActionKind.CANCEL_CONNECT)
    if k == "q":
        return Action(ActionKind.QUIT)
    if k == "question_mark":
        return Action(ActionKind.SHOW_HELP)
    return IGNORE


def _route_connection_form(key: KeyPress) -> Action:
    k = key.key
    if k in ("tab", "down"):
        return Action(ActionKind.FORM_NEXT_FIELD)
    if k in ("shift+tab", "up"):
        return Action(ActionKind.FORM_PREV_FIELD)
    if k == "enter":
        return Action(ActionKind.FORM_SAVE)
    if k == "escape":
        return Action(ActionKind.FORM_CANCEL)
    if k == "backspace":
        return Action(ActionKind.FORM_BACKSPACE)
    if key.printable:
        return Action(ActionKind.FORM_INPUT, key.printable)
    return IGNORE


def _route_table_browser(key: KeyPress) -> Action:
    k = key.key
    if k in ("up", "k"):
        return Action(ActionKind.LIST_MOVE, -1)
    if k in ("down", "j"):
        return Action(ActionKind.LIST_MOVE, 1)
    if k == "s":
        return Action(ActionKind.QUICK_SELECT)
    if k in ("q", "e", "enter"):
        return Action(ActionKind.OPEN_EDITOR)
    if k == "r":
        return Action(ActionKind.REFRESH_TABLES)
    if k == "escape":
        return Action(ActionKind.DISCONNECT)
    if k == "question_mark":
        return Action(ActionKind.SHOW_HELP)
    return IGNORE


def _route_query_editor(key: KeyPress) -> Action:
    k = key.key
    if k in EXECUTE_KEYS:
        return Action(ActionKind.EXECUTE_QUERY)
    if k in TEMPLATE_KEYS:
        return Action(ActionKind.INSERT_TEMPLATE, TEMPLATE_KEYS[k])
    if k in EDITOR_MOVES:
        return Action(ActionKind.MOVE_CURSOR, EDITOR_MOVES[k])
    if k == "enter":
        return Action(ActionKind.INSERT_NEWLINE)
    if k == "tab":
        return Action(ActionKind.INSERT_TAB)
    if k == "backspace":
        return Action(ActionKind.BACKSPACE)
    if k == "delete":
        return Action(ActionKind.DELETE_FORWARD)
    if k == "ctrl+l":
        return Action(ActionKind.CLEAR_BUFFER)
    if k == "ctrl+up":
        return Action(ActionKind.HISTORY, -1)
    if k == "ctrl+down":
        return Action(ActionKind.HISTORY, 1)
    if k == "f2":
        return Action(ActionKind.SHOW_RESULTS)
    if k == "escape":
        return Action(ActionKind.LEAVE_EDITOR)
    # Character insertion shadows single-key bindings such as "q"
    if key.printable:
        return Action(ActionKind.INSERT_CHAR, key.printable)
    return IGNORE


def _route_results_view(key: KeyPress) -> Action:
    k = key.key
    if k in GRID_STEPS:
        return Action(ActionKind.SCROLL, GRID_STEPS[k])
    if k in GRID_PAGES:
        return Action(ActionKind.SCROLL_PAGE, GRID_PAGES[k])
    if k == "home":
        return Action(ActionKind.GRID_HOME)
    if k == "end":
        return Action(ActionKind.GRID_END)
    if k in ("escape", "backspace"):
        return Action(ActionKind.LEAVE_RESULTS)
    if k == "question_mark":
        return Action(ActionKind.SHOW_HELP)
    return IGNORE


def _route_popup(key: KeyPress) -> Action:
    return Action(ActionKind.DISMISS_POPUP)


ROUTES: Dict[Mode, Callable[[KeyPress], Action]] = {
    Mode.CONNECTION_LIST: _route_connection_list,
    Mode.CONNECTION_FORM: _route_connection_form,
    Mode.TABLE_BROWSER: _route_table_browser,
    Mode.QUERY_EDITOR: _route_query_editor,
    Mode.RESULTS_VIEW: _route_results_view,
    Mode.HELP_POPUP: _route_popup,
    Mode.ERROR_POPUP: _route_popup,
}


def route(mode: Mode, key: KeyPress) -> Action:
    """
    Map a key in the given mode to an Action.

    Total over every mode and key: anything without a binding comes back as
    IGNORE. Global quit and help are checked first; popups swallow every
    other key as a dismissal.
    """
    if key.key in QUIT_KEYS:
        return Action(ActionKind.QUIT)
    if key.key in HELP_KEYS and not mode.is_popup:
        return Action(ActionKind.SHOW_HELP)
    return ROUTES[mode](key)
