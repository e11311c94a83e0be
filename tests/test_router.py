import pytest

from core.models import Direction
from core.navigation import Mode
from core.router import Action, ActionKind, KeyPress, route

SAMPLE_KEYS = [
    KeyPress("ctrl+q"), KeyPress("f1"), KeyPress("f2"), KeyPress("f5"),
    KeyPress("enter"), KeyPress("escape"), KeyPress("tab"), KeyPress("shift+tab"),
    KeyPress("backspace"), KeyPress("delete"), KeyPress("up"), KeyPress("down"),
    KeyPress("left"), KeyPress("right"), KeyPress("home"), KeyPress("end"),
    KeyPress("pageup"), KeyPress("pagedown"), KeyPress("shift+left"),
    KeyPress("ctrl+e"), KeyPress("ctrl+l"), KeyPress("ctrl+s"), KeyPress("ctrl+up"),
    KeyPress("ctrl+home"), KeyPress("f12"), KeyPress("ctrl+z"),
    KeyPress.char("q"), KeyPress.char("?"), KeyPress.char(" "), KeyPress.char("s"),
    KeyPress.char("é"), KeyPress.char("*"),
]


@pytest.mark.parametrize("mode", list(Mode))
def test_every_key_routes_to_an_action(mode):
    for key in SAMPLE_KEYS:
        action = route(mode, key)
        assert isinstance(action, Action)
        assert isinstance(action.kind, ActionKind)


@pytest.mark.parametrize("mode", list(Mode))
def test_ctrl_q_quits_everywhere(mode):
    assert route(mode, KeyPress("ctrl+q")).kind == ActionKind.QUIT


@pytest.mark.parametrize("mode", [m for m in Mode if not m.is_popup])
def test_f1_opens_help_outside_popups(mode):
    assert route(mode, KeyPress("f1")).kind == ActionKind.SHOW_HELP


@pytest.mark.parametrize("mode", [Mode.HELP_POPUP, Mode.ERROR_POPUP])
def test_popups_dismiss_on_any_other_key(mode):
    for key in SAMPLE_KEYS:
        if key.key == "ctrl+q":
            continue
        assert route(mode, key).kind == ActionKind.DISMISS_POPUP


def test_q_quits_from_connection_list_but_types_in_editor():
    assert route(Mode.CONNECTION_LIST, KeyPress.char("q")).kind == ActionKind.QUIT
    assert route(Mode.QUERY_EDITOR, KeyPress.char("q")) == Action(ActionKind.INSERT_CHAR, "q")
    assert route(Mode.CONNECTION_FORM, KeyPress.char("q")) == Action(ActionKind.FORM_INPUT, "q")
    assert route(Mode.TABLE_BROWSER, KeyPress.char("q")).kind == ActionKind.OPEN_EDITOR


def test_question_mark_is_help_only_in_non_text_modes():
    assert route(Mode.CONNECTION_LIST, KeyPress.char("?")).kind == ActionKind.SHOW_HELP
    assert route(Mode.RESULTS_VIEW, KeyPress.char("?")).kind == ActionKind.SHOW_HELP
    assert route(Mode.QUERY_EDITOR, KeyPress.char("?")) == Action(ActionKind.INSERT_CHAR, "?")


def test_connection_list_bindings():
    assert route(Mode.CONNECTION_LIST, KeyPress("down")) == Action(ActionKind.LIST_MOVE, 1)
    assert route(Mode.CONNECTION_LIST, KeyPress.char("k")) == Action(ActionKind.LIST_MOVE, -1)
    assert route(Mode.CONNECTION_LIST, KeyPress.char("n")).kind == ActionKind.NEW_PROFILE
    assert route(Mode.CONNECTION_LIST, KeyPress.char("e")).kind == ActionKind.EDIT_PROFILE
    assert route(Mode.CONNECTION_LIST, KeyPress.char("d")).kind == ActionKind.DELETE_PROFILE
    assert route(Mode.CONNECTION_LIST, KeyPress("enter")).kind == ActionKind.CONNECT
    assert route(Mode.CONNECTION_LIST, KeyPress("escape")).kind == ActionKind.CANCEL_CONNECT


def test_table_browser_bindings():
    assert route(Mode.TABLE_BROWSER, KeyPress.char("s")).kind == ActionKind.QUICK_SELECT
    assert route(Mode.TABLE_BROWSER, KeyPress.char("r")).kind == ActionKind.REFRESH_TABLES
    assert route(Mode.TABLE_BROWSER, KeyPress("escape")).kind == ActionKind.DISCONNECT
    assert route(Mode.TABLE_BROWSER, KeyPress("enter")).kind == ActionKind.OPEN_EDITOR


def test_editor_bindings():
    editor = Mode.QUERY_EDITOR
    for key in ("ctrl+e", "f5", "ctrl+enter"):
        assert route(editor, KeyPress(key)).kind == ActionKind.EXECUTE_QUERY
    assert route(editor, KeyPress("enter")).kind == ActionKind.INSERT_NEWLINE
    assert route(editor, KeyPress("home")) == Action(ActionKind.MOVE_CURSOR, Direction.LINE_START)
    assert route(editor, KeyPress("ctrl+end")) == Action(ActionKind.MOVE_CURSOR, Direction.END)
    assert route(editor, KeyPress("ctrl+s")) == Action(ActionKind.INSERT_TEMPLATE, "select")
    assert route(editor, KeyPress("ctrl+d")) == Action(ActionKind.INSERT_TEMPLATE, "delete")
    assert route(editor, KeyPress("ctrl+c")) == Action(ActionKind.INSERT_TEMPLATE, "create_table")
    assert route(editor, KeyPress("ctrl+t")) == Action(ActionKind.INSERT_TEMPLATE, "truncate")
    assert route(editor, KeyPress("ctrl+up")) == Action(ActionKind.HISTORY, -1)
    assert route(editor, KeyPress.char(" ")) == Action(ActionKind.INSERT_CHAR, " ")
    assert route(editor, KeyPress("escape")).kind == ActionKind.LEAVE_EDITOR
    # Control keys without a binding are never typed as text
    assert route(editor, KeyPress("ctrl+z", "\x1a")).kind == ActionKind.IGNORE


def test_results_bindings():
    results = Mode.RESULTS_VIEW
    assert route(results, KeyPress("pagedown")) == Action(ActionKind.SCROLL_PAGE, Direction.DOWN)
    assert route(results, KeyPress("shift+right")) == Action(ActionKind.SCROLL_PAGE, Direction.RIGHT)
    assert route(results, KeyPress("left")) == Action(ActionKind.SCROLL, Direction.LEFT)
    assert route(results, KeyPress("end")).kind == ActionKind.GRID_END
    assert route(results, KeyPress("backspace")).kind == ActionKind.LEAVE_RESULTS


def test_unbound_keys_are_ignored():
    assert route(Mode.CONNECTION_LIST, KeyPress("f12")).kind == ActionKind.IGNORE
    assert route(Mode.RESULTS_VIEW, KeyPress.char("x")).kind == ActionKind.IGNORE


def test_keypress_names_characters_like_textual():
    assert KeyPress.char(" ") == KeyPress("space", " ")
    assert KeyPress.char("?") == KeyPress("question_mark", "?")
    assert KeyPress.char("a").printable == "a"
    assert KeyPress("enter").printable is None
