# ============================================================
# DBTerm - Terminal Database Client
# ui/render.py - Rich Renderables for Each Mode
# ============================================================
#
# Pure functions of AppState. Nothing here writes to the state.

from rich import box
from rich.align import Align
from rich.console import Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.app_state import AppState, StatusKind
from core.connection_form import TOGGLE_FIELDS, FormField
from core.navigation import Mode
from core.results_grid import ResultsGrid
from utils.helpers import format_duration, format_row_count, get_timestamp

CURSOR = "█"

# GitHub-dark palette used across the UI
ACCENT = "#58a6ff"
SUCCESS = "#3fb950"
ERROR = "#f85149"
WARNING = "#f0883e"
SQL = "#79c0ff"

HELP_SECTIONS = [
    ("Global", [
        ("Ctrl+Q", "Quit"),
        ("F1", "Help"),
    ]),
    ("Connections", [
        ("↑/↓ j/k", "Move selection"),
        ("Enter", "Connect"),
        ("n / e / d", "New / edit / delete connection"),
        ("Esc", "Cancel a pending connect, otherwise quit"),
        ("q", "Quit"),
    ]),
    ("Connection form", [
        ("Tab / Shift+Tab", "Next / previous field"),
        ("Space", "Cycle type, toggle SSL, cycle SSL mode"),
        ("Enter", "Save"),
        ("Esc", "Cancel"),
    ]),
    ("Tables", [
        ("↑/↓ j/k", "Move selection"),
        ("s", "SELECT * from the selected table"),
        ("q / e / Enter", "Open query editor"),
        ("r", "Refresh tables"),
        ("Esc", "Disconnect"),
    ]),
    ("Query editor", [
        ("Ctrl+E / F5", "Execute query"),
        ("Ctrl+L", "Clear buffer"),
        ("Ctrl+S/N/U/D", "SELECT / INSERT / UPDATE / DELETE template"),
        ("Ctrl+C / Ctrl+T", "CREATE TABLE / TRUNCATE for the selected table"),
        ("Ctrl+↑/↓", "Query history"),
        ("F2", "Show last results"),
        ("Esc", "Back to tables"),
    ]),
    ("Results", [
        ("Arrows", "Scroll"),
        ("PgUp / PgDn", "Page rows"),
        ("Shift+←/→", "Page columns"),
        ("Home / End", "First / last page"),
        ("Esc", "Back to editor"),
    ]),
]


def render_workspace(state: AppState) -> RenderableType:
    """The main view for the current mode; popups replace the view underneath."""
    if state.mode == Mode.HELP_POPUP:
        return Align.center(render_help(), vertical="middle")
    if state.mode == Mode.ERROR_POPUP:
        return Align.center(render_error(state.error_text or ""), vertical="middle")
    return VIEWS[state.base_mode](state)


# ── Connection List ───────────────────────────────────────────

def render_connection_list(state: AppState) -> RenderableType:
    cursor = state.profile_cursor
    if not state.profiles:
        body = Text("No saved connections. Press n to add one.", style="dim")
    else:
        body = Text()
        window = state.profiles[cursor.offset:cursor.offset + cursor.viewport]
        for i, profile in enumerate(window, start=cursor.offset):
            selected = i == cursor.index
            db_type = profile.database_type
            kind = db_type.display_name if db_type else "?"
            line = Text(f" {profile.name} ", style=f"bold {ACCENT}" if selected else "bold")
            line.append(f"[{kind}] ", style=SUCCESS)
            if profile.uses_ssl:
                line.append(f"[SSL {profile.ssl.mode.display_name}] ", style=WARNING)
            line.append(profile.connection_string, style="dim")
            if selected:
                line.stylize("reverse")
            if body:
                body.append("\n")
            body.append_text(line)
    return Panel(
        body,
        title=f"[bold]{Mode.CONNECTION_LIST.title}[/bold]",
        subtitle="[dim]Enter connect · n new · e edit · d delete · ? help[/dim]",
        border_style=ACCENT,
        box=box.ROUNDED,
    )


# ── Connection Form ───────────────────────────────────────────

def render_connection_form(state: AppState) -> RenderableType:
    form = state.form
    grid = Table.grid(padding=(0, 2))
    grid.add_column(justify="right", style="bold")
    grid.add_column()
    for field in form.visible_fields():
        active = field == form.current_field
        if field in TOGGLE_FIELDS:
            value = Text(f"< {form.value(field)} >", style=SUCCESS)
            if active:
                value.append("  (space to change)", style="dim")
        else:
            raw = form.value(field)
            if field == FormField.PASSWORD:
                raw = "*" * len(raw)
            value = Text(raw)
            if active:
                value.append(CURSOR, style=ACCENT)
        label = Text(field.label, style=f"bold {ACCENT}" if active else "bold")
        grid.add_row(label, value)

    hint = Text(
        "\nLeave Connection String empty to build it from the fields below it.",
        style="dim",
    )
    title = "Edit Connection" if form.is_editing else "New Connection"
    return Panel(
        Group(grid, hint),
        title=f"[bold]{escape(title)}[/bold]",
        subtitle="[dim]Tab next · Shift+Tab previous · Enter save · Esc cancel[/dim]",
        border_style=ACCENT,
        box=box.ROUNDED,
    )


# ── Table Browser ─────────────────────────────────────────────

def render_table_browser(state: AppState) -> RenderableType:
    cursor = state.table_cursor
    names = Text()
    if not state.tables:
        names.append("No tables", style="dim")
    window = state.tables[cursor.offset:cursor.offset + cursor.viewport]
    for i, table in enumerate(window, start=cursor.offset):
        line = Text(f" {table.qualified_name}")
        if table.row_count is not None:
            line.append(f" ({table.row_count})", style="dim")
        if i == cursor.index:
            line.stylize(f"reverse {ACCENT}")
        if names:
            names.append("\n")
        names.append_text(line)

    layout = Table.grid(expand=True, padding=(0, 2))
    layout.add_column(ratio=1)
    layout.add_column(ratio=2)
    layout.add_row(names, render_table_details(state))

    profile = state.active_profile
    title = f"{Mode.TABLE_BROWSER.title}: {profile.name}" if profile else Mode.TABLE_BROWSER.title
    return Panel(
        layout,
        title=f"[bold]{escape(title)}[/bold]",
        subtitle="[dim]s select · Enter editor · r refresh · Esc disconnect[/dim]",
        border_style=ACCENT,
        box=box.ROUNDED,
    )


def render_table_details(state: AppState) -> RenderableType:
    table = state.selected_table
    if table is None:
        return Text("")
    details = Table(box=box.SIMPLE_HEAD, expand=True, title=table.qualified_name)
    details.add_column("Column", style="bold")
    details.add_column("Type", style=SQL)
    details.add_column("Null")
    details.add_column("Key")
    for column in table.columns:
        details.add_row(
            column.name,
            column.data_type,
            "YES" if column.nullable else "NO",
            "PK" if column.primary_key else "",
        )
    return details


# ── Query Editor ──────────────────────────────────────────────

def render_editor_text(state: AppState) -> Text:
    """Buffer lines with the cursor glyph drawn over the cursor position."""
    buffer = state.buffer
    line_no, col = buffer.cursor
    text = Text()
    for i, line in enumerate(buffer.lines):
        if i:
            text.append("\n")
        if i != line_no:
            text.append(line)
            continue
        text.append(line[:col])
        if col < len(line):
            text.append(line[col], style="reverse")
            text.append(line[col + 1:])
        else:
            text.append(CURSOR, style=ACCENT)
    return text


def render_query_editor(state: AppState) -> RenderableType:
    line_no, col = state.buffer.cursor
    title = f"{Mode.QUERY_EDITOR.title} (Ln {line_no + 1}, Col {col + 1})"
    return Panel(
        render_editor_text(state),
        title=f"[bold]{escape(title)}[/bold]",
        subtitle="[dim]Ctrl+E execute · Ctrl+L clear · F2 results · Esc back[/dim]",
        border_style=WARNING if state.busy else ACCENT,
        box=box.ROUNDED,
    )


# ── Results View ──────────────────────────────────────────────

def render_grid_lines(grid: ResultsGrid) -> Text:
    """
    Header, rule and visible rows of the grid. Each column takes its width
    plus one space either side and a separator.
    """
    result = grid.result
    text = Text(no_wrap=True, overflow="crop")
    if result is None:
        return text
    if not result.columns:
        affected = result.affected_rows or 0
        text.append(f"{affected} rows affected", style=SUCCESS)
        return text

    visible = grid.visible_columns()
    widths = grid.column_widths

    for i in visible:
        text.append(" ")
        text.append(grid.padded_cell(result.columns[i], i), style=f"bold {ACCENT}")
        text.append(" │")
    text.append("\n")
    text.append("".join("─" * (widths[i] + 2) + "┼" for i in visible), style="dim")

    for row in grid.visible_rows():
        text.append("\n")
        for i in visible:
            value = row[i] if i < len(row) else ""
            style = "dim italic" if value == "NULL" else ""
            text.append(" ")
            text.append(grid.padded_cell(value, i), style=style)
            text.append(" │", style="dim")
    return text


def results_summary(grid: ResultsGrid) -> str:
    result = grid.result
    if result is None:
        return ""
    if not result.columns:
        return f"{format_duration(result.execution_ms)}"
    first = grid.row_offset + 1 if grid.row_count else 0
    last = min(grid.row_offset + grid.viewport_rows, grid.row_count)
    visible = grid.visible_columns()
    cols = f"cols {visible[0] + 1}-{visible[-1] + 1} of {grid.column_count}" if visible else ""
    rows = format_row_count(grid.row_count, result.truncated)
    return f"showing {first}-{last} of {rows} · {cols} · {format_duration(result.execution_ms)}"


def render_results(state: AppState) -> RenderableType:
    grid = state.grid
    return Panel(
        render_grid_lines(grid),
        title=f"[bold]{Mode.RESULTS_VIEW.title}[/bold]",
        subtitle=f"[dim]{results_summary(grid)}[/dim]",
        border_style=ACCENT,
        box=box.ROUNDED,
    )


# ── Popups ────────────────────────────────────────────────────

def render_help() -> RenderableType:
    table = Table(box=None, show_header=False, padding=(0, 2))
    table.add_column(style=f"bold {ACCENT}", no_wrap=True)
    table.add_column()
    for section, keys in HELP_SECTIONS:
        table.add_row(Text(section, style=f"bold underline {SUCCESS}"), "")
        for key, description in keys:
            table.add_row(key, description)
        table.add_row("", "")
    return Panel(
        table,
        title="[bold]Help[/bold]",
        subtitle="[dim]Press any key to close[/dim]",
        border_style=SUCCESS,
        box=box.DOUBLE,
        expand=False,
    )


def render_error(message: str) -> RenderableType:
    return Panel(
        Text(message, style="bold"),
        title=f"[bold {ERROR}]Error[/bold {ERROR}]",
        subtitle="[dim]Press any key to continue[/dim]",
        border_style=ERROR,
        box=box.DOUBLE,
        expand=False,
        padding=(1, 2),
    )


# ── Status Bar ────────────────────────────────────────────────

def render_status_bar(state: AppState) -> Text:
    text = Text()
    if state.is_connected:
        name = state.active_profile.name if state.active_profile else state.connection.label
        text.append("● ", style=SUCCESS)
        text.append(name)
    else:
        text.append("● Disconnected", style=ERROR)
    text.append("  │  ")
    text.append(state.mode.title, style=f"bold {ACCENT}")

    if state.busy:
        text.append("  │  ")
        text.append("⏳ working...", style=WARNING)

    status = state.status
    if status is not None:
        text.append("  │  ")
        text.append(status.text, style=ERROR if status.kind == StatusKind.ERROR else "")

    text.append(f"  │  {get_timestamp()}", style="dim")
    return text


VIEWS = {
    Mode.CONNECTION_LIST: render_connection_list,
    Mode.CONNECTION_FORM: render_connection_form,
    Mode.TABLE_BROWSER: render_table_browser,
    Mode.QUERY_EDITOR: render_query_editor,
    Mode.RESULTS_VIEW: render_results,
}
