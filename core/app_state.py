# ============================================================
# DBTerm - Terminal Database Client
# core/app_state.py - Application State & Action Handling
# ============================================================

from enum import Enum
from typing import List, NamedTuple, Optional

from loguru import logger

from core.connection_form import ConnectionForm
from core.database import ActiveConnection, DatabaseService
from core.errors import DBConnectionError, InputError, ProfileStoreError
from core.models import ConnectionProfile, TableMetadata
from core.navigation import ListCursor, Mode, NavigationState
from core.profiles import ProfileStore
from core.query_executor import JobKind, JobOutcome, QueryExecutor
from core.results_grid import ResultsGrid
from core.router import Action, KeyPress, route
from core.sql_templates import quick_select, render_template
from core.text_buffer import QueryBuffer
from utils.helpers import format_duration, format_row_count

# Rows and columns taken by panel borders and padding around every view
PANEL_CHROME_ROWS = 2
PANEL_CHROME_COLS = 4
# Grid header line plus the rule under it
GRID_HEADER_ROWS = 2


class StatusKind(str, Enum):
    INFO = "info"
    ERROR = "error"


class StatusMessage(NamedTuple):
    text: str
    kind: StatusKind = StatusKind.INFO


class AppState:
    """
    Everything the terminal client knows, mutated only from the event loop.

    Keys go through handle_key(); finished background jobs go through
    poll_jobs(). The renderer reads the public attributes and properties
    and never writes them.
    """

    def __init__(
        self,
        service: Optional[DatabaseService] = None,
        store: Optional[ProfileStore] = None,
        max_result_rows: int = 1000,
        max_column_width: int = 30,
        tab_width: int = 4,
        history_size: int = 50,
    ):
        self.store = store
        self.executor = QueryExecutor(service or DatabaseService(), max_rows=max_result_rows)
        self.nav = NavigationState(Mode.CONNECTION_LIST)
        self.status: Optional[StatusMessage] = None
        self.should_quit = False

        self.profiles: List[ConnectionProfile] = []
        self.profile_cursor = ListCursor()
        self.form: Optional[ConnectionForm] = None

        self.connection: Optional[ActiveConnection] = None
        self.active_profile: Optional[ConnectionProfile] = None
        self._connecting: Optional[ConnectionProfile] = None
        self.tables: List[TableMetadata] = []
        self.table_cursor = ListCursor()

        self.buffer = QueryBuffer(tab_width=tab_width)
        self.grid = ResultsGrid(max_column_width=max_column_width)
        self.history: List[str] = []
        self.history_size = history_size
        self._history_index: Optional[int] = None
        self._history_draft = ""

        self._load_profiles()

    # ── Snapshot Accessors ────────────────────────────────────

    @property
    def mode(self) -> Mode:
        return self.nav.mode

    @property
    def base_mode(self) -> Mode:
        return self.nav.base_mode

    @property
    def error_text(self) -> Optional[str]:
        return self.nav.error_text

    @property
    def busy(self) -> bool:
        return self.executor.busy

    @property
    def pending_job(self) -> Optional[JobKind]:
        return self.executor.pending_kind

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    @property
    def selected_profile(self) -> Optional[ConnectionProfile]:
        if self.profile_cursor.has_selection():
            return self.profiles[self.profile_cursor.index]
        return None

    @property
    def selected_table(self) -> Optional[TableMetadata]:
        if self.table_cursor.has_selection():
            return self.tables[self.table_cursor.index]
        return None

    # ── Profiles ──────────────────────────────────────────────

    def _load_profiles(self) -> None:
        if self.store is None:
            return
        try:
            self.profiles = self.store.load_profiles()
        except ProfileStoreError as e:
            logger.error(f"Could not load connections: {e}")
            self.profiles = []
            self.status = StatusMessage(f"Could not load connections: {e}", StatusKind.ERROR)
        self.profile_cursor.reset(len(self.profiles))

    def _save_profiles(self) -> None:
        """Persist; a failure is reported but the in-memory change stands."""
        if self.store is None:
            return
        try:
            self.store.save_profiles(self.profiles)
        except ProfileStoreError as e:
            self._report_error(str(e))

    def add_profile(self, name: str, connection_string: str) -> ConnectionProfile:
        """Add a profile unless one with the same connection string exists."""
        for profile in self.profiles:
            if profile.connection_string == connection_string:
                return profile
        profile = ConnectionProfile(name=name, connection_string=connection_string)
        self.profiles.append(profile)
        self.profile_cursor.clamp(len(self.profiles))
        self._save_profiles()
        logger.info(f"Added connection '{name}'")
        return profile

    # ── Event Entry Points ────────────────────────────────────

    def handle_key(self, key: KeyPress) -> Action:
        """Route one key in the current mode and apply the resulting action."""
        self.status = None
        action = route(self.nav.mode, key)
        self.apply(action)
        return action

    def paste(self, text: str) -> None:
        """Bracketed paste: multi-line into the editor, one line into a form field."""
        self.status = None
        if self.nav.mode == Mode.QUERY_EDITOR:
            self.buffer.insert_char(text)
            self._edit_buffer()
        elif self.nav.mode == Mode.CONNECTION_FORM and not self.form.is_toggle_field():
            first_line = text.splitlines()[0] if text else ""
            for c in first_line:
                if c.isprintable():
                    self.form.input_char(c)

    def apply(self, action: Action) -> None:
        handler = getattr(self, f"_action_{action.kind.value}", None)
        if handler is None:
            raise InputError(f"No handler for action {action.kind.value}")
        handler(action.arg)

    def poll_jobs(self, timeout: float = 0.0) -> int:
        """Apply finished background jobs. Returns how many were applied."""
        outcomes = self.executor.poll(timeout)
        for outcome in outcomes:
            self._apply_outcome(outcome)
        return len(outcomes)

    def resize(self, width: int, height: int) -> None:
        """Fit list and grid viewports to a workspace of the given size."""
        inner_rows = max(1, height - PANEL_CHROME_ROWS)
        inner_cols = max(1, width - PANEL_CHROME_COLS)
        self.profile_cursor.set_viewport(inner_rows)
        self.table_cursor.set_viewport(inner_rows)
        self.grid.set_viewport(max(1, inner_rows - GRID_HEADER_ROWS), inner_cols)

    def shutdown(self) -> None:
        """Abandon pending work and close the connection without waiting."""
        self.executor.cancel()
        if self.connection is not None:
            self.executor.release(self.connection)
            self.connection = None
        logger.info("Application state shut down")

    # ── Helpers ───────────────────────────────────────────────

    def _info(self, text: str) -> None:
        self.status = StatusMessage(text, StatusKind.INFO)

    def _report_error(self, text: str) -> None:
        logger.warning(f"Reported error: {text}")
        self.status = StatusMessage(text, StatusKind.ERROR)
        self.nav.show_error(text)

    def _busy(self) -> None:
        job = self.executor.pending_kind
        label = job.value.replace("_", " ") if job else "job"
        self._info(f"Busy: waiting for {label} to finish")

    def _drop_connection(self) -> None:
        if self.connection is not None:
            self.executor.release(self.connection)
        self.connection = None
        self.active_profile = None
        self.tables = []
        self.table_cursor.reset(0)

    def _edit_buffer(self) -> None:
        self._history_index = None

    # ── General Actions ───────────────────────────────────────

    def _action_ignore(self, _arg) -> None:
        pass

    def _action_quit(self, _arg) -> None:
        self.should_quit = True

    def _action_show_help(self, _arg) -> None:
        self.nav.show_help()

    def _action_dismiss_popup(self, _arg) -> None:
        self.nav.dismiss()

    def _action_list_move(self, delta: int) -> None:
        if self.nav.base_mode == Mode.CONNECTION_LIST:
            self.profile_cursor.move(delta)
        elif self.nav.base_mode == Mode.TABLE_BROWSER:
            self.table_cursor.move(delta)

    # ── Connection List ───────────────────────────────────────

    def _action_new_profile(self, _arg) -> None:
        self.form = ConnectionForm()
        self.nav.go(Mode.CONNECTION_FORM)

    def _action_edit_profile(self, _arg) -> None:
        profile = self.selected_profile
        if profile is None:
            self._info("No connection selected")
            return
        self.form = ConnectionForm(profile)
        self.nav.go(Mode.CONNECTION_FORM)

    def _action_delete_profile(self, _arg) -> None:
        profile = self.selected_profile
        if profile is None:
            self._info("No connection selected")
            return
        del self.profiles[self.profile_cursor.index]
        self.profile_cursor.clamp(len(self.profiles))
        if self.active_profile is not None and self.active_profile.id == profile.id:
            self._drop_connection()
        if self._connecting is not None and self._connecting.id == profile.id:
            self.executor.cancel()
            self._connecting = None
        logger.info(f"Deleted connection '{profile.name}'")
        self._info(f"Deleted '{profile.name}'")
        self._save_profiles()

    def _action_connect(self, _arg) -> None:
        profile = self.selected_profile
        if profile is None:
            self._info("No connection selected")
            return
        if self.executor.busy:
            self._busy()
            return
        self._drop_connection()
        self._connecting = profile
        self.executor.connect(profile.connection_string, profile.ssl)
        self._info(f"Connecting to {profile.name}... (Esc to cancel)")

    def _action_cancel_connect(self, _arg) -> None:
        """Esc on the connection list: cancel a pending connect, otherwise quit."""
        if self.executor.pending_kind != JobKind.CONNECT:
            self.should_quit = True
            return
        self.executor.cancel()
        name = self._connecting.name if self._connecting else "database"
        self._connecting = None
        self._info(f"Cancelled connection to {name}")

    # ── Connection Form ───────────────────────────────────────

    def _action_form_next_field(self, _arg) -> None:
        self.form.next_field()

    def _action_form_prev_field(self, _arg) -> None:
        self.form.previous_field()

    def _action_form_input(self, c: str) -> None:
        self.form.input_char(c)

    def _action_form_backspace(self, _arg) -> None:
        self.form.backspace()

    def _action_form_save(self, _arg) -> None:
        try:
            profile = self.form.to_profile()
        except DBConnectionError as e:
            self._report_error(str(e))
            return

        existing = [i for i, p in enumerate(self.profiles) if p.id == profile.id]
        if existing:
            index = existing[0]
            self.profiles[index] = profile
            if self.active_profile is not None and self.active_profile.id == profile.id:
                self.active_profile = profile
        else:
            self.profiles.append(profile)
            index = len(self.profiles) - 1
        self.profile_cursor.clamp(len(self.profiles))
        self.profile_cursor.select(index)

        self.form = None
        self.nav.go(Mode.CONNECTION_LIST)
        logger.info(f"Saved connection '{profile.name}'")
        self._info(f"Saved '{profile.name}'")
        self._save_profiles()

    def _action_form_cancel(self, _arg) -> None:
        self.form = None
        self.nav.go(Mode.CONNECTION_LIST)

    # ── Table Browser ─────────────────────────────────────────

    def _action_quick_select(self, _arg) -> None:
        table = self.selected_table
        if table is None:
            self._info("No table selected")
            return
        self.buffer.set_text(quick_select(table))
        self._edit_buffer()
        self.nav.go(Mode.QUERY_EDITOR)

    def _action_open_editor(self, _arg) -> None:
        self.nav.go(Mode.QUERY_EDITOR)

    def _action_refresh_tables(self, _arg) -> None:
        if self.connection is None:
            return
        if not self.executor.load_tables(self.connection):
            self._busy()
            return
        self._info("Refreshing tables...")

    def _action_disconnect(self, _arg) -> None:
        if self.executor.pending_kind in (JobKind.EXECUTE, JobKind.LOAD_TABLES):
            self.executor.cancel()
        name = self.active_profile.name if self.active_profile else "database"
        self._drop_connection()
        self.nav.go(Mode.CONNECTION_LIST)
        self._info(f"Disconnected from {name}")

    # ── Query Editor ──────────────────────────────────────────

    def _action_insert_char(self, c: str) -> None:
        self.buffer.insert_char(c)
        self._edit_buffer()

    def _action_insert_newline(self, _arg) -> None:
        self.buffer.insert_newline()
        self._edit_buffer()

    def _action_insert_tab(self, _arg) -> None:
        self.buffer.insert_tab()
        self._edit_buffer()

    def _action_backspace(self, _arg) -> None:
        self.buffer.backspace()
        self._edit_buffer()

    def _action_delete_forward(self, _arg) -> None:
        self.buffer.delete_forward()
        self._edit_buffer()

    def _action_move_cursor(self, direction) -> None:
        self.buffer.move_cursor(direction)

    def _action_clear_buffer(self, _arg) -> None:
        self.buffer.clear()
        self._edit_buffer()

    def _action_execute_query(self, _arg) -> None:
        if self.buffer.is_empty():
            self._report_error("Cannot execute empty query")
            return
        query = self.buffer.text
        if self.connection is None:
            self._report_error("Not connected to a database")
            return
        if not self.executor.execute(self.connection, query):
            self._busy()
            return
        self._info("Executing query...")

    def _action_insert_template(self, name: str) -> None:
        table = self.selected_table
        if table is None:
            self._info("Select a table first")
            return
        self.buffer.set_text(render_template(name, table))
        self._edit_buffer()

    def _action_history(self, delta: int) -> None:
        if not self.history:
            self._info("No query history")
            return
        if self._history_index is None:
            if delta > 0:
                return
            self._history_draft = self.buffer.text
            index = len(self.history) - 1
        else:
            index = self._history_index + delta
        if index < 0:
            index = 0
        if index >= len(self.history):
            self.buffer.set_text(self._history_draft)
            self._history_index = None
            return
        self.buffer.set_text(self.history[index])
        self._history_index = index

    def _action_show_results(self, _arg) -> None:
        if self.grid.result is None:
            self._info("No results yet")
            return
        self.nav.go(Mode.RESULTS_VIEW)

    def _action_leave_editor(self, _arg) -> None:
        self.nav.go(Mode.TABLE_BROWSER if self.connection else Mode.CONNECTION_LIST)

    # ── Results View ──────────────────────────────────────────

    def _action_scroll(self, direction) -> None:
        self.grid.scroll(direction)

    def _action_scroll_page(self, direction) -> None:
        self.grid.scroll(direction, page=True)

    def _action_grid_home(self, _arg) -> None:
        self.grid.home()

    def _action_grid_end(self, _arg) -> None:
        self.grid.end()

    def _action_leave_results(self, _arg) -> None:
        self.nav.go(Mode.QUERY_EDITOR)

    # ── Job Outcomes ──────────────────────────────────────────

    def _apply_outcome(self, outcome: JobOutcome) -> None:
        if outcome.kind == JobKind.CONNECT:
            self._apply_connect(outcome)
            return

        # Results for a connection that has since been dropped are stale
        if outcome.connection is not self.connection:
            logger.info(f"Ignoring {outcome!r} for a closed connection")
            return

        if not outcome.ok:
            self._report_error(str(outcome.error))
        elif outcome.kind == JobKind.LOAD_TABLES:
            self.tables = list(outcome.value)
            self.table_cursor.clamp(len(self.tables))
            self._info(f"Loaded {len(self.tables)} tables")
        else:
            self._apply_result(outcome)

    def _apply_connect(self, outcome: JobOutcome) -> None:
        profile = self._connecting
        self._connecting = None
        if not outcome.ok:
            self._report_error(f"Connection failed: {outcome.error}")
            return

        self.connection, tables = outcome.value
        self.active_profile = profile
        self.tables = list(tables)
        self.table_cursor.reset(len(self.tables))
        self.grid.clear()
        if self.nav.base_mode == Mode.CONNECTION_LIST:
            self.nav.go(Mode.TABLE_BROWSER)
        name = profile.name if profile else self.connection.label
        self._info(f"Connected to {name} ({len(self.tables)} tables)")

    def _apply_result(self, outcome: JobOutcome) -> None:
        result = outcome.value
        self.grid.load(result)
        self._remember(result.query)
        if self.nav.base_mode == Mode.QUERY_EDITOR:
            self.nav.go(Mode.RESULTS_VIEW)

        elapsed = format_duration(result.execution_ms)
        if result.affected_rows is not None:
            self._info(f"{result.affected_rows} rows affected in {elapsed}")
        else:
            self._info(f"{format_row_count(result.row_count, result.truncated)} in {elapsed}")

    def _remember(self, query: str) -> None:
        query = query.strip()
        if query in self.history:
            self.history.remove(query)
        self.history.append(query)
        del self.history[: -self.history_size]
        self._history_index = None
