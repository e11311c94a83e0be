# ============================================================
# DBTerm - Terminal Database Client
# ui/tui.py - Main Textual TUI Application
# ============================================================
#
# The app is a thin shell: one focusable workspace widget takes every
# key, hands it to AppState and redraws. A timer drains finished
# background jobs between key events.

from pathlib import Path

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import Label, Static
from loguru import logger

from config import app_config
from core.app_state import AppState
from core.router import KeyPress
from ui.render import render_status_bar, render_workspace


# ── Workspace ─────────────────────────────────────────────────
class Workspace(Static):
    """
    Renders the current mode and receives all keyboard input.

    Keys are stopped here so Textual's own focus and scroll bindings
    never see them; only priority bindings (Ctrl+Q) run first.
    """

    can_focus = True

    def __init__(self, state: AppState, **kwargs):
        super().__init__("", **kwargs)
        self.state = state

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.state.handle_key(KeyPress(event.key, event.character))
        self.app.sync_view()

    def on_paste(self, event: events.Paste) -> None:
        event.stop()
        self.state.paste(event.text)
        self.app.sync_view()

    def on_resize(self, event: events.Resize) -> None:
        self.state.resize(event.size.width, event.size.height)
        self.app.sync_view()


# ── Main DBTerm TUI Application ───────────────────────────────
class DBTermApp(App):
    """Main Textual application for DBTerm."""

    CSS_PATH = str(Path(__file__).parent / "dbterm.tcss")
    TITLE = "DBTerm - Terminal Database Client"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, state: AppState):
        super().__init__()
        self.state = state

    # ── App Lifecycle ─────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Container(
            Horizontal(
                Label(f"◆ DBTerm v{app_config.version}", id="header-title"),
                Label("", id="header-db-badge"),
                id="header",
            ),
            Workspace(self.state, id="workspace"),
            Horizontal(
                Label("", id="status-left"),
                id="status-bar",
            ),
        )

    def on_mount(self) -> None:
        """Called when app starts."""
        logger.info("TUI mounted")
        self.query_one(Workspace).focus()
        self.set_interval(app_config.poll_interval, self._poll_jobs)
        self.sync_view()

    def _poll_jobs(self) -> None:
        if self.state.poll_jobs() or self.state.busy:
            self.sync_view()

    # ── UI Helpers ────────────────────────────────────────────

    def sync_view(self) -> None:
        """Redraw everything from the current state, or exit if asked to."""
        if self.state.should_quit:
            self.action_quit()
            return
        self.query_one(Workspace).update(render_workspace(self.state))
        self._update_header()
        self._update_status_bar()

    def _update_header(self) -> None:
        badge = self.query_one("#header-db-badge", Label)
        profile = self.state.active_profile
        if profile is not None and profile.database_type is not None:
            badge.update(f"[bold #3fb950]{profile.database_type.display_name}[/bold #3fb950]")
        else:
            badge.update("")

    def _update_status_bar(self) -> None:
        self.query_one("#status-left", Label).update(render_status_bar(self.state))

    # ── Action Handlers ───────────────────────────────────────

    def action_quit(self) -> None:
        """Ctrl+Q, or q on the connection list."""
        self.state.shutdown()
        self.exit()
