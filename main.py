#!/usr/bin/env python3
# ============================================================
# DBTerm - Terminal Database Client
# main.py - Application Entry Point
# ============================================================
#
# Usage:
#   python main.py                  → Launch the TUI
#   python main.py --create-demo    → Create demo.db, then launch the TUI
#   python main.py version          → Show version info
#
# Saved connections live in ~/.config/dbterm/connections.json
# (override with DBTERM_PROFILES_FILE in .env).
# ============================================================

import sys
import os
import click
from loguru import logger

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from utils.logger import setup_logger
from config import app_config, editor_config


@click.group(invoke_without_command=True)
@click.option(
    "--create-demo",
    is_flag=True,
    help="Create the demo SQLite database before starting.",
)
@click.pass_context
def cli(ctx, create_demo: bool):
    """DBTerm - Terminal Database Client"""
    if ctx.invoked_subcommand is None:
        launch_tui(create_demo)


@cli.command()
def version():
    """Display DBTerm version and configuration paths."""
    show_version()


# ── Launch Functions ──────────────────────────────────────────

def build_state():
    """Load saved connections and wire up the application state."""
    from core.app_state import AppState
    from core.database import DatabaseService
    from core.profiles import ProfileStore

    return AppState(
        service=DatabaseService(connect_timeout=app_config.connect_timeout),
        store=ProfileStore(app_config.profiles_file),
        max_result_rows=editor_config.max_result_rows,
        max_column_width=editor_config.max_column_width,
        tab_width=editor_config.tab_width,
        history_size=editor_config.history_size,
    )


def launch_tui(create_demo: bool = False):
    """Start the Textual TUI application."""
    setup_logger(app_config.log_file, app_config.log_level)
    logger.info(f"Starting DBTerm v{app_config.version}")

    from core.demo import DEMO_PROFILE_NAME, create_demo_database, demo_connection_string
    from core.errors import DBTermError

    if create_demo:
        click.echo("Creating demo database...")
        try:
            create_demo_database(app_config.demo_db_path)
        except DBTermError as e:
            click.echo(f"❌ {e}", err=True)
            sys.exit(1)
        click.echo(f"✅ Demo database created at {app_config.demo_db_path}")

    state = build_state()
    if app_config.demo_db_path.exists():
        state.add_profile(DEMO_PROFILE_NAME, demo_connection_string(app_config.demo_db_path))

    from ui.tui import DBTermApp
    app = DBTermApp(state)
    try:
        app.run()
    except Exception as e:
        logger.exception("Terminal UI failed")
        state.shutdown()
        click.echo(f"❌ Terminal UI failed: {e}", err=True)
        sys.exit(1)

    logger.info("DBTerm exited")
    sys.exit(app.return_code or 0)


def show_version():
    """Display version and configuration info."""
    click.echo(f"DBTerm v{app_config.version}")
    click.echo(f"  Connections : {app_config.profiles_file}")
    click.echo(f"  Log file    : {app_config.log_file}")
    click.echo(f"  Demo DB     : {app_config.demo_db_path}")
    click.echo(f"  Row limit   : {editor_config.max_result_rows}")


# ── Entry Point ───────────────────────────────────────────────

if __name__ == "__main__":
    cli()
