import os
import sys
import threading
import time

import pytest


def _ensure_project_root_on_path() -> None:
    # pytest's rootdir is not guaranteed to be on sys.path; the packages
    # (core/, ui/, utils/) and config.py live at the repository root.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from core.database import ActiveConnection  # noqa: E402
from core.errors import DBConnectionError, QueryError  # noqa: E402
from core.models import DatabaseType, QueryResult  # noqa: E402


class FakeService:
    """
    Stands in for DatabaseService. Every call waits on `gate`, so a test
    can hold a job in flight by clearing it.
    """

    def __init__(self, tables=None, result=None):
        self.tables = list(tables or [])
        self.result = result or QueryResult(columns=["n"], rows=[("1",)])
        self.connect_error = None
        self.query_error = None
        self.gate = threading.Event()
        self.gate.set()
        self.connected = []
        self.ssl_configs = []
        self.disconnected = []
        self.executed = []
        self.disconnect_called = threading.Event()

    def connect(self, connection_string, ssl=None):
        self.gate.wait(5)
        self.ssl_configs.append(ssl)
        if self.connect_error:
            raise DBConnectionError(self.connect_error)
        conn = ActiveConnection(DatabaseType.from_url(connection_string), None, connection_string)
        self.connected.append(conn)
        return conn

    def list_tables(self, connection):
        self.gate.wait(5)
        return list(self.tables)

    def execute(self, connection, query, max_rows=None):
        self.gate.wait(5)
        self.executed.append(query)
        if self.query_error:
            raise QueryError(self.query_error)
        return QueryResult(
            columns=self.result.columns,
            rows=self.result.rows,
            truncated=self.result.truncated,
            affected_rows=self.result.affected_rows,
            execution_ms=3,
            query=query,
        )

    def disconnect(self, connection):
        connection.closed = True
        self.disconnected.append(connection)
        self.disconnect_called.set()


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
def wait_jobs():
    """Poll until no job is pending; fails the test after a few seconds."""

    def _wait(state, timeout: float = 5.0) -> None:
        deadline = time.monotonic() + timeout
        while state.busy and time.monotonic() < deadline:
            state.poll_jobs(timeout=0.05)
        assert not state.busy, "background job did not finish"

    return _wait
