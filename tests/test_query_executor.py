import time

from core.database import ActiveConnection
from core.errors import DBConnectionError, QueryError
from core.models import DatabaseType
from core.query_executor import JobKind, QueryExecutor


def _drain(executor: QueryExecutor, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        outcomes = executor.poll(timeout=0.05)
        if outcomes:
            return outcomes
    raise AssertionError("no outcome arrived")


def _connection() -> ActiveConnection:
    return ActiveConnection(DatabaseType.SQLITE, None, "sqlite::memory:")


def test_connect_delivers_connection_and_tables(fake_service):
    executor = QueryExecutor(fake_service)
    assert executor.connect("sqlite::memory:")
    assert executor.busy
    assert executor.pending_kind == JobKind.CONNECT

    (outcome,) = _drain(executor)
    assert outcome.ok
    assert outcome.kind == JobKind.CONNECT
    connection, tables = outcome.value
    assert connection.db_type == DatabaseType.SQLITE
    assert tables == []
    assert not executor.busy


def test_only_one_job_at_a_time(fake_service):
    executor = QueryExecutor(fake_service)
    fake_service.gate.clear()
    assert executor.execute(_connection(), "SELECT 1")
    assert not executor.execute(_connection(), "SELECT 2")
    assert not executor.load_tables(_connection())
    fake_service.gate.set()
    _drain(executor)
    assert fake_service.executed == ["SELECT 1"]


def test_errors_come_back_as_outcomes(fake_service):
    fake_service.query_error = "no such table: nope"
    executor = QueryExecutor(fake_service)
    executor.execute(_connection(), "SELECT * FROM nope")
    (outcome,) = _drain(executor)
    assert not outcome.ok
    assert isinstance(outcome.error, QueryError)
    assert "no such table" in str(outcome.error)


def test_unexpected_exceptions_are_wrapped(fake_service):
    def explode(connection_string):
        raise RuntimeError("driver crashed")

    fake_service.connect = explode
    executor = QueryExecutor(fake_service)
    executor.connect("sqlite::memory:")
    (outcome,) = _drain(executor)
    assert isinstance(outcome.error, DBConnectionError)


def test_cancelled_job_outcome_is_discarded(fake_service):
    executor = QueryExecutor(fake_service)
    fake_service.gate.clear()
    executor.execute(_connection(), "SELECT 1")
    assert executor.cancel() == JobKind.EXECUTE
    assert not executor.busy

    fake_service.gate.set()
    time.sleep(0.1)
    assert executor.poll() == []


def test_cancelled_connect_releases_late_connection(fake_service):
    executor = QueryExecutor(fake_service)
    fake_service.gate.clear()
    executor.connect("sqlite::memory:")
    executor.cancel()
    fake_service.gate.set()

    deadline = time.monotonic() + 5
    while not fake_service.disconnect_called.is_set() and time.monotonic() < deadline:
        assert executor.poll(timeout=0.05) == []
    assert fake_service.disconnected == fake_service.connected


def test_new_job_after_cancel_is_not_confused_with_old_one(fake_service):
    executor = QueryExecutor(fake_service)
    fake_service.gate.clear()
    executor.execute(_connection(), "old")
    executor.cancel()
    executor.execute(_connection(), "new")
    fake_service.gate.set()

    (outcome,) = _drain(executor)
    assert outcome.value.query == "new"


def test_connect_releases_connection_when_table_listing_fails(fake_service):
    def broken_listing(connection):
        raise QueryError("permission denied")

    fake_service.list_tables = broken_listing
    executor = QueryExecutor(fake_service)
    executor.connect("sqlite::memory:")
    (outcome,) = _drain(executor)
    assert not outcome.ok
    assert fake_service.disconnected == fake_service.connected


def test_release_does_not_block(fake_service):
    executor = QueryExecutor(fake_service)
    connection = _connection()
    executor.release(connection)
    assert fake_service.disconnect_called.wait(2)
    assert connection.closed
