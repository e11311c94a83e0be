# ============================================================
# DBTerm - Terminal Database Client
# core/query_executor.py - Non-blocking Query Execution Coordinator
# ============================================================

import itertools
import queue
import threading
from enum import Enum
from typing import Any, Callable, List, Optional

from loguru import logger

from core.database import ActiveConnection, DatabaseService
from core.errors import DBConnectionError, DBTermError, QueryError
from core.models import SslConfig


class JobKind(str, Enum):
    CONNECT = "connect"
    LOAD_TABLES = "load_tables"
    EXECUTE = "execute"


class JobOutcome:
    """What a finished job hands back to the event loop."""

    def __init__(
        self,
        kind: JobKind,
        token: int,
        value: Any = None,
        error: Optional[DBTermError] = None,
        connection: Optional[ActiveConnection] = None,
    ):
        self.kind = kind
        self.token = token
        self.value = value
        self.error = error
        self.connection = connection

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self):
        status = "ok" if self.ok else f"error={self.error}"
        return f"<JobOutcome {self.kind.value} #{self.token} {status}>"


class QueryExecutor:
    """
    Runs database work off the event loop, one job at a time.

    Jobs execute on daemon worker threads and report through a queue; the
    event loop calls poll() between key events and applies outcomes itself,
    so all application state keeps a single mutator. A dispatch while a job
    is pending is refused rather than queued. Cancelling only abandons the
    job: the driver call runs to completion and its outcome is dropped.
    """

    def __init__(self, service: DatabaseService, max_rows: int = 1000):
        self.service = service
        self.max_rows = max_rows
        self._outcomes: "queue.Queue[JobOutcome]" = queue.Queue()
        self._tokens = itertools.count(1)
        self._pending_token: Optional[int] = None
        self._pending_kind: Optional[JobKind] = None

    @property
    def busy(self) -> bool:
        return self._pending_token is not None

    @property
    def pending_kind(self) -> Optional[JobKind]:
        return self._pending_kind

    # ── Dispatch ──────────────────────────────────────────────

    def connect(self, connection_string: str, ssl: Optional[SslConfig] = None) -> bool:
        """Open a connection and load its tables; the value is (connection, tables)."""
        return self._dispatch(
            JobKind.CONNECT,
            lambda: self._connect_and_load(connection_string, ssl),
            None,
        )

    def _connect_and_load(self, connection_string: str, ssl: Optional[SslConfig]):
        connection = self.service.connect(connection_string, ssl=ssl)
        try:
            tables = self.service.list_tables(connection)
        except DBTermError:
            self.service.disconnect(connection)
            raise
        return connection, tables

    def load_tables(self, connection: ActiveConnection) -> bool:
        return self._dispatch(
            JobKind.LOAD_TABLES,
            lambda: self.service.list_tables(connection),
            connection,
        )

    def execute(self, connection: ActiveConnection, query: str) -> bool:
        return self._dispatch(
            JobKind.EXECUTE,
            lambda: self.service.execute(connection, query, max_rows=self.max_rows),
            connection,
        )

    def _dispatch(
        self,
        kind: JobKind,
        fn: Callable[[], Any],
        connection: Optional[ActiveConnection],
    ) -> bool:
        if self.busy:
            logger.debug(f"Refusing {kind.value}: {self._pending_kind.value} still running")
            return False
        token = next(self._tokens)
        self._pending_token = token
        self._pending_kind = kind
        worker = threading.Thread(
            target=self._run,
            args=(kind, token, fn, connection),
            name=f"dbterm-{kind.value}-{token}",
            daemon=True,
        )
        worker.start()
        logger.debug(f"Dispatched {kind.value} job #{token}")
        return True

    def _run(
        self,
        kind: JobKind,
        token: int,
        fn: Callable[[], Any],
        connection: Optional[ActiveConnection],
    ) -> None:
        try:
            outcome = JobOutcome(kind, token, value=fn(), connection=connection)
        except DBTermError as e:
            outcome = JobOutcome(kind, token, error=e, connection=connection)
        except Exception as e:
            logger.exception(f"Unexpected failure in {kind.value} job #{token}")
            wrapped = DBConnectionError(str(e)) if kind == JobKind.CONNECT else QueryError(str(e))
            outcome = JobOutcome(kind, token, error=wrapped, connection=connection)
        self._outcomes.put(outcome)

    # ── Completion ────────────────────────────────────────────

    def poll(self, timeout: float = 0.0) -> List[JobOutcome]:
        """
        Collect finished jobs. Stale outcomes (cancelled jobs) are dropped,
        and a connection opened by a cancelled connect is released.
        """
        collected: List[JobOutcome] = []
        block = timeout > 0 and self.busy
        while True:
            try:
                if block:
                    outcome = self._outcomes.get(timeout=timeout)
                    block = False
                else:
                    outcome = self._outcomes.get_nowait()
            except queue.Empty:
                break

            if outcome.token != self._pending_token:
                logger.info(f"Discarding abandoned job outcome {outcome!r}")
                if outcome.kind == JobKind.CONNECT and outcome.ok:
                    self.release(outcome.value[0])
                continue

            self._pending_token = None
            self._pending_kind = None
            collected.append(outcome)
        return collected

    def cancel(self) -> Optional[JobKind]:
        """Abandon the pending job, if any, and return its kind."""
        kind = self._pending_kind
        if kind is not None:
            logger.info(f"Cancelled {kind.value} job #{self._pending_token}")
        self._pending_token = None
        self._pending_kind = None
        return kind

    def release(self, connection: ActiveConnection) -> None:
        """Disconnect on a worker thread; never blocks the caller."""
        threading.Thread(
            target=self.service.disconnect,
            args=(connection,),
            name="dbterm-disconnect",
            daemon=True,
        ).start()
