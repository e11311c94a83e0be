# ============================================================
# DBTerm - Terminal Database Client
# core/database.py - Database Connection & Query Service
# ============================================================

import sqlite3
import threading
import time
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import unquote, urlsplit

import mysql.connector
from mysql.connector import Error as MySQLError
import psycopg2
from loguru import logger

from core.errors import DBConnectionError, QueryError
from core.models import ColumnInfo, DatabaseType, QueryResult, SslConfig, SslMode, TableMetadata

SQLITE_MEMORY = ":memory:"

PG_TABLES_SQL = """
    SELECT schemaname, tablename FROM pg_tables
    WHERE schemaname NOT IN ('information_schema', 'pg_catalog')
    ORDER BY schemaname, tablename
"""

PG_COLUMNS_SQL = """
    SELECT c.column_name, c.data_type, c.is_nullable,
           EXISTS (
               SELECT 1
               FROM information_schema.table_constraints tc
               JOIN information_schema.key_column_usage kcu
                 ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
               WHERE tc.constraint_type = 'PRIMARY KEY'
                 AND tc.table_schema = c.table_schema
                 AND tc.table_name = c.table_name
                 AND kcu.column_name = c.column_name
           ) AS is_primary_key
    FROM information_schema.columns c
    WHERE c.table_schema = %s AND c.table_name = %s
    ORDER BY c.ordinal_position
"""


def format_value(value: Any) -> str:
    """Render one database value as the string shown in the grid."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def postgres_ssl_options(ssl: Optional[SslConfig]) -> Dict[str, str]:
    """libpq keyword arguments for psycopg2.connect."""
    if ssl is None:
        return {}
    options = {"sslmode": ssl.mode.value}
    if ssl.ca_file:
        options["sslrootcert"] = ssl.ca_file
    if ssl.cert_file:
        options["sslcert"] = ssl.cert_file
    if ssl.key_file:
        options["sslkey"] = ssl.key_file
    return options


def mysql_ssl_options(ssl: Optional[SslConfig]) -> Dict[str, Any]:
    """mysql.connector.connect arguments for the SSL settings."""
    if ssl is None:
        return {}
    if ssl.mode == SslMode.DISABLE:
        return {"ssl_disabled": True}
    options: Dict[str, Any] = {"ssl_disabled": False}
    if ssl.ca_file:
        options["ssl_ca"] = ssl.ca_file
    if ssl.cert_file:
        options["ssl_cert"] = ssl.cert_file
    if ssl.key_file:
        options["ssl_key"] = ssl.key_file
    if ssl.mode.verifies_certificate:
        options["ssl_verify_cert"] = True
    if ssl.mode == SslMode.VERIFY_FULL:
        options["ssl_verify_identity"] = True
    return options


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return format_value(value)


def _quote_identifier(name: str, quote: str = '"') -> str:
    return quote + name.replace(quote, quote * 2) + quote


class ActiveConnection:
    """
    Handle for one open database connection.

    The lock serialises use of the underlying DB-API connection; the
    coordinator runs one job at a time, but a disconnect may arrive from
    another worker.
    """

    def __init__(self, db_type: DatabaseType, raw: Any, label: str):
        self.db_type = db_type
        self.raw = raw
        self.label = label
        self.lock = threading.Lock()
        self.closed = False

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<ActiveConnection {self.db_type.value} {self.label} {state}>"


class DatabaseService:
    """
    Opens connections by URL scheme and runs schema and query requests.

    Driver errors never escape: they are wrapped into DBConnectionError when
    connecting and QueryError afterwards.
    """

    def __init__(self, connect_timeout: int = 30):
        self.connect_timeout = connect_timeout

    # ── Connection Management ─────────────────────────────────

    def connect(self, connection_string: str, ssl: Optional[SslConfig] = None) -> ActiveConnection:
        """Open a connection; `ssl` is ignored for SQLite."""
        db_type = DatabaseType.from_url(connection_string)
        try:
            if db_type == DatabaseType.SQLITE:
                conn = self._connect_sqlite(connection_string)
            elif db_type == DatabaseType.POSTGRESQL:
                conn = self._connect_postgres(connection_string, ssl)
            else:
                conn = self._connect_mysql(connection_string, ssl)
        except (sqlite3.Error, psycopg2.Error, MySQLError, ValueError) as e:
            logger.error(f"{db_type.display_name} connection failed: {e}")
            raise DBConnectionError(str(e)) from e
        logger.info(f"Connected to {conn.label}")
        return conn

    def _connect_sqlite(self, url: str) -> ActiveConnection:
        path = url[len("sqlite:"):].split("?", 1)[0]
        options = url.split("?", 1)[1] if "?" in url else ""
        if path.startswith("//"):
            path = path[2:]
        if path in ("", SQLITE_MEMORY, "memory:"):
            path = SQLITE_MEMORY
        elif "mode=rwc" not in options and not Path(path).exists():
            raise DBConnectionError(f"unable to open database file: {path}")

        raw = sqlite3.connect(
            path,
            check_same_thread=False,
            isolation_level=None,
            timeout=self.connect_timeout,
        )
        return ActiveConnection(DatabaseType.SQLITE, raw, f"sqlite:{path}")

    def _connect_postgres(self, url: str, ssl: Optional[SslConfig] = None) -> ActiveConnection:
        raw = psycopg2.connect(
            url, connect_timeout=self.connect_timeout, **postgres_ssl_options(ssl)
        )
        raw.autocommit = True
        parts = urlsplit(url)
        return ActiveConnection(
            DatabaseType.POSTGRESQL, raw, f"postgresql@{parts.hostname}{parts.path}"
        )

    def _connect_mysql(self, url: str, ssl: Optional[SslConfig] = None) -> ActiveConnection:
        parts = urlsplit(url)
        params = {
            "host": parts.hostname or "localhost",
            "port": parts.port or DatabaseType.MYSQL.default_port,
            "user": unquote(parts.username or ""),
            "password": unquote(parts.password or ""),
            "autocommit": True,
            "connection_timeout": self.connect_timeout,
        }
        database = parts.path.lstrip("/")
        if database:
            params["database"] = database
        params.update(mysql_ssl_options(ssl))
        raw = mysql.connector.connect(**params)
        return ActiveConnection(
            DatabaseType.MYSQL, raw, f"mysql@{params['host']}:{params['port']}/{database}"
        )

    def disconnect(self, connection: ActiveConnection) -> None:
        """Close the connection. Best-effort: failures are logged, not raised."""
        if connection.closed:
            return
        try:
            with connection.lock:
                connection.raw.close()
            logger.info(f"Disconnected from {connection.label}")
        except Exception as e:
            logger.warning(f"Error during disconnect: {e}")
        finally:
            connection.closed = True

    # ── Query Execution ───────────────────────────────────────

    def execute(
        self,
        connection: ActiveConnection,
        query: str,
        max_rows: Optional[int] = None,
    ) -> QueryResult:
        """
        Execute a query string as-is and return its result.

        At most `max_rows` rows are fetched; if more exist the result is
        flagged as truncated.
        """
        start_time = time.perf_counter()
        with connection.lock:
            self._ensure_open(connection)
            cursor = self._cursor(connection)
            try:
                cursor.execute(query)
                if cursor.description:
                    columns = [str(desc[0]) for desc in cursor.description]
                    raw_rows, truncated = self._fetch_capped(cursor, max_rows)
                    rows = [tuple(format_value(v) for v in row) for row in raw_rows]
                    affected = None
                else:
                    columns, rows, truncated = [], [], False
                    affected = cursor.rowcount if cursor.rowcount >= 0 else 0
            except (sqlite3.Error, psycopg2.Error, MySQLError) as e:
                logger.error(f"Query failed: {e}\nQuery: {query}")
                raise QueryError(str(e)) from e
            finally:
                self._close_cursor(cursor)

        elapsed = int((time.perf_counter() - start_time) * 1000)
        result = QueryResult(
            columns=columns,
            rows=rows,
            truncated=truncated,
            affected_rows=affected,
            execution_ms=elapsed,
            query=query,
        )
        logger.debug(f"Executed query: {result!r}")
        return result

    @staticmethod
    def _fetch_capped(cursor, max_rows: Optional[int]) -> Tuple[List[Sequence[Any]], bool]:
        if max_rows is None:
            return list(cursor.fetchall()), False
        rows = list(cursor.fetchmany(max_rows + 1))
        if len(rows) > max_rows:
            return rows[:max_rows], True
        return rows, False

    def _cursor(self, connection: ActiveConnection):
        if connection.db_type == DatabaseType.MYSQL:
            return connection.raw.cursor(buffered=True)
        return connection.raw.cursor()

    @staticmethod
    def _close_cursor(cursor) -> None:
        try:
            cursor.close()
        except Exception as e:
            logger.debug(f"Cursor close failed: {e}")

    @staticmethod
    def _ensure_open(connection: ActiveConnection) -> None:
        if connection.closed:
            raise QueryError(f"Connection to {connection.label} is closed")

    def _fetch_all(self, connection: ActiveConnection, sql: str, params: Sequence[Any] = ()):
        cursor = self._cursor(connection)
        try:
            if params:
                cursor.execute(sql, tuple(params))
            else:
                cursor.execute(sql)
            return list(cursor.fetchall())
        finally:
            self._close_cursor(cursor)

    # ── Schema Introspection ──────────────────────────────────

    def list_tables(self, connection: ActiveConnection) -> List[TableMetadata]:
        """Return every user table with its columns and row count."""
        with connection.lock:
            self._ensure_open(connection)
            try:
                if connection.db_type == DatabaseType.SQLITE:
                    tables = self._sqlite_tables(connection)
                elif connection.db_type == DatabaseType.POSTGRESQL:
                    tables = self._postgres_tables(connection)
                else:
                    tables = self._mysql_tables(connection)
            except (sqlite3.Error, psycopg2.Error, MySQLError) as e:
                logger.error(f"Failed to load tables: {e}")
                raise QueryError(f"Failed to load tables: {e}") from e
        logger.info(f"Loaded {len(tables)} tables from {connection.label}")
        return tables

    def _count_rows(self, connection: ActiveConnection, qualified: str) -> Optional[int]:
        try:
            rows = self._fetch_all(connection, f"SELECT COUNT(*) FROM {qualified}")
            return int(rows[0][0]) if rows else None
        except (sqlite3.Error, psycopg2.Error, MySQLError) as e:
            logger.debug(f"Row count failed for {qualified}: {e}")
            return None

    def _sqlite_tables(self, connection: ActiveConnection) -> List[TableMetadata]:
        names = self._fetch_all(
            connection,
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name",
        )
        tables = []
        for (name,) in names:
            quoted = _quote_identifier(name)
            info = self._fetch_all(connection, f"PRAGMA table_info({quoted})")
            # PRAGMA table_info: cid, name, type, notnull, dflt_value, pk
            columns = [
                ColumnInfo(
                    name=row[1],
                    data_type=row[2] or "",
                    nullable=not row[3],
                    primary_key=row[5] > 0,
                )
                for row in info
            ]
            tables.append(
                TableMetadata(name, columns, row_count=self._count_rows(connection, quoted))
            )
        return tables

    def _postgres_tables(self, connection: ActiveConnection) -> List[TableMetadata]:
        tables = []
        for schema, name in self._fetch_all(connection, PG_TABLES_SQL):
            info = self._fetch_all(connection, PG_COLUMNS_SQL, (schema, name))
            columns = [
                ColumnInfo(
                    name=row[0],
                    data_type=row[1],
                    nullable=row[2] == "YES",
                    primary_key=bool(row[3]),
                )
                for row in info
            ]
            qualified = f"{_quote_identifier(schema)}.{_quote_identifier(name)}"
            tables.append(
                TableMetadata(
                    name,
                    columns,
                    schema=schema,
                    row_count=self._count_rows(connection, qualified),
                )
            )
        return tables

    def _mysql_tables(self, connection: ActiveConnection) -> List[TableMetadata]:
        tables = []
        for row in self._fetch_all(connection, "SHOW TABLES"):
            name = _as_text(row[0])
            quoted = _quote_identifier(name, "`")
            # DESCRIBE: Field, Type, Null, Key, Default, Extra
            info = self._fetch_all(connection, f"DESCRIBE {quoted}")
            columns = [
                ColumnInfo(
                    name=_as_text(col[0]),
                    data_type=_as_text(col[1]),
                    nullable=_as_text(col[2]) == "YES",
                    primary_key=_as_text(col[3]) == "PRI",
                )
                for col in info
            ]
            tables.append(
                TableMetadata(name, columns, row_count=self._count_rows(connection, quoted))
            )
        return tables
