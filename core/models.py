# ============================================================
# DBTerm - Terminal Database Client
# core/models.py - Shared Data Types
# ============================================================

import uuid
from enum import Enum
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from core.errors import DBConnectionError


class Direction(str, Enum):
    """Cursor movement and grid scroll directions."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"
    LINE_START = "line_start"
    LINE_END = "line_end"


class DatabaseType(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @classmethod
    def detect(cls, url: str) -> Optional["DatabaseType"]:
        """Return the type implied by the URL scheme, or None."""
        url = url.strip()
        if url.startswith("sqlite:"):
            return cls.SQLITE
        if url.startswith(("postgres://", "postgresql://")):
            return cls.POSTGRESQL
        if url.startswith("mysql://"):
            return cls.MYSQL
        return None

    @classmethod
    def from_url(cls, url: str) -> "DatabaseType":
        db_type = cls.detect(url)
        if db_type is None:
            raise DBConnectionError("Unsupported database URL format")
        return db_type

    @property
    def display_name(self) -> str:
        return {
            DatabaseType.SQLITE: "SQLite",
            DatabaseType.POSTGRESQL: "PostgreSQL",
            DatabaseType.MYSQL: "MySQL",
        }[self]

    @property
    def default_port(self) -> Optional[int]:
        return {
            DatabaseType.SQLITE: None,
            DatabaseType.POSTGRESQL: 5432,
            DatabaseType.MYSQL: 3306,
        }[self]


class SslMode(str, Enum):
    DISABLE = "disable"
    REQUIRE = "require"
    VERIFY_CA = "verify-ca"
    VERIFY_FULL = "verify-full"

    @property
    def display_name(self) -> str:
        return {
            SslMode.DISABLE: "Disable",
            SslMode.REQUIRE: "Require",
            SslMode.VERIFY_CA: "Verify CA",
            SslMode.VERIFY_FULL: "Verify Full",
        }[self]

    @property
    def verifies_certificate(self) -> bool:
        return self in (SslMode.VERIFY_CA, SslMode.VERIFY_FULL)


class SslConfig(BaseModel):
    """TLS settings for server databases. File paths are passed to the driver as-is."""

    model_config = ConfigDict(frozen=True)

    mode: SslMode = SslMode.REQUIRE
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None


class ConnectionProfile(BaseModel):
    """A saved connection. Edits produce a new instance with the same id."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    connection_string: str
    ssl: Optional[SslConfig] = None

    @property
    def database_type(self) -> Optional[DatabaseType]:
        return DatabaseType.detect(self.connection_string)

    @property
    def uses_ssl(self) -> bool:
        return self.ssl is not None and self.ssl.mode != SslMode.DISABLE


class ColumnInfo:
    """One column of a table's schema."""

    def __init__(
        self,
        name: str,
        data_type: str,
        nullable: bool = True,
        primary_key: bool = False,
    ):
        self.name = name
        self.data_type = data_type
        self.nullable = nullable
        self.primary_key = primary_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnInfo):
            return NotImplemented
        return (self.name, self.data_type, self.nullable, self.primary_key) == (
            other.name, other.data_type, other.nullable, other.primary_key
        )

    def __repr__(self):
        return f"<ColumnInfo {self.name} {self.data_type}>"


class TableMetadata:
    """Schema of a single table. Replaced wholesale on refresh, never patched."""

    def __init__(
        self,
        table_name: str,
        columns: Sequence[ColumnInfo] = (),
        schema: Optional[str] = None,
        row_count: Optional[int] = None,
    ):
        self.table_name = table_name
        self.columns: Tuple[ColumnInfo, ...] = tuple(columns)
        self.schema = schema
        self.row_count = row_count

    @property
    def qualified_name(self) -> str:
        if self.schema and self.schema != "public":
            return f"{self.schema}.{self.table_name}"
        return self.table_name

    def __repr__(self):
        return f"<TableMetadata {self.qualified_name} columns={len(self.columns)}>"


class QueryResult:
    """Result of one query execution, as display strings.

    Immutable once built: rows and columns are stored as tuples. `truncated`
    is set when the row cap cut the result short.
    """

    def __init__(
        self,
        columns: Sequence[str] = (),
        rows: Sequence[Sequence[str]] = (),
        truncated: bool = False,
        affected_rows: Optional[int] = None,
        execution_ms: int = 0,
        query: str = "",
    ):
        self._columns: Tuple[str, ...] = tuple(columns)
        self._rows: Tuple[Tuple[str, ...], ...] = tuple(tuple(r) for r in rows)
        self._truncated = truncated
        self._affected_rows = affected_rows
        self._execution_ms = execution_ms
        self._query = query

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def rows(self) -> Tuple[Tuple[str, ...], ...]:
        return self._rows

    @property
    def truncated(self) -> bool:
        return self._truncated

    @property
    def affected_rows(self) -> Optional[int]:
        return self._affected_rows

    @property
    def execution_ms(self) -> int:
        return self._execution_ms

    @property
    def query(self) -> str:
        return self._query

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def __repr__(self):
        return (
            f"<QueryResult rows={self.row_count} cols={self.column_count} "
            f"truncated={self._truncated} time={self._execution_ms}ms>"
        )
