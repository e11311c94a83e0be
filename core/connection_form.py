# ============================================================
# DBTerm - Terminal Database Client
# core/connection_form.py - New / Edit Connection Form State
# ============================================================

from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import quote

from core.errors import DBConnectionError
from core.models import ConnectionProfile, DatabaseType, SslConfig, SslMode


class FormField(str, Enum):
    NAME = "name"
    CONNECTION_STRING = "connection_string"
    DATABASE_TYPE = "database_type"
    HOST = "host"
    PORT = "port"
    USERNAME = "username"
    PASSWORD = "password"
    DATABASE = "database"
    USE_SSL = "use_ssl"
    SSL_MODE = "ssl_mode"
    SSL_CERT_FILE = "ssl_cert_file"
    SSL_KEY_FILE = "ssl_key_file"
    SSL_CA_FILE = "ssl_ca_file"

    @property
    def label(self) -> str:
        return FIELD_LABELS[self]


FIELD_LABELS = {
    FormField.NAME: "Name",
    FormField.CONNECTION_STRING: "Connection String",
    FormField.DATABASE_TYPE: "Database Type",
    FormField.HOST: "Host",
    FormField.PORT: "Port",
    FormField.USERNAME: "Username",
    FormField.PASSWORD: "Password",
    FormField.DATABASE: "Database",
    FormField.USE_SSL: "Use SSL",
    FormField.SSL_MODE: "SSL Mode",
    FormField.SSL_CERT_FILE: "SSL Cert File",
    FormField.SSL_KEY_FILE: "SSL Key File",
    FormField.SSL_CA_FILE: "SSL CA File",
}

FIELD_ORDER = list(FormField)
TOGGLE_FIELDS = {FormField.DATABASE_TYPE, FormField.USE_SSL, FormField.SSL_MODE}
# Shown only while Use SSL is on
SSL_DETAIL_FIELDS = [
    FormField.SSL_MODE,
    FormField.SSL_CERT_FILE,
    FormField.SSL_KEY_FILE,
    FormField.SSL_CA_FILE,
]
TYPE_CYCLE = [DatabaseType.SQLITE, DatabaseType.POSTGRESQL, DatabaseType.MYSQL]
SSL_MODE_CYCLE = list(SslMode)


class ConnectionForm:
    """
    Editable fields for a connection profile.

    Either the connection string is typed directly, or it is assembled from
    the individual fields when the connection string is left blank. The SSL
    settings travel next to the URL on the profile.
    """

    def __init__(self, profile: Optional[ConnectionProfile] = None):
        self.current_field = FormField.NAME
        self.database_type = DatabaseType.SQLITE
        self.use_ssl = False
        self.ssl_mode = SslMode.REQUIRE
        self.values: Dict[FormField, str] = {
            f: "" for f in FIELD_ORDER if f not in TOGGLE_FIELDS
        }
        self.editing_id: Optional[str] = None
        if profile is not None:
            self.editing_id = profile.id
            self.values[FormField.NAME] = profile.name
            self.values[FormField.CONNECTION_STRING] = profile.connection_string
            self.database_type = profile.database_type or DatabaseType.SQLITE
            if profile.ssl is not None:
                self.use_ssl = True
                self.ssl_mode = profile.ssl.mode
                self.values[FormField.SSL_CERT_FILE] = profile.ssl.cert_file or ""
                self.values[FormField.SSL_KEY_FILE] = profile.ssl.key_file or ""
                self.values[FormField.SSL_CA_FILE] = profile.ssl.ca_file or ""

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    # ── Field Navigation ──────────────────────────────────────

    def visible_fields(self) -> List[FormField]:
        if self.use_ssl:
            return list(FIELD_ORDER)
        return [f for f in FIELD_ORDER if f not in SSL_DETAIL_FIELDS]

    def next_field(self) -> None:
        fields = self.visible_fields()
        i = fields.index(self.current_field)
        self.current_field = fields[(i + 1) % len(fields)]

    def previous_field(self) -> None:
        fields = self.visible_fields()
        i = fields.index(self.current_field)
        self.current_field = fields[(i - 1) % len(fields)]

    def is_toggle_field(self) -> bool:
        return self.current_field in TOGGLE_FIELDS

    # ── Editing ───────────────────────────────────────────────

    def value(self, field: FormField) -> str:
        if field == FormField.DATABASE_TYPE:
            return self.database_type.display_name
        if field == FormField.USE_SSL:
            return "Yes" if self.use_ssl else "No"
        if field == FormField.SSL_MODE:
            return self.ssl_mode.display_name
        return self.values[field]

    def input_char(self, c: str) -> None:
        if self.is_toggle_field():
            if c == " ":
                self.toggle_current()
            return
        if self.current_field == FormField.PORT and not c.isdigit():
            return
        self.values[self.current_field] += c

    def backspace(self) -> None:
        if not self.is_toggle_field():
            self.values[self.current_field] = self.values[self.current_field][:-1]

    def toggle_current(self) -> None:
        if self.current_field == FormField.DATABASE_TYPE:
            self.cycle_database_type()
        elif self.current_field == FormField.USE_SSL:
            self.toggle_ssl()
        elif self.current_field == FormField.SSL_MODE:
            self.cycle_ssl_mode()

    def cycle_database_type(self) -> None:
        i = TYPE_CYCLE.index(self.database_type)
        self.database_type = TYPE_CYCLE[(i + 1) % len(TYPE_CYCLE)]

    def toggle_ssl(self) -> None:
        """Turning SSL off forgets the certificate paths."""
        self.use_ssl = not self.use_ssl
        if not self.use_ssl:
            for field in SSL_DETAIL_FIELDS:
                if field in self.values:
                    self.values[field] = ""

    def cycle_ssl_mode(self) -> None:
        i = SSL_MODE_CYCLE.index(self.ssl_mode)
        self.ssl_mode = SSL_MODE_CYCLE[(i + 1) % len(SSL_MODE_CYCLE)]

    # ── Building the Profile ──────────────────────────────────

    def build_connection_string(self) -> Optional[str]:
        explicit = self.values[FormField.CONNECTION_STRING].strip()
        if explicit:
            return explicit

        database = self.values[FormField.DATABASE].strip()
        if self.database_type == DatabaseType.SQLITE:
            return f"sqlite:{database}" if database else None

        host = self.values[FormField.HOST].strip()
        if not host:
            return None
        port = self.values[FormField.PORT].strip() or str(self.database_type.default_port)
        user = quote(self.values[FormField.USERNAME].strip(), safe="")
        password = quote(self.values[FormField.PASSWORD], safe="")
        credentials = ""
        if user:
            credentials = f"{user}:{password}@" if password else f"{user}@"
        return f"{self.database_type.value}://{credentials}{host}:{port}/{database}"

    def build_ssl_config(self) -> Optional[SslConfig]:
        if not self.use_ssl:
            return None
        return SslConfig(
            mode=self.ssl_mode,
            cert_file=self.values[FormField.SSL_CERT_FILE].strip() or None,
            key_file=self.values[FormField.SSL_KEY_FILE].strip() or None,
            ca_file=self.values[FormField.SSL_CA_FILE].strip() or None,
        )

    def to_profile(self) -> ConnectionProfile:
        """Validate the form and build the profile it describes."""
        name = self.values[FormField.NAME].strip()
        if not name:
            raise DBConnectionError("Connection name is required")
        connection_string = self.build_connection_string()
        if not connection_string:
            raise DBConnectionError(
                "Provide a connection string or fill in the individual fields "
                "(Host is required for server databases)"
            )
        db_type = DatabaseType.from_url(connection_string)
        ssl = self.build_ssl_config()
        if ssl is not None and db_type == DatabaseType.SQLITE:
            raise DBConnectionError("SSL applies to PostgreSQL and MySQL only")
        if self.editing_id:
            return ConnectionProfile(
                id=self.editing_id, name=name, connection_string=connection_string, ssl=ssl
            )
        return ConnectionProfile(name=name, connection_string=connection_string, ssl=ssl)
