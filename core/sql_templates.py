# ============================================================
# DBTerm - Terminal Database Client
# core/sql_templates.py - Statement Templates for the Editor
# ============================================================
#
# Plain string formatting only. Nothing here parses or validates SQL.

from typing import Optional

from core.models import TableMetadata

SAMPLE_LIMIT = 100


def quick_select(table: TableMetadata) -> str:
    """The statement pre-filled by the table browser's quick-SELECT."""
    return f"SELECT * FROM {table.qualified_name}"


def select_statement(table: TableMetadata, limit: Optional[int] = SAMPLE_LIMIT) -> str:
    limit_clause = f" LIMIT {limit}" if limit else ""
    return f"SELECT * FROM {table.qualified_name}{limit_clause};"


def insert_statement(table: TableMetadata) -> str:
    columns = [c for c in table.columns if not c.primary_key] or list(table.columns)
    if not columns:
        return f"INSERT INTO {table.qualified_name} VALUES ();"
    names = ", ".join(c.name for c in columns)
    values = ", ".join(f"'value{i}'" for i in range(1, len(columns) + 1))
    return f"INSERT INTO {table.qualified_name} ({names}) VALUES ({values});"


def update_statement(table: TableMetadata) -> str:
    column = next((c.name for c in table.columns if not c.primary_key), "column1")
    return f"UPDATE {table.qualified_name} SET {column} = 'new_value' WHERE <condition>;"


def delete_statement(table: TableMetadata) -> str:
    return f"DELETE FROM {table.qualified_name} WHERE <condition>;"


def create_table_statement(table: TableMetadata) -> str:
    """DDL rebuilt from the introspected columns; defaults and indexes are not known."""
    keys = [c.name for c in table.columns if c.primary_key]
    definitions = []
    for column in table.columns:
        definition = f"{column.name} {column.data_type}".rstrip()
        if not column.nullable:
            definition += " NOT NULL"
        if column.primary_key and len(keys) == 1:
            definition += " PRIMARY KEY"
        definitions.append(definition)
    if len(keys) > 1:
        definitions.append(f"PRIMARY KEY ({', '.join(keys)})")
    body = ",\n  ".join(definitions)
    return f"CREATE TABLE {table.qualified_name} (\n  {body}\n);"


def truncate_statement(table: TableMetadata) -> str:
    return f"TRUNCATE TABLE {table.qualified_name};"


TEMPLATES = {
    "select": select_statement,
    "insert": insert_statement,
    "update": update_statement,
    "delete": delete_statement,
    "create_table": create_table_statement,
    "truncate": truncate_statement,
}


def render_template(name: str, table: TableMetadata) -> str:
    try:
        builder = TEMPLATES[name]
    except KeyError:
        raise ValueError(f"Unknown template: {name}") from None
    return builder(table)
