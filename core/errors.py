# ============================================================
# DBTerm - Terminal Database Client
# core/errors.py - Error Taxonomy
# ============================================================


class DBTermError(Exception):
    """Base exception for the terminal client."""


class DBConnectionError(DBTermError):
    """Bad connection string, unreachable server or authentication failure."""


class QueryError(DBTermError):
    """Malformed SQL or an execution-time database error."""


class ProfileStoreError(DBTermError):
    """Connection profiles could not be read from or written to disk."""


class InputError(DBTermError):
    """A key reached a handler that has no meaning for it.

    The router is total, so this is only raised for programming errors.
    """
