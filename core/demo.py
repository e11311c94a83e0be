# ============================================================
# DBTerm - Terminal Database Client
# core/demo.py - Demo SQLite Database Generator
# ============================================================

import sqlite3
from pathlib import Path

from loguru import logger

from core.errors import DBConnectionError

DEMO_PROFILE_NAME = "Demo SQLite Database"

DEMO_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        age INTEGER,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        product_name TEXT NOT NULL,
        quantity INTEGER NOT NULL DEFAULT 1,
        price DECIMAL(10,2) NOT NULL,
        order_date DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        description TEXT
    )
    """,
]

DEMO_USERS = [
    (1, "John Doe", "john@example.com", 30),
    (2, "Jane Smith", "jane@example.com", 25),
    (3, "Bob Johnson", "bob@example.com", 35),
    (4, "Alice Brown", "alice@example.com", 28),
    (5, "Charlie Wilson", "charlie@example.com", 42),
]

DEMO_ORDERS = [
    (1, 1, "Laptop", 1, 999.99),
    (2, 1, "Mouse", 2, 25.50),
    (3, 2, "Keyboard", 1, 75.00),
    (4, 3, "Monitor", 1, 299.99),
    (5, 2, "Webcam", 1, 89.99),
    (6, 4, "Headphones", 1, 149.99),
    (7, 5, "Tablet", 1, 399.99),
    (8, 3, "Phone", 1, 699.99),
]

DEMO_CATEGORIES = [
    (1, "Electronics", "Electronic devices and gadgets"),
    (2, "Computers", "Computer hardware and accessories"),
    (3, "Audio", "Audio equipment and accessories"),
    (4, "Mobile", "Mobile phones and accessories"),
]


def demo_connection_string(path: Path) -> str:
    return f"sqlite:{path}"


def create_demo_database(path: Path) -> str:
    """
    Create (or refresh) the demo database at `path`.

    Running it again is safe: tables are created if missing and the sample
    rows are replaced by id. Returns the connection string for the file.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path))
        try:
            with conn:
                for statement in DEMO_SCHEMA:
                    conn.execute(statement)
                conn.executemany(
                    "INSERT OR REPLACE INTO users (id, name, email, age) VALUES (?, ?, ?, ?)",
                    DEMO_USERS,
                )
                conn.executemany(
                    "INSERT OR REPLACE INTO orders (id, user_id, product_name, quantity, price) "
                    "VALUES (?, ?, ?, ?, ?)",
                    DEMO_ORDERS,
                )
                conn.executemany(
                    "INSERT OR REPLACE INTO categories (id, name, description) VALUES (?, ?, ?)",
                    DEMO_CATEGORIES,
                )
        finally:
            conn.close()
    except (sqlite3.Error, OSError) as e:
        logger.error(f"Failed to create demo database at {path}: {e}")
        raise DBConnectionError(f"Failed to create demo database: {e}") from e

    logger.info(f"Demo database created at {path}")
    return demo_connection_string(path)
