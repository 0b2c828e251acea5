"""Database connection helpers and schema management."""

from __future__ import annotations

import sqlite3

from .config import DB_PATH


class DatabaseManager:
    """Manage SQLite connections and schema lifecycle for the application."""

    def __init__(self, db_path: str):
        """Store the initial database path."""
        self._db_path = db_path

    def set_path(self, db_path: str) -> None:
        """Update the database path (used by tests to point to temporary files)."""
        self._db_path = db_path

    def connect(self) -> sqlite3.Connection:
        """Create a new SQLite connection with foreign keys enforced."""
        conn_obj = sqlite3.connect(self._db_path)
        conn_obj.row_factory = sqlite3.Row
        conn_obj.execute("PRAGMA foreign_keys = ON;")
        return conn_obj

    def initialize(self) -> None:
        """Ensure all tables, columns, and indexes required by the app are present."""
        with self.connect() as connection:
            self._ensure_users_table(connection)
            self._ensure_user_plan_column(connection)
            self._ensure_revoked_tokens_table(connection)
            self._ensure_decks_table(connection)
            self._ensure_cards_table(connection)
            self._ensure_indexes(connection)

    @staticmethod
    def _column_exists(conn_obj: sqlite3.Connection, table: str, column: str) -> bool:
        """Return True when the given column exists in the specified table."""
        rows = conn_obj.execute(f"PRAGMA table_info({table})").fetchall()
        return any(row[1] == column for row in rows)

    @staticmethod
    def _ensure_users_table(conn_obj: sqlite3.Connection) -> None:
        """Create the users table if it does not exist."""
        conn_obj.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                public_id TEXT NOT NULL UNIQUE,
                email TEXT NOT NULL UNIQUE,
                name TEXT,
                google_id TEXT UNIQUE,
                plan TEXT NOT NULL DEFAULT 'free',
                created_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _ensure_user_plan_column(conn_obj: sqlite3.Connection) -> None:
        """Add the billing plan column to user tables created before plans existed."""
        if not DatabaseManager._column_exists(conn_obj, "users", "plan"):
            conn_obj.execute("ALTER TABLE users ADD COLUMN plan TEXT NOT NULL DEFAULT 'free'")

    @staticmethod
    def _ensure_revoked_tokens_table(conn_obj: sqlite3.Connection) -> None:
        """Create the revoked_tokens table if it does not exist."""
        conn_obj.execute(
            """
            CREATE TABLE IF NOT EXISTS revoked_tokens (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                token TEXT NOT NULL UNIQUE,
                revoked_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _ensure_decks_table(conn_obj: sqlite3.Connection) -> None:
        """Create the decks table; each deck belongs to one user."""
        conn_obj.execute(
            """
            CREATE TABLE IF NOT EXISTS decks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                public_id TEXT NOT NULL UNIQUE,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _ensure_cards_table(conn_obj: sqlite3.Connection) -> None:
        """Create the cards table; cards are removed together with their deck."""
        conn_obj.execute(
            """
            CREATE TABLE IF NOT EXISTS cards (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                public_id TEXT NOT NULL UNIQUE,
                deck_id TEXT NOT NULL REFERENCES decks(public_id) ON DELETE CASCADE,
                front TEXT NOT NULL,
                back TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

    @staticmethod
    def _ensure_indexes(conn_obj: sqlite3.Connection) -> None:
        """Create the indexes used by ownership and per-deck lookups."""
        conn_obj.execute("CREATE INDEX IF NOT EXISTS idx_decks_user_id ON decks(user_id);")
        conn_obj.execute("CREATE INDEX IF NOT EXISTS idx_cards_deck_id ON cards(deck_id);")
        conn_obj.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_decks_public_id ON decks(public_id);"
        )
        conn_obj.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_cards_public_id ON cards(public_id);")


db_manager = DatabaseManager(DB_PATH)
