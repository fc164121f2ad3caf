"""
Database connection management and initialization.
"""

import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager
from typing import Generator

from server.config import settings


class Database:
    """
    Thread-safe SQLite database manager.

    Each thread gets its own connection; the schema is created once per
    database file.
    """

    _local = threading.local()
    _init_lock = threading.Lock()

    def __init__(self, db_path: str | None = None):
        self.db_path = str(db_path or settings.DATABASE_PATH)
        self._ensure_directory()
        self._ensure_schema()

    def _ensure_directory(self) -> None:
        """Create database directory if it doesn't exist."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _ensure_schema(self) -> None:
        """Create any missing tables."""
        with Database._init_lock:
            with self.get_connection() as conn:
                conn.executescript(SCHEMA_SQL)

    def _connections(self) -> dict[str, sqlite3.Connection]:
        if not hasattr(Database._local, "connections"):
            Database._local.connections = {}
        return Database._local.connections

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a thread-local database connection.

        Commits when the block exits cleanly, rolls back otherwise.

        Usage:
            with db.get_connection() as conn:
                cursor = conn.execute("SELECT ...")
        """
        connections = self._connections()
        conn = connections.get(self.db_path)
        if conn is None:
            conn = self._create_connection()
            connections[self.db_path] = conn

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _create_connection(self) -> sqlite3.Connection:
        """Create a new database connection."""
        conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            timeout=30.0
        )

        conn.execute("PRAGMA foreign_keys = ON")

        # WAL lets readers proceed while another connection writes
        conn.execute("PRAGMA journal_mode = WAL")

        conn.row_factory = sqlite3.Row

        return conn

    def close_connection(self) -> None:
        """Close the current thread's connection to this database."""
        conn = self._connections().pop(self.db_path, None)
        if conn is not None:
            conn.close()

    def reset_database(self) -> None:
        """Drop and recreate all tables. USE WITH CAUTION."""
        with self.get_connection() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            tables = [row["name"] for row in cursor.fetchall()]

            for table in tables:
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.executescript(SCHEMA_SQL)


SCHEMA_SQL = """
-- Games table: one row per game, holding the latest committed state
CREATE TABLE IF NOT EXISTS games (
    id TEXT PRIMARY KEY,
    game_code TEXT NOT NULL UNIQUE,
    status TEXT NOT NULL DEFAULT 'WAITING',
    version INTEGER NOT NULL DEFAULT 1,
    state_json TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Players table: seats per game, rewritten on every save
CREATE TABLE IF NOT EXISTS players (
    id TEXT NOT NULL,
    game_id TEXT NOT NULL,
    display_name TEXT NOT NULL,
    seat INTEGER NOT NULL,
    is_host INTEGER NOT NULL DEFAULT 0,
    completed_sets INTEGER NOT NULL DEFAULT 0,
    connected INTEGER NOT NULL DEFAULT 0,

    PRIMARY KEY (game_id, id),
    FOREIGN KEY (game_id) REFERENCES games(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_players_game_id ON players(game_id);
CREATE INDEX IF NOT EXISTS idx_games_status ON games(status);
"""


# Global database instance
_db: Database | None = None


def get_database() -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db


def init_database(db_path: str | None = None) -> Database:
    """Initialize the database with optional custom path."""
    global _db
    _db = Database(db_path)
    return _db
