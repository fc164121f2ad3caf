"""
Repository layer for game persistence operations.

Stores the latest committed GameState per game and guards writes with
an optimistic version check.
"""

import json
import logging
import sqlite3

from server.game_engine.state import GameState
from server.persistence.database import Database, get_database
from server.persistence.models import GameRecord, GameSummary, PlayerRecord


logger = logging.getLogger(__name__)


class VersionConflictError(Exception):
    """The stored game moved on since it was read. Re-read and retry."""

    def __init__(self, game_id: str, expected: int, actual: int | None):
        self.game_id = game_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Game {game_id} is at version {actual}, expected {expected}"
        )


class GameRepository:
    """
    Repository for game persistence operations.

    Provides load/save of whole game states, abstracting away the
    database details.
    """

    def __init__(self, database: Database | None = None):
        self.db = database or get_database()

    # =========================================================================
    # Game State
    # =========================================================================

    def create_game(self, state: GameState) -> GameRecord:
        """
        Store a new game at version 1.

        Raises:
            sqlite3.IntegrityError: if the id or game code is already taken
        """
        state_json = json.dumps(self._serialize(state, version=1))
        with self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO games (id, game_code, status, version, state_json)
                VALUES (?, ?, ?, 1, ?)
                """,
                (state.id, state.game_code.upper(), state.status.value, state_json)
            )
            self._write_players(conn, state)

        logger.info(f"Stored new game {state.id} ({state.game_code})")
        return self.get_game(state.id)

    def load_state(self, game_id: str) -> GameState | None:
        """Load the latest committed state of a game."""
        record = self.get_game(game_id)
        return record.to_state() if record else None

    def save_state(self, state: GameState) -> int:
        """
        Commit a new state if nobody else has committed since it was read.

        The state's version must be the version it was loaded at.

        Returns:
            The new version number

        Raises:
            VersionConflictError: if the stored version differs
        """
        new_version = state.version + 1
        state_json = json.dumps(self._serialize(state, version=new_version))

        with self.db.get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE games
                SET state_json = ?,
                    status = ?,
                    version = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND version = ?
                """,
                (state_json, state.status.value, new_version, state.id, state.version)
            )

            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT version FROM games WHERE id = ?",
                    (state.id,)
                ).fetchone()
                actual = row["version"] if row else None
                raise VersionConflictError(state.id, state.version, actual)

            self._write_players(conn, state)

        return new_version

    def _serialize(self, state: GameState, version: int) -> dict:
        data = state.to_dict()
        data["version"] = version
        return data

    def _write_players(self, conn: sqlite3.Connection, state: GameState) -> None:
        """Upsert seat rows and drop ids that are no longer seated (rejoins)."""
        for seat, player in enumerate(state.players.values()):
            conn.execute(
                """
                INSERT INTO players (id, game_id, display_name, seat, is_host, completed_sets)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(game_id, id) DO UPDATE SET
                    display_name = excluded.display_name,
                    seat = excluded.seat,
                    is_host = excluded.is_host,
                    completed_sets = excluded.completed_sets
                """,
                (
                    player.id,
                    state.id,
                    player.display_name,
                    seat,
                    int(player.is_host),
                    player.completed_sets
                )
            )

        seated = list(state.players)
        placeholders = ", ".join("?" for _ in seated) or "''"
        conn.execute(
            f"DELETE FROM players WHERE game_id = ? AND id NOT IN ({placeholders})",
            (state.id, *seated)
        )

    # =========================================================================
    # Game Queries
    # =========================================================================

    def get_game(self, game_id: str) -> GameRecord | None:
        """Get a game by ID."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM games WHERE id = ?",
                (game_id,)
            )
            row = cursor.fetchone()

            if row:
                return GameRecord.from_row(dict(row))
            return None

    def find_game_by_code(self, game_code: str) -> GameRecord | None:
        """Get a game by its join code (case-insensitive)."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM games WHERE game_code = ?",
                (game_code.strip().upper(),)
            )
            row = cursor.fetchone()

            if row:
                return GameRecord.from_row(dict(row))
            return None

    def delete_game(self, game_id: str) -> bool:
        """Delete a game and its seats (cascades)."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM games WHERE id = ?",
                (game_id,)
            )
            return cursor.rowcount > 0

    def list_games(
        self,
        status: str | None = None,
        limit: int = 50,
        offset: int = 0
    ) -> list[GameSummary]:
        """List games with optional status filter, most recently updated first."""
        query = """
            SELECT g.id, g.game_code, g.status, g.version, g.created_at, g.updated_at,
                   COUNT(p.id) as player_count
            FROM games g
            LEFT JOIN players p ON g.id = p.game_id
            {where}
            GROUP BY g.id
            ORDER BY g.updated_at DESC, g.rowid DESC
            LIMIT ? OFFSET ?
        """
        with self.db.get_connection() as conn:
            if status:
                cursor = conn.execute(
                    query.format(where="WHERE g.status = ?"),
                    (status, limit, offset)
                )
            else:
                cursor = conn.execute(
                    query.format(where=""),
                    (limit, offset)
                )

            return [
                GameSummary(
                    id=row["id"],
                    game_code=row["game_code"],
                    status=row["status"],
                    version=row["version"],
                    player_count=row["player_count"],
                    created_at=row["created_at"],
                    updated_at=row["updated_at"]
                )
                for row in cursor.fetchall()
            ]

    # =========================================================================
    # Seats
    # =========================================================================

    def get_players_for_game(self, game_id: str) -> list[PlayerRecord]:
        """Get all seats in a game, in seat order."""
        with self.db.get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM players WHERE game_id = ? ORDER BY seat",
                (game_id,)
            )
            return [PlayerRecord.from_row(dict(row)) for row in cursor.fetchall()]

    def update_player_connection(self, game_id: str, player_id: str, connected: bool) -> None:
        """Update only the connection status of a seat."""
        with self.db.get_connection() as conn:
            conn.execute(
                "UPDATE players SET connected = ? WHERE game_id = ? AND id = ?",
                (int(connected), game_id, player_id)
            )
