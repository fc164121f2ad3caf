"""
Data models for database operations.

These are simple dataclasses that map to database rows,
separate from the game engine models.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from server.game_engine.state import GameState


@dataclass
class GameRecord:
    """Database representation of a game."""
    id: str
    game_code: str
    state_json: str
    status: str = "WAITING"
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "GameRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            game_code=row["game_code"],
            state_json=row["state_json"],
            status=row["status"],
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"]
        )

    def to_state(self) -> GameState:
        """Deserialize the stored state, stamped with the row's version."""
        state = GameState.from_dict(json.loads(self.state_json))
        state.version = self.version
        return state


@dataclass
class PlayerRecord:
    """Database representation of a seat."""
    id: str
    game_id: str
    display_name: str
    seat: int
    is_host: bool = False
    completed_sets: int = 0
    connected: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PlayerRecord":
        """Create from database row."""
        return cls(
            id=row["id"],
            game_id=row["game_id"],
            display_name=row["display_name"],
            seat=row["seat"],
            is_host=bool(row["is_host"]),
            completed_sets=row["completed_sets"],
            connected=bool(row["connected"])
        )


@dataclass
class GameSummary:
    """Lightweight game info for listings."""
    id: str
    game_code: str
    status: str
    version: int
    player_count: int
    created_at: datetime | None
    updated_at: datetime | None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "game_code": self.game_code,
            "status": self.status,
            "version": self.version,
            "player_count": self.player_count,
            "created_at": str(self.created_at) if self.created_at else None,
            "updated_at": str(self.updated_at) if self.updated_at else None,
        }
