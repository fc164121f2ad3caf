"""
Persistence layer for the game server.

Provides SQLite-based storage for committed game states and seats.
"""

from server.persistence.database import (
    Database,
    get_database,
    init_database
)
from server.persistence.models import (
    GameRecord,
    PlayerRecord,
    GameSummary
)
from server.persistence.repository import GameRepository, VersionConflictError


__all__ = [
    # Database
    "Database",
    "get_database",
    "init_database",

    # Models
    "GameRecord",
    "PlayerRecord",
    "GameSummary",

    # Repository
    "GameRepository",
    "VersionConflictError",
]
