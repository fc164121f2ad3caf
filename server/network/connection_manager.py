"""
Connection manager for WebSocket clients.

Tracks connected clients, their player IDs, and game associations.
Handles sending messages to individual players or broadcasting to games.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from websockets.asyncio.server import ServerConnection

from shared.protocol import Message


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PlayerConnection:
    """Tracks a connected player's state."""
    player_id: str
    player_name: str
    websocket: ServerConnection
    game_id: str | None = None
    is_host: bool = False
    connected_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)

    def update_activity(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = _now()


class ConnectionManager:
    """
    Manages WebSocket connections and player-to-game mappings.

    Provides methods for:
    - Tracking player connections
    - Associating players with games
    - Moving a seat to a new player ID after a rejoin
    - Sending messages to specific players
    - Broadcasting messages to all players in a game
    - Handling disconnection and reconnection
    """

    def __init__(self):
        # websocket -> PlayerConnection
        self._connections: dict[ServerConnection, PlayerConnection] = {}

        # player_id -> websocket (for quick lookup)
        self._player_to_socket: dict[str, ServerConnection] = {}

        # game_id -> set of player_ids
        self._game_players: dict[str, set[str]] = {}

        # Disconnected players awaiting reconnection: player_id -> PlayerConnection
        self._disconnected_players: dict[str, PlayerConnection] = {}

        self._lock = asyncio.Lock()

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(
        self,
        websocket: ServerConnection,
        player_id: str,
        player_name: str
    ) -> PlayerConnection:
        """
        Register a new player connection.

        If the player was previously disconnected, restores their game association.

        Returns:
            The PlayerConnection object
        """
        async with self._lock:
            if player_id in self._disconnected_players:
                connection = self._disconnected_players.pop(player_id)
                connection.websocket = websocket
                connection.connected_at = _now()
                connection.update_activity()
                logger.info(f"Player {player_name} ({player_id}) reconnected")
            else:
                connection = PlayerConnection(
                    player_id=player_id,
                    player_name=player_name,
                    websocket=websocket,
                )
                logger.info(f"Player {player_name} ({player_id}) connected")

            self._connections[websocket] = connection
            self._player_to_socket[player_id] = websocket

            return connection

    async def disconnect(self, websocket: ServerConnection) -> PlayerConnection | None:
        """
        Handle a player disconnection.

        The player's game association is preserved for potential reconnection.

        Returns:
            The PlayerConnection if found, None otherwise
        """
        async with self._lock:
            connection = self._connections.pop(websocket, None)

            if connection:
                if self._player_to_socket.get(connection.player_id) is websocket:
                    del self._player_to_socket[connection.player_id]

                if connection.game_id:
                    self._disconnected_players[connection.player_id] = connection
                    logger.info(
                        f"Player {connection.player_name} ({connection.player_id}) "
                        f"disconnected from game {connection.game_id}, awaiting reconnection"
                    )
                else:
                    logger.info(
                        f"Player {connection.player_name} ({connection.player_id}) disconnected"
                    )

            return connection

    # =========================================================================
    # Game Association
    # =========================================================================

    async def join_game(self, player_id: str, game_id: str, is_host: bool = False) -> bool:
        """
        Associate a player with a game.

        Returns:
            True if successful, False if player not connected
        """
        async with self._lock:
            websocket = self._player_to_socket.get(player_id)
            connection = self._connections.get(websocket) if websocket else None
            if not connection:
                return False

            if connection.game_id and connection.game_id != game_id:
                self._remove_player_from_game_internal(player_id, connection.game_id)

            connection.game_id = game_id
            connection.is_host = is_host
            self._game_players.setdefault(game_id, set()).add(player_id)

            logger.info(
                f"Player {connection.player_name} ({player_id}) joined game {game_id}"
                f"{' as host' if is_host else ''}"
            )

            return True

    async def rebind_player(self, old_player_id: str, new_player_id: str, game_id: str) -> None:
        """
        Drop every trace of a seat's previous player ID after a rejoin.

        The new ID is expected to be associated with the game through
        join_game. A socket still open under the old ID stays connected
        but no longer receives this game's traffic.
        """
        async with self._lock:
            self._remove_player_from_game_internal(old_player_id, game_id)
            self._disconnected_players.pop(old_player_id, None)

            websocket = self._player_to_socket.get(old_player_id)
            old_connection = self._connections.get(websocket) if websocket else None
            if old_connection and old_connection.game_id == game_id:
                old_connection.game_id = None
                old_connection.is_host = False

            logger.info(f"Seat in game {game_id} moved from {old_player_id} to {new_player_id}")

    def _remove_player_from_game_internal(self, player_id: str, game_id: str) -> None:
        """Internal helper to remove player from game tracking (no lock)."""
        if game_id in self._game_players:
            self._game_players[game_id].discard(player_id)
            if not self._game_players[game_id]:
                del self._game_players[game_id]

    # =========================================================================
    # Queries
    # =========================================================================

    def get_connection(self, websocket: ServerConnection) -> PlayerConnection | None:
        """Get connection info for a websocket."""
        return self._connections.get(websocket)

    def get_connection_by_player_id(self, player_id: str) -> PlayerConnection | None:
        """Get connection info for a player ID."""
        websocket = self._player_to_socket.get(player_id)
        if websocket:
            return self._connections.get(websocket)
        return None

    def get_player_id(self, websocket: ServerConnection) -> str | None:
        """Get player ID for a websocket."""
        connection = self._connections.get(websocket)
        return connection.player_id if connection else None

    def get_game_id(self, player_id: str) -> str | None:
        """Get game ID for a player."""
        connection = self.get_connection_by_player_id(player_id)
        if connection:
            return connection.game_id
        disconnected = self._disconnected_players.get(player_id)
        return disconnected.game_id if disconnected else None

    def get_players_in_game(self, game_id: str) -> set[str]:
        """Get all player IDs in a game (including disconnected)."""
        return self._game_players.get(game_id, set()).copy()

    def get_connected_players_in_game(self, game_id: str) -> list[PlayerConnection]:
        """Get all currently connected players in a game."""
        connections = []
        for player_id in self._game_players.get(game_id, set()):
            conn = self.get_connection_by_player_id(player_id)
            if conn and conn.game_id == game_id:
                connections.append(conn)
        return connections

    def is_player_connected(self, player_id: str) -> bool:
        """Check if a player is currently connected."""
        return player_id in self._player_to_socket

    def get_disconnected_players_in_game(self, game_id: str) -> list[PlayerConnection]:
        """Get all disconnected players for a game."""
        return [
            conn for conn in self._disconnected_players.values()
            if conn.game_id == game_id
        ]

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_to_player(self, player_id: str, message: Message | dict | str) -> bool:
        """
        Send a message to a specific player.

        Returns:
            True if sent successfully, False if player not connected
        """
        websocket = self._player_to_socket.get(player_id)
        if not websocket:
            return False

        return await self._send_to_websocket(websocket, message)

    async def send_to_connection(
        self,
        websocket: ServerConnection,
        message: Message | dict | str
    ) -> bool:
        """
        Send a message to a specific websocket connection.

        Returns:
            True if sent successfully, False on error
        """
        return await self._send_to_websocket(websocket, message)

    async def broadcast_to_game(
        self,
        game_id: str,
        message: Message | dict | str,
        exclude_player_id: str | None = None
    ) -> int:
        """
        Broadcast a message to all connected players in a game.

        Returns:
            Number of players the message was sent to
        """
        sent_count = 0

        for conn in self.get_connected_players_in_game(game_id):
            if exclude_player_id and conn.player_id == exclude_player_id:
                continue

            if await self._send_to_websocket(conn.websocket, message):
                sent_count += 1

        return sent_count

    async def _send_to_websocket(
        self,
        websocket: ServerConnection,
        message: Message | dict | str
    ) -> bool:
        """Internal helper to send a message to a websocket."""
        try:
            if isinstance(message, Message):
                data = message.to_json()
            elif isinstance(message, dict):
                data = json.dumps(message)
            else:
                data = message

            await websocket.send(data)

            connection = self._connections.get(websocket)
            if connection:
                connection.update_activity()

            return True

        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            return False

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "total_players": len(self._player_to_socket),
            "active_games": len(self._game_players),
            "disconnected_awaiting_reconnect": len(self._disconnected_players),
            "players_per_game": {
                game_id: len(players)
                for game_id, players in self._game_players.items()
            },
        }
