"""
WebSocket server for multiplayer card games.

Main entry point that ties together connection management,
game management, and message handling.
"""

import asyncio
import json
import logging
import signal
from typing import Any, Callable

import websockets
from websockets.asyncio.server import ServerConnection, serve

from server.config import settings
from server.game_engine import GameState, get_state_for_player, winner
from server.network.connection_manager import ConnectionManager
from server.network.game_manager import GameManager
from server.network.message_handler import MessageHandler
from server.persistence import GameRepository, init_database
from shared.enums import MessageType
from shared.protocol import (
    ErrorMessage,
    GameStateMessage,
    GameWonMessage,
    PlayerDisconnectedMessage,
    PlayerReconnectedMessage,
)


logger = logging.getLogger(__name__)


class DealServer:
    """
    WebSocket server for card games.

    Handles client connections, routes messages, and pushes each
    committed game state to the connected seats.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        db_path: str | None = None
    ):
        self.host = host or settings.HOST
        self.port = port or settings.PORT

        db = init_database(db_path)
        self._repository = GameRepository(db)

        self._connections = ConnectionManager()
        self._games = GameManager(self._repository)
        self._handler = MessageHandler(self._games, self._connections)

        # game_id -> unsubscribe function
        self._subscriptions: dict[str, Callable[[], None]] = {}
        # games whose winner has been announced
        self._announced_winners: set[str] = set()
        self._pending_pushes: set[asyncio.Task] = set()

        self._server = None
        self._running = False
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._running = True
        self._shutdown_event.clear()

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=30,
            ping_timeout=10,
        )

        logger.info(f"Game server started on ws://{self.host}:{self.port}")

        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        for unsubscribe in self._subscriptions.values():
            unsubscribe()
        self._subscriptions.clear()

        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        asyncio.create_task(self.stop())

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection.

        The first message must be a CONNECT message with player_id and player_name.
        After that, messages are routed through the message handler.
        """
        player_id = None

        try:
            player_id = await self._handle_connect(websocket)

            if not player_id:
                return

            async for raw_message in websocket:
                if not self._running:
                    break

                await self._handle_message(websocket, player_id, raw_message)

        except websockets.ConnectionClosed:
            logger.debug(f"Connection closed for player {player_id}")
        except Exception as e:
            logger.exception(f"Error handling client {player_id}: {e}")
        finally:
            if player_id:
                await self._handle_disconnect(websocket, player_id)

    async def _handle_connect(self, websocket: ServerConnection) -> str | None:
        """
        Handle the initial handshake.

        Expects a CONNECT message with player_id and player_name.
        Returns player_id if successful, None otherwise.
        """
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=30.0)
            data = json.loads(raw)

            if data.get("type") != MessageType.CONNECT.value:
                await self._send_error(
                    websocket,
                    "First message must be CONNECT",
                    "CONNECT_REQUIRED"
                )
                return None

            payload = data.get("data") or {}
            player_id = payload.get("player_id")
            player_name = payload.get("player_name", "Player")

            if not player_id:
                await self._send_error(
                    websocket,
                    "player_id is required",
                    "MISSING_PLAYER_ID"
                )
                return None

            connection = await self._connections.connect(websocket, player_id, player_name)

            game_id = connection.game_id
            if game_id:
                state = self._games.get_state(game_id)
                if state:
                    self._games.set_player_connected(game_id, player_id, True)
                    await self._connections.broadcast_to_game(
                        game_id,
                        PlayerReconnectedMessage.create(player_id, player_name),
                        exclude_player_id=player_id
                    )

                    state_msg = GameStateMessage.create(get_state_for_player(state, player_id))
                    await websocket.send(state_msg.to_json())

                    logger.info(f"Player {player_name} ({player_id}) reconnected to game {game_id}")

            await websocket.send(json.dumps({
                "type": MessageType.CONNECT.value,
                "data": {
                    "success": True,
                    "player_id": player_id,
                    "player_name": player_name,
                    "reconnected_to_game": game_id,
                }
            }))

            return player_id

        except asyncio.TimeoutError:
            await self._send_error(websocket, "Connection timeout", "TIMEOUT")
            return None
        except json.JSONDecodeError:
            await self._send_error(websocket, "Invalid JSON", "PARSE_ERROR")
            return None

    async def _handle_message(
        self,
        websocket: ServerConnection,
        player_id: str,
        raw_message: str
    ) -> None:
        """Handle an incoming message from a connected player."""
        result = await self._handler.handle_message(player_id, raw_message)

        if result.response:
            await self._connections.send_to_connection(websocket, result.response)

        game_id = self._connections.get_game_id(player_id)
        if not game_id:
            return

        self._ensure_subscribed(game_id)

        for broadcast in result.broadcasts or []:
            await self._connections.broadcast_to_game(
                game_id,
                broadcast,
                exclude_player_id=player_id  # Requester already got response
            )

    async def _handle_disconnect(self, websocket: ServerConnection, player_id: str) -> None:
        """Handle player disconnection."""
        connection = await self._connections.disconnect(websocket)

        if connection and connection.game_id:
            self._games.set_player_connected(connection.game_id, player_id, False)
            await self._connections.broadcast_to_game(
                connection.game_id,
                PlayerDisconnectedMessage.create(player_id, connection.player_name),
            )

    # =========================================================================
    # State Push
    # =========================================================================

    def _ensure_subscribed(self, game_id: str) -> None:
        if game_id not in self._subscriptions:
            self._subscriptions[game_id] = self._games.subscribe(
                game_id,
                lambda state: self._schedule_push(game_id, state)
            )

    def _schedule_push(self, game_id: str, state: GameState) -> None:
        """Called synchronously on commit; the sends happen on the event loop."""
        task = asyncio.get_running_loop().create_task(self._push_state(game_id, state))
        self._pending_pushes.add(task)
        task.add_done_callback(self._pending_pushes.discard)

    async def _push_state(self, game_id: str, state: GameState) -> None:
        """Send each connected seat its own view, then announce a winner once."""
        for conn in self._connections.get_connected_players_in_game(game_id):
            state_msg = GameStateMessage.create(get_state_for_player(state, conn.player_id))
            await self._connections.send_to_connection(conn.websocket, state_msg)

        champion = winner(state)
        if champion and game_id not in self._announced_winners:
            self._announced_winners.add(game_id)
            logger.info(f"{champion.display_name} won game {game_id}")
            await self._connections.broadcast_to_game(
                game_id,
                GameWonMessage.create(champion.id, champion.display_name)
            )

    async def _send_error(self, websocket: ServerConnection, message: str, code: str) -> None:
        """Send an error message to a websocket."""
        try:
            await websocket.send(ErrorMessage.create(message, code).to_json())
        except websockets.ConnectionClosed:
            logger.debug(f"Could not deliver {code}: connection already closed")

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics."""
        return {
            "running": self._running,
            "connections": self._connections.get_stats(),
            "games": self._games.get_stats(),
        }


async def run_server(host: str | None = None, port: int | None = None, db_path: str | None = None) -> None:
    """
    Run the game server.

    Sets up signal handlers for graceful shutdown.
    """
    server = DealServer(host, port, db_path)

    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    settings.ensure_directories()

    print(f"Starting game server on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
