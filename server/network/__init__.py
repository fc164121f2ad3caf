"""
Network layer for the game server.

Provides WebSocket server, connection management, and message handling.
"""

from server.network.connection_manager import ConnectionManager, PlayerConnection
from server.network.game_manager import GameManager, SubmitResult
from server.network.message_handler import MessageHandler, HandleResult
from server.network.server import DealServer, run_server


__all__ = [
    "ConnectionManager",
    "PlayerConnection",
    "GameManager",
    "SubmitResult",
    "MessageHandler",
    "HandleResult",
    "DealServer",
    "run_server",
]
