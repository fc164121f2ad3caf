"""
Message protocol for client-server communication.

All messages are JSON objects with a "type" field and optional "data" field.
"""

from dataclasses import dataclass, field
from typing import Any
import json

from shared.enums import ActionKind, MessageType


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)
    request_id: str | None = None  # Optional, for matching requests to responses

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "data": self.data,
            "request_id": self.request_id,
        }

    @classmethod
    def from_json(cls, json_str: str) -> "Message":
        """Deserialize message from JSON string."""
        raw = json.loads(json_str)
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> "Message":
        """Create message from dictionary."""
        return cls(
            type=MessageType(raw["type"]),
            data=raw.get("data") or {},
            request_id=raw.get("request_id"),
        )


@dataclass
class ErrorMessage(Message):
    """Error response message."""
    type: MessageType = MessageType.ERROR

    @classmethod
    def create(cls, message: str, code: str = "ERROR", request_id: str | None = None) -> "ErrorMessage":
        """Create an error message."""
        return cls(
            data={"message": message, "code": code},
            request_id=request_id,
        )


# =============================================================================
# Lobby Messages (Client -> Server)
# =============================================================================

@dataclass
class ListGamesRequest(Message):
    """Request list of games."""
    type: MessageType = MessageType.LIST_GAMES

    @classmethod
    def create(cls, status: str | None = None, request_id: str | None = None) -> "ListGamesRequest":
        data = {}
        if status:
            data["status"] = status
        return cls(data=data, request_id=request_id)


@dataclass
class CreateGameRequest(Message):
    """Request to create a new game. The sender becomes host."""
    type: MessageType = MessageType.CREATE_GAME

    @classmethod
    def create(cls, player_name: str, request_id: str | None = None) -> "CreateGameRequest":
        return cls(data={"player_name": player_name}, request_id=request_id)


@dataclass
class JoinGameRequest(Message):
    """Request to join (or rejoin by name) a game by its code."""
    type: MessageType = MessageType.JOIN_GAME

    @classmethod
    def create(
        cls,
        game_code: str,
        player_name: str,
        request_id: str | None = None
    ) -> "JoinGameRequest":
        return cls(
            data={
                "game_code": game_code,
                "player_name": player_name,
            },
            request_id=request_id,
        )


@dataclass
class StartGameRequest(Message):
    """Request to start the game (host only)."""
    type: MessageType = MessageType.START_GAME

    @classmethod
    def create(cls, request_id: str | None = None) -> "StartGameRequest":
        return cls(request_id=request_id)


# =============================================================================
# Game Action Messages (Client -> Server)
# =============================================================================

@dataclass
class ActionRequest(Message):
    """
    A turn action or a response to a pending interaction.

    The message type is the action kind. The acting player is never sent;
    the server takes it from the connection.
    """
    type: MessageType = MessageType.END_TURN

    @classmethod
    def create(
        cls,
        kind: ActionKind,
        card_ids: list[str] | None = None,
        target_player_id: str | None = None,
        property_color: str | None = None,
        request_id: str | None = None
    ) -> "ActionRequest":
        data: dict[str, Any] = {}
        if card_ids:
            data["card_ids"] = list(card_ids)
        if target_player_id:
            data["target_player_id"] = target_player_id
        if property_color:
            data["property_color"] = property_color
        return cls(type=MessageType(kind.value), data=data, request_id=request_id)


# =============================================================================
# Server Response/Broadcast Messages (Server -> Client)
# =============================================================================

@dataclass
class GameListResponse(Message):
    """Response containing list of games."""
    type: MessageType = MessageType.GAME_LIST

    @classmethod
    def create(cls, games: list[dict], request_id: str | None = None) -> "GameListResponse":
        return cls(data={"games": games}, request_id=request_id)


@dataclass
class GameStateMessage(Message):
    """A player's view of the game state."""
    type: MessageType = MessageType.GAME_STATE

    @classmethod
    def create(cls, game_state: dict, request_id: str | None = None) -> "GameStateMessage":
        return cls(data=game_state, request_id=request_id)


@dataclass
class GameStartedMessage(Message):
    """Broadcast when game starts."""
    type: MessageType = MessageType.GAME_STARTED

    @classmethod
    def create(cls, game_id: str, first_player_id: str) -> "GameStartedMessage":
        return cls(data={
            "game_id": game_id,
            "first_player_id": first_player_id,
        })


@dataclass
class ActionResolvedMessage(Message):
    """Broadcast when an action has been committed."""
    type: MessageType = MessageType.ACTION_RESOLVED

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str,
        action_kind: str,
        message: str,
        events: list[dict],
        version: int
    ) -> "ActionResolvedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
            "action_kind": action_kind,
            "message": message,
            "events": events,
            "version": version,
        })


@dataclass
class GameWonMessage(Message):
    """Broadcast when a player holds enough complete sets."""
    type: MessageType = MessageType.GAME_WON

    @classmethod
    def create(
        cls,
        winner_id: str,
        winner_name: str
    ) -> "GameWonMessage":
        return cls(data={
            "winner_id": winner_id,
            "winner_name": winner_name,
        })


@dataclass
class PlayerJoinedMessage(Message):
    """Broadcast when a player joins the game."""
    type: MessageType = MessageType.JOIN_GAME

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str,
        game_id: str
    ) -> "PlayerJoinedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
            "game_id": game_id,
        })


@dataclass
class PlayerRejoinedMessage(Message):
    """Broadcast when a player takes their seat back under a new id."""
    type: MessageType = MessageType.PLAYER_REJOINED

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str,
        previous_player_id: str
    ) -> "PlayerRejoinedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
            "previous_player_id": previous_player_id,
        })


@dataclass
class PlayerDisconnectedMessage(Message):
    """Broadcast when a player disconnects."""
    type: MessageType = MessageType.DISCONNECT

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str
    ) -> "PlayerDisconnectedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
        })


@dataclass
class PlayerReconnectedMessage(Message):
    """Broadcast when a player reconnects."""
    type: MessageType = MessageType.RECONNECT

    @classmethod
    def create(
        cls,
        player_id: str,
        player_name: str
    ) -> "PlayerReconnectedMessage":
        return cls(data={
            "player_id": player_id,
            "player_name": player_name,
        })


# =============================================================================
# Helper function for parsing incoming messages
# =============================================================================

def parse_message(json_str: str) -> Message:
    """
    Parse a JSON string into a Message.

    Returns the base Message class; the message handler uses the type
    field to decide how to process it.
    """
    return Message.from_json(json_str)
