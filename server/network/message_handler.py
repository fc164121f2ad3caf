"""
Message handler for routing client messages to game actions.

Parses incoming messages, turns game action messages into engine
Actions, submits them through the GameManager, and formats responses
and broadcasts.
"""

import logging
from dataclasses import dataclass

from server.game_engine import Action, GameState, InvariantViolation, get_state_for_player
from server.network.connection_manager import ConnectionManager
from server.network.game_manager import GameManager
from shared.enums import ActionKind, MessageType
from shared.protocol import (
    Message,
    ErrorMessage,
    ActionResolvedMessage,
    GameListResponse,
    GameStartedMessage,
    GameStateMessage,
    PlayerJoinedMessage,
    PlayerRejoinedMessage,
    parse_message,
)


logger = logging.getLogger(__name__)


ACTION_MESSAGE_KINDS: dict[MessageType, ActionKind] = {
    MessageType.DRAW_CARDS: ActionKind.DRAW_CARDS,
    MessageType.PLAY_MONEY: ActionKind.PLAY_MONEY,
    MessageType.PLAY_PROPERTY: ActionKind.PLAY_PROPERTY,
    MessageType.PLAY_IMPROVEMENT: ActionKind.PLAY_IMPROVEMENT,
    MessageType.PLAY_ACTION: ActionKind.PLAY_ACTION,
    MessageType.DISCARD_CARDS: ActionKind.DISCARD_CARDS,
    MessageType.END_TURN: ActionKind.END_TURN,
    MessageType.SAY_NO: ActionKind.SAY_NO,
    MessageType.ACCEPT_ACTION: ActionKind.ACCEPT_ACTION,
    MessageType.PAY_DEBT: ActionKind.PAY_DEBT,
}


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Response to send back to the requesting player (None if no response needed)
    response: Message | None = None
    # Messages to broadcast to the other players in the game
    broadcasts: list[Message] | None = None


class MessageHandler:
    """
    Routes incoming messages to lobby operations and game actions.

    The acting player is always the player bound to the connection;
    player IDs in message payloads are never trusted for that.
    """

    def __init__(self, game_manager: GameManager, connection_manager: ConnectionManager):
        self._games = game_manager
        self._connections = connection_manager

    async def handle_message(
        self,
        player_id: str,
        message: Message | str | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a player.

        Args:
            player_id: ID of the player bound to the sending connection
            message: The message (Message object, JSON string, or dict)

        Returns:
            HandleResult with response and broadcasts
        """
        if isinstance(message, str):
            try:
                message = parse_message(message)
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Failed to parse message: {e}")
                return HandleResult(
                    response=ErrorMessage.create(f"Invalid message format: {e}", "PARSE_ERROR")
                )
        elif isinstance(message, dict):
            try:
                message = Message.from_dict(message)
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Failed to parse message dict: {e}")
                return HandleResult(
                    response=ErrorMessage.create(f"Invalid message format: {e}", "PARSE_ERROR")
                )

        handler = self._get_handler(message.type)
        if not handler:
            return HandleResult(
                response=ErrorMessage.create(
                    f"Unknown message type: {message.type.value}",
                    "UNKNOWN_MESSAGE_TYPE",
                    message.request_id
                )
            )

        try:
            result = await handler(player_id, message)

            if result.response and message.request_id:
                result.response.request_id = message.request_id

            return result

        except InvariantViolation as e:
            logger.error(f"Rejected inconsistent result for {message.type.value} from {player_id}: {e}")
            return HandleResult(
                response=ErrorMessage.create(
                    "Internal error: the game could not apply that action",
                    "INTERNAL_ERROR",
                    message.request_id
                )
            )
        except Exception as e:
            logger.exception(f"Error handling message {message.type}: {e}")
            return HandleResult(
                response=ErrorMessage.create(
                    f"Internal error: {e}",
                    "INTERNAL_ERROR",
                    message.request_id
                )
            )

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a message type."""
        handlers = {
            # Lobby
            MessageType.LIST_GAMES: self._handle_list_games,
            MessageType.CREATE_GAME: self._handle_create_game,
            MessageType.JOIN_GAME: self._handle_join_game,
            MessageType.START_GAME: self._handle_start_game,

            # State query
            MessageType.GAME_STATE: self._handle_get_state,
        }
        for action_type in ACTION_MESSAGE_KINDS:
            handlers[action_type] = self._handle_action
        return handlers.get(message_type)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _create_state_message(self, state: GameState, player_id: str) -> GameStateMessage:
        """Create a game state message for a player."""
        return GameStateMessage.create(get_state_for_player(state, player_id))

    def _get_player_name(self, state: GameState, player_id: str) -> str:
        """Get a player's name from the game."""
        player = state.get_player(player_id)
        return player.display_name if player else "Unknown"

    def _not_in_game(self) -> HandleResult:
        return HandleResult(
            response=ErrorMessage.create("You are not in a game", "NOT_IN_GAME")
        )

    # =========================================================================
    # Lobby Handlers
    # =========================================================================

    async def _handle_list_games(self, player_id: str, message: Message) -> HandleResult:
        """Handle LIST_GAMES request."""
        games = self._games.list_games(message.data.get("status"))
        return HandleResult(response=GameListResponse.create(games))

    async def _handle_create_game(self, player_id: str, message: Message) -> HandleResult:
        """Handle CREATE_GAME request."""
        player_name = message.data.get("player_name", "Player")

        success, msg, state = self._games.create_game(player_id, player_name)
        if not success:
            return HandleResult(
                response=ErrorMessage.create(msg, "CREATE_GAME_FAILED")
            )

        await self._connections.join_game(player_id, state.id, is_host=True)
        self._games.set_player_connected(state.id, player_id, True)

        return HandleResult(response=self._create_state_message(state, player_id))

    async def _handle_join_game(self, player_id: str, message: Message) -> HandleResult:
        """Handle JOIN_GAME request. A known display name takes its seat back."""
        game_code = message.data.get("game_code")
        player_name = message.data.get("player_name", "Player")

        if not game_code:
            return HandleResult(
                response=ErrorMessage.create("game_code is required", "MISSING_GAME_CODE")
            )

        success, msg, state, previous_id = self._games.join_game(game_code, player_id, player_name)
        if not success:
            return HandleResult(
                response=ErrorMessage.create(msg, "JOIN_GAME_FAILED")
            )

        player = state.get_player(player_id)
        await self._connections.join_game(player_id, state.id, is_host=player.is_host)

        if previous_id:
            await self._connections.rebind_player(previous_id, player_id, state.id)
            broadcast = PlayerRejoinedMessage.create(
                player_id=player_id,
                player_name=player.display_name,
                previous_player_id=previous_id
            )
        else:
            broadcast = PlayerJoinedMessage.create(
                player_id=player_id,
                player_name=player.display_name,
                game_id=state.id
            )
        self._games.set_player_connected(state.id, player_id, True)

        return HandleResult(
            response=self._create_state_message(state, player_id),
            broadcasts=[broadcast]
        )

    async def _handle_start_game(self, player_id: str, message: Message) -> HandleResult:
        """Handle START_GAME request."""
        game_id = self._games.get_game_id_for_player(player_id)
        if not game_id:
            return self._not_in_game()

        success, msg, state = self._games.start_game(game_id, player_id)
        if not success:
            return HandleResult(
                response=ErrorMessage.create(msg, "START_GAME_FAILED")
            )

        started = GameStartedMessage.create(state.id, state.current_turn_player_id)
        return HandleResult(
            response=started,
            broadcasts=[GameStartedMessage(data=dict(started.data))]
        )

    async def _handle_get_state(self, player_id: str, message: Message) -> HandleResult:
        """Handle GAME_STATE request."""
        state = self._games.get_game_for_player(player_id)
        if not state:
            return self._not_in_game()

        return HandleResult(response=self._create_state_message(state, player_id))

    # =========================================================================
    # Game Action Handler
    # =========================================================================

    async def _handle_action(self, player_id: str, message: Message) -> HandleResult:
        """Handle every game action message type."""
        game_id = self._games.get_game_id_for_player(player_id)
        if not game_id:
            return self._not_in_game()

        card_ids = message.data.get("card_ids") or []
        if not isinstance(card_ids, list) or not all(isinstance(c, str) for c in card_ids):
            return HandleResult(
                response=ErrorMessage.create("card_ids must be a list of card IDs", "PARSE_ERROR")
            )

        target_player_id = message.data.get("target_player_id")
        property_color = message.data.get("property_color")
        for field_name, value in (
            ("target_player_id", target_player_id),
            ("property_color", property_color),
        ):
            if value is not None and not isinstance(value, str):
                return HandleResult(
                    response=ErrorMessage.create(f"{field_name} must be a string", "PARSE_ERROR")
                )

        action = Action(
            kind=ACTION_MESSAGE_KINDS[message.type],
            acting_player_id=player_id,
            card_ids=card_ids,
            target_player_id=target_player_id,
            property_color=property_color,
        )

        result = self._games.submit_action(game_id, action)

        if result.conflict:
            return HandleResult(
                response=ErrorMessage.create(result.message, "CONFLICT")
            )

        if not result.accepted:
            error = ErrorMessage.create(result.message, "ACTION_REJECTED")
            if result.result is not None:
                error.data["result"] = result.result.name
            error.data["action_kind"] = action.kind.value
            return HandleResult(response=error)

        resolved = ActionResolvedMessage.create(
            player_id=player_id,
            player_name=self._get_player_name(result.state, player_id),
            action_kind=action.kind.value,
            message=result.message,
            events=[event.to_dict() for event in result.events],
            version=result.state.version,
        )
        return HandleResult(
            response=resolved,
            broadcasts=[ActionResolvedMessage(data=dict(resolved.data))]
        )
