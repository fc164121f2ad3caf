"""
Enumerations used throughout the game.
"""
from enum import Enum


class CardKind(str, Enum):
    """Kinds of cards in the deck."""
    PROPERTY = "PROPERTY"
    MONEY = "MONEY"
    ACTION = "ACTION"
    RENT = "RENT"
    HOUSE = "HOUSE"
    HOTEL = "HOTEL"


class PropertyColor(str, Enum):
    """Property color sets."""
    BROWN = "BROWN"
    LIGHT_BLUE = "LIGHT_BLUE"
    PINK = "PINK"
    ORANGE = "ORANGE"
    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"
    DARK_BLUE = "DARK_BLUE"
    RAILROAD = "RAILROAD"
    UTILITY = "UTILITY"


class ActionBehavior(str, Enum):
    """What an action or rent card does when played."""
    PASS_GO = "PASS_GO"
    BIRTHDAY = "BIRTHDAY"
    DEBT_COLLECTOR = "DEBT_COLLECTOR"
    RENT = "RENT"
    WILD_RENT = "WILD_RENT"
    SLY_DEAL = "SLY_DEAL"
    DEAL_BREAKER = "DEAL_BREAKER"
    FORCED_DEAL = "FORCED_DEAL"
    JUST_SAY_NO = "JUST_SAY_NO"


class GameStatus(str, Enum):
    """Lifecycle status of a game."""
    WAITING = "WAITING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


class TurnPhase(str, Enum):
    """Current phase of a player's turn."""
    DRAW = "DRAW"
    PLAY = "PLAY"
    DISCARD = "DISCARD"


class ActionKind(str, Enum):
    """Actions a player can submit to the engine."""
    DRAW_CARDS = "DRAW_CARDS"
    PLAY_MONEY = "PLAY_MONEY"
    PLAY_PROPERTY = "PLAY_PROPERTY"
    PLAY_IMPROVEMENT = "PLAY_IMPROVEMENT"
    PLAY_ACTION = "PLAY_ACTION"
    DISCARD_CARDS = "DISCARD_CARDS"
    END_TURN = "END_TURN"
    SAY_NO = "SAY_NO"
    ACCEPT_ACTION = "ACCEPT_ACTION"
    PAY_DEBT = "PAY_DEBT"


class InteractionKind(str, Enum):
    """Kinds of pending interaction."""
    CONFIRM_ACTION = "CONFIRM_ACTION"
    PAY_DEBT = "PAY_DEBT"


class DebtReason(str, Enum):
    """Why a debt is owed."""
    BIRTHDAY = "BIRTHDAY"
    DEBT_COLLECTOR = "DEBT_COLLECTOR"
    RENT = "RENT"


class MessageType(str, Enum):
    """Types of messages between client and server."""
    # Connection
    CONNECT = "CONNECT"
    DISCONNECT = "DISCONNECT"
    RECONNECT = "RECONNECT"

    # Lobby
    CREATE_GAME = "CREATE_GAME"
    JOIN_GAME = "JOIN_GAME"
    PLAYER_REJOINED = "PLAYER_REJOINED"
    LIST_GAMES = "LIST_GAMES"
    GAME_LIST = "GAME_LIST"

    # Game flow
    START_GAME = "START_GAME"
    GAME_STARTED = "GAME_STARTED"
    GAME_STATE = "GAME_STATE"

    # Turn actions
    DRAW_CARDS = "DRAW_CARDS"
    PLAY_MONEY = "PLAY_MONEY"
    PLAY_PROPERTY = "PLAY_PROPERTY"
    PLAY_IMPROVEMENT = "PLAY_IMPROVEMENT"
    PLAY_ACTION = "PLAY_ACTION"
    DISCARD_CARDS = "DISCARD_CARDS"
    END_TURN = "END_TURN"

    # Responses to a pending interaction
    SAY_NO = "SAY_NO"
    ACCEPT_ACTION = "ACCEPT_ACTION"
    PAY_DEBT = "PAY_DEBT"

    # Results
    ACTION_RESOLVED = "ACTION_RESOLVED"

    # Game end
    GAME_WON = "GAME_WON"

    # Errors
    ERROR = "ERROR"
