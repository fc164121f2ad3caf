"""
Game engine package.
"""
from .cards import Card, PropertyColorInfo, CATALOG, get_card, color_info
from .player import Player, Improvement
from .actions import (
    Action, AttackEffect, DebtCollection, RentCharge, PropertyTheft, SetTheft, PropertySwap
)
from .state import (
    GameState, ConfirmAction, PayDebt, DebtEntry, ActionRecord,
    InvariantViolation, check_invariants
)
from .rules import RuleEngine, ValidationResult, ActionResult
from .settlement import settle, eligible_assets, SettlementResult
from .interactions import rent_amount
from .resolver import ActionResolver, Resolution, resolve
from .game import (
    GameEvent, create_game, add_player, rejoin_player, join_game, start_game,
    winner, get_state_for_player
)

__all__ = [
    "Card",
    "PropertyColorInfo",
    "CATALOG",
    "get_card",
    "color_info",
    "Player",
    "Improvement",
    "Action",
    "AttackEffect",
    "DebtCollection",
    "RentCharge",
    "PropertyTheft",
    "SetTheft",
    "PropertySwap",
    "GameState",
    "ConfirmAction",
    "PayDebt",
    "DebtEntry",
    "ActionRecord",
    "InvariantViolation",
    "check_invariants",
    "RuleEngine",
    "ValidationResult",
    "ActionResult",
    "settle",
    "eligible_assets",
    "SettlementResult",
    "rent_amount",
    "ActionResolver",
    "Resolution",
    "resolve",
    "GameEvent",
    "create_game",
    "add_player",
    "rejoin_player",
    "join_game",
    "start_game",
    "winner",
    "get_state_for_player",
]
