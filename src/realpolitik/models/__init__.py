"""Realpolitik game models.

This module exports the core data structures for the engine.
"""

from .actions import (
    ActionSource,
    ActionStatus,
    ActionType,
    AttackAction,
    BaseAction,
    DiplomacyAction,
    DiplomacyGesture,
    GameAction,
    InfrastructureAction,
    RecruitAction,
    ResearchAction,
    format_action_for_display,
    parse_action,
)
from .country import City, Country, CountryStats, calculate_city_value, city_defense_value
from .deals import (
    CommitmentType,
    Deal,
    DealCommitment,
    DealStatus,
    DealTerms,
    DealType,
)
from .state import GameState, GameStateView, MutationOp, StateMutation

__all__ = [
    # Enums
    "ActionType",
    "ActionStatus",
    "ActionSource",
    "DiplomacyGesture",
    "DealType",
    "DealStatus",
    "CommitmentType",
    "MutationOp",
    # Action Models
    "BaseAction",
    "GameAction",
    "ResearchAction",
    "InfrastructureAction",
    "RecruitAction",
    "AttackAction",
    "DiplomacyAction",
    # Country Models
    "Country",
    "CountryStats",
    "City",
    # Deal Models
    "Deal",
    "DealTerms",
    "DealCommitment",
    # State
    "GameState",
    "GameStateView",
    "StateMutation",
    # Functions
    "calculate_city_value",
    "city_defense_value",
    "format_action_for_display",
    "parse_action",
]
