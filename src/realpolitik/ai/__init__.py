"""AI decision layer for Realpolitik.

Rule-based advisors decide every AI country's actions each turn. An optional
batch LLM planner supplies strategic plans every few turns, and an optional
LLM defense path answers attacks from the human player. Every LLM failure
falls back to the rules.
"""

from realpolitik.ai.analysis import (
    DecisionWeights,
    EconomicAnalysis,
    analyze_economic_situation,
    calculate_decision_weights,
    decide_military_recruitment,
    get_neighbor_ids,
    should_invest_in_infrastructure,
    should_invest_in_research,
)
from realpolitik.ai.batch import BatchPlanner, normalize_batch_response, normalize_country_id
from realpolitik.ai.controller import AIController
from realpolitik.ai.defense import DefenseAI, allocation_strength, parse_defense_percentage, rule_allocation
from realpolitik.ai.diplomacy import DiplomacyAI
from realpolitik.ai.economic import EconomicAI
from realpolitik.ai.military import MilitaryAI
from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality, random_personality
from realpolitik.ai.plan import (
    PlanBans,
    PlanConstraint,
    PlanExecution,
    PlanStep,
    StrategicAnalysis,
    extract_plan_bans,
    select_plan_actions,
)
from realpolitik.ai.planner import StrategicIntent, StrategicPlanner
from realpolitik.ai.trade import (
    TradePlanner,
    TradeProposal,
    TradeValuation,
    detect_shortages,
    detect_surpluses,
)

__all__ = [
    # Personality
    "AIPersonality",
    "DEFAULT_PERSONALITY",
    "random_personality",
    # Analysis
    "EconomicAnalysis",
    "DecisionWeights",
    "analyze_economic_situation",
    "calculate_decision_weights",
    "get_neighbor_ids",
    "should_invest_in_research",
    "should_invest_in_infrastructure",
    "decide_military_recruitment",
    # Planning
    "StrategicIntent",
    "StrategicPlanner",
    "StrategicAnalysis",
    "PlanStep",
    "PlanExecution",
    "PlanConstraint",
    "PlanBans",
    "extract_plan_bans",
    "select_plan_actions",
    "BatchPlanner",
    "normalize_batch_response",
    "normalize_country_id",
    # Advisors
    "EconomicAI",
    "MilitaryAI",
    "DiplomacyAI",
    "DefenseAI",
    "rule_allocation",
    "parse_defense_percentage",
    "allocation_strength",
    "AIController",
    # Trading
    "TradePlanner",
    "TradeProposal",
    "TradeValuation",
    "detect_shortages",
    "detect_surpluses",
]
