"""Game balance parameters for Realpolitik.

This module is the SINGLE SOURCE OF TRUTH for tunable economic, military and
diplomatic constants. Formulas elsewhere in the engine read these values rather
than embedding literals.

Parameter Categories:
- Upgrades: research and infrastructure cost curves
- Military: recruitment cost, upkeep, combat
- Budget: tax, maintenance, population capacity
- Production: technology multipliers, food
- Resources: shortage penalties and market targets
- Diplomacy: relation scores and combat fallout

Usage:
    from realpolitik.parameters import TECH_BASE_COST, DEFENSE_BONUS
"""

# =============================================================================
# UPGRADE PARAMETERS
# =============================================================================

TECH_BASE_COST = 500
"""Budget cost of researching from technology level 0.

Cost curve:
    level <= 5: TECH_BASE_COST * TECH_COST_MULTIPLIER ** level
    level > 5:  level-5 cost * TECH_LATE_COST_MULTIPLIER ** (level - 5)
"""

TECH_COST_MULTIPLIER = 1.30
"""Exponential growth of research cost for levels 0-5."""

TECH_LATE_COST_MULTIPLIER = 1.20
"""Slower exponential growth of research cost past level 5."""

TECH_LATE_LEVEL = 5
"""Level at which the research cost curve switches to the late multiplier."""

RESEARCH_DISCOUNT_PER_LEVEL = 0.03
"""Research cost reduction per technology level (accumulated know-how)."""

RESEARCH_DISCOUNT_MAX = 0.15
"""Cap on the research discount (15%)."""

INFRA_BASE_COST = 450
"""Budget cost of upgrading infrastructure from level 0."""

INFRA_COST_MULTIPLIER = 1.25
"""Exponential growth of infrastructure cost per level."""

INFRA_MAX_LEVEL = 10
"""Rule-based AI stops building infrastructure at this level."""


# =============================================================================
# MILITARY PARAMETERS
# =============================================================================

COST_PER_STRENGTH_POINT = 30
"""Base budget cost per recruited military strength point."""

RECRUIT_TECH_DISCOUNT_PER_LEVEL = 0.05
"""Recruitment cost reduction per technology level."""

RECRUIT_TECH_DISCOUNT_MAX = 0.25
"""Cap on the recruitment cost reduction (25%)."""

TECH_MILITARY_BONUS_PER_LEVEL = 0.20
"""Effective strength bonus per technology level (+20% each)."""

MILITARY_UPKEEP_PER_STRENGTH = 0.5
"""Budget upkeep per military strength point per turn."""

ATTACK_BASE_COST = 100
"""Fixed budget cost of launching any attack."""

ATTACK_COST_PER_STRENGTH = 10
"""Additional budget cost per allocated strength point in an attack."""

DEFENSE_BONUS = 1.2
"""Terrain multiplier applied to the defender's effective strength."""

COMBAT_SIGMOID_STEEPNESS = 2.5
"""Steepness of the strength-ratio -> win-probability sigmoid."""

COMBAT_MAX_WIN_CHANCE = 0.95
"""Attacker win probability when the adjusted ratio is overwhelming."""

COMBAT_MIN_WIN_CHANCE = 0.05
"""Attacker win probability when the adjusted ratio is hopeless."""

COMBAT_DOMINANT_RATIO = 3.0
"""Adjusted ratio at or above which the maximum win chance applies."""

COMBAT_HOPELESS_RATIO = 0.33
"""Adjusted ratio at or below which the minimum win chance applies."""

WINNER_LOSS_RANGE = (0.2, 0.4)
"""Fraction of allocated strength lost by the winning side (attacker win)."""

DEFEATED_DEFENDER_LOSS_RANGE = (0.4, 0.7)
"""Fraction of allocated strength lost by a defender that loses the city."""

FAILED_ATTACKER_LOSS_RANGE = (0.5, 0.8)
"""Fraction of allocated strength lost by an attacker that is repelled."""

SUCCESSFUL_DEFENDER_LOSS_RANGE = (0.2, 0.4)
"""Fraction of allocated strength lost by a defender that holds the city."""


# =============================================================================
# DEFENSE ALLOCATION PARAMETERS
# =============================================================================

RULE_DEFENSE_MIN_PERCENT = 30
"""Lower clamp for rule-based defense allocation (% of effective strength)."""

RULE_DEFENSE_MAX_PERCENT = 80
"""Upper clamp for rule-based defense allocation."""

LLM_DEFENSE_MIN_PERCENT = 30
"""Lower clamp for LLM-chosen defense allocation."""

LLM_DEFENSE_MAX_PERCENT = 90
"""Upper clamp for LLM-chosen defense allocation."""

LLM_DEFENSE_DEFAULT_PERCENT = 50
"""Allocation used when the LLM reply contains no usable number."""


# =============================================================================
# BUDGET PARAMETERS
# =============================================================================

BASE_TAX_PER_CITIZEN = 22
"""Tax income per population unit (10k population) per turn."""

INFRASTRUCTURE_TAX_EFFICIENCY = 0.15
"""Tax collection bonus per infrastructure level (+15% each)."""

MAINTENANCE_COST_MULTIPLIER = 0.005
"""Share of the current budget spent on general maintenance each turn."""

INFRA_MAINTENANCE_PER_LEVEL = 25
"""Budget upkeep per infrastructure level per turn."""

BASE_POPULATION_CAPACITY = 200_000
"""Population a country supports before overcrowding at infrastructure 0."""

CAPACITY_PER_INFRASTRUCTURE = 50_000
"""Additional population capacity per infrastructure level."""

OVERCROWDING_TAX_PENALTY = 0.80
"""Tax multiplier applied while population exceeds capacity."""

TRADE_INCOME_MULTIPLIER = 0.20
"""Share of active trade deal value earned as budget each turn."""

TRADE_EFFICIENCY_PER_LEVEL = 0.10
"""Trade revenue bonus per infrastructure level."""


# =============================================================================
# PRODUCTION PARAMETERS
# =============================================================================

TECH_PRODUCTION_MULTIPLIERS = (1.0, 1.25, 1.6, 2.0, 2.5, 3.0)
"""Production multiplier for technology levels 0-5.

Levels above 5 continue logarithmically: 3.0 + log2(level - 4) * 0.25.
"""

TECH_PRODUCTION_LATE_STEP = 0.25
"""Logarithmic step for production multipliers beyond level 5."""

BASE_FOOD_PER_POP = 6.5
"""Food produced per 10k population at technology level 0."""

FOOD_PER_10K_POPULATION = 5
"""Food consumed per 10k population per turn."""

RESOURCE_EXTRACTION_RATE = 10
"""Base per-turn extraction feeding timber, iron and oil output."""

BASE_INDUSTRIAL_OUTPUT = 5
"""Base per-turn industrial output feeding coal and steel."""


# =============================================================================
# RESOURCE PARAMETERS
# =============================================================================

SHORTAGE_PENALTY_PER_RESOURCE = 0.4
"""Budget cost increase per missing resource type (+40% each)."""

SHORTAGE_PENALTY_MAX = 2.5
"""Cap on the shortage penalty multiplier."""

MARKET_TARGET_STOCK_PER_COUNTRY = {
    "food": 600,
    "timber": 300,
    "iron": 150,
    "oil": 100,
    "gold": 40,
    "copper": 200,
    "steel": 120,
    "coal": 250,
}
"""Global stock per country at which a resource trades at its base value.

Below target the price rises linearly to 2x base at zero stock.
"""

BLACK_MARKET_BUY_MULTIPLIER = 1.8
"""Premium a country pays buying from the black market."""

BLACK_MARKET_SELL_MULTIPLIER = 0.55
"""Discount a country accepts selling to the black market."""

CITY_RESOURCE_WEIGHTS = {
    "food": 8,
    "timber": 6,
    "iron": 10,
    "oil": 15,
    "gold": 20,
    "copper": 8,
    "steel": 12,
    "coal": 10,
}
"""Per-unit weight of a city's per-turn yield in its strategic value."""

DEFAULT_CITY_RESOURCE_WEIGHT = 10
"""Weight for yields not listed in CITY_RESOURCE_WEIGHTS."""


# =============================================================================
# DIPLOMACY PARAMETERS
# =============================================================================

DIPLOMACY_SCORE_MIN = 0
DIPLOMACY_SCORE_MAX = 100
DIPLOMACY_SCORE_NEUTRAL = 50
"""Relation score assumed for countries that have never interacted."""

ATTACK_DECLARATION_PENALTY = 10
"""Relation drop the attacker suffers toward the defender when attacking."""

COMBAT_ATTACKER_TO_DEFENDER_DELTA = -35
"""Attacker's relation toward the defender after combat."""

COMBAT_DEFENDER_TO_ATTACKER_DELTA = -30
"""Defender's relation toward the attacker after combat."""

CITY_CAPTURED_EXTRA_DELTA = -10
"""Extra mutual relation drop when the attacker captures the city."""

FAILED_ATTACK_EXTRA_DELTA = -5
"""Extra mutual relation drop when the attack is repelled."""

THIRD_PARTY_TO_ATTACKER_DELTA = -5
"""Bystanders' relation toward an attacker after any combat."""

THIRD_PARTY_TO_DEFENDER_DELTA = 2
"""Bystanders' sympathy toward a defender after any combat."""

DIPLOMACY_GESTURE_COST = 150
"""Budget cost of an improve-relations gesture."""

DIPLOMACY_GESTURE_DELTA = 5
"""Mutual relation gain from an improve-relations gesture."""

DENOUNCE_DELTA = -10
"""Mutual relation drop from a public denouncement."""


# =============================================================================
# TRADE PARAMETERS
# =============================================================================

TRADE_SURPLUS_THRESHOLD = 200
"""Stock at or above which a resource counts as surplus; half of it is offered."""

TRADE_SHORTAGE_RECRUIT_AMOUNT = 20
"""Recruitment size whose material needs count toward trade shortages."""

TRADE_PARTNER_LOW_STOCK = 50
"""Partner stock below which it is assumed to want our surplus."""

TRADE_PARTNER_RESERVE = 25
"""Units of a resource a partner always keeps back from a trade."""

TRADE_PROPOSER_RESERVE = 20
"""Units of a surplus resource the proposer always keeps back."""

TRADE_BUDGET_RESERVE = 30
"""Budget a trading country never spends below."""

TRADE_MAX_BUDGET_SPEND_RATIO = 0.5
"""Share of the budget above the reserve one trade may spend."""

TRADE_MIN_NOTIONAL = 20
"""Smallest market value worth turning into a deal."""

TRADE_AI_FAIRNESS_TOLERANCE = 0.05
"""Allowed normalized net benefit either way between two AI countries."""

TRADE_AI_SPREAD = 0.02
"""Barter discount asked of an AI partner."""

TRADE_PLAYER_MAX_LOSS = 0.15
"""Largest normalized loss an AI accepts trading with the player."""

TRADE_AI_ADVANTAGE_CAP = 0.15
"""Largest normalized gain an AI may take from the player."""

TRADE_PLAYER_SPREAD = 0.18
"""Barter discount asked of the player."""

TRADE_MAX_PROPOSALS = 3
"""Proposals kept per country after scoring."""

TRADE_DEAL_DURATION = 1
"""Turns an executed trade deal stays active."""

BLACK_MARKET_BUDGET_SHARE = 0.8
"""Share of the remaining budget a black-market purchase may use."""


# =============================================================================
# AI PARAMETERS
# =============================================================================

NEIGHBOR_DISTANCE = 200
"""Board distance within which another country counts as a neighbor."""

MIN_RECOMMENDED_MILITARY = 50
"""Floor for the recommended effective strength of any country."""

NEIGHBOR_STRENGTH_FACTOR = 0.7
"""Share of the average neighbor effective strength a country should match."""

POPULATION_PER_RECOMMENDED_STRENGTH = 2000
"""Population per recommended effective strength point."""

UNDER_DEFENDED_DEFICIT = 20
"""Military deficit above which a country is considered under-defended."""

LLM_FIRST_PLANNING_TURN = 2
"""First turn on which AI countries request an LLM strategic plan."""
