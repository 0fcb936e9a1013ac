"""LLM strategic plans: analyses, plan steps, bans and step execution.

A plan is advice. Its free-text instructions are never constrained; only
steps that carry a machine-readable ``execution`` can become actions, and
those actions go through the same resolver as everything else.

Plan steps may be gated:
    when:      all listed conditions must hold before the step runs
    stop_when: once all listed conditions hold the step is finished

Recognized condition keys are ``budget_gte``, ``tech_level_gte``,
``military_strength_gte`` and ``infra_level_gte``; unknown keys are ignored.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any

from realpolitik.models.actions import (
    ActionSource,
    AttackAction,
    DiplomacyAction,
    DiplomacyGesture,
    GameAction,
    InfrastructureAction,
    RecruitAction,
    ResearchAction,
)
from realpolitik.models.country import CountryStats
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)

STRATEGIC_FOCUSES = ("economy", "military", "diplomacy", "research", "balanced")
DIPLOMATIC_STANCES = ("friendly", "neutral", "hostile")
EXECUTABLE_ACTION_TYPES = ("diplomacy", "military", "economic", "research")


def finite_number(value: Any) -> int | float | None:
    """The value if it is a finite int or float (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, int):
        return value
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class PlanExecution:
    action_type: str
    action_data: dict[str, Any]


@dataclass(frozen=True)
class PlanStep:
    """One step of an LLM plan.

    Attributes:
        id: Step identifier, unique within the plan
        instruction: Free-text advice
        execution: Machine-executable action, if any
        when: Gating conditions
        stop_when: Completion conditions
        priority: Lower runs first; None sorts after numbered steps
    """

    id: str
    instruction: str
    execution: PlanExecution | None = None
    when: dict[str, Any] = field(default_factory=dict)
    stop_when: dict[str, Any] = field(default_factory=dict)
    priority: int | None = None


@dataclass(frozen=True)
class PlanConstraint:
    id: str
    instruction: str
    prohibit: tuple[str, ...] = ()


@dataclass(frozen=True)
class StrategicAnalysis:
    """LLM strategic analysis for one country.

    Attributes:
        focus: One of economy, military, diplomacy, research, balanced
        rationale: Short explanation (at most 200 characters)
        threat_assessment: Free-text threats
        opportunities: Free-text opportunities
        steps: Parsed plan steps in response order
        constraints: Parsed plan constraints
        diplomatic_stance: Country id -> friendly / neutral / hostile
        confidence: 0-1
        turn_analyzed: Turn the analysis was produced on
    """

    focus: str = "balanced"
    rationale: str = ""
    threat_assessment: str = ""
    opportunities: str = ""
    steps: tuple[PlanStep, ...] = ()
    constraints: tuple[PlanConstraint, ...] = ()
    diplomatic_stance: dict[str, str] = field(default_factory=dict)
    confidence: float = 0.7
    turn_analyzed: int = 0

    @property
    def recommended_actions(self) -> list[str]:
        """Display list of the first five step instructions."""
        return [s.instruction for s in self.steps if s.instruction][:5]

    def valid_until_turn(self, frequency: int) -> int:
        return self.turn_analyzed + frequency - 1


# =============================================================================
# Parsing
# =============================================================================


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_plan_steps(entry: dict[str, Any]) -> list[PlanStep]:
    """Parse an entry's ``action_plan`` array, skipping malformed steps."""
    steps: list[PlanStep] = []
    raw_steps = entry.get("action_plan")
    if not isinstance(raw_steps, list):
        return steps

    for raw in raw_steps:
        if not isinstance(raw, dict):
            continue
        step_id = raw.get("id").strip() if isinstance(raw.get("id"), str) else ""
        instruction = raw.get("instruction").strip() if isinstance(raw.get("instruction"), str) else ""
        if not step_id or not instruction:
            continue

        execution = None
        raw_execution = _as_dict(raw.get("execution"))
        action_type = raw_execution.get("actionType")
        action_data = raw_execution.get("actionData")
        if action_type in EXECUTABLE_ACTION_TYPES and isinstance(action_data, dict):
            execution = PlanExecution(action_type=action_type, action_data=action_data)

        priority = finite_number(raw.get("priority"))
        steps.append(
            PlanStep(
                id=step_id,
                instruction=instruction,
                execution=execution,
                when=_as_dict(raw.get("when")),
                stop_when=_as_dict(raw.get("stop_when")),
                priority=int(priority) if priority is not None else None,
            )
        )
    return steps


def parse_plan_constraints(entry: dict[str, Any]) -> list[PlanConstraint]:
    constraints: list[PlanConstraint] = []
    raw_constraints = entry.get("constraints")
    if not isinstance(raw_constraints, list):
        return constraints

    for raw in raw_constraints:
        if not isinstance(raw, dict):
            continue
        constraint_id = raw.get("id").strip() if isinstance(raw.get("id"), str) else ""
        instruction = raw.get("instruction").strip() if isinstance(raw.get("instruction"), str) else ""
        if not constraint_id or not instruction:
            continue
        prohibit = _as_dict(raw.get("effects")).get("prohibit")
        prohibited = tuple(str(p).strip() for p in prohibit if str(p).strip()) if isinstance(prohibit, list) else ()
        constraints.append(PlanConstraint(id=constraint_id, instruction=instruction, prohibit=prohibited))
    return constraints


# =============================================================================
# Bans
# =============================================================================

NEGATION = re.compile(r"\b(refrain|avoid|do\s*not|don't|no)\b", re.IGNORECASE)
_RECRUIT_PATTERN = re.compile(
    r"\b(military\s+recruit|recruitment|recruit\s+any|recruit\s+military|train\s+military|conscrip)", re.IGNORECASE
)
_TECH_PATTERN = re.compile(
    r"\b(technology\s+upgrades?|tech\s+upgrades?|research|increase\s+technology|upgrade\s+tech)\b", re.IGNORECASE
)
_INFRA_PATTERN = re.compile(
    r"\b(infrastructure\s+upgrades?|infra\s+upgrades?|build\s+infrastructure|upgrade\s+infrastructure)\b",
    re.IGNORECASE,
)
_ATTACK_PATTERN = re.compile(r"\b(attack|attacks|invade|invasion|offensive)\b", re.IGNORECASE)


@dataclass(frozen=True)
class PlanBans:
    """Rule-based action families a plan has told a country to avoid."""

    recruitment: bool = False
    research: bool = False
    infrastructure: bool = False
    attacks: bool = False
    reasons: tuple[str, ...] = ()

    @property
    def has_bans(self) -> bool:
        return self.recruitment or self.research or self.infrastructure or self.attacks

    def blocks(self, action: GameAction) -> bool:
        if isinstance(action, RecruitAction):
            return self.recruitment
        if isinstance(action, ResearchAction):
            return self.research
        if isinstance(action, InfrastructureAction):
            return self.infrastructure
        if isinstance(action, AttackAction):
            return self.attacks
        return False


def _classify_negated(text: str) -> str | None:
    if _RECRUIT_PATTERN.search(text):
        return "recruitment"
    if _TECH_PATTERN.search(text):
        return "research"
    if _INFRA_PATTERN.search(text):
        return "infrastructure"
    if _ATTACK_PATTERN.search(text):
        return "attacks"

    lower = text.lower()
    if "infrastructure" in lower:
        return "infrastructure"
    if "technology" in lower or "tech" in lower or "research" in lower:
        return "research"
    if "recruit" in lower:
        return "recruitment"
    return None


_PROHIBIT_KEYWORDS = {
    "recruit": "recruitment",
    "recruitment": "recruitment",
    "research": "research",
    "tech": "research",
    "technology": "research",
    "infrastructure": "infrastructure",
    "infra": "infrastructure",
    "attack": "attacks",
}


def extract_plan_bans(instructions: list[str], constraints: tuple[PlanConstraint, ...] = ()) -> PlanBans:
    """Find negated instructions ("avoid recruitment") and explicit prohibitions.

    Example:
        >>> extract_plan_bans(["Avoid all infrastructure upgrades for 5 turns"]).infrastructure
        True
    """
    banned: set[str] = set()
    reasons: list[str] = []

    texts = list(instructions) + [c.instruction for c in constraints]
    for raw in texts:
        text = str(raw or "").strip()
        if not text or not NEGATION.search(text):
            continue
        category = _classify_negated(text)
        if category is not None:
            banned.add(category)
            reasons.append(text)

    for constraint in constraints:
        for item in constraint.prohibit:
            category = _PROHIBIT_KEYWORDS.get(item.lower())
            if category is not None:
                banned.add(category)
                reasons.append(f"{constraint.id}: prohibit {item}")

    return PlanBans(
        recruitment="recruitment" in banned,
        research="research" in banned,
        infrastructure="infrastructure" in banned,
        attacks="attacks" in banned,
        reasons=tuple(reasons),
    )


def bans_for(analysis: StrategicAnalysis | None) -> PlanBans:
    if analysis is None:
        return PlanBans()
    return extract_plan_bans([s.instruction for s in analysis.steps], analysis.constraints)


# =============================================================================
# Step execution
# =============================================================================

_CONDITION_FIELDS = {
    "budget_gte": "budget",
    "tech_level_gte": "technology_level",
    "military_strength_gte": "military_strength",
    "infra_level_gte": "infrastructure_level",
}


def conditions_met(conditions: dict[str, Any], stats: CountryStats) -> bool:
    """True when every recognized numeric condition holds.

    An empty or wholly unrecognized condition set is trivially met.
    """
    for key, threshold in conditions.items():
        field_name = _CONDITION_FIELDS.get(key)
        if field_name is None or finite_number(threshold) is None:
            continue
        if getattr(stats, field_name) < threshold:
            return False
    return True


def _has_known_conditions(conditions: dict[str, Any]) -> bool:
    return any(key in _CONDITION_FIELDS for key in conditions)


def _int_field(data: dict[str, Any], key: str, default: int | None = None) -> int | None:
    value = finite_number(data.get(key))
    return default if value is None else int(value)


def is_step_complete(step: PlanStep, stats: CountryStats, executed_ids: set[str]) -> bool:
    """Whether a step no longer needs to run.

    Level targets finish once reached. Recruitment steps repeat until their
    stop conditions hold. Every other step runs once.
    """
    if _has_known_conditions(step.stop_when) and conditions_met(step.stop_when, stats):
        return True
    if step.execution is None:
        return True

    data = step.execution.action_data
    target_level = _int_field(data, "targetLevel")
    if step.execution.action_type == "research":
        return target_level is not None and stats.technology_level >= target_level
    if data.get("subType") == "infrastructure":
        return target_level is not None and stats.infrastructure_level >= target_level
    if data.get("subType") == "recruit" and _has_known_conditions(step.stop_when):
        return False
    return step.id in executed_ids


def step_to_action(step: PlanStep, state: GameState, country_id: str) -> GameAction | None:
    """Build the action a plan step describes, or None if it cannot apply."""
    if step.execution is None:
        return None
    data = step.execution.action_data
    common = {
        "game_id": state.game_id,
        "country_id": country_id,
        "turn": state.turn,
        "source": ActionSource.AI,
        "plan_step_id": step.id,
    }

    action_type = step.execution.action_type
    sub_type = data.get("subType")

    if action_type == "research":
        return ResearchAction(**common)
    if action_type == "economic" and sub_type == "infrastructure":
        return InfrastructureAction(**common)
    if action_type == "military" and sub_type == "recruit":
        amount = max(1, min(100, _int_field(data, "amount", 10)))
        return RecruitAction(amount=amount, **common)
    if action_type == "military" and sub_type == "attack":
        city_id = data.get("targetCityId")
        city = state.get_city(city_id) if isinstance(city_id, str) else None
        if city is None or city.country_id == country_id:
            return None
        percent = max(1, min(100, _int_field(data, "allocationPercent", 50)))
        return AttackAction(
            target_city_id=city.id, target_country_id=city.country_id, allocation_percent=percent, **common
        )
    if action_type == "diplomacy":
        target = data.get("targetCountryId")
        if not isinstance(target, str) or target == country_id or state.stats_for(target) is None:
            return None
        gesture = DiplomacyGesture.DENOUNCE if data.get("subType") == "denounce" else DiplomacyGesture.IMPROVE_RELATIONS
        return DiplomacyAction(target_country_id=target, gesture=gesture, **common)

    logger.debug(f"Plan step {step.id} has no executable mapping ({action_type}/{sub_type})")
    return None


def select_plan_actions(
    analysis: StrategicAnalysis,
    state: GameState,
    country_id: str,
    executed_ids: set[str],
) -> list[GameAction]:
    """Actions from the plan's runnable steps, in priority order.

    At most one action per kind is produced, so two research steps never
    both fire in one turn.
    """
    stats = state.stats_for(country_id)
    if stats is None:
        return []

    ordered = sorted(
        enumerate(analysis.steps),
        key=lambda pair: (pair[1].priority is None, pair[1].priority or 0, pair[0]),
    )
    actions: list[GameAction] = []
    kinds: set[str] = set()
    for _, step in ordered:
        if is_step_complete(step, stats, executed_ids):
            continue
        if not conditions_met(step.when, stats):
            continue
        action = step_to_action(step, state, country_id)
        if action is None or action.kind in kinds:
            continue
        kinds.add(action.kind)
        actions.append(action)
    return actions
