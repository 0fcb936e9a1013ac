"""Batch LLM strategic planning: one call analyzes many AI countries.

The response is untrusted free text. ``normalize_batch_response`` turns it
into analyses for requested countries only and never raises: anything it
cannot use is dropped, and a response it cannot parse at all yields ``{}``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from realpolitik.ai.analysis import analyze_economic_situation, get_neighbor_ids
from realpolitik.ai.plan import (
    DIPLOMATIC_STANCES,
    STRATEGIC_FOCUSES,
    StrategicAnalysis,
    finite_number,
    parse_plan_constraints,
    parse_plan_steps,
)
from realpolitik.config import get_llm_call_frequency, is_llm_enabled, is_plan_debug
from realpolitik.engine.military import calculate_effective_military_strength
from realpolitik.exceptions import LLMUnavailableError
from realpolitik.llm import TextCompleter, complete_with_policy, strip_code_fences
from realpolitik.models.state import GameState
from realpolitik.parameters import LLM_FIRST_PLANNING_TURN
from realpolitik.prompts import BATCH_COUNTRY_BLOCK, BATCH_STRATEGY_PROMPT, GAME_RULES_SUMMARY

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")

MAX_RATIONALE_LENGTH = 200
DEFAULT_CONFIDENCE = 0.7


def normalize_country_id(raw: Any, requested_ids: set[str]) -> str | None:
    """Recover a requested country id from a possibly decorated field.

    Handles values such as ``"Avalon (3f2c...)"`` or ``"3f2c...,"`` by
    matching the 8-4-4-4-12 hex shape. Returns None when nothing in the
    field names a requested country.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if text in requested_ids:
        return text

    by_lower = {rid.lower(): rid for rid in requested_ids}
    for match in UUID_PATTERN.finditer(text):
        found = by_lower.get(match.group(0).lower())
        if found is not None:
            return found

    stripped = text.strip(" \t\"'.,;:()[]{}")
    return stripped if stripped in requested_ids else None


def _parse_entry(entry: dict[str, Any], turn: int) -> StrategicAnalysis:
    focus = entry.get("focus")
    if focus not in STRATEGIC_FOCUSES:
        focus = "balanced"

    rationale = entry.get("rationale")
    rationale = rationale if isinstance(rationale, str) and rationale else "Strategic analysis completed"

    stance: dict[str, str] = {}
    for target, value in (entry.get("diplomacy") or {}).items() if isinstance(entry.get("diplomacy"), dict) else ():
        if value in DIPLOMATIC_STANCES:
            stance[str(target).strip()] = value

    confidence = finite_number(entry.get("confidence"))
    confidence = DEFAULT_CONFIDENCE if confidence is None else float(max(0.0, min(1.0, confidence)))

    return StrategicAnalysis(
        focus=focus,
        rationale=rationale[:MAX_RATIONALE_LENGTH],
        threat_assessment=str(entry.get("threats") or "Normal threat level"),
        opportunities=str(entry.get("opportunities") or "Multiple opportunities available"),
        steps=tuple(parse_plan_steps(entry)),
        constraints=tuple(parse_plan_constraints(entry)),
        diplomatic_stance=stance,
        confidence=confidence,
        turn_analyzed=turn,
    )


def normalize_batch_response(text: str, requested_ids: set[str] | list[str], turn: int = 0) -> dict[str, StrategicAnalysis]:
    """Parse a batch planning response into per-country analyses.

    Accepts a JSON object with a ``countries`` array or a bare array,
    optionally wrapped in a ```json fence. Entries whose ``countryId`` does
    not resolve to a requested id are discarded.

    Returns:
        Requested country id -> analysis. Empty on unparseable input.
    """
    requested = set(requested_ids)
    if not isinstance(text, str) or not text.strip():
        return {}

    try:
        # NaN and Infinity literals read as missing values
        parsed = json.loads(strip_code_fences(text), parse_constant=lambda _: None)
    except (json.JSONDecodeError, TypeError, ValueError, RecursionError) as e:
        logger.error(f"Failed to parse batch response: {e}\nResponse: {text[:500]}")
        return {}

    entries = parsed.get("countries") if isinstance(parsed, dict) else parsed
    if not isinstance(entries, list):
        logger.error(f"Expected a countries array in batch response, got {type(entries).__name__}")
        return {}

    results: dict[str, StrategicAnalysis] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        raw_id = entry.get("countryId")
        country_id = normalize_country_id(raw_id, requested)
        if country_id is None:
            logger.warning(f"Discarding batch entry for unrequested country {raw_id!r}")
            continue
        if country_id != raw_id:
            logger.warning(f"Normalized country id {raw_id!r} -> {country_id}")
        results[country_id] = _parse_entry(entry, turn)

    logger.info(f"Parsed {len(results)}/{len(requested)} country analyses")
    return results


class BatchPlanner:
    """Requests and caches LLM strategic plans for AI countries.

    Plans are requested on turn 2 and then every ``frequency`` turns; in
    between, each country's latest plan stays active until it is
    ``frequency`` turns old.

    Args:
        completer: Text-completion collaborator (None disables LLM planning)
        frequency: Planning period in turns (default: REALPOLITIK_LLM_CALL_FREQUENCY)
        timeout: Seconds per LLM attempt (default: config)
        retries: Retries after the first attempt (default: config)
    """

    def __init__(
        self,
        completer: TextCompleter | None = None,
        frequency: int | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ):
        self.completer = completer
        self.frequency = frequency or get_llm_call_frequency()
        self.timeout = timeout
        self.retries = retries
        self._plans: dict[str, StrategicAnalysis] = {}

    def should_plan(self, turn: int) -> bool:
        return turn == LLM_FIRST_PLANNING_TURN or (turn >= self.frequency and turn % self.frequency == 0)

    def build_prompt(self, state: GameState, country_ids: list[str]) -> str:
        blocks = []
        for country_id in country_ids:
            country = state.country(country_id)
            stats = state.stats_for(country_id)
            if country is None or stats is None:
                continue
            analysis = analyze_economic_situation(state, country_id, stats)
            neighbors = []
            for neighbor_id in get_neighbor_ids(state, country_id):
                neighbor = state.country(neighbor_id)
                neighbor_stats = state.stats_for(neighbor_id)
                neighbors.append(
                    f"{neighbor.name} ({neighbor_id}) eff {calculate_effective_military_strength(neighbor_stats)}, "
                    f"relation {stats.relation_to(neighbor_id)}"
                )
            blocks.append(
                BATCH_COUNTRY_BLOCK.format(
                    name=country.name,
                    country_id=country_id,
                    population_k=stats.population // 1000,
                    budget=stats.budget,
                    technology_level=stats.technology_level,
                    infrastructure_level=stats.infrastructure_level,
                    military_strength=stats.military_strength,
                    profile=stats.resource_profile or "Balanced",
                    net_income=round(analysis.net_income),
                    defense_status="UNDER-DEFENDED" if analysis.is_under_defended else "OK",
                    solvency=(
                        f"Bankrupt in {analysis.turns_until_bankrupt}t"
                        if analysis.turns_until_bankrupt is not None
                        else "Stable"
                    ),
                    neighbors="; ".join(neighbors) or "none",
                )
            )
        return BATCH_STRATEGY_PROMPT.format(
            rules=GAME_RULES_SUMMARY,
            horizon=self.frequency,
            country_blocks="\n".join(blocks),
            example_id=country_ids[0] if country_ids else "",
        )

    async def analyze(self, state: GameState, country_ids: list[str]) -> dict[str, StrategicAnalysis]:
        """One LLM call for all countries; ``{}`` on any failure."""
        if not country_ids or self.completer is None or not is_llm_enabled():
            return {}

        prompt = self.build_prompt(state, country_ids)
        try:
            text = await complete_with_policy(self.completer, prompt, timeout=self.timeout, retries=self.retries)
        except LLMUnavailableError as e:
            logger.warning(f"Batch planning unavailable on turn {state.turn}, using rule-based AI: {e}")
            return {}

        analyses = normalize_batch_response(text, country_ids, turn=state.turn)
        self._plans.update(analyses)
        if is_plan_debug():
            for country_id, analysis in analyses.items():
                logger.info(
                    f"[LLM Plan Debug] {country_id} T{state.turn} focus={analysis.focus} "
                    f"steps={len(analysis.steps)} confidence={analysis.confidence:.2f}"
                )
        return analyses

    def active_plan(self, country_id: str, turn: int) -> StrategicAnalysis | None:
        plan = self._plans.get(country_id)
        if plan is None or turn > plan.valid_until_turn(self.frequency):
            return None
        return plan

    async def plans_for_turn(self, state: GameState, country_ids: list[str]) -> dict[str, StrategicAnalysis]:
        """Fresh plans on planning turns, otherwise the still-active cached ones."""
        if self.should_plan(state.turn):
            await self.analyze(state, country_ids)
        plans = {}
        for country_id in country_ids:
            plan = self.active_plan(country_id, state.turn)
            if plan is not None:
                plans[country_id] = plan
        return plans
