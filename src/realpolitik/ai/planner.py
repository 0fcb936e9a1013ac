"""Strategic planner: picks one focus per AI country per turn."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from realpolitik.ai.analysis import EconomicAnalysis, analyze_economic_situation
from realpolitik.ai.personality import DEFAULT_PERSONALITY, AIPersonality
from realpolitik.ai.plan import StrategicAnalysis
from realpolitik.models.state import GameState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategicIntent:
    """This turn's focus for one country.

    Attributes:
        focus: economy, military, research, diplomacy or balanced
        rationale: Why the focus was chosen
        economic: The rule-based analysis the focus was derived from
        analysis: The LLM analysis that set the focus, if any
    """

    focus: str
    rationale: str
    economic: EconomicAnalysis
    analysis: StrategicAnalysis | None = None

    @property
    def from_llm(self) -> bool:
        return self.analysis is not None


class StrategicPlanner:
    """Computes a StrategicIntent from stats, neighbors and personality.

    An LLM analysis, when one is active for the country, overrides the
    rule-based focus.
    """

    def __init__(self, personality: AIPersonality = DEFAULT_PERSONALITY):
        self.personality = personality

    def plan(
        self,
        state: GameState,
        country_id: str,
        analysis: StrategicAnalysis | None = None,
        personality: AIPersonality | None = None,
    ) -> StrategicIntent:
        personality = personality or self.personality
        economic = analyze_economic_situation(state, country_id)

        if analysis is not None:
            return StrategicIntent(
                focus=analysis.focus,
                rationale=f"[LLM T{analysis.turn_analyzed}] {analysis.rationale}",
                economic=economic,
                analysis=analysis,
            )

        focus, rationale = self._rule_focus(economic, personality)
        logger.debug(f"{country_id} T{state.turn}: focus={focus} ({rationale})")
        return StrategicIntent(focus=focus, rationale=rationale, economic=economic)

    @staticmethod
    def _rule_focus(economic: EconomicAnalysis, personality: AIPersonality) -> tuple[str, str]:
        if economic.is_under_defended:
            return "military", f"Military deficit of {economic.military_deficit:.0f} against neighbors"
        if economic.turns_until_bankrupt is not None and economic.turns_until_bankrupt < 5:
            return "economy", f"Bankrupt in {economic.turns_until_bankrupt} turns"
        if economic.current_budget < 1000:
            return "economy", "Low budget"
        if economic.research_roi < 40 and economic.can_afford_research:
            return "research", f"Research pays back in {economic.research_roi:.0f} turns"
        if personality.cooperativeness >= 0.7:
            return "diplomacy", "Cooperative leadership"
        if personality.aggression >= 0.7:
            return "military", "Aggressive leadership"
        return "balanced", "No pressing concerns"
