"""Unit tests for rule-based economic and military analysis."""

import math

import pytest

from realpolitik.ai.analysis import (
    analyze_economic_situation,
    calculate_decision_weights,
    calculate_research_roi,
    decide_military_recruitment,
    get_neighbor_ids,
)
from realpolitik.ai.personality import DEFAULT_PERSONALITY


class TestNeighbors:
    def test_neighbors_within_distance(self, sample_game_state):
        assert get_neighbor_ids(sample_game_state, "alpha") == ["beta"]
        assert get_neighbor_ids(sample_game_state, "gamma") == []

    def test_unknown_country_has_no_neighbors(self, sample_game_state):
        assert get_neighbor_ids(sample_game_state, "nobody") == []


class TestAnalyzeEconomicSituation:
    """Tests for the per-country analysis snapshot."""

    def test_unknown_country_raises(self, sample_game_state):
        with pytest.raises(KeyError):
            analyze_economic_situation(sample_game_state, "nobody")

    def test_healthy_country(self, sample_game_state):
        analysis = analyze_economic_situation(sample_game_state, "alpha")
        assert analysis.current_budget == 10_000
        assert analysis.turns_until_bankrupt is None
        assert analysis.effective_military_strength == 120
        assert analysis.average_neighbor_effective_strength == 96
        assert not analysis.is_under_defended

    def test_isolated_weak_country_is_under_defended(self, sample_game_state):
        """Gamma has no neighbors, so its recommendation is max(50, own, pop/2000)."""
        analysis = analyze_economic_situation(sample_game_state, "gamma")
        assert analysis.military_deficit == pytest.approx(50 - 30)
        assert not analysis.is_under_defended

    def test_starving_army_flags_under_defense(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(military_strength=10))
        analysis = analyze_economic_situation(state, "alpha")
        assert analysis.is_under_defended

    def test_research_roi_infinite_without_population(self, make_stats):
        assert calculate_research_roi(make_stats(population=0), 500) == math.inf


class TestRecruitment:
    """Tests for recruitment sizing."""

    def test_recruitment_multiple_of_five(self, sample_game_state):
        state = sample_game_state
        state.with_updated_stats("alpha", state.stats_for("alpha").updated(military_strength=10))
        stats = state.stats_for("alpha")
        analysis = analyze_economic_situation(state, "alpha")
        weights = calculate_decision_weights(analysis, DEFAULT_PERSONALITY)

        amount = decide_military_recruitment(stats, analysis, weights)

        assert amount > 0
        assert amount % 5 == 0

    def test_no_recruitment_without_deficit(self, sample_game_state):
        analysis = analyze_economic_situation(sample_game_state, "alpha")
        weights = calculate_decision_weights(analysis, DEFAULT_PERSONALITY)
        assert decide_military_recruitment(sample_game_state.stats_for("alpha"), analysis, weights) == 0

    def test_weights_clamped(self, sample_game_state):
        analysis = analyze_economic_situation(sample_game_state, "alpha")
        weights = calculate_decision_weights(analysis, DEFAULT_PERSONALITY, "Tech Innovator")
        for value in (weights.research_priority, weights.infrastructure_priority, weights.military_priority):
            assert 0.0 <= value <= 1.0
