"""Unit tests for action pricing and material requirements.

Tests cover:
1. Research, infrastructure and recruitment prices
2. Shortage penalty (multiplier, cap, budget-only affordability)
3. Cost application (materials consumed only when fully available)
4. Attack cost formula
"""

import pytest

from realpolitik.engine.military import calculate_attack_cost
from realpolitik.engine.pricing import (
    apply_action_cost,
    apply_attack_cost,
    calculate_attack_pricing,
    calculate_infrastructure_pricing,
    calculate_recruitment_pricing,
    calculate_research_pricing,
    can_afford_action,
    get_pricing_for_action,
)
from realpolitik.engine.resource_cost import (
    ResourceAmount,
    calculate_infrastructure_resource_cost,
    calculate_military_resource_cost,
    check_resource_affordability,
    deduct_resources,
)

# =============================================================================
# Prices
# =============================================================================


class TestResearchPricing:
    """Tests for the research price curve."""

    def test_level_zero_with_materials_costs_base(self, make_stats):
        """Tech 0 with copper and coal in stock costs exactly the base 500."""
        stats = make_stats(technology_level=0)
        pricing = calculate_research_pricing(stats)
        assert pricing.cost == 500
        assert pricing.penalty_multiplier == 1.0
        assert pricing.resource_cost.can_afford

    def test_missing_materials_raise_cost(self, make_stats):
        """Two missing resource types give a 1.8x penalty."""
        stats = make_stats(technology_level=0, resources={})
        pricing = calculate_research_pricing(stats)
        assert pricing.penalty_multiplier == pytest.approx(1.8)
        assert pricing.cost == 900

    def test_cost_grows_with_level(self, make_stats):
        """Each level costs more than the last."""
        costs = [calculate_research_pricing(make_stats(technology_level=level)).cost for level in range(8)]
        assert costs == sorted(costs)
        assert len(set(costs)) == len(costs)

    def test_profile_discount(self, make_stats):
        """Tech Innovators research cheaper."""
        base = calculate_research_pricing(make_stats(technology_level=0)).cost
        innovator = calculate_research_pricing(make_stats(technology_level=0, resource_profile="Tech Innovator")).cost
        assert innovator == 375
        assert innovator < base


class TestRecruitmentPricing:
    """Tests for recruitment cost and tech discount."""

    def test_base_cost_per_point(self, make_stats):
        """10 strength at tech 0 costs 300."""
        assert calculate_recruitment_pricing(10, make_stats(technology_level=0)).cost == 300

    def test_tech_discount_caps_at_25_percent(self, make_stats):
        """Tech 5 and tech 9 both get the maximum 25% discount."""
        assert calculate_recruitment_pricing(10, make_stats(technology_level=5)).cost == 225
        assert calculate_recruitment_pricing(10, make_stats(technology_level=9)).cost == 225

    def test_material_mix_by_tier(self, make_stats):
        """Early tiers need iron and timber."""
        required = calculate_military_resource_cost(10, make_stats(technology_level=0))
        assert required == [ResourceAmount("iron", 6), ResourceAmount("timber", 4)]


class TestInfrastructurePricing:
    """Tests for infrastructure prices and requirements."""

    def test_cost_grows_with_level(self, make_stats):
        low = calculate_infrastructure_pricing(make_stats(infrastructure_level=0)).cost
        high = calculate_infrastructure_pricing(make_stats(infrastructure_level=3)).cost
        assert low == 450
        assert high > low

    def test_steel_needed_from_level_two(self, make_stats):
        ids = [r.resource_id for r in calculate_infrastructure_resource_cost(make_stats(infrastructure_level=2))]
        assert "steel" in ids
        ids = [r.resource_id for r in calculate_infrastructure_resource_cost(make_stats(infrastructure_level=1))]
        assert "steel" not in ids

    def test_unified_entry_point_matches(self, make_stats):
        """get_pricing_for_action returns the same price as the specific calculator."""
        stats = make_stats()
        assert get_pricing_for_action("infrastructure", stats) == calculate_infrastructure_pricing(stats)
        assert get_pricing_for_action("military", stats, 20) == calculate_recruitment_pricing(20, stats)
        with pytest.raises(ValueError):
            get_pricing_for_action("bribe", stats)


# =============================================================================
# Shortage penalty
# =============================================================================


class TestShortagePenalty:
    """Tests for the shortage penalty and affordability rules."""

    def test_penalty_per_missing_type(self):
        required = [ResourceAmount("iron", 10)]
        result = check_resource_affordability(required, {"iron": 3})
        assert not result.can_afford
        assert result.missing == (ResourceAmount("iron", 7),)
        assert result.penalty_multiplier == pytest.approx(1.4)

    def test_penalty_is_capped(self):
        required = [ResourceAmount(r, 1) for r in ("a", "b", "c", "d", "e")]
        result = check_resource_affordability(required, {})
        assert result.penalty_multiplier == 2.5

    def test_affordability_checks_budget_only(self, make_stats):
        """A shortage never blocks an action the budget can pay for."""
        stats = make_stats(technology_level=0, resources={}, budget=900)
        pricing = calculate_research_pricing(stats)
        assert not pricing.resource_cost.can_afford
        assert can_afford_action(pricing, stats.budget)
        assert not can_afford_action(pricing, stats.budget - 1)

    def test_deduct_floors_at_zero(self):
        assert deduct_resources({"iron": 2}, [ResourceAmount("iron", 5)]) == {"iron": 0}


# =============================================================================
# Cost application
# =============================================================================


class TestApplyActionCost:
    """Tests for charging an action's price."""

    def test_full_resources_are_consumed(self, make_stats):
        stats = make_stats(technology_level=0)
        pricing = calculate_research_pricing(stats)
        paid = apply_action_cost(pricing, stats)
        assert paid.budget == stats.budget - 500
        assert paid.resource("copper") == stats.resource("copper") - 10
        assert paid.resource("coal") == stats.resource("coal") - 8

    def test_shortage_keeps_materials(self, make_stats):
        """With a shortage only the penalized budget cost is charged."""
        stats = make_stats(technology_level=0, resources={"copper": 4})
        pricing = calculate_research_pricing(stats)
        paid = apply_action_cost(pricing, stats)
        assert paid.budget == stats.budget - pricing.cost
        assert paid.resources == {"copper": 4}

    def test_original_stats_untouched(self, make_stats):
        stats = make_stats()
        apply_action_cost(calculate_research_pricing(stats), stats)
        assert stats.budget == 10_000


class TestAttackCost:
    """Tests for the attack cost formula."""

    @pytest.mark.parametrize("allocated,expected", [(0, 100), (1, 110), (20, 300), (50, 600), (120, 1300)])
    def test_affine_in_allocation(self, allocated, expected):
        assert calculate_attack_pricing(allocated).cost == expected

    def test_declaration_penalty(self, make_stats, cities):
        stats = make_stats(diplomatic_relations={"beta": 55})
        cost = calculate_attack_cost(stats, cities[1], 50)
        assert cost.economic_cost == 600
        assert cost.relation_penalty == 10
        assert cost.relation_after == 45

    def test_attack_cost_floors_budget(self, make_stats):
        paid = apply_attack_cost(calculate_attack_pricing(50), make_stats(budget=100))
        assert paid.budget == 0
