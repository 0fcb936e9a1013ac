"""Directional diplomatic relation scores.

Scores run 0-100 with 50 as neutral. A->B need not equal B->A. All helpers
return new stats records; callers install them through GameState.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from realpolitik.models.country import CountryStats
from realpolitik.parameters import (
    CITY_CAPTURED_EXTRA_DELTA,
    COMBAT_ATTACKER_TO_DEFENDER_DELTA,
    COMBAT_DEFENDER_TO_ATTACKER_DELTA,
    DIPLOMACY_SCORE_MAX,
    DIPLOMACY_SCORE_MIN,
    FAILED_ATTACK_EXTRA_DELTA,
    THIRD_PARTY_TO_ATTACKER_DELTA,
    THIRD_PARTY_TO_DEFENDER_DELTA,
)

if TYPE_CHECKING:
    from realpolitik.models.state import GameState


def clamp_score(value: float) -> int:
    return int(max(DIPLOMACY_SCORE_MIN, min(DIPLOMACY_SCORE_MAX, round(value))))


def apply_diplomatic_delta(stats: CountryStats, target_id: str, delta: int) -> CountryStats:
    """Shift the score ``stats`` holds toward ``target_id`` by ``delta``."""
    relations = dict(stats.diplomatic_relations)
    relations[target_id] = clamp_score(stats.relation_to(target_id) + delta)
    return stats.updated(diplomatic_relations=relations)


def apply_mutual_diplomatic_delta(
    state: GameState,
    country_a: str,
    country_b: str,
    delta: int,
    reason: str = "",
) -> None:
    """Shift both directions of a relationship by the same delta."""
    stats_a = state.stats_for(country_a)
    stats_b = state.stats_for(country_b)
    if stats_a is not None:
        state.with_updated_stats(country_a, apply_diplomatic_delta(stats_a, country_b, delta), reason)
    if stats_b is not None:
        state.with_updated_stats(country_b, apply_diplomatic_delta(stats_b, country_a, delta), reason)


def apply_combat_diplomatic_effects(
    state: GameState,
    attacker_id: str,
    defender_id: str,
    city_captured: bool,
) -> None:
    """Relation fallout after a combat.

    Attacker and defender sour on each other (more so after a capture or a
    repelled attack), bystanders distrust the attacker and sympathize with
    the defender.
    """
    extra = CITY_CAPTURED_EXTRA_DELTA if city_captured else FAILED_ATTACK_EXTRA_DELTA
    reason = f"combat {attacker_id} -> {defender_id}"

    attacker = state.stats_for(attacker_id)
    if attacker is not None:
        updated = apply_diplomatic_delta(attacker, defender_id, COMBAT_ATTACKER_TO_DEFENDER_DELTA + extra)
        state.with_updated_stats(attacker_id, updated, reason)

    defender = state.stats_for(defender_id)
    if defender is not None:
        updated = apply_diplomatic_delta(defender, attacker_id, COMBAT_DEFENDER_TO_ATTACKER_DELTA + extra)
        state.with_updated_stats(defender_id, updated, reason)

    for country in state.countries:
        if country.id in (attacker_id, defender_id):
            continue
        bystander = state.stats_for(country.id)
        if bystander is None:
            continue
        bystander = apply_diplomatic_delta(bystander, attacker_id, THIRD_PARTY_TO_ATTACKER_DELTA)
        bystander = apply_diplomatic_delta(bystander, defender_id, THIRD_PARTY_TO_DEFENDER_DELTA)
        state.with_updated_stats(country.id, bystander, reason)
