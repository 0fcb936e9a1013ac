"""Country, city and per-turn statistics models.

Countries are immutable identities. Everything that changes turn to turn
lives in CountryStats, which is treated as a value: updates produce a new
validated instance via ``CountryStats.updated`` rather than writing fields.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from realpolitik.parameters import (
    CITY_RESOURCE_WEIGHTS,
    DEFAULT_CITY_RESOURCE_WEIGHT,
    DIPLOMACY_SCORE_MAX,
    DIPLOMACY_SCORE_MIN,
    DIPLOMACY_SCORE_NEUTRAL,
)


class Country(BaseModel):
    """Static identity of a country.

    Attributes:
        id: Unique country identifier (UUID string)
        game_id: Game this country belongs to
        name: Display name
        color: Map color
        position_x: Board X coordinate of the capital
        position_y: Board Y coordinate of the capital
        is_player_controlled: True for the human player's country
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    game_id: str
    name: str = Field(..., min_length=1)
    color: str = Field(default="#888888")
    position_x: float = Field(default=0.0)
    position_y: float = Field(default=0.0)
    is_player_controlled: bool = Field(default=False)

    def distance_to(self, other: Country) -> float:
        return math.hypot(self.position_x - other.position_x, self.position_y - other.position_y)


class CountryStats(BaseModel):
    """Per-country, per-turn record.

    Invariants:
        - budget and every resource quantity are >= 0 (violations raise)
        - relation scores are clamped to [0, 100]
        - unknown relation lookups read as neutral (50)

    Attributes:
        country_id: Owning country
        turn: Turn this record describes
        population: Total population
        budget: Treasury
        technology_level: Research level (0+)
        infrastructure_level: Infrastructure level (0+)
        military_strength: Nominal military strength
        military_equipment: Keyed capability map
        resources: Resource id -> stockpiled quantity
        diplomatic_relations: Target country id -> directional score
        resource_profile: Specialization tag, e.g. "Tech Innovator"
    """

    country_id: str = Field(..., min_length=1)
    turn: int = Field(default=1, ge=1)
    population: int = Field(default=0, ge=0)
    budget: int = Field(default=0, ge=0)
    technology_level: int = Field(default=0, ge=0)
    infrastructure_level: int = Field(default=0, ge=0)
    military_strength: int = Field(default=0, ge=0)
    military_equipment: dict[str, int] = Field(default_factory=dict)
    resources: dict[str, int] = Field(default_factory=dict)
    diplomatic_relations: dict[str, int] = Field(default_factory=dict)
    resource_profile: str | None = Field(default=None)

    @field_validator("resources")
    @classmethod
    def resources_non_negative(cls, v: dict[str, int]) -> dict[str, int]:
        """Reject negative stockpiles."""
        for resource_id, amount in v.items():
            if amount < 0:
                raise ValueError(f"resource {resource_id!r} would be negative ({amount})")
        return v

    @field_validator("diplomatic_relations", mode="before")
    @classmethod
    def clamp_relations(cls, v: dict[str, Any]) -> dict[str, int]:
        """Clamp relation scores to [0, 100]."""
        return {
            target: int(max(DIPLOMACY_SCORE_MIN, min(DIPLOMACY_SCORE_MAX, round(score))))
            for target, score in (v or {}).items()
        }

    def relation_to(self, target_id: str) -> int:
        """Score this country holds toward target_id (neutral if unknown)."""
        return self.diplomatic_relations.get(target_id, DIPLOMACY_SCORE_NEUTRAL)

    def resource(self, resource_id: str) -> int:
        return self.resources.get(resource_id, 0)

    def updated(self, **changes: Any) -> CountryStats:
        """Return a validated copy with the given fields replaced.

        Unlike ``model_copy(update=...)`` this re-runs validation, so a change
        that would drive budget or a resource negative raises immediately.
        """
        data = self.model_dump()
        data.update(changes)
        return CountryStats.model_validate(data)


class City(BaseModel):
    """A city owned by exactly one country.

    Attributes:
        id: Unique city identifier
        country_id: Current owner
        name: Display name
        position_x: Board X coordinate
        position_y: Board Y coordinate
        population: City population
        per_turn_resources: Resource id -> yield per turn
        is_under_attack: Set while an attack on this city is pending
    """

    id: str = Field(..., min_length=1)
    country_id: str
    name: str = Field(default="")
    position_x: float = Field(default=0.0)
    position_y: float = Field(default=0.0)
    population: int = Field(default=0, ge=0)
    per_turn_resources: dict[str, int] = Field(default_factory=dict)
    is_under_attack: bool = Field(default=False)


def calculate_city_value(city: City) -> int:
    """Strategic value of a city from population and weighted yield.

    Formula:
        value = floor(population / 1000 + sum(yield * resource weight))

    Example:
        A city of 50,000 people yielding 10 oil per turn is worth
        50 + 10 * 15 = 200.
    """
    population_value = city.population / 1000
    resource_value = sum(
        amount * CITY_RESOURCE_WEIGHTS.get(resource_id, DEFAULT_CITY_RESOURCE_WEIGHT)
        for resource_id, amount in city.per_turn_resources.items()
    )
    return math.floor(population_value + resource_value)


def city_defense_value(city: City) -> int:
    """How much a city is worth defending, on a 1-10 scale.

    Formula:
        clamp(floor((sum(yield) * 2 + population / 10,000) / 5), 1, 10)
    """
    raw = sum(city.per_turn_resources.values()) * 2 + city.population / 10_000
    return min(10, max(1, math.floor(raw / 5)))
