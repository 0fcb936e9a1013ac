"""Resource definitions and the resource registry.

The registry is a plain value: build one with ``default_registry()`` (or
``ResourceRegistry(definitions)`` for custom sets) and pass it to whatever
needs resource metadata. There is no module-level instance, so tests can use
isolated resource sets.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class ResourceCategory(str, Enum):
    BASIC = "basic"
    STRATEGIC = "strategic"
    ECONOMIC = "economic"
    INDUSTRIAL = "industrial"


@dataclass(frozen=True)
class ResourceDefinition:
    """Static metadata for one resource.

    Attributes:
        id: Resource identifier used in stockpiles and yields
        name: Display name
        category: basic / strategic / economic / industrial
        base_value: Market value at target stock
        production_difficulty: 0-1, higher is harder to produce
        storage_decay: Fraction lost per turn in storage (0 = none)
        tradeable: Whether the resource can be traded on the market
        description: Flavor text
    """

    id: str
    name: str
    category: ResourceCategory
    base_value: int
    production_difficulty: float
    storage_decay: float = 0.0
    tradeable: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if self.base_value < 0:
            raise ValueError(f"base_value must be >= 0, got {self.base_value}")
        if not 0.0 <= self.production_difficulty <= 1.0:
            raise ValueError(f"production_difficulty must be 0-1, got {self.production_difficulty}")
        if not 0.0 <= self.storage_decay <= 1.0:
            raise ValueError(f"storage_decay must be 0-1, got {self.storage_decay}")


DEFAULT_RESOURCES: tuple[ResourceDefinition, ...] = (
    ResourceDefinition("food", "Food", ResourceCategory.BASIC, 2, 0.3, 0.1,
                       description="Feeds the population; spoils in storage."),
    ResourceDefinition("timber", "Timber", ResourceCategory.BASIC, 3, 0.4,
                       description="Construction material for early infrastructure."),
    ResourceDefinition("iron", "Iron", ResourceCategory.STRATEGIC, 10, 0.6,
                       description="Weapons and tools for early armies."),
    ResourceDefinition("oil", "Oil", ResourceCategory.STRATEGIC, 15, 0.7,
                       description="Fuel for modern militaries and logistics."),
    ResourceDefinition("gold", "Gold", ResourceCategory.ECONOMIC, 20, 0.5,
                       description="Store of value and trade currency."),
    ResourceDefinition("copper", "Copper", ResourceCategory.ECONOMIC, 5, 0.3,
                       description="Wiring and electronics for research."),
    ResourceDefinition("steel", "Steel", ResourceCategory.INDUSTRIAL, 12, 0.7,
                       description="Advanced construction and armaments."),
    ResourceDefinition("coal", "Coal", ResourceCategory.INDUSTRIAL, 6, 0.5,
                       description="Energy for industry and research."),
)


class ResourceRegistry:
    """Lookup table of resource definitions keyed by id.

    Example:
        >>> registry = default_registry()
        >>> registry.get("oil").base_value
        15
    """

    def __init__(self, definitions: Iterable[ResourceDefinition] = ()):
        self._definitions: dict[str, ResourceDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ResourceDefinition) -> None:
        """Add a definition. Re-registering an id replaces it."""
        if definition.id in self._definitions:
            logger.warning(f"Replacing resource definition {definition.id!r}")
        self._definitions[definition.id] = definition

    def get(self, resource_id: str) -> ResourceDefinition | None:
        return self._definitions.get(resource_id)

    def all(self) -> list[ResourceDefinition]:
        return list(self._definitions.values())

    def ids(self) -> list[str]:
        return list(self._definitions)

    def by_category(self, category: ResourceCategory) -> list[ResourceDefinition]:
        return [d for d in self._definitions.values() if d.category == category]

    def tradeable(self) -> list[ResourceDefinition]:
        return [d for d in self._definitions.values() if d.tradeable]

    def value_of(self, resource_id: str, amount: int) -> int:
        """Base-value worth of an amount of a resource (0 if unknown)."""
        definition = self._definitions.get(resource_id)
        if definition is None:
            return 0
        return definition.base_value * amount

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


def default_registry() -> ResourceRegistry:
    """Build a fresh registry holding the eight standard resources."""
    return ResourceRegistry(DEFAULT_RESOURCES)
