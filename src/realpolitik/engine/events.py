"""Turn events handed to the persistence and UI layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TurnEvent:
    """Something that happened during turn resolution.

    Attributes:
        event_type: Dotted name, e.g. "deal.trade.tick" or "combat.resolved"
        turn: Turn the event happened on
        country_id: Country the event concerns most directly
        data: JSON-compatible details
    """

    event_type: str
    turn: int
    country_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "turn": self.turn,
            "country_id": self.country_id,
            "data": self.data,
        }
