"""Leader personality traits that bias rule-based decisions."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class AIPersonality:
    """Personality traits on a 0-1 scale.

    Attributes:
        aggression: Willingness to build and use military force
        cooperativeness: Preference for diplomacy over confrontation
        risk_tolerance: Appetite for long-term investment
        honesty: Likelihood of keeping commitments
    """

    aggression: float = 0.5
    cooperativeness: float = 0.5
    risk_tolerance: float = 0.5
    honesty: float = 0.7

    def __post_init__(self) -> None:
        for name in ("aggression", "cooperativeness", "risk_tolerance", "honesty"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be 0-1, got {value}")

    def adjusted(self, **changes: float) -> AIPersonality:
        """Copy with the given traits changed, clamped to 0-1."""
        return replace(self, **{k: max(0.0, min(1.0, v)) for k, v in changes.items()})


DEFAULT_PERSONALITY = AIPersonality()


def random_personality(seed: int | str | None = None) -> AIPersonality:
    """Draw a personality; the same seed always gives the same traits.

    Honesty is drawn from 0.5-1.0 so generated leaders are mostly honest.
    """
    rng = random.Random(seed)
    return AIPersonality(
        aggression=rng.random(),
        cooperativeness=rng.random(),
        risk_tolerance=rng.random(),
        honesty=0.5 + rng.random() * 0.5,
    )
