"""Game action definitions for Realpolitik.

Every action a country can submit is one variant of the ``GameAction`` tagged
union, discriminated on ``kind``. Each variant also reports the broader
``action_type`` family it belongs to (research, economic, military,
diplomacy). Player submissions and AI decisions produce the same variants and
are resolved through the same code path.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from realpolitik.exceptions import StateInvariantError


class ActionType(str, Enum):
    """Broad action family, used for logging and plan matching.

    Inherits from str for proper JSON serialization.
    """

    RESEARCH = "research"
    ECONOMIC = "economic"
    MILITARY = "military"
    DIPLOMACY = "diplomacy"


class ActionStatus(str, Enum):
    """Lifecycle of a submitted action. Terminal once it leaves PENDING."""

    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"


class ActionSource(str, Enum):
    """Who submitted the action. Never influences pricing or resolution."""

    PLAYER = "player"
    AI = "ai"


class DiplomacyGesture(str, Enum):
    IMPROVE_RELATIONS = "improve_relations"
    DENOUNCE = "denounce"


def _new_action_id() -> str:
    return str(uuid.uuid4())


class BaseAction(BaseModel):
    """Fields shared by every action variant.

    Attributes:
        id: Unique action identifier
        game_id: Game the action belongs to
        country_id: Acting country
        turn: Turn the action was submitted on
        status: pending / executed / failed
        source: player or ai
        plan_step_id: LLM plan step this action was derived from, if any
    """

    action_type: ClassVar[ActionType]

    id: str = Field(default_factory=_new_action_id)
    game_id: str
    country_id: str = Field(..., min_length=1)
    turn: int = Field(..., ge=1)
    status: ActionStatus = Field(default=ActionStatus.PENDING)
    source: ActionSource = Field(default=ActionSource.PLAYER)
    plan_step_id: str | None = Field(default=None)

    @property
    def is_terminal(self) -> bool:
        return self.status != ActionStatus.PENDING

    @property
    def from_plan(self) -> bool:
        return self.plan_step_id is not None

    def with_status(self, status: ActionStatus) -> "BaseAction":
        """Return a copy in the given status.

        Raises:
            StateInvariantError: If this action is already terminal.
        """
        if self.is_terminal:
            raise StateInvariantError(
                f"action {self.id} is already {self.status.value}, cannot become {status.value}"
            )
        return self.model_copy(update={"status": status})


class ResearchAction(BaseAction):
    """Raise technology level by one."""

    action_type: ClassVar[ActionType] = ActionType.RESEARCH
    kind: Literal["research"] = "research"
    target_level: int | None = Field(default=None, ge=1)


class InfrastructureAction(BaseAction):
    """Raise infrastructure level by one."""

    action_type: ClassVar[ActionType] = ActionType.ECONOMIC
    kind: Literal["infrastructure"] = "infrastructure"
    target_level: int | None = Field(default=None, ge=1)


class RecruitAction(BaseAction):
    """Recruit ``amount`` military strength points."""

    action_type: ClassVar[ActionType] = ActionType.MILITARY
    kind: Literal["recruit"] = "recruit"
    amount: int = Field(default=10, ge=1)


class AttackAction(BaseAction):
    """Commit a percentage of military strength against an enemy city.

    Attributes:
        target_city_id: City under attack
        target_country_id: Current owner of that city
        allocation_percent: Share of current military strength committed
        is_live_resolution: Resolve combat immediately instead of at turn end
    """

    action_type: ClassVar[ActionType] = ActionType.MILITARY
    kind: Literal["attack"] = "attack"
    target_city_id: str = Field(..., min_length=1)
    target_country_id: str = Field(..., min_length=1)
    allocation_percent: int = Field(..., ge=1, le=100)
    is_live_resolution: bool = Field(default=False)


class DiplomacyAction(BaseAction):
    """A bilateral diplomatic gesture toward another country."""

    action_type: ClassVar[ActionType] = ActionType.DIPLOMACY
    kind: Literal["diplomacy"] = "diplomacy"
    target_country_id: str = Field(..., min_length=1)
    gesture: DiplomacyGesture = Field(default=DiplomacyGesture.IMPROVE_RELATIONS)


GameAction = Annotated[
    Union[ResearchAction, InfrastructureAction, RecruitAction, AttackAction, DiplomacyAction],
    Field(discriminator="kind"),
]

_GAME_ACTION_ADAPTER: TypeAdapter[GameAction] = TypeAdapter(GameAction)


def parse_action(data: dict[str, Any]) -> GameAction:
    """Validate a raw payload into the matching action variant.

    Raises:
        pydantic.ValidationError: If ``kind`` is unknown or fields are invalid.
    """
    return _GAME_ACTION_ADAPTER.validate_python(data)


def format_action_for_display(action: BaseAction) -> str:
    """Short one-line description for logs and history."""
    if isinstance(action, ResearchAction):
        return "Research technology"
    if isinstance(action, InfrastructureAction):
        return "Upgrade infrastructure"
    if isinstance(action, RecruitAction):
        return f"Recruit {action.amount} military"
    if isinstance(action, AttackAction):
        return f"Attack city {action.target_city_id} with {action.allocation_percent}% of forces"
    if isinstance(action, DiplomacyAction):
        return f"{action.gesture.value.replace('_', ' ').capitalize()} toward {action.target_country_id}"
    return action.__class__.__name__
