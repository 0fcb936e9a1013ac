"""Deal models: multi-turn agreements between two countries."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class DealType(str, Enum):
    TRADE = "trade"
    ALLIANCE = "alliance"
    NON_AGGRESSION = "non_aggression"
    MILITARY_AID = "military_aid"
    TECHNOLOGY_SHARE = "technology_share"
    CUSTOM = "custom"


class DealStatus(str, Enum):
    """Deal lifecycle. COMPLETED, REJECTED and VIOLATED are terminal."""

    DRAFT = "draft"
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    VIOLATED = "violated"


TERMINAL_DEAL_STATUSES = frozenset({DealStatus.REJECTED, DealStatus.COMPLETED, DealStatus.VIOLATED})


class CommitmentType(str, Enum):
    RESOURCE_TRANSFER = "resource_transfer"
    BUDGET_TRANSFER = "budget_transfer"
    CITY_TRANSFER = "city_transfer"


class DealCommitment(BaseModel):
    """One side's promise within a deal.

    Attributes:
        type: What is being transferred
        resource: Resource id (resource transfers only)
        amount: Quantity or budget amount
        city_id: City id (city transfers only)
        duration_turns: For recurring transfers, how many turns it runs
    """

    type: CommitmentType
    resource: str | None = Field(default=None)
    amount: int | None = Field(default=None, ge=0)
    city_id: str | None = Field(default=None)
    duration_turns: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_shape(self) -> "DealCommitment":
        """Each commitment type requires its own fields."""
        if self.type == CommitmentType.RESOURCE_TRANSFER and (self.resource is None or self.amount is None):
            raise ValueError("resource_transfer requires resource and amount")
        if self.type == CommitmentType.BUDGET_TRANSFER and self.amount is None:
            raise ValueError("budget_transfer requires amount")
        if self.type == CommitmentType.CITY_TRANSFER and self.city_id is None:
            raise ValueError("city_transfer requires city_id")
        return self


class DealTerms(BaseModel):
    proposer_commitments: list[DealCommitment] = Field(default_factory=list)
    receiver_commitments: list[DealCommitment] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)


class Deal(BaseModel):
    """An agreement between a proposing and a receiving country.

    Attributes:
        id: Unique deal identifier
        game_id: Game the deal belongs to
        proposing_country_id: Country that offered the deal
        receiving_country_id: Country that received the offer
        deal_type: trade / alliance / non_aggression / ...
        deal_terms: Commitments of both sides
        status: Lifecycle status
        turn_created: Turn the deal was created on
        turn_expires: Optional turn at which the deal expires
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    game_id: str
    proposing_country_id: str = Field(..., min_length=1)
    receiving_country_id: str = Field(..., min_length=1)
    deal_type: DealType
    deal_terms: DealTerms = Field(default_factory=DealTerms)
    status: DealStatus = Field(default=DealStatus.DRAFT)
    turn_created: int = Field(..., ge=1)
    turn_expires: int | None = Field(default=None, ge=1)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_DEAL_STATUSES

    def is_expired_at(self, turn: int) -> bool:
        return self.turn_expires is not None and turn >= self.turn_expires
