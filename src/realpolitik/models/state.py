"""Authoritative game state for one turn of Realpolitik.

GameState is owned by the turn-resolution pipeline for the duration of a
turn. It is never written field by field: every change goes through a named
mutation operation, which appends a ``StateMutation`` to an append-only log.
Because each mutation carries a JSON-compatible payload, a turn can be
replayed deterministically from its starting snapshot:

    replayed = GameState.replay(state.initial_snapshot, state.mutation_log)
    assert replayed.to_dict() == state.to_dict()

Reads through ``data`` or the accessors always observe the latest applied
mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from realpolitik.exceptions import StateInvariantError
from realpolitik.models.actions import GameAction, parse_action
from realpolitik.models.country import City, Country, CountryStats
from realpolitik.models.deals import Deal, DealStatus

logger = logging.getLogger(__name__)


class MutationOp(str, Enum):
    """Named state transitions. The only ways GameState can change."""

    UPDATE_STATS = "update_stats"
    UPDATE_CITY = "update_city"
    SET_PENDING_ACTIONS = "set_pending_actions"
    UPDATE_ACTION = "update_action"
    SET_ACTIVE_DEALS = "set_active_deals"
    ADD_DEAL = "add_deal"
    UPDATE_DEAL_STATUS = "update_deal_status"
    ADVANCE_TURN = "advance_turn"


@dataclass(frozen=True)
class StateMutation:
    """One entry of the append-only mutation log.

    Attributes:
        sequence: Position in the log (0-based)
        op: Which named operation was applied
        target_id: Country, city, action or deal affected (if any)
        payload: JSON-compatible data needed to re-apply the mutation
        reason: Free-text origin, e.g. "research action a1b2"
    """

    sequence: int
    op: MutationOp
    target_id: str | None
    payload: dict[str, Any] = field(default_factory=dict)
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "op": self.op.value,
            "target_id": self.target_id,
            "payload": self.payload,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateMutation:
        return cls(
            sequence=data["sequence"],
            op=MutationOp(data["op"]),
            target_id=data.get("target_id"),
            payload=data.get("payload", {}),
            reason=data.get("reason", ""),
        )


@dataclass(frozen=True)
class GameStateView:
    """Read-only view of the collections resolvers need."""

    game_id: str
    turn: int
    countries: tuple[Country, ...]
    country_stats: Mapping[str, CountryStats]
    cities: tuple[City, ...]
    pending_actions: tuple[GameAction, ...]
    active_deals: tuple[Deal, ...]


class GameState:
    """Mutable authoritative container for one game's current turn.

    Args:
        game_id: Game identifier
        turn: Current turn number (>= 1)
        countries: Ordered country identities
        country_stats: Country id -> stats; every key must be a known country
        cities: All cities on the board
        pending_actions: Actions submitted for this turn
        active_deals: Deals currently in force

    Raises:
        StateInvariantError: If stats or cities reference unknown countries.
    """

    def __init__(
        self,
        game_id: str,
        turn: int,
        countries: Iterable[Country],
        country_stats: Mapping[str, CountryStats],
        cities: Iterable[City] = (),
        pending_actions: Iterable[GameAction] = (),
        active_deals: Iterable[Deal] = (),
    ):
        if turn < 1:
            raise StateInvariantError(f"turn must be >= 1, got {turn}")
        self.game_id = game_id
        self._turn = turn
        self._countries = tuple(countries)
        self._country_index = {c.id: c for c in self._countries}

        for country_id in country_stats:
            if country_id not in self._country_index:
                raise StateInvariantError(f"stats supplied for unknown country {country_id}")
        self._stats: dict[str, CountryStats] = dict(country_stats)

        self._cities: dict[str, City] = {}
        for city in cities:
            self._check_country(city.country_id)
            self._cities[city.id] = city

        self._pending_actions: list[GameAction] = list(pending_actions)
        self._deals: dict[str, Deal] = {d.id: d for d in active_deals}
        self._log: list[StateMutation] = []
        self._initial_snapshot = self.to_dict()

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def turn(self) -> int:
        return self._turn

    @property
    def data(self) -> GameStateView:
        """Current collections, reflecting every mutation applied so far."""
        return GameStateView(
            game_id=self.game_id,
            turn=self._turn,
            countries=self._countries,
            country_stats=MappingProxyType(dict(self._stats)),
            cities=tuple(self._cities.values()),
            pending_actions=tuple(self._pending_actions),
            active_deals=tuple(self._deals.values()),
        )

    @property
    def countries(self) -> tuple[Country, ...]:
        return self._countries

    @property
    def mutation_log(self) -> tuple[StateMutation, ...]:
        return tuple(self._log)

    @property
    def initial_snapshot(self) -> dict[str, Any]:
        """Snapshot taken at construction, the starting point for replay."""
        return self._initial_snapshot

    def country(self, country_id: str) -> Country | None:
        return self._country_index.get(country_id)

    def stats_for(self, country_id: str) -> CountryStats | None:
        return self._stats.get(country_id)

    def get_city(self, city_id: str) -> City | None:
        return self._cities.get(city_id)

    def get_cities_by_country(self, country_id: str) -> list[City]:
        return [c for c in self._cities.values() if c.country_id == country_id]

    def get_deal(self, deal_id: str) -> Deal | None:
        return self._deals.get(deal_id)

    def ai_country_ids(self) -> list[str]:
        """AI-controlled countries with stats, in board order."""
        return [c.id for c in self._countries if not c.is_player_controlled and c.id in self._stats]

    # =========================================================================
    # Named mutations
    # =========================================================================

    def with_updated_stats(self, country_id: str, stats: CountryStats, reason: str = "") -> GameState:
        """Install a new stats record for a country (replace, not merge).

        Returns self so calls can be chained.

        Raises:
            StateInvariantError: If the country is unknown or the record
                belongs to a different country.
        """
        self._check_country(country_id)
        if stats.country_id != country_id:
            raise StateInvariantError(
                f"stats for {stats.country_id} cannot be installed on {country_id}"
            )
        self._record(MutationOp.UPDATE_STATS, country_id, {"stats": stats.model_dump(mode="json")}, reason)
        return self

    def update_city(self, city: City, reason: str = "") -> GameState:
        """Replace a city record, e.g. after a capture or attack flag change."""
        if city.id not in self._cities:
            raise StateInvariantError(f"unknown city {city.id}")
        self._check_country(city.country_id)
        self._record(MutationOp.UPDATE_CITY, city.id, {"city": city.model_dump(mode="json")}, reason)
        return self

    def set_pending_actions(self, actions: Iterable[GameAction], reason: str = "") -> GameState:
        actions = list(actions)
        for action in actions:
            self._check_country(action.country_id)
        payload = {"actions": [a.model_dump(mode="json") for a in actions]}
        self._record(MutationOp.SET_PENDING_ACTIONS, None, payload, reason)
        return self

    def update_action(self, action: GameAction, reason: str = "") -> GameState:
        """Replace a pending action record (typically with its final status)."""
        if not any(a.id == action.id for a in self._pending_actions):
            raise StateInvariantError(f"unknown action {action.id}")
        self._record(MutationOp.UPDATE_ACTION, action.id, {"action": action.model_dump(mode="json")}, reason)
        return self

    def set_active_deals(self, deals: Iterable[Deal], reason: str = "") -> GameState:
        payload = {"deals": [d.model_dump(mode="json") for d in deals]}
        self._record(MutationOp.SET_ACTIVE_DEALS, None, payload, reason)
        return self

    def add_deal(self, deal: Deal, reason: str = "") -> GameState:
        """Record a newly concluded deal alongside the existing ones.

        Raises:
            StateInvariantError: If the id is taken or a party is unknown.
        """
        if deal.id in self._deals:
            raise StateInvariantError(f"deal {deal.id} already exists")
        self._check_country(deal.proposing_country_id)
        self._check_country(deal.receiving_country_id)
        self._record(MutationOp.ADD_DEAL, deal.id, {"deal": deal.model_dump(mode="json")}, reason)
        return self

    def update_deal_status(self, deal_id: str, status: DealStatus, reason: str = "") -> GameState:
        """Transition a deal. Terminal deals cannot change status again.

        Raises:
            StateInvariantError: If the deal is unknown or already terminal.
        """
        deal = self._deals.get(deal_id)
        if deal is None:
            raise StateInvariantError(f"unknown deal {deal_id}")
        if deal.is_terminal:
            raise StateInvariantError(f"deal {deal_id} is already {deal.status.value}")
        self._record(MutationOp.UPDATE_DEAL_STATUS, deal_id, {"status": status.value}, reason)
        return self

    def advance_turn(self, reason: str = "") -> GameState:
        self._record(MutationOp.ADVANCE_TURN, None, {"turn": self._turn + 1}, reason)
        return self

    # =========================================================================
    # Log application
    # =========================================================================

    def _record(self, op: MutationOp, target_id: str | None, payload: dict[str, Any], reason: str) -> None:
        mutation = StateMutation(
            sequence=len(self._log),
            op=op,
            target_id=target_id,
            payload=payload,
            reason=reason,
        )
        self._apply(mutation)
        self._log.append(mutation)
        logger.debug(f"[{self.game_id} T{self._turn}] #{mutation.sequence} {op.value} {target_id or ''} {reason}")

    def _apply(self, mutation: StateMutation) -> None:
        payload = mutation.payload
        if mutation.op == MutationOp.UPDATE_STATS:
            self._stats[mutation.target_id] = CountryStats.model_validate(payload["stats"])
        elif mutation.op == MutationOp.UPDATE_CITY:
            self._cities[mutation.target_id] = City.model_validate(payload["city"])
        elif mutation.op == MutationOp.SET_PENDING_ACTIONS:
            self._pending_actions = [parse_action(a) for a in payload["actions"]]
        elif mutation.op == MutationOp.UPDATE_ACTION:
            updated = parse_action(payload["action"])
            self._pending_actions = [updated if a.id == updated.id else a for a in self._pending_actions]
        elif mutation.op == MutationOp.SET_ACTIVE_DEALS:
            self._deals = {d["id"]: Deal.model_validate(d) for d in payload["deals"]}
        elif mutation.op == MutationOp.ADD_DEAL:
            self._deals[mutation.target_id] = Deal.model_validate(payload["deal"])
        elif mutation.op == MutationOp.UPDATE_DEAL_STATUS:
            deal = self._deals[mutation.target_id]
            self._deals[mutation.target_id] = deal.model_copy(update={"status": DealStatus(payload["status"])})
        elif mutation.op == MutationOp.ADVANCE_TURN:
            self._turn = payload["turn"]
        else:
            raise StateInvariantError(f"unhandled mutation op {mutation.op}")

    def _check_country(self, country_id: str) -> None:
        if country_id not in self._country_index:
            raise StateInvariantError(f"unknown country {country_id}")

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible snapshot for the persistence boundary."""
        return {
            "game_id": self.game_id,
            "turn": self._turn,
            "countries": [c.model_dump(mode="json") for c in self._countries],
            "country_stats": {cid: s.model_dump(mode="json") for cid, s in self._stats.items()},
            "cities": [c.model_dump(mode="json") for c in self._cities.values()],
            "pending_actions": [a.model_dump(mode="json") for a in self._pending_actions],
            "active_deals": [d.model_dump(mode="json") for d in self._deals.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        return cls(
            game_id=data["game_id"],
            turn=data["turn"],
            countries=[Country.model_validate(c) for c in data["countries"]],
            country_stats={cid: CountryStats.model_validate(s) for cid, s in data["country_stats"].items()},
            cities=[City.model_validate(c) for c in data.get("cities", [])],
            pending_actions=[parse_action(a) for a in data.get("pending_actions", [])],
            active_deals=[Deal.model_validate(d) for d in data.get("active_deals", [])],
        )

    @classmethod
    def replay(cls, snapshot: dict[str, Any], log: Iterable[StateMutation]) -> GameState:
        """Rebuild a state by re-applying a mutation log to a snapshot."""
        state = cls.from_dict(snapshot)
        for mutation in log:
            state._record(mutation.op, mutation.target_id, mutation.payload, mutation.reason)
        return state
