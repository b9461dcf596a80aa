from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from granary.content.economy import DEFAULT_ECONOMY_RULES, EconomyRules
from granary.sim.clock import advance_clock
from granary.sim.contracts import ContractLedger
from granary.sim.events import Event, EventLog, EventType
from granary.sim.factions import FactionDirector
from granary.sim.market import effective_multiplier
from granary.sim.narrative import grain_tier_narrative, unrest_tier_narrative
from granary.sim.rng import restore_rng_state, rng_state_to_json, sim_stream
from granary.sim.tiers import GrainTier, grain_tier, unrest_tier
from granary.sim.unrest import accumulate_unrest, update_critical_streak
from granary.sim.world import World

SIMULATION_SCHEMA_VERSION = 1
PLAYER_EVENT_SEVERITY = 2
DELIVERY_EVENT_SEVERITY = 3

ACCEPT_TEXT = "[You] accept a risky contract under tightening conditions."
IGNORE_TEXT = "[You] turn away from the contract, letting others decide its fate."
INVESTIGATE_TEXT = "[You] investigate rumors around the supply routes."
DELIVERY_SUCCESS_TEXT = "[You] deliver supplies through tense streets."
DELIVERY_FAILURE_TEXT = "[You] attempt a delivery, but it collapses at the last moment."
TIME_PASSES_TEXT = "Time passes under mounting pressure."


class PlayerAction(str, Enum):
    ADVANCE = "advance"
    ACCEPT = "accept"
    IGNORE = "ignore"
    INVESTIGATE = "investigate"
    DELIVER = "deliver"

    @classmethod
    def parse(cls, raw: Any) -> "PlayerAction":
        if not isinstance(raw, str):
            raise ValueError("action must be a string")
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            choices = ", ".join(action.value for action in cls)
            raise ValueError(f"unknown action {raw!r}; expected one of: {choices}") from exc


def parse_contract_id(raw: Any) -> int | None:
    """Accept ``None``/empty, a positive integer, or a display label such as ``C007``."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("contract_id must be an integer or contract label")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text[:1] in {"C", "c"}:
            text = text[1:]
        if not text.isdigit():
            raise ValueError(f"contract_id must be an integer or contract label, got {raw!r}")
        value = int(text)
    else:
        raise ValueError("contract_id must be an integer or contract label")
    if value <= 0:
        raise ValueError("contract_id must be positive")
    return value


@dataclass
class SimulationState:
    world: World
    ledger: ContractLedger
    event_log: EventLog
    tick: int = 0


class Simulation:
    """The single aggregate owning the world, its contracts and its event log.

    Every mutation goes through this object. ``advance()`` is the only way time
    moves; player actions mutate the ledger or unrest and leave the tick to the
    caller (``apply_action`` bundles both the way the dashboard needs them).
    """

    def __init__(
        self,
        seed: int,
        *,
        rules: EconomyRules = DEFAULT_ECONOMY_RULES,
        world: World | None = None,
        event_capacity: int | None = None,
    ) -> None:
        if world is None:
            world = World(grain_supply=rules.starting_grain, unrest=rules.starting_unrest)
        self.state = SimulationState(world=world, ledger=ContractLedger(), event_log=EventLog(event_capacity))
        self.seed = seed
        self.rules = rules
        self.rng = sim_stream(seed)
        self.factions = FactionDirector(rules)
        self._fulfilled_since_tick = 0

    @property
    def world(self) -> World:
        return self.state.world

    @property
    def ledger(self) -> ContractLedger:
        return self.state.ledger

    @property
    def event_log(self) -> EventLog:
        return self.state.event_log

    def record_event(self, event_type: EventType, severity: int, text: str) -> Event:
        return self.event_log.emit(self.world, event_type, severity, text)

    def market_multiplier(self) -> float:
        return effective_multiplier(self.world.grain_tier, self.world.restricted_markets_ticks, self.rules)

    def advance_ticks(self, ticks: int) -> list[Event]:
        events: list[Event] = []
        for _ in range(ticks):
            events.extend(self.advance())
        return events

    def advance(self) -> list[Event]:
        """Run one tick and return the faction, contract and tier-change events it produced."""
        world = self.world
        start_grain_tier = world.grain_tier
        start_unrest_tier = world.unrest_tier
        events: list[Event] = []

        advance_clock(world)
        self._consume_grain()
        self._apply_shocks()

        current_grain_tier = grain_tier(world.grain_supply)
        current_unrest_tier = unrest_tier(world.unrest)

        events.extend(
            self.factions.evaluate(
                world=world,
                ledger=self.ledger,
                log=self.event_log,
                grain_tier=current_grain_tier,
                unrest_tier=current_unrest_tier,
            )
        )

        resolution = self.ledger.resolve_tick(
            world=world,
            tier=current_grain_tier,
            rng=self.rng,
            rules=self.rules,
            log=self.event_log,
        )
        events.extend(resolution.events)

        if world.restricted_markets_ticks > 0:
            world.restricted_markets_ticks -= 1

        world.grain_tier = grain_tier(world.grain_supply)
        multiplier = self.market_multiplier()
        critical_penalty = update_critical_streak(world, self.rules)

        fulfilled = resolution.fulfilled + self._fulfilled_since_tick
        self._fulfilled_since_tick = 0
        accumulate_unrest(
            world,
            multiplier=multiplier,
            critical_penalty=critical_penalty,
            fulfilled=fulfilled,
            failed=resolution.failed,
            rules=self.rules,
        )

        if world.grain_tier is not start_grain_tier:
            events.append(
                self.record_event(
                    EventType.GRAIN_TIER_CHANGE,
                    world.grain_tier.severity,
                    grain_tier_narrative(world.grain_tier, start_grain_tier),
                )
            )
        if world.unrest_tier is not start_unrest_tier:
            events.append(
                self.record_event(
                    EventType.UNREST_TIER_CHANGE,
                    world.unrest_tier.severity,
                    unrest_tier_narrative(world.unrest_tier, start_unrest_tier),
                )
            )

        self.state.tick += 1
        logger.debug(
            f"tick={self.state.tick} day={world.day} subphase={world.subphase.value} "
            f"grain={world.grain_supply}({world.grain_tier.value}) unrest={world.unrest}({world.unrest_tier.value}) "
            f"multiplier={multiplier} fulfilled={fulfilled} failed={resolution.failed} events={len(events)}"
        )
        return events

    def _consume_grain(self) -> None:
        consumed = self.rules.grain_consumption_base + self.rng.randint(0, self.rules.grain_consumption_jitter)
        self.world.add_grain(-consumed)

    def _apply_shocks(self) -> None:
        # Both draws happen every tick so later draws never depend on shock outcomes.
        if self.rng.random() < self.rules.shortage_chance:
            self.world.add_grain(-self.rules.shortage_amount)
        relief_roll = self.rng.random()
        if relief_roll < self.rules.relief_chance and grain_tier(self.world.grain_supply) is not GrainTier.STABLE:
            self.world.add_grain(self.rules.relief_amount)

    def accept(self, contract_id: int | None) -> list[Event]:
        if contract_id is None or self.ledger.accept(contract_id) is None:
            return []
        return [self.record_event(EventType.PLAYER_ACTION, PLAYER_EVENT_SEVERITY, ACCEPT_TEXT)]

    def ignore(self, contract_id: int | None) -> list[Event]:
        if contract_id is None or self.ledger.ignore(contract_id) is None:
            return []
        return [self.record_event(EventType.PLAYER_ACTION, PLAYER_EVENT_SEVERITY, IGNORE_TEXT)]

    def deliver(self, contract_id: int | None) -> list[Event]:
        if contract_id is None:
            return []
        delivered = self.ledger.deliver(contract_id, world=self.world, rng=self.rng, rules=self.rules)
        if delivered is None:
            return []
        if delivered:
            self._fulfilled_since_tick += 1
            return [self.record_event(EventType.PLAYER_ACTION, DELIVERY_EVENT_SEVERITY, DELIVERY_SUCCESS_TEXT)]
        return [self.record_event(EventType.PLAYER_ACTION, DELIVERY_EVENT_SEVERITY, DELIVERY_FAILURE_TEXT)]

    def investigate(self) -> list[Event]:
        self.world.add_unrest(-self.rules.investigate_unrest)
        return [self.record_event(EventType.PLAYER_ACTION, PLAYER_EVENT_SEVERITY, INVESTIGATE_TEXT)]

    def apply_action(self, action: PlayerAction, contract_id: int | None = None) -> list[Event]:
        """Apply one player action, then run exactly one tick; returns every event produced."""
        if action is PlayerAction.ADVANCE:
            events = [self.record_event(EventType.TIME_PASSES, PLAYER_EVENT_SEVERITY, TIME_PASSES_TEXT)]
        elif action is PlayerAction.ACCEPT:
            events = self.accept(contract_id)
        elif action is PlayerAction.IGNORE:
            events = self.ignore(contract_id)
        elif action is PlayerAction.DELIVER:
            events = self.deliver(contract_id)
        elif action is PlayerAction.INVESTIGATE:
            events = self.investigate()
        else:
            raise ValueError(f"unsupported action: {action!r}")
        return events + self.advance()

    def simulation_payload(self) -> dict[str, Any]:
        return {
            "schema_version": SIMULATION_SCHEMA_VERSION,
            "seed": self.seed,
            "tick": self.state.tick,
            "rng_state": rng_state_to_json(self.rng),
            "rules": self.rules.to_dict(),
            "world": self.world.to_dict(),
            "contracts": self.ledger.to_dict(),
            "event_log": self.event_log.to_dict(),
            "fulfilled_since_tick": self._fulfilled_since_tick,
        }

    @classmethod
    def from_simulation_payload(cls, payload: dict[str, Any]) -> "Simulation":
        schema_version = int(payload["schema_version"])
        if schema_version != SIMULATION_SCHEMA_VERSION:
            raise ValueError(f"unsupported simulation schema_version: {schema_version}")

        event_log = EventLog.from_dict(payload.get("event_log", {}))
        sim = cls(
            seed=int(payload["seed"]),
            rules=EconomyRules.from_dict(payload.get("rules")),
            world=World.from_dict(payload["world"]),
            event_capacity=event_log.capacity,
        )
        sim.state.tick = int(payload.get("tick", 0))
        sim.state.ledger = ContractLedger.from_dict(payload.get("contracts", {}))
        sim.state.event_log = event_log
        sim._fulfilled_since_tick = int(payload.get("fulfilled_since_tick", 0))
        if "rng_state" in payload:
            restore_rng_state(sim.rng, payload["rng_state"])
        return sim
