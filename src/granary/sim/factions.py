from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from granary.content.economy import EconomyRules
from granary.sim.contracts import ContractLedger, ContractType
from granary.sim.events import Event, EventLog, EventType
from granary.sim.tiers import GrainTier, UnrestTier
from granary.sim.world import World

CITY_AUTHORITY = "City Authority"
MERCHANT_LEAGUE = "Merchant League"

EMERGENCY_TRIGGER_UNREST = frozenset({UnrestTier.UNSTABLE, UnrestTier.RIOTING})
SMUGGLING_TRIGGER_GRAIN = frozenset({GrainTier.SCARCE, GrainTier.CRITICAL})


@dataclass(frozen=True)
class ContractNotice:
    faction_text: str
    faction_severity: int
    posting_text: str
    posting_severity: int


CONTRACT_NOTICES = {
    ContractType.EMERGENCY: ContractNotice(
        faction_text=f"[{CITY_AUTHORITY}] requisitions emergency shipments.",
        faction_severity=4,
        posting_text="An emergency delivery contract is announced.",
        posting_severity=3,
    ),
    ContractType.SMUGGLING: ContractNotice(
        faction_text=f"[{MERCHANT_LEAGUE}] issues smuggling orders.",
        faction_severity=3,
        posting_text="A discreet smuggling contract circulates in back rooms.",
        posting_severity=2,
    ),
}

MARKET_RESTRICTION_TEXT = f"[{CITY_AUTHORITY}] imposes strict market controls."
MARKET_RESTRICTION_SEVERITY = 4


class FactionDirector:
    """Rule-driven City Authority and Merchant League behavior.

    The three rules are independent; every one of them is checked on every tick
    against the tiers current at that point of the tick.
    """

    def __init__(self, rules: EconomyRules) -> None:
        self.rules = rules

    def evaluate(
        self,
        *,
        world: World,
        ledger: ContractLedger,
        log: EventLog,
        grain_tier: GrainTier,
        unrest_tier: UnrestTier,
    ) -> list[Event]:
        events: list[Event] = []

        if unrest_tier in EMERGENCY_TRIGGER_UNREST or grain_tier is GrainTier.CRITICAL:
            events.extend(self._post_contract(world, ledger, log, ContractType.EMERGENCY, self.rules.emergency_deadline))

        if unrest_tier is UnrestTier.RIOTING and world.restricted_markets_ticks == 0:
            world.restricted_markets_ticks = self.rules.restriction_ticks
            logger.debug(f"markets restricted ticks={world.restricted_markets_ticks}")
            events.append(log.emit(world, EventType.MARKET_RESTRICTION, MARKET_RESTRICTION_SEVERITY, MARKET_RESTRICTION_TEXT))

        if grain_tier in SMUGGLING_TRIGGER_GRAIN:
            events.extend(self._post_contract(world, ledger, log, ContractType.SMUGGLING, self.rules.smuggling_deadline))

        return events

    def _post_contract(
        self,
        world: World,
        ledger: ContractLedger,
        log: EventLog,
        contract_type: ContractType,
        deadline_ticks: int,
    ) -> list[Event]:
        if ledger.issue(contract_type, deadline_ticks) is None:
            return []
        notice = CONTRACT_NOTICES[contract_type]
        return [
            log.emit(world, EventType.FACTION_ACTION, notice.faction_severity, notice.faction_text),
            log.emit(world, EventType.CONTRACT_ISSUED, notice.posting_severity, notice.posting_text),
        ]
