from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from granary.content.economy import EconomyRules
from granary.sim.events import Event, EventLog, EventType
from granary.sim.tiers import GrainTier
from granary.sim.world import World

CONTRACT_FAILED_SEVERITY = 4
CONTRACT_FAILED_TEXT = "A contract has failed, raising tension in the city."


class ContractType(str, Enum):
    EMERGENCY = "Emergency"
    SMUGGLING = "Smuggling"


class ContractStatus(str, Enum):
    ISSUED = "Issued"
    ACCEPTED = "Accepted"
    IGNORED = "Ignored"
    FULFILLED = "Fulfilled"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ContractStatus.FULFILLED, ContractStatus.FAILED})


@dataclass
class Contract:
    contract_id: int
    contract_type: ContractType
    deadline_ticks: int
    status: ContractStatus = ContractStatus.ISSUED

    def __post_init__(self) -> None:
        if isinstance(self.contract_id, bool) or not isinstance(self.contract_id, int) or self.contract_id <= 0:
            raise ValueError("contract_id must be a positive integer")
        if isinstance(self.deadline_ticks, bool) or not isinstance(self.deadline_ticks, int):
            raise ValueError("contract deadline_ticks must be an integer")
        self.contract_type = ContractType(self.contract_type)
        self.status = ContractStatus(self.status)

    @property
    def label(self) -> str:
        return f"C{self.contract_id:03d}"

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract_id": self.contract_id,
            "contract_type": self.contract_type.value,
            "deadline_ticks": self.deadline_ticks,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Contract":
        return cls(
            contract_id=data["contract_id"],
            contract_type=ContractType(data["contract_type"]),
            deadline_ticks=data["deadline_ticks"],
            status=ContractStatus(data["status"]),
        )


@dataclass(frozen=True)
class TickResolution:
    fulfilled: int
    failed: int
    events: tuple[Event, ...]


def contract_reward(contract_type: ContractType, rules: EconomyRules) -> int:
    return {
        ContractType.EMERGENCY: rules.emergency_reward,
        ContractType.SMUGGLING: rules.smuggling_reward,
    }[contract_type]


def roll_percent(rng: random.Random) -> int:
    """Uniform draw in [0, 100); a chance of N succeeds on exactly N of 100 outcomes."""
    return rng.randrange(100)


class ContractLedger:
    """Owns every contract ever issued, terminal ones included."""

    def __init__(self, *, next_contract_id: int = 1) -> None:
        self._contracts: dict[int, Contract] = {}
        self._next_contract_id = next_contract_id

    def __len__(self) -> int:
        return len(self._contracts)

    @property
    def next_contract_id(self) -> int:
        return self._next_contract_id

    def contracts(self) -> list[Contract]:
        return [self._contracts[contract_id] for contract_id in sorted(self._contracts)]

    def active_contracts(self) -> list[Contract]:
        return [contract for contract in self.contracts() if contract.is_active]

    def get(self, contract_id: int) -> Contract | None:
        return self._contracts.get(contract_id)

    def has_active(self, contract_type: ContractType) -> bool:
        return any(contract.contract_type is contract_type for contract in self.active_contracts())

    def issue(self, contract_type: ContractType, deadline_ticks: int) -> Contract | None:
        if self.has_active(contract_type):
            return None
        contract = Contract(
            contract_id=self._next_contract_id,
            contract_type=contract_type,
            deadline_ticks=deadline_ticks,
        )
        self._next_contract_id += 1
        self._contracts[contract.contract_id] = contract
        logger.debug(f"contract issued id={contract.label} type={contract_type.value} deadline={deadline_ticks}")
        return contract

    def accept(self, contract_id: int) -> Contract | None:
        return self._transition_from_issued(contract_id, ContractStatus.ACCEPTED)

    def ignore(self, contract_id: int) -> Contract | None:
        return self._transition_from_issued(contract_id, ContractStatus.IGNORED)

    def deliver(
        self,
        contract_id: int,
        *,
        world: World,
        rng: random.Random,
        rules: EconomyRules,
    ) -> bool | None:
        """Immediate delivery roll for an Accepted contract.

        Returns None when delivery is not legal, otherwise whether it succeeded.
        A failed delivery leaves the contract Accepted with its deadline intact.
        """
        contract = self._contracts.get(contract_id)
        if contract is None or contract.status is not ContractStatus.ACCEPTED:
            return None
        if roll_percent(rng) < rules.deliver_chance_for(world.grain_tier):
            self._fulfil(contract, world=world, rules=rules)
            return True
        return False

    def resolve_tick(
        self,
        *,
        world: World,
        tier: GrainTier,
        rng: random.Random,
        rules: EconomyRules,
        log: EventLog,
    ) -> TickResolution:
        fulfilled = 0
        failed = 0
        events: list[Event] = []
        base_chance = rules.fulfill_chance_for(tier)
        for contract in self.active_contracts():
            chance = base_chance
            if contract.status is ContractStatus.ACCEPTED:
                chance = min(chance + rules.accepted_bonus, rules.accepted_chance_cap)
            if roll_percent(rng) < chance:
                self._fulfil(contract, world=world, rules=rules)
                fulfilled += 1
                continue

            contract.deadline_ticks -= 1
            if contract.deadline_ticks <= 0:
                contract.status = ContractStatus.FAILED
                failed += 1
                logger.debug(f"contract failed id={contract.label} type={contract.contract_type.value}")
                events.append(
                    log.emit(world, EventType.CONTRACT_FAILED, CONTRACT_FAILED_SEVERITY, CONTRACT_FAILED_TEXT)
                )
        return TickResolution(fulfilled=fulfilled, failed=failed, events=tuple(events))

    def _fulfil(self, contract: Contract, *, world: World, rules: EconomyRules) -> None:
        contract.status = ContractStatus.FULFILLED
        reward = contract_reward(contract.contract_type, rules)
        world.add_grain(reward)
        logger.debug(f"contract fulfilled id={contract.label} reward={reward} grain={world.grain_supply}")

    def _transition_from_issued(self, contract_id: int, status: ContractStatus) -> Contract | None:
        contract = self._contracts.get(contract_id)
        if contract is None or contract.status is not ContractStatus.ISSUED:
            return None
        contract.status = status
        return contract

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_contract_id": self._next_contract_id,
            "contracts": [contract.to_dict() for contract in self.contracts()],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ContractLedger":
        if not isinstance(payload, dict):
            raise ValueError("contracts must be an object")
        raw_contracts = payload.get("contracts", [])
        if not isinstance(raw_contracts, list):
            raise ValueError("contracts.contracts must be a list")
        contracts = [Contract.from_dict(row) for row in raw_contracts]
        highest = max((contract.contract_id for contract in contracts), default=0)
        next_contract_id = int(payload.get("next_contract_id", highest + 1))
        if next_contract_id <= highest:
            raise ValueError("contracts.next_contract_id must exceed every stored contract_id")
        ledger = cls(next_contract_id=next_contract_id)
        for contract in contracts:
            if contract.contract_id in ledger._contracts:
                raise ValueError(f"duplicate contract_id: {contract.contract_id}")
            if contract.is_active and ledger.has_active(contract.contract_type):
                raise ValueError(f"more than one active {contract.contract_type.value} contract")
            ledger._contracts[contract.contract_id] = contract
        return ledger
