from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from granary.sim.tiers import GrainTier

ECONOMY_RULES_SCHEMA_VERSION = 1
DEFAULT_ECONOMY_RULES_PATH = "content/economy/default_rules.json"

_TIER_TABLE_FIELDS = {"fulfill_chance", "deliver_chance", "market_multiplier"}


def _tier_table(stable: Any, tight: Any, scarce: Any, critical: Any) -> dict[str, Any]:
    return {
        GrainTier.STABLE.value: stable,
        GrainTier.TIGHT.value: tight,
        GrainTier.SCARCE.value: scarce,
        GrainTier.CRITICAL.value: critical,
    }


@dataclass(frozen=True)
class EconomyRules:
    """Tunable constants of the grain and unrest model."""

    starting_grain: int = 300
    starting_unrest: int = 0
    grain_consumption_base: int = 18
    grain_consumption_jitter: int = 8
    shortage_chance: float = 0.10
    shortage_amount: int = 25
    relief_chance: float = 0.08
    relief_amount: int = 20
    emergency_deadline: int = 4
    smuggling_deadline: int = 3
    emergency_reward: int = 60
    smuggling_reward: int = 30
    accepted_bonus: int = 15
    accepted_chance_cap: int = 95
    fulfill_chance: dict[str, int] = field(default_factory=lambda: _tier_table(70, 55, 40, 25))
    deliver_chance: dict[str, int] = field(default_factory=lambda: _tier_table(80, 65, 50, 35))
    market_multiplier: dict[str, float] = field(default_factory=lambda: _tier_table(1.0, 1.5, 2.0, 3.0))
    restriction_discount: float = 0.5
    restriction_ticks: int = 2
    pressure_threshold: float = 2.0
    pressure_unrest: int = 5
    critical_streak_length: int = 4
    critical_streak_unrest: int = 10
    failed_contract_unrest: int = 15
    fulfilled_contract_unrest: int = 10
    investigate_unrest: int = 5

    def __post_init__(self) -> None:
        for current in fields(self):
            if current.name in _TIER_TABLE_FIELDS:
                continue
            value = getattr(self, current.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"rules.{current.name} must be a number")
            if value < 0:
                raise ValueError(f"rules.{current.name} must be >= 0")
        for name in ("shortage_chance", "relief_chance"):
            if getattr(self, name) > 1:
                raise ValueError(f"rules.{name} must be within [0, 1]")
        for name in ("emergency_deadline", "smuggling_deadline", "critical_streak_length"):
            if getattr(self, name) <= 0:
                raise ValueError(f"rules.{name} must be > 0")
        for name in _TIER_TABLE_FIELDS:
            table = getattr(self, name)
            if not isinstance(table, dict) or set(table) != {tier.value for tier in GrainTier}:
                raise ValueError(f"rules.{name} must map every grain tier: {sorted(t.value for t in GrainTier)}")
            for tier_name, value in table.items():
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                    raise ValueError(f"rules.{name}[{tier_name}] must be a number >= 0")

    def fulfill_chance_for(self, tier: GrainTier) -> int:
        return int(self.fulfill_chance[tier.value])

    def deliver_chance_for(self, tier: GrainTier) -> int:
        return int(self.deliver_chance[tier.value])

    def multiplier_for(self, tier: GrainTier) -> float:
        return float(self.market_multiplier[tier.value])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "EconomyRules":
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError("rules must be an object")
        known = {current.name for current in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"unknown rules fields: {unknown}")
        overrides: dict[str, Any] = {}
        for name, value in payload.items():
            if name in _TIER_TABLE_FIELDS:
                if not isinstance(value, dict):
                    raise ValueError(f"rules.{name} must be an object")
                overrides[name] = {**getattr(DEFAULT_ECONOMY_RULES, name), **value}
            else:
                overrides[name] = value
        return replace(DEFAULT_ECONOMY_RULES, **overrides)


DEFAULT_ECONOMY_RULES = EconomyRules()


def load_economy_rules_json(path: str | Path) -> EconomyRules:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _rules_from_payload(payload)


def _rules_from_payload(payload: dict[str, Any]) -> EconomyRules:
    if not isinstance(payload, dict):
        raise ValueError("economy rules payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("economy rules payload must contain integer field: schema_version")
    if schema_version != ECONOMY_RULES_SCHEMA_VERSION:
        raise ValueError(f"unsupported economy rules schema_version: {schema_version}")

    rules = payload.get("rules", {})
    if not isinstance(rules, dict):
        raise ValueError("economy rules payload field rules must be an object")
    return EconomyRules.from_dict(rules)
