from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from granary.sim.clock import Subphase
from granary.sim.tiers import GrainTier, UnrestTier, grain_tier, unrest_tier

UNREST_MIN = 0
UNREST_MAX = 100


def clamp(value: int, low: int, high: int | None = None) -> int:
    if value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def _require_int(value: Any, *, field_name: str, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if minimum is not None and value < minimum:
        raise ValueError(f"{field_name} must be >= {minimum}")
    return value


@dataclass
class World:
    day: int = 1
    subphase: Subphase = Subphase.MORNING
    grain_supply: int = 300
    unrest: int = 0
    restricted_markets_ticks: int = 0
    critical_tick_streak: int = 0
    critical_streak_penalty_applied: bool = False
    grain_tier: GrainTier = field(init=False)
    unrest_tier: UnrestTier = field(init=False)

    def __post_init__(self) -> None:
        _require_int(self.day, field_name="world.day", minimum=1)
        _require_int(self.grain_supply, field_name="world.grain_supply")
        _require_int(self.unrest, field_name="world.unrest")
        _require_int(self.restricted_markets_ticks, field_name="world.restricted_markets_ticks", minimum=0)
        _require_int(self.critical_tick_streak, field_name="world.critical_tick_streak", minimum=0)
        self.subphase = Subphase(self.subphase)
        self.grain_supply = clamp(self.grain_supply, 0)
        self.unrest = clamp(self.unrest, UNREST_MIN, UNREST_MAX)
        self.refresh_tiers()

    def refresh_tiers(self) -> None:
        """Re-derive both tiers from their scalars."""
        self.grain_tier = grain_tier(self.grain_supply)
        self.unrest_tier = unrest_tier(self.unrest)

    def add_grain(self, delta: int) -> None:
        self.grain_supply = clamp(self.grain_supply + delta, 0)

    def add_unrest(self, delta: int) -> None:
        self.unrest = clamp(self.unrest + delta, UNREST_MIN, UNREST_MAX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "subphase": self.subphase.value,
            "grain_supply": self.grain_supply,
            "grain_tier": self.grain_tier.value,
            "unrest": self.unrest,
            "unrest_tier": self.unrest_tier.value,
            "restricted_markets_ticks": self.restricted_markets_ticks,
            "critical_tick_streak": self.critical_tick_streak,
            "critical_streak_penalty_applied": self.critical_streak_penalty_applied,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "World":
        if not isinstance(payload, dict):
            raise ValueError("world must be an object")
        penalty_applied = payload.get("critical_streak_penalty_applied", False)
        if not isinstance(penalty_applied, bool):
            raise ValueError("world.critical_streak_penalty_applied must be a boolean")
        try:
            subphase = Subphase(payload.get("subphase", Subphase.MORNING.value))
        except ValueError as exc:
            raise ValueError(f"world.subphase invalid: {payload.get('subphase')!r}") from exc
        world = cls(
            day=payload.get("day", 1),
            subphase=subphase,
            grain_supply=payload["grain_supply"],
            unrest=payload["unrest"],
            restricted_markets_ticks=payload.get("restricted_markets_ticks", 0),
            critical_tick_streak=payload.get("critical_tick_streak", 0),
            critical_streak_penalty_applied=penalty_applied,
        )
        # Stored tiers are the end-of-tick tiers of the last tick. Player actions may
        # have moved the scalars since, so the next tick must compare against these.
        if "grain_tier" in payload:
            try:
                world.grain_tier = GrainTier(payload["grain_tier"])
            except ValueError as exc:
                raise ValueError(f"world.grain_tier invalid: {payload['grain_tier']!r}") from exc
        if "unrest_tier" in payload:
            try:
                world.unrest_tier = UnrestTier(payload["unrest_tier"])
            except ValueError as exc:
                raise ValueError(f"world.unrest_tier invalid: {payload['unrest_tier']!r}") from exc
        return world
