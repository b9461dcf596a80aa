from __future__ import annotations

from granary.content.economy import EconomyRules
from granary.sim.tiers import GrainTier
from granary.sim.world import World


def update_critical_streak(world: World, rules: EconomyRules) -> bool:
    """Track consecutive Critical ticks; True only on the tick the streak penalty first fires."""
    if world.grain_tier is not GrainTier.CRITICAL:
        world.critical_tick_streak = 0
        world.critical_streak_penalty_applied = False
        return False

    world.critical_tick_streak += 1
    if world.critical_tick_streak >= rules.critical_streak_length and not world.critical_streak_penalty_applied:
        world.critical_streak_penalty_applied = True
        return True
    return False


def unrest_delta(
    *,
    multiplier: float,
    critical_penalty: bool,
    fulfilled: int,
    failed: int,
    rules: EconomyRules,
) -> int:
    delta = 0
    if multiplier >= rules.pressure_threshold:
        delta += rules.pressure_unrest
    if critical_penalty:
        delta += rules.critical_streak_unrest
    delta += failed * rules.failed_contract_unrest
    delta -= fulfilled * rules.fulfilled_contract_unrest
    return delta


def accumulate_unrest(
    world: World,
    *,
    multiplier: float,
    critical_penalty: bool,
    fulfilled: int,
    failed: int,
    rules: EconomyRules,
) -> int:
    """Fold one tick of pressure into unrest, clamp it and re-derive the unrest tier."""
    world.add_unrest(
        unrest_delta(
            multiplier=multiplier,
            critical_penalty=critical_penalty,
            fulfilled=fulfilled,
            failed=failed,
            rules=rules,
        )
    )
    world.refresh_tiers()
    return world.unrest
