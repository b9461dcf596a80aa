from __future__ import annotations

from granary.content.economy import DEFAULT_ECONOMY_RULES, EconomyRules
from granary.sim.tiers import GrainTier

MIN_MULTIPLIER = 1.0


def base_multiplier(tier: GrainTier, rules: EconomyRules = DEFAULT_ECONOMY_RULES) -> float:
    return rules.multiplier_for(tier)


def effective_multiplier(
    tier: GrainTier,
    restricted_markets_ticks: int,
    rules: EconomyRules = DEFAULT_ECONOMY_RULES,
) -> float:
    """Price multiplier after market controls; only feeds unrest pressure."""
    multiplier = base_multiplier(tier, rules)
    if restricted_markets_ticks > 0:
        multiplier = max(MIN_MULTIPLIER, multiplier - rules.restriction_discount)
    return multiplier
