from __future__ import annotations

from granary.sim.tiers import GrainTier, UnrestTier

EASING_TEXT = "Fresh grain reaches the markets, easing shortages."
CALMING_TEXT = "The streets quiet as tensions ease."

GRAIN_TIER_TEXT = {
    GrainTier.STABLE: EASING_TEXT,
    GrainTier.TIGHT: "Grain supply tightens.",
    GrainTier.SCARCE: "Grain stores thin across the city.",
    GrainTier.CRITICAL: "Grain stores fall below emergency reserves.",
}

UNREST_TIER_TEXT = {
    UnrestTier.CALM: CALMING_TEXT,
    UnrestTier.UNEASY: "Whispers of worry spread through the streets.",
    UnrestTier.UNSTABLE: "Tension rises as crowds gather and tempers flare.",
    UnrestTier.RIOTING: "The city erupts into open unrest.",
}

DEFAULT_SITUATION = "Merchants bargain in low voices while the city waits."


def grain_tier_narrative(tier: GrainTier, prev: GrainTier) -> str:
    # Leaving Critical reads as easing on its own; leaving Scarce only when the tier actually moved.
    if tier is not GrainTier.CRITICAL:
        if prev is GrainTier.CRITICAL or (prev is GrainTier.SCARCE and tier is not GrainTier.SCARCE):
            return EASING_TEXT
    return GRAIN_TIER_TEXT[tier]


def unrest_tier_narrative(tier: UnrestTier, prev: UnrestTier) -> str:
    if tier is UnrestTier.CALM and prev is not UnrestTier.CALM:
        return CALMING_TEXT
    return UNREST_TIER_TEXT[tier]


def situation_summary(grain: GrainTier, unrest: UnrestTier) -> str:
    """One-line mood of the city for status displays."""
    if grain is GrainTier.STABLE and unrest is UnrestTier.CALM:
        return "The city breathes; an uneasy peace holds."
    if grain is GrainTier.SCARCE and unrest is UnrestTier.UNEASY:
        return "Shortages spread quiet panic through the markets."
    if grain is GrainTier.CRITICAL and unrest is UnrestTier.UNSTABLE:
        return "Hunger sharpens into anger; deals turn desperate."
    if grain is GrainTier.CRITICAL and unrest is UnrestTier.RIOTING:
        return "The streets burn with desperation and blame."
    if unrest is UnrestTier.RIOTING:
        return "Fires, fear, and blame race faster than grain."
    if grain is GrainTier.CRITICAL:
        return "Emergency stores fray as every convoy is contested."
    if grain is GrainTier.SCARCE:
        return "Every sack matters and every alley has a price."
    if unrest is UnrestTier.UNSTABLE:
        return "Crowds watch each cart as trust thins by the hour."
    return DEFAULT_SITUATION
