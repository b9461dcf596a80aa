from __future__ import annotations

from enum import Enum

STABLE_ABOVE = 200
TIGHT_ABOVE = 100
SCARCE_ABOVE = 40

CALM_UP_TO = 10
UNEASY_UP_TO = 30
UNSTABLE_UP_TO = 60


class GrainTier(str, Enum):
    STABLE = "Stable"
    TIGHT = "Tight"
    SCARCE = "Scarce"
    CRITICAL = "Critical"

    @property
    def severity(self) -> int:
        return _GRAIN_SEVERITIES[self]


class UnrestTier(str, Enum):
    CALM = "Calm"
    UNEASY = "Uneasy"
    UNSTABLE = "Unstable"
    RIOTING = "Rioting"

    @property
    def severity(self) -> int:
        return _UNREST_SEVERITIES[self]


_GRAIN_SEVERITIES = {
    GrainTier.STABLE: 1,
    GrainTier.TIGHT: 2,
    GrainTier.SCARCE: 3,
    GrainTier.CRITICAL: 5,
}
_UNREST_SEVERITIES = {
    UnrestTier.CALM: 1,
    UnrestTier.UNEASY: 2,
    UnrestTier.UNSTABLE: 3,
    UnrestTier.RIOTING: 5,
}


def grain_tier(supply: int) -> GrainTier:
    """Classify a grain supply; a value exactly on a threshold belongs to the worse tier."""
    if supply > STABLE_ABOVE:
        return GrainTier.STABLE
    if supply > TIGHT_ABOVE:
        return GrainTier.TIGHT
    if supply > SCARCE_ABOVE:
        return GrainTier.SCARCE
    return GrainTier.CRITICAL


def unrest_tier(value: int) -> UnrestTier:
    if value <= CALM_UP_TO:
        return UnrestTier.CALM
    if value <= UNEASY_UP_TO:
        return UnrestTier.UNEASY
    if value <= UNSTABLE_UP_TO:
        return UnrestTier.UNSTABLE
    return UnrestTier.RIOTING
