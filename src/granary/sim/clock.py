from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from granary.sim.world import World


class Subphase(str, Enum):
    MORNING = "Morning"
    EVENING = "Evening"


def advance_clock(world: World) -> None:
    """Toggle the subphase once; the day rolls over on Evening -> Morning."""
    if world.subphase is Subphase.MORNING:
        world.subphase = Subphase.EVENING
        return
    world.subphase = Subphase.MORNING
    world.day += 1
