import pytest

from granary.sim.clock import Subphase
from granary.sim.tiers import GrainTier, UnrestTier
from granary.sim.world import World, clamp


def test_clamp_has_optional_upper_bound() -> None:
    assert clamp(-3, 0) == 0
    assert clamp(500, 0) == 500
    assert clamp(150, 0, 100) == 100


def test_new_world_derives_tiers_from_scalars() -> None:
    world = World(grain_supply=90, unrest=45)

    assert world.grain_tier is GrainTier.SCARCE
    assert world.unrest_tier is UnrestTier.UNSTABLE
    assert world.day == 1
    assert world.subphase is Subphase.MORNING


def test_world_clamps_scalars_on_construction() -> None:
    world = World(grain_supply=-40, unrest=140)

    assert world.grain_supply == 0
    assert world.unrest == 100
    assert world.unrest_tier is UnrestTier.RIOTING


def test_add_grain_and_unrest_clamp() -> None:
    world = World(grain_supply=10, unrest=3)

    world.add_grain(-50)
    world.add_unrest(-10)
    assert world.grain_supply == 0
    assert world.unrest == 0

    world.add_unrest(250)
    assert world.unrest == 100


def test_world_rejects_non_integer_fields() -> None:
    with pytest.raises(ValueError, match="world.grain_supply"):
        World(grain_supply=12.5)
    with pytest.raises(ValueError, match="world.day"):
        World(day=0)


def test_world_round_trips_through_dict() -> None:
    world = World(day=4, subphase=Subphase.EVENING, grain_supply=35, unrest=62, restricted_markets_ticks=1)
    world.critical_tick_streak = 4
    world.critical_streak_penalty_applied = True

    restored = World.from_dict(world.to_dict())

    assert restored == world


def test_from_dict_keeps_tiers_from_last_tick_after_player_action() -> None:
    world = World(unrest=12)
    world.add_unrest(-5)
    payload = world.to_dict()

    restored = World.from_dict(payload)

    assert restored.unrest == 7
    assert restored.unrest_tier is UnrestTier.UNEASY
    assert restored == world


def test_from_dict_rejects_unknown_tier_name() -> None:
    payload = World().to_dict()
    payload["grain_tier"] = "Plentiful"

    with pytest.raises(ValueError, match="world.grain_tier"):
        World.from_dict(payload)


def test_from_dict_rejects_unknown_subphase() -> None:
    payload = World().to_dict()
    payload["subphase"] = "Noon"

    with pytest.raises(ValueError, match="world.subphase"):
        World.from_dict(payload)
