import pytest

from granary.sim.clock import Subphase
from granary.sim.events import Event, EventLog, EventType
from granary.sim.world import World


def _record(log: EventLog, text: str, severity: int = 2) -> Event:
    return log.record(day=1, subphase=Subphase.MORNING, event_type=EventType.FACTION_ACTION, severity=severity, text=text)


def test_event_ids_increase_in_append_order() -> None:
    log = EventLog()

    first = _record(log, "one")
    second = _record(log, "two")

    assert (first.event_id, second.event_id) == (1, 2)
    assert [event.text for event in log.entries()] == ["one", "two"]


def test_bounded_log_evicts_oldest_first() -> None:
    log = EventLog(capacity=3)

    for index in range(5):
        _record(log, f"event {index}")

    assert len(log) == 3
    assert [event.event_id for event in log.entries()] == [3, 4, 5]
    assert log.next_event_id == 6


def test_unbounded_log_keeps_everything() -> None:
    log = EventLog()

    for index in range(250):
        _record(log, f"event {index}")

    assert len(log) == 250


@pytest.mark.parametrize("severity", [0, 6])
def test_severity_outside_range_is_rejected(severity: int) -> None:
    log = EventLog()

    with pytest.raises(ValueError, match="severity"):
        _record(log, "bad", severity=severity)
    assert len(log) == 0


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError, match="capacity"):
        EventLog(capacity=0)


def test_emit_stamps_world_day_and_subphase() -> None:
    log = EventLog()
    world = World(day=7, subphase=Subphase.EVENING)

    event = log.emit(world, EventType.MARKET_RESTRICTION, 4, "controls")

    assert event.day == 7
    assert event.subphase is Subphase.EVENING
    assert event.event_type is EventType.MARKET_RESTRICTION


def test_log_round_trip_preserves_ids_after_eviction() -> None:
    log = EventLog(capacity=2)
    for index in range(4):
        _record(log, f"event {index}")

    restored = EventLog.from_dict(log.to_dict())

    assert restored.capacity == 2
    assert restored.entries() == log.entries()
    assert _record(restored, "next").event_id == 5


def test_from_dict_rejects_stale_next_event_id() -> None:
    log = EventLog()
    _record(log, "one")
    payload = log.to_dict()
    payload["next_event_id"] = 1

    with pytest.raises(ValueError, match="next_event_id"):
        EventLog.from_dict(payload)
