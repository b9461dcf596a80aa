from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

from granary.sim.clock import Subphase

if TYPE_CHECKING:
    from granary.sim.world import World

DASHBOARD_EVENT_CAPACITY = 200
MIN_SEVERITY = 1
MAX_SEVERITY = 5


class EventType(str, Enum):
    GRAIN_TIER_CHANGE = "GrainTierChange"
    UNREST_TIER_CHANGE = "UnrestTierChange"
    FACTION_ACTION = "FactionAction"
    CONTRACT_ISSUED = "ContractIssued"
    CONTRACT_FAILED = "ContractFailed"
    MARKET_RESTRICTION = "MarketRestriction"
    PLAYER_ACTION = "PlayerAction"
    TIME_PASSES = "TimePasses"
    OPENING = "Opening"


@dataclass(frozen=True)
class Event:
    event_id: int
    day: int
    subphase: Subphase
    event_type: EventType
    severity: int
    text: str

    def __post_init__(self) -> None:
        if isinstance(self.event_id, bool) or not isinstance(self.event_id, int) or self.event_id <= 0:
            raise ValueError("event_id must be a positive integer")
        if isinstance(self.day, bool) or not isinstance(self.day, int) or self.day < 1:
            raise ValueError("event day must be an integer >= 1")
        if isinstance(self.severity, bool) or not isinstance(self.severity, int):
            raise ValueError("event severity must be an integer")
        if not MIN_SEVERITY <= self.severity <= MAX_SEVERITY:
            raise ValueError(f"event severity must be within [{MIN_SEVERITY}, {MAX_SEVERITY}]")
        if not isinstance(self.text, str) or not self.text:
            raise ValueError("event text must be a non-empty string")
        object.__setattr__(self, "subphase", Subphase(self.subphase))
        object.__setattr__(self, "event_type", EventType(self.event_type))

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "day": self.day,
            "subphase": self.subphase.value,
            "event_type": self.event_type.value,
            "severity": self.severity,
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        return cls(
            event_id=data["event_id"],
            day=data["day"],
            subphase=Subphase(data["subphase"]),
            event_type=EventType(data["event_type"]),
            severity=data["severity"],
            text=data["text"],
        )


class EventLog:
    """Append-only narrative log; the oldest entries go first once capacity is exceeded.

    ``capacity=None`` keeps every event, which suits short single-session runs.
    """

    def __init__(self, capacity: int | None = None, *, next_event_id: int = 1) -> None:
        if capacity is not None and (isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0):
            raise ValueError("event log capacity must be a positive integer or None")
        self.capacity = capacity
        self._events: deque[Event] = deque(maxlen=capacity)
        self._next_event_id = next_event_id

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    @property
    def next_event_id(self) -> int:
        return self._next_event_id

    def entries(self) -> list[Event]:
        return list(self._events)

    def record(self, *, day: int, subphase: Subphase, event_type: EventType, severity: int, text: str) -> Event:
        event = Event(
            event_id=self._next_event_id,
            day=day,
            subphase=subphase,
            event_type=event_type,
            severity=severity,
            text=text,
        )
        self._next_event_id += 1
        self._events.append(event)
        return event

    def emit(self, world: World, event_type: EventType, severity: int, text: str) -> Event:
        """Record an event stamped with the world's current day and subphase."""
        return self.record(day=world.day, subphase=world.subphase, event_type=event_type, severity=severity, text=text)

    def to_dict(self) -> dict[str, Any]:
        return {
            "capacity": self.capacity,
            "next_event_id": self._next_event_id,
            "events": [event.to_dict() for event in self._events],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "EventLog":
        if not isinstance(payload, dict):
            raise ValueError("event_log must be an object")
        raw_events = payload.get("events", [])
        if not isinstance(raw_events, list):
            raise ValueError("event_log.events must be a list")
        events = [Event.from_dict(row) for row in raw_events]
        next_event_id = int(payload.get("next_event_id", events[-1].event_id + 1 if events else 1))
        if events and next_event_id <= events[-1].event_id:
            raise ValueError("event_log.next_event_id must exceed every stored event_id")
        log = cls(capacity=payload.get("capacity"), next_event_id=next_event_id)
        log._events.extend(events)
        return log
