"""When a channel will next have something to offer.

Useful when a context may read from one of several channels and must find
which one has the earliest event, or when it must wait for all of them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable

from damsim.element import PeekClosed, PeekNothing, PeekSomething
from damsim.time import Time


class EventKind(enum.Enum):
    READY = "ready"
    NOTHING = "nothing"
    CLOSED = "closed"


def _as_time(value: Time | int) -> Time:
    return value if isinstance(value, Time) else Time(value)


@dataclass(frozen=True)
class EventTime:
    """The next event of a channel.

    READY: an event happens at ``time``. NOTHING: no event happens up to and
    including ``time``. CLOSED: no event will ever happen.
    Ordering compares the earliest tick at which an event could happen.
    """

    kind: EventKind
    time: Time | None = None

    @classmethod
    def ready(cls, time: Time | int) -> "EventTime":
        return cls(EventKind.READY, _as_time(time))

    @classmethod
    def nothing(cls, time: Time | int) -> "EventTime":
        return cls(EventKind.NOTHING, _as_time(time))

    @classmethod
    def closed(cls) -> "EventTime":
        return cls(EventKind.CLOSED)

    def key(self) -> Time:
        """The earliest time at which this event could occur."""
        if self.kind is EventKind.CLOSED:
            return Time.infinite()
        assert self.time is not None
        if self.kind is EventKind.READY:
            return self.time
        return self.time + 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, EventTime):
            return NotImplemented
        return self.key() < other.key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, EventTime):
            return NotImplemented
        return self.key() <= other.key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, EventTime):
            return NotImplemented
        return self.key() > other.key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, EventTime):
            return NotImplemented
        return self.key() >= other.key()


def next_event(item: Any) -> EventTime:
    """The next event of an EventTime itself, or of anything with ``peek()``."""
    if isinstance(item, EventTime):
        return item
    peek = getattr(item, "peek", None)
    if peek is None:
        raise TypeError(f"cannot find the next event of {type(item).__name__}")
    match peek():
        case PeekClosed():
            return EventTime.closed()
        case PeekSomething(element=element):
            return EventTime.ready(element.time)
        case PeekNothing(time=time) if time.is_infinite():
            return EventTime.closed()
        case PeekNothing(time=time):
            return EventTime.nothing(time)
        case other:
            raise TypeError(f"unknown peek result: {other!r}")


def all_events(items: Iterable[Any]) -> EventTime:
    """The time at which every item has had its event: the latest of them.

    Among equally late events the last one wins; no items means closed.
    """
    result: EventTime | None = None
    for event in map(next_event, items):
        if result is None or event >= result:
            result = event
    return EventTime.closed() if result is None else result


def any_event(items: Iterable[Any]) -> EventTime:
    """The time at which some item has its event: the earliest of them.

    Among equally early events the first one wins; no items means closed.
    """
    result: EventTime | None = None
    for event in map(next_event, items):
        if result is None or event < result:
            result = event
    return EventTime.closed() if result is None else result