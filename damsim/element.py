"""Timestamped channel items, peek results and channel errors."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from damsim.time import Time

T = TypeVar("T")
U = TypeVar("U")


class DequeueError(Exception):
    """Dequeued from a channel that was closed with no further values."""

    def __init__(self, message: str = "Dequeued from a simulation-closed channel!") -> None:
        super().__init__(message)


class EnqueueError(Exception):
    """Enqueued to a channel whose receiving side was closed."""

    def __init__(self, message: str = "Enqueued to a simulation-closed channel!") -> None:
        super().__init__(message)


@dataclass
class ChannelElement(Generic[T]):
    """An item with the time it becomes visible."""

    time: Time
    data: T

    def __post_init__(self) -> None:
        if isinstance(self.time, int) and not isinstance(self.time, bool):
            self.time = Time(self.time)
        elif not isinstance(self.time, Time):
            raise TypeError(f"time must be a Time or int, not {type(self.time).__name__}")

    def update_time(self, new_time: Time) -> None:
        """Move the timestamp later, never earlier; used to model stalls."""
        self.time = max(self.time, new_time)

    def convert(self, func: Callable[[T], U]) -> "ChannelElement[U]":
        """Return an element with the same time and ``func`` applied to the data."""
        return ChannelElement(self.time, func(self.data))


class PeekResult(Generic[T]):
    """The outcome of looking at the head of a channel."""

    def to_dequeue(self) -> ChannelElement[T]:
        """Return the element, or raise DequeueError if the channel closed.

        A Nothing result has no dequeue counterpart and raises ValueError.
        """
        match self:
            case PeekSomething(element=element):
                return element
            case PeekClosed():
                raise DequeueError()
            case PeekNothing(time=time):
                raise ValueError(f"nothing available up to time {time}")
        raise TypeError(f"unknown peek result: {self!r}")


@dataclass(frozen=True)
class PeekSomething(PeekResult[T]):
    """An element was found; its timestamp may lie in the future."""

    element: ChannelElement[T]


@dataclass(frozen=True)
class PeekNothing(PeekResult[T]):
    """Nothing is available, and nothing will arrive at or before ``time``."""

    time: Time


@dataclass(frozen=True)
class PeekClosed(PeekResult[T]):
    """The channel is closed; roughly Nothing at infinity."""


class ChannelFlavor(enum.Enum):
    """How a channel's endpoints synchronise."""

    ACYCLIC = "acyclic"
    CYCLIC = "cyclic"
    VOID = "void"