"""Simulation timestamps and a thread-safe, monotonically advancing clock."""

from __future__ import annotations

import functools
import threading
from dataclasses import dataclass, replace


def _coerce(value: object) -> "Time | None":
    if isinstance(value, Time):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Time(value)
    return None


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Time:
    """An immutable timestamp.

    The tick count is kept alongside a ``done`` flag, so a finished context can
    be marked infinite while still remembering the tick it finished at.
    """

    time: int = 0
    done: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.time, bool) or not isinstance(self.time, int):
            raise TypeError(f"time must be an int, not {type(self.time).__name__}")
        if self.time < 0:
            raise ValueError(f"time must be non-negative, got {self.time}")

    @classmethod
    def infinite(cls) -> "Time":
        """Return a timestamp that compares greater than every finite one."""
        return cls(0, True)

    def is_infinite(self) -> bool:
        return self.done

    def with_infinite(self) -> "Time":
        """Return a copy marked infinite, keeping the tick count."""
        return replace(self, done=True)

    def _cmp(self, other: "Time") -> int:
        if self == other:
            return 0
        if self.done:
            return 1
        if other.done:
            return -1
        return (self.time > other.time) - (self.time < other.time)

    def __add__(self, other: object) -> "Time":
        if isinstance(other, Time):
            return Time(self.time + other.time, self.done or other.done)
        if isinstance(other, int) and not isinstance(other, bool):
            return Time(self.time + other, self.done)
        return NotImplemented

    def __radd__(self, other: object) -> "Time":
        return self.__add__(other)

    def __sub__(self, other: object) -> "Time":
        if isinstance(other, bool) or not isinstance(other, int):
            return NotImplemented
        if self.time < other:
            raise ValueError(f"cannot subtract {other} from time {self.time}")
        return Time(self.time - other, self.done)

    def __eq__(self, other: object) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        if self.done and rhs.done:
            return True
        if self.done != rhs.done:
            return False
        return self.time == rhs.time

    def __lt__(self, other: object) -> bool:
        rhs = _coerce(other)
        if rhs is None:
            return NotImplemented
        return self._cmp(rhs) < 0

    def __hash__(self) -> int:
        if self.done:
            return hash(("infinite-time",))
        return hash(self.time)

    def __str__(self) -> str:
        if self.done:
            return f"inf {self.time}"
        return str(self.time)


class AtomicTime:
    """A clock shared between threads that only ever moves forward."""

    def __init__(self, initial: Time | None = None) -> None:
        start = initial if initial is not None else Time()
        self._lock = threading.Lock()
        self._time = start.time
        self._done = start.done

    def load(self) -> Time:
        with self._lock:
            return Time(self._time, self._done)

    def set_infinite(self) -> None:
        with self._lock:
            self._done = True

    def try_advance(self, rhs: Time) -> bool:
        """Move the clock to ``rhs`` if that is later; report whether it moved."""
        with self._lock:
            if self._done:
                return False
            if rhs.done:
                self._done = True
                return True
            if self._time < rhs.time:
                self._time = rhs.time
                return True
            return False

    def incr_cycles(self, cycles: int) -> None:
        if cycles < 0:
            raise ValueError(f"cannot advance by a negative number of cycles: {cycles}")
        with self._lock:
            self._time += cycles

    def __repr__(self) -> str:
        return f"AtomicTime({self.load()!r})"