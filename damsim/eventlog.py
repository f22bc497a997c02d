"""Structured event logging for simulation contexts.

Each thread holds its own LogInterface. Events go through the interface's
filter and are pushed as LogEntry records onto a queue, which a LogProcessor
drains.
"""

from __future__ import annotations

import abc
import dataclasses
import enum
import threading
from dataclasses import dataclass, field, replace
from time import monotonic
from typing import Any, Callable, ClassVar, Iterable, TypeVar

from damsim.identifier import Identifier
from damsim.shim import ChannelDisconnected, QueueSender
from damsim.time import Time

E = TypeVar("E", bound="LogEvent")


class LogError(Exception):
    """Raised when an event cannot be logged."""


class LogSendError(LogError):
    """No processor is listening, so the event would never be seen."""

    def __init__(self, message: str = "Could not send event! Were LogProcessors registered?") -> None:
        super().__init__(message)


class InvalidFilterError(LogError):
    """A filter names event types that were never registered."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        super().__init__(
            f"Invalid Log Filter Defined: {self.names!r} were not registered filters! "
            f"Options: {registered_events()!r}"
        )


_REGISTRY: list[str] = []
_REGISTRY_LOCK = threading.Lock()


def _encode(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, enum.Enum):
        return value.name
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _encode(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(key): _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    raise LogError(f"Serialization Error: cannot encode {type(value).__name__}")


class LogEvent:
    """Base class for loggable events; NAME identifies the type to filters."""

    NAME: ClassVar[str] = ""

    def to_document(self) -> Any:
        """Return a document form of the event made of plain values."""
        if dataclasses.is_dataclass(self):
            return _encode(self)
        return {key: _encode(value) for key, value in vars(self).items() if not key.startswith("_")}


def register_event(cls: type[E]) -> type[E]:
    """Class decorator registering an event type under its NAME (default: class name)."""
    if not (isinstance(cls, type) and issubclass(cls, LogEvent)):
        raise TypeError(f"{cls!r} is not a LogEvent subclass")
    name = cls.__dict__.get("NAME") or cls.__name__
    cls.NAME = name
    with _REGISTRY_LOCK:
        if name not in _REGISTRY:
            _REGISTRY.append(name)
    return cls


def registered_events() -> list[str]:
    """Names of all registered event types, in registration order."""
    with _REGISTRY_LOCK:
        return list(_REGISTRY)


def _event_name(event_type: type[LogEvent] | LogEvent | str) -> str:
    if isinstance(event_type, str):
        return event_type
    return event_type.NAME


@dataclass(frozen=True)
class LogFilter:
    """Which event types are logged; ``names`` of None allows all."""

    names: frozenset[str] | None = None

    @classmethod
    def allow_all(cls) -> "LogFilter":
        return cls(None)

    @classmethod
    def only(cls, names: Iterable[str]) -> "LogFilter":
        return cls(frozenset(names))

    def check(self) -> None:
        """Raise InvalidFilterError if any named type is not registered."""
        if self.names is None:
            return
        known = set(registered_events())
        invalid = sorted(name for name in self.names if name not in known)
        if invalid:
            raise InvalidFilterError(invalid)

    def enabled(self, event_type: type[LogEvent] | LogEvent | str) -> bool:
        """Whether events of this type (class, instance or name) pass the filter."""
        if self.names is None:
            return True
        return _event_name(event_type) in self.names


@dataclass(frozen=True)
class LogEntry:
    """A logged event as handed to a processor."""

    timestamp: int
    context: int
    ticks: Time
    event_type: str
    event_data: Any


@dataclass
class LogInterface:
    """Pushes events of one context onto a processor's queue."""

    id: Identifier
    comm: QueueSender[LogEntry]
    base_time: float = field(default_factory=monotonic)
    log_filter: LogFilter = field(default_factory=LogFilter.allow_all)
    current_ticks: Time = field(default_factory=Time)

    def log(self, event: LogEvent) -> None:
        """Send an event; raises LogSendError if the queue's reader is gone."""
        elapsed = max(0, int((monotonic() - self.base_time) * 1_000_000))
        entry = LogEntry(
            timestamp=elapsed,
            context=self.id.id,
            ticks=self.current_ticks,
            event_type=type(event).NAME,
            event_data=event.to_document(),
        )
        try:
            self.comm.send(entry)
        except ChannelDisconnected as exc:
            raise LogSendError() from exc

    def update_ticks(self, new_time: Time) -> None:
        self.current_ticks = new_time


class _LoggerSlot(threading.local):
    logger: LogInterface | None = None


_SLOT = _LoggerSlot()


def log_event(event: LogEvent) -> None:
    """Log to this thread's logger, if one is set and its filter allows it."""
    logger = _SLOT.logger
    if logger is not None and logger.log_filter.enabled(type(event)):
        logger.log(event)


def log_event_cb(event_type: type[LogEvent] | str, callback: Callable[[], LogEvent]) -> None:
    """Log the event built by ``callback``, calling it only when it would be logged."""
    logger = _SLOT.logger
    if logger is not None and logger.log_filter.enabled(event_type):
        logger.log(callback())


def initialize_log(logger: LogInterface) -> None:
    """Install the logger for the current thread."""
    _SLOT.logger = logger


def copy_log() -> LogInterface | None:
    """A copy of this thread's logger, for handing to a child context."""
    logger = _SLOT.logger
    return None if logger is None else replace(logger)


def update_ticks(time: Time) -> None:
    """Record the current tick count on this thread's logger."""
    logger = _SLOT.logger
    if logger is not None:
        logger.update_ticks(time)


class LogProcessor(abc.ABC):
    """Drains logged entries into some store."""

    @abc.abstractmethod
    def spawn(self) -> None:
        """Run the processing job; called on a dedicated thread."""


class NullLogger(LogProcessor):
    """A processor that does nothing."""

    def spawn(self) -> None:
        return None