"""Unique identifiers for contexts and channels."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass


class _Counter:
    def __init__(self) -> None:
        self._values = itertools.count()
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._values)


_CONTEXT_IDS = _Counter()
_CHANNEL_IDS = _Counter()


@dataclass(frozen=True)
class Identifier:
    """A unique identifier for a context."""

    id: int

    @classmethod
    def new(cls) -> "Identifier":
        return cls(_CONTEXT_IDS.next())

    def __str__(self) -> str:
        return f"ID_{self.id}"


@dataclass(frozen=True)
class VerboseIdentifier:
    """An identifier together with a readable name, for debugging and display."""

    id: Identifier
    name: str


class Identifiable:
    """Mixin giving an object a stable identifier and a name."""

    def id(self) -> Identifier:
        try:
            return self._identifier
        except AttributeError:
            self._identifier = Identifier.new()
            return self._identifier

    def name(self) -> str:
        return type(self).__name__

    def verbose(self) -> VerboseIdentifier:
        return VerboseIdentifier(self.id(), self.name())


@dataclass(frozen=True, order=True)
class ChannelID:
    """A unique identifier for a channel; not stable across runs."""

    id: int

    @classmethod
    def new(cls) -> "ChannelID":
        return cls(_CHANNEL_IDS.next())

    def __str__(self) -> str:
        return f"Channel({self.id})"