"""Contexts: the logical units of a simulation, and their summaries."""

from __future__ import annotations

import abc
import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

from damsim.identifier import ChannelID, Identifiable, Identifier, VerboseIdentifier

ExplicitConnections = dict[Identifier, list[tuple[set[ChannelID], set[ChannelID]]]]

C = TypeVar("C", bound="Context")


class ContextRunError(Exception):
    """A context failed while running."""


class ContextPanicError(ContextRunError):
    """The context's run method raised an exception."""

    def __init__(self, message: str = "Panic occurred") -> None:
        super().__init__(message)


@dataclass
class ContextSummary:
    """A summary of a context's execution."""

    id: VerboseIdentifier
    time: Any
    children: list["ContextSummary"] = field(default_factory=list)

    def max_time(self) -> int:
        """The largest tick reached by this context or any of its children."""
        own = self.time.tick_lower_bound().time
        return max([own, *(child.max_time() for child in self.children)])


class Context(Identifiable, abc.ABC):
    """A unit of simulated behaviour, expressed as one monolithic ``run``.

    ``time`` is the context's time manager; it must provide ``view()``.
    Subclasses that route inputs to specific outputs set
    ``explicit_connections``; by default every edge is connected.
    """

    explicit_connections: ClassVar[ExplicitConnections | None] = None

    def __init__(self, time: Any = None) -> None:
        self.time = time
        self.initialized = False

    def init(self) -> None:
        """Prepare the context before it runs; by default only marks it initialized."""
        self.initialized = True

    @abc.abstractmethod
    def run(self) -> None:
        """The whole behaviour of the context."""

    def run_fallible(self) -> None:
        """Run the context, raising ContextPanicError if ``run`` fails."""
        try:
            self.run()
        except Exception as exc:
            raise ContextPanicError() from exc

    def view(self) -> Any:
        """A read-only view of this context's time."""
        if self.time is None:
            raise RuntimeError(f"{self.name()} has no time manager")
        return self.time.view()

    def ids(self) -> dict[VerboseIdentifier, set[VerboseIdentifier]]:
        """Map of this context's identifier to those of its children."""
        return {self.verbose(): set()}

    def edge_connections(self) -> ExplicitConnections | None:
        """Explicit input-to-output channel connections; None means all connected."""
        connections = self.explicit_connections
        if connections is None:
            return None
        return copy.deepcopy(connections)

    def summarize(self) -> ContextSummary:
        return ContextSummary(id=self.verbose(), time=self.view(), children=[])


class ProxyContext(Generic[C]):
    """Wraps a context so it can be replaced by its summary once cleaned up."""

    def __init__(self, context: C) -> None:
        self._context: C | None = context
        self._summary: ContextSummary | None = None

    @property
    def running(self) -> bool:
        return self._context is not None

    def context(self) -> C:
        """The wrapped context; raises once it has been cleaned up."""
        if self._context is None:
            raise RuntimeError("Attempting to deref a context that's been cleaned already!")
        return self._context

    def cleanup(self) -> None:
        """Replace the running context with its summary."""
        if self._context is not None:
            self._summary = self._context.summarize()
            self._context = None

    def view(self) -> Any:
        if self._context is not None:
            return self._context.view()
        assert self._summary is not None
        return self._summary.time

    def summarize(self) -> ContextSummary:
        if self._summary is None:
            raise RuntimeError("Attempting to summarize a running node!")
        return self._summary