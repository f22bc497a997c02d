"""Receive-side channel implementations.

A receiver is acyclic or cyclic. An acyclic receiver simply blocks on the
underlying queue; a cyclic one advances time in small steps, consulting the
sender's clock, so that contexts in a cycle cannot deadlock. A receiver given
a response queue reports each dequeue back to a bounded sender.
"""

from __future__ import annotations

import abc
from dataclasses import replace
from typing import Generic, NoReturn, Protocol, TypeVar

from damsim.element import (
    ChannelElement,
    DequeueError,
    PeekClosed,
    PeekNothing,
    PeekResult,
    PeekSomething,
)
from damsim.shim import ChannelDisconnected, ChannelEmpty, QueueReceiver, QueueSender
from damsim.spec import ChannelSpec, InlineSpec
from damsim.time import Time

T = TypeVar("T")


class _Manager(Protocol):
    def tick(self) -> Time: ...

    def advance(self, time: Time) -> object: ...


class ReceiverFlavor(abc.ABC, Generic[T]):
    """Operations every receive-side implementation supports."""

    @abc.abstractmethod
    def peek(self) -> PeekResult[T]:
        """Look at the head of the channel without advancing time."""

    @abc.abstractmethod
    def peek_next(self, manager: _Manager) -> ChannelElement[T]:
        """Advance time until an element is available and return it."""

    @abc.abstractmethod
    def dequeue(self, manager: _Manager) -> ChannelElement[T]:
        """Advance time until an element is available and remove it."""


class _InactiveReceiver(ReceiverFlavor[T]):
    """A receiver on which every operation is an error."""

    _description = "an inactive receiver"

    def _refuse(self, operation: str, manager: _Manager | None = None) -> NoReturn:
        message = f"Calling {operation} on {self._description}"
        tick = getattr(manager, "tick", None)
        if callable(tick):
            message = f"{message} (local time {tick()})"
        raise RuntimeError(message)

    def peek(self) -> PeekResult[T]:
        self._refuse("peek")

    def peek_next(self, manager: _Manager) -> ChannelElement[T]:
        self._refuse("peek_next", manager)

    def dequeue(self, manager: _Manager) -> ChannelElement[T]:
        self._refuse("dequeue", manager)


class UninitializedReceiver(_InactiveReceiver[T]):
    """A receiver before the simulation has chosen its flavor."""

    _description = "an uninitialized receiver"

    def __init__(self, spec: ChannelSpec) -> None:
        self.spec = spec

    def attach_receiver(self, receiver: object) -> None:
        self.spec.attach_receiver(receiver)


class TerminatedReceiver(_InactiveReceiver[T]):
    """A receiver whose owner has dropped it."""

    _description = "a terminated receiver"


class _ActiveReceiver(ReceiverFlavor[T]):
    def __init__(
        self,
        spec: InlineSpec,
        underlying: QueueReceiver[ChannelElement[T]],
        resp: QueueSender[Time] | None = None,
    ) -> None:
        self.spec = spec
        self.underlying = underlying
        self.resp = resp
        self.head: PeekResult[T] | None = None

    @property
    def bounded(self) -> bool:
        return self.resp is not None

    def _register_recv(self, time: Time) -> None:
        if self.resp is None:
            return
        try:
            self.resp.send(time + self.spec.response_latency)
        except ChannelDisconnected:
            pass

    def _try_update_head(self, nothing_time: Time) -> None:
        try:
            self.head = PeekSomething(self.underlying.try_recv())
        except ChannelDisconnected:
            self.head = PeekClosed()
        except ChannelEmpty:
            if nothing_time.is_infinite():
                self.head = PeekClosed()
            else:
                self.head = PeekNothing(nothing_time)

    def peek(self) -> PeekResult[T]:
        recv_time = self.spec.receiver_tlb()
        match self.head:
            case PeekClosed() | PeekSomething():
                return self.head
            case PeekNothing(time=time) if time >= recv_time:
                return self.head

        self._try_update_head(Time(0))
        if isinstance(self.head, (PeekClosed, PeekSomething)):
            return self.head

        # Nothing yet: wait for the sender to catch up to our time, then look again.
        sig_time = self.spec.wait_until_sender(recv_time)
        if sig_time < recv_time:
            raise RuntimeError(f"sender signalled {sig_time}, before receiver time {recv_time}")
        self._try_update_head(sig_time)
        assert self.head is not None
        return self.head


class AcyclicReceiver(_ActiveReceiver[T]):
    """A receiver that blocks directly on the underlying queue."""

    def peek_next(self, manager: _Manager) -> ChannelElement[T]:
        match self.head:
            case PeekClosed():
                raise DequeueError()
            case PeekSomething(element=element):
                return replace(element)

        try:
            element = self.underlying.recv()
        except ChannelDisconnected:
            self.head = PeekClosed()
            raise DequeueError() from None
        manager.advance(element.time)
        self.head = PeekSomething(element)
        return replace(element)

    def dequeue(self, manager: _Manager) -> ChannelElement[T]:
        match self.head:
            case PeekClosed():
                raise DequeueError()
            case PeekSomething(element=element):
                self.head = None
                manager.advance(element.time)
                self._register_recv(max(element.time, manager.tick()))
                return element

        try:
            element = self.underlying.recv()
        except ChannelDisconnected:
            self.head = PeekClosed()
            raise DequeueError() from None
        self._register_recv(max(element.time, manager.tick()))
        manager.advance(element.time)
        return element


class CyclicReceiver(_ActiveReceiver[T]):
    """A receiver that steps time forward, safe inside cycles of contexts."""

    def peek_next(self, manager: _Manager) -> ChannelElement[T]:
        while True:
            match self.peek():
                case PeekNothing(time=time):
                    if not manager.tick() < time + 1:
                        raise RuntimeError(
                            f"peek reported nothing up to {time}, but local time is {manager.tick()}"
                        )
                    manager.advance(time + 1)
                case PeekClosed():
                    raise DequeueError()
                case PeekSomething(element=element):
                    manager.advance(element.time)
                    return replace(element)

    def dequeue(self, manager: _Manager) -> ChannelElement[T]:
        element = self.peek_next(manager)
        self._register_recv(max(element.time, manager.tick()))
        self.head = None
        return element