"""Send-side channel implementations.

An unbounded sender never waits. A bounded sender counts the items it has
sent against the responses the receiver returns for each dequeue. The acyclic
flavor blocks on those responses. The cyclic flavor consults the receiver's
clock instead, so that contexts in a cycle cannot deadlock.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, replace
from typing import Generic, NoReturn, Protocol, TypeVar

from damsim.element import ChannelElement, EnqueueError
from damsim.shim import ChannelDisconnected, ChannelEmpty, QueueReceiver, QueueSender
from damsim.spec import ChannelSpec, InlineSpec
from damsim.time import Time

T = TypeVar("T")


class _Manager(Protocol):
    def tick(self) -> Time: ...

    def advance(self, time: Time) -> object: ...


class SenderFlavor(abc.ABC, Generic[T]):
    """Operations every send-side implementation supports."""

    @abc.abstractmethod
    def wait_until_available(self, manager: _Manager) -> Time:
        """Advance time until the channel has room and return the local time then.

        Raises EnqueueError if the channel will never have room.
        """

    @abc.abstractmethod
    def enqueue(self, manager: _Manager, element: ChannelElement[T]) -> None:
        """Send an element, raising EnqueueError if the channel is closed."""


def _refuse(message: str, manager: _Manager | None) -> NoReturn:
    tick = getattr(manager, "tick", None)
    if callable(tick):
        message = f"{message} (local time {tick()})"
    raise RuntimeError(message)


class UninitializedSender(SenderFlavor[T]):
    """A sender before the simulation has chosen its flavor."""

    def __init__(self, spec: ChannelSpec) -> None:
        self.spec = spec

    def attach_sender(self, sender: object) -> None:
        self.spec.attach_sender(sender)

    def wait_until_available(self, manager: _Manager) -> Time:
        _refuse("Calling wait_until_available on an uninitialized sender", manager)

    def enqueue(self, manager: _Manager, element: ChannelElement[T]) -> None:
        _refuse("Calling enqueue on an uninitialized sender", manager)


class TerminatedSender(SenderFlavor[T]):
    """A sender whose owner has closed it."""

    def wait_until_available(self, manager: _Manager) -> Time:
        _refuse("Attempting to wait for a terminated sender.", manager)

    def enqueue(self, manager: _Manager, element: ChannelElement[T]) -> None:
        _refuse("Attempting to enqueue to a terminated sender.", manager)


class VoidSender(SenderFlavor[T]):
    """A sender that discards everything it is given; it always has room."""

    def wait_until_available(self, manager: _Manager) -> Time:
        return manager.tick()

    def enqueue(self, manager: _Manager, element: ChannelElement[T]) -> None:
        return None


class _ActiveSender(SenderFlavor[T]):
    def __init__(self, spec: InlineSpec, underlying: QueueSender[ChannelElement[T]]) -> None:
        self.spec = spec
        self.underlying = underlying

    def _register_send(self) -> None:
        return None

    def enqueue(self, manager: _Manager, element: ChannelElement[T]) -> None:
        self.wait_until_available(manager)
        element = replace(element)
        min_time = manager.tick() + self.spec.send_latency
        if element.time < min_time:
            element.update_time(min_time)
        try:
            self.underlying.send(element)
        except ChannelDisconnected:
            raise EnqueueError() from None
        self._register_send()


class UnboundedSender(_ActiveSender[T]):
    """A sender on a channel without capacity limit; it always has room."""

    def wait_until_available(self, manager: _Manager) -> Time:
        return manager.tick()


class _BoundedSender(_ActiveSender[T]):
    def __init__(
        self,
        spec: InlineSpec,
        underlying: QueueSender[ChannelElement[T]],
        resp: QueueReceiver[Time],
    ) -> None:
        if spec.capacity is None:
            raise ValueError("a bounded sender needs a channel capacity")
        super().__init__(spec, underlying)
        self.capacity: int = spec.capacity
        self.resp = resp
        self.send_receive_delta = 0

    def _register_send(self) -> None:
        self.send_receive_delta += 1


class BoundedAcyclicSender(_BoundedSender[T]):
    """A bounded sender that blocks on the receiver's responses when full."""

    def wait_until_available(self, manager: _Manager) -> Time:
        if self.send_receive_delta < self.capacity:
            return manager.tick()
        try:
            time = self.resp.recv()
        except ChannelDisconnected:
            raise EnqueueError() from None
        manager.advance(time)
        return manager.tick()


class _Availability(enum.Enum):
    AVAILABLE_AT = "available_at"
    CHECK_BACK_AT = "check_back_at"
    NEVER = "never"


@dataclass(frozen=True)
class SendOption:
    """When a cyclic sender may next send, as far as it currently knows."""

    kind: _Availability
    time: Time | None = None

    @classmethod
    def available_at(cls, time: Time) -> "SendOption":
        return cls(_Availability.AVAILABLE_AT, time)

    @classmethod
    def check_back_at(cls, time: Time) -> "SendOption":
        return cls(_Availability.CHECK_BACK_AT, time)

    @classmethod
    def never(cls) -> "SendOption":
        return cls(_Availability.NEVER)


class BoundedCyclicSender(_BoundedSender[T]):
    """A bounded sender that steps time forward by watching the receiver's clock."""

    def __init__(
        self,
        spec: InlineSpec,
        underlying: QueueSender[ChannelElement[T]],
        resp: QueueReceiver[Time],
    ) -> None:
        super().__init__(spec, underlying, resp)
        self.next_available: SendOption | None = None

    def _update_srd(self) -> bool:
        """Drain responses; report whether anything about availability changed."""
        send_time = self.spec.sender_tlb()
        if self.next_available is not None:
            raise RuntimeError("availability is already known")
        progressed = False
        while True:
            try:
                time = self.resp.try_recv()
            except ChannelEmpty:
                return progressed
            except ChannelDisconnected:
                self.next_available = SendOption.never()
                return True
            if time <= send_time:
                if self.send_receive_delta <= 0:
                    raise RuntimeError("received more responses than items sent")
                self.send_receive_delta -= 1
                progressed = True
            else:
                self.next_available = SendOption.available_at(time)
                return True

    def wait_until_available(self, manager: _Manager) -> Time:
        while True:
            if self.send_receive_delta < self.capacity:
                return manager.tick()
            option = self.next_available
            if option is not None:
                if option.kind is _Availability.AVAILABLE_AT:
                    manager.advance(option.time)
                    self.send_receive_delta -= 1
                    self.next_available = None
                    return manager.tick()
                if option.kind is _Availability.NEVER:
                    raise EnqueueError()
                manager.advance(option.time)
                self.next_available = None

            if self._update_srd():
                continue

            new_time = self.spec.wait_until_receiver(manager.tick())
            # The receiver has now reached new_time, so its responses up to then are queued.
            if not self._update_srd():
                self.next_available = SendOption.check_back_at(
                    new_time + self.spec.response_latency
                )