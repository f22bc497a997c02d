"""Single-producer, single-consumer channels between contexts.

A channel is created uninitialized; contexts attach to its ends, and the
simulation then chooses a flavor, which swaps in the working implementations.
Blocking operations advance the caller's time as they wait.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from damsim.element import ChannelElement, ChannelFlavor, PeekResult
from damsim.eventlog import log_event
from damsim.events import ReceiverEvent, ReceiverEventKind, SendEvent, SendEventKind
from damsim.identifier import ChannelID, Identifier
from damsim.receivers import (
    AcyclicReceiver,
    CyclicReceiver,
    ReceiverFlavor,
    TerminatedReceiver,
    UninitializedReceiver,
)
from damsim.senders import (
    BoundedAcyclicSender,
    BoundedCyclicSender,
    SenderFlavor,
    TerminatedSender,
    UnboundedSender,
    UninitializedSender,
    VoidSender,
)
from damsim.shim import make_channel
from damsim.spec import ChannelSpec

T = TypeVar("T")


def _release_sender(impl: SenderFlavor[Any]) -> None:
    if isinstance(impl, (UnboundedSender, BoundedAcyclicSender, BoundedCyclicSender)):
        impl.underlying.close()
    if isinstance(impl, (BoundedAcyclicSender, BoundedCyclicSender)):
        impl.resp.close()


def _release_receiver(impl: ReceiverFlavor[Any]) -> None:
    if isinstance(impl, (AcyclicReceiver, CyclicReceiver)):
        impl.underlying.close()
        if impl.resp is not None:
            impl.resp.close()


class ChannelData(Generic[T]):
    """The shared state behind a Sender and Receiver pair."""

    def __init__(self, spec: ChannelSpec) -> None:
        self.spec = spec
        self.sender_impl: SenderFlavor[T] = UninitializedSender(spec)
        self.receiver_impl: ReceiverFlavor[T] = UninitializedReceiver(spec)

    def set_flavor(self, flavor: ChannelFlavor) -> None:
        """Replace both ends with working implementations of the given flavor."""
        old_sender, old_receiver = self.sender_impl, self.receiver_impl
        if flavor is ChannelFlavor.VOID:
            self.sender_impl = VoidSender()
            _release_sender(old_sender)
            return

        capacity = self.spec.capacity
        data_tx, data_rx = make_channel(capacity)
        receiver_cls = AcyclicReceiver if flavor is ChannelFlavor.ACYCLIC else CyclicReceiver
        if capacity is None:
            self.sender_impl = UnboundedSender(self.spec.make_inline(), data_tx)
            self.receiver_impl = receiver_cls(self.spec.make_inline(), data_rx)
        else:
            resp_tx, resp_rx = make_channel(capacity)
            sender_cls = (
                BoundedAcyclicSender if flavor is ChannelFlavor.ACYCLIC else BoundedCyclicSender
            )
            self.sender_impl = sender_cls(self.spec.make_inline(), data_tx, resp_rx)
            self.receiver_impl = receiver_cls(self.spec.make_inline(), data_rx, resp_tx)
        _release_sender(old_sender)
        _release_receiver(old_receiver)

    def sender_id(self) -> Identifier | None:
        return self.spec.sender_id

    def receiver_id(self) -> Identifier | None:
        return self.spec.receiver_id

    def id(self) -> ChannelID:
        return self.spec.channel_id


class Sender(Generic[T]):
    """The send side of a channel."""

    def __init__(self, underlying: ChannelData[T]) -> None:
        self.underlying = underlying

    def id(self) -> ChannelID:
        return self.underlying.id()

    def attach_sender(self, context: Any) -> None:
        """Register the context that writes to this channel."""
        impl = self.underlying.sender_impl
        if not isinstance(impl, UninitializedSender):
            raise RuntimeError("Cannot attach a context to an initialized sender!")
        impl.attach_sender(context)

    def enqueue(self, manager: Any, element: ChannelElement[T]) -> None:
        """Write to the channel; raises EnqueueError if the receive side is closed."""
        log_event(SendEvent(SendEventKind.ENQUEUE_START, self.id()))
        try:
            self.underlying.sender_impl.enqueue(manager, element)
        finally:
            log_event(SendEvent(SendEventKind.ENQUEUE_FINISH, self.id()))

    def wait_until_available(self, manager: Any) -> None:
        """Advance time until the channel is not full."""
        self.underlying.sender_impl.wait_until_available(manager)

    def close(self) -> None:
        """Give up this end; the receiver sees the channel close."""
        old = self.underlying.sender_impl
        self.underlying.sender_impl = TerminatedSender()
        _release_sender(old)

    def __enter__(self) -> "Sender[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class Receiver(Generic[T]):
    """The receive side of a channel."""

    def __init__(self, underlying: ChannelData[T]) -> None:
        self.underlying = underlying

    def id(self) -> ChannelID:
        return self.underlying.id()

    def attach_receiver(self, context: Any) -> None:
        """Register the context that reads from this channel."""
        log_event(ReceiverEvent(ReceiverEventKind.ATTACH_RECEIVER, self.id(), context.id()))
        impl = self.underlying.receiver_impl
        if not isinstance(impl, UninitializedReceiver):
            raise RuntimeError("Should not be able to attach a context to an initialized receiver")
        impl.attach_receiver(context)

    def peek(self) -> PeekResult[T]:
        """Look at the head; the element found may lie in the future."""
        log_event(ReceiverEvent(ReceiverEventKind.PEEK, self.id()))
        return self.underlying.receiver_impl.peek()

    def peek_next(self, manager: Any) -> ChannelElement[T]:
        """Advance time until an element is present and return it without removing it."""
        log_event(ReceiverEvent(ReceiverEventKind.PEEK_NEXT_START, self.id()))
        try:
            return self.underlying.receiver_impl.peek_next(manager)
        finally:
            log_event(ReceiverEvent(ReceiverEventKind.PEEK_NEXT_FINISH, self.id()))

    def dequeue(self, manager: Any) -> ChannelElement[T]:
        """Advance time until an element is present and remove it.

        Raises DequeueError if the channel closes first.
        """
        log_event(ReceiverEvent(ReceiverEventKind.DEQUEUE_START, self.id()))
        try:
            return self.underlying.receiver_impl.dequeue(manager)
        finally:
            log_event(ReceiverEvent(ReceiverEventKind.DEQUEUE_FINISH, self.id()))

    def close(self) -> None:
        """Give up this end; the sender sees the channel close."""
        old = self.underlying.receiver_impl
        self.underlying.receiver_impl = TerminatedReceiver()
        _release_receiver(old)

    def __enter__(self) -> "Receiver[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_channel(
    capacity: int | None = None,
    send_latency: int | None = None,
    response_latency: int | None = None,
) -> tuple[Sender[Any], Receiver[Any]]:
    """Create an uninitialized channel; a capacity of None makes it unbounded."""
    data: ChannelData[Any] = ChannelData(ChannelSpec(capacity, send_latency, response_latency))
    return Sender(data), Receiver(data)