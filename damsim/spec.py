"""Static description of a channel, and the per-endpoint copy its halves hold."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Protocol

from damsim.identifier import ChannelID, Identifier
from damsim.time import Time


class _TimeView(Protocol):
    def wait_until(self, time: Time) -> Time: ...

    def tick_lower_bound(self) -> Time: ...


class _Endpoint(Protocol):
    def view(self) -> Any: ...

    def id(self) -> Identifier: ...


def _positive_latency(value: int | None, what: str) -> int:
    latency = 1 if value is None else value
    if latency <= 0:
        raise ValueError(f"{what} must be positive, got {latency}")
    return latency


class ChannelSpec:
    """Capacity, latencies and attached endpoints of one channel."""

    def __init__(
        self,
        capacity: int | None = None,
        send_latency: int | None = None,
        response_latency: int | None = None,
    ) -> None:
        self.capacity = capacity
        self.send_latency = _positive_latency(send_latency, "send latency")
        self.response_latency = _positive_latency(response_latency, "response latency")
        self.channel_id = ChannelID.new()
        self._lock = threading.Lock()
        self._sender_view: _TimeView | None = None
        self._receiver_view: _TimeView | None = None
        self._sender_id: Identifier | None = None
        self._receiver_id: Identifier | None = None

    @property
    def sender_id(self) -> Identifier | None:
        with self._lock:
            return self._sender_id

    @property
    def receiver_id(self) -> Identifier | None:
        with self._lock:
            return self._receiver_id

    def attach_sender(self, sender: _Endpoint) -> None:
        """Record the context that writes to this channel."""
        view, ident = sender.view(), sender.id()
        with self._lock:
            self._sender_view = view
            self._sender_id = ident

    def attach_receiver(self, receiver: _Endpoint) -> None:
        """Record the context that reads from this channel."""
        view, ident = receiver.view(), receiver.id()
        with self._lock:
            self._receiver_view = view
            self._receiver_id = ident

    def make_inline(self) -> "InlineSpec":
        """Snapshot the specification for use by a sender or receiver."""
        with self._lock:
            return InlineSpec(
                capacity=self.capacity,
                send_latency=self.send_latency,
                response_latency=self.response_latency,
                sender_view=self._sender_view,
                receiver_view=self._receiver_view,
            )


@dataclass(frozen=True)
class InlineSpec:
    """A copy of a ChannelSpec held directly by a channel endpoint."""

    capacity: int | None
    send_latency: int
    response_latency: int
    sender_view: _TimeView | None = None
    receiver_view: _TimeView | None = None

    def _sender(self) -> _TimeView:
        if self.sender_view is None:
            raise RuntimeError("no sender context is attached to this channel")
        return self.sender_view

    def _receiver(self) -> _TimeView:
        if self.receiver_view is None:
            raise RuntimeError("no receiver context is attached to this channel")
        return self.receiver_view

    def wait_until_sender(self, time: Time) -> Time:
        return self._sender().wait_until(time)

    def sender_tlb(self) -> Time:
        return self._sender().tick_lower_bound()

    def wait_until_receiver(self, time: Time) -> Time:
        return self._receiver().wait_until(time)

    def receiver_tlb(self) -> Time:
        return self._receiver().tick_lower_bound()