import pytest

from damsim.element import ChannelElement, DequeueError, PeekClosed, PeekNothing, PeekSomething
from damsim.identifier import Identifier
from damsim.receivers import (
    AcyclicReceiver,
    CyclicReceiver,
    TerminatedReceiver,
    UninitializedReceiver,
)
from damsim.shim import ChannelEmpty, make_channel
from damsim.spec import ChannelSpec
from damsim.time import Time


class Clock:
    """Acts both as a receiver's time manager and as its view."""

    def __init__(self, start=0):
        self.now = Time(start)

    def tick(self):
        return self.now

    def advance(self, time):
        if time > self.now:
            self.now = time

    def tick_lower_bound(self):
        return self.now

    def wait_until(self, time):
        return max(self.now, time)


class SenderView:
    """A sender's view that can run a hook on each wait."""

    def __init__(self, tlb, hook=None):
        self.tlb = Time(tlb) if isinstance(tlb, int) else tlb
        self.hook = hook
        self.calls = 0

    def tick_lower_bound(self):
        return self.tlb

    def wait_until(self, time):
        self.calls += 1
        if self.hook is not None:
            self.hook(self.calls)
        return self.tlb if self.tlb.is_infinite() else max(self.tlb, time)


class Endpoint:
    def __init__(self, view):
        self._view = view
        self._id = Identifier.new()

    def view(self):
        return self._view

    def id(self):
        return self._id


def build(kind, sender_view, clock, bounded=False, response_latency=None):
    spec = ChannelSpec(4 if bounded else None, None, response_latency)
    spec.attach_sender(Endpoint(sender_view))
    spec.attach_receiver(Endpoint(clock))
    tx, rx = make_channel(4 if bounded else None)
    resp_tx, resp_rx = make_channel(4) if bounded else (None, None)
    return kind(spec.make_inline(), rx, resp_tx), tx, resp_rx


@pytest.mark.parametrize("method", ["peek_next", "dequeue"])
def test_uninitialized_and_terminated_raise(method):
    for receiver in (UninitializedReceiver(ChannelSpec()), TerminatedReceiver()):
        with pytest.raises(RuntimeError):
            getattr(receiver, method)(Clock())
        with pytest.raises(RuntimeError):
            receiver.peek()


def test_uninitialized_attach_records_receiver():
    spec = ChannelSpec()
    endpoint = Endpoint(Clock())
    UninitializedReceiver(spec).attach_receiver(endpoint)
    assert spec.receiver_id == endpoint.id()


@pytest.mark.parametrize("kind", [AcyclicReceiver, CyclicReceiver])
def test_peek_then_dequeue(kind):
    clock = Clock()
    receiver, tx, _ = build(kind, SenderView(0), clock)
    element = ChannelElement(Time(5), "a")
    tx.send(element)
    assert receiver.peek() == PeekSomething(element)
    got = receiver.dequeue(clock)
    assert got == element
    assert clock.tick() == Time(5)
    assert receiver.head is None


@pytest.mark.parametrize("kind", [AcyclicReceiver, CyclicReceiver])
def test_peek_next_keeps_element(kind):
    clock = Clock()
    receiver, tx, _ = build(kind, SenderView(0), clock)
    tx.send(ChannelElement(Time(3), "x"))
    tx.send(ChannelElement(Time(8), "y"))
    assert receiver.peek_next(clock).data == "x"
    assert clock.tick() == Time(3)
    assert receiver.peek_next(clock).data == "x"
    assert receiver.dequeue(clock).data == "x"
    assert receiver.dequeue(clock).data == "y"
    assert clock.tick() == Time(8)


@pytest.mark.parametrize("kind", [AcyclicReceiver, CyclicReceiver])
def test_bounded_reports_response(kind):
    clock = Clock()
    receiver, tx, resp_rx = build(kind, SenderView(0), clock, bounded=True, response_latency=3)
    tx.send(ChannelElement(Time(5), 1))
    receiver.dequeue(clock)
    assert resp_rx.try_recv() == Time(5) + 3
    with pytest.raises(ChannelEmpty):
        resp_rx.try_recv()


def test_unbounded_sends_no_response():
    clock = Clock()
    receiver, tx, _ = build(AcyclicReceiver, SenderView(0), clock)
    assert receiver.bounded is False
    tx.send(ChannelElement(Time(1), 1))
    assert receiver.dequeue(clock).data == 1


@pytest.mark.parametrize("kind", [AcyclicReceiver, CyclicReceiver])
def test_closed_channel(kind):
    clock = Clock()
    receiver, tx, _ = build(kind, SenderView(0), clock)
    tx.close()
    assert receiver.peek() == PeekClosed()
    with pytest.raises(DequeueError):
        receiver.dequeue(clock)
    with pytest.raises(DequeueError):
        receiver.peek_next(clock)


def test_peek_nothing_reports_sender_time():
    clock = Clock(3)
    sender_view = SenderView(4)
    receiver, _, _ = build(AcyclicReceiver, sender_view, clock)
    assert receiver.peek() == PeekNothing(Time(4))
    # The cached result still holds, so the sender is not asked again.
    assert receiver.peek() == PeekNothing(Time(4))
    assert sender_view.calls == 1


def test_finished_sender_means_closed():
    clock = Clock()
    receiver, _, _ = build(CyclicReceiver, SenderView(Time.infinite()), clock)
    assert receiver.peek() == PeekClosed()
    with pytest.raises(DequeueError):
        receiver.dequeue(clock)


def test_cyclic_steps_time_until_element_arrives():
    clock = Clock()
    holder = {}
    element = ChannelElement(Time(7), "late")

    def hook(call):
        if call == 2:
            holder["tx"].send(element)

    receiver, tx, _ = build(CyclicReceiver, SenderView(4, hook), clock)
    holder["tx"] = tx
    got = receiver.peek_next(clock)
    assert got == element
    assert clock.tick() == Time(7)
    assert receiver.dequeue(clock) == element