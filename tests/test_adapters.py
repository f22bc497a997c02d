import pytest

from damsim.adapters import RecvAdapter, SendAdapter
from damsim.channel import create_channel
from damsim.element import (
    ChannelElement,
    ChannelFlavor,
    DequeueError,
    PeekClosed,
    PeekNothing,
    PeekSomething,
)
from damsim.identifier import Identifier
from damsim.time import Time


class _Clock:
    def __init__(self) -> None:
        self.now = Time(0)

    def tick(self) -> Time:
        return self.now

    def advance(self, time: Time) -> None:
        self.now = max(self.now, time)

    def view(self) -> "_Clock":
        return self

    def tick_lower_bound(self) -> Time:
        return self.now

    def wait_until(self, time: Time) -> Time:
        return max(time, self.now)


class _Endpoint:
    def __init__(self) -> None:
        self.clock = _Clock()
        self._ident = Identifier.new()

    def id(self) -> Identifier:
        return self._ident

    def view(self) -> _Clock:
        return self.clock


def _wired(send_convert=int, recv_convert=str, capacity=None):
    snd, rcv = create_channel(capacity)
    producer, consumer = _Endpoint(), _Endpoint()
    send = SendAdapter(snd, send_convert)
    recv = RecvAdapter(rcv, recv_convert)
    send.attach_sender(producer)
    recv.attach_receiver(consumer)
    snd.underlying.set_flavor(ChannelFlavor.ACYCLIC)
    return snd, rcv, send, recv, producer, consumer


def test_attach_records_contexts():
    snd, rcv, _, _, producer, consumer = _wired()
    assert snd.underlying.sender_id() == producer.id()
    assert rcv.underlying.receiver_id() == consumer.id()


def test_round_trip_converts_both_ways():
    snd, rcv, send, recv, producer, consumer = _wired()
    send.enqueue(producer.clock, ChannelElement(Time(0), "7"))
    element = recv.dequeue(consumer.clock)
    assert element.data == "7"
    assert element.time == Time(1)
    assert consumer.clock.tick() == Time(1)


def test_sent_value_is_converted_on_channel():
    snd, rcv, send, _, producer, consumer = _wired()
    send.enqueue(producer.clock, ChannelElement(Time(4), "12"))
    raw = rcv.dequeue(consumer.clock)
    assert raw.data == 12
    assert raw.time == Time(4)


def test_peek_converts_something():
    _, _, send, recv, producer, _ = _wired()
    send.enqueue(producer.clock, ChannelElement(Time(3), "5"))
    result = recv.peek()
    assert isinstance(result, PeekSomething)
    assert result.element.data == "5"
    assert result.element.time == Time(3)


def test_peek_nothing_passes_through():
    _, _, _, recv, _, _ = _wired()
    result = recv.peek()
    assert isinstance(result, PeekNothing)
    assert result.time == Time(0)


def test_peek_next_keeps_element():
    _, _, send, recv, producer, consumer = _wired()
    send.enqueue(producer.clock, ChannelElement(Time(2), "9"))
    first = recv.peek_next(consumer.clock)
    second = recv.dequeue(consumer.clock)
    assert first.data == second.data == "9"
    assert first.time == second.time


def test_closed_channel_raises_and_peeks_closed():
    snd, _, _, recv, _, consumer = _wired()
    snd.close()
    assert isinstance(recv.peek(), PeekClosed)
    with pytest.raises(DequeueError):
        recv.dequeue(consumer.clock)


def test_failed_enqueue_conversion_raises():
    _, _, send, _, producer, _ = _wired()
    with pytest.raises(ValueError, match="desired type"):
        send.enqueue(producer.clock, ChannelElement(Time(0), "not a number"))


def test_failed_dequeue_conversion_raises():
    _, _, send, recv, producer, consumer = _wired(send_convert=str, recv_convert=int)
    send.enqueue(producer.clock, ChannelElement(Time(0), "abc"))
    with pytest.raises(ValueError, match="desired type"):
        recv.dequeue(consumer.clock)


def test_wait_until_available_on_bounded_channel_with_room():
    _, _, send, recv, producer, consumer = _wired(capacity=2)
    send.wait_until_available(producer.clock)
    assert producer.clock.tick() == Time(0)
    send.enqueue(producer.clock, ChannelElement(Time(0), "1"))
    assert recv.dequeue(consumer.clock).data == "1"