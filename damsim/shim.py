"""Threading primitives: a closable FIFO queue and a thread launcher."""

from __future__ import annotations

import enum
import os
import threading
from collections import deque
from typing import Any, Callable, Generic, Iterator, TypeVar

T = TypeVar("T")


class ChannelEmpty(Exception):
    """Raised by a non-blocking receive when nothing is queued."""


class ChannelDisconnected(Exception):
    """Raised when the other end of a queue has been closed."""


class RunMode(enum.Enum):
    """How spawned threads are scheduled."""

    SIMPLE = "simple"
    FIFO = "fifo"


class _Shared(Generic[T]):
    def __init__(self, capacity: int | None) -> None:
        self.items: deque[T] = deque()
        self.capacity = capacity
        self.cond = threading.Condition()
        self.sender_open = True
        self.receiver_open = True

    def full(self) -> bool:
        return self.capacity is not None and len(self.items) >= self.capacity


class QueueSender(Generic[T]):
    """The sending end of a single-producer, single-consumer queue."""

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    def send(self, item: T) -> None:
        """Queue an item, blocking while the queue is full."""
        shared = self._shared
        with shared.cond:
            while shared.receiver_open and shared.full():
                shared.cond.wait()
            if not shared.receiver_open:
                raise ChannelDisconnected("receiver has been closed")
            shared.items.append(item)
            shared.cond.notify_all()

    def close(self) -> None:
        shared = self._shared
        with shared.cond:
            shared.sender_open = False
            shared.cond.notify_all()


class QueueReceiver(Generic[T]):
    """The receiving end of a single-producer, single-consumer queue."""

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    def recv(self) -> T:
        """Take the next item, blocking until one arrives or the sender closes."""
        shared = self._shared
        with shared.cond:
            while not shared.items and shared.sender_open:
                shared.cond.wait()
            if shared.items:
                item = shared.items.popleft()
                shared.cond.notify_all()
                return item
            raise ChannelDisconnected("sender has been closed")

    def try_recv(self) -> T:
        """Take the next item without blocking."""
        shared = self._shared
        with shared.cond:
            if shared.items:
                item = shared.items.popleft()
                shared.cond.notify_all()
                return item
            if not shared.sender_open:
                raise ChannelDisconnected("sender has been closed")
            raise ChannelEmpty()

    def close(self) -> None:
        shared = self._shared
        with shared.cond:
            shared.receiver_open = False
            shared.cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.recv()
            except ChannelDisconnected:
                return


def make_channel(capacity: int | None = None) -> tuple[QueueSender[Any], QueueReceiver[Any]]:
    """Create a queue; ``capacity`` of None makes it unbounded."""
    if capacity is not None and capacity < 1:
        raise ValueError(f"capacity must be positive, got {capacity}")
    shared: _Shared[Any] = _Shared(capacity)
    return QueueSender(shared), QueueReceiver(shared)


def _request_fifo_scheduling() -> None:
    setter = getattr(os, "sched_setscheduler", None)
    policy = getattr(os, "SCHED_FIFO", None)
    if setter is None or policy is None:
        return
    try:
        setter(0, policy, os.sched_param(10))
    except (OSError, PermissionError):
        # Real-time scheduling is best effort; without privileges it is skipped.
        pass


def spawn(
    target: Callable[[], Any],
    mode: RunMode = RunMode.SIMPLE,
    name: str | None = None,
) -> threading.Thread:
    """Start ``target`` on a new thread and return the running thread."""
    if mode is RunMode.FIFO:
        def body() -> None:
            _request_fifo_scheduling()
            target()
    else:
        body = target
    thread = threading.Thread(target=body, name=name)
    thread.start()
    return thread