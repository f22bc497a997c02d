"""Adapters that convert the values passing through a channel end.

They are useful when one component handles several element types. Channels
of different types can then be connected to it through a common interface.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from damsim.channel import Receiver, Sender
from damsim.element import ChannelElement, PeekResult, PeekSomething

T = TypeVar("T")
U = TypeVar("U")


def _converted(
    element: ChannelElement[T], convert: Callable[[T], U], what: str
) -> ChannelElement[U]:
    try:
        return element.convert(convert)
    except (TypeError, ValueError, ArithmeticError) as exc:
        raise ValueError(f"Failed to convert the {what} value into the desired type") from exc


class RecvAdapter(Generic[T, U]):
    """Wraps a Receiver of T and presents it as a receiver of U."""

    def __init__(self, receiver: Receiver[T], convert: Callable[[T], U]) -> None:
        self.receiver = receiver
        self.convert = convert

    def attach_receiver(self, context: Any) -> None:
        """Register the context that reads from the wrapped channel."""
        self.receiver.attach_receiver(context)

    def peek(self) -> PeekResult[U]:
        """Peek the wrapped channel, converting any element found."""
        result = self.receiver.peek()
        if isinstance(result, PeekSomething):
            return PeekSomething(_converted(result.element, self.convert, "peek"))
        return result

    def peek_next(self, manager: Any) -> ChannelElement[U]:
        """Wait for the next element and return it converted, without removing it."""
        return _converted(self.receiver.peek_next(manager), self.convert, "peek_next")

    def dequeue(self, manager: Any) -> ChannelElement[U]:
        """Wait for the next element, remove it and return it converted."""
        return _converted(self.receiver.dequeue(manager), self.convert, "dequeued")


class SendAdapter(Generic[T, U]):
    """Wraps a Sender of T and accepts elements of U, converting them on the way in."""

    def __init__(self, sender: Sender[T], convert: Callable[[U], T]) -> None:
        self.sender = sender
        self.convert = convert

    def attach_sender(self, context: Any) -> None:
        """Register the context that writes to the wrapped channel."""
        self.sender.attach_sender(context)

    def enqueue(self, manager: Any, element: ChannelElement[U]) -> None:
        """Convert the element and write it to the wrapped channel."""
        self.sender.enqueue(manager, _converted(element, self.convert, "enqueued"))

    def wait_until_available(self, manager: Any) -> None:
        """Advance time until the wrapped channel has room."""
        self.sender.wait_until_available(manager)