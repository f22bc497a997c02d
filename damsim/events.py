"""Events logged by channel senders and receivers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, ClassVar

from damsim.eventlog import LogEvent, register_event
from damsim.identifier import ChannelID, Identifier


class SendEventKind(enum.Enum):
    TRY_SEND = "TrySend"
    ENQUEUE_START = "EnqueueStart"
    ENQUEUE_FINISH = "EnqueueFinish"
    ATTACH_SENDER = "AttachSender"
    CLEANUP = "Cleanup"


class ReceiverEventKind(enum.Enum):
    PEEK = "Peek"
    PEEK_NEXT_START = "PeekNextStart"
    PEEK_NEXT_FINISH = "PeekNextFinish"
    DEQUEUE_START = "DequeueStart"
    DEQUEUE_FINISH = "DequeueFinish"
    ATTACH_RECEIVER = "AttachReceiver"
    CLEANUP = "Cleanup"


_ATTACH_KINDS = frozenset({SendEventKind.ATTACH_SENDER, ReceiverEventKind.ATTACH_RECEIVER})


@dataclass(frozen=True)
class _ChannelEvent(LogEvent):
    KIND_TYPE: ClassVar[type[enum.Enum]]

    kind: Any
    channel: ChannelID
    context: Identifier | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, self.KIND_TYPE):
            raise TypeError(f"kind must be a {self.KIND_TYPE.__name__}, got {self.kind!r}")
        attaching = self.kind in _ATTACH_KINDS
        if attaching and self.context is None:
            raise ValueError(f"{self.kind.value} needs a context identifier")
        if not attaching and self.context is not None:
            raise ValueError(f"{self.kind.value} takes no context identifier")

    def to_document(self) -> dict[str, Any]:
        channel = {"id": self.channel.id}
        if self.context is None:
            return {self.kind.value: channel}
        return {self.kind.value: [channel, {"id": self.context.id}]}


@register_event
@dataclass(frozen=True)
class SendEvent(_ChannelEvent):
    """Something happened on the send side of a channel."""

    KIND_TYPE: ClassVar[type[enum.Enum]] = SendEventKind


@register_event
@dataclass(frozen=True)
class ReceiverEvent(_ChannelEvent):
    """Something happened on the receive side of a channel."""

    KIND_TYPE: ClassVar[type[enum.Enum]] = ReceiverEventKind