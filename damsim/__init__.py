"""Timed channels, contexts and event logging for simulating dataflow systems."""

__version__ = "0.1.0"

__all__ = [
    "adapters",
    "channel",
    "context",
    "element",
    "eventlog",
    "events",
    "eventtime",
    "identifier",
    "mongo_logger",
    "receivers",
    "senders",
    "shim",
    "spec",
    "time",
]