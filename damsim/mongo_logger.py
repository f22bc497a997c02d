"""A log processor that writes entries to a MongoDB collection in batches."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterator

from pymongo.write_concern import WriteConcern

from damsim.eventlog import LogEntry, LogProcessor
from damsim.shim import ChannelDisconnected, ChannelEmpty, QueueReceiver


@dataclass
class MongoLogger(LogProcessor):
    """Drains a queue of LogEntry records into MongoDB as large batches."""

    client: Any
    database_name: str
    collection_name: str
    queue: QueueReceiver[LogEntry]
    db_options: dict[str, Any] = field(default_factory=dict)
    collection_options: dict[str, Any] = field(default_factory=dict)

    def _batches(self) -> Iterator[list[LogEntry]]:
        while True:
            try:
                batch = [self.queue.recv()]
            except ChannelDisconnected:
                return
            closed = False
            while True:
                try:
                    batch.append(self.queue.try_recv())
                except ChannelEmpty:
                    break
                except ChannelDisconnected:
                    closed = True
                    break
            yield batch
            if closed:
                return

    def spawn(self) -> None:
        """Create the collection, insert batches until the queue closes, then close the client."""
        database = self.client.get_database(self.database_name, **self.db_options)
        collection = database.create_collection(
            self.collection_name, **self.collection_options
        ).with_options(write_concern=WriteConcern(j=False))
        try:
            for batch in self._batches():
                collection.insert_many([asdict(entry) for entry in batch], ordered=False)
        finally:
            self.client.close()