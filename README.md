# damsim

`damsim` provides the building blocks for simulating dataflow-like systems.
In such a simulation, each context runs its own logic and keeps its own
simulated time. Contexts talk to each other over single-producer
single-consumer channels. A blocking channel operation moves the caller's
time forward. This keeps contexts consistent with each other without a
global clock.

## Installation

```
pip install damsim
```

To run the test suite:

```
pip install "damsim[test]"
pytest
```

## Modules

- `damsim.time`
  - `Time` is an immutable timestamp. It compares and adds with plain ints.
    `Time.infinite()` compares greater than every finite time, and
    `with_infinite()` marks a time finished while keeping its tick count.
  - `AtomicTime` is a thread-safe clock that only moves forward. It offers
    `load`, `try_advance`, `incr_cycles` and `set_infinite`.
- `damsim.identifier`
  - `Identifier`, `VerboseIdentifier` and `ChannelID` are unique, counter-based
    ids.
  - The `Identifiable` mix-in gives an object `id()`, `name()` (its class name)
    and `verbose()`.
- `damsim.shim`
  - `make_channel(capacity)` creates a closable FIFO queue and returns a
    `QueueSender` and `QueueReceiver`. Passing `None` makes the queue
    unbounded.
  - The receiver raises `ChannelEmpty` or `ChannelDisconnected`.
  - `spawn(target, mode, name)` starts a thread. `RunMode.FIFO` requests
    real-time FIFO scheduling where the platform and privileges allow it.
- `damsim.element`
  - `ChannelElement(time, data)` supports `update_time` and `convert`.
  - A peek returns one of `PeekSomething`, `PeekNothing` or `PeekClosed`.
    `PeekResult.to_dequeue()` returns the element or raises.
  - Also defined here: the exceptions `DequeueError` and `EnqueueError`, and
    `ChannelFlavor` (`ACYCLIC`, `CYCLIC`, `VOID`).
- `damsim.spec`
  - `ChannelSpec` holds a channel's capacity, its send and response latencies,
    and the endpoints attached to it.
  - `InlineSpec` is the snapshot that each channel end works from.
- `damsim.receivers` and `damsim.senders` hold the implementations of each
  end.
  - Acyclic receivers block on the queue. Cyclic receivers step time forward
    by consulting the sender's clock.
  - Senders come in these kinds: unbounded, bounded acyclic, bounded cyclic,
    void (discards everything), uninitialized and terminated.
- `damsim.channel`
  - `create_channel(capacity, send_latency, response_latency)` returns an
    uninitialized `Sender` and `Receiver`.
  - `ChannelData.set_flavor(flavor)` installs working implementations on both
    ends.
  - `Sender` offers `enqueue`, `wait_until_available` and `close`. `Receiver`
    offers `peek`, `peek_next`, `dequeue` and `close`. Both ends also work as
    context managers that close on exit.
- `damsim.adapters`: `RecvAdapter` and `SendAdapter` wrap a channel end and
  convert values with a function you supply.
- `damsim.eventtime`
  - `EventTime` values are `ready`, `nothing` or `closed`.
  - `next_event(item)` works on an `EventTime` or anything with `peek()`.
  - `all_events(items)` returns the latest of the items' events and
    `any_event(items)` the earliest.
- `damsim.context`
  - `Context` is the abstract base for simulated units. Subclasses implement
    `run`.
  - `run_fallible` re-raises failures as `ContextPanicError`.
  - `ContextSummary.max_time()` gives the largest tick reached.
  - `ProxyContext` replaces a context with its summary on `cleanup()`.
- `damsim.eventlog`
  - `LogEvent` and `register_event` define loggable event types.
  - `LogFilter.allow_all()` and `LogFilter.only(names)` choose which types are
    logged. `check()` rejects names that were never registered.
  - `LogInterface` pushes `LogEntry` records onto a queue.
  - `initialize_log` installs a logger for the current thread. `log_event`,
    `log_event_cb`, `copy_log` and `update_ticks` use it.
  - `NullLogger` is a processor that does nothing.
- `damsim.events`: the registered `SendEvent` and `ReceiverEvent` types that
  channel ends log.
- `damsim.mongo_logger`: `MongoLogger.spawn()` creates a collection with
  pymongo. It then inserts queued entries in unordered batches until the queue
  closes, and finally closes the client.

## Example

A channel end works with a *manager*: any object with `tick()`, returning the
current `Time`, and `advance(time)`.

```python
from damsim.channel import create_channel
from damsim.element import ChannelElement, ChannelFlavor, DequeueError
from damsim.time import Time


class Clock:
    def __init__(self):
        self.now = Time(0)

    def tick(self):
        return self.now

    def advance(self, time):
        self.now = max(self.now, time)


sender, receiver = create_channel()          # unbounded, latencies of 1
sender.underlying.set_flavor(ChannelFlavor.ACYCLIC)

producer, consumer = Clock(), Clock()
sender.enqueue(producer, ChannelElement(0, "hello"))
element = receiver.dequeue(consumer)         # element.time == Time(1)

sender.close()
try:
    receiver.dequeue(consumer)
except DequeueError:
    pass                                     # the channel is closed
```

## Channel semantics

- **Send latency.** An element whose time is earlier than the sender's time
  plus the send latency is delayed to that time.
- **Bounded channels.** The sender waits until the receiver has dequeued
  enough items. A freed slot becomes visible after the response latency.
- **Closing.** Dequeueing from a channel whose sender has closed raises
  `DequeueError`. Enqueueing into a channel whose receiver has closed raises
  `EnqueueError`.
- **Latencies.** Both latencies default to 1 and must be positive.
- **Contexts.** To attach a context to a channel end, the context must provide
  `view()` and `id()`.
- **Views.** The view must offer `wait_until(time)` and `tick_lower_bound()`.
  `peek` and the cyclic flavors call them.

## What this package does not do

These are building blocks only.

- The package has no time manager or time view class. You supply objects with
  the methods described above.
- It has no program builder that collects contexts and runs each on its own
  thread.
- It does not choose a channel's flavor for you. You call `set_flavor`
  yourself.
- It has no ready-made generator, checker or printer contexts.
- It offers no command-line program.