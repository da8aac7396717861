# eventrelay

This package provides building blocks for event-driven code. It has four
modules:

- `eventrelay.core`: shared types, filters and error classes.
- `eventrelay.sender`: queue-backed senders. Each one delivers events to any
  object that has an `emit(event)` method.
- `eventrelay.testing`: `TestEventBus`, an in-memory bus that records every
  emission and registration.
- `eventrelay.spies`: `EventSpy` and `MockHandler`, which record how they were
  used.

There are no third-party dependencies.

## Installation

```
pip install eventrelay
```

## Core types (`eventrelay.core`)

- `Priority` is an `IntEnum` with the members `LOW`, `NORMAL`, `HIGH` and
  `CRITICAL`. A higher value means the handler should run earlier.
- `ErrorHandling` is an enum with three members:
  - `STOP_ON_FIRST_ERROR`
  - `CONTINUE_ON_ERROR`
  - `RETRY_ON_ERROR`
- `HandlerId.next()` returns a unique, ordered identifier and is safe to call
  from several threads. `str()` of an identifier gives `handler-<n>`.
- `EventBusConfig` is a frozen dataclass of bus options. Its defaults are:

  | Option | Default |
  | --- | --- |
  | `initial_capacity` | 64 |
  | `max_handlers_per_event` | `None` |
  | `max_total_handlers` | `None` |
  | `enable_metrics` | `False` |
  | `error_handling` | `CONTINUE_ON_ERROR` |
  | `retry_attempts` | 0 |
  | `default_handler_priority` | `NORMAL` |
  | `validate_events` | `True` |
  | `use_priority_ordering` | `True` |
  | `detailed_error_reporting` | `False` |

- `PredicateFilter(name, predicate)`: its `evaluate(event)` method returns
  whether the predicate holds for the event.
- `event_type_name(cls_or_event)` returns the class name. A class can override
  it with an `EVENT_TYPE_NAME` string attribute.
- Errors all derive from `EventBusError`:
  - `ShuttingDownError`
  - `ConfigurationError`
  - `InternalError`
  - `ResourceExhaustedError`
  - `HandlerFailedError`

## Testing with `TestEventBus`

```python
from dataclasses import dataclass

from eventrelay.testing import TestEventBus


@dataclass
class UserLoggedIn:
    user_id: int


test_bus = TestEventBus()
seen = []
test_bus.on(UserLoggedIn, seen.append)
test_bus.emit(UserLoggedIn(123))

test_bus.assert_emitted_once(UserLoggedIn)
assert test_bus.last_emitted(UserLoggedIn).user_id == 123
assert seen == [UserLoggedIn(123)]
```

Events are keyed by their exact class. Handlers run synchronously, in the
order they were registered.

Recording:

- `emitted_events`, `emitted_count`, `first_emitted`, `last_emitted` and
  `was_emitted` query the recorded events.
- `registrations()` lists the recorded `HandlerRegistration`s.
- `emission_history()` lists the `EmissionRecord`s. The history keeps at most
  `TestEventBusConfig.max_history_size` entries, 1000 by default.
- `clear_events`, `clear_handlers` and `clear_all` reset the recorded state.

Simulation:

- `set_should_fail(True)` makes `emit` raise `ConfigurationError`.
- `set_processing_delay(seconds_or_timedelta)` delays every emission.
- `TestEventBus.stub()` returns a bus that records events but never runs
  handlers.

Assertions, which raise `AssertionError` when they fail:

- `assert_emitted`
- `assert_emitted_once`
- `assert_emitted_count`
- `assert_not_emitted`

## Spies and mock handlers (`eventrelay.spies`)

```python
from eventrelay.spies import EventSpy, MockHandler

spy = EventSpy()
spy.record_call("save", ["user-1"])
spy.assert_called_once("save")

mock = MockHandler()
handle = mock.handler()
handle(UserLoggedIn(1))
assert mock.received_count() == 1
assert mock.spy.call_count("handle") == 1
```

After `mock.set_should_error(True)`, the handler still records each event and
then raises `RuntimeError`.

## Channel senders (`eventrelay.sender`)

`EventSender(bus, buffer_size, error_handler=None)` puts events on a bounded
queue. A background thread takes them off the queue and calls `bus.emit(event)`
for each one.

- `send` blocks while the queue is full.
- `try_send` raises `ChannelFullError` when the queue is full.
- Both methods raise `ChannelDisconnectedError` once the sender has stopped.
- `EventBusError`s raised by the bus are passed to `error_handler`. If no
  handler is given, they are logged.
- `close()`, or leaving a `with` block, stops the sender from accepting events
  and waits until the queue is drained.
- `is_connected()` and `queued_events()` report the sender's state.

```python
from eventrelay.sender import EventSender

with EventSender(test_bus, 10) as sender:
    sender.send(UserLoggedIn(42))
assert test_bus.emitted_count(UserLoggedIn) == 2
```

`MultiEventSender(bus)` has two methods:

- `send(event)` passes the event straight to `bus.emit`.
- `get_sender(buffer_size)` returns a new `EventSender` for the same bus.

## What this package does not do

The package has no production event bus. Nothing in it dispatches handlers by
priority, applies `PredicateFilter`s to handlers, or acts on `EventBusConfig`
or `ErrorHandling`. It also has no batch or stream emission. Those types are
provided for a bus to build on.

`TestEventBus` records priorities but always runs handlers in registration
order. It does not evaluate filters.