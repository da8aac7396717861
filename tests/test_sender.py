import logging
import threading
import time
from dataclasses import dataclass

import pytest

from eventrelay.core import EventBusError, ShuttingDownError
from eventrelay.sender import (
    ChannelDisconnectedError,
    ChannelFullError,
    EventSender,
    EventSenderError,
    MultiEventSender,
)


@dataclass(frozen=True)
class ValueEvent:
    value: int
    message: str


@dataclass(frozen=True)
class CounterEvent:
    id: int


class RecordingBus:
    def __init__(self, fail_with=None, gate=None):
        self.events = []
        self.lock = threading.Lock()
        self.fail_with = fail_with
        self.gate = gate
        self.entered = threading.Event()

    def emit(self, event):
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.fail_with is not None:
            raise self.fail_with
        with self.lock:
            self.events.append(event)
        return "emitted"


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_send_processes_events_in_order():
    bus = RecordingBus()
    sender = EventSender(bus, 100)
    sender.send(ValueEvent(1, "first"))
    sender.send(ValueEvent(2, "second"))
    sender.close()
    assert [e.value for e in bus.events] == [1, 2]


def test_try_send_processes_events():
    bus = RecordingBus()
    with EventSender(bus, 100) as sender:
        sender.try_send(ValueEvent(1, "first"))
        sender.try_send(ValueEvent(2, "second"))
    assert len(bus.events) == 2


def test_try_send_raises_when_full():
    gate = threading.Event()
    bus = RecordingBus(gate=gate)
    sender = EventSender(bus, 1)
    sender.try_send(ValueEvent(1, "a"))
    assert bus.entered.wait(5)
    sender.try_send(ValueEvent(2, "b"))
    with pytest.raises(ChannelFullError):
        sender.try_send(ValueEvent(3, "c"))
    gate.set()
    sender.close()
    assert [e.value for e in bus.events] == [1, 2]


def test_zero_buffer_is_treated_as_one():
    gate = threading.Event()
    bus = RecordingBus(gate=gate)
    sender = EventSender(bus, 0)
    assert sender.buffer_size == 1
    sender.send(ValueEvent(1, "a"))
    assert bus.entered.wait(5)
    sender.try_send(ValueEvent(2, "b"))
    assert sender.queued_events() == 1
    with pytest.raises(ChannelFullError):
        sender.try_send(ValueEvent(3, "c"))
    gate.set()
    sender.close()
    assert sender.queued_events() == 0


def test_send_after_close_is_disconnected():
    bus = RecordingBus()
    sender = EventSender(bus, 10)
    assert sender.is_connected() is True
    sender.close()
    assert sender.is_connected() is False
    with pytest.raises(ChannelDisconnectedError):
        sender.send(ValueEvent(1, "late"))
    with pytest.raises(ChannelDisconnectedError):
        sender.try_send(ValueEvent(2, "late"))
    assert bus.events == []


def test_error_handler_receives_bus_errors():
    errors = []
    bus = RecordingBus(fail_with=ShuttingDownError())
    sender = EventSender(bus, 10, errors.append)
    sender.send(ValueEvent(1, "x"))
    sender.send(ValueEvent(2, "y"))
    sender.close()
    assert len(errors) == 2
    assert all(isinstance(error, ShuttingDownError) for error in errors)


def test_default_error_handler_logs(caplog):
    bus = RecordingBus(fail_with=EventBusError("boom"))
    with caplog.at_level(logging.ERROR, logger="eventrelay.sender"):
        sender = EventSender(bus, 10)
        sender.send(ValueEvent(1, "x"))
        sender.close()
    assert "EventSender error: boom" in caplog.text


def test_unexpected_exception_disconnects_sender():
    bus = RecordingBus(fail_with=RuntimeError("crash"))
    sender = EventSender(bus, 10)
    sender.send(ValueEvent(1, "x"))
    assert wait_until(lambda: not sender.is_connected())
    with pytest.raises(ChannelDisconnectedError):
        sender.try_send(ValueEvent(2, "y"))


def test_sender_errors_have_messages():
    assert str(ChannelFullError()) == "Event channel is full"
    assert str(ChannelDisconnectedError()) == "Event channel is disconnected"
    assert issubclass(ChannelFullError, EventSenderError)
    assert issubclass(ChannelDisconnectedError, EventSenderError)


def test_multi_event_sender_sends_different_types():
    bus = RecordingBus()
    multi = MultiEventSender(bus, 100)
    assert multi.send(ValueEvent(10, "test")) == "emitted"
    multi.send(CounterEvent(20))
    assert bus.events == [ValueEvent(10, "test"), CounterEvent(20)]
    assert multi.bus is bus


def test_multi_event_sender_propagates_errors():
    bus = RecordingBus(fail_with=ShuttingDownError())
    multi = MultiEventSender(bus)
    with pytest.raises(ShuttingDownError):
        multi.send(CounterEvent(1))


def test_multi_event_sender_get_sender():
    bus = RecordingBus()
    multi = MultiEventSender(bus, 100)
    sender = multi.get_sender(5)
    assert sender.buffer_size == 5
    sender.send(CounterEvent(7))
    sender.close()
    assert bus.events == [CounterEvent(7)]