"""An in-memory event bus that records emissions and registrations for tests."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, TypeVar

from .core import ConfigurationError, HandlerId, Priority, event_type_name

E = TypeVar("E")


@dataclass(frozen=True)
class TestEventBusConfig:
    """How a :class:`TestEventBus` behaves."""

    __test__ = False

    execute_handlers: bool = True
    record_history: bool = True
    max_history_size: int = 1000
    validate_events: bool = True


@dataclass(frozen=True)
class HandlerRegistration:
    """A handler registration captured by the test bus."""

    event_type: type
    event_type_name: str
    registered_at: datetime
    handler_id: HandlerId
    priority: Priority


@dataclass(frozen=True)
class EmissionRecord:
    """One successful emission captured by the test bus."""

    event_type: type
    event_type_name: str
    emitted_at: datetime
    success: bool
    handlers_executed: int
    processing_duration: Optional[float] = None
    metadata: dict[str, datetime] = field(default_factory=dict, compare=False)


class TestEventBus:
    """A controllable event bus that records everything it sees.

    Events are keyed by their exact class. Handlers run synchronously in the
    order they were registered, unless the bus is in stub mode.
    """

    __test__ = False

    def __init__(self, config: Optional[TestEventBusConfig] = None) -> None:
        self.config = config if config is not None else TestEventBusConfig()
        self._lock = threading.RLock()
        self._emitted: dict[type, list[Any]] = {}
        self._handlers: dict[type, list[Callable[[Any], Any]]] = {}
        self._registrations: list[HandlerRegistration] = []
        self._history: list[EmissionRecord] = []
        self._should_fail = False
        self._delay: Optional[float] = None

    @classmethod
    def stub(cls) -> "TestEventBus":
        """Return a bus that records events but never runs handlers."""
        return cls(
            TestEventBusConfig(
                execute_handlers=False,
                record_history=True,
                max_history_size=1000,
                validate_events=False,
            )
        )

    def on(self, event_type: type, handler: Callable[[Any], Any]) -> HandlerId:
        """Register a handler for ``event_type`` with normal priority."""
        return self.on_with_priority(event_type, handler, Priority.NORMAL)

    def on_with_priority(
        self, event_type: type, handler: Callable[[Any], Any], priority: Priority
    ) -> HandlerId:
        """Register a handler for ``event_type`` with the given priority."""
        handler_id = HandlerId.next()
        registration = HandlerRegistration(
            event_type=event_type,
            event_type_name=event_type_name(event_type),
            registered_at=datetime.now(),
            handler_id=handler_id,
            priority=Priority(priority),
        )
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            self._registrations.append(registration)
        return handler_id

    def emit(self, event: Any) -> None:
        """Record an event and run its handlers.

        Raises :class:`ConfigurationError` while failure simulation is on.
        """
        emitted_at = datetime.now()
        started = time.monotonic()
        metadata = {"received_at": emitted_at, "processing_started_at": emitted_at}

        with self._lock:
            should_fail = self._should_fail
            delay = self._delay
        if should_fail:
            raise ConfigurationError("Simulated failure for testing")
        if delay:
            time.sleep(delay)

        event_type = type(event)
        with self._lock:
            self._emitted.setdefault(event_type, []).append(event)
            handlers = list(self._handlers.get(event_type, ()))

        executed = 0
        if self.config.execute_handlers:
            for handler in handlers:
                handler(event)
                executed += 1

        metadata["processing_completed_at"] = datetime.now()

        if self.config.record_history:
            record = EmissionRecord(
                event_type=event_type,
                event_type_name=event_type_name(event_type),
                emitted_at=emitted_at,
                success=True,
                handlers_executed=executed,
                processing_duration=time.monotonic() - started,
                metadata=metadata,
            )
            with self._lock:
                self._history.append(record)
                overflow = len(self._history) - self.config.max_history_size
                if overflow > 0:
                    del self._history[:overflow]

    def emitted_events(self, event_type: type) -> list[Any]:
        """Return every recorded event of ``event_type``, oldest first."""
        with self._lock:
            return list(self._emitted.get(event_type, ()))

    def emitted_count(self, event_type: type) -> int:
        """Return how many events of ``event_type`` were recorded."""
        with self._lock:
            return len(self._emitted.get(event_type, ()))

    def registrations(self) -> list[HandlerRegistration]:
        """Return every recorded handler registration."""
        with self._lock:
            return list(self._registrations)

    def handler_count(self, event_type: type) -> int:
        """Return how many handlers are registered for ``event_type``."""
        with self._lock:
            return len(self._handlers.get(event_type, ()))

    def emission_history(self) -> list[EmissionRecord]:
        """Return the recorded emission history, oldest first."""
        with self._lock:
            return list(self._history)

    def clear_events(self) -> None:
        """Forget recorded events and history."""
        with self._lock:
            self._emitted.clear()
            self._history.clear()

    def clear_handlers(self) -> None:
        """Forget registered handlers and their registrations."""
        with self._lock:
            self._handlers.clear()
            self._registrations.clear()

    def clear_all(self) -> None:
        """Forget everything recorded."""
        self.clear_events()
        self.clear_handlers()

    def set_should_fail(self, should_fail: bool) -> None:
        """Turn simulated emission failures on or off."""
        with self._lock:
            self._should_fail = bool(should_fail)

    def set_processing_delay(self, delay: float | timedelta | None) -> None:
        """Set a delay, in seconds or as a timedelta, applied to every emission."""
        if isinstance(delay, timedelta):
            delay = delay.total_seconds()
        with self._lock:
            self._delay = delay

    def was_emitted(self, event_type: type) -> bool:
        """Return whether any event of ``event_type`` was recorded."""
        return self.emitted_count(event_type) > 0

    def last_emitted(self, event_type: type) -> Any:
        """Return the latest recorded event of ``event_type``, or None."""
        events = self.emitted_events(event_type)
        return events[-1] if events else None

    def first_emitted(self, event_type: type) -> Any:
        """Return the earliest recorded event of ``event_type``, or None."""
        events = self.emitted_events(event_type)
        return events[0] if events else None

    def assert_emitted_once(self, event_type: type) -> None:
        """Fail unless exactly one event of ``event_type`` was recorded."""
        count = self.emitted_count(event_type)
        if count != 1:
            raise AssertionError(
                f"Expected exactly 1 {event_type_name(event_type)} event, but found {count}"
            )

    def assert_emitted_count(self, event_type: type, expected: int) -> None:
        """Fail unless exactly ``expected`` events of ``event_type`` were recorded."""
        count = self.emitted_count(event_type)
        if count != expected:
            raise AssertionError(
                f"Expected {expected} {event_type_name(event_type)} events, but found {count}"
            )

    def assert_not_emitted(self, event_type: type) -> None:
        """Fail if any event of ``event_type`` was recorded."""
        count = self.emitted_count(event_type)
        if count != 0:
            raise AssertionError(
                f"Expected no {event_type_name(event_type)} events, but found {count}"
            )

    def assert_emitted(self, event_type: type) -> None:
        """Fail unless at least one event of ``event_type`` was recorded."""
        if not self.was_emitted(event_type):
            raise AssertionError(
                f"Expected at least one {event_type_name(event_type)} event to be emitted"
            )