"""Spies and mock handlers that record how they were used."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

E = TypeVar("E")


@dataclass(frozen=True)
class SpyCall:
    """One method call captured by a spy."""

    method_name: str
    arguments: tuple[str, ...]
    called_at: datetime


class EventSpy:
    """Records named method calls so tests can check what was called."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: list[SpyCall] = []

    def record_call(self, method_name: str, arguments: Optional[Iterable[Any]] = None) -> None:
        """Record a call of ``method_name`` with string forms of its arguments."""
        call = SpyCall(
            method_name=str(method_name),
            arguments=tuple(str(argument) for argument in (arguments or ())),
            called_at=datetime.now(),
        )
        with self._lock:
            self._calls.append(call)

    def calls(self) -> list[SpyCall]:
        """Return every recorded call, oldest first."""
        with self._lock:
            return list(self._calls)

    def call_count(self, method_name: str) -> int:
        """Return how many times ``method_name`` was called."""
        with self._lock:
            return sum(1 for call in self._calls if call.method_name == method_name)

    def was_called(self, method_name: str) -> bool:
        """Return whether ``method_name`` was called at least once."""
        return self.call_count(method_name) > 0

    def clear(self) -> None:
        """Forget every recorded call."""
        with self._lock:
            self._calls.clear()

    def assert_called_once(self, method_name: str) -> None:
        """Fail unless ``method_name`` was called exactly once."""
        count = self.call_count(method_name)
        if count != 1:
            raise AssertionError(
                f"Expected {method_name} to be called exactly once, "
                f"but it was called {count} times"
            )

    def assert_called_times(self, method_name: str, expected: int) -> None:
        """Fail unless ``method_name`` was called ``expected`` times."""
        count = self.call_count(method_name)
        if count != expected:
            raise AssertionError(
                f"Expected {method_name} to be called {expected} times, "
                f"but it was called {count} times"
            )

    def assert_not_called(self, method_name: str) -> None:
        """Fail if ``method_name`` was called at all."""
        count = self.call_count(method_name)
        if count != 0:
            raise AssertionError(
                f"Expected {method_name} to never be called, "
                f"but it was called {count} times"
            )


class MockHandler(Generic[E]):
    """A handler stand-in that records the events it receives."""

    def __init__(self) -> None:
        self._spy = EventSpy()
        self._lock = threading.Lock()
        self._received: list[E] = []
        self._should_error = False

    @property
    def spy(self) -> EventSpy:
        """The spy recording each ``handle`` call."""
        return self._spy

    def handler(self) -> Callable[[E], None]:
        """Return a callable to register with an event bus.

        The callable records the event and, if errors are switched on,
        raises :class:`RuntimeError` after recording it.
        """

        def handle(event: E) -> None:
            self._spy.record_call("handle", [repr(event)])
            with self._lock:
                self._received.append(event)
                should_error = self._should_error
            if should_error:
                raise RuntimeError("Simulated handler error")

        return handle

    def received_events(self) -> list[E]:
        """Return every event received, oldest first."""
        with self._lock:
            return list(self._received)

    def received_count(self) -> int:
        """Return how many events were received."""
        with self._lock:
            return len(self._received)

    def set_should_error(self, should_error: bool) -> None:
        """Make the handler raise on every call, or stop doing so."""
        with self._lock:
            self._should_error = bool(should_error)

    def clear(self) -> None:
        """Forget received events and recorded calls."""
        with self._lock:
            self._received.clear()
        self._spy.clear()