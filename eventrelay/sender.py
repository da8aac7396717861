"""Channel-based senders that feed events to a bus from any thread."""

from __future__ import annotations

import logging
import threading
import weakref
from collections import deque
from typing import Any, Callable, Optional, Protocol

from .core import EventBusError

logger = logging.getLogger(__name__)


class _Emitter(Protocol):
    def emit(self, event: Any) -> Any: ...


class EventSenderError(Exception):
    """Base class of errors raised when handing an event to a sender."""


class ChannelFullError(EventSenderError):
    """The channel buffer is full and cannot accept more events."""

    def __init__(self) -> None:
        super().__init__("Event channel is full")


class ChannelDisconnectedError(EventSenderError):
    """The channel is closed or its processing thread has stopped."""

    def __init__(self) -> None:
        super().__init__("Event channel is disconnected")


class _Channel:
    """A bounded queue with a closing sender side and a dying receiver side."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._receiver_alive = True

    def put(self, item: Any, block: bool) -> None:
        with self._cond:
            while True:
                if self._closed or not self._receiver_alive:
                    raise ChannelDisconnectedError()
                if len(self._items) < self.capacity:
                    break
                if not block:
                    raise ChannelFullError()
                self._cond.wait()
            self._items.append(item)
            self._cond.notify_all()

    def get(self) -> tuple[bool, Any]:
        """Return ``(True, item)``, or ``(False, None)`` once closed and drained."""
        with self._cond:
            while not self._items and not self._closed:
                self._cond.wait()
            if self._items:
                item = self._items.popleft()
                self._cond.notify_all()
                return True, item
            return False, None

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def receiver_gone(self) -> None:
        with self._cond:
            self._receiver_alive = False
            self._items.clear()
            self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


def _log_error(error: EventBusError) -> None:
    logger.error("EventSender error: %s", error)


def _process_events(
    channel: _Channel, bus: _Emitter, error_handler: Callable[[EventBusError], Any]
) -> None:
    try:
        while True:
            received, event = channel.get()
            if not received:
                return
            try:
                bus.emit(event)
            except EventBusError as error:
                error_handler(error)
    except Exception:
        logger.exception("EventSender processing thread stopped")
    finally:
        channel.receiver_gone()


class EventSender:
    """Hands events to a bus through a bounded queue and a background thread.

    Each event sent is emitted on the bus by the sender's own worker thread.
    Errors the bus raises go to ``error_handler``; by default they are logged.
    The worker stops once the sender is closed or garbage-collected and its
    queue is drained. It also stops if emission raises anything other than
    an :class:`EventBusError`, after which the sender is disconnected.
    """

    def __init__(
        self,
        bus: _Emitter,
        buffer_size: int,
        error_handler: Optional[Callable[[EventBusError], Any]] = None,
    ) -> None:
        self._channel = _Channel(buffer_size if buffer_size > 0 else 1)
        self._thread = threading.Thread(
            target=_process_events,
            args=(self._channel, bus, error_handler or _log_error),
            name="event-sender",
            daemon=True,
        )
        self._thread.start()
        self._finalizer = weakref.finalize(self, self._channel.close)

    @property
    def buffer_size(self) -> int:
        """The capacity of the queue."""
        return self._channel.capacity

    def send(self, event: Any) -> None:
        """Queue an event, waiting while the queue is full.

        Raises :class:`ChannelDisconnectedError` if the sender no longer runs.
        """
        self._channel.put(event, block=True)

    def try_send(self, event: Any) -> None:
        """Queue an event without waiting.

        Raises :class:`ChannelFullError` if the queue is full and
        :class:`ChannelDisconnectedError` if the sender no longer runs.
        """
        self._channel.put(event, block=False)

    def is_connected(self) -> bool:
        """Return whether the processing thread is still running."""
        return self._thread.is_alive()

    def queued_events(self) -> int:
        """Return the number of events waiting in the queue (approximate)."""
        return len(self._channel)

    def close(self) -> None:
        """Stop accepting events and wait until the queued ones are processed."""
        self._finalizer()
        if threading.current_thread() is not self._thread:
            self._thread.join()

    def __enter__(self) -> "EventSender":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class MultiEventSender:
    """Sends events of any type straight to a bus."""

    def __init__(self, bus: _Emitter, buffer_size: int = 0) -> None:
        self.bus = bus

    def send(self, event: Any) -> Any:
        """Emit an event on the bus and return what the bus returns."""
        return self.bus.emit(event)

    def get_sender(self, buffer_size: int) -> EventSender:
        """Return a new queue-backed sender for the same bus."""
        return EventSender(self.bus, buffer_size)