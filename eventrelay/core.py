"""Shared building blocks: priorities, handler ids, configuration, filters and errors."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, ClassVar, Iterator, Optional


class Priority(IntEnum):
    """Handler priority; handlers with a higher priority run first."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class ErrorHandling(Enum):
    """What a bus does when a handler fails."""

    STOP_ON_FIRST_ERROR = "stop_on_first_error"
    CONTINUE_ON_ERROR = "continue_on_error"
    RETRY_ON_ERROR = "retry_on_error"


@dataclass(frozen=True, order=True)
class HandlerId:
    """Process-wide unique identifier of a registered handler."""

    value: int

    _counter: ClassVar[Iterator[int]] = itertools.count(1)
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def next(cls) -> "HandlerId":
        """Return a fresh identifier, strictly greater than every earlier one."""
        with cls._lock:
            return cls(next(cls._counter))

    def __str__(self) -> str:
        return f"handler-{self.value}"


@dataclass(frozen=True)
class EventBusConfig:
    """Configuration options for an event bus."""

    initial_capacity: int = 64
    max_handlers_per_event: Optional[int] = None
    max_total_handlers: Optional[int] = None
    enable_metrics: bool = False
    error_handling: ErrorHandling = ErrorHandling.CONTINUE_ON_ERROR
    retry_attempts: int = 0
    default_handler_priority: Priority = Priority.NORMAL
    validate_events: bool = True
    use_priority_ordering: bool = True
    detailed_error_reporting: bool = False


@dataclass(frozen=True)
class PredicateFilter:
    """A named filter that accepts events for which its predicate is true."""

    name: str
    predicate: Callable[[Any], Any] = field(compare=False)

    def evaluate(self, event: Any) -> bool:
        """Return whether the event passes this filter."""
        return bool(self.predicate(event))


class EventBusError(Exception):
    """Base class of every error an event bus raises."""


class ShuttingDownError(EventBusError):
    """The bus has been shut down and accepts no more work."""

    def __init__(self) -> None:
        super().__init__("Event bus is shutting down")


class ConfigurationError(EventBusError):
    """The bus or its configuration refused the request."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InternalError(EventBusError):
    """Something went wrong inside the bus itself."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Internal error: {message}")
        self.message = message


class ResourceExhaustedError(EventBusError):
    """A limit such as a queue size or handler count was reached."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Resource exhausted: {message}")
        self.message = message


class HandlerFailedError(EventBusError):
    """A handler raised or reported an error while processing an event."""

    def __init__(self, handler_name: str, cause: BaseException | str) -> None:
        super().__init__(f"Handler {handler_name} failed: {cause}")
        self.handler_name = handler_name
        self.cause = cause


def event_type_name(event_type: Any) -> str:
    """Return the display name of an event class or of an event's class.

    A class may override its name with an ``EVENT_TYPE_NAME`` attribute.
    """
    cls = event_type if isinstance(event_type, type) else type(event_type)
    custom = getattr(cls, "EVENT_TYPE_NAME", None)
    if isinstance(custom, str) and custom:
        return custom
    return cls.__name__