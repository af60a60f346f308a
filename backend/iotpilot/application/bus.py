"""In-process command, query and event buses.

Commands and queries are routed by class name to exactly one handler
object exposing ``handle(message)``. Events fan out to any number of
subscribers, in subscription order; a failing subscriber is logged and the
remaining ones still run.

Example:
    bus = CommandBus()
    bus.register(CreateCustomer, CreateCustomerHandler(session, events))
    customer = bus.execute(CreateCustomer(context=ctx, name="Acme"))
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Iterable, Protocol

from iotpilot.core.logging import get_logger
from iotpilot.domain.events import DomainEvent

logger = get_logger(__name__)

EventHandler = Callable[[DomainEvent], None]

ALL_EVENTS = "*"


class HandlerNotFoundError(LookupError):
    """Raised when a command or query has no registered handler."""


class Handler(Protocol):
    def handle(self, message: Any) -> Any: ...


class _MessageBus:
    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}

    def register(self, message_cls: type, handler: Handler) -> None:
        """Register ``handler`` for ``message_cls``; a later call replaces it."""
        name = message_cls.__name__
        if name in self._handlers:
            logger.debug("Replacing handler for %s", name)
        self._handlers[name] = handler

    def is_registered(self, message_cls: type) -> bool:
        return message_cls.__name__ in self._handlers

    def _dispatch(self, message: Any) -> Any:
        name = type(message).__name__
        handler = self._handlers.get(name)
        if handler is None:
            raise HandlerNotFoundError(f"No handler found for {name}")
        return handler.handle(message)


class CommandBus(_MessageBus):
    def execute(self, command: Any) -> Any:
        return self._dispatch(command)


class QueryBus(_MessageBus):
    def execute(self, query: Any) -> Any:
        return self._dispatch(query)


class EventBus:
    """Synchronous publish/subscribe keyed by event class name.

    Subscribing to ``"*"`` receives every event after the type-specific
    subscribers.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}

    def subscribe(self, event_type: type | str, handler: EventHandler) -> None:
        key = event_type if isinstance(event_type, str) else event_type.__name__
        self._handlers.setdefault(key, []).append(handler)
        logger.debug("Subscribed handler to: %s", key)

    def unsubscribe(self, event_type: type | str, handler: EventHandler) -> bool:
        """Remove ``handler``; True if it was subscribed."""
        key = event_type if isinstance(event_type, str) else event_type.__name__
        handlers = self._handlers.get(key)
        if not handlers:
            return False
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        if not handlers:
            del self._handlers[key]
        return True

    def subscribers(self, event_type: type | str) -> list[EventHandler]:
        key = event_type if isinstance(event_type, str) else event_type.__name__
        return list(self._handlers.get(key, []))

    def publish(self, event: DomainEvent) -> None:
        handlers = self.subscribers(event.event_type) + self.subscribers(ALL_EVENTS)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler failed",
                    extra={"event_type": event.event_type, "event_id": event.event_id},
                )

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def clear(self) -> None:
        self._handlers.clear()


@lru_cache(maxsize=1)
def get_event_bus() -> EventBus:
    """Process-wide event bus with the default subscribers attached."""
    from iotpilot.application.subscribers import register_default_subscribers

    bus = EventBus()
    register_default_subscribers(bus)
    return bus
