"""Application layer: buses, commands, queries and their handlers."""

from .bus import CommandBus, EventBus, HandlerNotFoundError, QueryBus, get_event_bus

__all__ = ["CommandBus", "EventBus", "HandlerNotFoundError", "QueryBus", "get_event_bus"]
