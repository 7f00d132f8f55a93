"""Registry-based dispatch of protocol events to handlers."""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from devtools_cli.events.completion import CompletionSignal
from devtools_cli.models.events import EVENT_CLOSED
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[None] | None]


class EventDispatcher:
    """
    Maps event names to handlers.

    Handlers registered for a name run in registration order, followed by
    the handlers registered for all events. Coroutine handlers are awaited
    before the next one starts. Exceptions from handlers propagate to the
    caller.
    """

    def __init__(self, completion: CompletionSignal | None = None) -> None:
        self.completion = completion
        self._handlers: dict[str, list[EventHandler]] = {}
        self._all_handlers: list[EventHandler] = []

    def register(self, event_name: str, handler: EventHandler) -> None:
        """Add a handler for one event name."""
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug("Event handler registered", event_name=event_name)

    def register_all(self, handler: EventHandler) -> None:
        """Add a handler that receives every event."""
        self._all_handlers.append(handler)
        logger.debug("Handler registered for all events")

    @property
    def all_events(self) -> bool:
        return bool(self._all_handlers)

    @property
    def event_names(self) -> list[str]:
        """Names with at least one handler, in registration order."""
        return list(self._handlers)

    def handlers_for(self, event_name: str) -> list[EventHandler]:
        return [*self._handlers.get(event_name, ()), *self._all_handlers]

    async def dispatch(self, event_name: str, params: dict[str, Any]) -> None:
        """Deliver one event to its handlers."""
        handlers = self.handlers_for(event_name)
        if handlers:
            logger.debug("Dispatching event", event_name=event_name, handlers=len(handlers))

        for handler in handlers:
            result = handler(params)
            if inspect.isawaitable(result):
                await result

        if event_name == EVENT_CLOSED and self.completion is not None:
            self.completion.set(reason=EVENT_CLOSED)
