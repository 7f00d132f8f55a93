"""Event dispatch, completion and navigation interception."""

from devtools_cli.events.completion import CompletionSignal
from devtools_cli.events.dispatcher import EventDispatcher, EventHandler
from devtools_cli.events.navigation import NavigationController, NavigationState

__all__ = [
    "CompletionSignal",
    "EventDispatcher",
    "EventHandler",
    "NavigationController",
    "NavigationState",
]
