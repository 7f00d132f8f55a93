"""Interception of browser navigations."""

from enum import Enum
from typing import Any

from devtools_cli.browser.cdp import CDPClient, CDPError
from devtools_cli.events.dispatcher import EventDispatcher
from devtools_cli.models import NavigationDecision
from devtools_cli.models.events import NAVIGATION_REQUESTED, NavigationRequested, or_unknown, parse_params
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


class NavigationState(str, Enum):
    IDLE = "idle"
    INTERCEPTING = "intercepting"


class NavigationController:
    """
    Holds browser navigations and answers each with a fixed decision.

    Once intercepting, the controller stays intercepting for the rest of
    the session. Every request that carries a navigation id gets exactly
    one reply; an unanswered request would block the page forever.
    """

    def __init__(
        self,
        client: CDPClient,
        dispatcher: EventDispatcher,
        decision: NavigationDecision,
    ) -> None:
        self.client = client
        self.dispatcher = dispatcher
        self.decision = decision
        self.state = NavigationState.IDLE
        self.replies = 0

    async def enable(self) -> None:
        """Start intercepting navigations."""
        if self.state is NavigationState.INTERCEPTING:
            return

        try:
            await self.client.set_control_navigations(True)
        except CDPError as e:
            # Newer browsers dropped the command; the run goes on without it
            logger.warning("Cannot control navigations", error=str(e))

        self.dispatcher.register(NAVIGATION_REQUESTED, self.on_navigation_requested)
        self.state = NavigationState.INTERCEPTING
        logger.info("Intercepting navigations", decision=self.decision.value)

    async def on_navigation_requested(self, params: dict[str, Any]) -> None:
        event = parse_params(NavigationRequested, params)

        if event.navigation_id is None:
            logger.warning("Navigation request without id", url=or_unknown(event.url))
            return

        logger.info(
            f"navigation requested for {or_unknown(event.url)}",
            navigation_id=event.navigation_id,
            decision=self.decision.value,
        )
        await self.client.process_navigation(event.navigation_id, self.decision)
        self.replies += 1
