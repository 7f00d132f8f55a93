"""Orchestration of a single command line run."""

import asyncio
from typing import Any

from rich.console import Console

from devtools_cli.browser import (
    CDPClient,
    CDPError,
    ChromeLauncher,
    DocumentService,
    OperationError,
    TabSelectionError,
    open_connection,
    select_tab,
)
from devtools_cli.browser.connection import ClientFactory
from devtools_cli.config import Settings, settings
from devtools_cli.events import CompletionSignal, EventDispatcher, NavigationController
from devtools_cli.events.handlers import (
    ClosedHandler,
    ConsoleLogger,
    DocumentCapture,
    EventTracer,
    LogEntryLogger,
    RequestLogger,
    ResponseLogger,
)
from devtools_cli.models import ActiveTab, RunOptions
from devtools_cli.models.events import (
    CONSOLE_API_CALLED,
    DOCUMENT_UPDATED,
    EVENT_CLOSED,
    LOG_ENTRY_ADDED,
    REQUEST_WILL_BE_SENT,
    RESPONSE_RECEIVED,
)
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


class DebugRun:
    """Runs everything one invocation asked for against one browser."""

    def __init__(
        self,
        options: RunOptions,
        config: Settings = settings,
        console: Console | None = None,
        client_factory: ClientFactory | None = None,
        launcher: ChromeLauncher | None = None,
    ) -> None:
        self.options = options
        self.config = config
        self.console = console or Console()
        self.launcher = launcher or ChromeLauncher()
        self._client_factory = client_factory or self._new_client

        self.completion = CompletionSignal()
        self.dispatcher = EventDispatcher(self.completion)
        self.navigation: NavigationController | None = None
        self.active_tab: ActiveTab | None = None

        # Event features need a wait; one-shot operations clear it
        self.should_wait = options.wants_events

    def _new_client(self, address: str) -> CDPClient:
        return CDPClient(address, command_timeout=self.config.command_timeout)

    def _attached_client(self, address: str) -> CDPClient:
        client = self._client_factory(address)
        client.set_listener(self.dispatcher.dispatch)
        return client

    async def run(self) -> None:
        """
        Execute the run.

        - Starts the browser if a command was given
        - Connects with retry and selects a tab
        - Arms the event handlers and runs one-shot operations
        - Waits for completion when an event feature needs it
        """
        if self.options.command:
            await self._launch(self.options.command)

        async with open_connection(
            self.options.address,
            max_attempts=self.config.connect_attempts,
            interval=self.config.connect_interval,
            client_factory=self._attached_client,
        ) as client:
            await self._run(client)

        logger.info("Closing")

    async def _launch(self, command: str) -> None:
        try:
            await self.launcher.launch(command)
        except RuntimeError as e:
            # The browser may already be running
            logger.warning("cannot start browser", error=str(e))

    async def _run(self, client: CDPClient) -> None:
        self._report_version(client)

        if self.options.list_tabs:
            tabs = await client.tab_list(self.options.filter)
            self._print([tab.model_dump(by_alias=True) for tab in tabs])
            self.should_wait = False

        if self.options.domains:
            self._print(await client.get_domains())
            self.should_wait = False

        self._register_handlers(client)

        if self.options.url:
            tabs = await client.tab_list("page")
            self.active_tab = await select_tab(
                client,
                tabs,
                requested_index=self.options.tab,
                force_new=self.options.new_tab,
                target_url=self.options.url,
            )

        if client.current_tab is None:
            if self._needs_page():
                raise TabSelectionError("No tab to work in, pass a URL to open one")
            return

        await self._arm(client)

        if self.active_tab is not None and self.active_tab.pending_url:
            try:
                await client.navigate(self.active_tab.pending_url)
            except CDPError as e:
                raise OperationError(f"error loading page: {e}") from e

        await self._run_operations(client)

        if self.options.wait or self.should_wait:
            await self._wait(client)

    def _report_version(self, client: CDPClient) -> None:
        version = client.browser_version
        if version is None:
            return

        if self.options.version:
            self._print(version.model_dump(by_alias=True))
        else:
            logger.info(
                f"connected to {version.browser}",
                protocol_version=version.protocol_version,
            )

    def _needs_page(self) -> bool:
        options = self.options
        return options.wants_events or any(
            (options.query, options.eval, options.set_html, options.html, options.block)
        )

    def _register_handlers(self, client: CDPClient) -> None:
        """Fill the handler registry for the features asked for."""
        options = self.options
        self.dispatcher.register(EVENT_CLOSED, ClosedHandler())

        if options.requests:
            self.dispatcher.register(REQUEST_WILL_BE_SENT, RequestLogger())

        if options.responses:
            self.dispatcher.register(RESPONSE_RECEIVED, ResponseLogger(self.config.response_url_limit))

        if options.log:
            self.dispatcher.register(LOG_ENTRY_ADDED, LogEntryLogger())
            self.dispatcher.register(CONSOLE_API_CALLED, ConsoleLogger())

        if options.captures:
            capture = DocumentCapture(
                client,
                self.completion,
                screenshot_path=self.config.screenshot_path if options.screenshot else None,
                pdf_path=self.config.pdf_path if options.pdf else None,
                mode=self.config.output_file_mode,
            )
            self.dispatcher.register(DOCUMENT_UPDATED, capture)

        if options.all_events:
            self.dispatcher.register_all(EventTracer())

    async def _arm(self, client: CDPClient) -> None:
        """Send the per-target setup, after the tab is chosen and before navigating."""
        options = self.options

        if options.control is not None:
            self.navigation = NavigationController(client, self.dispatcher, options.control)
            await self.navigation.enable()

        if options.block:
            try:
                await client.set_blocked_urls(list(options.block))
                logger.info("Blocking URLs", patterns=list(options.block))
            except CDPError as e:
                logger.warning("Cannot block URLs", error=str(e))

        if options.all_events:
            await client.all_events()
        else:
            await client.enable_events()

    async def _run_operations(self, client: CDPClient) -> None:
        options = self.options
        documents = DocumentService(client, verbose=options.verbose)

        if options.query:
            node = await documents.query(options.query)
            if node is not None:
                self._print(node)
            self.should_wait = False

        if options.eval:
            self._print(await documents.evaluate(options.eval))
            self.should_wait = False

        if options.set_html:
            await documents.set_outer_html(options.set_html)
            self.should_wait = False

        if options.html:
            self.console.print(await documents.get_outer_html(), markup=False, highlight=False)
            self.should_wait = False

    async def _wait(self, client: CDPClient) -> None:
        """Block until completion, the timeout, or a failed event handler."""
        logger.info("Wait for events...")

        waiter = asyncio.create_task(self.completion.wait(self.options.timeout))
        watched: set[asyncio.Task[Any]] = {waiter}
        delivery = client.delivery_task
        if delivery is not None:
            watched.add(delivery)

        done, _ = await asyncio.wait(watched, return_when=asyncio.FIRST_COMPLETED)

        if waiter in done:
            if not waiter.result():
                logger.warning("Timed out waiting for events", timeout=self.options.timeout)
            return

        waiter.cancel()
        if delivery is not None and not delivery.cancelled() and delivery.exception() is not None:
            error = delivery.exception()
            raise OperationError(f"event handler failed: {error}") from error

    def _print(self, data: Any) -> None:
        self.console.print_json(data=data, default=str)
