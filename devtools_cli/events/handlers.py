"""Event handlers armed by the command line features.

Each handler is an object holding the references it needs, so what a
handler captures is visible at registration time.
"""

from typing import Any

from devtools_cli.browser.cdp import CDPClient
from devtools_cli.events.completion import CompletionSignal
from devtools_cli.models.events import (
    ConsoleAPICalled,
    LogEntryAdded,
    RemoteObject,
    RequestWillBeSent,
    ResponseReceived,
    or_unknown,
    parse_params,
)
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


def limit(text: str, length: int) -> str:
    """Truncate text to length characters, marking the cut."""
    if len(text) > length:
        return text[:length] + "..."
    return text


class RequestLogger:
    """Prints Network.requestWillBeSent."""

    def __call__(self, params: dict[str, Any]) -> None:
        event = parse_params(RequestWillBeSent, params)
        url = event.request.url if event.request else None
        logger.info(
            "requestWillBeSent",
            type=or_unknown(event.type),
            document_url=or_unknown(event.document_url),
            url=or_unknown(url),
        )


class ResponseLogger:
    """Prints Network.responseReceived."""

    def __init__(self, url_limit: int = 80) -> None:
        self.url_limit = url_limit

    def __call__(self, params: dict[str, Any]) -> None:
        event = parse_params(ResponseReceived, params)
        response = event.response
        url = limit(response.url, self.url_limit) if response and response.url else None
        status = int(response.status) if response and response.status is not None else None
        logger.info(
            "responseReceived",
            type=or_unknown(event.type),
            url=or_unknown(url),
            status=or_unknown(status),
            mime_type=or_unknown(response.mime_type if response else None),
        )


class LogEntryLogger:
    """Prints Log.entryAdded."""

    def __call__(self, params: dict[str, Any]) -> None:
        entry = parse_params(LogEntryAdded, params).entry
        logger.info(
            "LOG",
            source=or_unknown(entry.source if entry else None),
            level=or_unknown(entry.level if entry else None),
            text=or_unknown(entry.text if entry else None),
        )


def format_console_arg(arg: RemoteObject) -> Any:
    """Render one console argument the way the console shows it."""
    if arg.value is not None:
        return arg.value

    if arg.preview is not None:
        properties = []
        for prop in arg.preview.properties:
            prefix = f'"{prop.name}": ' if prop.name is not None else ""
            properties.append(f"{prefix}{prop.value}")
        return f"{or_unknown(arg.preview.description)}{{{', '.join(properties)}}}"

    return or_unknown(arg.type)


class ConsoleLogger:
    """Prints Runtime.consoleAPICalled."""

    def __call__(self, params: dict[str, Any]) -> None:
        event = parse_params(ConsoleAPICalled, params)
        logger.info(
            "CONSOLE",
            type=or_unknown(event.type),
            args=[format_console_arg(arg) for arg in event.args],
        )


class DocumentCapture:
    """
    Saves a screenshot and/or PDF when the document is first updated.

    Later updates are ignored. Completion is signalled after the files are
    written.
    """

    def __init__(
        self,
        client: CDPClient,
        completion: CompletionSignal,
        screenshot_path: str | None = None,
        pdf_path: str | None = None,
        mode: int = 0o644,
    ) -> None:
        self.client = client
        self.completion = completion
        self.screenshot_path = screenshot_path
        self.pdf_path = pdf_path
        self.mode = mode
        self.captured = False

    async def __call__(self, params: dict[str, Any]) -> None:
        if self.captured:
            return
        self.captured = True

        if self.screenshot_path:
            logger.info("document updated. taking screenshot...")
            await self.client.save_screenshot(self.screenshot_path, self.mode)

        if self.pdf_path:
            logger.info("document updated. saving as PDF...")
            await self.client.save_pdf(self.pdf_path, self.mode)

        self.completion.set(reason="document captured")


class ClosedHandler:
    """Reports the end of the DevTools connection."""

    def __call__(self, params: dict[str, Any]) -> None:
        logger.info("RemoteDebugger connection terminated.")


class EventTracer:
    """Logs every event it sees."""

    def __init__(self) -> None:
        self.seen = 0

    def __call__(self, params: dict[str, Any]) -> None:
        self.seen += 1
        logger.debug("Event received", keys=sorted(params))
