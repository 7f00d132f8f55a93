"""Chrome DevTools Protocol (CDP) client."""

import asyncio
import base64
import json
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import websockets
from pydantic import BaseModel, ValidationError
from websockets import ClientConnection

from devtools_cli.models import BrowserVersion, NavigationDecision, Tab
from devtools_cli.models.events import EVENT_CLOSED
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)

EventListener = Callable[[str, dict[str, Any]], Awaitable[None]]

ModelT = TypeVar("ModelT", bound=BaseModel)

# Domains enabled when all events are not requested
CORE_EVENT_DOMAINS = ("Runtime", "Network", "Page", "DOM", "Log")

# Characters left as is in the /json/new query; "#" and spaces are escaped
NEW_TAB_SAFE = ":/?&=%@+,;"


class CDPError(Exception):
    """CDP protocol error."""

    pass


class CDPConnectionError(CDPError):
    """The DevTools endpoint could not be reached."""

    pass


class CDPClient:
    """Client for Chrome DevTools Protocol communication.

    Commands are correlated by message id. Events are queued by the receive
    task and handed to the listener one at a time by a separate delivery
    task, so a listener may send commands of its own.
    """

    def __init__(self, address: str, command_timeout: float = 30.0) -> None:
        self.address = address
        self.command_timeout = command_timeout
        self.browser_version: BrowserVersion | None = None
        self.current_tab: Tab | None = None
        self._ws: ClientConnection | None = None
        self._message_id = 0
        self._pending_responses: dict[int, asyncio.Future[Any]] = {}
        self._receive_task: asyncio.Task[None] | None = None
        self._delivery_task: asyncio.Task[None] | None = None
        self._events: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()
        self._listener: EventListener | None = None
        self._detaching = False
        self._connected = False

    @property
    def base_url(self) -> str:
        """Base URL for DevTools HTTP endpoints."""
        return f"http://{self.address}"

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def delivery_task(self) -> asyncio.Task[None] | None:
        """Task delivering events to the listener, if one is running."""
        return self._delivery_task

    def set_listener(self, listener: EventListener) -> None:
        """Set the coroutine that receives every inbound event."""
        self._listener = listener

    async def connect(self) -> None:
        """
        Connect to the DevTools endpoint.

        Fetches version metadata and attaches to the first page target if
        one exists. Without a page target the client stays attached to
        nothing until a tab is created or activated.
        """
        self.browser_version = await self.fetch_version()

        tabs = await self.tab_list("page")
        for tab in tabs:
            if tab.ws_url:
                await self._attach(tab)
                break

        self._connected = True
        logger.info("CDP connected", address=self.address)

    async def disconnect(self) -> None:
        """Disconnect from Chrome DevTools."""
        if not self._connected and self._ws is None:
            return

        await self._detach()

        if self._delivery_task:
            self._delivery_task.cancel()
            try:
                await self._delivery_task
            except asyncio.CancelledError:
                pass
            except Exception:
                # Already reported by the delivery loop
                pass
            self._delivery_task = None

        self._connected = False
        logger.debug("CDP disconnected")

    async def _attach(self, tab: Tab) -> None:
        """Point the WebSocket at another target."""
        if not tab.ws_url:
            raise CDPError(f"Tab {tab.id} has no WebSocket debugger URL")

        await self._detach()

        logger.debug("Connecting to page WebSocket", url=tab.ws_url)
        try:
            self._ws = await websockets.connect(tab.ws_url, max_size=100 * 1024 * 1024)
        except (OSError, TimeoutError, websockets.WebSocketException) as e:
            raise CDPConnectionError(f"Cannot open {tab.ws_url}: {e}") from e

        self._receive_task = asyncio.create_task(self._receive_messages(self._ws))
        self.current_tab = tab

        if self._delivery_task is None:
            self._delivery_task = asyncio.create_task(self._deliver_events())

    async def _detach(self) -> None:
        """Close the current WebSocket without reporting it as closed."""
        self._detaching = True
        try:
            if self._receive_task:
                self._receive_task.cancel()
                try:
                    await self._receive_task
                except asyncio.CancelledError:
                    pass
                self._receive_task = None

            if self._ws:
                await self._ws.close()
                self._ws = None
        finally:
            self._detaching = False

        self._fail_pending("Connection detached")

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending_responses.values():
            if not future.done():
                future.set_exception(CDPError(reason))
        self._pending_responses.clear()

    async def _receive_messages(self, ws: ClientConnection) -> None:
        """Background task to receive WebSocket messages."""
        try:
            async for message in ws:
                data = json.loads(message)

                # Handle response to our command
                if "id" in data:
                    msg_id = data["id"]
                    if msg_id in self._pending_responses:
                        future = self._pending_responses.pop(msg_id)
                        if future.done():
                            continue
                        if "error" in data:
                            error_msg = data["error"].get("message", "Unknown error")
                            future.set_exception(CDPError(error_msg))
                        else:
                            future.set_result(data.get("result", {}))

                # Queue events for the delivery task
                elif "method" in data:
                    self._events.put_nowait((data["method"], data.get("params") or {}))

        except websockets.ConnectionClosed:
            logger.debug("WebSocket connection closed")
        except json.JSONDecodeError as e:
            logger.error("Invalid CDP message", error=str(e))
        except Exception as e:
            logger.error("Error receiving CDP messages", error=str(e))

        if not self._detaching:
            self._fail_pending("Connection closed")
            self._events.put_nowait((EVENT_CLOSED, {}))

    async def _deliver_events(self) -> None:
        """Background task handing queued events to the listener in order."""
        while True:
            method, params = await self._events.get()
            if self._listener is None:
                continue
            try:
                await self._listener(method, params)
            except Exception:
                logger.exception("Event handler failed", method=method)
                raise

    async def send(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """
        Send a CDP command and wait for response.

        Args:
            method: CDP method name (e.g., "Page.navigate")
            params: Method parameters

        Returns:
            Command result
        """
        if not self._ws:
            raise CDPError("Not attached to a DevTools target")

        self._message_id += 1
        msg_id = self._message_id

        message = {
            "id": msg_id,
            "method": method,
            "params": params or {},
        }

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending_responses[msg_id] = future

        await self._ws.send(json.dumps(message))
        logger.debug("CDP command sent", method=method, id=msg_id)

        try:
            return await asyncio.wait_for(future, timeout=self.command_timeout)
        except TimeoutError as e:
            self._pending_responses.pop(msg_id, None)
            raise CDPError(f"Timeout waiting for response to {method}") from e

    async def _get_json(self, path: str, method: str = "GET") -> Any:
        """Call one of the DevTools HTTP endpoints."""
        try:
            async with httpx.AsyncClient(timeout=self.command_timeout) as client:
                response = await client.request(method, f"{self.base_url}{path}")
        except httpx.HTTPError as e:
            raise CDPConnectionError(f"{self.base_url}{path}: {e}") from e

        if response.status_code != 200:
            raise CDPError(f"{path} returned {response.status_code}: {response.text.strip()}")

        try:
            return response.json()
        except ValueError:
            # /json/activate answers with plain text
            return response.text

    async def fetch_version(self) -> BrowserVersion:
        """Get browser and protocol version metadata."""
        data = await self._get_json("/json/version")
        return _validate(BrowserVersion, data, "/json/version")

    async def tab_list(self, filter: str = "page") -> list[Tab]:
        """
        List targets, keeping only those of the given type.

        An empty filter returns every target.
        """
        data = await self._get_json("/json/list")
        if not isinstance(data, list):
            raise CDPError(f"/json/list returned {type(data).__name__}, expected a list")
        tabs = [_validate(Tab, item, "/json/list") for item in data]
        if filter:
            tabs = [tab for tab in tabs if tab.type == filter]
        return tabs

    async def new_tab(self, url: str = "about:blank") -> Tab:
        """
        Create a new tab and attach to it.

        Args:
            url: Initial URL for the new tab

        Returns:
            The created tab
        """
        data = await self._get_json(f"/json/new?{quote(url, safe=NEW_TAB_SAFE)}", method="PUT")
        tab = _validate(Tab, data, "/json/new")
        logger.debug("Created new tab", tab_id=tab.id, url=url)
        await self._attach(tab)
        return tab

    async def activate_tab(self, tab: Tab) -> None:
        """Bring a tab to the front and attach to it."""
        await self._get_json(f"/json/activate/{tab.id}")
        logger.debug("Activated tab", tab_id=tab.id, url=tab.url)
        await self._attach(tab)

    async def get_domains(self) -> list[dict[str, Any]]:
        """List the protocol domains the target supports."""
        result = await self.send("Schema.getDomains")
        domains: list[dict[str, Any]] = result.get("domains", [])
        return domains

    async def domain_events(self, domain: str, enable: bool = True) -> None:
        """Enable or disable event reporting for one domain."""
        await self.send(f"{domain}.{'enable' if enable else 'disable'}")

    async def enable_events(self, *domains: str) -> None:
        """Enable events for the given domains (the core domains by default)."""
        for domain in domains or CORE_EVENT_DOMAINS:
            await self.domain_events(domain)

    async def all_events(self) -> None:
        """Enable events for every domain that supports it."""
        for domain in await self.get_domains():
            name = domain.get("name", "")
            try:
                await self.domain_events(name)
            except CDPError as e:
                logger.debug("Domain has no events to enable", domain=name, error=str(e))

    async def navigate(self, url: str) -> dict[str, Any]:
        """
        Navigate to a URL.

        Args:
            url: URL to navigate to

        Returns:
            Navigation result
        """
        logger.info("Navigating to URL", url=url)
        result: dict[str, Any] = await self.send("Page.navigate", {"url": url})
        if result.get("errorText"):
            raise CDPError(result["errorText"])
        return result

    async def get_document(self) -> dict[str, Any]:
        """Get the root DOM node of the current document."""
        result: dict[str, Any] = await self.send("DOM.getDocument")
        return result

    async def query_selector(self, node_id: int, selector: str) -> dict[str, Any] | None:
        """Find the first node matching selector, or None."""
        result = await self.send("DOM.querySelector", {"nodeId": node_id, "selector": selector})
        if not result.get("nodeId"):
            return None
        return dict(result)

    async def resolve_node(self, node_id: int) -> dict[str, Any]:
        """Get the JavaScript object for a node."""
        result: dict[str, Any] = await self.send("DOM.resolveNode", {"nodeId": node_id})
        return result

    async def evaluate(self, expression: str) -> Any:
        """
        Evaluate expression in the page and return its value.

        The expression is used as a function body, so it should ``return``
        what it wants reported.
        """
        result = await self.send(
            "Runtime.evaluate",
            {"expression": f"(function(){{{expression}}})()", "returnByValue": True},
        )
        if "exceptionDetails" in result:
            details = result["exceptionDetails"]
            exception = details.get("exception", {})
            raise CDPError(exception.get("description") or details.get("text", "Evaluation failed"))
        return result.get("result", {}).get("value")

    async def get_outer_html(self, node_id: int) -> str:
        result = await self.send("DOM.getOuterHTML", {"nodeId": node_id})
        html: str = result.get("outerHTML", "")
        return html

    async def set_outer_html(self, node_id: int, html: str) -> None:
        await self.send("DOM.setOuterHTML", {"nodeId": node_id, "outerHTML": html})

    async def screenshot(self, format: str = "png", quality: int = 80, from_surface: bool = True) -> bytes:
        """
        Take a screenshot of the page.

        Args:
            format: Image format ("png" or "jpeg")
            quality: JPEG quality (0-100)
            from_surface: Capture from the surface rather than the view

        Returns:
            Screenshot as bytes
        """
        params: dict[str, Any] = {"format": format, "fromSurface": from_surface}
        if format == "jpeg":
            params["quality"] = quality

        result = await self.send("Page.captureScreenshot", params)
        return base64.b64decode(result.get("data", ""))

    async def print_to_pdf(self) -> bytes:
        """Render the page as PDF."""
        result = await self.send("Page.printToPDF")
        return base64.b64decode(result.get("data", ""))

    async def save_screenshot(self, path: str, mode: int = 0o644) -> Path:
        return _write_file(path, await self.screenshot(), mode)

    async def save_pdf(self, path: str, mode: int = 0o644) -> Path:
        return _write_file(path, await self.print_to_pdf(), mode)

    async def set_blocked_urls(self, urls: list[str]) -> None:
        """Block requests to URLs matching any of the patterns."""
        await self.send("Network.setBlockedURLs", {"urls": urls})

    async def set_control_navigations(self, enabled: bool) -> None:
        """Ask the browser to hold navigations until they are answered."""
        await self.send("Page.setControlNavigations", {"enabled": enabled})

    async def process_navigation(self, navigation_id: int, decision: NavigationDecision) -> None:
        """Answer an intercepted navigation."""
        await self.send(
            "Page.processNavigation",
            {"navigationId": navigation_id, "response": decision.value},
        )


def _write_file(path: str, data: bytes, mode: int) -> Path:
    target = Path(path)
    target.write_bytes(data)
    os.chmod(target, mode)
    logger.info("Saved file", path=str(target), size=len(data))
    return target


def _validate(model: type[ModelT], data: Any, path: str) -> ModelT:
    """Validate an HTTP endpoint answer, reporting a mismatch as a CDP error."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise CDPError(f"{path} returned an unexpected answer: {e.error_count()} validation errors") from e
