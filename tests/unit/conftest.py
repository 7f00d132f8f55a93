"""Shared fixtures: an in-memory stand-in for the DevTools client."""

import asyncio
import io
from typing import Any

import pytest
from rich.console import Console

from devtools_cli.browser.cdp import CDPConnectionError
from devtools_cli.models import BrowserVersion, NavigationDecision, Tab


def make_tab(tab_id: str, url: str = "about:blank") -> Tab:
    return Tab(id=tab_id, url=url, webSocketDebuggerUrl=f"ws://localhost:9222/devtools/page/{tab_id}")


class FakeClient:
    """Records every call and delivers queued events like CDPClient does."""

    def __init__(self, address: str = "localhost:9222", tabs: list[Tab] | None = None) -> None:
        self.address = address
        self.tabs = list(tabs or [])
        self.browser_version = BrowserVersion.model_validate(
            {"Browser": "HeadlessChrome/120.0.0.0", "Protocol-Version": "1.3"}
        )
        self.current_tab: Tab | None = None
        self.calls: list[tuple[str, Any]] = []
        self.errors: dict[str, Exception] = {}
        self.connect_failures = 0
        self.disconnects = 0

        self.document: dict[str, Any] = {"root": {"nodeId": 1}}
        self.selector_matches: dict[str, int] = {"html": 2}
        self.eval_result: Any = None
        self.outer_html = "<html><body>hello</body></html>"

        # Events queued as soon as event reporting is enabled
        self.events_on_enable: list[tuple[str, dict[str, Any]]] = []

        self._listener: Any = None
        self._events: asyncio.Queue[tuple[str, dict[str, Any]]] = asyncio.Queue()
        self.delivery_task: asyncio.Task[None] | None = None

    def _record(self, name: str, args: Any = None) -> None:
        self.calls.append((name, args))
        if name in self.errors:
            raise self.errors[name]

    def called(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]

    def set_listener(self, listener: Any) -> None:
        self._listener = listener

    async def connect(self) -> None:
        if self.connect_failures > 0:
            self.connect_failures -= 1
            raise CDPConnectionError("connection refused")
        self._record("connect")
        if self.tabs:
            self.current_tab = self.tabs[0]
        self.delivery_task = asyncio.create_task(self._deliver())

    async def disconnect(self) -> None:
        self.disconnects += 1
        if self.delivery_task is not None:
            self.delivery_task.cancel()
            try:
                await self.delivery_task
            except (asyncio.CancelledError, Exception):
                pass

    async def _deliver(self) -> None:
        while True:
            name, params = await self._events.get()
            if self._listener is not None:
                await self._listener(name, params)

    def queue_event(self, name: str, params: dict[str, Any] | None = None) -> None:
        self._events.put_nowait((name, params or {}))

    async def tab_list(self, filter: str = "page") -> list[Tab]:
        self._record("tab_list", filter)
        return [tab for tab in self.tabs if not filter or tab.type == filter]

    async def new_tab(self, url: str = "about:blank") -> Tab:
        self._record("new_tab", url)
        tab = make_tab(f"new-{len(self.called('new_tab'))}", url)
        self.tabs.append(tab)
        self.current_tab = tab
        return tab

    async def activate_tab(self, tab: Tab) -> None:
        self._record("activate_tab", tab.id)
        self.current_tab = tab

    async def get_domains(self) -> list[dict[str, Any]]:
        self._record("get_domains")
        return [{"name": "Page", "version": "1.3"}, {"name": "DOM", "version": "1.3"}]

    async def _enabled(self) -> None:
        for name, params in self.events_on_enable:
            self.queue_event(name, params)

    async def enable_events(self, *domains: str) -> None:
        self._record("enable_events", domains)
        await self._enabled()

    async def all_events(self) -> None:
        self._record("all_events")
        await self._enabled()

    async def navigate(self, url: str) -> dict[str, Any]:
        self._record("navigate", url)
        return {"frameId": "frame-1"}

    async def set_blocked_urls(self, urls: list[str]) -> None:
        self._record("set_blocked_urls", urls)

    async def set_control_navigations(self, enabled: bool) -> None:
        self._record("set_control_navigations", enabled)

    async def process_navigation(self, navigation_id: int, decision: NavigationDecision) -> None:
        self._record("process_navigation", (navigation_id, decision))

    async def get_document(self) -> dict[str, Any]:
        self._record("get_document")
        return self.document

    async def query_selector(self, node_id: int, selector: str) -> dict[str, Any] | None:
        self._record("query_selector", (node_id, selector))
        match = self.selector_matches.get(selector)
        return {"nodeId": match} if match else None

    async def resolve_node(self, node_id: int) -> dict[str, Any]:
        self._record("resolve_node", node_id)
        return {"object": {"type": "object", "subtype": "node", "className": "HTMLHeadingElement"}}

    async def evaluate(self, expression: str) -> Any:
        self._record("evaluate", expression)
        return self.eval_result

    async def get_outer_html(self, node_id: int) -> str:
        self._record("get_outer_html", node_id)
        return self.outer_html

    async def set_outer_html(self, node_id: int, html: str) -> None:
        self._record("set_outer_html", (node_id, html))

    async def save_screenshot(self, path: str, mode: int = 0o644) -> None:
        self._record("save_screenshot", (path, mode))
        with open(path, "wb") as f:
            f.write(b"\x89PNG")

    async def save_pdf(self, path: str, mode: int = 0o644) -> None:
        self._record("save_pdf", (path, mode))
        with open(path, "wb") as f:
            f.write(b"%PDF-1.4")


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200)
