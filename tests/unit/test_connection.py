"""Tests for connection retry."""

from unittest.mock import AsyncMock, patch

import pytest
from conftest import FakeClient
from structlog.testing import capture_logs

from devtools_cli.browser import CDPClient, CDPConnectionError, connect, open_connection


class FlakyFactory:
    """Hands out clients whose first `failures` connects are refused."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.clients: list[FakeClient] = []

    def __call__(self, address: str) -> FakeClient:
        client = FakeClient(address)
        if len(self.clients) < self.failures:
            client.connect_failures = 1
        self.clients.append(client)
        return client


@pytest.mark.asyncio
@pytest.mark.parametrize(("attempts", "failures"), [(1, 0), (3, 2), (5, 1), (10, 9)])
async def test_succeeds_after_failures(attempts: int, failures: int) -> None:
    """Test that f failures under a budget of N cost f+1 attempts and f sleeps."""
    factory = FlakyFactory(failures)

    with patch("devtools_cli.browser.connection.asyncio.sleep", new_callable=AsyncMock) as sleep:
        client = await connect("localhost:9222", max_attempts=attempts, interval=0.5, client_factory=factory)
        await client.disconnect()

    assert len(factory.clients) == failures + 1
    assert sleep.await_count == failures
    for call in sleep.await_args_list:
        assert call.args == (0.5,)
    assert client is factory.clients[-1]


@pytest.mark.asyncio
async def test_three_failures_then_success_are_logged() -> None:
    """Test logging each refused attempt."""
    factory = FlakyFactory(3)

    with patch("devtools_cli.browser.connection.asyncio.sleep", new_callable=AsyncMock):
        with capture_logs() as logs:
            client = await connect("localhost:9222", max_attempts=10, interval=0.5, client_factory=factory)
            await client.disconnect()

    failures = [entry for entry in logs if entry["event"] == "Connect attempt failed"]
    assert [entry["attempt"] for entry in failures] == [1, 2, 3]
    assert all(entry["log_level"] == "warning" for entry in failures)
    assert all("connection refused" in entry["error"] for entry in failures)
    assert factory.clients[-1].called("connect") == [None]


@pytest.mark.asyncio
async def test_exhausted_budget_raises() -> None:
    """Test giving up after the attempt budget."""
    factory = FlakyFactory(5)

    with patch("devtools_cli.browser.connection.asyncio.sleep", new_callable=AsyncMock) as sleep:
        with pytest.raises(CDPConnectionError, match="after 3 attempts"):
            await connect("localhost:9222", max_attempts=3, interval=0.1, client_factory=factory)

    assert len(factory.clients) == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_invalid_budget() -> None:
    """Test rejecting an attempt budget below one."""
    with pytest.raises(ValueError):
        await connect("localhost:9222", max_attempts=0, client_factory=FlakyFactory(0))


@pytest.mark.asyncio
async def test_open_connection_releases_once_on_error() -> None:
    """Test releasing the client once when the body fails."""
    factory = FlakyFactory(0)

    with pytest.raises(RuntimeError):
        async with open_connection("localhost:9222", max_attempts=1, client_factory=factory):
            raise RuntimeError("boom")

    assert factory.clients[0].disconnects == 1


@pytest.mark.asyncio
async def test_open_connection_releases_once_on_success() -> None:
    """Test releasing the client once on success."""
    factory = FlakyFactory(0)

    async with open_connection("localhost:9222", max_attempts=1, client_factory=factory) as client:
        assert client.called("connect") == [None]

    assert factory.clients[0].disconnects == 1


@pytest.mark.asyncio
async def test_foreign_server_exhausts_attempts() -> None:
    """Test that a non-DevTools endpoint counts as a failed attempt."""

    def factory(address: str) -> CDPClient:
        client = CDPClient(address)
        client._get_json = AsyncMock(return_value="<html>not devtools</html>")  # type: ignore[method-assign]
        return client

    with patch("devtools_cli.browser.connection.asyncio.sleep", new_callable=AsyncMock):
        with capture_logs() as logs:
            with pytest.raises(CDPConnectionError, match="after 2 attempts"):
                await connect("localhost:8080", max_attempts=2, interval=0.1, client_factory=factory)

    assert len([entry for entry in logs if entry["event"] == "Connect attempt failed"]) == 2
