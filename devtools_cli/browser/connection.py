"""Connection establishment with bounded retry."""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from devtools_cli.browser.cdp import CDPClient, CDPConnectionError, CDPError
from devtools_cli.config import settings
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str], CDPClient]


def _default_factory(address: str) -> CDPClient:
    return CDPClient(address, command_timeout=settings.command_timeout)


async def connect(
    address: str,
    max_attempts: int = settings.connect_attempts,
    interval: float = settings.connect_interval,
    client_factory: ClientFactory = _default_factory,
) -> CDPClient:
    """
    Connect to the DevTools endpoint, retrying while the browser starts up.

    Args:
        address: host:port of the DevTools endpoint
        max_attempts: Total number of attempts, including the first
        interval: Seconds to sleep before each retry

    Returns:
        Connected client

    Raises:
        CDPConnectionError: Every attempt failed
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        if attempt > 1:
            await asyncio.sleep(interval)

        client = client_factory(address)
        try:
            await client.connect()
            return client
        except CDPError as e:
            last_error = e
            logger.warning(
                "Connect attempt failed",
                address=address,
                attempt=attempt,
                max_attempts=max_attempts,
                error=str(e),
            )
            await client.disconnect()

    raise CDPConnectionError(
        f"Cannot connect to browser at {address} after {max_attempts} attempts"
    ) from last_error


@asynccontextmanager
async def open_connection(
    address: str,
    max_attempts: int = settings.connect_attempts,
    interval: float = settings.connect_interval,
    client_factory: ClientFactory = _default_factory,
) -> AsyncIterator[CDPClient]:
    """Connect and release the client exactly once on every exit path."""
    client = await connect(address, max_attempts, interval, client_factory)
    try:
        yield client
    finally:
        await client.disconnect()
