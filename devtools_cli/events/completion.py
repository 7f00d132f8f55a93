"""Single-shot completion signal."""

import asyncio

from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


class CompletionSignal:
    """
    Signal that the run's work is done.

    Only the first ``set`` has an effect. Later calls return False and never
    block, so any number of handlers may report completion.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    def set(self, reason: str = "") -> bool:
        """
        Mark the run as done.

        Returns:
            True for the call that completed the signal, False afterwards
        """
        if self._event.is_set():
            logger.debug("Completion already signalled", reason=reason, first=self.reason)
            return False

        self.reason = reason
        self._event.set()
        logger.debug("Completion signalled", reason=reason)
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float | None = None) -> bool:
        """
        Wait until the signal is set.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            True if the signal was set, False if the timeout expired first
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True
