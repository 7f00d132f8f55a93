"""Multi-step DOM and runtime operations."""

from typing import Any

from devtools_cli.browser.cdp import CDPClient, CDPError
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


class OperationError(CDPError):
    """A requested one-shot operation failed."""

    pass


class DocumentService:
    """Chains the calls behind each document operation.

    The root node id is fetched again for every operation, since it goes
    stale whenever the document is replaced.
    """

    def __init__(self, client: CDPClient, verbose: bool = False) -> None:
        self.client = client
        self.verbose = verbose

    async def document_node(self) -> int:
        """Root node id of the current document."""
        try:
            document = await self.client.get_document()
        except CDPError as e:
            raise OperationError(f"error getting document: {e}") from e

        if self.verbose:
            logger.debug("Document", document=document)

        node_id = document.get("root", {}).get("nodeId")
        if node_id is None:
            raise OperationError("error getting document: no root node")
        return int(node_id)

    async def query(self, selector: str) -> dict[str, Any] | None:
        """
        Resolve the first node matching selector.

        Returns:
            The node's object description, or None when nothing matches
        """
        root = await self.document_node()

        try:
            match = await self.client.query_selector(root, selector)
        except CDPError as e:
            raise OperationError(f"error in querySelector: {e}") from e

        if match is None:
            logger.info(f"no result for {selector}")
            return None

        try:
            return await self.client.resolve_node(int(match["nodeId"]))
        except CDPError as e:
            raise OperationError(f"error in resolveNode: {e}") from e

    async def evaluate(self, expression: str) -> Any:
        try:
            return await self.client.evaluate(expression)
        except CDPError as e:
            raise OperationError(f"error in evaluate: {e}") from e

    async def set_outer_html(self, html: str) -> None:
        """Replace the whole document element with html."""
        root = await self.document_node()

        try:
            match = await self.client.query_selector(root, "html")
        except CDPError as e:
            raise OperationError(f"error in querySelector: {e}") from e
        if match is None:
            raise OperationError("error in querySelector: no html element")

        try:
            await self.client.set_outer_html(int(match["nodeId"]), html)
        except CDPError as e:
            raise OperationError(f"error in setOuterHTML: {e}") from e

    async def get_outer_html(self) -> str:
        root = await self.document_node()
        try:
            return await self.client.get_outer_html(root)
        except CDPError as e:
            raise OperationError(f"error in getOuterHTML: {e}") from e
