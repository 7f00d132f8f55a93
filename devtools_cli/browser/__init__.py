"""Browser connection and one-shot operations."""

from devtools_cli.browser.cdp import CDPClient, CDPConnectionError, CDPError
from devtools_cli.browser.chrome import ChromeLauncher, ChromeProcess, default_command, find_browser
from devtools_cli.browser.connection import connect, open_connection
from devtools_cli.browser.documents import DocumentService, OperationError
from devtools_cli.browser.tabs import TabSelectionError, select_tab

__all__ = [
    "CDPClient",
    "CDPConnectionError",
    "CDPError",
    "ChromeLauncher",
    "ChromeProcess",
    "default_command",
    "find_browser",
    "connect",
    "open_connection",
    "DocumentService",
    "OperationError",
    "TabSelectionError",
    "select_tab",
]
