"""Data models for devtools-cli."""

from devtools_cli.models.options import NavigationDecision, RunOptions
from devtools_cli.models.target import ActiveTab, BrowserVersion, Tab

__all__ = [
    "ActiveTab",
    "BrowserVersion",
    "NavigationDecision",
    "RunOptions",
    "Tab",
]
