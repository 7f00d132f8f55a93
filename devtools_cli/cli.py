"""Command line entry point."""

import asyncio
import sys

import click

from devtools_cli.browser import CDPError, default_command
from devtools_cli.config import settings
from devtools_cli.models import NavigationDecision, RunOptions
from devtools_cli.runner import DebugRun
from devtools_cli.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _split_patterns(ctx: click.Context, param: click.Parameter, value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(pattern for pattern in value.split("|") if pattern)


def _navigation_decision(ctx: click.Context, param: click.Parameter, value: str | None) -> NavigationDecision | None:
    if value is None:
        return None
    return NavigationDecision.from_option(value)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("url", required=False)
@click.option("--cmd", "command", default=default_command, help="Command to execute to start the browser")
@click.option("--port", "address", default=settings.address, show_default=True, help="Chrome remote debugger address")
@click.option("--verbose", is_flag=True, help="Verbose logging")
@click.option("--version", is_flag=True, help="Display remote DevTools version")
@click.option("--tabs", "list_tabs", is_flag=True, help="Show list of open tabs")
@click.option("--tab", default=0, show_default=True, help="Select specified tab if available")
@click.option("--new", "new_tab", is_flag=True, help="Always open a new tab")
@click.option("--filter", "tab_filter", default="page", show_default=True, help="Filter tab list by type")
@click.option("--domains", is_flag=True, help="Show list of available domains")
@click.option("--requests", is_flag=True, help="Show request notifications")
@click.option("--responses", is_flag=True, help="Show response notifications")
@click.option("--all-events", is_flag=True, help="Enable all events")
@click.option("--log", is_flag=True, help="Show log/console messages")
@click.option("--query", default=None, help="Query against current document")
@click.option("--eval", "expression", default=None, help="Evaluate expression (a function body)")
@click.option("--screenshot", is_flag=True, help="Take a screenshot")
@click.option("--pdf", is_flag=True, help="Save current page as PDF")
@click.option(
    "--control",
    type=click.Choice(["proceed", "cancel", "cancelIgnore"]),
    default=None,
    callback=_navigation_decision,
    help="Control navigation",
)
@click.option("--block", default=None, callback=_split_patterns, help="Block URLs or patterns, separated by '|'")
@click.option("--html", is_flag=True, help="Get outer HTML for current page")
@click.option("--set-html", default=None, help="Set outer HTML for current page")
@click.option("--wait", is_flag=True, help="Wait for more events")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Stop waiting for events after this many seconds")
def cli(
    url: str | None,
    command: str,
    address: str,
    verbose: bool,
    version: bool,
    list_tabs: bool,
    tab: int,
    new_tab: bool,
    tab_filter: str,
    domains: bool,
    requests: bool,
    responses: bool,
    all_events: bool,
    log: bool,
    query: str | None,
    expression: str | None,
    screenshot: bool,
    pdf: bool,
    control: NavigationDecision | None,
    block: tuple[str, ...],
    html: bool,
    set_html: str | None,
    wait: bool,
    timeout: float | None,
) -> None:
    """Drive a browser over the Chrome DevTools Protocol.

    URL, when given, is loaded in the selected tab (or a new one).
    """
    setup_logging(verbose)

    options = RunOptions(
        command=command or None,
        address=address,
        verbose=verbose,
        version=version,
        list_tabs=list_tabs,
        tab=tab,
        new_tab=new_tab,
        filter=tab_filter,
        domains=domains,
        requests=requests,
        responses=responses,
        all_events=all_events,
        log=log,
        query=query,
        eval=expression,
        screenshot=screenshot,
        pdf=pdf,
        control=control,
        block=block,
        html=html,
        set_html=set_html,
        wait=wait,
        timeout=timeout,
        url=url,
    )

    try:
        asyncio.run(DebugRun(options).run())
    except CDPError as e:
        logger.error("Run failed", error=str(e))
        sys.exit(1)


def main() -> None:
    cli()
