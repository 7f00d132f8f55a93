"""Selection of the tab the session works in."""

from devtools_cli.browser.cdp import CDPClient, CDPError
from devtools_cli.models import ActiveTab, Tab
from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)


class TabSelectionError(CDPError):
    """No tab could be created or activated."""

    pass


async def select_tab(
    client: CDPClient,
    tabs: list[Tab],
    requested_index: int = 0,
    force_new: bool = False,
    target_url: str = "about:blank",
) -> ActiveTab:
    """
    Pick the tab to work in.

    A new tab is opened directly at target_url when there are no tabs or
    one is forced, so nothing is left to navigate. Otherwise the tab at
    requested_index (or the first one, if the index is out of range) is
    activated and target_url is left pending.

    Raises:
        TabSelectionError: The tab could not be created or activated
    """
    if not tabs or force_new:
        try:
            tab = await client.new_tab(target_url)
        except CDPError as e:
            raise TabSelectionError(f"error loading page: {e}") from e

        logger.info("Opened new tab", tab_id=tab.id, url=target_url)
        return ActiveTab(tab=tab)

    index = requested_index
    if not 0 <= index < len(tabs):
        logger.debug("Tab index out of range, using first tab", requested=requested_index, count=len(tabs))
        index = 0

    tab = tabs[index]
    try:
        await client.activate_tab(tab)
    except CDPError as e:
        raise TabSelectionError(f"error loading page: {e}") from e

    logger.info("Activated tab", index=index, tab_id=tab.id, url=tab.url)
    return ActiveTab(tab=tab, pending_url=target_url)
