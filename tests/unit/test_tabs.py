"""Tests for tab selection."""

import pytest
from conftest import FakeClient, make_tab

from devtools_cli.browser import CDPError, TabSelectionError, select_tab


@pytest.mark.asyncio
async def test_no_tabs_creates_tab_at_url(fake_client: FakeClient) -> None:
    """Test creating a tab at the URL when none exist."""
    active = await select_tab(fake_client, [], target_url="https://example.com")

    assert fake_client.called("new_tab") == ["https://example.com"]
    assert active.tab.url == "https://example.com"
    assert active.needs_navigation is False
    assert fake_client.called("activate_tab") == []


@pytest.mark.asyncio
async def test_force_new_creates_tab(fake_client: FakeClient) -> None:
    """Test that a forced new tab is created even when tabs exist."""
    tabs = [make_tab("a"), make_tab("b")]

    active = await select_tab(fake_client, tabs, requested_index=1, force_new=True, target_url="https://example.com")

    assert fake_client.called("new_tab") == ["https://example.com"]
    assert active.pending_url is None


@pytest.mark.asyncio
async def test_activates_requested_index(fake_client: FakeClient) -> None:
    """Test activating the tab at the requested index."""
    tabs = [make_tab("a"), make_tab("b"), make_tab("c")]

    active = await select_tab(fake_client, tabs, requested_index=2, target_url="https://example.com")

    assert fake_client.called("activate_tab") == ["c"]
    assert active.tab.id == "c"
    assert active.pending_url == "https://example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [2, 3, 17, -1])
async def test_out_of_range_index_falls_back_to_first(fake_client: FakeClient, index: int) -> None:
    """Test the fallback to the first tab for a bad index."""
    tabs = [make_tab("a"), make_tab("b")]

    active = await select_tab(fake_client, tabs, requested_index=index, target_url="https://example.com")

    assert fake_client.called("activate_tab") == ["a"]
    assert active.tab.id == "a"
    assert active.needs_navigation is True


@pytest.mark.asyncio
async def test_creation_failure_is_fatal(fake_client: FakeClient) -> None:
    """Test that a creation error becomes a tab selection error."""
    fake_client.errors["new_tab"] = CDPError("/json/new returned 405")

    with pytest.raises(TabSelectionError, match="error loading page"):
        await select_tab(fake_client, [], target_url="https://example.com")


@pytest.mark.asyncio
async def test_activation_failure_is_fatal(fake_client: FakeClient) -> None:
    """Test that an activation error becomes a tab selection error."""
    fake_client.errors["activate_tab"] = CDPError("No such target id")

    with pytest.raises(TabSelectionError):
        await select_tab(fake_client, [make_tab("a")], target_url="https://example.com")
