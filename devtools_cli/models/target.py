"""Browser target and version models."""

from pydantic import BaseModel, ConfigDict, Field


class Tab(BaseModel):
    """A browsing context as reported by the DevTools HTTP endpoint."""

    id: str
    type: str = "page"
    title: str = ""
    url: str = ""
    ws_url: str | None = Field(default=None, alias="webSocketDebuggerUrl")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActiveTab(BaseModel):
    """Tab chosen for the session and the URL still waiting to be loaded in it."""

    tab: Tab
    pending_url: str | None = None

    @property
    def needs_navigation(self) -> bool:
        return bool(self.pending_url)


class BrowserVersion(BaseModel):
    """Version metadata from /json/version."""

    browser: str = Field(default="", alias="Browser")
    protocol_version: str = Field(default="", alias="Protocol-Version")
    user_agent: str = Field(default="", alias="User-Agent")
    v8_version: str = Field(default="", alias="V8-Version")
    webkit_version: str = Field(default="", alias="WebKit-Version")
    ws_url: str | None = Field(default=None, alias="webSocketDebuggerUrl")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
