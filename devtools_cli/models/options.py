"""Run options built once from the command line."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NavigationDecision(str, Enum):
    """Reply sent for an intercepted navigation."""

    PROCEED = "Proceed"
    CANCEL = "Cancel"
    CANCEL_AND_IGNORE = "CancelAndIgnore"

    @classmethod
    def from_option(cls, value: str) -> "NavigationDecision":
        """Map the command line value (proceed, cancel, cancelIgnore)."""
        choices = {
            "proceed": cls.PROCEED,
            "cancel": cls.CANCEL,
            "cancelignore": cls.CANCEL_AND_IGNORE,
        }
        try:
            return choices[value.lower()]
        except KeyError:
            raise ValueError(f"Unknown navigation decision: {value}") from None


class RunOptions(BaseModel):
    """Everything a single run was asked to do."""

    command: str | None = Field(default=None, description="Command that starts the browser")
    address: str = "localhost:9222"
    verbose: bool = False

    version: bool = False
    list_tabs: bool = False
    tab: int = 0
    new_tab: bool = False
    filter: str = "page"
    domains: bool = False

    requests: bool = False
    responses: bool = False
    all_events: bool = False
    log: bool = False

    query: str | None = None
    eval: str | None = None
    screenshot: bool = False
    pdf: bool = False
    control: NavigationDecision | None = None
    block: tuple[str, ...] = ()
    html: bool = False
    set_html: str | None = None

    wait: bool = False
    timeout: float | None = Field(default=None, gt=0)
    url: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def wants_events(self) -> bool:
        """Whether any armed feature only produces output from events."""
        return any(
            (
                self.screenshot,
                self.pdf,
                self.requests,
                self.responses,
                self.log,
                self.all_events,
                self.control is not None,
            )
        )

    @property
    def captures(self) -> bool:
        return self.screenshot or self.pdf
