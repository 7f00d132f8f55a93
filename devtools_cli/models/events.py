"""Typed parameters for the protocol events the tool prints or reacts to.

Every field is optional. A parameter mapping that does not validate is
replaced by an empty instance, so handlers see absent values instead of
failing on unexpected shapes.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from devtools_cli.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "unknown"

# Distinguished event emitted by the client when the WebSocket goes away
EVENT_CLOSED = "RemoteDebugger.closed"

REQUEST_WILL_BE_SENT = "Network.requestWillBeSent"
RESPONSE_RECEIVED = "Network.responseReceived"
LOG_ENTRY_ADDED = "Log.entryAdded"
CONSOLE_API_CALLED = "Runtime.consoleAPICalled"
NAVIGATION_REQUESTED = "Page.navigationRequested"
DOCUMENT_UPDATED = "DOM.documentUpdated"


class EventParams(BaseModel):
    """Base for event parameter models."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class RequestInfo(EventParams):
    url: str | None = None
    method: str | None = None


class RequestWillBeSent(EventParams):
    request_id: str | None = Field(default=None, alias="requestId")
    type: str | None = None
    document_url: str | None = Field(default=None, alias="documentURL")
    request: RequestInfo | None = None


class ResponseInfo(EventParams):
    url: str | None = None
    status: float | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class ResponseReceived(EventParams):
    request_id: str | None = Field(default=None, alias="requestId")
    type: str | None = None
    response: ResponseInfo | None = None


class LogEntry(EventParams):
    source: str | None = None
    level: str | None = None
    text: str | None = None


class LogEntryAdded(EventParams):
    entry: LogEntry | None = None


class PropertyPreview(EventParams):
    name: str | None = None
    type: str | None = None
    value: str | None = None


class ObjectPreview(EventParams):
    description: str | None = None
    properties: list[PropertyPreview] = Field(default_factory=list)


class RemoteObject(EventParams):
    type: str | None = None
    value: Any = None
    description: str | None = None
    preview: ObjectPreview | None = None


class ConsoleAPICalled(EventParams):
    type: str | None = None
    args: list[RemoteObject] = Field(default_factory=list)


class NavigationRequested(EventParams):
    navigation_id: int | None = Field(default=None, alias="navigationId")
    url: str | None = None
    is_in_main_frame: bool | None = Field(default=None, alias="isInMainFrame")
    is_redirect: bool | None = Field(default=None, alias="isRedirect")


EventT = TypeVar("EventT", bound=EventParams)


def parse_params(model: type[EventT], params: dict[str, Any] | None) -> EventT:
    """Validate an event parameter mapping, degrading to an empty model."""
    try:
        return model.model_validate(params or {})
    except ValidationError as e:
        logger.debug(
            "Malformed event parameters",
            model=model.__name__,
            errors=e.error_count(),
        )
        return model()


def or_unknown(value: Any) -> Any:
    """Value for printing, with absent values shown as unknown."""
    return UNKNOWN if value is None else value
