"""UptimeRobot API client: monitor list and alert contacts.

https://uptimerobot.com/api/. Every call is a form-encoded POST carrying the
account API key, and every response is wrapped in a `{"stat": "ok" | "fail"}`
envelope.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, ValidationError

from sslwatch.errors import HttpClientError, HttpStatusError, UpstreamApiError
from sslwatch.models.uptime import AlertContactsEnvelope, Monitor, MonitorsEnvelope
from sslwatch.services.http_client import HttpClient

logger = logging.getLogger(__name__)

API_URL = "https://api.uptimerobot.com/v2"
WEBHOOK_HOST_MARKER = "hooks.slack.com"
PAGE_LIMIT = 50

E = TypeVar("E", bound=BaseModel)


class ApiOk(BaseModel):
    model_config = ConfigDict(frozen=True)

    payload: Any


class ApiApplicationError(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ApiTransportError(BaseModel):
    model_config = ConfigDict(frozen=True)

    detail: str


ApiResult = Union[ApiOk, ApiApplicationError, ApiTransportError]


class UptimeRobotClient:
    def __init__(
        self,
        http: HttpClient,
        api_url: str = API_URL,
        webhook_host_marker: str = WEBHOOK_HOST_MARKER,
        page_limit: int = PAGE_LIMIT,
        log: Optional[logging.Logger] = None,
    ):
        self.http = http
        self.api_url = api_url.rstrip("/")
        self.webhook_host_marker = webhook_host_marker
        self.page_limit = page_limit
        self.log = log or logger

    async def call(self, method: str, api_key: str, envelope: Type[E], **params: Any) -> ApiResult:
        """POST one API method and decode the envelope once, here.

        HTTP failures become ApiTransportError; a non-"ok" stat (whatever the
        HTTP status) or an envelope that does not match the declared fields
        becomes ApiApplicationError.
        """
        form = urlencode({"api_key": api_key, "format": "json", **params})
        try:
            res = await self.http.request(
                f"{self.api_url}/{method}",
                method="POST",
                body=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except HttpStatusError as exc:
            body = exc.response.body
            if isinstance(body, dict) and body.get("stat") not in (None, "ok"):
                return ApiApplicationError(message=_error_message(body))
            return ApiTransportError(detail=str(exc))
        except HttpClientError as exc:
            return ApiTransportError(detail=str(exc))

        if not isinstance(res.body, dict):
            return ApiApplicationError(message=f"Unexpected {method} response ({res.content_type or 'no content type'})")
        if res.body.get("stat") != "ok":
            return ApiApplicationError(message=_error_message(res.body))
        try:
            return ApiOk(payload=envelope.model_validate(res.body))
        except ValidationError as exc:
            return ApiApplicationError(message=f"Malformed {method} response: {exc.error_count()} invalid field(s)")

    async def list_monitors(self, api_key: str) -> List[Monitor]:
        """All monitors on the account, unfiltered, following pagination."""
        monitors: List[Monitor] = []
        offset = 0
        while True:
            result = await self.call(
                "getMonitors", api_key, MonitorsEnvelope, offset=offset, limit=self.page_limit
            )
            page = _unwrap(result, "getMonitors")
            monitors.extend(page.monitors)

            pagination = page.pagination
            if pagination is None or not page.monitors:
                break
            offset += len(page.monitors)
            if offset >= pagination.total:
                break

        self.log.info(f"Fetched {len(monitors)} monitors")
        return monitors

    async def find_webhook_url(self, api_key: str) -> Optional[str]:
        """Value of the first alert contact pointing at the chat webhook host, if any."""
        result = await self.call("getAlertContacts", api_key, AlertContactsEnvelope)
        contacts = _unwrap(result, "getAlertContacts").alert_contacts
        for contact in contacts:
            if self.webhook_host_marker in contact.value:
                return contact.value
        return None


def _error_message(body: Dict[str, Any]) -> str:
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"UptimeRobot returned stat={body.get('stat')!r}"


def _unwrap(result: ApiResult, method: str) -> Any:
    if isinstance(result, ApiOk):
        return result.payload
    if isinstance(result, ApiApplicationError):
        raise UpstreamApiError(result.message)
    raise UpstreamApiError(f"{method} failed: {result.detail}", detail=result.detail)
