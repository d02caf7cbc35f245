"""Exception hierarchy shared by the HTTP client and the check pipeline."""

from typing import Any, Optional


class HttpClientError(Exception):
    """Base class for failed outbound HTTP calls."""


class HttpStatusError(HttpClientError):
    """Response arrived but its status is outside 200-399. The response is kept for inspection."""

    def __init__(self, response: Any):
        self.response = response
        super().__init__(f"{response.status_code} {response.reason}".strip())


class HttpTransportError(HttpClientError):
    """DNS failure, refused connection, timeout and friends."""

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}" if str(cause) else type(cause).__name__)


class HttpDecodeError(HttpClientError):
    """Body was declared as JSON but could not be parsed."""

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"Invalid JSON body from {url}: {cause}")


class CheckError(Exception):
    """Invocation-level failure of an SSL check run."""

    code = "CHECK_FAILED"

    def __init__(self, message: str, detail: Optional[Any] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class MissingApiKeyError(CheckError):
    code = "API_KEY_MISSING"

    def __init__(self, message: str = "No uptime robot API key"):
        super().__init__(message)


class UpstreamApiError(CheckError):
    code = "UPSTREAM_API_ERROR"


class WebhookContactMissingError(CheckError):
    code = "NO_WEBHOOK_CONTACT"

    def __init__(self, message: str = "No Slack webhook contact", detail: Optional[Any] = None):
        super().__init__(message, detail)


class WebhookSendError(CheckError):
    code = "WEBHOOK_SEND_FAILED"
