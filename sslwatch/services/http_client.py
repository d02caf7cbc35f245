"""Async HTTP wrapper used for every outbound API and webhook call."""

import json
import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from sslwatch.errors import HttpDecodeError, HttpStatusError, HttpTransportError

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 10
USER_AGENT = "SSLWatch/1.0"


class HttpResponse(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_code: int
    reason: str
    headers: httpx.Headers
    body: Any  # parsed JSON for application/json responses, raw text otherwise

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")


def is_json_content_type(content_type: str) -> bool:
    return content_type == "application/json" or content_type.startswith("application/json;")


def encode_body(body: Any) -> Optional[str]:
    """Strings go out untouched; anything else is serialized to compact JSON."""
    if body is None:
        return None
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(",", ":"))


class HttpClient:
    """One request per call, no retries, 2xx-3xx counts as success.

    `verbose` adds the full response (headers and body) to the log. Payload
    contents are never logged, only their size.
    """

    def __init__(
        self,
        timeout: float = TIMEOUT_SECONDS,
        verbose: bool = False,
        log: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.verbose = verbose
        self.log = log or logger
        self._transport = transport

    async def request(
        self,
        url: str,
        method: str = "GET",
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        method = method.upper()
        payload = encode_body(body)
        request_headers = httpx.Headers({"User-Agent": USER_AGENT})
        content = None

        if payload is not None:
            content = payload.encode("utf-8")
            request_headers["Content-Length"] = str(len(content))
            if not isinstance(body, str):
                request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        size = f"payload {len(content)} bytes" if content is not None else ""
        self.log.info(f"HTTP {method} {url} {size}")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, url, content=content, headers=request_headers)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise HttpTransportError(url, exc) from exc

        self._log_response(resp)
        ok = 200 <= resp.status_code <= 399
        response = HttpResponse(
            status_code=resp.status_code,
            reason=resp.reason_phrase,
            headers=resp.headers,
            body=self._decode(url, resp) if ok else self._decode_lenient(resp),
        )

        if ok:
            return response
        raise HttpStatusError(response)

    def _decode(self, url: str, resp: httpx.Response) -> Any:
        text = resp.text
        if is_json_content_type(resp.headers.get("content-type", "")):
            try:
                return json.loads(text)
            except ValueError as exc:
                raise HttpDecodeError(url, exc) from exc
        return text

    def _decode_lenient(self, resp: httpx.Response) -> Any:
        # error bodies are best effort, keep the raw text when JSON is broken
        if is_json_content_type(resp.headers.get("content-type", "")):
            try:
                return json.loads(resp.text)
            except ValueError:
                return resp.text
        return resp.text

    def _log_response(self, resp: httpx.Response) -> None:
        if not self.verbose:
            return
        self.log.info(f"Got response {resp.status_code} {resp.reason_phrase}")
        self.log.info(f"Response headers {dict(resp.headers)}")
        self.log.info(f"Response body {resp.text}")
