"""Slack message building and delivery for failed SSL probes."""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from urllib.parse import quote

from sslwatch.errors import HttpClientError, HttpStatusError, WebhookSendError
from sslwatch.models.message import Block, DividerBlock, HeaderBlock, NotificationMessage, TextBlock
from sslwatch.models.uptime import ProbeResult
from sslwatch.services.http_client import HttpClient, HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_REGION = "eu-west-1"


def cloudwatch_log_link(
    log_group: Optional[str],
    log_stream: Optional[str],
    region: Optional[str] = None,
) -> Optional[str]:
    """Console link to the invocation's log stream, or None outside Lambda."""
    if not log_group:
        return None
    region = region or DEFAULT_REGION
    return (
        f"https://{region}.console.aws.amazon.com/cloudwatch/home?region={region}"
        f"#logsV2:log-groups/log-group/{quote(log_group, safe='')}"
        f"/log-events/{quote(log_stream or '', safe='')}"
    )


def failure_blocks(result: ProbeResult) -> List[Block]:
    target = result.target
    return [
        HeaderBlock(
            text=(
                f"*Failed to check HTTPS for {target.display_name}*\n\n"
                f"Checked {target.host} port {target.port} of {target.monitor_url} and got error"
            )
        ),
        TextBlock(text=result.error or "Unknown error"),
    ]


def format_failures(
    results: Iterable[ProbeResult],
    log_link: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[NotificationMessage]:
    """Summary message for the failed probes, None when everything passed.

    Failures keep the order they are given in, which for probe_all output is
    completion order.
    """
    failures = [r for r in results if r.failed]
    if not failures:
        return None

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    blocks: List[Block] = [HeaderBlock(text=f"*UptimeRobot SSL check* {timestamp}")]
    for i, result in enumerate(failures):
        if i > 0:
            blocks.append(DividerBlock())
        blocks.extend(failure_blocks(result))
    if log_link:
        blocks.append(TextBlock(text=f"<{log_link}|Open log for details>", markdown=True))

    lines = [f"Failed {r.target.host}:{r.target.port}" for r in failures]
    return NotificationMessage(text="UptimeRobot SSL check: " + "\n".join(lines), blocks=blocks)


class SlackNotifier:
    def __init__(self, http: HttpClient, log: Optional[logging.Logger] = None):
        self.http = http
        self.log = log or logger

    async def send(self, webhook_url: str, message: NotificationMessage) -> HttpResponse:
        """POST the message to the webhook. Raises WebhookSendError on any failure."""
        self.log.info(f"Sending to {webhook_url} ({len(message.blocks)} blocks)")
        try:
            res = await self.http.request(webhook_url, method="POST", body=message.to_slack())
        except HttpStatusError as exc:
            self.log.warning(
                f"Request failed {webhook_url} {exc.response.status_code} {exc.response.reason}"
            )
            raise WebhookSendError("Slack send failed!", detail=str(exc)) from exc
        except HttpClientError as exc:
            self.log.warning(f"Request failed {webhook_url} {exc}")
            raise WebhookSendError("Slack send failed!", detail=str(exc)) from exc

        self.log.info(f"Got response {res.status_code} body {res.content_type} {res.body}")
        return res
