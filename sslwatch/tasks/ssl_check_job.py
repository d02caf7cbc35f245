"""SSL check run: UptimeRobot monitors -> TLS probes -> Slack.

One run is stateless. Probe failures are collected and reported; everything
else that goes wrong (no key, UptimeRobot errors, no Slack contact, Slack
rejecting the message) ends the run with a CheckError.
"""

import json
import logging
from typing import List, Optional

from pydantic import BaseModel

from sslwatch.config import Settings, get_settings
from sslwatch.errors import CheckError, MissingApiKeyError, WebhookContactMissingError
from sslwatch.models.message import NotificationMessage
from sslwatch.models.uptime import ProbeResult
from sslwatch.services.http_client import HttpClient
from sslwatch.services.notifier import SlackNotifier, format_failures
from sslwatch.services.tls_probe import TlsProber
from sslwatch.services.uptime_robot import UptimeRobotClient

logger = logging.getLogger(__name__)


class CheckReport(BaseModel):
    results: List[ProbeResult] = []
    message: Optional[NotificationMessage] = None
    webhook_url: Optional[str] = None
    notified: bool = False

    @property
    def failures(self) -> List[ProbeResult]:
        return [r for r in self.results if r.failed]


async def run_ssl_check(
    api_key: Optional[str],
    log_link: Optional[str] = None,
    settings: Optional[Settings] = None,
    http: Optional[HttpClient] = None,
    prober: Optional[TlsProber] = None,
) -> CheckReport:
    if not api_key:
        logger.warning("No uptime robot API key")
        raise MissingApiKeyError()

    settings = settings or get_settings()
    http = http or HttpClient(timeout=settings.http_timeout_seconds, verbose=settings.log_verbose)
    prober = prober or TlsProber(timeout=settings.http_timeout_seconds, verbose=settings.log_verbose)
    uptime = UptimeRobotClient(
        http,
        api_url=settings.uptime_robot_api_url,
        webhook_host_marker=settings.webhook_host_marker,
        page_limit=settings.monitors_page_limit,
    )

    monitors = await uptime.list_monitors(api_key)
    report = CheckReport(results=await prober.probe_all(monitors))
    report.message = format_failures(report.results, log_link=log_link)

    report.webhook_url = await uptime.find_webhook_url(api_key)
    if not report.webhook_url:
        payload = report.message.to_slack() if report.message else None
        logger.warning(f"No Slack webhook contact in uptime robot, payload {json.dumps(payload, indent=2)}")
        raise WebhookContactMissingError(detail=payload)

    if report.message:
        await SlackNotifier(http).send(report.webhook_url, report.message)
        report.notified = True
    else:
        logger.info(f"All {len(report.results)} probes passed, nothing to send")

    return report


async def run_scheduled_check() -> None:
    """APScheduler entry: uses UPTIME_ROBOT_API_KEY and never raises."""
    settings = get_settings()
    logger.info("ssl_check_job: starting")
    try:
        report = await run_ssl_check(settings.uptime_robot_api_key, settings=settings)
        logger.info(
            f"ssl_check_job: done probed={len(report.results)} "
            f"failed={len(report.failures)} notified={report.notified}"
        )
    except CheckError as exc:
        logger.error(f"ssl_check_job: {exc.code}: {exc.message}")
    except Exception as exc:
        logger.error(f"ssl_check_job: unexpected error: {exc}", exc_info=True)
