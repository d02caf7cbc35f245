"""End-to-end runs of the SSL check with faked UptimeRobot, Slack and TLS endpoints."""

import json
import logging
import ssl
from unittest.mock import AsyncMock, patch

import pytest

from sslwatch.errors import (
    MissingApiKeyError,
    UpstreamApiError,
    WebhookContactMissingError,
    WebhookSendError,
)
from sslwatch.models.uptime import ProbeResult, ProbeTarget
from sslwatch.services.tls_probe import TlsProber
from sslwatch.tasks.ssl_check_job import CheckReport, run_scheduled_check, run_ssl_check

SLACK = {"id": "2", "type": 11, "value": "https://hooks.slack.com/services/T/B/X"}
EMAIL = {"id": "1", "type": 2, "value": "ops@example.test"}


@pytest.mark.asyncio
async def test_missing_key_fails_without_network(settings, make_http, fake_uptime_robot, fake_handshake):
    api = fake_uptime_robot()
    handshake = fake_handshake()

    for key in (None, ""):
        with pytest.raises(MissingApiKeyError, match="No uptime robot API key"):
            await run_ssl_check(
                key, settings=settings, http=make_http(api), prober=TlsProber(handshake=handshake)
            )

    assert api.requests == []
    assert handshake.calls == []


@pytest.mark.asyncio
async def test_only_https_up_monitor_is_probed(settings, make_http, fake_uptime_robot, fake_handshake, scenario_monitors):
    api = fake_uptime_robot(monitors=scenario_monitors, contacts=[SLACK])
    handshake = fake_handshake()

    report = await run_ssl_check(
        "key", settings=settings, http=make_http(api), prober=TlsProber(handshake=handshake)
    )

    assert handshake.calls == [("a.test", 443)]
    assert len(report.results) == 1


@pytest.mark.asyncio
async def test_zero_failures_sends_nothing(settings, make_http, fake_uptime_robot, fake_handshake, scenario_monitors):
    api = fake_uptime_robot(monitors=scenario_monitors, contacts=[SLACK])

    report = await run_ssl_check(
        "key", settings=settings, http=make_http(api), prober=TlsProber(handshake=fake_handshake())
    )

    assert report.message is None
    assert report.notified is False
    assert report.webhook_url == SLACK["value"]
    assert api.webhook_requests() == []
    assert api.paths() == ["/v2/getMonitors", "/v2/getAlertContacts"]


@pytest.mark.asyncio
async def test_failures_are_posted_to_slack(settings, make_http, fake_uptime_robot, fake_handshake):
    monitors = [
        {"id": 1, "friendly_name": "Shop", "url": "https://shop.test", "status": 2},
        {"id": 2, "friendly_name": "Api", "url": "https://api.test:8443/health", "status": 2},
    ]
    api = fake_uptime_robot(monitors=monitors, contacts=[EMAIL, SLACK])
    handshake = fake_handshake(failures={"api.test": ssl.SSLError(1, "[SSL] handshake failure")})

    report = await run_ssl_check(
        "key",
        log_link="https://logs.example.test/stream",
        settings=settings,
        http=make_http(api),
        prober=TlsProber(handshake=handshake),
    )

    assert report.notified is True
    assert [r.target.host for r in report.failures] == ["api.test"]
    posted = api.webhook_requests()
    assert len(posted) == 1
    assert str(posted[0].url) == SLACK["value"]
    body = json.loads(posted[0].content)
    assert body["text"] == "UptimeRobot SSL check: Failed api.test:8443"
    assert "*Failed to check HTTPS for Api*" in body["blocks"][1]["text"]["text"]
    assert body["blocks"][-1]["text"]["text"] == "<https://logs.example.test/stream|Open log for details>"


@pytest.mark.asyncio
async def test_invalid_key_fails_before_probing(settings, make_http, fake_uptime_robot, fake_handshake):
    api = fake_uptime_robot(monitors_body={"stat": "fail", "error": {"message": "invalid key"}})
    handshake = fake_handshake()

    with pytest.raises(UpstreamApiError) as exc_info:
        await run_ssl_check("bad", settings=settings, http=make_http(api), prober=TlsProber(handshake=handshake))

    assert exc_info.value.message == "invalid key"
    assert handshake.calls == []
    assert api.paths() == ["/v2/getMonitors"]


@pytest.mark.asyncio
async def test_no_webhook_contact_fails_after_probes(settings, make_http, fake_uptime_robot, fake_handshake, caplog):
    caplog.set_level(logging.WARNING, logger="sslwatch")
    monitors = [{"id": 1, "url": "https://a.test", "status": 2}]
    api = fake_uptime_robot(monitors=monitors, contacts=[EMAIL])
    handshake = fake_handshake(failures={"a.test": ConnectionRefusedError(111, "Connection refused")})

    with pytest.raises(WebhookContactMissingError, match="No Slack webhook contact") as exc_info:
        await run_ssl_check("key", settings=settings, http=make_http(api), prober=TlsProber(handshake=handshake))

    assert handshake.calls == [("a.test", 443)]
    assert api.webhook_requests() == []
    assert exc_info.value.detail["text"] == "UptimeRobot SSL check: Failed a.test:443"
    assert "No Slack webhook contact in uptime robot" in caplog.text


@pytest.mark.asyncio
async def test_webhook_rejection_fails_the_run(settings, make_http, fake_uptime_robot, fake_handshake):
    monitors = [{"id": 1, "url": "https://a.test", "status": 2}]
    api = fake_uptime_robot(monitors=monitors, contacts=[SLACK], webhook_status=410)
    handshake = fake_handshake(failures={"a.test": ConnectionRefusedError(111, "Connection refused")})

    with pytest.raises(WebhookSendError) as exc_info:
        await run_ssl_check("key", settings=settings, http=make_http(api), prober=TlsProber(handshake=handshake))

    assert "410" in exc_info.value.detail
    assert len(api.webhook_requests()) == 1


@pytest.mark.asyncio
async def test_scheduled_check_logs_and_swallows_errors(caplog):
    caplog.set_level(logging.INFO, logger="sslwatch")

    with patch(
        "sslwatch.tasks.ssl_check_job.run_ssl_check",
        new=AsyncMock(side_effect=UpstreamApiError("invalid key")),
    ):
        await run_scheduled_check()

    assert "UPSTREAM_API_ERROR: invalid key" in caplog.text


@pytest.mark.asyncio
async def test_scheduled_check_logs_unexpected_errors(caplog):
    with patch(
        "sslwatch.tasks.ssl_check_job.run_ssl_check",
        new=AsyncMock(side_effect=RuntimeError("boom")),
    ):
        await run_scheduled_check()

    assert "unexpected error: boom" in caplog.text


@pytest.mark.asyncio
async def test_scheduled_check_reports_summary(caplog):
    caplog.set_level(logging.INFO, logger="sslwatch")

    with patch("sslwatch.tasks.ssl_check_job.run_ssl_check", new=AsyncMock(return_value=CheckReport())):
        await run_scheduled_check()

    assert "ssl_check_job: done probed=0 failed=0 notified=False" in caplog.text


def test_check_report_defaults_are_not_shared():
    target = ProbeTarget(host="a.test", monitor_url="https://a.test", display_name="a.test")
    first, second = CheckReport(), CheckReport()
    first.results.append(ProbeResult(target=target, ok=False, error="TimeoutError"))

    assert len(first.failures) == 1
    assert second.results == []
    assert second.failures == []
    assert second.notified is False
