"""Shared pytest fixtures: UptimeRobot, Slack and TLS endpoints are all faked."""

import os
from typing import Callable, Dict, List, Optional

import httpx
import pytest

# Keep the scheduler off and the local .env out of the picture.
os.environ["CHECK_INTERVAL_MINUTES"] = "0"
os.environ.pop("UPTIME_ROBOT_API_KEY", None)

NOT_AFTER = "Jan  1 00:00:00 2099 GMT"


def monitor(id, url, status=2, name=None):
    return {"id": id, "friendly_name": name or f"monitor {id}", "url": url, "status": status}


class FakeUptimeRobot:
    """MockTransport handler for getMonitors, getAlertContacts and the Slack webhook."""

    def __init__(
        self,
        monitors: Optional[List[Dict]] = None,
        contacts: Optional[List[Dict]] = None,
        monitors_body: Optional[Dict] = None,
        webhook_status: int = 200,
    ):
        self.monitors_body = monitors_body or {"stat": "ok", "monitors": monitors or []}
        self.contacts_body = {"stat": "ok", "alert_contacts": contacts or []}
        self.webhook_status = webhook_status
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/getMonitors"):
            return httpx.Response(200, json=self.monitors_body)
        if request.url.path.endswith("/getAlertContacts"):
            return httpx.Response(200, json=self.contacts_body)
        if request.url.host == "hooks.slack.com":
            return httpx.Response(self.webhook_status, text="ok" if self.webhook_status == 200 else "no_service")
        return httpx.Response(404, text="not found")

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def webhook_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "hooks.slack.com"]


class FakeHandshake:
    """Stands in for the blocking TLS connect; records every host:port it was asked for."""

    def __init__(self, failures: Optional[Dict[str, BaseException]] = None, delays: Optional[Dict[str, float]] = None):
        self.failures = failures or {}
        self.delays = delays or {}
        self.calls: List[tuple] = []

    def __call__(self, host: str, port: int, timeout: float) -> Dict:
        import time

        self.calls.append((host, port))
        if host in self.delays:
            time.sleep(self.delays[host])
        if host in self.failures:
            raise self.failures[host]
        return {"cipher": ("TLS_AES_128_GCM_SHA256", "TLSv1.3", 128), "not_after": NOT_AFTER}


@pytest.fixture
def settings():
    from sslwatch.config import Settings

    return Settings(_env_file=None, log_verbose=False, check_interval_minutes=0)


@pytest.fixture
def make_http() -> Callable:
    from sslwatch.services.http_client import HttpClient

    def _make(handler, **kwargs):
        return HttpClient(transport=httpx.MockTransport(handler), **kwargs)

    return _make


@pytest.fixture
def client():
    """TestClient for the FastAPI app, scheduler disabled."""
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def fake_uptime_robot():
    return FakeUptimeRobot


@pytest.fixture
def fake_handshake():
    return FakeHandshake


@pytest.fixture
def scenario_monitors():
    """One HTTPS/up, one plain HTTP/up and one HTTPS/paused monitor."""
    return [
        monitor(1, "https://a.test", status=2, name="A"),
        monitor(2, "http://b.test", status=2, name="B"),
        monitor(3, "https://c.test", status=0, name="C"),
    ]
