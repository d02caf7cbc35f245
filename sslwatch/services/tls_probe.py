"""Bare TLS handshake probes fanned out over the UptimeRobot monitor list."""

import asyncio
import logging
import socket
import ssl
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlsplit

import certifi

from sslwatch.models.uptime import Monitor, MonitorStatus, ProbeResult, ProbeTarget

logger = logging.getLogger(__name__)

DEFAULT_PORT = 443
TIMEOUT_SECONDS = 10

Handshake = Callable[[str, int, float], Dict[str, Any]]


def _handshake_sync(hostname: str, port: int, timeout: float) -> Dict[str, Any]:
    """Blocking TLS connect, run in executor. Raises on any handshake failure."""
    context = ssl.create_default_context(cafile=certifi.where())
    with socket.create_connection((hostname, port), timeout=timeout) as sock:
        with context.wrap_socket(sock, server_hostname=hostname) as ssock:
            cert = ssock.getpeercert() or {}
            return {"cipher": ssock.cipher(), "not_after": cert.get("notAfter")}


def select_monitors(monitors: Iterable[Monitor]) -> List[Monitor]:
    """HTTPS monitors that UptimeRobot currently reports as up.

    Paused, not-yet-checked and down monitors are left to UptimeRobot itself.
    """
    https_only = [m for m in monitors if m.url.startswith("https://")]
    return [m for m in https_only if m.status == MonitorStatus.UP]


def target_for(monitor: Monitor) -> ProbeTarget:
    """Raises ValueError when the monitor URL has no usable host or port."""
    parsed = urlsplit(monitor.url)
    hostname = parsed.hostname
    if not hostname:
        raise ValueError(f"No host in monitor URL {monitor.url!r}")
    return ProbeTarget(
        host=hostname,
        port=parsed.port or DEFAULT_PORT,
        monitor_url=monitor.url,
        display_name=monitor.display_name,
    )


def _fallback_target(monitor: Monitor) -> ProbeTarget:
    netloc = urlsplit(monitor.url).netloc
    return ProbeTarget(
        host=netloc.rsplit(":", 1)[0] or monitor.url,
        port=DEFAULT_PORT,
        monitor_url=monitor.url,
        display_name=monitor.display_name,
    )


def describe_error(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class TlsProber:
    """Runs one handshake per selected monitor and waits for all of them."""

    def __init__(
        self,
        timeout: float = TIMEOUT_SECONDS,
        verbose: bool = False,
        log: Optional[logging.Logger] = None,
        handshake: Optional[Handshake] = None,
    ):
        self.timeout = timeout
        self.verbose = verbose
        self.log = log or logger
        self.handshake = handshake or _handshake_sync

    async def probe_monitor(
        self, monitor: Monitor, executor: Optional[Executor] = None
    ) -> ProbeResult:
        """Never raises: every outcome, including bad URLs, becomes a ProbeResult."""
        try:
            target = target_for(monitor)
        except ValueError as exc:
            return self._failed(_fallback_target(monitor), exc)

        self.log.info(f"Checking {target.display_name} {target.monitor_url}")
        try:
            loop = asyncio.get_running_loop()
            info = await loop.run_in_executor(
                executor, self.handshake, target.host, target.port, self.timeout
            )
        except Exception as exc:
            return self._failed(target, exc)

        not_after = info.get("not_after") if isinstance(info, dict) else None
        self.log.info(
            f"Connected to {target.host} {target.port} "
            f"expires={not_after} days_left={_days_left(not_after)}"
        )
        return ProbeResult(target=target, ok=True, cert_expires=not_after)

    async def probe_all(self, monitors: Iterable[Monitor]) -> List[ProbeResult]:
        """Probe every selected monitor concurrently.

        Each handshake gets its own worker thread so they all start together.
        Results come back in completion order. Appends happen on the event loop
        thread only, the executor threads never touch the list.
        """
        selected = select_monitors(monitors)
        results: List[ProbeResult] = []
        if not selected:
            self.log.info("No HTTPS monitors up, nothing to probe")
            return results

        executor = ThreadPoolExecutor(
            max_workers=len(selected), thread_name_prefix="tls-probe"
        )
        try:
            tasks = [
                asyncio.ensure_future(self.probe_monitor(m, executor)) for m in selected
            ]
            for next_done in asyncio.as_completed(tasks):
                results.append(await next_done)
        finally:
            executor.shutdown(wait=False)

        failed = sum(1 for r in results if r.failed)
        self.log.info(f"Probed {len(results)} monitors, {failed} failed")
        return results

    def _failed(self, target: ProbeTarget, exc: BaseException) -> ProbeResult:
        detail = repr(exc) if self.verbose else str(exc)
        self.log.warning(f"Failed {target.host} {target.port} {detail}")
        return ProbeResult(target=target, ok=False, error=describe_error(exc))


def _days_left(not_after: Optional[str]) -> Optional[int]:
    if not not_after:
        return None
    try:
        expiry = datetime.strptime(not_after, "%b %d %H:%M:%S %Y %Z").replace(
            tzinfo=timezone.utc
        )
        return (expiry - datetime.now(timezone.utc)).days
    except ValueError:
        return None
