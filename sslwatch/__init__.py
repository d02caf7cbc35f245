"""Scheduled TLS handshake checks for UptimeRobot HTTPS monitors, reported to Slack."""

__version__ = "0.1.0"
