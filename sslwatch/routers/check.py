"""Check router: GET /v1/health, GET|POST /v1/ssl-check."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from sslwatch import __version__
from sslwatch.config import get_settings
from sslwatch.errors import (
    CheckError,
    MissingApiKeyError,
    UpstreamApiError,
    WebhookContactMissingError,
    WebhookSendError,
)
from sslwatch.tasks.ssl_check_job import run_ssl_check

logger = logging.getLogger(__name__)
router = APIRouter()

_ERROR_STATUS = {
    MissingApiKeyError: 400,
    UpstreamApiError: 502,
    WebhookContactMissingError: 424,
    WebhookSendError: 502,
}


@router.get("/v1/health")
async def health():
    return {"status": "ok", "version": __version__}


@router.api_route("/v1/ssl-check", methods=["GET", "POST"])
async def ssl_check(api_key: Optional[str] = Query(None, alias="apiKey")):
    """Run one check against the UptimeRobot account behind `apiKey`."""
    try:
        report = await run_ssl_check(api_key, settings=get_settings())
    except CheckError as exc:
        logger.warning(f"ssl_check failed: {exc.code} {exc.message}")
        raise HTTPException(
            status_code=_ERROR_STATUS.get(type(exc), 500),
            detail={"error": exc.message, "code": exc.code},
        ) from exc

    return {
        "status": "OK",
        "probed": len(report.results),
        "failed": len(report.failures),
        "notified": report.notified,
    }
