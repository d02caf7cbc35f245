"""AWS Lambda entry point.

Event: API Gateway style, `{"queryStringParameters": {"apiKey": "<uptime robot key>"}}`.
Context: the Lambda context object; `log_group_name` / `log_stream_name` feed
the "Open log for details" link in the Slack message.

Failures are raised as CheckError subclasses so the Lambda runtime reports
them as the invocation error.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from sslwatch.config import Settings, get_settings
from sslwatch.services.notifier import cloudwatch_log_link
from sslwatch.tasks.ssl_check_job import run_ssl_check

logger = logging.getLogger(__name__)

OK_RESPONSE = {
    "statusCode": 200,
    "headers": {"Content-Type": "application/json"},
    "body": json.dumps({"status": "OK"}),
}


def api_key_from_event(event: Optional[Dict[str, Any]]) -> Optional[str]:
    params = (event or {}).get("queryStringParameters") or {}
    return params.get("apiKey") or None


def _redacted(event: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    event = dict(event or {})
    params = event.get("queryStringParameters")
    if isinstance(params, dict) and "apiKey" in params:
        event["queryStringParameters"] = {**params, "apiKey": "***"}
    return event


def handler(event: Optional[Dict[str, Any]], context: Any, settings: Optional[Settings] = None) -> Dict[str, Any]:
    logging.getLogger().setLevel(logging.INFO)
    settings = settings or get_settings()
    logger.info(f"Got event {json.dumps(_redacted(event), indent=2, default=str)}")

    log_link = cloudwatch_log_link(
        getattr(context, "log_group_name", None),
        getattr(context, "log_stream_name", None),
        settings.aws_region,
    )
    asyncio.run(run_ssl_check(api_key_from_event(event), log_link=log_link, settings=settings))
    return dict(OK_RESPONSE)
