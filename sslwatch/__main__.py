"""Run one SSL check locally: `UPTIME_ROBOT_API_KEY=... python -m sslwatch`."""

import logging
import sys

from sslwatch.config import get_settings
from sslwatch.errors import CheckError
from sslwatch.handler import handler


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    settings = get_settings()
    event = {"queryStringParameters": {"apiKey": settings.uptime_robot_api_key}}
    try:
        result = handler(event, None, settings=settings)
    except CheckError as exc:
        logging.getLogger("sslwatch").error(f"{exc.code}: {exc.message}")
        return 1
    print(result["body"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
