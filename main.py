import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from sslwatch import __version__
from sslwatch.config import get_settings
from sslwatch.routers import check as check_router
from sslwatch.tasks.ssl_check_job import run_scheduled_check

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SSL Watch starting...")
    settings = get_settings()
    scheduler = None

    if settings.check_interval_minutes > 0 and settings.uptime_robot_api_key:
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_scheduled_check,
            "interval",
            minutes=settings.check_interval_minutes,
            id="ssl_check_job",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(f"SSL check scheduler started (interval={settings.check_interval_minutes}m)")
    else:
        logger.info("SSL check scheduler disabled, set UPTIME_ROBOT_API_KEY and CHECK_INTERVAL_MINUTES")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
    logger.info("SSL Watch shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="SSL Watch",
        description=(
            "TLS handshake checks for UptimeRobot HTTPS monitors. "
            "Failures are posted to the account's Slack webhook alert contact."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(check_router.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host="0.0.0.0", port=settings.app_port, reload=False)
