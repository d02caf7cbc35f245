from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_port: int = 8001

    log_verbose: bool = False
    aws_region: str = "eu-west-1"

    uptime_robot_api_url: str = "https://api.uptimerobot.com/v2"
    uptime_robot_api_key: str = ""  # only used by the scheduler and `python -m sslwatch`
    monitors_page_limit: int = 50

    webhook_host_marker: str = "hooks.slack.com"
    http_timeout_seconds: float = 10.0

    check_interval_minutes: int = 0  # 0 disables the scheduled run

    @field_validator("aws_region")
    @classmethod
    def region_default_when_blank(cls, v: str) -> str:
        return v.strip() or "eu-west-1"

    @field_validator("uptime_robot_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("monitors_page_limit")
    @classmethod
    def page_limit_in_range(cls, v: int) -> int:
        if v < 1 or v > 50:
            raise ValueError("MONITORS_PAGE_LIMIT must be between 1 and 50")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
