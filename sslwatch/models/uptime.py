"""UptimeRobot API payloads and the per-invocation probe types derived from them."""

from enum import IntEnum
from typing import List, Optional, Union

from pydantic import BaseModel


class MonitorStatus(IntEnum):
    PAUSED = 0
    NOT_CHECKED_YET = 1
    UP = 2
    SEEMS_DOWN = 8
    DOWN = 9


class Monitor(BaseModel):
    id: Union[int, str]
    friendly_name: str = ""
    url: str = ""
    status: int

    @property
    def display_name(self) -> str:
        return self.friendly_name or self.url


class AlertContact(BaseModel):
    id: Optional[Union[int, str]] = None
    type: Optional[Union[int, str]] = None
    value: str = ""


class ApiErrorBody(BaseModel):
    type: Optional[str] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    offset: int = 0
    limit: int = 50
    total: int = 0


class MonitorsEnvelope(BaseModel):
    stat: str
    monitors: List[Monitor] = []
    pagination: Optional[Pagination] = None
    error: Optional[ApiErrorBody] = None


class AlertContactsEnvelope(BaseModel):
    stat: str
    alert_contacts: List[AlertContact] = []
    error: Optional[ApiErrorBody] = None


class ProbeTarget(BaseModel):
    host: str
    port: int = 443
    monitor_url: str
    display_name: str


class ProbeResult(BaseModel):
    target: ProbeTarget
    ok: bool
    error: Optional[str] = None  # set only when ok is False
    cert_expires: Optional[str] = None

    @property
    def failed(self) -> bool:
        return not self.ok
