from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from schemas.trace import WireModel


class Mode(str, Enum):
    SIMULATED = "simulated"
    LIVE = "live"


class SchedulerSnapshot(WireModel):
    """
    Point-in-time view of the scheduler flags (read-only).
    """
    mode: Mode
    paused: bool
    restarting: bool
    last_updated: datetime
    data_age: str = Field(..., description="Seconds since the last successful update, e.g. '3s'")
    error: Optional[str] = Field(default=None, description="Transient feed error, cleared on next success")
    warning: Optional[str] = Field(default=None, description="Persistent warning from the startup probe")
    log_count: int = 0


class ChartPoint(WireModel):
    """One point of the response-time chart."""
    time: str
    duration: int
    status: int = Field(..., description="1 for SUCCESS, 0 otherwise")
