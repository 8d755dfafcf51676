"""
Health Schemas

IdP system-health gauges and the live-feed health report.
"""

from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from schemas.trace import WireModel


class MetricStatus(str, Enum):
    """Display classification of a gauge."""
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


WARNING_RATIO = 0.75
CRITICAL_RATIO = 0.90


def classify(value: float, maximum: float) -> MetricStatus:
    """Classify a gauge by how full it is."""
    if maximum <= 0:
        return MetricStatus.HEALTHY
    ratio = value / maximum
    if ratio > CRITICAL_RATIO:
        return MetricStatus.CRITICAL
    if ratio > WARNING_RATIO:
        return MetricStatus.WARNING
    return MetricStatus.HEALTHY


class SystemMetric(WireModel):
    """
    A single gauge.

    The container does not enforce 0 <= value <= max; the drift
    model does.
    """

    name: str
    value: Union[int, float]
    unit: str
    max: float
    status: MetricStatus = MetricStatus.HEALTHY

    @property
    def percentage(self) -> float:
        return (self.value / self.max) * 100 if self.max else 0.0

    def with_value(self, value: Union[int, float]) -> "SystemMetric":
        """Copy with a new value and a re-derived status."""
        return self.model_copy(update={"value": value, "status": classify(value, self.max)})


class IdpHealth(WireModel):
    """The four fixed gauges of the IdP host. camelCase on the wire (jettyThreads, ...)."""

    jetty_threads: SystemMetric
    heap_memory: SystemMetric
    ldap_latency: SystemMetric
    db_pool: SystemMetric

    SLOTS: ClassVar[Tuple[str, ...]] = ("jetty_threads", "heap_memory", "ldap_latency", "db_pool")

    def gauge_values(self) -> tuple:
        return tuple(getattr(self, slot).value for slot in self.SLOTS)

    def with_values(self, *values: Union[int, float]) -> "IdpHealth":
        """Copy with the four gauge values replaced, in slot order."""
        if len(values) != len(self.SLOTS):
            raise ValueError(f"Expected {len(self.SLOTS)} values, got {len(values)}")
        return self.model_copy(update={
            slot: getattr(self, slot).with_value(value)
            for slot, value in zip(self.SLOTS, values)
        })


BASELINE_VALUES = (24, 512, 12, 5)


def baseline_health() -> IdpHealth:
    """Gauges as they read on a freshly started IdP."""
    return IdpHealth(
        jetty_threads=SystemMetric(name="Jetty threads", value=24, max=200, unit="threads"),
        heap_memory=SystemMetric(name="JVM heap", value=512, max=2048, unit="MB"),
        ldap_latency=SystemMetric(name="LDAP latency", value=12, max=150, unit="ms"),
        db_pool=SystemMetric(name="DB connection pool", value=5, max=50, unit="connections"),
    )


class HealthReport(BaseModel):
    """
    Response of the live feed's health endpoint.

    Older backends report file_exists=false instead of
    dataSourceMissing=true; both mean the log source is missing.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str = Field(..., description="'ok' when the feed is usable")
    data_source_missing: bool = Field(default=False, alias="dataSourceMissing")
    file_exists: Optional[bool] = None

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def source_missing(self) -> bool:
        return self.data_source_missing or self.file_exists is False
