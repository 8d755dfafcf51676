# Telemetry Package
from telemetry.audit import AuditLogFormatter
from telemetry.drift import MetricsDriftModel
from telemetry.generator import TraceGenerator
from telemetry.scheduler import TelemetryScheduler
from telemetry.state import Mode

__all__ = ["AuditLogFormatter", "MetricsDriftModel", "TraceGenerator", "TelemetryScheduler", "Mode"]
