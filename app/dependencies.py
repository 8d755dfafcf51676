"""
FastAPI Dependencies

All object creation happens here, not per request.
This module wires the telemetry engine for the API layer.

RULE: routes talk to the TelemetryRunner / TelemetryScheduler only.
"""

import random
from functools import lru_cache

from agents.diagnosis_agent import DiagnosisAgent
from app.core.config import settings
from clients.live_feed import LiveFeedClient
from observability.sink import build_sink
from telemetry.diagnosis import DiagnosisDesk
from telemetry.drift import MetricsDriftModel
from telemetry.generator import TraceGenerator
from telemetry.runner import TelemetryRunner
from telemetry.scheduler import TelemetryScheduler


@lru_cache(maxsize=1)
def get_runner() -> TelemetryRunner:
    """
    Create and cache the TelemetryRunner singleton.

    All components are wired here:
    - TraceGenerator and MetricsDriftModel share one random source
    - LiveFeedClient: backend health/logs/debug
    - TelemetryScheduler: owns buffer, gauges and mode flags

    Returns:
        TelemetryRunner: drives the scheduler on the event loop.
    """
    rng = random.Random(settings.random_seed)
    generator = TraceGenerator(
        rng=rng,
        error_rate=settings.error_rate,
        hostname=settings.idp_hostname,
    )
    scheduler = TelemetryScheduler(
        generator=generator,
        drift=MetricsDriftModel(rng=rng),
        feed=LiveFeedClient(settings.feed_base_url, timeout_seconds=settings.feed_timeout_seconds),
        sink=build_sink(settings.record_sink),
        capacity=settings.log_buffer_capacity,
        restart_delay_seconds=settings.restart_delay_seconds,
    )
    return TelemetryRunner(
        scheduler,
        tick_interval_seconds=settings.tick_interval_seconds,
        data_age_interval_seconds=settings.data_age_interval_seconds,
    )


def get_scheduler() -> TelemetryScheduler:
    return get_runner().scheduler


@lru_cache(maxsize=1)
def get_diagnosis_desk() -> DiagnosisDesk:
    return DiagnosisDesk(DiagnosisAgent())
