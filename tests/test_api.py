"""
HTTP API Tests

The app's dependencies are overridden with a scheduler built on a
seeded random source and an in-memory feed. The lifespan is not
entered, so no background loops run.

Run: pytest tests/test_api.py
"""

import asyncio
import random

import pytest
from fastapi.testclient import TestClient

from agents.diagnosis_agent import DiagnosisAgent
from app.core.config import settings
from app.dependencies import get_diagnosis_desk, get_runner, get_scheduler
from app.main import app
from conftest import FakeFeed
from telemetry.diagnosis import DiagnosisDesk
from telemetry.drift import MetricsDriftModel
from telemetry.generator import TraceGenerator
from telemetry.runner import TelemetryRunner
from telemetry.scheduler import RESTART_RECORD_ID, TelemetryScheduler


async def canned_generate(prompt, system_prompt=None):
    return "All six stages succeeded.", {}


@pytest.fixture
def scheduler():
    rng = random.Random(42)
    return TelemetryScheduler(
        generator=TraceGenerator(rng=rng),
        drift=MetricsDriftModel(rng=rng),
        feed=FakeFeed(debug_text="raw backend dump"),
        restart_delay_seconds=60,
    )


@pytest.fixture
def client(scheduler):
    runner = TelemetryRunner(scheduler)
    desk = DiagnosisDesk(DiagnosisAgent(generate=canned_generate))
    app.dependency_overrides[get_runner] = lambda: runner
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    app.dependency_overrides[get_diagnosis_desk] = lambda: desk
    yield TestClient(app)
    app.dependency_overrides.clear()


def tick(scheduler, times=1):
    for _ in range(times):
        asyncio.run(scheduler.tick())


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_logs_are_camel_case_newest_first(client, scheduler):
    tick(scheduler, 3)
    data = client.get("/v1/logs").json()

    assert len(data) == 3
    assert data[0]["id"] == scheduler.logs[0].id
    assert data[0]["durationMs"] == 275
    assert len(data[0]["auditLog"].split("|")) == 8


def test_get_single_log_and_404(client, scheduler):
    tick(scheduler)
    record_id = scheduler.logs[0].id
    assert client.get(f"/v1/logs/{record_id}").json()["id"] == record_id
    assert client.get("/v1/logs/REQ-MISSING").status_code == 404


def test_status_and_metrics(client):
    status = client.get("/v1/status").json()
    assert status["mode"] == "simulated"
    assert status["paused"] is False
    assert status["hostname"]
    assert status["dataAge"] == "0s"
    assert "lastUpdated" in status
    assert "last_updated" not in status

    metrics = client.get("/v1/metrics").json()
    assert metrics["heapMemory"]["value"] == 512
    assert metrics["heapMemory"]["max"] == 2048
    assert set(metrics) == {"jettyThreads", "heapMemory", "ldapLatency", "dbPool"}


def test_pause_resume_and_force_live(client, scheduler):
    assert client.post("/v1/pause").json()["paused"] is True
    assert scheduler.paused is True
    assert client.post("/v1/resume").json()["paused"] is False
    assert client.post("/v1/mode/live").json()["mode"] == "live"


def test_chart(client, scheduler):
    tick(scheduler, 25)
    points = client.get("/v1/chart").json()
    assert len(points) == 20
    assert set(points[0]) == {"time", "duration", "status"}


def test_restart_requires_confirmation(client, scheduler):
    response = client.post("/v1/restart", json={"confirm": False})
    assert response.status_code == 400
    assert scheduler.restarting is False


def test_restart_flow(client, scheduler):
    response = client.post("/v1/restart", json={"confirm": True})
    assert response.status_code == 202
    assert response.json()["recordId"] == RESTART_RECORD_ID

    assert scheduler.restarting is True
    assert client.get("/v1/logs").json()[0]["id"] == RESTART_RECORD_ID
    assert client.get("/v1/metrics").json()["jettyThreads"]["value"] == 0

    assert client.post("/v1/restart", json={"confirm": True}).status_code == 409
    assert client.post("/v1/pause").status_code == 409


def test_diagnosis_endpoints(client, scheduler):
    tick(scheduler)
    record_id = scheduler.logs[0].id

    response = client.post(f"/v1/logs/{record_id}/diagnosis")
    assert response.status_code == 200
    assert response.json()["analysis"] == "All six stages succeeded."
    assert response.json()["recordId"] == record_id

    assert client.delete(f"/v1/logs/{record_id}/diagnosis").status_code == 204
    assert client.post("/v1/logs/REQ-MISSING/diagnosis").status_code == 404


def test_debug_passthrough(client):
    response = client.get("/v1/debug")
    assert response.status_code == 200
    assert response.text == "raw backend dump"


def test_entrypoint_serves_on_configured_address(monkeypatch):
    import app.__main__ as entrypoint

    calls = []
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    entrypoint.main()

    target, kwargs = calls[0]
    assert target == "app.main:app"
    assert kwargs["host"] == settings.api_host
    assert kwargs["port"] == settings.api_port
