import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from clients.live_feed import FeedError
from schemas.health import HealthReport
from telemetry.drift import MetricsDriftModel
from telemetry.generator import TraceGenerator
from telemetry.scheduler import TelemetryScheduler


class FixedClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 27, 9, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedRandom(random.Random):
    """
    random() returns scripted values first, then falls back to the seeded
    stream. choice() is unaffected (it draws from getrandbits).
    """

    def __init__(self, script=(), seed: int = 7):
        self._script = list(script)
        super().__init__(seed)

    def random(self) -> float:
        if self._script:
            return self._script.pop(0)
        return super().random()

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


class FakeFeed:
    """In-memory stand-in for LiveFeedClient."""

    base_url = "http://feed.test/api"

    def __init__(self, report=None, batches=None, debug_text="debug"):
        self.report = report
        self.batches = list(batches or [])
        self.debug_text = debug_text
        self.fetches = 0

    async def health(self) -> HealthReport:
        if isinstance(self.report, Exception):
            raise self.report
        return self.report

    async def fetch_logs(self):
        self.fetches += 1
        batch = self.batches.pop(0) if self.batches else FeedError("feed exhausted")
        if isinstance(batch, Exception):
            raise batch
        return batch

    async def debug(self) -> str:
        return self.debug_text

    async def close(self) -> None:
        pass


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(2024)


@pytest.fixture
def generator(rng, clock) -> TraceGenerator:
    return TraceGenerator(rng=rng, clock=clock)


@pytest.fixture
def make_scheduler(rng, clock):
    def _make(feed=None, sink=None, sleep=None, capacity=50, restart_delay_seconds=5.0):
        return TelemetryScheduler(
            generator=TraceGenerator(rng=rng, clock=clock),
            drift=MetricsDriftModel(rng=rng),
            feed=feed,
            clock=clock,
            sleep=sleep,
            sink=sink,
            capacity=capacity,
            restart_delay_seconds=restart_delay_seconds,
        )
    return _make
