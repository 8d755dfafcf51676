"""
Telemetry Scheduler

Owns the monitor's mutable state and advances it one tick at a time.

Orchestrates each tick:
1. Skip entirely while paused or restarting
2. Live mode: fetch the feed and reconcile the buffer by id sequence
   Simulated mode: generate one transaction and prepend it
3. Drift the health gauges

DESIGN RULES:
- All state lives on this object; nothing module-level
- Clock, random source and sleep are injected
- A failed tick never raises; the next tick is the retry
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from clients.live_feed import FeedError, LiveFeedClient
from observability.sink import RecordSink
from schemas.health import BASELINE_VALUES, IdpHealth, baseline_health
from schemas.trace import RequestLog, RequestStatus
from telemetry.audit import SYSTEM_STOP_EVENT
from telemetry.drift import MetricsDriftModel
from telemetry.generator import TraceGenerator, utc_now
from telemetry.state import ChartPoint, Mode, SchedulerSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50
DEFAULT_RESTART_DELAY_SECONDS = 5.0

FEED_ERROR = "backend connection interrupted"
SOURCE_MISSING_WARNING = "log source missing"

RESTART_RECORD_ID = "SYS-RESTART"
RESTART_LINES = (
    "*** SYSTEM SHUTDOWN INITIATED ***",
    "Stopping Jetty Service...",
    "Cleaning up threads...",
)


class SchedulerError(Exception):
    """Base error for refused operator actions."""


class RestartNotConfirmedError(SchedulerError):
    """Restart requested without operator confirmation."""


class RestartInProgressError(SchedulerError):
    """Action refused because a restart is running."""


class TelemetryScheduler:
    """
    The tick state machine.

    State: mode, paused, restarting, logs (newest first, bounded),
    health, last_updated, error, warning, data_age.
    """

    def __init__(
        self,
        generator: TraceGenerator,
        drift: MetricsDriftModel,
        feed: Optional[LiveFeedClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        sink: Optional[RecordSink] = None,
        capacity: int = DEFAULT_CAPACITY,
        restart_delay_seconds: float = DEFAULT_RESTART_DELAY_SECONDS,
    ):
        self._generator = generator
        self._drift = drift
        self._feed = feed
        self._clock = clock or utc_now
        self._sleep = sleep or asyncio.sleep
        self._sink = sink
        self._capacity = capacity
        self._restart_delay = restart_delay_seconds

        self.mode = Mode.SIMULATED
        self.paused = False
        self.restarting = False
        self.health: IdpHealth = baseline_health()
        self.last_updated: datetime = self._clock()
        self.data_age = "0s"
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self._logs: Tuple[RequestLog, ...] = ()

    @property
    def logs(self) -> Tuple[RequestLog, ...]:
        """Displayed records, newest first."""
        return self._logs

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def feed(self) -> Optional[LiveFeedClient]:
        return self._feed

    def find(self, record_id: str) -> Optional[RequestLog]:
        for record in self._logs:
            if record.id == record_id:
                return record
        return None

    # ------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------

    async def tick(self) -> bool:
        """
        Advance one period. Returns False when suspended.

        The drift is applied before a live fetch resolves, so a slow
        feed does not delay the gauges.
        """
        if self.paused or self.restarting:
            return False

        pending = None
        if self.mode == Mode.LIVE:
            pending = self._refresh_from_feed()
        else:
            self._add_simulated()

        self.health = self._drift.advance(self.health)

        if pending is not None:
            await pending
        return True

    def _add_simulated(self) -> RequestLog:
        record = self._generator.generate()
        self._prepend(record)
        self.last_updated = self._clock()
        return record

    async def _refresh_from_feed(self) -> None:
        try:
            if self._feed is None:
                raise FeedError("No live feed configured")
            records = await self._feed.fetch_logs()
        except FeedError as e:
            logger.warning(f"Live feed fetch failed: {e}")
            self.error = FEED_ERROR
            return

        self.reconcile(records)
        self.error = None
        self.last_updated = self._clock()

    def reconcile(self, records: Sequence[RequestLog]) -> bool:
        """
        Replace the buffer with feed records if their id sequence differs.

        Returns True if the buffer was replaced. An identical id sequence
        leaves the current buffer object untouched.
        """
        incoming = tuple(records)[: self._capacity]
        if [r.id for r in incoming] == [r.id for r in self._logs]:
            return False

        known = {r.id for r in self._logs}
        self._logs = incoming
        for record in incoming:
            if record.id not in known:
                self._emit(record)
        logger.debug(f"Buffer replaced with {len(incoming)} feed records")
        return True

    def _prepend(self, record: RequestLog) -> None:
        self._logs = ((record,) + self._logs)[: self._capacity]
        self._emit(record)

    def _emit(self, record: RequestLog) -> None:
        if self._sink is not None:
            self._sink.emit(record)

    # ------------------------------------------------------------
    # Mode selection
    # ------------------------------------------------------------

    async def probe(self) -> Mode:
        """
        Startup health probe. An ok backend switches to live mode;
        anything else silently keeps simulated mode.
        """
        if self._feed is None:
            return self.mode
        try:
            report = await self._feed.health()
        except FeedError as e:
            logger.info(f"Backend API not found, defaulting to simulation mode: {e}")
            return self.mode

        if report.is_ok:
            self.mode = Mode.LIVE
            logger.info(f"Live feed available at {self._feed.base_url}")
            if report.source_missing:
                self.warning = SOURCE_MISSING_WARNING
                logger.warning("Live feed reports its log source is missing")
        return self.mode

    def force_live(self) -> bool:
        """Operator override: simulated -> live. There is no way back."""
        if self.mode == Mode.LIVE:
            return False
        self.mode = Mode.LIVE
        logger.info("Switched to live mode by operator")
        return True

    # ------------------------------------------------------------
    # Pause / restart
    # ------------------------------------------------------------

    def pause(self) -> None:
        if self.restarting:
            raise RestartInProgressError("Cannot pause while restarting")
        self.paused = True

    def resume(self) -> None:
        if self.restarting:
            raise RestartInProgressError("Cannot resume while restarting")
        self.paused = False

    def begin_restart(self, confirmed: bool) -> RequestLog:
        """
        Start the simulated service restart.

        Suspends ticking, zeroes the gauges and prepends the shutdown
        record. restart() or the runner finishes it after the delay.

        Raises:
            RestartInProgressError: a restart is already running
            RestartNotConfirmedError: the operator did not confirm
        """
        if self.restarting:
            raise RestartInProgressError("Restart already in progress")
        if not confirmed:
            raise RestartNotConfirmedError("Restart requires operator confirmation")

        self.restarting = True
        self.paused = True
        self.health = self.health.with_values(0, 0, 0, 0)

        record = RequestLog(
            id=RESTART_RECORD_ID,
            timestamp=self._clock(),
            sp_entity_id="SYSTEM",
            user_principal="root",
            status=RequestStatus.FAILURE,
            duration_ms=0,
            steps=[],
            raw_logs=list(RESTART_LINES),
            audit_log=SYSTEM_STOP_EVENT,
        )
        self._prepend(record)
        logger.warning("Jetty restart initiated by operator")
        return record

    def _complete_restart(self) -> None:
        if not self.restarting:
            logger.warning("Restart completion ignored: no restart in progress")
            return
        self.health = self.health.with_values(*BASELINE_VALUES)
        self.restarting = False
        self.paused = False
        logger.info("Jetty restart completed")

    async def restart(self, confirmed: bool) -> None:
        """Full restart: begin, wait the fixed delay, complete. Not cancellable."""
        self.begin_restart(confirmed)
        await self._finish_restart()

    async def _finish_restart(self) -> None:
        """Wait out the restart delay, then restore the gauges."""
        await self._sleep(self._restart_delay)
        self._complete_restart()

    # ------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------

    def refresh_data_age(self) -> str:
        """Seconds since the last successful update. Cosmetic only."""
        elapsed = (self._clock() - self.last_updated).total_seconds()
        self.data_age = f"{max(0, int(elapsed))}s"
        return self.data_age

    def snapshot(self) -> SchedulerSnapshot:
        return SchedulerSnapshot(
            mode=self.mode,
            paused=self.paused,
            restarting=self.restarting,
            last_updated=self.last_updated,
            data_age=self.data_age,
            error=self.error,
            warning=self.warning,
            log_count=len(self._logs),
        )

    def chart_series(self, limit: int = 20) -> List[ChartPoint]:
        """Latest records, oldest first, for the response-time chart."""
        recent = list(self._logs[:limit])
        recent.reverse()
        return [
            ChartPoint(
                time=record.timestamp.strftime("%H:%M:%S"),
                duration=record.duration_ms,
                status=1 if record.status == RequestStatus.SUCCESS else 0,
            )
            for record in recent
        ]
