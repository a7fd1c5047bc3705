"""
Keeps asset and station statuses current without user action.

Three triggers drive a refresh pass: one immediately on start, one every
`interval` (an hour by default), and one at every local midnight, since
day-granularity due dates roll over at midnight whether or not an hourly
tick is near.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Callable, List, Optional

from ..config import StatusThresholds
from ..models import RefreshResult, Station, StatusChange
from .aggregator import aggregate
from .status import DEFAULT_THRESHOLDS, calculate_status

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(hours=1)


def refresh_statuses(stations: List[Station], now: datetime,
                     thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> RefreshResult:
    """
    One refresh pass: recompute every asset, overwrite changed statuses, then
    recompute every station from its assets' new statuses. The returned
    summary describes the completed pass.
    """
    result = RefreshResult(checked_at=now.isoformat())

    for station in stations:
        for asset in station.assets:
            new = calculate_status(asset, now, thresholds)
            if asset.status != new:
                logger.debug("Status changed for %s: %s -> %s", asset.asset_id,
                             getattr(asset.status, "value", asset.status), new.value)
                result.transitions.append(StatusChange(kind="asset", id=asset.asset_id, old=asset.status, new=new))
                asset.status = new
                result.asset_changes += 1

    for station in stations:
        new = aggregate(a.status for a in station.assets)
        if station.status != new:
            result.transitions.append(StatusChange(kind="station", id=station.station_id, old=station.status, new=new))
            station.status = new
            result.station_changes += 1

    return result


def delay_until_next_midnight(now: datetime) -> timedelta:
    """Time from `now` to the start of the next local day (a full day when called at midnight)."""
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return midnight - now


class RefreshScheduler:
    """
    Drives `session.refresh(now)` on timers.

    `tick()` runs one pass synchronously and can be called directly; `start()`
    and `stop()` manage the hourly loop and the midnight/daily chain as two
    asyncio tasks that are cancelled independently.
    """

    def __init__(self, session, interval: timedelta = DEFAULT_INTERVAL,
                 clock: Callable[[], datetime] = datetime.now,
                 on_change: Optional[Callable[[RefreshResult], None]] = None):
        self.session = session
        self.interval = interval
        self.clock = clock
        self.on_change = on_change
        self.last_result: Optional[RefreshResult] = None
        self._periodic_task: Optional[asyncio.Task] = None
        self._midnight_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return any(t is not None and not t.done() for t in (self._periodic_task, self._midnight_task))

    def tick(self, now: Optional[datetime] = None) -> RefreshResult:
        now = now or self.clock()
        result = self.session.refresh(now)
        self.last_result = result
        if result.changes > 0:
            logger.info("Status refresh at %s: %d asset and %d station changes",
                        result.checked_at, result.asset_changes, result.station_changes)
            if self.on_change:
                self.on_change(result)
        return result

    def _safe_tick(self, trigger: str, now: Optional[datetime] = None) -> None:
        try:
            self.tick(now)
        except Exception:
            logger.exception("Refresh pass (%s) failed", trigger)

    async def _periodic(self) -> None:
        while True:
            await asyncio.sleep(self.interval.total_seconds())
            self._safe_tick("periodic")

    async def _midnight_chain(self) -> None:
        # Re-armed from the wall clock every day. The sleep can end a little
        # before the wall clock reaches midnight, so the pass never runs
        # earlier than the midnight it was armed for.
        last = self.clock()
        while True:
            target = last + delay_until_next_midnight(last)
            delay = max((target - self.clock()).total_seconds(), 0)
            logger.debug("Next midnight refresh in %.0fs", delay)
            await asyncio.sleep(delay)
            last = max(self.clock(), target)
            self._safe_tick("midnight", last)

    async def start(self) -> RefreshResult:
        """Run the immediate pass and arm both timers. Returns the immediate pass result."""
        if self.running:
            raise RuntimeError("Scheduler already started.")
        result = self.tick()
        self._periodic_task = asyncio.create_task(self._periodic())
        self._midnight_task = asyncio.create_task(self._midnight_chain())
        logger.info("Real-time status updates enabled (every %s, plus daily at midnight)", self.interval)
        return result

    async def stop(self) -> None:
        for attr in ("_periodic_task", "_midnight_task"):
            task = getattr(self, attr)
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            setattr(self, attr, None)
        logger.info("Real-time status updates stopped")
