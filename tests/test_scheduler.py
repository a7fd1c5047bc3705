"""Tests for refresh passes, midnight alignment and the asyncio scheduler."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from backend.models import Dataset, Status
from backend.services.aggregator import aggregate
from backend.services.scheduler import RefreshScheduler, delay_until_next_midnight, refresh_statuses
from backend.services.session import Session
from conftest import NOW


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class TestRefreshPass:

    def test_first_pass_counts_every_asset_and_station(self, stations_factory):
        stations = [stations_factory(20, -5, station_id="ST-A"), stations_factory(3, station_id="ST-B")]
        result = refresh_statuses(stations, NOW)
        assert result.asset_changes == 3
        assert result.station_changes == 2
        assert result.changes == 5
        assert stations[0].status == Status.OVERDUE
        assert stations[1].status == Status.INSPECTION_DUE_SOON

    def test_second_pass_same_now_is_idempotent(self, stations_factory):
        stations = [stations_factory(20, 10, -5, -45, None)]
        refresh_statuses(stations, NOW)
        again = refresh_statuses(stations, NOW)
        assert again.changes == 0
        assert again.transitions == []

    def test_time_passing_moves_assets_between_bands(self, stations_factory):
        stations = [stations_factory(16)]
        refresh_statuses(stations, NOW)
        assert stations[0].assets[0].status == Status.GOOD

        result = refresh_statuses(stations, NOW + timedelta(days=1))
        assert result.asset_changes == 1
        assert result.station_changes == 1
        assert stations[0].assets[0].status == Status.INSPECTION_DUE_SOON
        assert [t.kind for t in result.transitions] == ["asset", "station"]
        assert result.transitions[0].old == Status.GOOD

    def test_station_always_matches_its_assets(self, stations_factory):
        stations = [stations_factory(30, 2, station_id="ST-A"), stations_factory(station_id="ST-EMPTY")]
        for day in range(0, 80, 7):
            refresh_statuses(stations, NOW + timedelta(days=day))
            for s in stations:
                assert s.status == aggregate(a.status for a in s.assets)
        assert stations[1].status == Status.MAINTENANCE_REQUIRED

    def test_malformed_dates_never_raise(self, stations_factory):
        station = stations_factory(5)
        station.assets[0].next_due = "31/31/31"
        result = refresh_statuses([station], NOW)
        assert station.assets[0].status == Status.MAINTENANCE_REQUIRED
        assert result.asset_changes == 1


class TestMidnightDelay:

    def test_from_noon(self):
        assert delay_until_next_midnight(datetime(2026, 3, 10, 12, 0)) == timedelta(hours=12)

    def test_just_before_midnight(self):
        assert delay_until_next_midnight(datetime(2026, 3, 10, 23, 59, 30)) == timedelta(seconds=30)

    def test_at_midnight_waits_a_full_day(self):
        assert delay_until_next_midnight(datetime(2026, 3, 10)) == timedelta(days=1)

    def test_month_and_year_rollover(self):
        assert delay_until_next_midnight(datetime(2026, 12, 31, 18)) == timedelta(hours=6)

    def test_keeps_timezone(self):
        now = datetime(2026, 3, 10, 20, tzinfo=timezone.utc)
        assert delay_until_next_midnight(now) == timedelta(hours=4)


class TestScheduler:

    def test_tick_reports_and_notifies_only_on_change(self, stations_factory):
        session = Session()
        session.dataset = Dataset(source="json", stations=[stations_factory(16)])
        seen = []
        scheduler = RefreshScheduler(session, clock=FakeClock(NOW), on_change=seen.append)

        first = scheduler.tick()
        assert first.changes == 2
        assert scheduler.tick().changes == 0
        assert len(seen) == 1

        scheduler.tick(NOW + timedelta(days=1))
        assert len(seen) == 2
        assert scheduler.last_result.asset_changes == 1

    def test_start_runs_immediately_and_stop_cancels_both_timers(self, stations_factory):
        session = Session()
        session.dataset = Dataset(source="json", stations=[stations_factory(16)])
        scheduler = RefreshScheduler(session, interval=timedelta(hours=1), clock=FakeClock(NOW))

        async def run():
            result = await scheduler.start()
            assert scheduler.running
            with pytest.raises(RuntimeError):
                await scheduler.start()
            await scheduler.stop()
            return result

        result = asyncio.run(run())
        assert result.changes == 2
        assert not scheduler.running
        assert session.stations[0].status == Status.GOOD

    def test_periodic_pass_fires(self, stations_factory):
        session = Session()
        session.dataset = Dataset(source="json", stations=[stations_factory(16)])
        clock = FakeClock(NOW)
        seen = []
        scheduler = RefreshScheduler(session, interval=timedelta(seconds=0.01), clock=clock, on_change=seen.append)

        async def run():
            await scheduler.start()
            clock.now = NOW + timedelta(days=1)
            await asyncio.sleep(0.2)
            await scheduler.stop()

        asyncio.run(run())
        assert session.stations[0].assets[0].status == Status.INSPECTION_DUE_SOON
        assert len(seen) == 2

    def test_midnight_pass_fires(self, stations_factory):
        session = Session()
        session.dataset = Dataset(source="json", stations=[stations_factory(1)])
        clock = FakeClock(datetime(2026, 3, 10, 23, 59, 59, 950000))
        scheduler = RefreshScheduler(session, interval=timedelta(hours=1), clock=clock)

        async def run():
            await scheduler.start()
            assert session.stations[0].status == Status.INSPECTION_DUE_SOON
            await asyncio.sleep(0)
            # The midnight task has already computed its 50ms delay; move the clock past midnight.
            clock.now = datetime(2026, 3, 11, 0, 0, 1)
            await asyncio.sleep(0.3)
            await scheduler.stop()

        asyncio.run(run())
        assert session.stations[0].status == Status.OVERDUE

    def test_midnight_pass_uses_midnight_when_wall_clock_lags(self, stations_factory):
        session = Session()
        session.dataset = Dataset(source="json", stations=[stations_factory(1)])
        # Wall clock that has not reached midnight yet when the sleep ends.
        clock = FakeClock(datetime(2026, 3, 10, 23, 59, 59, 950000))
        scheduler = RefreshScheduler(session, interval=timedelta(hours=1), clock=clock)
        passes = []
        refresh = session.refresh

        def recording_refresh(now):
            passes.append(now)
            return refresh(now)

        session.refresh = recording_refresh

        async def run():
            await scheduler.start()
            await asyncio.sleep(0.3)
            await scheduler.stop()

        asyncio.run(run())
        # One immediate pass, then exactly one midnight pass re-armed for the following night.
        assert passes == [datetime(2026, 3, 10, 23, 59, 59, 950000), datetime(2026, 3, 11)]
        assert session.stations[0].status == Status.OVERDUE
