"""Tests for search suggestions, filters and dashboard counts."""

import json

import pytest

from backend.models import AssetKind, Status
from backend.services.normalizer import normalize_structured
from backend.services.search import building_stats, filter_stations, search, status_counts
from backend.services.session import Session
from conftest import NOW


@pytest.fixture
def stations(sample_payload):
    s = Session()
    s.load(normalize_structured(json.dumps(sample_payload).encode()), now=NOW)
    return s.stations


class TestSearch:

    def test_blank_query(self, stations):
        assert search(stations, "") == []
        assert search(stations, "   ") == []

    def test_station_match(self, stations):
        matches = search(stations, "st-003")
        assert matches == [{
            "type": "station",
            "station_id": "ST-003",
            "display": "ST-003 - Workshop",
            "subtitle": "Station with 1 assets",
        }]

    def test_asset_matches_by_manufacturer(self, stations):
        matches = search(stations, "gloria")
        assert [m["asset_id"] for m in matches] == ["EXT-001", "EXT-003"]
        assert matches[0]["display"] == "EXT-001 - ST-001"
        assert matches[0]["subtitle"] == "extinguisher: CO2 5kg"

    def test_asset_matches_by_type(self, stations):
        assert [m["asset_id"] for m in search(stations, "hose reel")] == ["HOSE-001"]

    def test_limit(self, stations):
        assert len(search(stations, "st-", limit=2)) == 2

    def test_missing_fields_do_not_raise(self, stations):
        stations[0].assets[0].manufacturer = None
        stations[0].assets[0].type = None
        assert search(stations, "zzz") == []


class TestFilters:

    def test_by_status(self, stations):
        assert [s.station_id for s in filter_stations(stations, status=Status.MAINTENANCE_REQUIRED)] == [
            "ST-003", "ST-004",
        ]
        assert [s.station_id for s in filter_stations(stations, status="overdue")] == ["ST-002"]

    def test_by_building_and_kind(self, stations):
        assert [s.station_id for s in filter_stations(stations, building="1")] == ["ST-001", "ST-002"]
        assert [s.station_id for s in filter_stations(stations, asset_type=AssetKind.HOSE)] == ["ST-001"]
        assert filter_stations(stations, building=2, asset_type="hose") == []


class TestCounts:

    def test_status_counts(self, stations):
        assert status_counts(stations) == {
            "totalStations": 4,
            "totalAssets": 4,
            "good": 1,
            "inspection_due_soon": 1,
            "overdue": 1,
            "maintenance_required": 1,
        }

    def test_building_stats(self, stations):
        assert building_stats(stations, 2) == {
            "total": 2, "good": 0, "inspection_due_soon": 0, "overdue": 0, "maintenance_required": 2,
        }
