from datetime import datetime, timedelta

import pytest

from backend.models import Asset, Station

# Noon, so a due date N calendar days away is exactly N days out after rounding up.
NOW = datetime(2026, 3, 10, 12, 0, 0)


def due_in(days: int, now: datetime = NOW) -> str:
    return (now.date() + timedelta(days=days)).isoformat()


def make_asset(asset_id="EXT-001", next_due=None, **kwargs) -> Asset:
    return Asset(asset_id=asset_id, next_due=next_due, **kwargs)


def build_payload(now: datetime = NOW) -> dict:
    """Structured payload with one station per status band plus an empty station."""
    return {
        "buildings": [
            {"id": 1, "name": "Main Hall", "color": "#FF6B6B"},
            {"id": 2, "name": "Workshop", "color": "#4ECDC4"},
        ],
        "stations": [
            {
                "stationId": "ST-001", "building": 1, "x": 120, "y": 340,
                "assets": [
                    {"assetId": "EXT-001", "assetType": "extinguisher", "type": "CO2", "size": "5kg",
                     "manufacturer": "Gloria", "lastInspection": "2025-03-29", "nextDue": due_in(20, now),
                     "status": "good"},
                    {"assetId": "HOSE-001", "assetType": "hose", "type": "Hose Reel", "size": "30m",
                     "manufacturer": "Total", "nextDue": due_in(10, now), "status": "good"},
                ],
            },
            {
                "stationId": "ST-002", "building": 1, "x": 400, "y": 90,
                "assets": [
                    {"assetId": "EXT-002", "type": "POWDER", "size": "6kg", "manufacturer": "Minimax",
                     "nextDue": due_in(-5, now), "status": "good", "inspectionStickerID": "STK-2211"},
                ],
            },
            {
                "stationId": "ST-003", "building": 2, "x": 50, "y": 60,
                "assets": [
                    {"assetId": "EXT-003", "type": "FOAM", "size": "9L", "manufacturer": "Gloria",
                     "nextDue": due_in(-45, now)},
                ],
            },
            {"stationId": "ST-004", "building": 2, "x": 10, "y": 20, "assets": []},
        ],
    }


@pytest.fixture
def sample_payload():
    return build_payload(NOW)


@pytest.fixture
def stations_factory():
    def _make(*due_offsets, station_id="ST-100"):
        assets = [make_asset(f"EXT-{i:03d}", due_in(d) if d is not None else None)
                  for i, d in enumerate(due_offsets)]
        return Station(station_id=station_id, building=1, x=0, y=0, assets=assets)
    return _make
