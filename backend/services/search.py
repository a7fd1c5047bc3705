from typing import Any, Dict, List, Optional

from ..models import AssetKind, Station, Status
from .aggregator import STATUS_PRIORITY

MAX_SUGGESTIONS = 10


def _contains(value, needle: str) -> bool:
    return value is not None and needle in str(value).lower()


def search(stations: List[Station], query: str, limit: int = MAX_SUGGESTIONS) -> List[Dict[str, Any]]:
    """
    Search suggestions over station ids and asset id/type/manufacturer.
    Case-insensitive substring match; a blank query matches nothing.
    """
    q = (query or "").strip().lower()
    if not q:
        return []

    matches: List[Dict[str, Any]] = []
    for s in stations:
        if _contains(s.station_id, q):
            matches.append({
                "type": "station",
                "station_id": s.station_id,
                "display": f"{s.station_id} - {s.building_name}",
                "subtitle": f"Station with {len(s.assets)} assets",
            })
        for a in s.assets:
            if _contains(a.asset_id, q) or _contains(a.type, q) or _contains(a.manufacturer, q):
                matches.append({
                    "type": "asset",
                    "station_id": s.station_id,
                    "asset_id": a.asset_id,
                    "display": f"{a.asset_id} - {s.station_id}",
                    "subtitle": f"{a.asset_type.value}: {a.type or ''} {a.size or ''}".rstrip(),
                })
    return matches[:limit]


def filter_stations(stations: List[Station], status: Optional[Status] = None,
                    building=None, asset_type: Optional[AssetKind] = None) -> List[Station]:
    """Stations matching every given criterion (station status, building id, asset kind present)."""
    out = []
    for s in stations:
        if status is not None and s.status != Status(status):
            continue
        if building is not None and str(s.building) != str(building):
            continue
        if asset_type is not None and not any(a.asset_type == AssetKind(asset_type) for a in s.assets):
            continue
        out.append(s)
    return out


def status_counts(stations: List[Station]) -> Dict[str, int]:
    """Totals plus the number of assets in each status."""
    counts: Dict[str, int] = {
        "totalStations": len(stations),
        "totalAssets": sum(len(s.assets) for s in stations),
    }
    counts.update({st.value: 0 for st in reversed(STATUS_PRIORITY)})
    for s in stations:
        for a in s.assets:
            if a.status is not None:
                counts[a.status.value] += 1
    return counts


def building_stats(stations: List[Station], building_id) -> Dict[str, int]:
    """Per-status station counts for one building."""
    members = [s for s in stations if str(s.building) == str(building_id)]
    stats = {"total": len(members)}
    stats.update({st.value: 0 for st in reversed(STATUS_PRIORITY)})
    for s in members:
        if s.status is not None:
            stats[s.status.value] += 1
    return stats
