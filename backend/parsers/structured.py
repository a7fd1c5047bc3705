import logging
from typing import Any, Dict, List, Tuple
from .tabular import derive_buildings, group_rows
from .utils import IngestionError, as_building_id, as_float, as_text, build_asset, pick
from ..models import Building, Station

logger = logging.getLogger(__name__)


def _parse_station(raw: Dict[str, Any]) -> Station:
    sid = as_text(pick(raw, "stationId"))
    if not sid:
        raise IngestionError("Station record without a stationId.")
    assets = []
    for a in raw.get("assets") or []:
        if not isinstance(a, dict):
            logger.warning("Skipping non-object asset entry in station %s: %r", sid, a)
            continue
        try:
            assets.append(build_asset(a))
        except IngestionError as e:
            logger.warning("Skipping asset in station %s: %s", sid, e)
    return Station(
        station_id=sid,
        building=as_building_id(pick(raw, "building")),
        x=as_float(pick(raw, "x")),
        y=as_float(pick(raw, "y")),
        assets=assets,
    )


def _parse_buildings(raw_buildings: List[Dict[str, Any]], stations: List[Station]) -> List[Building]:
    """Buildings as given; station and asset counts derived when the file omits them."""
    buildings = []
    for b in raw_buildings:
        if not isinstance(b, dict) or b.get("id") is None:
            continue
        bid = as_building_id(b["id"])
        members = [s for s in stations if s.building == bid]
        buildings.append(Building(
            id=bid,
            name=as_text(b.get("name")) or f"Building-{bid}",
            color=as_text(b.get("color")) or "#999999",
            stations=b.get("stations") if isinstance(b.get("stations"), int) else len(members),
            total_assets=b.get("totalAssets") if isinstance(b.get("totalAssets"), int)
            else sum(len(s.assets) for s in members),
        ))
    return buildings


def parse_structured(payload: Any) -> Tuple[List[Building], List[Station]]:
    """
    Structured (JSON) payload:
      - {"buildings": [...], "stations": [{stationId, building, x, y, assets: [...]}]}
      - stations may also be flat per-asset rows, which are grouped by stationId.
      - buildings are derived from the stations when the payload has none.
    """
    if not isinstance(payload, dict):
        raise IngestionError("Expected a JSON object with a 'stations' list.")
    raw_stations = payload.get("stations")
    if not isinstance(raw_stations, list):
        raise IngestionError("JSON payload has no 'stations' list.")

    nested = [r for r in raw_stations if isinstance(r, dict) and isinstance(r.get("assets"), list)]
    flat = [r for r in raw_stations if isinstance(r, dict) and not isinstance(r.get("assets"), list)]

    stations: List[Station] = []
    for raw in nested:
        try:
            stations.append(_parse_station(raw))
        except IngestionError as e:
            logger.warning("Skipping station: %s", e)
    if flat:
        stations.extend(group_rows(flat))

    raw_buildings = payload.get("buildings")
    if isinstance(raw_buildings, list) and raw_buildings:
        buildings = _parse_buildings(raw_buildings, stations)
    else:
        buildings = derive_buildings(stations)
    return buildings, stations
