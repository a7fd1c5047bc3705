import logging
import pandas as pd
from typing import Any, Dict, Iterable, List, Mapping
from .utils import (
    IngestionError, as_building_id, as_float, as_text, build_asset, clean_header, pick
)
from ..models import Building, Station

logger = logging.getLogger(__name__)

BUILDING_COLORS = ["#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FECA57", "#FF9FF3"]


def group_rows(rows: Iterable[Mapping[str, Any]]) -> List[Station]:
    """
    Flat per-asset rows → stations:
      - Rows are grouped by station id, first-seen order preserved.
      - Building and coordinates come from the first row of each station.
      - Rows without a station id are skipped.
    """
    grouped: Dict[str, Station] = {}
    for row in rows:
        sid = as_text(pick(row, "stationId"))
        if not sid:
            continue
        if sid not in grouped:
            grouped[sid] = Station(
                station_id=sid,
                building=as_building_id(pick(row, "building")),
                x=as_float(pick(row, "x")),
                y=as_float(pick(row, "y")),
            )
        try:
            grouped[sid].assets.append(build_asset(row))
        except IngestionError as e:
            logger.warning("Skipping row for station %s: %s", sid, e)
    return list(grouped.values())


def derive_buildings(stations: List[Station]) -> List[Building]:
    """One building per distinct station building id, colored from a fixed palette."""
    by_building: Dict[Any, List[Station]] = {}
    for s in stations:
        by_building.setdefault(s.building, []).append(s)

    buildings = []
    for index, (bid, members) in enumerate(by_building.items()):
        buildings.append(Building(
            id=bid if bid is not None else "unknown",
            name=f"Building-{bid}",
            color=BUILDING_COLORS[index % len(BUILDING_COLORS)],
            stations=len(members),
            total_assets=sum(len(s.assets) for s in members),
        ))
    return buildings


def parse_tabular(df: pd.DataFrame) -> List[Station]:
    """One row per asset; station fields repeated on every row."""
    df = df.copy()
    df.columns = [clean_header(c) for c in df.columns]
    if not any(c in df.columns for c in ("stationId", "StationID", "Station ID")):
        raise IngestionError("Could not detect a 'stationId' column.")
    # NaN → None so blank cells read as missing
    records = df.astype(object).where(pd.notna(df), None).to_dict(orient="records")
    return group_rows(records)
