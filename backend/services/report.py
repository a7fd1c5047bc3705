import csv
from typing import List, Dict, Any, Tuple
from datetime import datetime
from io import BytesIO

import pandas as pd

from ..models import Building, Station
from .storage import to_json_bytes

EXPORT_COLUMNS = [
    "stationId", "building", "buildingName", "x", "y", "assetId", "assetType",
    "type", "size", "manufacturer", "isoCategory", "inspectionStickerID",
    "status", "originalStatus", "lastInspection", "nextDue",
]


def export_filename(ext: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).date().isoformat()
    return f"fire_safety_stations_{stamp}.{ext}"


def build_export_rows(stations: List[Station]) -> List[Dict[str, Any]]:
    """One row per asset, station fields repeated. Status is the live one."""
    rows: List[Dict[str, Any]] = []
    for s in stations:
        for a in s.assets:
            rows.append({
                "stationId": s.station_id,
                "building": s.building,
                "buildingName": s.building_name,
                "x": s.x,
                "y": s.y,
                "assetId": a.asset_id,
                "assetType": a.asset_type.value,
                "type": a.type,
                "size": a.size,
                "manufacturer": a.manufacturer,
                "isoCategory": a.iso_category,
                "inspectionStickerID": a.inspection_sticker_id,
                "status": a.status.value if a.status else None,
                "originalStatus": a.original_status,
                "lastInspection": a.last_inspection,
                "nextDue": a.next_due,
            })
    return rows


def rows_to_dataframe(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def rows_to_csv_bytes(rows: List[Dict[str, Any]]) -> BytesIO:
    # Every field quoted; blanks written as empty strings.
    df = rows_to_dataframe(rows).astype(object).where(lambda d: d.notna(), "")
    buf = BytesIO()
    df.to_csv(buf, index=False, quoting=csv.QUOTE_ALL, encoding="utf-8")
    buf.seek(0)
    return buf


def rows_to_excel_bytes(rows: List[Dict[str, Any]]) -> BytesIO:
    df = rows_to_dataframe(rows)
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Fire Safety Stations")
    buf.seek(0)
    return buf


def build_structured_export(buildings: List[Building], stations: List[Station],
                            now: datetime | None = None) -> Dict[str, Any]:
    """Nested station → assets export in the same camelCase shape the JSON loader reads."""
    return {
        "exported_at": (now or datetime.now()).isoformat(),
        "total_stations": len(stations),
        "total_assets": sum(len(s.assets) for s in stations),
        "buildings": [b.model_dump(mode="json", by_alias=True) for b in buildings],
        "stations": [s.model_dump(mode="json", by_alias=True) for s in stations],
    }


EXPORT_MEDIA_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def render_export(session, fmt: str, now: datetime | None = None) -> Tuple[BytesIO, str, str]:
    """
    Refresh the session at `now`, then render it as csv, json or xlsx.
    Returns (content, filename, media type).
    """
    if fmt not in EXPORT_MEDIA_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")
    now = now or datetime.now()
    session.refresh(now)
    if fmt == "json":
        content = to_json_bytes(build_structured_export(session.buildings, session.stations, now))
    elif fmt == "xlsx":
        content = rows_to_excel_bytes(build_export_rows(session.stations))
    else:
        content = rows_to_csv_bytes(build_export_rows(session.stations))
    return content, export_filename(fmt, now), EXPORT_MEDIA_TYPES[fmt]
