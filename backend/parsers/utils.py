import re
import pandas as pd
from typing import Any, Mapping, Optional
from datetime import datetime, date

from ..models import Asset, AssetKind, DEFAULT_HOSE_DIAMETER, STICKER_NOT_ASSIGNED

# Tried in this order; the first pattern found anywhere in the string wins.
DATE_PATTERNS = [
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"), ("month", "day", "year")),  # MM/DD/YYYY
    (re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"), ("year", "month", "day")),  # YYYY-MM-DD
    (re.compile(r"(\d{1,2})\.(\d{1,2})\.(\d{4})"), ("day", "month", "year")),  # DD.MM.YYYY
]

ISO_CATEGORY_CO2 = 5
ISO_CATEGORY_POWDER = 2
ISO_CATEGORY_DEFAULT = 1

# Header spellings seen in exported station sheets, by canonical field.
HEADER_VARIANTS = {
    "stationId": ("stationId", "StationID", "Station ID"),
    "building": ("building", "Building"),
    "x": ("x", "X"),
    "y": ("y", "Y"),
    "assetId": ("assetId", "AssetID", "Asset ID"),
    "assetType": ("assetType", "AssetType", "Asset Type"),
    "type": ("type", "Type"),
    "size": ("size", "Size"),
    "manufacturer": ("manufacturer", "Manufacturer"),
    "lastInspection": ("lastInspection", "Last Inspection"),
    "nextDue": ("nextDue", "Next Due"),
    "isoCategory": ("isoCategory", "ISO Category"),
    "inspectionStickerID": ("inspectionStickerID", "Inspection Sticker ID"),
    "status": ("originalStatus", "status", "Status"),
}


def clean_header(h: str) -> str:
    return re.sub(r"\s+", " ", str(h or "")).strip()


def is_blank(val) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and pd.isna(val):
        return True
    return isinstance(val, str) and not val.strip()


def pick(row: Mapping[str, Any], field: str):
    """First non-blank value among the known header spellings of `field`."""
    for key in HEADER_VARIANTS.get(field, (field,)):
        val = row.get(key)
        if not is_blank(val):
            return val
    return None


def as_text(val) -> Optional[str]:
    if is_blank(val):
        return None
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val).strip()


def as_float(val) -> Optional[float]:
    if is_blank(val):
        return None
    try:
        return float(val)
    except (TypeError, ValueError):
        return None


def as_building_id(val):
    """Numeric building ids become ints; anything else stays a string."""
    if is_blank(val):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return str(val).strip()
    return int(f) if f.is_integer() else str(val).strip()


def parse_date(val):
    """
    Normalize a due/inspection date to YYYY-MM-DD.

    Blank → None. Datetime-like values → their ISO date. Strings in
    MM/DD/YYYY, YYYY-MM-DD or DD.MM.YYYY form → ISO date. Anything else
    (including pattern matches that are not real calendar dates) is
    returned unchanged.
    """
    if is_blank(val):
        return None
    if isinstance(val, (pd.Timestamp, datetime)):
        return val.date().isoformat()
    if isinstance(val, date):
        return val.isoformat()
    s = str(val).strip()
    for pattern, order in DATE_PATTERNS:
        m = pattern.search(s)
        if not m:
            continue
        parts = dict(zip(order, (int(g) for g in m.groups())))
        try:
            return date(parts["year"], parts["month"], parts["day"]).isoformat()
        except ValueError:
            return val
    return val


def determine_iso_category(type_name) -> int:
    """ISO extinguisher category from the agent type: CO2 → 5, powder → 2, else 1."""
    if is_blank(type_name):
        return ISO_CATEGORY_DEFAULT
    s = str(type_name).strip().upper()
    if s.startswith("CO"):
        return ISO_CATEGORY_CO2
    if s == "POWDER":
        return ISO_CATEGORY_POWDER
    return ISO_CATEGORY_DEFAULT


class IngestionError(ValueError):
    """Raised when a source file cannot be turned into stations."""


def build_asset(row: Mapping[str, Any]) -> Asset:
    """Asset from one ingestion record, with the usual defaults filled in."""
    asset_id = as_text(pick(row, "assetId"))
    if not asset_id:
        raise IngestionError("Asset record without an assetId.")
    kind = (as_text(pick(row, "assetType")) or AssetKind.EXTINGUISHER.value).lower()
    if kind not in {k.value for k in AssetKind}:
        kind = AssetKind.EXTINGUISHER.value
    type_name = as_text(pick(row, "type"))
    size = as_text(pick(row, "size"))

    iso = pick(row, "isoCategory")
    try:
        iso = int(float(iso)) if not is_blank(iso) else determine_iso_category(type_name)
    except (TypeError, ValueError):
        iso = determine_iso_category(type_name)

    asset = Asset(
        asset_id=asset_id,
        asset_type=kind,
        type=type_name,
        size=size,
        manufacturer=as_text(pick(row, "manufacturer")),
        last_inspection=as_text(parse_date(pick(row, "lastInspection"))),
        next_due=as_text(parse_date(pick(row, "nextDue"))),
        iso_category=iso,
        inspection_sticker_id=as_text(pick(row, "inspectionStickerID")) or STICKER_NOT_ASSIGNED,
        original_status=as_text(pick(row, "status")) or "unknown",
    )
    if asset.asset_type == AssetKind.HOSE:
        # Hoses are sized by length and carry no ISO category.
        asset.length = as_text(row.get("length")) or size
        asset.diameter = as_text(row.get("diameter")) or DEFAULT_HOSE_DIAMETER
        asset.iso_category = None
    return asset
