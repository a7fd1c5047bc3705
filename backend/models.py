from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Optional
from datetime import datetime

STICKER_NOT_ASSIGNED = "STK-NOT-ASSIGNED"
DEFAULT_HOSE_DIAMETER = "25mm"


class Status(str, Enum):
    """Inspection lifecycle states, least to most severe."""
    GOOD = "good"
    INSPECTION_DUE_SOON = "inspection_due_soon"
    OVERDUE = "overdue"
    MAINTENANCE_REQUIRED = "maintenance_required"


class AssetKind(str, Enum):
    EXTINGUISHER = "extinguisher"
    HOSE = "hose"


class _CamelModel(BaseModel):
    # Source files and exports use camelCase keys; python code uses snake_case.
    model_config = ConfigDict(populate_by_name=True)


class Asset(_CamelModel):
    """A single inspectable item (extinguisher or hose) at a station."""
    asset_id: str = Field(..., alias="assetId")
    asset_type: AssetKind = Field(AssetKind.EXTINGUISHER, alias="assetType")
    type: Optional[str] = None
    size: Optional[str] = None
    manufacturer: Optional[str] = None
    last_inspection: Optional[str] = Field(None, alias="lastInspection")
    next_due: Optional[str] = Field(None, alias="nextDue",
                                    description="ISO date, or the raw string when it could not be parsed.")
    iso_category: Optional[int] = Field(None, alias="isoCategory")
    inspection_sticker_id: str = Field(STICKER_NOT_ASSIGNED, alias="inspectionStickerID")
    length: Optional[str] = None
    diameter: Optional[str] = None
    status: Optional[Status] = Field(None, description="Cached classification; recomputed on every refresh.")
    original_status: str = Field("unknown", alias="originalStatus",
                                 description="Status as supplied by the data source. Audit only.")


class Station(_CamelModel):
    """A physical cluster of assets at one map coordinate."""
    station_id: str = Field(..., alias="stationId")
    building: Optional[int | str] = None
    building_name: str = Field("Unknown Building", alias="buildingName")
    building_color: str = Field("#999999", alias="buildingColor")
    x: Optional[float] = None
    y: Optional[float] = None
    assets: List[Asset] = Field(default_factory=list)
    status: Optional[Status] = None


class Building(_CamelModel):
    id: int | str
    name: str
    color: str = "#999999"
    stations: int = 0
    total_assets: int = Field(0, alias="totalAssets")


class Dataset(BaseModel):
    """Everything loaded for one session."""
    source: str = Field(..., description="json | csv | empty")
    loaded_at: str = Field(default_factory=lambda: datetime.now().isoformat())
    buildings: List[Building] = Field(default_factory=list)
    stations: List[Station] = Field(default_factory=list)


class StatusDetail(BaseModel):
    label: str
    description: str
    icon: str
    priority: str = Field(..., description="low | medium | high | critical")
    color: str


class Classification(BaseModel):
    status: Status
    days_until_due: Optional[int] = None
    detail: StatusDetail


class StatusChange(BaseModel):
    kind: str = Field(..., description="asset | station")
    id: str
    old: Optional[Status] = None
    new: Status


class RefreshResult(BaseModel):
    """Summary of one refresh pass."""
    checked_at: str
    asset_changes: int = 0
    station_changes: int = 0
    transitions: List[StatusChange] = Field(default_factory=list)

    @computed_field
    @property
    def changes(self) -> int:
        return self.asset_changes + self.station_changes
