"""Runtime settings for the station manager, read from environment variables."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

ROOT = Path(__file__).resolve().parents[1]


class StatusThresholds(BaseModel):
    """Day bands used by the status classifier."""
    warning_period: int = Field(15, description="Days before due date that count as 'due soon'.")
    overdue_threshold: int = Field(30, description="Days past due before maintenance is required.")


class Settings(BaseModel):
    data_dir: Path = ROOT / "data"
    json_filename: str = "stations.json"
    csv_filename: str = "stations.csv"
    thresholds: StatusThresholds = Field(default_factory=StatusThresholds)
    refresh_seconds: float = 3600.0
    log_level: str = "INFO"
    auto_refresh: bool = True

    @property
    def json_path(self) -> Path:
        return self.data_dir / self.json_filename

    @property
    def csv_path(self) -> Path:
        return self.data_dir / self.csv_filename

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from FIRE_STATIONS_* environment variables."""
        return cls(
            data_dir=Path(os.getenv("FIRE_STATIONS_DATA_DIR", str(ROOT / "data"))),
            json_filename=os.getenv("FIRE_STATIONS_JSON", "stations.json"),
            csv_filename=os.getenv("FIRE_STATIONS_CSV", "stations.csv"),
            thresholds=StatusThresholds(
                warning_period=int(os.getenv("FIRE_STATIONS_WARNING_DAYS", "15")),
                overdue_threshold=int(os.getenv("FIRE_STATIONS_OVERDUE_DAYS", "30")),
            ),
            refresh_seconds=float(os.getenv("FIRE_STATIONS_REFRESH_SECONDS", "3600")),
            log_level=os.getenv("FIRE_STATIONS_LOG_LEVEL", "INFO").upper(),
            auto_refresh=os.getenv("FIRE_STATIONS_AUTO_REFRESH", "true").lower() == "true",
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace (or with None, reset) the cached settings."""
    global _settings
    _settings = settings
