import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..config import StatusThresholds
from ..models import Building, Dataset, RefreshResult, Station
from .scheduler import refresh_statuses
from .status import DEFAULT_THRESHOLDS

logger = logging.getLogger(__name__)


class Session:
    """
    In-memory state for one run of the app: the loaded buildings and stations
    and the thresholds they are classified with. Nothing here outlives the
    process.
    """

    def __init__(self, dataset: Optional[Dataset] = None,
                 thresholds: StatusThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds
        self.dataset = Dataset(source="empty")
        if dataset is not None:
            self.load(dataset)

    @property
    def buildings(self) -> List[Building]:
        return self.dataset.buildings

    @property
    def stations(self) -> List[Station]:
        return self.dataset.stations

    @property
    def total_assets(self) -> int:
        return sum(len(s.assets) for s in self.stations)

    def load(self, dataset: Dataset, now: Optional[datetime] = None) -> RefreshResult:
        """Adopt a freshly ingested dataset and classify everything in it."""
        by_id: Dict = {b.id: b for b in dataset.buildings}
        for s in dataset.stations:
            b = by_id.get(s.building)
            if b is not None:
                s.building_name = b.name
                s.building_color = b.color
        self.dataset = dataset
        result = self.refresh(now or datetime.now())
        logger.info("Loaded %d stations with %d total assets from %s",
                    len(self.stations), self.total_assets, dataset.source)
        return result

    def refresh(self, now: datetime) -> RefreshResult:
        return refresh_statuses(self.stations, now, self.thresholds)

    def find_station(self, station_id: str) -> Optional[Station]:
        return next((s for s in self.stations if s.station_id == station_id), None)
