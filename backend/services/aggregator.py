from datetime import datetime
from typing import Iterable

from ..config import StatusThresholds
from ..models import Station, Status
from .status import DEFAULT_THRESHOLDS, calculate_status

# Most severe first.
STATUS_PRIORITY = [
    Status.MAINTENANCE_REQUIRED,
    Status.OVERDUE,
    Status.INSPECTION_DUE_SOON,
    Status.GOOD,
]
_SEVERITY = {s: len(STATUS_PRIORITY) - i for i, s in enumerate(STATUS_PRIORITY)}


def severity(status: Status) -> int:
    """Higher is worse."""
    return _SEVERITY[Status(status)]


def aggregate(statuses: Iterable[Status]) -> Status:
    """
    Worst status among a station's assets. A station with no assets is
    unmanaged and reported as maintenance_required.
    """
    statuses = [Status(s) for s in statuses]
    if not statuses:
        return Status.MAINTENANCE_REQUIRED
    return max(statuses, key=severity)


def station_status(station: Station, now: datetime,
                   thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> Status:
    """Aggregate recomputed from the station's assets at `now`, ignoring cached values."""
    return aggregate(calculate_status(a, now, thresholds) for a in station.assets)
