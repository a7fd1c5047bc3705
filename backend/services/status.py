"""
Real-time inspection status.

Every function here is a pure function of (due date, now). The status stored
on an asset is only a cache of `calculate_status` at the last refresh.
"""

import math
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from ..config import StatusThresholds
from ..models import Asset, Classification, Status, StatusDetail
from ..parsers.utils import is_blank, parse_date

DEFAULT_THRESHOLDS = StatusThresholds()
ONE_DAY = timedelta(days=1)
# The only string shape parse_date produces for a recognised date.
ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")

STATUS_COLORS = {
    Status.GOOD: "#4CAF50",
    Status.INSPECTION_DUE_SOON: "#FF9800",
    Status.OVERDUE: "#F44336",
    Status.MAINTENANCE_REQUIRED: "#FF5722",
}

DueValue = Union[Asset, str, date, datetime, None]


def resolve_due_date(value: DueValue) -> Optional[datetime]:
    """
    Due date as a datetime (date-only values at local midnight), or None when
    it is absent or cannot be read as a date.
    """
    if isinstance(value, Asset):
        value = value.next_due
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    normalized = parse_date(value)
    if not isinstance(normalized, str) or not ISO_DATE.fullmatch(normalized):
        return None
    try:
        return datetime.combine(date.fromisoformat(normalized), time.min)
    except ValueError:
        return None


def _align(due: datetime, now: datetime) -> datetime:
    # Naive due dates are local time: they take now's tzinfo, and aware ones
    # are converted to local wall time when now is naive.
    if due.tzinfo is None and now.tzinfo is not None:
        return due.replace(tzinfo=now.tzinfo)
    if due.tzinfo is not None and now.tzinfo is None:
        return due.astimezone().replace(tzinfo=None)
    return due


def days_until_due(value: DueValue, now: datetime) -> Optional[int]:
    """Whole days until the due date, rounded up; 0 or less once it has passed."""
    due = resolve_due_date(value)
    if due is None:
        return None
    return math.ceil((_align(due, now) - now) / ONE_DAY)


def status_for_days(days: Optional[int], thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> Status:
    if days is None:
        return Status.MAINTENANCE_REQUIRED
    if days > thresholds.warning_period:
        return Status.GOOD
    if days > 0:
        return Status.INSPECTION_DUE_SOON
    if days >= -thresholds.overdue_threshold:
        return Status.OVERDUE
    return Status.MAINTENANCE_REQUIRED


def calculate_status(value: DueValue, now: datetime,
                     thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> Status:
    """Status label for an asset (or a bare due date) at `now`."""
    return status_for_days(days_until_due(value, now), thresholds)


def status_detail(status: Status, days: Optional[int]) -> StatusDetail:
    """Display label, description, icon and alert priority for a status."""
    status = Status(status)
    color = STATUS_COLORS[status]
    if status == Status.GOOD:
        return StatusDetail(label="Good", description=f"Inspection due in {days} days",
                            icon="✅", priority="low", color=color)
    if status == Status.INSPECTION_DUE_SOON:
        return StatusDetail(label="Inspection Due Soon", description=f"Inspection due in {days} days",
                            icon="⏰", priority="medium", color=color)
    if status == Status.OVERDUE:
        return StatusDetail(label="Overdue", description=f"Inspection overdue by {abs(days)} days",
                            icon="⚠️", priority="high", color=color)
    if days is None:
        description = "Critical: no inspection due date on record"
    else:
        description = f"Critical: {abs(days)} days overdue"
    return StatusDetail(label="Maintenance Required", description=description,
                        icon="🔧", priority="critical", color=color)


def classify(value: DueValue, now: datetime,
             thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> Classification:
    days = days_until_due(value, now)
    status = status_for_days(days, thresholds)
    return Classification(status=status, days_until_due=days, detail=status_detail(status, days))
