"""Time window arithmetic"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from tableflow.scheduling.errors import BadRequestError


@dataclass(frozen=True)
class Interval:
    """Half-open time window [start, end)"""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def label(self) -> str:
        return f"{self.start:%H:%M} to {self.end:%H:%M}"


def overlaps(a: Interval, b: Interval, buffer: timedelta = timedelta(0)) -> bool:
    """Return True if ``a`` intersects ``b`` padded by ``buffer`` on both ends.

    Touching windows (``a.end == b.start``) do not overlap when the buffer is
    zero.
    """
    return a.start < b.end + buffer and a.end > b.start - buffer


def resolve_window(day: date, start_time: time, duration_minutes: int) -> Interval:
    """Build the booking window for a calendar day and local start time"""
    if duration_minutes is None or duration_minutes <= 0:
        raise BadRequestError("Reservation duration must be a positive number of minutes")
    start = datetime.combine(day, start_time.replace(second=0, microsecond=0))
    return Interval(start=start, end=start + timedelta(minutes=duration_minutes))
