"""Operating hours and booking grid"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator


@dataclass(frozen=True)
class OperatingHours:
    open_hour: int = 10
    close_hour: int = 22
    slot_interval_minutes: int = 30
    default_duration_minutes: int = 90
    buffer_minutes: int = 15

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.buffer_minutes)

    @property
    def slot_interval(self) -> timedelta:
        return timedelta(minutes=self.slot_interval_minutes)

    def opening(self, day: date) -> datetime:
        return datetime.combine(day, time(hour=self.open_hour))

    def closing(self, day: date) -> datetime:
        return datetime.combine(day, time(hour=self.close_hour))

    def slot_starts(self, day: date) -> Iterator[datetime]:
        """Every slot start from opening up to (not including) closing"""
        current = self.opening(day)
        closing = self.closing(day)
        while current < closing:
            yield current
            current += self.slot_interval

    def hours(self) -> range:
        return range(self.open_hour, self.close_hour)


# Single fixed policy for every restaurant; not per-tenant configuration.
OPERATING_HOURS = OperatingHours()
