"""Bookable time grid for a day"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID

from tableflow.schemas.reservation import TimeSlot
from tableflow.scheduling.errors import BadRequestError
from tableflow.scheduling.hours import OPERATING_HOURS, OperatingHours
from tableflow.scheduling.intervals import Interval, overlaps
from tableflow.scheduling.state_machine import INACTIVE_STATUSES
from tableflow.scheduling.store import ReservationFilter, ReservationStore


class SlotGenerator:
    def __init__(self, store: ReservationStore, hours: OperatingHours = OPERATING_HOURS):
        self.store = store
        self.hours = hours

    async def check_availability(
        self,
        tenant_id: UUID,
        day: date,
        party_size: int,
        duration: Optional[int] = None,
    ) -> List[TimeSlot]:
        """One TimeSlot per grid start whose window ends by closing time.

        Returns an empty list when no active table can seat the party.
        """
        if party_size < 1:
            raise BadRequestError("Party size must be at least 1")
        duration = duration or self.hours.default_duration_minutes
        if duration <= 0:
            raise BadRequestError("Reservation duration must be a positive number of minutes")

        tables = await self.store.list_active_tables(
            tenant_id,
            min_capacity_at_most=party_size,
            max_capacity_at_least=party_size,
        )
        if not tables:
            return []

        booked = await self.store.list_reservations(
            tenant_id,
            ReservationFilter(
                date_from=day,
                date_to=day,
                table_ids=[table.id for table in tables],
                exclude_statuses=tuple(INACTIVE_STATUSES),
            ),
        )
        windows_by_table: Dict[UUID, List[Interval]] = defaultdict(list)
        for reservation in booked:
            windows_by_table[reservation.table_id].append(
                Interval(reservation.start_time, reservation.end_time)
            )

        closing = self.hours.closing(day)
        length = timedelta(minutes=duration)
        buffer = self.hours.buffer

        slots = []
        for start in self.hours.slot_starts(day):
            window = Interval(start, start + length)
            if window.end > closing:
                continue

            free = [
                table.id
                for table in tables
                if not any(overlaps(window, taken, buffer) for taken in windows_by_table[table.id])
            ]
            slots.append(
                TimeSlot(
                    time=f"{start:%H:%M}",
                    available=bool(free),
                    available_tables=len(free),
                    table_ids=free,
                )
            )
        return slots
