"""Day, week and month summaries of the reservation book"""

from collections import Counter
from datetime import date, timedelta
from typing import List
from uuid import UUID

from tableflow.models.reservation import ReservationStatus
from tableflow.schemas.reservation import (
    CalendarDay,
    DaySchedule,
    DaySummary,
    HourlyStat,
    ReservationResponse,
    TableSchedule,
    TableSummary,
)
from tableflow.scheduling.errors import BadRequestError
from tableflow.scheduling.hours import OPERATING_HOURS, OperatingHours
from tableflow.scheduling.store import ReservationFilter, ReservationStore

PEAK_DAY_FACTOR = 1.3
MAX_OVERVIEW_DAYS = 366


def _hour_label(hour: int) -> str:
    return f"{hour % 12 or 12}:00 {'AM' if hour < 12 else 'PM'}"


class CalendarAggregator:
    def __init__(self, store: ReservationStore, hours: OperatingHours = OPERATING_HOURS):
        self.store = store
        self.hours = hours

    async def get_calendar_overview(
        self, tenant_id: UUID, start_date: date, end_date: date
    ) -> List[CalendarDay]:
        """Summaries for every day in the inclusive range, in date order.

        A day is peak when it holds at least 1.3x the mean daily count of the
        range, the mean taken over all days including empty ones. Empty days
        are never peak.
        """
        if end_date < start_date:
            raise BadRequestError("End date must not be before start date")
        span = (end_date - start_date).days + 1
        if span > MAX_OVERVIEW_DAYS:
            raise BadRequestError(f"Calendar range is limited to {MAX_OVERVIEW_DAYS} days")

        reservations = await self.store.list_reservations(
            tenant_id,
            ReservationFilter(
                date_from=start_date,
                date_to=end_date,
                exclude_statuses=(ReservationStatus.CANCELLED,),
            ),
        )

        by_day = {}
        for reservation in reservations:
            by_day.setdefault(reservation.date, []).append(reservation)

        days = [start_date + timedelta(days=offset) for offset in range(span)]
        mean = sum(len(by_day.get(day, [])) for day in days) / len(days)
        threshold = mean * PEAK_DAY_FACTOR

        overview = []
        for day in days:
            booked = by_day.get(day, [])
            statuses = Counter(r.status for r in booked)
            overview.append(
                CalendarDay(
                    date=day,
                    total_reservations=len(booked),
                    total_guests=sum(r.party_size for r in booked),
                    confirmed_count=statuses[ReservationStatus.CONFIRMED] + statuses[ReservationStatus.SEATED],
                    pending_count=statuses[ReservationStatus.PENDING],
                    waitlist_count=statuses[ReservationStatus.WAITLIST],
                    is_peak_day=bool(booked) and len(booked) >= threshold,
                )
            )
        return overview

    async def get_day_schedule(self, tenant_id: UUID, day: date) -> DaySchedule:
        """Reservations of one day grouped by table, plus hourly load"""
        reservations = await self.store.list_reservations(
            tenant_id,
            ReservationFilter(
                date_from=day,
                date_to=day,
                exclude_statuses=(ReservationStatus.CANCELLED,),
            ),
        )
        tables = await self.store.list_tables(tenant_id)

        # Bookings can sit on a table that was deactivated after they were made
        active_ids = {table.id for table in tables}
        for table_id in sorted({r.table_id for r in reservations if r.table_id} - active_ids, key=str):
            table = await self.store.get_table(tenant_id, table_id)
            if table is not None:
                tables.append(table)

        rows = [ReservationResponse.model_validate(r) for r in reservations]
        schedule = [
            TableSchedule(
                table=TableSummary.model_validate(table),
                reservations=[row for row in rows if row.table_id == table.id],
            )
            for table in tables
        ]
        listed_ids = {table.id for table in tables}
        unassigned = [row for row in rows if row.table_id not in listed_ids]

        hourly_stats = []
        for hour in self.hours.hours():
            in_hour = [row for row in rows if row.start_time.hour == hour]
            hourly_stats.append(
                HourlyStat(
                    hour=hour,
                    label=_hour_label(hour),
                    reservation_count=len(in_hour),
                    guest_count=sum(row.party_size for row in in_hour),
                )
            )

        statuses = Counter(row.status for row in rows)
        return DaySchedule(
            date=day,
            schedule=schedule,
            unassigned=unassigned,
            hourly_stats=hourly_stats,
            summary=DaySummary(
                total_reservations=len(rows),
                total_guests=sum(row.party_size for row in rows),
                confirmed_count=statuses[ReservationStatus.CONFIRMED],
                seated_count=statuses[ReservationStatus.SEATED],
                pending_count=statuses[ReservationStatus.PENDING],
            ),
        )
