"""Table selection and double-booking checks"""

from datetime import timedelta
from typing import List, Optional
from uuid import UUID

import structlog

from tableflow.models.reservation import Reservation
from tableflow.models.table import DiningTable
from tableflow.scheduling.errors import ConflictError
from tableflow.scheduling.hours import OPERATING_HOURS
from tableflow.scheduling.intervals import Interval, overlaps
from tableflow.scheduling.state_machine import INACTIVE_STATUSES
from tableflow.scheduling.store import ReservationFilter, ReservationStore

logger = structlog.get_logger()


class TableAllocator:
    """Validates a table for a window or picks the snuggest free one"""

    def __init__(self, store: ReservationStore, buffer: timedelta = OPERATING_HOURS.buffer):
        self.store = store
        self.buffer = buffer

    async def find_conflict(
        self,
        tenant_id: UUID,
        table_id: UUID,
        window: Interval,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> Optional[Reservation]:
        """Return the first active reservation on the table that clashes with ``window``"""
        padded = Interval(window.start - self.buffer, window.end + self.buffer)
        booked = await self.store.list_reservations(
            tenant_id,
            ReservationFilter(
                table_id=table_id,
                window=padded,
                exclude_statuses=tuple(INACTIVE_STATUSES),
                exclude_id=exclude_reservation_id,
            ),
        )
        for reservation in booked:
            if overlaps(window, Interval(reservation.start_time, reservation.end_time), self.buffer):
                return reservation
        return None

    async def check_availability(
        self,
        tenant_id: UUID,
        table_id: UUID,
        window: Interval,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> None:
        """Raise ConflictError if the table is taken during ``window``"""
        conflict = await self.find_conflict(tenant_id, table_id, window, exclude_reservation_id)
        if conflict is None:
            return

        table = await self.store.get_table(tenant_id, table_id)
        table_name = table.name if table else str(table_id)
        logger.warning(
            "Table conflict",
            tenant_id=str(tenant_id),
            table_id=str(table_id),
            requested=window.label(),
            conflicting_reservation_id=str(conflict.id),
        )
        raise ConflictError(
            f"Table {table_name} is already reserved from "
            f"{conflict.start_time:%H:%M} to {conflict.end_time:%H:%M}"
        )

    async def candidate_tables(self, tenant_id: UUID, party_size: int) -> List[DiningTable]:
        """Active tables sized for the party, smallest first"""
        return await self.store.list_active_tables(
            tenant_id,
            min_capacity_at_most=party_size,
            max_capacity_at_least=party_size,
        )

    async def find_available_table(
        self,
        tenant_id: UUID,
        window: Interval,
        party_size: int,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> Optional[DiningTable]:
        """Pick the first free candidate table, or None when every one is booked"""
        for table in await self.candidate_tables(tenant_id, party_size):
            try:
                await self.check_availability(tenant_id, table.id, window, exclude_reservation_id)
            except ConflictError:
                continue
            return table
        return None
