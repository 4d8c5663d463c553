"""Reservation scheduler service

Orchestrates booking, rescheduling, table moves and status changes. Every
operation takes the tenant id explicitly; availability is always checked
against the proposed window and table while that table is locked, and only
then written.
"""

import calendar
import enum
import math
import secrets
import string
from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple
from uuid import UUID

import structlog

from tableflow.models.reservation import HistoryAction, Reservation, ReservationHistory, ReservationStatus
from tableflow.models.table import DiningTable
from tableflow.schemas.reservation import (
    CalendarDay,
    DateRange,
    DaySchedule,
    ReservationCreate,
    ReservationListResponse,
    ReservationQuery,
    ReservationReschedule,
    ReservationResponse,
    ReservationUpdate,
    TableChange,
    TimeSlot,
)
from tableflow.scheduling.allocator import TableAllocator
from tableflow.scheduling.calendar import CalendarAggregator
from tableflow.scheduling.errors import BadRequestError, ConflictError, NotFoundError
from tableflow.scheduling.hours import OPERATING_HOURS, OperatingHours
from tableflow.scheduling.intervals import Interval, resolve_window
from tableflow.scheduling.locks import TableLocks
from tableflow.scheduling.slots import SlotGenerator
from tableflow.scheduling.state_machine import INACTIVE_STATUSES, initial_status, transition_patch
from tableflow.scheduling.store import ReservationFilter, ReservationStore

logger = structlog.get_logger()

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
CODE_ATTEMPTS = 10

# Fields copied straight from a create request onto the reservation row
_CREATE_FIELDS = (
    "guest_name",
    "guest_email",
    "guest_phone",
    "party_size",
    "source",
    "special_requests",
    "dietary_notes",
    "celebration_note",
    "is_vip",
    "guest_id",
)

# Patch fields that may not be cleared
_REQUIRED_FIELDS = {"guest_name", "party_size", "date", "start_time", "duration", "source"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _snapshot(reservation: Reservation, fields) -> Dict[str, Any]:
    return {field: _jsonable(getattr(reservation, field)) for field in fields}


class ReservationScheduler:
    """Entry point for every reservation operation of a tenant"""

    def __init__(
        self,
        store: ReservationStore,
        locks: Optional[TableLocks] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        hours: OperatingHours = OPERATING_HOURS,
    ):
        self.store = store
        self.locks = locks or TableLocks()
        self.clock = clock
        self.hours = hours
        self.allocator = TableAllocator(store, buffer=hours.buffer)
        self.slots = SlotGenerator(store, hours)
        self.calendar = CalendarAggregator(store, hours)

    # ============================================
    # CRUD OPERATIONS
    # ============================================

    async def create(
        self,
        tenant_id: UUID,
        request: ReservationCreate,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        """Book a reservation.

        An explicit table must be free for the window. Without one, the
        snuggest free table is assigned, or the booking stays unassigned.
        """
        if await self.store.get_tenant(tenant_id) is None:
            raise BadRequestError(f"No restaurant configured for tenant {tenant_id}")

        duration = request.duration or self.hours.default_duration_minutes
        window = resolve_window(request.date, request.start_time, duration)
        now = self.clock()
        status = initial_status(actor_id)

        data: Dict[str, Any] = {field: getattr(request, field) for field in _CREATE_FIELDS}
        data.update(
            date=request.date,
            start_time=window.start,
            end_time=window.end,
            duration=duration,
            status=status,
            confirmation_code=await self._generate_confirmation_code(),
            created_by=actor_id,
        )
        if status == ReservationStatus.CONFIRMED:
            data.update(confirmed_at=now, confirmed_by=actor_id)

        if request.table_id:
            await self._get_bookable_table(tenant_id, request.table_id, request.party_size)
            async with self._table_guard(tenant_id, request.table_id):
                await self.allocator.check_availability(tenant_id, request.table_id, window)
                reservation = await self.store.create_reservation(
                    tenant_id, {**data, "table_id": request.table_id}
                )
        else:
            reservation = await self._create_auto_assigned(tenant_id, window, request.party_size, data)

        await self._log_history(
            reservation.id,
            HistoryAction.CREATED,
            None,
            _snapshot(reservation, ("status", "date", "start_time", "end_time", "table_id", "party_size")),
            actor_id,
            "New reservation created",
        )

        if request.guest_id:
            found = await self.store.increment_guest_visit(tenant_id, request.guest_id, now)
            if not found:
                logger.warning(
                    "Linked guest profile not found",
                    tenant_id=str(tenant_id),
                    guest_id=str(request.guest_id),
                )

        logger.info(
            "Created reservation",
            tenant_id=str(tenant_id),
            reservation_id=str(reservation.id),
            table_id=str(reservation.table_id) if reservation.table_id else None,
            status=reservation.status.value,
        )
        return reservation

    async def get(self, tenant_id: UUID, reservation_id: UUID) -> Reservation:
        reservation = await self.store.get_reservation(tenant_id, reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    async def get_with_history(
        self, tenant_id: UUID, reservation_id: UUID, limit: int = 20
    ) -> Tuple[Reservation, List[ReservationHistory]]:
        """Reservation plus its most recent history, newest first"""
        reservation = await self.get(tenant_id, reservation_id)
        history = await self.store.list_history(reservation.id, limit=limit)
        return reservation, history

    async def get_by_code(self, tenant_id: UUID, code: str) -> Reservation:
        reservation = await self.store.get_reservation_by_code(tenant_id, code.strip())
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return reservation

    async def list_reservations(self, tenant_id: UUID, query: ReservationQuery) -> ReservationListResponse:
        start, end = self._resolve_range(query)
        criteria = ReservationFilter(
            date_from=start,
            date_to=end,
            statuses=tuple(query.status),
            table_id=query.table_id,
            search=query.search,
        )
        total = await self.store.count_reservations(tenant_id, criteria)

        criteria.offset = (query.page - 1) * query.limit
        criteria.limit = query.limit
        reservations = await self.store.list_reservations(tenant_id, criteria)

        return ReservationListResponse(
            items=[ReservationResponse.model_validate(r) for r in reservations],
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=math.ceil(total / query.limit),
            date_range=DateRange(start=start, end=end),
        )

    async def update(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        patch: ReservationUpdate,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        """Apply a partial update, re-checking the table when timing or table changes"""
        reservation = await self.get(tenant_id, reservation_id)
        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or field not in _REQUIRED_FIELDS
        }

        timing_changed = any(field in changes for field in ("date", "start_time", "duration"))
        table_changed = "table_id" in changes and changes["table_id"] != reservation.table_id

        values: Dict[str, Any] = {
            field: value
            for field, value in changes.items()
            if field not in ("date", "start_time", "duration", "table_id")
        }

        window = Interval(reservation.start_time, reservation.end_time)
        if timing_changed:
            day = changes.get("date", reservation.date)
            start = changes.get("start_time", reservation.start_time.time())
            duration = changes.get("duration", reservation.duration)
            window = resolve_window(day, start, duration)
            values.update(date=day, start_time=window.start, end_time=window.end, duration=duration)

        table_id = changes["table_id"] if "table_id" in changes else reservation.table_id
        if table_changed:
            values["table_id"] = table_id
        party_changed = values.get("party_size", reservation.party_size) != reservation.party_size
        if table_id and (table_changed or party_changed):
            party_size = values.get("party_size", reservation.party_size)
            await self._get_bookable_table(tenant_id, table_id, party_size)

        values = {
            field: value
            for field, value in values.items()
            if getattr(reservation, field) != value
        }
        if not values:
            return reservation

        previous = _snapshot(reservation, values)

        holds_table = reservation.status not in INACTIVE_STATUSES
        if table_id and holds_table and (timing_changed or table_changed):
            async with self._table_guard(tenant_id, table_id):
                await self.allocator.check_availability(
                    tenant_id, table_id, window, exclude_reservation_id=reservation.id
                )
                updated = await self.store.update_reservation(tenant_id, reservation.id, values)
        else:
            updated = await self.store.update_reservation(tenant_id, reservation.id, values)

        await self._log_history(
            updated.id,
            HistoryAction.UPDATED,
            previous,
            _snapshot(updated, values),
            actor_id,
        )
        logger.info(
            "Updated reservation",
            tenant_id=str(tenant_id),
            reservation_id=str(updated.id),
            fields=sorted(values),
        )
        return updated

    async def remove(self, tenant_id: UUID, reservation_id: UUID, actor_id: Optional[UUID] = None) -> None:
        """Hard delete. History rows are left in place."""
        reservation = await self.get(tenant_id, reservation_id)
        await self.store.delete_reservation(tenant_id, reservation.id)
        logger.info(
            "Deleted reservation",
            tenant_id=str(tenant_id),
            reservation_id=str(reservation_id),
            actor_id=str(actor_id) if actor_id else None,
        )

    # ============================================
    # STATUS MANAGEMENT
    # ============================================

    async def change_status(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        new_status: ReservationStatus,
        reason: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        reservation = await self.get(tenant_id, reservation_id)
        previous_status = reservation.status

        patch = transition_patch(previous_status, new_status, self.clock(), actor_id, reason)
        updated = await self.store.update_reservation(tenant_id, reservation.id, patch)

        await self._log_history(
            updated.id,
            HistoryAction.STATUS_CHANGED,
            previous_status.value,
            updated.status.value,
            actor_id,
            reason,
        )
        logger.info(
            "Changed reservation status",
            tenant_id=str(tenant_id),
            reservation_id=str(updated.id),
            previous_status=previous_status.value,
            status=updated.status.value,
        )
        return updated

    async def confirm(self, tenant_id: UUID, reservation_id: UUID, actor_id: Optional[UUID] = None) -> Reservation:
        return await self.change_status(tenant_id, reservation_id, ReservationStatus.CONFIRMED, actor_id=actor_id)

    async def seat(self, tenant_id: UUID, reservation_id: UUID, actor_id: Optional[UUID] = None) -> Reservation:
        return await self.change_status(tenant_id, reservation_id, ReservationStatus.SEATED, actor_id=actor_id)

    async def complete(self, tenant_id: UUID, reservation_id: UUID, actor_id: Optional[UUID] = None) -> Reservation:
        return await self.change_status(tenant_id, reservation_id, ReservationStatus.COMPLETED, actor_id=actor_id)

    async def cancel(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        reason: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        return await self.change_status(
            tenant_id, reservation_id, ReservationStatus.CANCELLED, reason=reason, actor_id=actor_id
        )

    async def mark_no_show(self, tenant_id: UUID, reservation_id: UUID, actor_id: Optional[UUID] = None) -> Reservation:
        return await self.change_status(tenant_id, reservation_id, ReservationStatus.NO_SHOW, actor_id=actor_id)

    # ============================================
    # RESCHEDULE & TABLE CHANGE
    # ============================================

    async def reschedule(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        request: ReservationReschedule,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        reservation = await self.get(tenant_id, reservation_id)
        window = resolve_window(request.date, request.start_time, reservation.duration)

        table_id = request.table_id or reservation.table_id
        if request.table_id and request.table_id != reservation.table_id:
            await self._get_bookable_table(tenant_id, request.table_id, reservation.party_size)

        previous = _snapshot(reservation, ("date", "start_time", "table_id"))
        patch = {
            "date": request.date,
            "start_time": window.start,
            "end_time": window.end,
            "table_id": table_id,
        }

        # Cancelled, no-show and completed bookings no longer hold their table
        if table_id and reservation.status not in INACTIVE_STATUSES:
            async with self._table_guard(tenant_id, table_id):
                await self.allocator.check_availability(
                    tenant_id, table_id, window, exclude_reservation_id=reservation.id
                )
                updated = await self.store.update_reservation(tenant_id, reservation.id, patch)
        else:
            updated = await self.store.update_reservation(tenant_id, reservation.id, patch)

        await self._log_history(
            updated.id,
            HistoryAction.RESCHEDULED,
            previous,
            _snapshot(updated, ("date", "start_time", "table_id")),
            actor_id,
            request.reason,
        )
        logger.info(
            "Rescheduled reservation",
            tenant_id=str(tenant_id),
            reservation_id=str(updated.id),
            start_time=updated.start_time.isoformat(),
        )
        return updated

    async def change_table(
        self,
        tenant_id: UUID,
        reservation_id: UUID,
        request: TableChange,
        actor_id: Optional[UUID] = None,
    ) -> Reservation:
        reservation = await self.get(tenant_id, reservation_id)
        table = await self._get_bookable_table(tenant_id, request.table_id, reservation.party_size)

        window = Interval(reservation.start_time, reservation.end_time)
        previous_table_id = reservation.table_id

        if reservation.status in INACTIVE_STATUSES:
            updated = await self.store.update_reservation(tenant_id, reservation.id, {"table_id": table.id})
        else:
            async with self._table_guard(tenant_id, table.id):
                await self.allocator.check_availability(
                    tenant_id, table.id, window, exclude_reservation_id=reservation.id
                )
                updated = await self.store.update_reservation(tenant_id, reservation.id, {"table_id": table.id})

        await self._log_history(
            updated.id,
            HistoryAction.TABLE_CHANGED,
            _jsonable(previous_table_id),
            _jsonable(table.id),
            actor_id,
            request.reason,
        )
        logger.info(
            "Moved reservation to another table",
            tenant_id=str(tenant_id),
            reservation_id=str(updated.id),
            table_id=str(table.id),
        )
        return updated

    # ============================================
    # AVAILABILITY & CALENDAR
    # ============================================

    async def check_availability(
        self,
        tenant_id: UUID,
        day: date,
        party_size: int,
        duration: Optional[int] = None,
    ) -> List[TimeSlot]:
        return await self.slots.check_availability(tenant_id, day, party_size, duration)

    async def check_table_availability(
        self,
        tenant_id: UUID,
        table_id: UUID,
        day: date,
        start_time: time,
        duration: Optional[int] = None,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> None:
        """Raise ConflictError if the table is booked around the given start"""
        window = resolve_window(day, start_time, duration or self.hours.default_duration_minutes)
        await self.allocator.check_availability(tenant_id, table_id, window, exclude_reservation_id)

    async def find_available_table(
        self,
        tenant_id: UUID,
        day: date,
        start_time: time,
        party_size: int,
        duration: Optional[int] = None,
    ) -> Optional[DiningTable]:
        window = resolve_window(day, start_time, duration or self.hours.default_duration_minutes)
        return await self.allocator.find_available_table(tenant_id, window, party_size)

    async def get_calendar_overview(self, tenant_id: UUID, start_date: date, end_date: date) -> List[CalendarDay]:
        return await self.calendar.get_calendar_overview(tenant_id, start_date, end_date)

    async def get_day_schedule(self, tenant_id: UUID, day: date) -> DaySchedule:
        return await self.calendar.get_day_schedule(tenant_id, day)

    # ============================================
    # HELPER METHODS
    # ============================================

    @asynccontextmanager
    async def _table_guard(self, tenant_id: UUID, table_id: UUID) -> AsyncIterator[None]:
        """Serialize check-then-write on one table"""
        async with self.locks.hold(tenant_id, table_id):
            await self.store.lock_table(tenant_id, table_id)
            yield

    async def _create_auto_assigned(
        self,
        tenant_id: UUID,
        window: Interval,
        party_size: int,
        data: Dict[str, Any],
    ) -> Reservation:
        for table in await self.allocator.candidate_tables(tenant_id, party_size):
            async with self._table_guard(tenant_id, table.id):
                if await self.allocator.find_conflict(tenant_id, table.id, window) is None:
                    return await self.store.create_reservation(tenant_id, {**data, "table_id": table.id})

        logger.info(
            "No free table, reservation left unassigned",
            tenant_id=str(tenant_id),
            party_size=party_size,
            window=window.label(),
        )
        return await self.store.create_reservation(tenant_id, {**data, "table_id": None})

    async def _get_bookable_table(self, tenant_id: UUID, table_id: UUID, party_size: int) -> DiningTable:
        table = await self.store.get_table(tenant_id, table_id)
        if table is None:
            raise NotFoundError("Table not found")
        if not table.is_active:
            raise BadRequestError(f"Table {table.name} is not active")
        if table.max_capacity < party_size:
            raise BadRequestError(
                f"Table capacity ({table.max_capacity}) is less than party size ({party_size})"
            )
        return table

    async def _generate_confirmation_code(self) -> str:
        for _ in range(CODE_ATTEMPTS):
            code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
            if not await self.store.confirmation_code_exists(code):
                return code
        raise ConflictError("Could not allocate a unique confirmation code")

    def _resolve_range(self, query: ReservationQuery) -> Tuple[date, date]:
        if query.date:
            if query.view == "week":
                start = query.date - timedelta(days=query.date.weekday())
                return start, start + timedelta(days=6)
            if query.view == "month":
                last_day = calendar.monthrange(query.date.year, query.date.month)[1]
                return query.date.replace(day=1), query.date.replace(day=last_day)
            return query.date, query.date

        if query.start_date and query.end_date:
            if query.end_date < query.start_date:
                raise BadRequestError("End date must not be before start date")
            return query.start_date, query.end_date

        today = self.clock().date()
        return today, today

    async def _log_history(
        self,
        reservation_id: UUID,
        action: HistoryAction,
        previous_value: Any,
        new_value: Any,
        changed_by: Optional[UUID] = None,
        notes: Optional[str] = None,
    ) -> None:
        await self.store.append_history(
            {
                "reservation_id": reservation_id,
                "action": action,
                "previous_value": previous_value,
                "new_value": new_value,
                "changed_by": changed_by,
                "notes": notes,
            }
        )
