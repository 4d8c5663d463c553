"""Data-store interface for the scheduling core and its SQLAlchemy implementation"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tableflow.models.guest import Guest
from tableflow.models.reservation import Reservation, ReservationHistory, ReservationStatus
from tableflow.models.table import DiningTable
from tableflow.models.tenant import Tenant
from tableflow.scheduling.intervals import Interval


@dataclass
class ReservationFilter:
    """Criteria for listing and counting reservations of one tenant"""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    statuses: Sequence[ReservationStatus] = ()
    exclude_statuses: Sequence[ReservationStatus] = ()
    table_id: Optional[UUID] = None
    table_ids: Optional[Sequence[UUID]] = None
    window: Optional[Interval] = None  # rows whose [start_time, end_time) meets this window
    exclude_id: Optional[UUID] = None
    search: Optional[str] = None
    archived: Optional[bool] = None
    starts_before: Optional[datetime] = None
    seated_before: Optional[datetime] = None
    offset: int = 0
    limit: Optional[int] = None


class ReservationStore(Protocol):
    """Persistence operations the scheduler depends on.

    Every lookup is scoped to a tenant id; a row belonging to another tenant
    behaves exactly like a missing row.
    """

    async def get_tenant(self, tenant_id: UUID) -> Optional[Tenant]: ...

    async def list_tenants(self) -> List[Tenant]: ...

    async def get_table(self, tenant_id: UUID, table_id: UUID) -> Optional[DiningTable]: ...

    async def list_active_tables(
        self,
        tenant_id: UUID,
        min_capacity_at_most: int,
        max_capacity_at_least: int,
    ) -> List[DiningTable]: ...

    async def list_tables(self, tenant_id: UUID) -> List[DiningTable]: ...

    async def lock_table(self, tenant_id: UUID, table_id: UUID) -> None: ...

    async def get_reservation(self, tenant_id: UUID, reservation_id: UUID) -> Optional[Reservation]: ...

    async def get_reservation_by_code(self, tenant_id: UUID, code: str) -> Optional[Reservation]: ...

    async def confirmation_code_exists(self, code: str) -> bool: ...

    async def list_reservations(self, tenant_id: UUID, criteria: ReservationFilter) -> List[Reservation]: ...

    async def count_reservations(self, tenant_id: UUID, criteria: ReservationFilter) -> int: ...

    async def create_reservation(self, tenant_id: UUID, data: Dict[str, Any]) -> Reservation: ...

    async def update_reservation(
        self, tenant_id: UUID, reservation_id: UUID, patch: Dict[str, Any]
    ) -> Reservation: ...

    async def delete_reservation(self, tenant_id: UUID, reservation_id: UUID) -> None: ...

    async def append_history(self, record: Dict[str, Any]) -> ReservationHistory: ...

    async def list_history(self, reservation_id: UUID, limit: int = 20) -> List[ReservationHistory]: ...

    async def increment_guest_visit(self, tenant_id: UUID, guest_id: UUID, visited_at: datetime) -> bool: ...

    async def archive_reservations(
        self, tenant_id: UUID, before: date, statuses: Sequence[ReservationStatus]
    ) -> int: ...


class SqlReservationStore:
    """ReservationStore backed by an ``AsyncSession``.

    Write methods commit immediately. The session must be created with
    ``expire_on_commit=False`` so returned rows stay readable after commit.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # Tenants and tables

    async def get_tenant(self, tenant_id: UUID) -> Optional[Tenant]:
        result = await self.session.execute(
            select(Tenant).where(Tenant.id == tenant_id, Tenant.is_active == True)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def list_tenants(self) -> List[Tenant]:
        result = await self.session.execute(
            select(Tenant).where(Tenant.is_active == True).order_by(Tenant.created_at)  # noqa: E712
        )
        return list(result.scalars().all())

    async def get_table(self, tenant_id: UUID, table_id: UUID) -> Optional[DiningTable]:
        result = await self.session.execute(
            select(DiningTable).where(
                DiningTable.id == table_id,
                DiningTable.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_active_tables(
        self,
        tenant_id: UUID,
        min_capacity_at_most: int,
        max_capacity_at_least: int,
    ) -> List[DiningTable]:
        result = await self.session.execute(
            select(DiningTable)
            .where(
                DiningTable.tenant_id == tenant_id,
                DiningTable.is_active == True,  # noqa: E712
                DiningTable.min_capacity <= min_capacity_at_most,
                DiningTable.max_capacity >= max_capacity_at_least,
            )
            .order_by(DiningTable.max_capacity.asc(), DiningTable.name.asc())
        )
        return list(result.scalars().all())

    async def list_tables(self, tenant_id: UUID) -> List[DiningTable]:
        result = await self.session.execute(
            select(DiningTable)
            .where(DiningTable.tenant_id == tenant_id, DiningTable.is_active == True)  # noqa: E712
            .order_by(DiningTable.section.asc(), DiningTable.name.asc())
        )
        return list(result.scalars().all())

    async def lock_table(self, tenant_id: UUID, table_id: UUID) -> None:
        # Row lock held until the session's next commit or rollback.
        # SQLite ignores FOR UPDATE.
        await self.session.execute(
            select(DiningTable.id)
            .where(DiningTable.id == table_id, DiningTable.tenant_id == tenant_id)
            .with_for_update()
        )

    # Reservations

    async def get_reservation(self, tenant_id: UUID, reservation_id: UUID) -> Optional[Reservation]:
        result = await self.session.execute(
            select(Reservation).where(
                Reservation.id == reservation_id,
                Reservation.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_reservation_by_code(self, tenant_id: UUID, code: str) -> Optional[Reservation]:
        result = await self.session.execute(
            select(Reservation).where(
                Reservation.confirmation_code == code.upper(),
                Reservation.tenant_id == tenant_id,
            )
        )
        return result.scalar_one_or_none()

    async def confirmation_code_exists(self, code: str) -> bool:
        result = await self.session.execute(
            select(func.count(Reservation.id)).where(Reservation.confirmation_code == code)
        )
        return bool(result.scalar())

    def _apply_filter(self, query: Select, tenant_id: UUID, criteria: ReservationFilter) -> Select:
        query = query.where(Reservation.tenant_id == tenant_id)

        if criteria.date_from:
            query = query.where(Reservation.date >= criteria.date_from)
        if criteria.date_to:
            query = query.where(Reservation.date <= criteria.date_to)
        if criteria.statuses:
            query = query.where(Reservation.status.in_(list(criteria.statuses)))
        if criteria.exclude_statuses:
            query = query.where(Reservation.status.not_in(list(criteria.exclude_statuses)))
        if criteria.table_id:
            query = query.where(Reservation.table_id == criteria.table_id)
        if criteria.table_ids is not None:
            query = query.where(Reservation.table_id.in_(list(criteria.table_ids)))
        if criteria.window:
            query = query.where(
                Reservation.start_time < criteria.window.end,
                Reservation.end_time > criteria.window.start,
            )
        if criteria.exclude_id:
            query = query.where(Reservation.id != criteria.exclude_id)
        if criteria.archived is not None:
            query = query.where(Reservation.is_archived == criteria.archived)
        if criteria.starts_before:
            query = query.where(Reservation.start_time < criteria.starts_before)
        if criteria.seated_before:
            query = query.where(Reservation.seated_at < criteria.seated_before)
        if criteria.search:
            term = f"%{criteria.search.strip()}%"
            query = query.where(
                or_(
                    Reservation.guest_name.ilike(term),
                    Reservation.guest_email.ilike(term),
                    Reservation.guest_phone.ilike(term),
                    Reservation.confirmation_code.ilike(term),
                )
            )
        return query

    async def list_reservations(self, tenant_id: UUID, criteria: ReservationFilter) -> List[Reservation]:
        query = self._apply_filter(select(Reservation), tenant_id, criteria)
        query = query.order_by(Reservation.date.asc(), Reservation.start_time.asc())
        if criteria.offset:
            query = query.offset(criteria.offset)
        if criteria.limit is not None:
            query = query.limit(criteria.limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_reservations(self, tenant_id: UUID, criteria: ReservationFilter) -> int:
        query = self._apply_filter(select(func.count(Reservation.id)), tenant_id, criteria)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def create_reservation(self, tenant_id: UUID, data: Dict[str, Any]) -> Reservation:
        reservation = Reservation(tenant_id=tenant_id, **data)
        self.session.add(reservation)
        await self.session.commit()
        await self.session.refresh(reservation)
        return reservation

    async def update_reservation(
        self, tenant_id: UUID, reservation_id: UUID, patch: Dict[str, Any]
    ) -> Reservation:
        reservation = await self.get_reservation(tenant_id, reservation_id)
        if reservation is None:
            raise LookupError(f"Reservation {reservation_id} not found")

        for field, value in patch.items():
            setattr(reservation, field, value)

        await self.session.commit()
        await self.session.refresh(reservation)
        return reservation

    async def delete_reservation(self, tenant_id: UUID, reservation_id: UUID) -> None:
        await self.session.execute(
            delete(Reservation).where(
                Reservation.id == reservation_id,
                Reservation.tenant_id == tenant_id,
            )
        )
        await self.session.commit()

    async def archive_reservations(
        self, tenant_id: UUID, before: date, statuses: Sequence[ReservationStatus]
    ) -> int:
        result = await self.session.execute(
            update(Reservation)
            .where(
                Reservation.tenant_id == tenant_id,
                Reservation.date < before,
                Reservation.status.in_(list(statuses)),
                Reservation.is_archived == False,  # noqa: E712
            )
            .values(is_archived=True)
        )
        await self.session.commit()
        return result.rowcount or 0

    # History

    async def append_history(self, record: Dict[str, Any]) -> ReservationHistory:
        entry = ReservationHistory(**record)
        self.session.add(entry)
        await self.session.commit()
        return entry

    async def list_history(self, reservation_id: UUID, limit: int = 20) -> List[ReservationHistory]:
        result = await self.session.execute(
            select(ReservationHistory)
            .where(ReservationHistory.reservation_id == reservation_id)
            .order_by(ReservationHistory.changed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # Guests

    async def increment_guest_visit(self, tenant_id: UUID, guest_id: UUID, visited_at: datetime) -> bool:
        result = await self.session.execute(
            update(Guest)
            .where(Guest.id == guest_id, Guest.tenant_id == tenant_id)
            .values(total_visits=Guest.total_visits + 1, last_visit_at=visited_at)
        )
        await self.session.commit()
        return bool(result.rowcount)
