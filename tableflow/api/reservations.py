"""Reservation management API endpoints (staff)"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tableflow.api.auth import verify_tenant_access, verify_tenant_admin
from tableflow.api.deps import get_scheduler
from tableflow.models.reservation import ReservationStatus
from tableflow.models.user import User
from tableflow.scheduling import ReservationScheduler
from tableflow.schemas.reservation import (
    AvailabilityRequest,
    AvailabilityResponse,
    CalendarDay,
    CancelRequest,
    DaySchedule,
    HistoryResponse,
    ReservationCreate,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationQuery,
    ReservationReschedule,
    ReservationResponse,
    ReservationUpdate,
    StatusChange,
    TableChange,
)

router = APIRouter()


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    tenant_id: UUID,
    date: Optional[date] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    view: str = Query("day", pattern="^(day|week|month)$"),
    status: List[ReservationStatus] = Query([]),
    table_id: Optional[UUID] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """List reservations for a day, week, month or explicit range"""
    query = ReservationQuery(
        date=date,
        start_date=start_date,
        end_date=end_date,
        view=view,
        status=status,
        table_id=table_id,
        search=search,
        page=page,
        limit=limit,
    )
    return await scheduler.list_reservations(tenant_id, query)


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    tenant_id: UUID,
    reservation_data: ReservationCreate,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Create a reservation; staff bookings are confirmed immediately"""
    return await scheduler.create(tenant_id, reservation_data, actor_id=current_user.id)


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    tenant_id: UUID,
    request: AvailabilityRequest,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Bookable time slots for a party on a date"""
    slots = await scheduler.check_availability(
        tenant_id, request.date, request.party_size, request.duration
    )
    return AvailabilityResponse(date=request.date, party_size=request.party_size, slots=slots)


@router.get("/calendar/overview", response_model=List[CalendarDay])
async def get_calendar_overview(
    tenant_id: UUID,
    start_date: date,
    end_date: date,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Per-day summaries with peak-day detection"""
    return await scheduler.get_calendar_overview(tenant_id, start_date, end_date)


@router.get("/calendar/day/{day}", response_model=DaySchedule)
async def get_day_schedule(
    tenant_id: UUID,
    day: date,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Reservations of one day grouped by table"""
    return await scheduler.get_day_schedule(tenant_id, day)


@router.get("/code/{code}", response_model=ReservationResponse)
async def get_reservation_by_code(
    tenant_id: UUID,
    code: str,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Look up a reservation by confirmation code"""
    return await scheduler.get_by_code(tenant_id, code)


@router.get("/{reservation_id}", response_model=ReservationDetailResponse)
async def get_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Get reservation details with recent history"""
    reservation, history = await scheduler.get_with_history(tenant_id, reservation_id)
    return ReservationDetailResponse(
        **ReservationResponse.model_validate(reservation).model_dump(),
        history=[HistoryResponse.model_validate(entry) for entry in history],
    )


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Update reservation details"""
    return await scheduler.update(tenant_id, reservation_id, reservation_data, actor_id=current_user.id)


@router.delete("/{reservation_id}", status_code=204)
async def delete_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_admin),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Delete a reservation (admins only; history is kept)"""
    await scheduler.remove(tenant_id, reservation_id, actor_id=current_user.id)


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
async def change_status(
    tenant_id: UUID,
    reservation_id: UUID,
    request: StatusChange,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Move a reservation through its lifecycle"""
    return await scheduler.change_status(
        tenant_id, reservation_id, request.status, reason=request.reason, actor_id=current_user.id
    )


@router.patch("/{reservation_id}/reschedule", response_model=ReservationResponse)
async def reschedule_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    request: ReservationReschedule,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Move a reservation to a new date and time"""
    return await scheduler.reschedule(tenant_id, reservation_id, request, actor_id=current_user.id)


@router.patch("/{reservation_id}/table", response_model=ReservationResponse)
async def change_table(
    tenant_id: UUID,
    reservation_id: UUID,
    request: TableChange,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Move a reservation to another table"""
    return await scheduler.change_table(tenant_id, reservation_id, request, actor_id=current_user.id)


# Quick status actions

@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    return await scheduler.confirm(tenant_id, reservation_id, actor_id=current_user.id)


@router.post("/{reservation_id}/seat", response_model=ReservationResponse)
async def seat_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    return await scheduler.seat(tenant_id, reservation_id, actor_id=current_user.id)


@router.post("/{reservation_id}/complete", response_model=ReservationResponse)
async def complete_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    return await scheduler.complete(tenant_id, reservation_id, actor_id=current_user.id)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    tenant_id: UUID,
    reservation_id: UUID,
    request: Optional[CancelRequest] = None,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    reason = request.reason if request else None
    return await scheduler.cancel(tenant_id, reservation_id, reason=reason, actor_id=current_user.id)


@router.post("/{reservation_id}/no-show", response_model=ReservationResponse)
async def mark_no_show(
    tenant_id: UUID,
    reservation_id: UUID,
    current_user: User = Depends(verify_tenant_access),
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    return await scheduler.mark_no_show(tenant_id, reservation_id, actor_id=current_user.id)
