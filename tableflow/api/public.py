"""Guest-facing reservation endpoints (no authentication)"""

from uuid import UUID

from fastapi import APIRouter, Depends

from tableflow.api.deps import get_scheduler
from tableflow.scheduling import ReservationScheduler
from tableflow.schemas.reservation import (
    AvailabilityRequest,
    AvailabilityResponse,
    GuestReservationRequest,
    ReservationResponse,
)

router = APIRouter()


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    tenant_id: UUID,
    request: AvailabilityRequest,
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Bookable time slots for a party on a date"""
    slots = await scheduler.check_availability(
        tenant_id, request.date, request.party_size, request.duration
    )
    return AvailabilityResponse(date=request.date, party_size=request.party_size, slots=slots)


@router.post("", response_model=ReservationResponse, status_code=201)
async def request_reservation(
    tenant_id: UUID,
    reservation_data: GuestReservationRequest,
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Guest booking request; stays pending until staff confirm it"""
    return await scheduler.create(tenant_id, reservation_data.to_create())


@router.get("/{code}", response_model=ReservationResponse)
async def get_reservation_by_code(
    tenant_id: UUID,
    code: str,
    scheduler: ReservationScheduler = Depends(get_scheduler),
):
    """Guest self-service lookup by confirmation code"""
    return await scheduler.get_by_code(tenant_id, code)
