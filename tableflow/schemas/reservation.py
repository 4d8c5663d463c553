"""Reservation schemas"""

from datetime import date as date_type, datetime, time as time_type
from typing import Any, List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from tableflow.models.reservation import HistoryAction, ReservationSource, ReservationStatus


class ReservationCreate(BaseModel):
    """Create reservation request"""
    guest_name: str = Field(min_length=1, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    party_size: int = Field(ge=1, le=20)
    date: date_type
    start_time: time_type
    duration: Optional[int] = Field(default=None, ge=30, le=300)  # minutes
    table_id: Optional[UUID] = None
    source: ReservationSource = ReservationSource.WALK_IN
    special_requests: Optional[str] = None
    dietary_notes: Optional[str] = None
    celebration_note: Optional[str] = None
    is_vip: bool = False
    guest_id: Optional[UUID] = None


class GuestReservationRequest(BaseModel):
    """Booking request from an anonymous guest.

    Table, VIP flag, guest profile and source are staff-only and are not
    accepted here.
    """
    guest_name: str = Field(min_length=1, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    party_size: int = Field(ge=1, le=20)
    date: date_type
    start_time: time_type
    duration: Optional[int] = Field(default=None, ge=30, le=300)
    special_requests: Optional[str] = None
    dietary_notes: Optional[str] = None
    celebration_note: Optional[str] = None

    def to_create(self) -> ReservationCreate:
        return ReservationCreate(**self.model_dump(), source=ReservationSource.ONLINE)


class ReservationUpdate(BaseModel):
    """Update reservation request.

    Status is not patchable here; it only moves through the status endpoints.
    """
    guest_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    party_size: Optional[int] = Field(default=None, ge=1, le=20)
    date: Optional[date_type] = None
    start_time: Optional[time_type] = None
    duration: Optional[int] = Field(default=None, ge=30, le=300)
    table_id: Optional[UUID] = None
    source: Optional[ReservationSource] = None
    special_requests: Optional[str] = None
    dietary_notes: Optional[str] = None
    celebration_note: Optional[str] = None
    internal_notes: Optional[str] = None
    is_vip: Optional[bool] = None


class ReservationReschedule(BaseModel):
    """Move a reservation to a new date/time, optionally to another table"""
    date: date_type
    start_time: time_type
    table_id: Optional[UUID] = None
    reason: Optional[str] = None


class TableChange(BaseModel):
    """Move a reservation to another table"""
    table_id: UUID
    reason: Optional[str] = None


class StatusChange(BaseModel):
    """Status transition request"""
    status: ReservationStatus
    reason: Optional[str] = None


class CancelRequest(BaseModel):
    """Cancellation request"""
    reason: Optional[str] = None


class ReservationQuery(BaseModel):
    """Listing filters"""
    date: Optional[date_type] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    view: str = Field(default="day", pattern="^(day|week|month)$")
    status: List[ReservationStatus] = []
    table_id: Optional[UUID] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=100)


class ReservationResponse(BaseModel):
    """Reservation response"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    table_id: Optional[UUID]
    guest_id: Optional[UUID]
    guest_name: str
    guest_email: Optional[str]
    guest_phone: Optional[str]
    party_size: int
    date: date_type
    start_time: datetime
    end_time: datetime
    duration: int
    status: ReservationStatus
    source: ReservationSource
    confirmation_code: str
    special_requests: Optional[str]
    dietary_notes: Optional[str]
    celebration_note: Optional[str]
    internal_notes: Optional[str]
    is_vip: bool
    confirmed_at: Optional[datetime]
    seated_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    cancel_reason: Optional[str]
    no_show_at: Optional[datetime]
    is_archived: bool
    created_at: datetime
    updated_at: datetime


class HistoryResponse(BaseModel):
    """Reservation history entry"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reservation_id: UUID
    action: HistoryAction
    previous_value: Optional[Any]
    new_value: Optional[Any]
    changed_by: Optional[UUID]
    notes: Optional[str]
    changed_at: datetime


class ReservationDetailResponse(ReservationResponse):
    """Reservation with its recent history"""
    history: List[HistoryResponse] = []


class DateRange(BaseModel):
    start: date_type
    end: date_type


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[ReservationResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    date_range: DateRange


class AvailabilityRequest(BaseModel):
    """Availability check request"""
    date: date_type
    party_size: int = Field(ge=1, le=50)
    duration: Optional[int] = Field(default=None, ge=30, le=300)


class TimeSlot(BaseModel):
    """Bookable start time and the tables that can take it"""
    time: str
    available: bool
    available_tables: int
    table_ids: List[UUID] = []


class AvailabilityResponse(BaseModel):
    """Availability check response"""
    date: date_type
    party_size: int
    slots: List[TimeSlot] = []


class CalendarDay(BaseModel):
    """Per-day reservation summary"""
    date: date_type
    total_reservations: int
    total_guests: int
    confirmed_count: int
    pending_count: int
    waitlist_count: int
    is_peak_day: bool


class TableSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    section: Optional[str]
    min_capacity: int
    max_capacity: int
    is_active: bool


class TableSchedule(BaseModel):
    table: TableSummary
    reservations: List[ReservationResponse] = []


class HourlyStat(BaseModel):
    hour: int
    label: str
    reservation_count: int
    guest_count: int


class DaySummary(BaseModel):
    total_reservations: int
    total_guests: int
    confirmed_count: int
    seated_count: int
    pending_count: int


class DaySchedule(BaseModel):
    """Floor view of a single day"""
    date: date_type
    schedule: List[TableSchedule]
    unassigned: List[ReservationResponse]
    hourly_stats: List[HourlyStat]
    summary: DaySummary
