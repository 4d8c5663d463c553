"""Pydantic schemas for request/response validation"""

from tableflow.schemas.auth import Token, UserResponse
from tableflow.schemas.reservation import (
    ReservationCreate,
    GuestReservationRequest,
    ReservationUpdate,
    ReservationReschedule,
    TableChange,
    StatusChange,
    CancelRequest,
    ReservationQuery,
    ReservationResponse,
    ReservationDetailResponse,
    ReservationListResponse,
    HistoryResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    TimeSlot,
    CalendarDay,
    DaySchedule,
)

__all__ = [
    "Token",
    "UserResponse",
    "ReservationCreate",
    "GuestReservationRequest",
    "ReservationUpdate",
    "ReservationReschedule",
    "TableChange",
    "StatusChange",
    "CancelRequest",
    "ReservationQuery",
    "ReservationResponse",
    "ReservationDetailResponse",
    "ReservationListResponse",
    "HistoryResponse",
    "AvailabilityRequest",
    "AvailabilityResponse",
    "TimeSlot",
    "CalendarDay",
    "DaySchedule",
]
