"""Database models"""

from tableflow.models.tenant import Tenant
from tableflow.models.table import DiningTable
from tableflow.models.guest import Guest
from tableflow.models.reservation import (
    Reservation,
    ReservationHistory,
    ReservationStatus,
    ReservationSource,
    HistoryAction,
)
from tableflow.models.user import User, UserRole

__all__ = [
    "Tenant",
    "DiningTable",
    "Guest",
    "Reservation",
    "ReservationHistory",
    "ReservationStatus",
    "ReservationSource",
    "HistoryAction",
    "User",
    "UserRole",
]
