"""Reservation scheduling and table availability core"""

from tableflow.scheduling.errors import (
    SchedulingError,
    NotFoundError,
    ConflictError,
    InvalidTransitionError,
    BadRequestError,
)
from tableflow.scheduling.intervals import Interval, overlaps
from tableflow.scheduling.locks import TableLocks
from tableflow.scheduling.service import ReservationScheduler
from tableflow.scheduling.store import ReservationFilter, ReservationStore, SqlReservationStore

__all__ = [
    "SchedulingError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "BadRequestError",
    "Interval",
    "overlaps",
    "TableLocks",
    "ReservationScheduler",
    "ReservationFilter",
    "ReservationStore",
    "SqlReservationStore",
]
