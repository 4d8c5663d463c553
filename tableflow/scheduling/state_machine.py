"""Reservation status lifecycle"""

from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID

from tableflow.models.reservation import ReservationStatus
from tableflow.scheduling.errors import InvalidTransitionError

S = ReservationStatus

# REMINDED is never a target here; only the external reminder job writes it.
ALLOWED_TRANSITIONS: Dict[ReservationStatus, FrozenSet[ReservationStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED, S.WAITLIST}),
    S.CONFIRMED: frozenset({S.SEATED, S.CANCELLED, S.NO_SHOW}),
    S.WAITLIST: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.SEATED: frozenset({S.COMPLETED}),
    S.REMINDED: frozenset({S.SEATED, S.CANCELLED, S.NO_SHOW}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

if set(ALLOWED_TRANSITIONS) != set(ReservationStatus):
    raise RuntimeError("Transition table must cover every reservation status")

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Statuses that no longer hold a table
INACTIVE_STATUSES = frozenset({S.CANCELLED, S.NO_SHOW, S.COMPLETED})


def initial_status(actor_id: Optional[UUID]) -> ReservationStatus:
    """Staff bookings are confirmed on creation, guest bookings wait for review"""
    return S.CONFIRMED if actor_id else S.PENDING


def can_transition(from_status: ReservationStatus, to_status: ReservationStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS[ReservationStatus(from_status)]


def validate_transition(from_status: ReservationStatus, to_status: ReservationStatus) -> None:
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def transition_patch(
    from_status: ReservationStatus,
    to_status: ReservationStatus,
    now: datetime,
    actor_id: Optional[UUID] = None,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate the move and return the column updates it implies.

    The status and its timestamp are returned together so the caller writes
    them in one update.
    """
    validate_transition(from_status, to_status)

    patch: Dict[str, Any] = {"status": to_status}
    if to_status == S.CONFIRMED:
        patch["confirmed_at"] = now
        patch["confirmed_by"] = actor_id
    elif to_status == S.SEATED:
        patch["seated_at"] = now
    elif to_status == S.COMPLETED:
        patch["completed_at"] = now
    elif to_status == S.CANCELLED:
        patch["cancelled_at"] = now
        patch["cancel_reason"] = reason
    elif to_status == S.NO_SHOW:
        patch["no_show_at"] = now
    return patch
