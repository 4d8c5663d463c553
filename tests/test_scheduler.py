"""Tests for the reservation scheduler service"""

import pytest
from datetime import date, datetime, time
from uuid import uuid4

from sqlalchemy import select

from tableflow.models.reservation import (
    HistoryAction,
    ReservationHistory,
    ReservationSource,
    ReservationStatus,
)
from tableflow.scheduling import (
    BadRequestError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from tableflow.schemas.reservation import (
    ReservationCreate,
    ReservationQuery,
    ReservationReschedule,
    ReservationUpdate,
    TableChange,
)

DAY = date(2026, 1, 26)


def booking(**overrides):
    data = dict(
        guest_name="John Smith",
        guest_email="john@example.com",
        guest_phone="+15551234567",
        party_size=2,
        date=DAY,
        start_time=time(18, 0),
        duration=90,
        source=ReservationSource.PHONE,
    )
    data.update(overrides)
    return ReservationCreate(**data)


async def actions(scheduler, tenant_id, reservation_id):
    _, history = await scheduler.get_with_history(tenant_id, reservation_id)
    return [entry.action for entry in history]


# ============================================
# CREATE
# ============================================

@pytest.mark.asyncio
async def test_staff_booking_is_auto_assigned_and_confirmed(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    assert reservation.table_id == table_a.id
    assert reservation.status == ReservationStatus.CONFIRMED
    assert reservation.confirmed_at is not None
    assert reservation.confirmed_by == test_user.id
    assert reservation.start_time == datetime(2026, 1, 26, 18, 0)
    assert reservation.end_time == datetime(2026, 1, 26, 19, 30)
    assert reservation.duration == 90

    assert await actions(scheduler, test_tenant.id, reservation.id) == [HistoryAction.CREATED]


@pytest.mark.asyncio
async def test_created_history_snapshot(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    _, history = await scheduler.get_with_history(test_tenant.id, reservation.id)

    entry = history[0]
    assert entry.previous_value is None
    assert entry.new_value["status"] == "CONFIRMED"
    assert entry.new_value["table_id"] == str(table_a.id)
    assert entry.new_value["start_time"] == "2026-01-26T18:00:00"
    assert entry.changed_by == test_user.id
    assert entry.notes == "New reservation created"


@pytest.mark.asyncio
async def test_guest_booking_is_pending(scheduler, test_tenant, table_a):
    reservation = await scheduler.create(test_tenant.id, booking())

    assert reservation.status == ReservationStatus.PENDING
    assert reservation.confirmed_at is None
    assert reservation.created_by is None


@pytest.mark.asyncio
async def test_default_duration(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(duration=None), actor_id=test_user.id)

    assert reservation.duration == 90
    assert reservation.end_time == datetime(2026, 1, 26, 19, 30)


@pytest.mark.asyncio
async def test_confirmation_code_format(scheduler, test_tenant, test_user, table_a):
    first = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    second = await scheduler.create(
        test_tenant.id, booking(start_time=time(12, 0)), actor_id=test_user.id
    )

    for reservation in (first, second):
        assert len(reservation.confirmation_code) == 8
        assert reservation.confirmation_code.isalnum()
        assert reservation.confirmation_code == reservation.confirmation_code.upper()
    assert first.confirmation_code != second.confirmation_code


@pytest.mark.asyncio
async def test_overlapping_booking_on_same_table_conflicts(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(ConflictError) as exc_info:
        await scheduler.create(
            test_tenant.id,
            booking(table_id=table_a.id, start_time=time(18, 15)),
            actor_id=test_user.id,
        )

    assert "Table A" in exc_info.value.message
    assert "18:00 to 19:30" in exc_info.value.message


@pytest.mark.asyncio
async def test_conflict_writes_nothing(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(ConflictError):
        await scheduler.create(
            test_tenant.id, booking(table_id=table_a.id, start_time=time(19, 0)), actor_id=test_user.id
        )

    listing = await scheduler.list_reservations(test_tenant.id, ReservationQuery(date=DAY))
    assert listing.total == 1


@pytest.mark.asyncio
async def test_no_free_table_leaves_booking_unassigned(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    overflow = await scheduler.create(
        test_tenant.id, booking(start_time=time(18, 30)), actor_id=test_user.id
    )

    assert overflow.table_id is None
    assert overflow.status == ReservationStatus.CONFIRMED


@pytest.mark.asyncio
async def test_missing_tenant_is_bad_request(scheduler, table_a):
    with pytest.raises(BadRequestError):
        await scheduler.create(uuid4(), booking())


@pytest.mark.asyncio
async def test_explicit_table_must_exist(scheduler, test_tenant, test_user, table_a):
    with pytest.raises(NotFoundError):
        await scheduler.create(test_tenant.id, booking(table_id=uuid4()), actor_id=test_user.id)


@pytest.mark.asyncio
async def test_explicit_table_must_fit_party(scheduler, test_tenant, test_user, table_a):
    with pytest.raises(BadRequestError):
        await scheduler.create(
            test_tenant.id, booking(table_id=table_a.id, party_size=6), actor_id=test_user.id
        )


@pytest.mark.asyncio
async def test_explicit_table_must_be_active(scheduler, test_tenant, test_user, test_tables):
    inactive = test_tables[3]

    with pytest.raises(BadRequestError):
        await scheduler.create(test_tenant.id, booking(table_id=inactive.id), actor_id=test_user.id)


@pytest.mark.asyncio
async def test_linked_guest_visit_is_counted(scheduler, test_db, test_tenant, test_user, test_guest, table_a):
    await scheduler.create(test_tenant.id, booking(guest_id=test_guest.id), actor_id=test_user.id)

    await test_db.refresh(test_guest)
    assert test_guest.total_visits == 1
    assert test_guest.last_visit_at is not None


# ============================================
# LOOKUP & LISTING
# ============================================

@pytest.mark.asyncio
async def test_get_is_tenant_scoped(scheduler, test_tenant, other_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(NotFoundError):
        await scheduler.get(other_tenant.id, reservation.id)


@pytest.mark.asyncio
async def test_get_by_code_is_case_insensitive(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    found = await scheduler.get_by_code(test_tenant.id, reservation.confirmation_code.lower())

    assert found.id == reservation.id


@pytest.mark.asyncio
async def test_unknown_code_not_found(scheduler, test_tenant):
    with pytest.raises(NotFoundError):
        await scheduler.get_by_code(test_tenant.id, "ZZZZZZZZ")


@pytest.mark.asyncio
async def test_list_week_view_starts_monday(scheduler, test_tenant, test_user, test_tables):
    # 2026-01-28 is a Wednesday
    await scheduler.create(test_tenant.id, booking(date=date(2026, 1, 26)), actor_id=test_user.id)
    await scheduler.create(test_tenant.id, booking(date=date(2026, 2, 1)), actor_id=test_user.id)
    await scheduler.create(test_tenant.id, booking(date=date(2026, 2, 2)), actor_id=test_user.id)

    listing = await scheduler.list_reservations(
        test_tenant.id, ReservationQuery(date=date(2026, 1, 28), view="week")
    )

    assert listing.date_range.start == date(2026, 1, 26)
    assert listing.date_range.end == date(2026, 2, 1)
    assert listing.total == 2


@pytest.mark.asyncio
async def test_list_month_view_and_pagination(scheduler, test_tenant, test_user, test_tables):
    for day in range(1, 6):
        await scheduler.create(test_tenant.id, booking(date=date(2026, 2, day)), actor_id=test_user.id)

    listing = await scheduler.list_reservations(
        test_tenant.id, ReservationQuery(date=date(2026, 2, 14), view="month", limit=2, page=3)
    )

    assert listing.date_range.start == date(2026, 2, 1)
    assert listing.date_range.end == date(2026, 2, 28)
    assert listing.total == 5
    assert listing.total_pages == 3
    assert [item.date for item in listing.items] == [date(2026, 2, 5)]


@pytest.mark.asyncio
async def test_list_filters_status_and_search(scheduler, test_tenant, test_user, test_tables):
    kept = await scheduler.create(test_tenant.id, booking(guest_name="Ada Lovelace"), actor_id=test_user.id)
    await scheduler.create(test_tenant.id, booking(guest_name="Alan Turing"))

    by_status = await scheduler.list_reservations(
        test_tenant.id, ReservationQuery(date=DAY, status=[ReservationStatus.CONFIRMED])
    )
    by_search = await scheduler.list_reservations(
        test_tenant.id, ReservationQuery(date=DAY, search="lovelace")
    )

    assert [item.id for item in by_status.items] == [kept.id]
    assert [item.id for item in by_search.items] == [kept.id]


@pytest.mark.asyncio
async def test_list_rejects_inverted_range(scheduler, test_tenant):
    with pytest.raises(BadRequestError):
        await scheduler.list_reservations(
            test_tenant.id, ReservationQuery(start_date=date(2026, 2, 2), end_date=date(2026, 2, 1))
        )


# ============================================
# STATUS
# ============================================

@pytest.mark.asyncio
async def test_pending_cannot_be_seated_directly(scheduler, test_tenant, table_a):
    reservation = await scheduler.create(test_tenant.id, booking())

    with pytest.raises(InvalidTransitionError):
        await scheduler.seat(test_tenant.id, reservation.id)

    unchanged = await scheduler.get(test_tenant.id, reservation.id)
    assert unchanged.status == ReservationStatus.PENDING
    assert unchanged.seated_at is None


@pytest.mark.asyncio
async def test_confirm_then_seat(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking())

    confirmed = await scheduler.confirm(test_tenant.id, reservation.id, actor_id=test_user.id)
    assert confirmed.status == ReservationStatus.CONFIRMED
    assert confirmed.seated_at is None

    seated = await scheduler.seat(test_tenant.id, reservation.id, actor_id=test_user.id)
    assert seated.status == ReservationStatus.SEATED
    assert seated.seated_at is not None

    assert sorted(await actions(scheduler, test_tenant.id, reservation.id)) == sorted(
        [HistoryAction.CREATED, HistoryAction.STATUS_CHANGED, HistoryAction.STATUS_CHANGED]
    )


@pytest.mark.asyncio
async def test_status_history_records_both_values(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    await scheduler.cancel(test_tenant.id, reservation.id, reason="Flight delayed", actor_id=test_user.id)

    _, history = await scheduler.get_with_history(test_tenant.id, reservation.id)
    entry = next(e for e in history if e.action == HistoryAction.STATUS_CHANGED)

    assert entry.previous_value == "CONFIRMED"
    assert entry.new_value == "CANCELLED"
    assert entry.notes == "Flight delayed"


@pytest.mark.asyncio
async def test_cancel_records_reason(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    cancelled = await scheduler.cancel(test_tenant.id, reservation.id, reason="Guest called")

    assert cancelled.status == ReservationStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancel_reason == "Guest called"


@pytest.mark.asyncio
@pytest.mark.parametrize("finish", ["cancel", "mark_no_show"])
async def test_terminal_status_is_final(scheduler, test_tenant, test_user, table_a, finish):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    await getattr(scheduler, finish)(test_tenant.id, reservation.id)

    for status in ReservationStatus:
        with pytest.raises(InvalidTransitionError):
            await scheduler.change_status(test_tenant.id, reservation.id, status)


@pytest.mark.asyncio
async def test_completed_is_final(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    await scheduler.seat(test_tenant.id, reservation.id)
    completed = await scheduler.complete(test_tenant.id, reservation.id)

    assert completed.completed_at is not None
    with pytest.raises(InvalidTransitionError):
        await scheduler.cancel(test_tenant.id, reservation.id)


@pytest.mark.asyncio
async def test_change_status_to_reminded_is_rejected(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(InvalidTransitionError):
        await scheduler.change_status(test_tenant.id, reservation.id, ReservationStatus.REMINDED)


@pytest.mark.asyncio
async def test_status_change_on_missing_reservation(scheduler, test_tenant):
    with pytest.raises(NotFoundError):
        await scheduler.confirm(test_tenant.id, uuid4())


# ============================================
# RESCHEDULE, TABLE CHANGE, UPDATE, DELETE
# ============================================

@pytest.mark.asyncio
async def test_reschedule_moves_window(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    moved = await scheduler.reschedule(
        test_tenant.id,
        reservation.id,
        ReservationReschedule(date=date(2026, 1, 27), start_time=time(19, 0), reason="Running late"),
        actor_id=test_user.id,
    )

    assert moved.date == date(2026, 1, 27)
    assert moved.start_time == datetime(2026, 1, 27, 19, 0)
    assert moved.end_time == datetime(2026, 1, 27, 20, 30)
    assert moved.table_id == table_a.id

    _, history = await scheduler.get_with_history(test_tenant.id, reservation.id)
    entry = next(e for e in history if e.action == HistoryAction.RESCHEDULED)
    assert entry.previous_value["start_time"] == "2026-01-26T18:00:00"
    assert entry.new_value["start_time"] == "2026-01-27T19:00:00"
    assert entry.notes == "Running late"


@pytest.mark.asyncio
async def test_reschedule_within_own_window_is_allowed(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    moved = await scheduler.reschedule(
        test_tenant.id,
        reservation.id,
        ReservationReschedule(date=DAY, start_time=time(18, 30)),
    )

    assert moved.start_time == datetime(2026, 1, 26, 18, 30)


@pytest.mark.asyncio
async def test_reschedule_into_conflict_changes_nothing(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    lunch = await scheduler.create(test_tenant.id, booking(start_time=time(12, 0)), actor_id=test_user.id)

    with pytest.raises(ConflictError):
        await scheduler.reschedule(
            test_tenant.id, lunch.id, ReservationReschedule(date=DAY, start_time=time(18, 30))
        )

    unchanged = await scheduler.get(test_tenant.id, lunch.id)
    assert unchanged.start_time == datetime(2026, 1, 26, 12, 0)


@pytest.mark.asyncio
async def test_change_table(scheduler, test_tenant, test_user, test_tables):
    table_a, table_b, _, _ = test_tables
    reservation = await scheduler.create(
        test_tenant.id, booking(table_id=table_b.id), actor_id=test_user.id
    )

    moved = await scheduler.change_table(
        test_tenant.id, reservation.id, TableChange(table_id=table_a.id), actor_id=test_user.id
    )

    assert moved.table_id == table_a.id
    _, history = await scheduler.get_with_history(test_tenant.id, reservation.id)
    entry = next(e for e in history if e.action == HistoryAction.TABLE_CHANGED)
    assert entry.previous_value == str(table_b.id)
    assert entry.new_value == str(table_a.id)


@pytest.mark.asyncio
async def test_change_table_checks_capacity(scheduler, test_tenant, test_user, test_tables):
    table_a, table_b, _, _ = test_tables
    reservation = await scheduler.create(
        test_tenant.id, booking(table_id=table_a.id, party_size=4), actor_id=test_user.id
    )

    with pytest.raises(BadRequestError):
        await scheduler.change_table(test_tenant.id, reservation.id, TableChange(table_id=table_b.id))


@pytest.mark.asyncio
async def test_change_table_to_missing_table(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(NotFoundError):
        await scheduler.change_table(test_tenant.id, reservation.id, TableChange(table_id=uuid4()))


@pytest.mark.asyncio
async def test_change_table_to_booked_table_conflicts(scheduler, test_tenant, test_user, test_tables):
    table_a, table_b, _, _ = test_tables
    await scheduler.create(test_tenant.id, booking(table_id=table_a.id), actor_id=test_user.id)
    other = await scheduler.create(test_tenant.id, booking(table_id=table_b.id), actor_id=test_user.id)

    with pytest.raises(ConflictError):
        await scheduler.change_table(test_tenant.id, other.id, TableChange(table_id=table_a.id))


@pytest.mark.asyncio
async def test_update_details(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    updated = await scheduler.update(
        test_tenant.id,
        reservation.id,
        ReservationUpdate(special_requests="Window seat", internal_notes="Regular"),
        actor_id=test_user.id,
    )

    assert updated.special_requests == "Window seat"
    assert updated.internal_notes == "Regular"
    assert updated.start_time == reservation.start_time
    assert HistoryAction.UPDATED in await actions(scheduler, test_tenant.id, reservation.id)


@pytest.mark.asyncio
async def test_update_duration_recomputes_end(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    updated = await scheduler.update(test_tenant.id, reservation.id, ReservationUpdate(duration=120))

    assert updated.duration == 120
    assert updated.end_time == datetime(2026, 1, 26, 20, 0)


@pytest.mark.asyncio
async def test_update_timing_rechecks_table(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    lunch = await scheduler.create(test_tenant.id, booking(start_time=time(12, 0)), actor_id=test_user.id)

    with pytest.raises(ConflictError):
        await scheduler.update(test_tenant.id, lunch.id, ReservationUpdate(start_time=time(17, 0)))


@pytest.mark.asyncio
async def test_update_without_changes_writes_no_history(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    await scheduler.update(test_tenant.id, reservation.id, ReservationUpdate(guest_name="John Smith"))

    assert await actions(scheduler, test_tenant.id, reservation.id) == [HistoryAction.CREATED]


@pytest.mark.asyncio
async def test_remove_keeps_history(scheduler, test_db, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    await scheduler.remove(test_tenant.id, reservation.id, actor_id=test_user.id)

    with pytest.raises(NotFoundError):
        await scheduler.get(test_tenant.id, reservation.id)
    result = await test_db.execute(
        select(ReservationHistory).where(ReservationHistory.reservation_id == reservation.id)
    )
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_check_table_availability(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(ConflictError):
        await scheduler.check_table_availability(test_tenant.id, table_a.id, DAY, time(19, 0))
    await scheduler.check_table_availability(
        test_tenant.id, table_a.id, DAY, time(19, 0), exclude_reservation_id=reservation.id
    )
    assert await scheduler.find_available_table(test_tenant.id, DAY, time(18, 30), 2) is None
    assert (await scheduler.find_available_table(test_tenant.id, DAY, time(20, 0), 2)).id == table_a.id


@pytest.mark.asyncio
async def test_update_party_size_checks_assigned_table(scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)

    with pytest.raises(BadRequestError):
        await scheduler.update(test_tenant.id, reservation.id, ReservationUpdate(party_size=12))

    unchanged = await scheduler.get(test_tenant.id, reservation.id)
    assert unchanged.party_size == 2

    grown = await scheduler.update(test_tenant.id, reservation.id, ReservationUpdate(party_size=4))
    assert grown.party_size == 4


@pytest.mark.asyncio
async def test_update_party_size_of_unassigned_booking(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    overflow = await scheduler.create(test_tenant.id, booking(start_time=time(18, 30)), actor_id=test_user.id)

    updated = await scheduler.update(test_tenant.id, overflow.id, ReservationUpdate(party_size=12))

    assert updated.table_id is None
    assert updated.party_size == 12


@pytest.mark.asyncio
async def test_cancelled_booking_can_move_onto_a_taken_slot(scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(), actor_id=test_user.id)
    lunch = await scheduler.create(test_tenant.id, booking(start_time=time(12, 0)), actor_id=test_user.id)
    await scheduler.cancel(test_tenant.id, lunch.id)

    updated = await scheduler.update(test_tenant.id, lunch.id, ReservationUpdate(start_time=time(18, 0)))
    assert updated.start_time == datetime(2026, 1, 26, 18, 0)

    moved = await scheduler.reschedule(
        test_tenant.id, lunch.id, ReservationReschedule(date=DAY, start_time=time(18, 30))
    )
    assert moved.start_time == datetime(2026, 1, 26, 18, 30)
    assert moved.status == ReservationStatus.CANCELLED


@pytest.mark.asyncio
async def test_no_show_booking_can_change_to_a_taken_table(scheduler, test_tenant, test_user, test_tables):
    table_a, table_b, _, _ = test_tables
    await scheduler.create(test_tenant.id, booking(table_id=table_a.id), actor_id=test_user.id)
    missed = await scheduler.create(test_tenant.id, booking(table_id=table_b.id), actor_id=test_user.id)
    await scheduler.mark_no_show(test_tenant.id, missed.id)

    moved = await scheduler.change_table(test_tenant.id, missed.id, TableChange(table_id=table_a.id))

    assert moved.table_id == table_a.id
