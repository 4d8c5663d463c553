"""Tests for table selection and double-booking checks"""

import pytest
from datetime import date, time, timedelta

from tableflow.scheduling import ConflictError, SqlReservationStore
from tableflow.scheduling.allocator import TableAllocator
from tableflow.scheduling.intervals import resolve_window
from tableflow.schemas.reservation import ReservationCreate

DAY = date(2026, 1, 26)


def booking(table_id=None, start=time(18, 0), party_size=2, duration=90):
    return ReservationCreate(
        guest_name="Table Test",
        party_size=party_size,
        date=DAY,
        start_time=start,
        duration=duration,
        table_id=table_id,
    )


@pytest.fixture
def allocator(test_db):
    return TableAllocator(SqlReservationStore(test_db), buffer=timedelta(minutes=15))


@pytest.mark.asyncio
async def test_picks_smallest_fitting_table(allocator, test_tenant, test_tables):
    table_a, table_b, table_c, _ = test_tables
    window = resolve_window(DAY, time(18, 0), 90)

    assert (await allocator.find_available_table(test_tenant.id, window, 2)).id == table_b.id
    assert (await allocator.find_available_table(test_tenant.id, window, 3)).id == table_a.id
    assert (await allocator.find_available_table(test_tenant.id, window, 5)).id == table_c.id


@pytest.mark.asyncio
async def test_no_table_for_oversized_party(allocator, test_tenant, test_tables):
    window = resolve_window(DAY, time(18, 0), 90)

    assert await allocator.find_available_table(test_tenant.id, window, 12) is None


@pytest.mark.asyncio
async def test_inactive_table_is_never_a_candidate(allocator, test_tenant, test_tables):
    inactive = test_tables[3]
    candidates = await allocator.candidate_tables(test_tenant.id, 3)

    assert inactive.id not in {table.id for table in candidates}


@pytest.mark.asyncio
async def test_skips_booked_table(allocator, scheduler, test_tenant, test_user, test_tables):
    table_a, table_b, _, _ = test_tables
    await scheduler.create(test_tenant.id, booking(table_b.id), actor_id=test_user.id)

    window = resolve_window(DAY, time(18, 30), 90)
    table = await allocator.find_available_table(test_tenant.id, window, 2)

    assert table.id == table_a.id


@pytest.mark.asyncio
async def test_returns_none_when_all_candidates_booked(allocator, scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)

    window = resolve_window(DAY, time(19, 0), 90)
    assert await allocator.find_available_table(test_tenant.id, window, 2) is None


@pytest.mark.asyncio
async def test_conflict_message_names_table_and_window(allocator, scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)

    with pytest.raises(ConflictError) as exc_info:
        await allocator.check_availability(
            test_tenant.id, table_a.id, resolve_window(DAY, time(19, 30), 90)
        )

    assert exc_info.value.message == "Table A is already reserved from 18:00 to 19:30"


@pytest.mark.asyncio
async def test_free_after_buffer(allocator, scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)

    await allocator.check_availability(test_tenant.id, table_a.id, resolve_window(DAY, time(19, 45), 90))
    await allocator.check_availability(test_tenant.id, table_a.id, resolve_window(DAY, time(16, 15), 90))


@pytest.mark.asyncio
async def test_cancelled_reservation_frees_table(allocator, scheduler, test_tenant, test_user, table_a):
    reservation = await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)
    await scheduler.cancel(test_tenant.id, reservation.id, reason="Plans changed")

    await allocator.check_availability(test_tenant.id, table_a.id, resolve_window(DAY, time(18, 0), 90))


@pytest.mark.asyncio
async def test_excluded_reservation_does_not_conflict_with_itself(
    allocator, scheduler, test_tenant, test_user, table_a
):
    reservation = await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)

    await allocator.check_availability(
        test_tenant.id,
        table_a.id,
        resolve_window(DAY, time(18, 30), 90),
        exclude_reservation_id=reservation.id,
    )


@pytest.mark.asyncio
async def test_other_days_do_not_conflict(allocator, scheduler, test_tenant, test_user, table_a):
    await scheduler.create(test_tenant.id, booking(table_a.id), actor_id=test_user.id)

    await allocator.check_availability(
        test_tenant.id, table_a.id, resolve_window(DAY + timedelta(days=1), time(18, 0), 90)
    )
