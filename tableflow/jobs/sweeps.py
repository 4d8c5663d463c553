"""Periodic reservation sweeps

These run outside request handling. Status changes go through the scheduler,
so they obey the transition table and land in history. Archiving only flips a
flag and goes straight to the store.
"""

from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from tableflow.models.reservation import ReservationStatus
from tableflow.models.tenant import Tenant
from tableflow.scheduling import ReservationScheduler, SchedulingError
from tableflow.scheduling.state_machine import TERMINAL_STATUSES
from tableflow.scheduling.store import ReservationFilter

logger = structlog.get_logger()

NO_SHOW_CANDIDATES = (ReservationStatus.CONFIRMED, ReservationStatus.REMINDED)


def tenant_now(tenant: Tenant, utc_now: Optional[datetime] = None) -> datetime:
    """Naive wall-clock time in the tenant's timezone"""
    utc_now = utc_now or datetime.utcnow()
    try:
        zone = ZoneInfo(tenant.timezone or "UTC")
    except ZoneInfoNotFoundError:
        logger.warning("Unknown tenant timezone, using UTC", tenant_id=str(tenant.id), timezone=tenant.timezone)
        zone = ZoneInfo("UTC")
    return utc_now.replace(tzinfo=ZoneInfo("UTC")).astimezone(zone).replace(tzinfo=None)


async def mark_no_shows(
    scheduler: ReservationScheduler,
    grace_minutes: int,
    utc_now: Optional[datetime] = None,
) -> int:
    """Mark confirmed/reminded reservations whose start passed the grace period"""
    processed = 0
    for tenant in await scheduler.store.list_tenants():
        cutoff = tenant_now(tenant, utc_now) - timedelta(minutes=grace_minutes)
        overdue = await scheduler.store.list_reservations(
            tenant.id,
            ReservationFilter(statuses=NO_SHOW_CANDIDATES, starts_before=cutoff),
        )
        logger.info("Found potential no-shows", tenant_id=str(tenant.id), count=len(overdue))

        for reservation in overdue:
            processed += await _apply(
                scheduler, tenant, reservation.id, ReservationStatus.NO_SHOW, "Marked no-show by sweep"
            )
    return processed


async def auto_complete_seated(
    scheduler: ReservationScheduler,
    after_minutes: int,
    utc_now: Optional[datetime] = None,
) -> int:
    """Complete reservations that have been seated longer than ``after_minutes``"""
    processed = 0
    for tenant in await scheduler.store.list_tenants():
        # seated_at is stamped by the scheduler clock, which runs in UTC
        cutoff = (utc_now or datetime.utcnow()) - timedelta(minutes=after_minutes)
        seated = await scheduler.store.list_reservations(
            tenant.id,
            ReservationFilter(statuses=(ReservationStatus.SEATED,), seated_before=cutoff),
        )
        logger.info("Found reservations to auto-complete", tenant_id=str(tenant.id), count=len(seated))

        for reservation in seated:
            processed += await _apply(
                scheduler, tenant, reservation.id, ReservationStatus.COMPLETED, "Auto-completed by sweep"
            )
    return processed


async def archive_old_reservations(
    scheduler: ReservationScheduler,
    after_days: int,
    utc_now: Optional[datetime] = None,
) -> int:
    """Flag finished reservations older than ``after_days`` as archived"""
    archived = 0
    for tenant in await scheduler.store.list_tenants():
        before = tenant_now(tenant, utc_now).date() - timedelta(days=after_days)
        count = await scheduler.store.archive_reservations(tenant.id, before, tuple(TERMINAL_STATUSES))
        logger.info("Archived old reservations", tenant_id=str(tenant.id), count=count)
        archived += count
    return archived


async def _apply(scheduler, tenant, reservation_id, status, note) -> int:
    try:
        await scheduler.change_status(tenant.id, reservation_id, status, reason=note)
    except SchedulingError as e:
        logger.error(
            "Sweep could not change reservation status",
            tenant_id=str(tenant.id),
            reservation_id=str(reservation_id),
            status=status.value,
            error=e.message,
        )
        return 0
    return 1
