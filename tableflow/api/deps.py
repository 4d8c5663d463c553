"""Shared API dependencies"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tableflow.database import get_db
from tableflow.scheduling import ReservationScheduler, SqlReservationStore, TableLocks

# One registry per process so concurrent requests for a table queue up
table_locks = TableLocks()


async def get_scheduler(db: AsyncSession = Depends(get_db)) -> ReservationScheduler:
    """Scheduler bound to the request's database session"""
    return ReservationScheduler(SqlReservationStore(db), locks=table_locks)
