"""Per-table mutual exclusion for check-then-write sequences"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple
from uuid import UUID


class TableLocks:
    """Hands out one ``asyncio.Lock`` per (tenant, table).

    This serializes writers inside one process. Across processes the store's
    row lock (``ReservationStore.lock_table``) does the same job.
    """

    def __init__(self):
        self._locks: Dict[Tuple[UUID, UUID], asyncio.Lock] = defaultdict(asyncio.Lock)

    def get(self, tenant_id: UUID, table_id: UUID) -> asyncio.Lock:
        return self._locks[(tenant_id, table_id)]

    @asynccontextmanager
    async def hold(self, tenant_id: UUID, table_id: UUID) -> AsyncIterator[None]:
        async with self.get(tenant_id, table_id):
            yield
