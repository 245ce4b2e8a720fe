from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from time import perf_counter

import asyncpg

logger = logging.getLogger(__name__)

TICKETS_TABLE = "public.custom_tickets"


@dataclass(frozen=True, slots=True)
class DatabaseReadiness:
    database: bool
    tickets_schema: bool
    latency_ms: float | None = None
    detail: str = ""

    @property
    def ready(self) -> bool:
        return self.database and self.tickets_schema


@dataclass(slots=True)
class PostgresConnectionTester:
    """Owns the asyncpg pool backing the ticket store and reports whether it can serve requests."""

    dsn: str
    min_size: int = 1
    max_size: int = 10
    timeout: float = 5.0
    _pool: asyncpg.Pool | None = None

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(dsn=self.dsn, min_size=self.min_size, max_size=self.max_size)
        return self._pool

    async def test_connection(self) -> bool:
        pool = await self.get_pool()
        async with pool.acquire() as connection:
            await asyncio.wait_for(connection.execute("SELECT 1"), timeout=self.timeout)
        return True

    async def readiness(self) -> DatabaseReadiness:
        """Check connectivity and that the ticket tables exist.

        Connection failures are reported in the result instead of raised so the
        readiness route can answer 503 with a reason.
        """

        start = perf_counter()
        try:
            await self.test_connection()
            pool = await self.get_pool()
            async with pool.acquire() as connection:
                has_schema = await asyncio.wait_for(
                    connection.fetchval("SELECT to_regclass($1) IS NOT NULL", TICKETS_TABLE),
                    timeout=self.timeout,
                )
        except (OSError, asyncpg.PostgresError, asyncio.TimeoutError) as exc:
            logger.warning("Database readiness check failed: %s", exc)
            return DatabaseReadiness(database=False, tickets_schema=False, detail=str(exc) or type(exc).__name__)

        latency_ms = round((perf_counter() - start) * 1000, 3)
        if not has_schema:
            return DatabaseReadiness(
                database=True, tickets_schema=False, latency_ms=latency_ms, detail=f"{TICKETS_TABLE} is missing"
            )
        return DatabaseReadiness(database=True, tickets_schema=True, latency_ms=latency_ms)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
