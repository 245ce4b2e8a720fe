from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import asyncpg

from atelier.statuses import InternalStatus

from .models import AuditAction, StatusCount, StatusStatistics, Ticket, TicketAuditEntry
from .rules import StatusSideEffects

_TICKET_COLUMNS = """
    id, title, description, customer_name, customer_email, status, priority, is_rush, quote_total,
    payment_received, created_by, updated_by, created_at, updated_at, started_at, completed_at,
    cancelled_at, cancellation_reason, on_hold_reason
"""


class TicketRepository:
    """Data access layer for custom ticket records."""

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS custom_tickets (
        id UUID PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        customer_name TEXT NOT NULL,
        customer_email TEXT NOT NULL,
        status TEXT NOT NULL,
        priority TEXT NOT NULL DEFAULT 'normal',
        is_rush BOOLEAN NOT NULL DEFAULT FALSE,
        quote_total DOUBLE PRECISION NOT NULL DEFAULT 0,
        payment_received BOOLEAN NOT NULL DEFAULT FALSE,
        created_by TEXT NOT NULL,
        updated_by TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        started_at TIMESTAMPTZ NULL,
        completed_at TIMESTAMPTZ NULL,
        cancelled_at TIMESTAMPTZ NULL,
        cancellation_reason TEXT NULL,
        on_hold_reason TEXT NULL
    )
    """

    _CREATE_STATUS_INDEX_SQL = """
    CREATE INDEX IF NOT EXISTS idx_custom_tickets_status ON custom_tickets(status)
    """

    _CREATE_AUDIT_SQL = """
    CREATE TABLE IF NOT EXISTS custom_ticket_audit_logs (
        id UUID PRIMARY KEY,
        ticket_id UUID NOT NULL REFERENCES custom_tickets(id) ON DELETE CASCADE,
        action TEXT NOT NULL DEFAULT 'status_changed',
        from_status TEXT NULL,
        to_status TEXT NOT NULL,
        actor TEXT NOT NULL,
        note TEXT NOT NULL,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _INSERT_TICKET_SQL = f"""
    INSERT INTO custom_tickets (
        id, title, description, customer_name, customer_email, status, priority, is_rush, quote_total,
        payment_received, created_by, updated_by
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $11)
    RETURNING {_TICKET_COLUMNS}
    """

    _UPDATE_TICKET_SQL = f"""
    UPDATE custom_tickets
    SET title = $2,
        description = $3,
        customer_name = $4,
        customer_email = $5,
        priority = $6,
        is_rush = $7,
        quote_total = $8,
        payment_received = $9,
        updated_by = $10,
        updated_at = CURRENT_TIMESTAMP
    WHERE id = $1 AND status = $11
    RETURNING {_TICKET_COLUMNS}
    """

    _SELECT_TICKET_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM custom_tickets
    WHERE id = $1
    """

    _LIST_TICKETS_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM custom_tickets
    ORDER BY created_at DESC
    """

    _LIST_TICKETS_BY_STATUS_SQL = f"""
    SELECT {_TICKET_COLUMNS}
    FROM custom_tickets
    WHERE status = $1
    ORDER BY created_at DESC
    """

    # Edits and deletes are guarded by the status the business rules were checked against.
    _DELETE_TICKET_SQL = """
    DELETE FROM custom_tickets WHERE id = $1 AND status = $2
    """

    # Compare-and-swap: only applies while the stored status still matches $2.
    _UPDATE_STATUS_SQL = f"""
    UPDATE custom_tickets
    SET status = $3,
        updated_by = $4,
        updated_at = CURRENT_TIMESTAMP,
        started_at = COALESCE(started_at, $5),
        completed_at = COALESCE($6, completed_at),
        cancelled_at = COALESCE($7, cancelled_at),
        cancellation_reason = COALESCE($8, cancellation_reason),
        on_hold_reason = COALESCE($9, on_hold_reason)
    WHERE id = $1 AND status = $2
    RETURNING {_TICKET_COLUMNS}
    """

    _INSERT_AUDIT_SQL = """
    INSERT INTO custom_ticket_audit_logs (id, ticket_id, action, from_status, to_status, actor, note, metadata)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb)
    """

    _SELECT_AUDIT_SQL = """
    SELECT id, ticket_id, action, from_status, to_status, actor, note, metadata, created_at
    FROM custom_ticket_audit_logs
    WHERE ticket_id = $1
    ORDER BY created_at ASC
    """

    _STATUS_STATISTICS_SQL = """
    SELECT status,
           COUNT(*) AS count,
           AVG(EXTRACT(EPOCH FROM (completed_at - created_at))) AS avg_processing_seconds
    FROM custom_tickets
    GROUP BY status
    ORDER BY count DESC, status ASC
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_STATUS_INDEX_SQL)
            await connection.execute(self._CREATE_AUDIT_SQL)

    async def create_ticket(
        self,
        *,
        ticket_id: UUID,
        title: str,
        description: str,
        customer_name: str,
        customer_email: str,
        status: InternalStatus,
        priority: str,
        is_rush: bool,
        quote_total: float,
        payment_received: bool,
        created_by: str,
        note: str = "Ticket created",
    ) -> Ticket:
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                row = await connection.fetchrow(
                    self._INSERT_TICKET_SQL,
                    ticket_id,
                    title,
                    description,
                    customer_name,
                    customer_email,
                    status.value,
                    priority,
                    is_rush,
                    quote_total,
                    payment_received,
                    created_by,
                )
                if row is None:
                    raise RuntimeError("Failed to insert ticket")
                await self._insert_audit(
                    connection,
                    ticket_id=ticket_id,
                    action=AuditAction.CREATED,
                    from_status=None,
                    to_status=status,
                    actor=created_by,
                    note=note,
                    metadata={},
                )
            return self._row_to_ticket(row)

    async def update_ticket(
        self,
        *,
        ticket_id: UUID,
        title: str,
        description: str,
        customer_name: str,
        customer_email: str,
        priority: str,
        is_rush: bool,
        quote_total: float,
        payment_received: bool,
        updated_by: str,
        expected_status: InternalStatus,
        note: str = "Ticket updated",
    ) -> Ticket | None:
        """Apply a content edit while the ticket is still in ``expected_status``.

        Returns ``None`` when the ticket is gone or its status has moved on.
        """

        async with self._pool.acquire() as connection:
            async with connection.transaction():
                row = await connection.fetchrow(
                    self._UPDATE_TICKET_SQL,
                    ticket_id,
                    title,
                    description,
                    customer_name,
                    customer_email,
                    priority,
                    is_rush,
                    quote_total,
                    payment_received,
                    updated_by,
                    expected_status.value,
                )
                if row is None:
                    return None
                await self._insert_audit(
                    connection,
                    ticket_id=ticket_id,
                    action=AuditAction.UPDATED,
                    from_status=None,
                    to_status=expected_status,
                    actor=updated_by,
                    note=note,
                    metadata={},
                )
            return self._row_to_ticket(row)

    async def get_ticket(self, ticket_id: UUID) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_TICKET_SQL, ticket_id)
            if row is None:
                return None
            return self._row_to_ticket(row)

    async def list_tickets(self, *, status: InternalStatus | None = None) -> list[Ticket]:
        async with self._pool.acquire() as connection:
            if status is None:
                rows = await connection.fetch(self._LIST_TICKETS_SQL)
            else:
                rows = await connection.fetch(self._LIST_TICKETS_BY_STATUS_SQL, status.value)
            return [self._row_to_ticket(row) for row in rows]

    async def delete_ticket(self, ticket_id: UUID, *, expected_status: InternalStatus) -> bool:
        async with self._pool.acquire() as connection:
            result = await connection.execute(self._DELETE_TICKET_SQL, ticket_id, expected_status.value)
        # asyncpg reports the command tag, e.g. "DELETE 1"
        return isinstance(result, str) and result.split()[-1:] == ["1"]

    async def change_status(
        self,
        *,
        ticket_id: UUID,
        from_status: InternalStatus,
        to_status: InternalStatus,
        actor: str,
        side_effects: StatusSideEffects | None = None,
        note: str = "Status updated",
        metadata: dict[str, Any] | None = None,
    ) -> Ticket | None:
        """Move the ticket from ``from_status`` to ``to_status`` atomically.

        Returns ``None`` when the ticket does not exist or its stored status no
        longer equals ``from_status``; the caller decides which case applies.
        """

        effects = side_effects or StatusSideEffects()
        async with self._pool.acquire() as connection:
            async with connection.transaction():
                row = await connection.fetchrow(
                    self._UPDATE_STATUS_SQL,
                    ticket_id,
                    from_status.value,
                    to_status.value,
                    actor,
                    effects.started_at,
                    effects.completed_at,
                    effects.cancelled_at,
                    effects.cancellation_reason,
                    effects.on_hold_reason,
                )
                if row is None:
                    return None
                await self._insert_audit(
                    connection,
                    ticket_id=ticket_id,
                    action=AuditAction.STATUS_CHANGED,
                    from_status=from_status,
                    to_status=to_status,
                    actor=actor,
                    note=note,
                    metadata=metadata or {},
                )
            return self._row_to_ticket(row)

    async def get_audit_log(self, ticket_id: UUID) -> list[TicketAuditEntry]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._SELECT_AUDIT_SQL, ticket_id)
            return [self._row_to_audit(row) for row in rows]

    async def status_statistics(self) -> StatusStatistics:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._STATUS_STATISTICS_SQL)
        breakdown: list[StatusCount] = []
        for row in rows:
            average = row["avg_processing_seconds"]
            breakdown.append(
                StatusCount(
                    status=InternalStatus(str(row["status"])),
                    count=int(row["count"]),
                    avg_processing_seconds=float(average) if average is not None else None,
                )
            )
        return StatusStatistics(
            breakdown=breakdown,
            total_tickets=sum(item.count for item in breakdown),
            generated_at=datetime.now(timezone.utc),
        )

    async def _insert_audit(
        self,
        connection: Any,
        *,
        ticket_id: UUID,
        action: AuditAction,
        from_status: InternalStatus | None,
        to_status: InternalStatus,
        actor: str,
        note: str,
        metadata: dict[str, Any],
    ) -> None:
        await connection.execute(
            self._INSERT_AUDIT_SQL,
            uuid4(),
            ticket_id,
            action.value,
            None if from_status is None else from_status.value,
            to_status.value,
            actor,
            note,
            json.dumps(metadata),
        )

    @staticmethod
    def _row_to_ticket(row: Any) -> Ticket:
        return Ticket(
            id=_to_uuid(row["id"]),
            title=str(row["title"]),
            description=str(row["description"]),
            customer_name=str(row["customer_name"]),
            customer_email=str(row["customer_email"]),
            status=InternalStatus(str(row["status"])),
            priority=str(row["priority"]),
            is_rush=bool(row["is_rush"]),
            quote_total=float(row["quote_total"]),
            payment_received=bool(row["payment_received"]),
            created_by=str(row["created_by"]),
            updated_by=str(row["updated_by"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            cancelled_at=row["cancelled_at"],
            cancellation_reason=row["cancellation_reason"],
            on_hold_reason=row["on_hold_reason"],
        )

    @staticmethod
    def _row_to_audit(row: Any) -> TicketAuditEntry:
        from_status = row["from_status"]
        metadata = row["metadata"] if row["metadata"] is not None else {}
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        return TicketAuditEntry(
            id=_to_uuid(row["id"]),
            ticket_id=_to_uuid(row["ticket_id"]),
            action=AuditAction(str(row["action"])),
            from_status=InternalStatus(str(from_status)) if from_status else None,
            to_status=InternalStatus(str(row["to_status"])),
            actor=str(row["actor"]),
            note=str(row["note"]),
            metadata={str(key): str(value) for key, value in dict(metadata).items()},
            created_at=row["created_at"],
        )


def _to_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    return UUID(str(value))
