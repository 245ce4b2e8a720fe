from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from atelier.statuses import InternalStatus
from atelier.tickets.models import AuditAction
from atelier.tickets.repository import TicketRepository
from atelier.tickets.rules import StatusSideEffects


class DummyAcquire:
    def __init__(self, connection):
        self._connection = connection

    async def __aenter__(self):
        return self._connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyPool:
    def __init__(self, connection):
        self._connection = connection

    def acquire(self):
        return DummyAcquire(self._connection)


def _make_connection() -> AsyncMock:
    connection = AsyncMock()
    connection.transaction = MagicMock(return_value=DummyTransaction())
    return connection


def _ticket_row(ticket_id, *, status: str = "pending", **overrides):
    now = datetime.now(timezone.utc)
    row = {
        "id": ticket_id,
        "title": "Custom pendant",
        "description": "Emerald drop pendant",
        "customer_name": "Dana Reyes",
        "customer_email": "dana@example.com",
        "status": status,
        "priority": "high",
        "is_rush": True,
        "quote_total": 0,
        "payment_received": False,
        "created_by": "editor",
        "updated_by": "editor",
        "created_at": now,
        "updated_at": now,
        "started_at": None,
        "completed_at": None,
        "cancelled_at": None,
        "cancellation_reason": None,
        "on_hold_reason": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_ensure_schema_creates_tables():
    connection = _make_connection()
    repository = TicketRepository(DummyPool(connection))

    await repository.ensure_schema()

    assert connection.execute.await_count == 3
    executed = [call.args[0] for call in connection.execute.await_args_list]
    assert any("CREATE TABLE IF NOT EXISTS custom_tickets" in stmt for stmt in executed)
    assert any("idx_custom_tickets_status" in stmt for stmt in executed)
    assert any("custom_ticket_audit_logs" in stmt for stmt in executed)


@pytest.mark.asyncio
async def test_create_ticket_writes_initial_audit_entry():
    ticket_id = uuid4()
    connection = _make_connection()
    connection.fetchrow = AsyncMock(return_value=_ticket_row(ticket_id))
    repository = TicketRepository(DummyPool(connection))

    ticket = await repository.create_ticket(
        ticket_id=ticket_id,
        title="Custom pendant",
        description="Emerald drop pendant",
        customer_name="Dana Reyes",
        customer_email="dana@example.com",
        status=InternalStatus.PENDING,
        priority="high",
        is_rush=True,
        quote_total=0.0,
        payment_received=False,
        created_by="editor",
    )

    assert ticket.id == ticket_id
    assert ticket.status is InternalStatus.PENDING
    assert ticket.is_rush is True
    connection.transaction.assert_called_once()
    audit_args = connection.execute.await_args.args
    assert "custom_ticket_audit_logs" in audit_args[0]
    assert audit_args[3] == "created"
    assert audit_args[4] is None
    assert audit_args[5] == "pending"


@pytest.mark.asyncio
async def test_change_status_compares_expected_status():
    ticket_id = uuid4()
    started = datetime(2024, 6, 1, tzinfo=timezone.utc)
    connection = _make_connection()
    connection.fetchrow = AsyncMock(
        return_value=_ticket_row(ticket_id, status="in-production", started_at=started)
    )
    repository = TicketRepository(DummyPool(connection))

    ticket = await repository.change_status(
        ticket_id=ticket_id,
        from_status=InternalStatus.READY_FOR_PRODUCTION,
        to_status=InternalStatus.IN_PRODUCTION,
        actor="admin",
        side_effects=StatusSideEffects(started_at=started),
        note="Production started",
        metadata={"client_status": "in-production"},
    )

    assert ticket is not None
    assert ticket.status is InternalStatus.IN_PRODUCTION
    assert ticket.started_at == started

    update_args = connection.fetchrow.await_args.args
    assert "WHERE id = $1 AND status = $2" in update_args[0]
    assert update_args[1:5] == (ticket_id, "ready-for-production", "in-production", "admin")
    assert update_args[5] == started

    audit_args = connection.execute.await_args.args
    assert audit_args[3] == "status_changed"
    assert audit_args[4:8] == ("ready-for-production", "in-production", "admin", "Production started")
    assert json.loads(audit_args[8]) == {"client_status": "in-production"}


@pytest.mark.asyncio
async def test_change_status_skips_audit_when_status_moved():
    connection = _make_connection()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = TicketRepository(DummyPool(connection))

    result = await repository.change_status(
        ticket_id=uuid4(),
        from_status=InternalStatus.PENDING,
        to_status=InternalStatus.REVIEWING_REQUEST,
        actor="admin",
    )

    assert result is None
    connection.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_ticket_returns_none_when_missing():
    connection = _make_connection()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = TicketRepository(DummyPool(connection))

    assert await repository.get_ticket(uuid4()) is None


@pytest.mark.asyncio
async def test_list_tickets_filters_by_status():
    ticket_id = uuid4()
    connection = _make_connection()
    connection.fetch = AsyncMock(return_value=[_ticket_row(str(ticket_id), status="sketching")])
    repository = TicketRepository(DummyPool(connection))

    tickets = await repository.list_tickets(status=InternalStatus.SKETCHING)

    assert [ticket.id for ticket in tickets] == [ticket_id]
    args = connection.fetch.await_args.args
    assert "WHERE status = $1" in args[0]
    assert args[1] == "sketching"


@pytest.mark.asyncio
async def test_delete_ticket_reports_affected_rows():
    connection = _make_connection()
    connection.execute = AsyncMock(side_effect=["DELETE 1", "DELETE 0"])
    repository = TicketRepository(DummyPool(connection))

    ticket_id = uuid4()
    assert await repository.delete_ticket(ticket_id, expected_status=InternalStatus.PENDING) is True
    assert await repository.delete_ticket(ticket_id, expected_status=InternalStatus.PENDING) is False

    args = connection.execute.await_args.args
    assert "WHERE id = $1 AND status = $2" in args[0]
    assert args[1:] == (ticket_id, "pending")


@pytest.mark.asyncio
async def test_get_audit_log_decodes_json_metadata():
    ticket_id = uuid4()
    now = datetime.now(timezone.utc)
    row = {
        "id": uuid4(),
        "ticket_id": ticket_id,
        "action": "status_changed",
        "from_status": "pending",
        "to_status": "in-consultation",
        "actor": "admin",
        "note": "Status changed from pending to in-consultation",
        "metadata": json.dumps({"client_status": "in-consultation"}),
        "created_at": now,
    }
    connection = _make_connection()
    connection.fetch = AsyncMock(return_value=[row])
    repository = TicketRepository(DummyPool(connection))

    entries = await repository.get_audit_log(ticket_id)

    assert len(entries) == 1
    assert entries[0].action is AuditAction.STATUS_CHANGED
    assert entries[0].from_status is InternalStatus.PENDING
    assert entries[0].metadata == {"client_status": "in-consultation"}


@pytest.mark.asyncio
async def test_status_statistics_aggregates_rows():
    connection = _make_connection()
    connection.fetch = AsyncMock(
        return_value=[
            {"status": "completed", "count": 4, "avg_processing_seconds": 86400.0},
            {"status": "pending", "count": 2, "avg_processing_seconds": None},
        ]
    )
    repository = TicketRepository(DummyPool(connection))

    stats = await repository.status_statistics()

    assert stats.total_tickets == 6
    assert stats.breakdown[0].status is InternalStatus.COMPLETED
    assert stats.breakdown[0].avg_processing_seconds == 86400.0
    assert stats.breakdown[1].avg_processing_seconds is None


@pytest.mark.asyncio
async def test_update_ticket_is_guarded_by_expected_status():
    ticket_id = uuid4()
    connection = _make_connection()
    connection.fetchrow = AsyncMock(return_value=_ticket_row(ticket_id, status="sketching", title="Resized pendant"))
    repository = TicketRepository(DummyPool(connection))

    ticket = await repository.update_ticket(
        ticket_id=ticket_id,
        title="Resized pendant",
        description="Emerald drop pendant",
        customer_name="Dana Reyes",
        customer_email="dana@example.com",
        priority="high",
        is_rush=True,
        quote_total=0.0,
        payment_received=False,
        updated_by="editor",
        expected_status=InternalStatus.SKETCHING,
    )

    assert ticket is not None
    assert ticket.title == "Resized pendant"
    update_args = connection.fetchrow.await_args.args
    assert "WHERE id = $1 AND status = $11" in update_args[0]
    assert update_args[11] == "sketching"

    audit_args = connection.execute.await_args.args
    assert audit_args[3] == "updated"
    assert audit_args[4] is None
    assert audit_args[5] == "sketching"


@pytest.mark.asyncio
async def test_update_ticket_skips_audit_when_status_moved():
    connection = _make_connection()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = TicketRepository(DummyPool(connection))

    result = await repository.update_ticket(
        ticket_id=uuid4(),
        title="Resized pendant",
        description="Emerald drop pendant",
        customer_name="Dana Reyes",
        customer_email="dana@example.com",
        priority="high",
        is_rush=True,
        quote_total=0.0,
        payment_received=False,
        updated_by="editor",
        expected_status=InternalStatus.SKETCHING,
    )

    assert result is None
    connection.execute.assert_not_awaited()
