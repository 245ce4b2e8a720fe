from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

from atelier.statuses import InternalStatus


@dataclass(slots=True)
class Ticket:
    """Aggregate representing a custom jewelry ticket."""

    id: UUID
    title: str
    description: str
    customer_name: str
    customer_email: str
    status: InternalStatus
    priority: str
    is_rush: bool
    quote_total: float
    payment_received: bool
    created_by: str
    updated_by: str
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    on_hold_reason: str | None = None


class AuditAction(str, Enum):
    """Kind of change an audit entry records."""

    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"


@dataclass(slots=True)
class TicketAuditEntry:
    """History entry describing state or content changes for a ticket.

    Only ``status_changed`` entries carry a ``from_status``; content edits
    record the status the ticket held when it was edited as ``to_status``.
    """

    id: UUID
    ticket_id: UUID
    action: AuditAction
    from_status: InternalStatus | None
    to_status: InternalStatus
    actor: str
    note: str
    created_at: datetime
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class StatusCount:
    """Number of tickets currently sitting in a status."""

    status: InternalStatus
    count: int
    avg_processing_seconds: float | None = None


@dataclass(slots=True)
class StatusStatistics:
    breakdown: list[StatusCount]
    total_tickets: int
    generated_at: datetime
