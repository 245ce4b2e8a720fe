from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from atelier.statuses import InternalStatus, StatusWorkflowEngine
from atelier.tickets.models import Ticket


def _make_ticket(
    *,
    status: InternalStatus = InternalStatus.PENDING,
    ticket_id: UUID | None = None,
    **overrides,
) -> Ticket:
    now = datetime.now(timezone.utc)
    values = {
        "id": ticket_id or uuid4(),
        "title": "Custom engagement ring",
        "description": "Oval solitaire, platinum band",
        "customer_name": "Dana Reyes",
        "customer_email": "dana@example.com",
        "status": status,
        "priority": "normal",
        "is_rush": False,
        "quote_total": 0.0,
        "payment_received": False,
        "created_by": "editor",
        "updated_by": "editor",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Ticket(**values)


@pytest.fixture
def make_ticket():
    return _make_ticket


@pytest.fixture
def engine() -> StatusWorkflowEngine:
    return StatusWorkflowEngine()
