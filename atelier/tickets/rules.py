"""Business rules applied around ticket status changes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from atelier.statuses import InternalStatus

from .models import Ticket

NON_EDITABLE_STATUSES: frozenset[InternalStatus] = frozenset(
    {InternalStatus.COMPLETED, InternalStatus.CANCELLED, InternalStatus.REFUNDED}
)

NON_DELETABLE_STATUSES: frozenset[InternalStatus] = frozenset(
    {InternalStatus.IN_PRODUCTION, InternalStatus.COMPLETED, InternalStatus.SHIPPED}
)

# Statuses a non-admin may still move a ticket out of.
UNPRIVILEGED_MODIFIABLE_STATUSES: frozenset[InternalStatus] = frozenset(
    {InternalStatus.PENDING, InternalStatus.IN_CONSULTATION}
)


@dataclass(slots=True, frozen=True)
class StatusSideEffects:
    """Column updates that accompany a status change."""

    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    on_hold_reason: str | None = None

    def as_metadata(self) -> dict[str, str]:
        values: dict[str, str] = {}
        for name in ("started_at", "completed_at", "cancelled_at"):
            stamp = getattr(self, name)
            if stamp is not None:
                values[name] = stamp.isoformat()
        if self.cancellation_reason is not None:
            values["cancellation_reason"] = self.cancellation_reason
        if self.on_hold_reason is not None:
            values["on_hold_reason"] = self.on_hold_reason
        return values


def status_side_effects(
    ticket: Ticket,
    new_status: InternalStatus,
    *,
    reason: str = "",
    now: datetime,
) -> StatusSideEffects:
    """Derive the timestamps and reasons stamped when entering ``new_status``."""

    if new_status is InternalStatus.IN_PRODUCTION:
        if ticket.started_at is not None:
            return StatusSideEffects()
        return StatusSideEffects(started_at=now)
    if new_status is InternalStatus.COMPLETED:
        return StatusSideEffects(completed_at=now)
    if new_status is InternalStatus.CANCELLED:
        return StatusSideEffects(cancelled_at=now, cancellation_reason=reason or "Cancelled")
    if new_status is InternalStatus.ON_HOLD:
        return StatusSideEffects(on_hold_reason=reason or "Put on hold")
    return StatusSideEffects()


def is_ticket_editable(status: InternalStatus) -> bool:
    return status not in NON_EDITABLE_STATUSES


def can_modify_status(current_status: InternalStatus, *, privileged: bool) -> bool:
    if privileged:
        return True
    return current_status in UNPRIVILEGED_MODIFIABLE_STATUSES


def deletion_blockers(ticket: Ticket) -> list[str]:
    """Return the reasons preventing deletion; empty when the ticket may be removed."""

    reasons: list[str] = []
    if ticket.status in NON_DELETABLE_STATUSES:
        reasons.append(f'Cannot delete ticket with status "{ticket.status.value}"')
    if ticket.payment_received or ticket.quote_total > 0:
        reasons.append("Cannot delete ticket with payments or quotes")
    return reasons
