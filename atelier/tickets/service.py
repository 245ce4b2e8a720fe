from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import NoReturn
from uuid import UUID, uuid4

from opentelemetry import trace

from atelier.metrics import TicketMetrics, ticket_metrics
from atelier.statuses import InternalStatus, StatusWorkflowEngine, get_workflow_engine

from .models import StatusStatistics, Ticket, TicketAuditEntry
from .repository import TicketRepository
from .rules import can_modify_status, deletion_blockers, is_ticket_editable, status_side_effects

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class TicketServiceError(RuntimeError):
    """Base error for ticket service issues."""


class TicketNotFoundError(TicketServiceError):
    """Raised when a ticket could not be located."""


class InvalidTicketTransitionError(TicketServiceError):
    """Raised when the workflow engine does not allow the requested status."""


class StaleTicketStatusError(TicketServiceError):
    """Raised when the ticket changed status between validation and update."""


class StatusChangeNotPermittedError(TicketServiceError):
    """Raised when the actor may not change the ticket's current status."""


class TicketNotEditableError(TicketServiceError):
    """Raised when editing a ticket in a closed status."""


class TicketDeletionError(TicketServiceError):
    """Raised when business rules forbid deleting a ticket."""


@dataclass(slots=True)
class TicketService:
    """High level orchestration for custom ticket lifecycle operations."""

    repository: TicketRepository
    engine: StatusWorkflowEngine = field(default_factory=get_workflow_engine)
    metrics: TicketMetrics = field(default=ticket_metrics)

    async def ensure_schema(self) -> None:
        await self.repository.ensure_schema()

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        customer_name: str,
        customer_email: str,
        actor: str,
        priority: str = "normal",
        is_rush: bool = False,
        quote_total: float = 0.0,
    ) -> Ticket:
        ticket = await self.repository.create_ticket(
            ticket_id=uuid4(),
            title=title,
            description=description,
            customer_name=customer_name,
            customer_email=customer_email,
            status=self.engine.initial_status(),
            priority=priority,
            is_rush=is_rush,
            quote_total=quote_total,
            payment_received=False,
            created_by=actor,
        )
        logger.info(
            "Created ticket for %s", customer_email, extra={"ticket_id": str(ticket.id), "to_status": ticket.status.value}
        )
        return ticket

    async def get_ticket(self, ticket_id: UUID) -> Ticket:
        ticket = await self.repository.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def list_tickets(self, *, status: InternalStatus | None = None) -> list[Ticket]:
        return await self.repository.list_tickets(status=status)

    async def update_ticket(
        self,
        ticket_id: UUID,
        *,
        actor: str,
        title: str | None = None,
        description: str | None = None,
        customer_name: str | None = None,
        customer_email: str | None = None,
        priority: str | None = None,
        is_rush: bool | None = None,
        quote_total: float | None = None,
        payment_received: bool | None = None,
    ) -> Ticket:
        current = await self.get_ticket(ticket_id)
        if not is_ticket_editable(current.status):
            raise TicketNotEditableError(f'Ticket {ticket_id} with status "{current.status.value}" cannot be edited')

        updated = await self.repository.update_ticket(
            ticket_id=ticket_id,
            title=title if title is not None else current.title,
            description=description if description is not None else current.description,
            customer_name=customer_name if customer_name is not None else current.customer_name,
            customer_email=customer_email if customer_email is not None else current.customer_email,
            priority=priority if priority is not None else current.priority,
            is_rush=is_rush if is_rush is not None else current.is_rush,
            quote_total=quote_total if quote_total is not None else current.quote_total,
            payment_received=payment_received if payment_received is not None else current.payment_received,
            updated_by=actor,
            expected_status=current.status,
        )
        if updated is None:
            await self._raise_for_missed_write(ticket_id, current.status)
        return updated

    async def delete_ticket(self, ticket_id: UUID) -> None:
        ticket = await self.get_ticket(ticket_id)
        blockers = deletion_blockers(ticket)
        if blockers:
            raise TicketDeletionError("; ".join(blockers))
        deleted = await self.repository.delete_ticket(ticket_id, expected_status=ticket.status)
        if not deleted:
            await self._raise_for_missed_write(ticket_id, ticket.status)
        logger.info("Deleted ticket", extra={"ticket_id": str(ticket_id)})

    async def change_status(
        self,
        ticket_id: UUID,
        *,
        new_status: InternalStatus,
        actor: str,
        note: str = "",
        metadata: dict[str, str] | None = None,
        privileged: bool = True,
    ) -> Ticket:
        with tracer.start_as_current_span("tickets.change_status") as span, self.metrics.time_status_change():
            span.set_attribute("ticket.id", str(ticket_id))
            span.set_attribute("ticket.new_status", new_status.value)

            ticket = await self.repository.get_ticket(ticket_id)
            if ticket is None:
                self.metrics.rejection("not_found")
                raise TicketNotFoundError(f"Ticket {ticket_id} not found")

            current = ticket.status
            context = {"ticket_id": str(ticket_id), "from_status": current.value, "to_status": new_status.value}
            if not can_modify_status(current, privileged=privileged):
                self.metrics.rejection("not_permitted")
                raise StatusChangeNotPermittedError(
                    f'Status "{current.value}" can only be changed by an administrator'
                )

            if not self.engine.is_valid_transition(current, new_status):
                self.metrics.rejection("invalid_transition")
                logger.warning("Rejected status change requested by %s", actor, extra=context)
                raise InvalidTicketTransitionError(
                    f'Invalid status transition from "{current.value}" to "{new_status.value}"'
                )

            now = datetime.now(timezone.utc)
            effects = status_side_effects(ticket, new_status, reason=note, now=now)
            audit_metadata = {
                **(metadata or {}),
                **effects.as_metadata(),
                "client_status": self.engine.get_client_status(new_status).value,
            }

            updated = await self.repository.change_status(
                ticket_id=ticket_id,
                from_status=current,
                to_status=new_status,
                actor=actor,
                side_effects=effects,
                note=note or f"Status changed from {current.value} to {new_status.value}",
                metadata=audit_metadata,
            )
            if updated is None:
                await self._raise_for_missed_write(ticket_id, current, record_rejection=True)

        self.metrics.transition(current, new_status)
        logger.info("Status changed by %s", actor, extra=context)
        return updated

    async def next_statuses(self, ticket_id: UUID) -> list[InternalStatus]:
        ticket = await self.get_ticket(ticket_id)
        return self.engine.get_next_possible_statuses(ticket.status)

    async def get_audit_log(self, ticket_id: UUID) -> list[TicketAuditEntry]:
        await self.get_ticket(ticket_id)
        return await self.repository.get_audit_log(ticket_id)

    async def status_statistics(self) -> StatusStatistics:
        return await self.repository.status_statistics()

    async def _raise_for_missed_write(
        self, ticket_id: UUID, expected: InternalStatus, *, record_rejection: bool = False
    ) -> NoReturn:
        """Explain a guarded write that matched no row: the ticket is gone or its status moved on."""

        if await self.repository.get_ticket(ticket_id) is None:
            if record_rejection:
                self.metrics.rejection("not_found")
            raise TicketNotFoundError(f"Ticket {ticket_id} not found")
        if record_rejection:
            self.metrics.rejection("stale_status")
        raise StaleTicketStatusError(f'Ticket {ticket_id} is no longer in status "{expected.value}"; reload and retry')
