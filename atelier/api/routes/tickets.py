from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from atelier.dependencies.tickets import EditorUser, ViewerUser, get_ticket_service
from atelier.statuses import ClientStatus, InternalStatus
from atelier.tickets.models import AuditAction, StatusStatistics, Ticket, TicketAuditEntry
from atelier.tickets.service import (
    InvalidTicketTransitionError,
    StaleTicketStatusError,
    StatusChangeNotPermittedError,
    TicketDeletionError,
    TicketNotEditableError,
    TicketNotFoundError,
    TicketService,
)

router = APIRouter(prefix="/tickets", tags=["tickets"])


class TicketCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: EmailStr
    priority: str = Field(default="normal", max_length=50)
    is_rush: bool = False
    quote_total: float = Field(default=0.0, ge=0)


class TicketUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)
    customer_email: EmailStr | None = None
    priority: str | None = Field(default=None, max_length=50)
    is_rush: bool | None = None
    quote_total: float | None = Field(default=None, ge=0)
    payment_received: bool | None = None

    def ensure_payload(self) -> None:
        if not self.model_dump(exclude_none=True):
            raise HTTPException(status_code=400, detail="No fields provided for update")


class TicketStatusChangeRequest(BaseModel):
    status: InternalStatus
    note: str | None = Field(default=None, max_length=500)
    metadata: dict[str, str] | None = Field(default=None)


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    customer_name: str
    customer_email: str
    status: InternalStatus
    client_status: ClientStatus
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


class TicketAuditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ticket_id: UUID
    action: AuditAction
    from_status: InternalStatus | None
    to_status: InternalStatus
    actor: str
    note: str
    metadata: dict[str, str]
    created_at: datetime


class StatusCountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: InternalStatus
    count: int
    avg_processing_seconds: float | None = None


class StatusStatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    breakdown: list[StatusCountResponse]
    total_tickets: int
    generated_at: datetime


TicketServiceDep = Annotated[TicketService, Depends(get_ticket_service)]


def _to_response(service: TicketService, ticket: Ticket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        customer_name=ticket.customer_name,
        customer_email=ticket.customer_email,
        status=ticket.status,
        client_status=service.engine.get_client_status(ticket.status),
        priority=ticket.priority,
        is_rush=ticket.is_rush,
        quote_total=ticket.quote_total,
        payment_received=ticket.payment_received,
        created_by=ticket.created_by,
        updated_by=ticket.updated_by,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
        started_at=ticket.started_at,
        completed_at=ticket.completed_at,
        cancelled_at=ticket.cancelled_at,
        cancellation_reason=ticket.cancellation_reason,
        on_hold_reason=ticket.on_hold_reason,
    )


def _to_audit_response(entry: TicketAuditEntry) -> TicketAuditResponse:
    return TicketAuditResponse.model_validate(entry)


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreateRequest,
    service: TicketServiceDep,
    user: EditorUser,
) -> TicketResponse:
    ticket = await service.create_ticket(
        title=payload.title,
        description=payload.description,
        customer_name=payload.customer_name,
        customer_email=str(payload.customer_email),
        priority=payload.priority,
        is_rush=payload.is_rush,
        quote_total=payload.quote_total,
        actor=user.username,
    )
    return _to_response(service, ticket)


@router.get("", response_model=list[TicketResponse])
async def list_tickets(
    service: TicketServiceDep,
    _: ViewerUser,
    status_filter: InternalStatus | None = Query(default=None, alias="status"),
) -> list[TicketResponse]:
    tickets = await service.list_tickets(status=status_filter)
    return [_to_response(service, ticket) for ticket in tickets]


@router.get("/stats", response_model=StatusStatisticsResponse)
async def get_status_statistics(service: TicketServiceDep, _: ViewerUser) -> StatusStatisticsResponse:
    stats: StatusStatistics = await service.status_statistics()
    return StatusStatisticsResponse.model_validate(stats)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: UUID, service: TicketServiceDep, _: ViewerUser) -> TicketResponse:
    try:
        ticket = await service.get_ticket(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _to_response(service, ticket)


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: UUID,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    user: EditorUser,
) -> TicketResponse:
    payload.ensure_payload()
    fields = payload.model_dump(exclude_none=True)
    if "customer_email" in fields:
        fields["customer_email"] = str(fields["customer_email"])
    try:
        ticket = await service.update_ticket(ticket_id, actor=user.username, **fields)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (TicketNotEditableError, StaleTicketStatusError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _to_response(service, ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: UUID, service: TicketServiceDep, user: EditorUser) -> None:
    try:
        await service.delete_ticket(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (TicketDeletionError, StaleTicketStatusError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post("/{ticket_id}/status", response_model=TicketResponse)
async def change_ticket_status(
    ticket_id: UUID,
    payload: TicketStatusChangeRequest,
    service: TicketServiceDep,
    user: EditorUser,
) -> TicketResponse:
    try:
        ticket = await service.change_status(
            ticket_id,
            new_status=payload.status,
            actor=user.username,
            note=payload.note or "",
            metadata=payload.metadata,
            privileged=user.is_admin,
        )
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StatusChangeNotPermittedError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    except (InvalidTicketTransitionError, StaleTicketStatusError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _to_response(service, ticket)


@router.get("/{ticket_id}/next-statuses", response_model=list[InternalStatus])
async def get_ticket_next_statuses(
    ticket_id: UUID, service: TicketServiceDep, _: ViewerUser
) -> list[InternalStatus]:
    try:
        return await service.next_statuses(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/{ticket_id}/audit", response_model=list[TicketAuditResponse])
async def get_ticket_audit(ticket_id: UUID, service: TicketServiceDep, _: ViewerUser) -> list[TicketAuditResponse]:
    try:
        entries = await service.get_audit_log(ticket_id)
    except TicketNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [_to_audit_response(entry) for entry in entries]
