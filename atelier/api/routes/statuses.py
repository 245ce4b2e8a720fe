from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict

from atelier.dependencies.tickets import ViewerUser, get_workflow_engine
from atelier.statuses import (
    ClientStatus,
    InternalStatus,
    StatusCategory,
    StatusColor,
    StatusDisplayInfo,
    StatusWorkflowEngine,
)

router = APIRouter(prefix="/statuses", tags=["statuses"])

EngineDep = Annotated[StatusWorkflowEngine, Depends(get_workflow_engine)]


class StatusInfoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    description: str
    color: StatusColor
    icon: str
    category: StatusCategory | None = None
    requires_action: bool = False


class InternalStatusResponse(BaseModel):
    status: InternalStatus
    client_status: ClientStatus
    phase: str
    info: StatusInfoResponse


class ClientStatusResponse(BaseModel):
    status: ClientStatus
    info: StatusInfoResponse


class PhaseStatusEntry(BaseModel):
    status: InternalStatus
    label: str
    description: str
    requires_action: bool


class PhaseResponse(BaseModel):
    category: StatusCategory
    name: str
    statuses: list[PhaseStatusEntry]


class TransitionCheckResponse(BaseModel):
    from_status: str
    to_status: str
    valid: bool


def _info(info: StatusDisplayInfo) -> StatusInfoResponse:
    return StatusInfoResponse.model_validate(info)


def _internal_response(engine: StatusWorkflowEngine, status: InternalStatus) -> InternalStatusResponse:
    info = engine.catalog.internal_info[status]
    return InternalStatusResponse(
        status=status,
        client_status=engine.get_client_status(status),
        phase=engine.catalog.phase_name(info.category),
        info=_info(info),
    )


@router.get("/internal", response_model=list[InternalStatusResponse])
async def list_internal_statuses(engine: EngineDep, _: ViewerUser) -> list[InternalStatusResponse]:
    return [_internal_response(engine, status) for status in engine.get_all_internal_statuses()]


@router.get("/client", response_model=list[ClientStatusResponse])
async def list_client_statuses(engine: EngineDep, _: ViewerUser) -> list[ClientStatusResponse]:
    responses: list[ClientStatusResponse] = []
    for status in engine.get_all_client_statuses():
        info = engine.catalog.get_client_display_info(status)
        if info is not None:
            responses.append(ClientStatusResponse(status=status, info=_info(info)))
    return responses


@router.get("/client/{status}", response_model=ClientStatusResponse)
async def get_client_status(status: str, engine: EngineDep, _: ViewerUser) -> ClientStatusResponse:
    info = engine.catalog.get_client_display_info(status)
    if info is None:
        raise HTTPException(status_code=404, detail=f'Unknown client status "{status}"')
    return ClientStatusResponse(status=ClientStatus(status), info=_info(info))


@router.get("/phases", response_model=list[PhaseResponse])
async def list_phases(engine: EngineDep, _: ViewerUser) -> list[PhaseResponse]:
    grouped = engine.catalog.statuses_by_phase()
    return [
        PhaseResponse(
            category=category,
            name=engine.catalog.phase_name(category),
            statuses=[PhaseStatusEntry(**entry) for entry in entries],
        )
        for category, entries in grouped.items()
    ]


@router.get("/action-required", response_model=list[InternalStatus])
async def list_action_required(engine: EngineDep, _: ViewerUser) -> list[InternalStatus]:
    return engine.get_action_required_statuses()


@router.get("/categories/{category}", response_model=list[InternalStatus])
async def list_category(category: StatusCategory, engine: EngineDep, _: ViewerUser) -> list[InternalStatus]:
    return engine.get_statuses_by_category(category)


@router.get("/transitions/validate", response_model=TransitionCheckResponse)
async def validate_transition(
    engine: EngineDep,
    _: ViewerUser,
    from_status: str = Query(..., min_length=1),
    to_status: str = Query(..., min_length=1),
) -> TransitionCheckResponse:
    return TransitionCheckResponse(
        from_status=from_status,
        to_status=to_status,
        valid=engine.is_valid_transition(from_status, to_status),
    )


@router.get("/{status}", response_model=InternalStatusResponse)
async def get_status(status: str, engine: EngineDep, _: ViewerUser) -> InternalStatusResponse:
    if status not in {item.value for item in InternalStatus}:
        raise HTTPException(
            status_code=404, detail=f'Unknown internal status "{status}"; client statuses live under /statuses/client'
        )
    return _internal_response(engine, InternalStatus(status))


@router.get("/{status}/next", response_model=list[InternalStatusResponse])
async def get_next_statuses(status: str, engine: EngineDep, _: ViewerUser) -> list[InternalStatusResponse]:
    return [_internal_response(engine, item) for item in engine.get_next_possible_statuses(status)]
