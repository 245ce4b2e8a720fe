from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from atelier.dependencies.auth import Role, User, role_required
from atelier.statuses import StatusWorkflowEngine, get_workflow_engine as default_workflow_engine
from atelier.tickets.service import TicketService

require_editor = role_required(Role.EDITOR)
require_viewer = role_required(Role.VIEWER)

EditorUser = Annotated[User, Depends(require_editor)]
ViewerUser = Annotated[User, Depends(require_viewer)]


async def get_ticket_service(request: Request) -> TicketService:
    service = getattr(request.app.state, "ticket_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Ticket service is not configured")
    return service


async def get_workflow_engine(request: Request) -> StatusWorkflowEngine:
    engine = getattr(request.app.state, "workflow_engine", None)
    if engine is None:
        return default_workflow_engine()
    return engine
