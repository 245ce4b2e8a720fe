"""Custom ticket domain models and services."""

from .models import AuditAction, StatusCount, StatusStatistics, Ticket, TicketAuditEntry
from .repository import TicketRepository
from .service import (
    InvalidTicketTransitionError,
    StaleTicketStatusError,
    StatusChangeNotPermittedError,
    TicketDeletionError,
    TicketNotEditableError,
    TicketNotFoundError,
    TicketService,
    TicketServiceError,
)

__all__ = [
    "AuditAction",
    "InvalidTicketTransitionError",
    "StaleTicketStatusError",
    "StatusChangeNotPermittedError",
    "StatusCount",
    "StatusStatistics",
    "Ticket",
    "TicketAuditEntry",
    "TicketDeletionError",
    "TicketNotEditableError",
    "TicketNotFoundError",
    "TicketRepository",
    "TicketService",
    "TicketServiceError",
]
