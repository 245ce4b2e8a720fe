"""Custom ticket status catalog and workflow engine."""

from .catalog import (
    CATEGORY_ORDER,
    ClientStatus,
    InternalStatus,
    StatusCatalog,
    StatusCategory,
    StatusColor,
    StatusDisplayInfo,
)
from .engine import StatusWorkflowEngine, get_workflow_engine
from .transitions import TransitionRules

__all__ = [
    "CATEGORY_ORDER",
    "ClientStatus",
    "InternalStatus",
    "StatusCatalog",
    "StatusCategory",
    "StatusColor",
    "StatusDisplayInfo",
    "StatusWorkflowEngine",
    "TransitionRules",
    "get_workflow_engine",
]
