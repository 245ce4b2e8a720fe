"""Names and label sets of the ticket workflow metrics."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

STATUS_TRANSITIONS_TOTAL = "ticket_status_transitions_total"
STATUS_REJECTIONS_TOTAL = "ticket_status_rejections_total"
STATUS_CHANGE_DURATION = "ticket_status_change_duration_seconds"

# Values of the ``reason`` label on STATUS_REJECTIONS_TOTAL.
REJECTION_REASONS: Tuple[str, ...] = ("not_found", "not_permitted", "invalid_transition", "stale_status")


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    metric_type: str
    description: str
    label_names: Tuple[str, ...] = ()


TICKET_METRIC_DEFINITIONS: Tuple[MetricDefinition, ...] = (
    MetricDefinition(
        name=STATUS_TRANSITIONS_TOTAL,
        metric_type="counter",
        description="Accepted ticket status transitions.",
        label_names=("from_status", "to_status"),
    ),
    MetricDefinition(
        name=STATUS_REJECTIONS_TOTAL,
        metric_type="counter",
        description="Rejected ticket status changes by reason.",
        label_names=("reason",),
    ),
    MetricDefinition(
        name=STATUS_CHANGE_DURATION,
        metric_type="histogram",
        description="Time spent validating and persisting a status change in seconds.",
    ),
)
