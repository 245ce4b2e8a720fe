"""Ticket workflow metrics recorded by the ticket service."""
from __future__ import annotations

from contextlib import AbstractContextManager

from atelier.statuses import InternalStatus

from .base import CounterMetric, HistogramMetric, track_duration
from .definitions import (
    REJECTION_REASONS,
    STATUS_CHANGE_DURATION,
    STATUS_REJECTIONS_TOTAL,
    STATUS_TRANSITIONS_TOTAL,
    TICKET_METRIC_DEFINITIONS,
)
from .registry import MetricsRegistry


def register_ticket_metrics(registry: MetricsRegistry) -> None:
    for definition in TICKET_METRIC_DEFINITIONS:
        if definition.metric_type == "counter":
            registry.counter(definition.name, description=definition.description, label_names=definition.label_names)
        elif definition.metric_type == "histogram":
            registry.histogram(
                definition.name, description=definition.description, label_names=definition.label_names
            )
        else:
            raise ValueError(f"Unsupported metric type: {definition.metric_type}")


class TicketMetrics:
    """Typed recording API over the ticket workflow metrics of one registry."""

    def __init__(self, registry: MetricsRegistry) -> None:
        register_ticket_metrics(registry)
        self.registry = registry
        self.transitions: CounterMetric = registry.counter(STATUS_TRANSITIONS_TOTAL)
        self.rejections: CounterMetric = registry.counter(STATUS_REJECTIONS_TOTAL)
        self.duration: HistogramMetric = registry.histogram(STATUS_CHANGE_DURATION)

    def transition(self, from_status: InternalStatus, to_status: InternalStatus) -> None:
        self.transitions.inc(labels={"from_status": from_status.value, "to_status": to_status.value})

    def rejection(self, reason: str) -> None:
        if reason not in REJECTION_REASONS:
            raise ValueError(f"Unknown rejection reason: {reason}")
        self.rejections.inc(labels={"reason": reason})

    def time_status_change(self) -> AbstractContextManager[None]:
        return track_duration(self.duration)

    def transition_count(self, from_status: InternalStatus, to_status: InternalStatus) -> float:
        return self.transitions.value(labels={"from_status": from_status.value, "to_status": to_status.value})

    def rejection_count(self, reason: str) -> float:
        return self.rejections.value(labels={"reason": reason})
