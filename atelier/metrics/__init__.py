"""Process-wide metrics for the ticket workflow."""
from .registry import MetricsRegistry
from .tickets import TicketMetrics, register_ticket_metrics

metrics_registry = MetricsRegistry()
ticket_metrics = TicketMetrics(metrics_registry)

__all__ = [
    "MetricsRegistry",
    "TicketMetrics",
    "metrics_registry",
    "register_ticket_metrics",
    "ticket_metrics",
]
