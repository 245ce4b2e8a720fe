"""Logging and tracing setup for the Atelier API.

Ticket workflow modules log with ``extra={"ticket_id": ..., "from_status": ...,
"to_status": ...}``. Those records go through a dedicated handler whose format
exposes the ticket context; :class:`TicketContextFilter` fills in ``-`` for
any field a record does not carry so the format never fails.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from atelier import __version__
from atelier.core.config import Settings

TICKET_CONTEXT_FIELDS = ("ticket_id", "from_status", "to_status")
WORKFLOW_LOGGERS = ("atelier.tickets", "atelier.statuses")

_TRACER_INITIALISED = False


class TicketContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for name in TICKET_CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def parse_headers(header_string: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` OTLP header strings."""

    headers: dict[str, str] = {}
    for item in (header_string or "").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def configure_logging(settings: Settings) -> logging.Logger:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    workflow_logger_config = {
        name: {"level": level, "handlers": ["workflow"], "propagate": False} for name in WORKFLOW_LOGGERS
    }
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"ticket_context": {"()": TicketContextFilter}},
            "formatters": {
                "default": {"format": settings.log_format},
                "workflow": {"format": settings.workflow_log_format},
            },
            "handlers": {
                "default": {"class": "logging.StreamHandler", "formatter": "default", "level": level},
                "workflow": {
                    "class": "logging.StreamHandler",
                    "formatter": "workflow",
                    "filters": ["ticket_context"],
                    "level": level,
                },
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                "atelier": {"level": level},
                **workflow_logger_config,
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
    return logging.getLogger("atelier")


def build_tracer_provider(settings: Settings) -> TracerProvider:
    resource = Resource(
        attributes={
            "service.name": settings.otel_service_name,
            "service.version": __version__,
            "deployment.environment": settings.environment,
        }
    )
    provider = TracerProvider(resource=resource)

    exporter_kwargs: dict[str, object] = {}
    if settings.otel_exporter_otlp_endpoint:
        exporter_kwargs["endpoint"] = settings.otel_exporter_otlp_endpoint
    headers = parse_headers(settings.otel_exporter_otlp_headers)
    if headers:
        exporter_kwargs["headers"] = headers
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**exporter_kwargs)))
    return provider


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install the global tracer provider once, when tracing is enabled."""

    global _TRACER_INITIALISED

    if _TRACER_INITIALISED or not settings.otel_enabled:
        return None
    provider = build_tracer_provider(settings)
    trace.set_tracer_provider(provider)
    _TRACER_INITIALISED = True
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    global _TRACER_INITIALISED

    if provider is None:
        return
    provider.shutdown()
    _TRACER_INITIALISED = False
