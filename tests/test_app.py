import logging
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from atelier.core.config import Settings, get_settings
from atelier.core.logging import TicketContextFilter, configure_logging, init_tracer, parse_headers
from atelier.main import create_app
from atelier.services.postgres import DatabaseReadiness


def test_ping():
    client = TestClient(create_app())

    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ready_without_database_is_unavailable():
    client = TestClient(create_app())

    assert client.get("/ping/ready").status_code == 503


def test_ready_reports_ticket_store_state():
    app = create_app()
    tester = AsyncMock()
    tester.readiness.side_effect = [
        DatabaseReadiness(database=True, tickets_schema=True, latency_ms=1.5),
        DatabaseReadiness(database=True, tickets_schema=False, detail="public.custom_tickets is missing"),
    ]
    app.state.postgres_tester = tester
    client = TestClient(app)

    ready = client.get("/ping/ready")
    missing = client.get("/ping/ready")

    assert ready.status_code == 200
    assert ready.json() == {"status": "ok", "database": True, "tickets_schema": True, "latency_ms": 1.5}
    assert missing.status_code == 503
    assert missing.json()["detail"] == "public.custom_tickets is missing"


def test_metrics_endpoint_exposes_prometheus_text():
    client = TestClient(create_app())

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "ticket_status_transitions_total" in response.text


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("ATELIER_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ATELIER_POSTGRES_POOL_MAX_SIZE", "20")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.log_level == "DEBUG"
        assert settings.postgres_pool_max_size == 20
        assert settings.otel_enabled is False
    finally:
        get_settings.cache_clear()


def test_parse_headers():
    assert parse_headers(None) == {}
    assert parse_headers("api-key=secret, x-tenant = atelier,broken") == {
        "api-key": "secret",
        "x-tenant": "atelier",
    }


def test_configure_logging_sets_level():
    logger = configure_logging(Settings(log_level="warning"))

    assert logger.name == "atelier"
    assert logger.level == logging.WARNING


def test_tracer_disabled_by_default():
    assert init_tracer(Settings(otel_enabled=False)) is None


def test_workflow_loggers_carry_ticket_context():
    configure_logging(Settings(log_level="info"))

    for name in ("atelier.tickets", "atelier.statuses"):
        workflow_logger = logging.getLogger(name)
        assert workflow_logger.propagate is False
        [handler] = workflow_logger.handlers
        assert any(isinstance(item, TicketContextFilter) for item in handler.filters)
        assert "%(ticket_id)s" in handler.formatter._fmt


def test_ticket_context_filter_fills_missing_fields():
    record = logging.LogRecord("atelier.tickets.service", logging.INFO, __file__, 1, "Deleted ticket", (), None)
    record.ticket_id = "abc"

    assert TicketContextFilter().filter(record) is True
    assert record.ticket_id == "abc"
    assert record.from_status == "-"
    assert record.to_status == "-"
