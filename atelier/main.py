import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI
from fastapi.responses import Response

from atelier.api.routes import ping, statuses, tickets
from atelier.core.config import get_settings
from atelier.core.logging import configure_logging, init_tracer, shutdown_tracer
from atelier.metrics import metrics_registry
from atelier.metrics.exporters import PROMETHEUS_CONTENT_TYPE, PrometheusExporter
from atelier.services.postgres import PostgresConnectionTester
from atelier.statuses import get_workflow_engine
from atelier.tickets import TicketRepository, TicketService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    configure_logging(settings)
    tracer_provider = init_tracer(settings)

    engine = get_workflow_engine()
    app.state.workflow_engine = engine
    app.state.tracer_provider = tracer_provider

    postgres = PostgresConnectionTester(
        dsn=settings.postgres_dsn,
        min_size=settings.postgres_pool_min_size,
        max_size=settings.postgres_pool_max_size,
    )
    app.state.postgres_tester = postgres
    app.state.ticket_service = None
    try:
        pool = await postgres.get_pool()
        service = TicketService(TicketRepository(pool), engine=engine)
        await service.ensure_schema()
        app.state.ticket_service = service
    except (OSError, asyncpg.PostgresError) as exc:
        logger.error("Ticket service unavailable, database initialisation failed: %s", exc)
    try:
        yield
    finally:
        await postgres.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(statuses.router)
    app.include_router(tickets.router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        payload = PrometheusExporter(metrics_registry).export()
        return Response(content=payload, media_type=PROMETHEUS_CONTENT_TYPE)

    return app


app = create_app()
