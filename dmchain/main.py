import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dmchain.api import block, events, follow, message, profile, vault
from dmchain.config import Settings, get_settings
from dmchain.db import DatabaseManager
from dmchain.schemas.responses import HealthCheckResponseSchema
from dmchain.services.auth import AuthService
from dmchain.services.event_store import GraphEventStore
from dmchain.services.protocol import MessagingProtocol
from dmchain.services.replay import rebuild

logger = logging.getLogger(__name__)


def _restore_protocol(settings: Settings, db: DatabaseManager) -> MessagingProtocol:
    """Rebuild the protocol from persisted events and keep persisting new ones."""
    db.verify_connectivity()
    store = GraphEventStore(db.driver, db.database)
    store.ensure_constraints()
    recorded = store.load()
    protocol = rebuild(recorded, settings.owner_address, settings.message_fee)
    protocol.event_log.attach_sink(store)
    logger.info("restored %d events from neo4j", len(recorded))
    return protocol


def create_app(
    protocol: MessagingProtocol | None = None, settings: Settings | None = None
) -> FastAPI:
    """Build the HTTP application.

    Args:
        protocol: Protocol to serve; built from settings at startup when omitted
        settings: Settings to use instead of the environment

    Returns:
        The configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=settings.log_level)
        db: DatabaseManager | None = None
        try:
            if getattr(app.state, "protocol", None) is None:
                if settings.persistence_enabled:
                    db = DatabaseManager(settings)
                    app.state.protocol = _restore_protocol(settings, db)
                else:
                    logger.info("neo4j not configured, event log kept in memory")
                    app.state.protocol = MessagingProtocol.from_settings(settings)
            yield
        finally:
            if db is not None:
                db.close()

    app = FastAPI(title="dmchain", lifespan=lifespan)
    app.state.protocol = protocol
    app.state.auth_service = AuthService(settings)

    for module in (profile, message, block, follow, vault, events):
        app.include_router(module.router)

    @app.get("/api/health", response_model=HealthCheckResponseSchema)
    async def health_check() -> HealthCheckResponseSchema:
        return HealthCheckResponseSchema(success=True)

    return app


app = create_app()
