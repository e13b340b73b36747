"""FastAPI application factory"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import Response

from leisure_ledger.api.middleware import RequestContextMiddleware
from leisure_ledger.api.ticker import start_ticker
from leisure_ledger.api.v1 import alarm, balance, history, loan, session, settings as config_routes
from leisure_ledger.config import settings
from leisure_ledger.infrastructure.clients.alarm import build_alarm_player
from leisure_ledger.infrastructure.database.repositories import SessionSnapshotRepository, StateRepository
from leisure_ledger.infrastructure.database.session import SessionLocal, init_db
from leisure_ledger.infrastructure.database.store import FallbackKeyValueStore, SqlKeyValueStore
from leisure_ledger.infrastructure.observability.logging import setup_logging
from leisure_ledger.services.tracker import TrackerService

# Setup structured logging
setup_logging(settings.log_level)


def build_tracker() -> TrackerService:
    """Wire the tracker to the SQL store, degrading to memory when the database fails"""
    try:
        init_db()
    except (SQLAlchemyError, OSError) as e:
        logging.warning(f"Database init failed, state will not persist: {e}", extra={"step": "init_db"})

    store = FallbackKeyValueStore(SqlKeyValueStore(SessionLocal))
    return TrackerService(
        state_repo=StateRepository(store, settings.state_key),
        snapshot_repo=SessionSnapshotRepository(store, settings.session_key),
        alarm=build_alarm_player(),
    )


def create_app(tracker: Optional[TrackerService] = None, run_ticker: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        tracker: pre-built tracker (tests); built from settings on start-up otherwise
        run_ticker: drive sessions with the one-second background ticker
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.tracker is None:
            app.state.tracker = build_tracker()
        active = app.state.tracker
        active.recover()

        ticker = start_ticker(active, settings.tick_interval_seconds) if run_ticker else None
        try:
            yield
        finally:
            if ticker is not None:
                ticker.cancel()
                with suppress(asyncio.CancelledError):
                    await ticker
            active.shutdown()
            await active.alarm.drain()

    app = FastAPI(
        title="Leisure Ledger",
        description="Time-economy tracker: earn leisure by studying, spend it, borrow against future study",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.tracker = tracker

    app.add_middleware(RequestContextMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(balance.router, prefix="/v1", tags=["balance"])
    app.include_router(session.router, prefix="/v1", tags=["sessions"])
    app.include_router(alarm.router, prefix="/v1", tags=["alarm"])
    app.include_router(loan.router, prefix="/v1", tags=["loans"])
    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(config_routes.router, prefix="/v1", tags=["config"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
