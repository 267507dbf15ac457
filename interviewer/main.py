"""
FastAPI application entry point.

Run with: uvicorn interviewer.main:app --reload
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from interviewer import __version__
from interviewer.api.exception_handlers import setup_exception_handlers
from interviewer.api.routes import health, protocols, sessions
from interviewer.core.config import settings
from interviewer.core.logging import bind_context, clear_context, configure_logging, get_logger
from interviewer.persistence.protocol_storage import FilesystemProtocolStorage
from interviewer.services.session_store import SessionStore

log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a unique correlation ID to each request.

    The request_id is bound to the structlog context for every log entry
    written while handling the request and returned as X-Request-ID.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


def create_app(
    store: Optional[SessionStore] = None,
    storage: Optional[FilesystemProtocolStorage] = None,
) -> FastAPI:
    """
    Build the application around one SessionStore.

    Args:
        store: Store to serve (default: a fresh store created at startup)
        storage: Protocol asset storage (default: settings.protocols_dir)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        created = False
        if getattr(app.state, "store", None) is None:
            app.state.store = SessionStore.create()
            created = True

        log.info(
            "application_started",
            debug=settings.debug,
            protocols_dir=str(app.state.storage.root),
        )

        yield

        log.info("application_shutting_down")
        if created:
            app.state.store.dispose()

    app = FastAPI(
        title="Interviewer Store",
        description="Interview session networks and protocol installation",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.state.store = store
    app.state.storage = storage or FilesystemProtocolStorage(settings.protocols_dir)
    app.state.install_lock = asyncio.Lock()

    if settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(CorrelationIDMiddleware)

    setup_exception_handlers(app)

    app.include_router(health.router, tags=["system"])
    app.include_router(sessions.router)
    app.include_router(protocols.router)

    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {"name": "Interviewer Store", "version": __version__, "status": "running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "interviewer.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
