"""
Signage Layout Service

Manages digital-signage displays, the grid views each display renders and
the content slots of every view. Layouts are submitted declaratively and
reconciled against storage; connected displays are notified of changes
over a websocket.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Load environment variables
load_dotenv()

from signage.connections import ConnectionManager
from signage.database import init_db
from signage.events import EventBroker
from signage.exceptions import NotFoundError, SignageError, ValidationFailure
from signage.routers import (
    content_slots_router,
    display_auth_router,
    displays_router,
    live_router,
    views_router,
)
from signage.unit_of_work import KeyedLock

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup: Initialize database tables
    init_db()
    yield
    # Shutdown: let pending pushes to displays finish
    await app.state.connections.drain()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path}: {exc}")
        return _error_response(404, str(exc))

    @app.exception_handler(ValidationFailure)
    async def validation_handler(
        request: Request, exc: ValidationFailure
    ) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path}: {exc}")
        return _error_response(422, str(exc))

    @app.exception_handler(SignageError)
    async def storage_handler(request: Request, exc: SignageError) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path}: {exc}")
        return _error_response(500, str(exc))


def create_app() -> FastAPI:
    app = FastAPI(
        title="Signage Layout Service API",
        version="0.1.0",
        description="""
Manages digital-signage displays, their grid views and the content slots
rendered in each view, and pushes layout changes to connected displays.
        """,
        lifespan=lifespan,
    )

    # One broker and one lock registry per application
    app.state.events = EventBroker()
    app.state.view_locks = KeyedLock()
    app.state.connections = ConnectionManager()
    app.state.events.subscribe(app.state.connections.handle_event)

    register_exception_handlers(app)

    # Include routers
    app.include_router(displays_router)
    app.include_router(views_router)
    app.include_router(content_slots_router)
    app.include_router(display_auth_router)
    app.include_router(live_router)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    debug = os.getenv("DEBUG", "false").lower() == "true"

    uvicorn.run("signage.main:app", host=host, port=port, reload=debug)
