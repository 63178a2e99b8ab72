"""
Civic Triage - FastAPI application
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from civic_triage import __version__
from civic_triage.config import get_settings
from civic_triage.errors import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    TriageError,
    UpstreamUnavailable,
    ValidationError,
)
from civic_triage.middleware.logging_middleware import LoggingMiddleware
from civic_triage.models.schemas import ErrorResponse
from civic_triage.repositories.base_repository import InMemoryTicketStore, TicketStore
from civic_triage.repositories.engineer_repository import (
    EngineerDirectory,
    EngineerRepository,
    InMemoryEngineerDirectory,
)
from civic_triage.repositories.ticket_repository import TicketRepository
from civic_triage.routes import health, tickets
from civic_triage.services.assignment import AssignmentCoordinator
from civic_triage.services.dashboard import DashboardService
from civic_triage.services.projector import RoleViewProjector
from civic_triage.services.ticket_cache import TicketCache
from civic_triage.services.workflow import WorkflowEngine
from civic_triage.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    PermissionDenied: 403,
    InvalidTransition: 409,
    NotFound: 404,
    UpstreamUnavailable: 503,
}


async def triage_error_handler(request: Request, exc: TriageError) -> JSONResponse:
    """Map typed triage failures onto HTTP status codes"""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    body = ErrorResponse(error=type(exc).__name__, message=exc.message, ticket_id=exc.ticket_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(
    store: Optional[TicketStore] = None,
    directory: Optional[EngineerDirectory] = None,
    cache: Optional[TicketCache] = None,
) -> FastAPI:
    """
    Build the application with explicit collaborators.

    Without arguments the Supabase repositories are used when credentials are
    configured, otherwise in-memory ones. An in-memory engineer directory has
    no roster, so roster enforcement is off in that case.
    """
    if store is None:
        store = TicketRepository() if settings.supabase_configured else InMemoryTicketStore()

    if directory is None:
        if settings.supabase_configured:
            directory = EngineerRepository()
            enforce_roster = settings.enforce_engineer_roster
        else:
            # No roster to check against
            directory = InMemoryEngineerDirectory()
            enforce_roster = False
            logger.warning("No engineer directory configured; roster enforcement disabled")
    else:
        enforce_roster = settings.enforce_engineer_roster

    assignment = AssignmentCoordinator(directory, enforce_roster=enforce_roster)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if cache is not None:
            await cache.load(store)
        yield
        if cache is not None:
            await cache.clear()

    app = FastAPI(
        title="Civic Triage",
        description="Ticket lifecycle and multi-role triage workflow",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.store = store
    app.state.cache = cache
    app.state.assignment = assignment
    app.state.workflow = WorkflowEngine(store, assignment=assignment, cache=cache)
    app.state.dashboard = DashboardService(store, projector=RoleViewProjector(), cache=cache)

    # Middleware order matters: executed bottom-up
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(TriageError, triage_error_handler)

    app.include_router(tickets.router)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {"message": "Civic Triage API", "version": __version__}

    logger.info("Civic Triage app created (store=%s)", type(store).__name__)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
