"""
Health check endpoints

Provides two endpoints:
- GET /api/v1/health - Basic health check
- GET /api/v1/health/dependencies - Ticket store and engineer directory status
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

from civic_triage import __version__
from civic_triage.models.schemas import TicketFilter
from civic_triage.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/health", tags=["health"])

# Application start time for uptime calculation
APP_START_TIME = time.time()

CHECK_TIMEOUT_SECONDS = 5.0


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=_now, description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str = Field(..., description="Dependency name")
    status: str = Field(..., description="Status: healthy, unhealthy")
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    error_message: Optional[str] = Field(None, description="Error message if unhealthy")


class DependencyHealth(BaseModel):
    """Dependency health check response"""
    overall_status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    dependencies: Dict[str, DependencyStatus] = Field(..., description="Individual dependency statuses")
    checked_at: datetime = Field(default_factory=_now, description="Check timestamp")


# ============================================================================
# Dependency Check Functions
# ============================================================================

async def _timed_check(name: str, probe) -> DependencyStatus:
    try:
        start = time.time()
        await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT_SECONDS)
        latency = (time.time() - start) * 1000
        return DependencyStatus(name=name, status="healthy", latency_ms=round(latency, 2))

    except asyncio.TimeoutError:
        logger.error("%s health check timed out", name)
        return DependencyStatus(
            name=name,
            status="unhealthy",
            error_message=f"Request timed out after {CHECK_TIMEOUT_SECONDS:.0f} seconds"
        )
    except Exception as e:
        logger.error("%s health check failed: %s", name, e)
        return DependencyStatus(name=name, status="unhealthy", error_message=str(e))


def determine_overall_status(dependencies: Dict[str, DependencyStatus]) -> str:
    """
    Ticket store down -> "unhealthy"; engineer directory down -> "degraded".
    """
    store = dependencies.get("ticket_store")
    if store is not None and store.status == "unhealthy":
        return "unhealthy"
    if any(dep.status != "healthy" for dep in dependencies.values()):
        return "degraded"
    return "healthy"


# ============================================================================
# API Endpoints
# ============================================================================

@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def basic_health_check() -> HealthResponse:
    """Always 200; does not touch external dependencies."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=round(time.time() - APP_START_TIME, 2)
    )


@router.get(
    "/dependencies",
    response_model=DependencyHealth,
    status_code=status.HTTP_200_OK,
    summary="Dependency health check",
)
async def dependency_health_check(request: Request) -> DependencyHealth:
    """Probe the ticket store and engineer directory in parallel."""
    store = request.app.state.store
    directory = request.app.state.assignment.directory

    results = await asyncio.gather(
        _timed_check("ticket_store", lambda: store.list(TicketFilter(limit=1))),
        _timed_check("engineer_directory", directory.list),
    )
    dependencies = {result.name: result for result in results}

    overall = determine_overall_status(dependencies)
    if overall != "healthy":
        logger.warning("Dependency health: %s", overall)

    return DependencyHealth(overall_status=overall, dependencies=dependencies)
