"""
System API router.

Routes:
- GET /health - Health check
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from solidus.api.responses import HealthCheckResponse
from solidus.version import solidus_version

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(
        status="healthy",
        version=solidus_version(),
        timestamp=datetime.now(timezone.utc),
    )
