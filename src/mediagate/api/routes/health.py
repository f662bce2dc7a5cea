"""Health check endpoint for the MediaGate API."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["Health"])

MEDIAGATE_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str


@router.get("/health", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """Health check endpoint.

    Needs no authorizer assertion and touches no backend.
    """
    return HealthResponse(
        status="ok",
        time=datetime.now(UTC).isoformat(),
        version=MEDIAGATE_VERSION,
    )
