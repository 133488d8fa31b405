"""
Health Check Endpoints

Probed by HttpConnectivityProbe to decide whether the backend is reachable.
"""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from story_sync.utils import utc_now

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
def health_check():
    """Returns 200 OK if the API is running."""
    return HealthResponse(status="ok", timestamp=utc_now())
