"""
Story Sync API - Reference Backend

FastAPI application serving the remote store contract that HttpRemoteStore
talks to, backed by an InMemoryRemoteStore.

Run with:
    uvicorn story_sync.api.main:app --reload --port 8000

API Documentation available at:
    - Swagger UI: http://localhost:8000/docs
"""

import logging
import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from story_sync.logging_utils import configure_safe_logging

# File-based logging survives stdout/pipe issues under the reloader
_LOG_FILE = Path(tempfile.gettempdir()) / "story-sync-api.log"

load_dotenv(Path(__file__).parent.parent.parent.parent / ".env")
configure_safe_logging(os.getenv("LOG_LEVEL", "INFO"), log_file=_LOG_FILE)

from story_sync import __version__
from story_sync.api.routers import health, profiles, stories

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Story Sync API",
    description="Reference backend for the story sync remote store contract.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(health.router)
app.include_router(stories.router)
app.include_router(profiles.router)


@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "name": "Story Sync API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
