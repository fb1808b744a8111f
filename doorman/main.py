"""Main FastAPI application."""
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from doorman import __version__
from doorman.api import health, scripts, webhooks
from doorman.core.config import settings
from doorman.core.logging import setup_logging
from doorman.db.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    logger.info(f"Doorman running on port: {settings.port}")
    yield


app = FastAPI(
    title="Doorman",
    description="Scripted IVR call trees for Twilio",
    version=__version__,
    lifespan=lifespan,
)

# Include routers (must be before static file mounting to take precedence)
app.include_router(health.router, tags=["health"])
app.include_router(webhooks.voice.router, tags=["webhooks"])
app.include_router(scripts.router, tags=["scripts"])

# Serve static assets (audio for <Play>) from the site root
asset_dir = os.path.abspath(settings.asset_path)
if os.path.isdir(asset_dir):
    app.mount("/", StaticFiles(directory=asset_dir), name="assets")


def run() -> None:
    """Start the server."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
