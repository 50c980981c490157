"""FastAPI application for WLAN auto-assignment.

This is the main entry point for the assignment API server.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.dependencies import (
    close_campus_client,
    get_campus_client_status,
    get_controller,
    init_campus_client,
)
from .api.router import router
from .use_cases import SiteNameCache

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    - Startup: Log in to the controller, open the shared client and
      attach the site name cache to app.state
    - Shutdown: Drop the cache and close the client
    """
    logger.info("Starting WLAN Assignment API...")

    try:
        await init_campus_client()
        app.state.site_names = SiteNameCache(get_controller())
    except Exception as e:
        # /effective-set works without a controller
        logger.warning(f"Failed to initialize Campus client: {e}")

    yield

    logger.info("Shutting down WLAN Assignment API...")
    app.state.site_names = None
    await close_campus_client()


app = FastAPI(
    title="Campus WLAN Assignment API",
    description="""
    API for creating wireless networks and pushing them to device profiles.

    ## Features

    - **Preview**: See which profiles a set of sites would reach
    - **Discover**: Get starting per-site configs with their profiles
    - **Effective Set**: Live feedback for a per-site deployment policy
    - **Auto-Assign**: Create a WLAN on every profile at the selected sites
    - **Site-Centric**: Create a WLAN with an include/exclude policy per site

    ## Workflow

    1. Pick the sites and preview the profiles they reach
    2. Optionally narrow each site to some profiles (include or exclude)
    3. Create the WLAN; it is assigned in small concurrent batches
    4. Review per-profile results ("N of M profiles assigned")
    """,
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-API-Key"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Campus WLAN Assignment API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health():
    """Health check with controller circuit state."""
    circuit = get_campus_client_status()
    return {
        "status": "healthy" if circuit is not None else "degraded",
        "controller": circuit,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "campus.assignment.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
