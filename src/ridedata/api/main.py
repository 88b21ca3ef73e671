"""FastAPI application factory."""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ridedata.api.routes import dem as dem_routes
from ridedata.api.routes import recording
from ridedata.dem.client import DemClient
from ridedata.dem.orchestrator import DemFetchOrchestrator
from ridedata.session import AnalysisSession


def create_app(session: Optional[AnalysisSession] = None) -> FastAPI:
    """Build and return the FastAPI app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = DemClient()
        app.state.orchestrator = DemFetchOrchestrator(client=client)
        yield
        await client.aclose()

    app = FastAPI(
        title="RideData API",
        description="Activity elevation profiles, DEM comparison and climb totals",
        version="0.1.0",
        lifespan=lifespan,
    )
    # one recording per app instance
    app.state.session = session or AnalysisSession()

    app.include_router(recording.router, prefix="/recording", tags=["recording"])
    app.include_router(dem_routes.router, prefix="/dem", tags=["dem"])

    return app


# Module-level app instance for uvicorn
app = create_app()
