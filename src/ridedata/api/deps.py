"""Request dependencies: the app's AnalysisSession and DEM orchestrator."""
from typing import Optional

from fastapi import Depends, HTTPException, Request

from ridedata.analysis.units import UnitSystem
from ridedata.config import get_settings
from ridedata.dem.orchestrator import DemFetchOrchestrator
from ridedata.session import AnalysisSession


def get_analysis_session(request: Request) -> AnalysisSession:
    return request.app.state.session


def get_orchestrator(request: Request) -> DemFetchOrchestrator:
    return request.app.state.orchestrator


def require_recording(session: AnalysisSession = Depends(get_analysis_session)) -> AnalysisSession:
    """Like get_analysis_session, but 404s when no usable recording is loaded."""
    if session.series is None:
        raise HTTPException(status_code=404, detail="No recording loaded")
    return session


def resolve_units(units: Optional[UnitSystem]) -> UnitSystem:
    if units is not None:
        return units
    return UnitSystem(get_settings().default_unit_system)
