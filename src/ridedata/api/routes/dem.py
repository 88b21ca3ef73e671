"""DEM fetch trigger and status routes."""
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel

from ridedata.api.deps import get_analysis_session, get_orchestrator, require_recording
from ridedata.dem.orchestrator import DemFetchOrchestrator, FetchInProgressError, NoPositionDataError
from ridedata.dem.providers import UnknownProviderError
from ridedata.session import AnalysisSession

router = APIRouter()


class ProviderResponse(BaseModel):
    provider_id: str
    name: str
    batch_capable: bool
    max_batch_size: int
    rate_limit_ms: int


class FetchStartedResponse(BaseModel):
    run_id: str
    provider_id: str
    total: int


class FetchStatusResponse(BaseModel):
    status: str
    run_id: Optional[str] = None
    provider_id: Optional[str] = None
    completed: int = 0
    total: int = 0
    outcome: Optional[str] = None
    message: Optional[str] = None
    stale: bool = False   # run belongs to a recording that has since been replaced


@router.get("/providers", response_model=List[ProviderResponse])
def list_providers(orchestrator: DemFetchOrchestrator = Depends(get_orchestrator)):
    return [
        ProviderResponse(
            provider_id=p.provider_id,
            name=p.name,
            batch_capable=p.batch_capable,
            max_batch_size=p.max_batch_size,
            rate_limit_ms=p.rate_limit_ms,
        )
        for p in orchestrator.providers.values()
    ]


@router.post("/{provider_id}/fetch", response_model=FetchStartedResponse, status_code=202)
async def trigger_fetch(
    provider_id: str,
    background_tasks: BackgroundTasks,
    session: AnalysisSession = Depends(require_recording),
    orchestrator: DemFetchOrchestrator = Depends(get_orchestrator),
):
    """
    Start a DEM fetch for the loaded recording.
    Returns immediately; poll /dem/status for progress.
    """
    try:
        run = session.begin_fetch(provider_id, orchestrator)
    except UnknownProviderError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except NoPositionDataError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except FetchInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    background_tasks.add_task(session.run_fetch, orchestrator, run)
    return FetchStartedResponse(run_id=run.run_id, provider_id=provider_id, total=run.progress.total)


@router.get("/status", response_model=FetchStatusResponse)
def fetch_status(session: AnalysisSession = Depends(get_analysis_session)):
    """Progress and outcome of the most recent fetch run."""
    run = session.run
    if run is None:
        return FetchStatusResponse(status="never_run")
    return FetchStatusResponse(
        status=run.status.value,
        run_id=run.run_id,
        provider_id=run.provider_id,
        completed=run.progress.completed,
        total=run.progress.total,
        outcome=run.outcome.value if run.outcome else None,
        message=run.message,
        stale=run.recording_id != session.recording_id,
    )
