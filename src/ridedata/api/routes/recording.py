"""Recording upload and display routes: chart rows, session summary, climb table."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel

from ridedata.analysis.aligner import AlignmentKey
from ridedata.analysis.chart import UnknownMetricError
from ridedata.analysis.climb import InterpolationMode
from ridedata.analysis.metrics import unit_label
from ridedata.analysis.units import UnitSystem, display_length, length_label
from ridedata.api.deps import get_analysis_session, require_recording, resolve_units
from ridedata.config import get_settings
from ridedata.ingest.decoded import DecodedMessageSet
from ridedata.ingest.fit_reader import FitDecodeError, read_fit
from ridedata.session import AnalysisSession

router = APIRouter()


class LoadResponse(BaseModel):
    recording_id: str
    filename: Optional[str]
    samples: int
    available_metrics: List[str]
    has_summary: bool


class MetricResponse(BaseModel):
    metric_id: str
    display_name: str
    display_field: str
    color: str
    unit: str


class SummaryRowResponse(BaseModel):
    field: str
    label: str
    value: str


class ClimbRowResponse(BaseModel):
    source_id: str
    source_name: str
    interpolation_mode: InterpolationMode
    total_ascent: float
    total_descent: float
    unit: str


def _load(session: AnalysisSession, messages: DecodedMessageSet, filename: Optional[str]) -> LoadResponse:
    result = session.load(messages, filename=filename)
    if not result.ok:
        raise HTTPException(
            status_code=422,
            detail={"kind": result.error.kind.value, "message": result.error.message},
        )
    return LoadResponse(
        recording_id=session.recording_id,
        filename=filename,
        samples=len(result.series),
        available_metrics=list(result.available_metrics),
        has_summary=session.summary is not None,
    )


@router.post("", response_model=LoadResponse)
async def upload_recording(
    request: Request,
    filename: Optional[str] = None,
    session: AnalysisSession = Depends(get_analysis_session),
):
    """Upload a raw .fit file as the request body; replaces the loaded recording."""
    if filename and not filename.lower().endswith(".fit"):
        raise HTTPException(status_code=400, detail="Invalid file type. Please upload a .FIT file.")
    body = await request.body()
    try:
        messages = read_fit(body)
    except FitDecodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _load(session, messages, filename)


@router.post("/decoded", response_model=LoadResponse)
def load_decoded(
    messages: DecodedMessageSet,
    filename: Optional[str] = None,
    session: AnalysisSession = Depends(get_analysis_session),
):
    """Load an already-decoded message set (records + session summary)."""
    return _load(session, messages, filename)


@router.get("/metrics", response_model=List[MetricResponse])
def list_metrics(
    units: Optional[UnitSystem] = None,
    session: AnalysisSession = Depends(require_recording),
):
    """Selectable chart lines: recorded metrics plus fetched DEM sources."""
    units = resolve_units(units)
    return [
        MetricResponse(
            metric_id=d.metric_id,
            display_name=d.display_name,
            display_field=d.display_field,
            color=d.color,
            unit=unit_label(d, units),
        )
        for d in session.descriptors().values()
    ]


@router.get("/chart")
def chart(
    units: Optional[UnitSystem] = None,
    metrics: Optional[List[str]] = Query(None),
    key: AlignmentKey = AlignmentKey.ELAPSED_TIME,
    session: AnalysisSession = Depends(require_recording),
):
    """Chart rows for the selected metrics (altitude only by default)."""
    try:
        return session.chart_rows(metrics, resolve_units(units), key=key)
    except UnknownMetricError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/summary", response_model=List[SummaryRowResponse])
def summary(
    units: Optional[UnitSystem] = None,
    session: AnalysisSession = Depends(get_analysis_session),
):
    """Device-reported session totals, formatted; empty when the file has none."""
    return [
        SummaryRowResponse(field=r.field, label=r.label, value=r.value)
        for r in session.summary_rows(resolve_units(units))
    ]


@router.get("/climb", response_model=List[ClimbRowResponse])
def climb(
    mode: InterpolationMode = InterpolationMode.LINEAR,
    units: Optional[UnitSystem] = None,
    session: AnalysisSession = Depends(require_recording),
):
    """Total ascent/descent per altitude source under the chosen interpolation."""
    units = resolve_units(units)
    rows = session.climb_table(mode, get_settings().spline_resolution_m)
    return [
        ClimbRowResponse(
            source_id=row.source_id,
            source_name=row.source_name,
            interpolation_mode=row.result.interpolation_mode,
            total_ascent=round(display_length(row.result.total_ascent, units), 1),
            total_descent=round(display_length(row.result.total_descent, units), 1),
            unit=length_label(units),
        )
        for row in rows
    ]
