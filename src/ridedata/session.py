"""
AnalysisSession: the state of one loaded recording.

Owns everything that changes while a user works with a file: the canonical
series, the session summary, fetched DEM series and the latest fetch run.
One instance lives in the API app state (or in a CLI invocation) and is
passed to whoever needs it; nothing here is a module-level singleton.

Run lifecycle:
  1. begin_fetch()  validates the request, claims the single run slot and
                    returns a FetchRunState tagged with the current recording id
  2. run_fetch()    awaits the orchestrator, updating progress as it goes
  3. On completion the DEM series is published only if the run's recording is
     still the loaded one; results of a run started for a replaced file are
     dropped. A refetch for the same provider replaces the old series.
"""
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ridedata.analysis.aligner import AlignmentKey
from ridedata.analysis.chart import DEFAULT_SELECTION, build_chart_rows, chart_descriptors
from ridedata.analysis.climb import ClimbResult, InterpolationMode, compute_climb
from ridedata.analysis.metrics import MetricDescriptor
from ridedata.analysis.summary import SummaryRow, project_summary
from ridedata.analysis.timeseries import NATIVE_SOURCE, Series
from ridedata.analysis.units import UnitSystem
from ridedata.dem.orchestrator import (
    DemFetchOrchestrator,
    FetchInProgressError,
    FetchProgress,
    FetchRunResult,
    RunOutcome,
)
from ridedata.ingest.decoded import DecodedMessageSet, RawSessionRecord
from ridedata.ingest.normalizer import NormalizationResult, normalize_records

logger = logging.getLogger(__name__)

NATIVE_SOURCE_NAME = "FIT file"


class NoRecordingError(RuntimeError):
    """Raised when an operation needs a loaded recording and there is none."""


class RunStatus(str, Enum):
    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"


@dataclass
class FetchRunState:
    run_id: str
    provider_id: str
    recording_id: str
    progress: FetchProgress
    status: RunStatus = RunStatus.RUNNING
    outcome: Optional[RunOutcome] = None
    message: Optional[str] = None


@dataclass
class ClimbRow:
    source_id: str
    source_name: str
    result: ClimbResult


@dataclass
class AnalysisSession:
    recording_id: Optional[str] = None
    filename: Optional[str] = None
    series: Optional[Series] = None
    available_metrics: Sequence[str] = ()
    summary: Optional[RawSessionRecord] = None
    dem_series: Dict[str, Series] = field(default_factory=dict)
    dem_names: Dict[str, str] = field(default_factory=dict)
    run: Optional[FetchRunState] = None

    # ─── Loading ──────────────────────────────────────────────────────────────

    def load(self, messages: DecodedMessageSet, filename: Optional[str] = None) -> NormalizationResult:
        """
        Replace the current recording with `messages`.

        Everything derived from the previous file is cleared first, so a
        failed load leaves an empty session rather than stale data. A fetch
        run still in flight keeps its slot but its result will be discarded.
        """
        self.recording_id = uuid.uuid4().hex
        self.filename = filename
        self.series = None
        self.available_metrics = ()
        self.summary = messages.session_summary
        self.dem_series = {}
        self.dem_names = {}
        if self.run is not None and self.run.status != RunStatus.RUNNING:
            self.run = None

        result = normalize_records(messages)
        if not result.ok:
            logger.warning("Recording %s unusable: %s", filename or "<upload>", result.error.message)
            return result

        self.series = result.series
        self.available_metrics = result.available_metrics
        logger.info(
            "Loaded %s: %d samples, metrics=%s",
            filename or "<upload>", len(result.series), ",".join(result.available_metrics),
        )
        return result

    def require_series(self) -> Series:
        if self.series is None:
            raise NoRecordingError("No recording loaded")
        return self.series

    # ─── DEM fetch ────────────────────────────────────────────────────────────

    @property
    def fetch_active(self) -> bool:
        return self.run is not None and self.run.status == RunStatus.RUNNING

    def begin_fetch(self, provider_id: str, orchestrator: DemFetchOrchestrator) -> FetchRunState:
        """
        Validate a fetch and claim the run slot.

        Raises:
            NoRecordingError: nothing loaded.
            FetchInProgressError: a run is already active.
            UnknownProviderError, NoPositionDataError: from orchestrator.plan().
        """
        series = self.require_series()
        if self.fetch_active or orchestrator.is_running:
            raise FetchInProgressError("A DEM fetch is already running")
        plan = orchestrator.plan(series, provider_id)
        self.run = FetchRunState(
            run_id=uuid.uuid4().hex,
            provider_id=provider_id,
            recording_id=self.recording_id,
            progress=FetchProgress(0, len(plan.points)),
        )
        return self.run

    async def run_fetch(self, orchestrator: DemFetchOrchestrator, run: FetchRunState) -> Optional[FetchRunResult]:
        """Execute a claimed run; returns None if it errored."""
        series = self.require_series()

        def on_progress(progress: FetchProgress) -> None:
            run.progress = progress

        try:
            result = await orchestrator.fetch(
                series, run.provider_id, on_progress=on_progress, run_id=run.run_id
            )
        except Exception as exc:
            logger.error("DEM fetch %s crashed: %s", run.run_id, exc)
            run.status = RunStatus.ERROR
            run.message = str(exc)
            return None

        run.status = RunStatus.FINISHED
        run.outcome = result.outcome
        run.message = result.message
        self._publish(run, result)
        return result

    async def fetch_dem(self, provider_id: str, orchestrator: DemFetchOrchestrator) -> Optional[FetchRunResult]:
        """begin_fetch + run_fetch in one call (CLI use)."""
        run = self.begin_fetch(provider_id, orchestrator)
        return await self.run_fetch(orchestrator, run)

    def _publish(self, run: FetchRunState, result: FetchRunResult) -> None:
        if run.recording_id != self.recording_id:
            logger.info("Discarding DEM run %s: recording was replaced", run.run_id)
            return
        source_id = result.series.source_id
        if result.success_count == 0:
            # nothing to chart; drop any previous series for this provider too
            self.dem_series.pop(source_id, None)
            self.dem_names.pop(source_id, None)
            return
        self.dem_series[source_id] = result.series
        self.dem_names[source_id] = result.provider_name

    # ─── Views ────────────────────────────────────────────────────────────────

    def descriptors(self) -> Dict[str, MetricDescriptor]:
        return chart_descriptors(self.available_metrics, self.dem_names)

    def chart_rows(
        self,
        selected: Optional[Sequence[str]] = None,
        units: UnitSystem = UnitSystem.IMPERIAL,
        key: AlignmentKey = AlignmentKey.ELAPSED_TIME,
    ) -> List[Dict[str, Any]]:
        series = self.require_series()
        descriptors = self.descriptors()
        if not selected:
            # the default only names lines this recording can draw
            selected = [m for m in DEFAULT_SELECTION if m in descriptors]
        return build_chart_rows(
            series,
            list(selected),
            units,
            descriptors,
            dem_series=self.dem_series,
            key=key,
        )

    def climb_table(
        self,
        mode: InterpolationMode = InterpolationMode.LINEAR,
        resolution_m: Optional[float] = None,
    ) -> List[ClimbRow]:
        """One row per altitude source: the native recording, then each DEM series."""
        series = self.require_series()
        rows = [ClimbRow(NATIVE_SOURCE, NATIVE_SOURCE_NAME, compute_climb(series, mode, resolution_m))]
        for source_id, dem in self.dem_series.items():
            rows.append(ClimbRow(source_id, self.dem_names[source_id], compute_climb(dem, mode, resolution_m)))
        return rows

    def summary_rows(self, units: UnitSystem = UnitSystem.IMPERIAL) -> List[SummaryRow]:
        return project_summary(self.summary, units)
