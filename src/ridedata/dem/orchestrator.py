"""
DemFetchOrchestrator: fetches DEM elevations for the positioned points of a
canonical series and builds a new altitude Series from them.

Flow for a single fetch run:
  1. Resolve the provider and collect points with both latitude and longitude
     (fails fast: UnknownProviderError / NoPositionDataError)
  2. Report progress {0, total}
  3. Issue requests one after another, sleeping rate_limit_ms between them:
       - per-point providers: one request per point
       - batch providers:     one request per max_batch_size points
  4. After every request, report progress (completed advances by the number
     of points that request covered, whether it succeeded or not)
  5. Build the DEM Series from whatever succeeded and classify the outcome

A failed request (ProviderError) is logged and skipped; it never aborts the
run. Requests are never issued in parallel: the pause between them is what
keeps us inside provider quotas.

Each DEM sample copies elapsed time/distance, timestamp and position from the
canonical sample it was fetched for, so SeriesAligner can match them exactly.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from ridedata.analysis.metrics import ALTITUDE
from ridedata.analysis.timeseries import Sample, Series, dem_source_id
from ridedata.dem.client import DemClient, ProviderError
from ridedata.dem.providers import DemProviderConfig, build_providers, get_provider

logger = logging.getLogger(__name__)


class NoPositionDataError(ValueError):
    """Raised when no sample in the series has both latitude and longitude."""


class FetchInProgressError(RuntimeError):
    """Raised when a fetch is started while another run is still active."""


class RunOutcome(str, Enum):
    ALL_SUCCEEDED = "all_succeeded"
    PARTIAL_SUCCESS = "partial_success"
    ALL_FAILED = "all_failed"


@dataclass
class FetchProgress:
    completed: int = 0
    total: int = 0


@dataclass(frozen=True)
class FetchPlan:
    provider: DemProviderConfig
    points: Tuple[Sample, ...]


@dataclass(frozen=True)
class FetchRunResult:
    """Terminal state of one fetch run."""
    run_id: str
    provider_id: str
    provider_name: str
    series: Series
    outcome: RunOutcome
    success_count: int
    total: int
    requests_issued: int

    @property
    def message(self) -> Optional[str]:
        """User-facing text: None on full success, a warning or an error otherwise."""
        if self.outcome == RunOutcome.ALL_SUCCEEDED:
            return None
        if self.outcome == RunOutcome.PARTIAL_SUCCESS:
            return (
                f"{self.provider_name}: elevation found for {self.success_count} "
                f"of {self.total} points."
            )
        return f"{self.provider_name}: no elevation data could be fetched."


ProgressCallback = Callable[[FetchProgress], None]
SleepFn = Callable[[float], Awaitable[None]]


class DemFetchOrchestrator:
    """Runs one DEM fetch at a time against a DemClient."""

    def __init__(
        self,
        client: DemClient,
        providers: Optional[Dict[str, DemProviderConfig]] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """
        Args:
            client: DemClient instance (or AsyncMock in tests).
            providers: Provider registry. Defaults to build_providers().
            sleep: Awaitable used for the rate-limit pause (tests inject a fake).
        """
        self.client = client
        self.providers = providers if providers is not None else build_providers()
        self._sleep = sleep
        self._active_run_id: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._active_run_id is not None

    def plan(self, series: Series, provider_id: str) -> FetchPlan:
        """
        Validate a fetch request without issuing anything.

        Raises:
            UnknownProviderError: provider_id is not in the registry.
            NoPositionDataError: no sample has both latitude and longitude.
        """
        provider = get_provider(provider_id, self.providers)
        points = tuple(s for s in series.samples if s.has_position)
        if not points:
            raise NoPositionDataError(
                "No samples with latitude/longitude; DEM elevation cannot be fetched."
            )
        return FetchPlan(provider=provider, points=points)

    async def fetch(
        self,
        series: Series,
        provider_id: str,
        on_progress: Optional[ProgressCallback] = None,
        run_id: Optional[str] = None,
    ) -> FetchRunResult:
        """
        Fetch DEM elevations for every positioned sample of `series`.

        Args:
            series: The canonical (native) series. Read only.
            provider_id: Key into the provider registry.
            on_progress: Called with a FetchProgress snapshot at the start and
                after every request.
            run_id: Identity for this run; generated when omitted.

        Returns:
            FetchRunResult carrying the (possibly partial) DEM series.

        Raises:
            UnknownProviderError, NoPositionDataError: before any request.
            FetchInProgressError: another run on this orchestrator is active.
        """
        if self._active_run_id is not None:
            raise FetchInProgressError(f"Fetch run {self._active_run_id} is still active")

        plan = self.plan(series, provider_id)
        run_id = run_id or uuid.uuid4().hex
        self._active_run_id = run_id
        try:
            return await self._run(plan, run_id, on_progress)
        finally:
            self._active_run_id = None

    # ─── Internal helpers ─────────────────────────────────────────────────────

    async def _run(
        self,
        plan: FetchPlan,
        run_id: str,
        on_progress: Optional[ProgressCallback],
    ) -> FetchRunResult:
        provider = plan.provider
        progress = FetchProgress(completed=0, total=len(plan.points))

        def report(advance: int) -> None:
            progress.completed = min(progress.total, progress.completed + advance)
            if on_progress is not None:
                on_progress(FetchProgress(progress.completed, progress.total))

        logger.info(
            "DEM fetch %s started: provider=%s points=%d batch=%s",
            run_id, provider.provider_id, progress.total, provider.batch_capable,
        )
        report(0)

        if provider.batch_capable:
            fetched, requests = await self._fetch_batches(provider, plan.points, report)
        else:
            fetched, requests = await self._fetch_points(provider, plan.points, report)

        samples = tuple(
            Sample(
                elapsed_time_ms=src.elapsed_time_ms,
                elapsed_distance_km=src.elapsed_distance_km,
                timestamp=src.timestamp,
                latitude=src.latitude,
                longitude=src.longitude,
                metrics={ALTITUDE: elevation},
            )
            for src, elevation in fetched
        )
        result = FetchRunResult(
            run_id=run_id,
            provider_id=provider.provider_id,
            provider_name=provider.name,
            series=Series(source_id=dem_source_id(provider.provider_id), samples=samples),
            outcome=_classify(len(samples), progress.total),
            success_count=len(samples),
            total=progress.total,
            requests_issued=requests,
        )
        _log_outcome(result)
        return result

    async def _fetch_points(
        self,
        provider: DemProviderConfig,
        points: Tuple[Sample, ...],
        report: Callable[[int], None],
    ) -> Tuple[List[Tuple[Sample, float]], int]:
        fetched: List[Tuple[Sample, float]] = []
        for i, point in enumerate(points):
            if i > 0:
                await self._sleep(provider.rate_limit_ms / 1000)
            try:
                elevation = await self.client.fetch_point(provider, point.latitude, point.longitude)
                fetched.append((point, elevation))
            except ProviderError as exc:
                logger.warning(
                    "Skipping point at %.3f km (%d/%d): %s",
                    point.elapsed_distance_km, i + 1, len(points), exc,
                )
            report(1)
        return fetched, len(points)

    async def _fetch_batches(
        self,
        provider: DemProviderConfig,
        points: Tuple[Sample, ...],
        report: Callable[[int], None],
    ) -> Tuple[List[Tuple[Sample, float]], int]:
        size = max(1, provider.max_batch_size)
        batches = [points[i:i + size] for i in range(0, len(points), size)]
        fetched: List[Tuple[Sample, float]] = []
        for n, batch in enumerate(batches):
            if n > 0:
                await self._sleep(provider.rate_limit_ms / 1000)
            try:
                elevations = await self.client.fetch_batch(
                    provider, [(p.latitude, p.longitude) for p in batch]
                )
            except ProviderError as exc:
                logger.warning(
                    "Skipping batch %d/%d (%d points): %s",
                    n + 1, len(batches), len(batch), exc,
                )
            else:
                missing = 0
                for point, elevation in zip(batch, elevations):
                    if elevation is None:
                        missing += 1
                        continue
                    fetched.append((point, elevation))
                if missing:
                    logger.warning(
                        "Batch %d/%d: no elevation for %d of %d points",
                        n + 1, len(batches), missing, len(batch),
                    )
            report(len(batch))
        return fetched, len(batches)


def _classify(success_count: int, total: int) -> RunOutcome:
    if success_count == 0:
        return RunOutcome.ALL_FAILED
    if success_count < total:
        return RunOutcome.PARTIAL_SUCCESS
    return RunOutcome.ALL_SUCCEEDED


def _log_outcome(result: FetchRunResult) -> None:
    if result.outcome == RunOutcome.ALL_SUCCEEDED:
        logger.info(
            "DEM fetch %s finished: %d/%d points from %s",
            result.run_id, result.success_count, result.total, result.provider_name,
        )
    elif result.outcome == RunOutcome.PARTIAL_SUCCESS:
        logger.warning("DEM fetch %s partial: %s", result.run_id, result.message)
    else:
        logger.error("DEM fetch %s failed: %s", result.run_id, result.message)
