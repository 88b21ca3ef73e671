"""
Async HTTP client for DEM elevation providers.

Thin wrapper over httpx.AsyncClient. Each method issues exactly one HTTP
request and either returns elevations in meters or raises ProviderError.
Retrying, pacing and failure accounting belong to the orchestrator.

Every request carries a timeout (settings.dem_request_timeout_s) so a stalled
provider fails that request instead of hanging a fetch run.
"""
import math
from typing import Any, List, Optional, Sequence, Tuple

import httpx

from ridedata.config import get_settings
from ridedata.dem.providers import DemProviderConfig

# EPQS answers this value for points outside 3DEP coverage
EPQS_NO_DATA = -1000000


class ProviderError(Exception):
    """One DEM request failed: network, HTTP status, malformed body or no data."""

    def __init__(self, provider_id: str, message: str):
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id


def _as_elevation(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


class DemClient:
    """
    Usage:
        async with DemClient() as client:
            meters = await client.fetch_point(provider, lat, lon)
    """

    def __init__(
        self,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            timeout_s: Per-request timeout. Defaults to settings.dem_request_timeout_s.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        if timeout_s is None:
            timeout_s = get_settings().dem_request_timeout_s
        self._http = httpx.AsyncClient(timeout=httpx.Timeout(timeout_s), transport=transport)

    async def __aenter__(self) -> "DemClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(self, provider: DemProviderConfig, params: dict) -> Any:
        try:
            resp = await self._http.get(provider.endpoint, params=params)
        except httpx.HTTPError as exc:
            raise ProviderError(provider.provider_id, f"request failed: {exc!r}") from exc
        if resp.status_code != 200:
            raise ProviderError(provider.provider_id, f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError(provider.provider_id, "response body is not JSON") from exc

    async def fetch_point(self, provider: DemProviderConfig, lat: float, lon: float) -> float:
        """
        Query a single-point provider (USGS EPQS).

        Returns:
            Elevation in meters.

        Raises:
            ProviderError: on any failure, including the no-data sentinel.
        """
        body = await self._get_json(provider, {
            "x": lon,
            "y": lat,
            "units": "Meters",
            "wkid": 4326,
            "output": "json",
        })
        value = _as_elevation(body.get("value")) if isinstance(body, dict) else None
        if value is None or value == EPQS_NO_DATA:
            raise ProviderError(provider.provider_id, f"no data at ({lat:.6f}, {lon:.6f})")
        return value

    async def fetch_batch(
        self,
        provider: DemProviderConfig,
        points: Sequence[Tuple[float, float]],
    ) -> List[Optional[float]]:
        """
        Query a batch provider (OpenTopography) for up to max_batch_size points.

        Args:
            points: (lat, lon) pairs.

        Returns:
            One entry per requested point, in request order; None where the
            provider had no elevation for that point.

        Raises:
            ProviderError: when the whole batch failed (network, HTTP status,
                non-OK status, malformed or mis-sized results).
        """
        params = {
            "locations": "|".join(f"{lat},{lon}" for lat, lon in points),
            "demtype": provider.dem_type or "",
            "output": "json",
        }
        if provider.api_key:
            params["API_Key"] = provider.api_key

        body = await self._get_json(provider, params)
        if not isinstance(body, dict):
            raise ProviderError(provider.provider_id, "unexpected response shape")
        if body.get("status") != "OK":
            detail = body.get("error") or body.get("status")
            raise ProviderError(provider.provider_id, f"batch status {detail!r}")

        results = body.get("results")
        if not isinstance(results, list) or len(results) != len(points):
            raise ProviderError(
                provider.provider_id,
                f"expected {len(points)} results, got {len(results) if isinstance(results, list) else 'none'}",
            )
        return [
            _as_elevation(r.get("elevation")) if isinstance(r, dict) else None
            for r in results
        ]
