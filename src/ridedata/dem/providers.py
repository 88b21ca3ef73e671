"""
DEM provider registry.

Two providers are supported:

  epqs            USGS Elevation Point Query Service (3DEP 1 m, USA only).
                  One point per request; no batching.
  opentopography  OpenTopography global DEM API (SRTM, ALOS, COP30, ...).
                  Up to 100 locations per request.

rate_limit_ms is the pause between consecutive requests of a fetch run. It
exists to stay inside each provider's quota and is not a tuning knob.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from ridedata.config import Settings, get_settings

EPQS = "epqs"
OPENTOPOGRAPHY = "opentopography"


class UnknownProviderError(KeyError):
    """Raised when a fetch is requested for a provider id not in the registry."""

    def __init__(self, provider_id: str):
        super().__init__(provider_id)
        self.provider_id = provider_id

    def __str__(self) -> str:
        return f"Unknown DEM provider: {self.provider_id!r}"


@dataclass(frozen=True)
class DemProviderConfig:
    provider_id: str
    name: str
    endpoint: str
    batch_capable: bool
    max_batch_size: int
    rate_limit_ms: int
    dem_type: Optional[str] = None   # batch providers: dataset code sent as demtype
    api_key: str = ""


def build_providers(settings: Optional[Settings] = None) -> Dict[str, DemProviderConfig]:
    """Build the provider registry from settings (endpoints, dataset, API key)."""
    settings = settings or get_settings()
    return {
        EPQS: DemProviderConfig(
            provider_id=EPQS,
            name="USGS 3DEP (EPQS)",
            endpoint=settings.epqs_endpoint,
            batch_capable=False,
            max_batch_size=1,
            rate_limit_ms=200,
        ),
        OPENTOPOGRAPHY: DemProviderConfig(
            provider_id=OPENTOPOGRAPHY,
            name="OpenTopography",
            endpoint=settings.opentopography_endpoint,
            batch_capable=True,
            max_batch_size=100,
            rate_limit_ms=1000,
            dem_type=settings.opentopography_dem_type,
            api_key=settings.opentopography_api_key,
        ),
    }


def get_provider(provider_id: str, providers: Optional[Dict[str, DemProviderConfig]] = None) -> DemProviderConfig:
    providers = providers if providers is not None else build_providers()
    try:
        return providers[provider_id]
    except KeyError:
        raise UnknownProviderError(provider_id) from None
