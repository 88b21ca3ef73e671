from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    dem_request_timeout_s: float = 10.0  # per HTTP request, not per fetch run
    spline_resolution_m: float = 5.0
    default_unit_system: str = "imperial"
    epqs_endpoint: str = "https://epqs.nationalmap.gov/v1/json"
    opentopography_endpoint: str = "https://portal.opentopography.org/API/otElevation"
    opentopography_dem_type: str = "SRTMGL1"
    opentopography_api_key: str = ""
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
