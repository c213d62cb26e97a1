from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CityConfig(BaseModel):
    name: str
    lat: float
    lon: float


_DEFAULT_CITIES = [
    CityConfig(name="Prague", lat=50.08, lon=14.42),
    CityConfig(name="Brno", lat=49.19, lon=16.61),
    CityConfig(name="Plzen", lat=49.75, lon=13.38),
    CityConfig(name="Ostrava", lat=49.83, lon=18.29),
    CityConfig(name="Berlin", lat=52.52, lon=13.40),
    CityConfig(name="Munich", lat=48.14, lon=11.58),
    CityConfig(name="Budapest", lat=47.50, lon=19.04),
    CityConfig(name="Debrecen", lat=47.53, lon=21.63),
]


class Settings(BaseSettings):
    # ── Application ────────────────────────────────────────────────────────────
    app_name: str = "TempCompare API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Front-end bundle served at "/" when set and present on disk
    static_dir: str | None = None

    # ── Database ───────────────────────────────────────────────────────────────
    database_url: str = "postgresql+asyncpg://tempcompare:tempcompare@db:5432/tempcompare"

    # ── Redis / Celery ─────────────────────────────────────────────────────────
    redis_url: str = "redis://redis:6379/0"

    # ── Upstream weather provider ──────────────────────────────────────────────
    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    # Same fixed +01:00 as local_utc_offset_hours so upstream hours and fetch dates agree year-round
    upstream_timezone: str = "Etc/GMT-1"
    past_days: int = 3
    forecast_days: int = 3
    request_timeout_seconds: float = 15.0
    inter_city_delay_seconds: float = 0.5

    # Fetch dates are stamped in this fixed offset, never in UTC wall-clock
    local_utc_offset_hours: int = 1

    # ── Scheduling & retention ─────────────────────────────────────────────────
    fetch_schedule_hours: int = 6
    retention_days: int = 14
    ingest_on_startup: bool = True

    # ── Cities ─────────────────────────────────────────────────────────────────
    cities: list[CityConfig] = _DEFAULT_CITIES

    @field_validator("past_days", "forecast_days")
    @classmethod
    def validate_day_window(cls, v: int) -> int:
        # Open-Meteo rejects windows longer than 16 days
        if not 0 <= v <= 16:
            raise ValueError("past_days / forecast_days must be between 0 and 16")
        return v

    @field_validator("retention_days")
    @classmethod
    def validate_retention(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retention_days must be at least 1")
        return v

    @field_validator("fetch_schedule_hours")
    @classmethod
    def validate_schedule(cls, v: int) -> int:
        if v < 1 or 24 % v != 0:
            raise ValueError("fetch_schedule_hours must divide 24")
        return v

    @field_validator("local_utc_offset_hours")
    @classmethod
    def validate_offset(cls, v: int) -> int:
        if not -12 <= v <= 14:
            raise ValueError("local_utc_offset_hours must be between -12 and 14")
        return v

    @field_validator("cities")
    @classmethod
    def validate_cities(cls, v: list[CityConfig]) -> list[CityConfig]:
        names = [c.name for c in v]
        if len(names) != len(set(names)):
            raise ValueError("city names must be unique")
        return v

    def city_names(self) -> list[str]:
        return [c.name for c in self.cities]

    def find_city(self, name: str) -> CityConfig | None:
        return next((c for c in self.cities if c.name == name), None)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process; overridable as a FastAPI dependency."""
    return Settings()
