"""Open-Meteo hourly temperature fetcher.

Requests a window of past and future hours for one city and returns the
readings as local (target_date, hour, temperature) triples. The upstream is
treated as unreliable: any transport failure raises ``TransportError`` and any
payload without usable hourly arrays raises ``ParseError``.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime

import httpx

from tempcompare.config import CityConfig, Settings
from tempcompare.exceptions import ParseError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HourlyReading:
    target_date: date
    hour: int
    temperature: float


def parse_hourly_payload(payload: object) -> list[HourlyReading]:
    """Convert an Open-Meteo response body into hourly readings.

    Entries with a null temperature or an unparseable timestamp are skipped.
    If ``time`` and ``temperature_2m`` differ in length, the extra tail is
    dropped. Raises ``ParseError`` when the hourly arrays are missing.
    """
    if not isinstance(payload, dict):
        raise ParseError("Response body is not a JSON object")

    hourly = payload.get("hourly")
    if not isinstance(hourly, dict):
        raise ParseError("No hourly data in response")

    times = hourly.get("time")
    temps = hourly.get("temperature_2m")
    if not isinstance(times, list) or not isinstance(temps, list):
        raise ParseError("Hourly response is missing time or temperature_2m arrays")

    if len(times) != len(temps):
        logger.warning(
            "Open-Meteo returned %d timestamps but %d temperatures; truncating",
            len(times),
            len(temps),
        )

    readings: list[HourlyReading] = []
    skipped = 0
    for ts, temp in zip(times, temps):
        if (
            temp is None
            or isinstance(temp, bool)
            or not isinstance(temp, (int, float))
            or not math.isfinite(temp)
        ):
            skipped += 1
            continue
        try:
            local = datetime.fromisoformat(ts)
        except (TypeError, ValueError):
            skipped += 1
            continue
        readings.append(HourlyReading(local.date(), local.hour, float(temp)))

    if skipped:
        logger.debug("Skipped %d unusable hourly entries", skipped)
    return readings


class OpenMeteoClient:
    """Async client for the Open-Meteo forecast endpoint."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        # Tests inject an httpx.MockTransport here
        self._transport = transport

    def _params(self, city: CityConfig) -> dict:
        return {
            "latitude": city.lat,
            "longitude": city.lon,
            "hourly": "temperature_2m",
            "past_days": self._settings.past_days,
            "forecast_days": self._settings.forecast_days,
            "timezone": self._settings.upstream_timezone,
        }

    async def fetch_hourly(self, city: CityConfig) -> list[HourlyReading]:
        logger.info("Fetching Open-Meteo temperatures: city=%s", city.name)
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.get(self._settings.weather_api_url, params=self._params(city))
                resp.raise_for_status()
                payload = resp.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"Open-Meteo request failed for {city.name}: {exc}") from exc
        except ValueError as exc:
            raise ParseError(f"Open-Meteo returned invalid JSON for {city.name}") from exc

        return parse_hourly_payload(payload)
