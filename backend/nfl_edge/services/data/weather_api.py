"""Weather API client using Open-Meteo (free, no API key required)."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import WeatherContent
from nfl_edge.services.data.http import request_with_retry
from nfl_edge.services.data.venues import Stadium
from nfl_edge.services.features.signals import weather_severity_from_conditions

logger = structlog.get_logger()

SOURCE_NAME = "Open-Meteo"
SOURCE_CONFIDENCE = 0.95


@dataclass
class KickoffWeather:
    """Forecast for the hour of kickoff."""

    temperature: float | None  # Fahrenheit
    windspeed: float | None  # MPH
    precipitation: float | None  # mm

    @property
    def severity(self) -> float:
        return weather_severity_from_conditions(
            self.temperature, self.windspeed, self.precipitation
        )

    def to_content(self, venue: str) -> WeatherContent:
        return WeatherContent(
            temperature=self.temperature,
            windspeed=self.windspeed,
            precipitation=self.precipitation,
            severity=self.severity,
            venue=venue,
        )


def kickoff_hour_key(kickoff: datetime) -> str:
    """Open-Meteo hourly timestamp (UTC) for the hour containing kickoff."""
    return kickoff.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:00")


def indoor_content(venue: str) -> WeatherContent:
    return WeatherContent(severity=0.0, venue=venue, indoor=True)


def parse_kickoff_weather(data: dict[str, Any], kickoff: datetime) -> KickoffWeather | None:
    """Pick the kickoff hour out of an hourly forecast; None when it is outside the forecast."""
    hourly = data.get("hourly", {})
    times = hourly.get("time", [])
    key = kickoff_hour_key(kickoff)
    if key not in times:
        return None
    idx = times.index(key)

    def at(series: str) -> float | None:
        values = hourly.get(series) or []
        return values[idx] if idx < len(values) else None

    return KickoffWeather(
        temperature=at("temperature_2m"),
        windspeed=at("windspeed_10m"),
        precipitation=at("precipitation"),
    )


class WeatherAPIClient:
    """Client for Open-Meteo weather API."""

    BASE_URL = "https://api.open-meteo.com/v1/forecast"

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or default_settings
        self.transport = transport

    async def get_kickoff_weather(
        self, stadium: Stadium, kickoff: datetime
    ) -> KickoffWeather | None:
        """
        Fetch the forecast at a stadium for the hour of kickoff.

        Args:
            stadium: Venue with coordinates
            kickoff: Kickoff time (UTC)

        Returns:
            KickoffWeather, or None if kickoff is outside the forecast range

        Raises:
            FetchError: Open-Meteo could not be reached after retries
        """
        params = {
            "latitude": stadium.latitude,
            "longitude": stadium.longitude,
            "hourly": "temperature_2m,precipitation,windspeed_10m",
            "temperature_unit": "fahrenheit",
            "wind_speed_unit": "mph",
            "timezone": "UTC",
            "forecast_days": 16,
        }

        async with httpx.AsyncClient(
            transport=self.transport, timeout=self.settings.http_timeout_seconds
        ) as client:
            response = await request_with_retry(
                client,
                self.BASE_URL,
                source="weather",
                params=params,
                max_retries=self.settings.http_max_retries,
                retry_delay=self.settings.http_retry_base_delay,
            )

        weather = parse_kickoff_weather(response.json(), kickoff)
        if weather is None:
            logger.info(
                "Kickoff outside forecast range",
                venue=stadium.name,
                kickoff=kickoff.isoformat(),
            )
        return weather
