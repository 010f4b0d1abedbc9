"""Resolve a weather snapshot for coordinates, from simulated data or the Open-Meteo forecast API."""

import logging
import time
from typing import Callable, Protocol

import pandas as pd

from skycast.errors import ClientError, WeatherUnavailable
from skycast.http_client import openmeteo_client
from skycast.models import (
    ConditionCode,
    Coordinates,
    CurrentConditions,
    ForecastEntry,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

# Addis Ababa
DEFAULT_LATITUDE = 8.9806
DEFAULT_LONGITUDE = 38.7578
FORECAST_DAYS = 6

# WMO weather interpretation codes -> (condition, label)
WMO_CONDITIONS = {
    0: (ConditionCode.CLEAR, "CLEAR SKY"),
    1: (ConditionCode.FEW_CLOUDS, "MAINLY CLEAR"),
    2: (ConditionCode.FEW_CLOUDS, "FEW CLOUDS"),
    3: (ConditionCode.CLOUDY, "OVERCAST"),
    45: (ConditionCode.CLOUDY, "FOG"),
    48: (ConditionCode.CLOUDY, "RIME FOG"),
    51: (ConditionCode.RAIN, "LIGHT DRIZZLE"),
    53: (ConditionCode.RAIN, "DRIZZLE"),
    55: (ConditionCode.RAIN, "DENSE DRIZZLE"),
    56: (ConditionCode.RAIN, "FREEZING DRIZZLE"),
    57: (ConditionCode.RAIN, "FREEZING DRIZZLE"),
    61: (ConditionCode.RAIN, "LIGHT RAIN"),
    63: (ConditionCode.RAIN, "RAIN"),
    65: (ConditionCode.RAIN, "HEAVY RAIN"),
    66: (ConditionCode.RAIN, "FREEZING RAIN"),
    67: (ConditionCode.RAIN, "FREEZING RAIN"),
    71: (ConditionCode.SNOW, "LIGHT SNOW"),
    73: (ConditionCode.SNOW, "SNOW"),
    75: (ConditionCode.SNOW, "HEAVY SNOW"),
    77: (ConditionCode.SNOW, "SNOW GRAINS"),
    80: (ConditionCode.RAIN, "RAIN SHOWERS"),
    81: (ConditionCode.RAIN, "RAIN SHOWERS"),
    82: (ConditionCode.RAIN, "VIOLENT RAIN SHOWERS"),
    85: (ConditionCode.SNOW, "SNOW SHOWERS"),
    86: (ConditionCode.SNOW, "HEAVY SNOW SHOWERS"),
    95: (ConditionCode.RAIN, "THUNDERSTORM"),
    96: (ConditionCode.RAIN, "THUNDERSTORM WITH HAIL"),
    99: (ConditionCode.RAIN, "THUNDERSTORM WITH HAIL"),
}


def resolve_coordinates(coordinates: Coordinates | None) -> Coordinates:
    """Fill each missing axis with the default location's value."""
    coordinates = coordinates or Coordinates()
    return Coordinates(
        latitude=(
            coordinates.latitude if coordinates.latitude is not None else DEFAULT_LATITUDE
        ),
        longitude=(
            coordinates.longitude if coordinates.longitude is not None else DEFAULT_LONGITUDE
        ),
    )


def condition_for_wmo(code: int) -> tuple[ConditionCode, str]:
    try:
        return WMO_CONDITIONS[code]
    except KeyError:
        raise ValueError(f"Unknown WMO weather code {code}") from None


class WeatherProvider(Protocol):
    def fetch(self, coordinates: Coordinates) -> WeatherSnapshot: ...


class SimulatedWeatherProvider:
    """Fixed record behind a fixed delay. Stands in for a real provider in the prototype."""

    def __init__(self, latency: float = 1.5, sleep: Callable[[float], None] = time.sleep):
        self.latency = latency
        self._sleep = sleep

    def fetch(self, coordinates: Coordinates) -> WeatherSnapshot:
        if self.latency:
            self._sleep(self.latency)
        days = [
            ("Aug 5", 14, ConditionCode.FEW_CLOUDS),
            ("Aug 6", 15, ConditionCode.RAIN),
            ("Aug 7", 17, ConditionCode.CLEAR),
            ("Aug 8", 12, ConditionCode.RAIN),
            ("Aug 9", 14, ConditionCode.FEW_CLOUDS),
            ("Aug 10", 16, ConditionCode.FEW_CLOUDS),
        ]
        return WeatherSnapshot(
            location_label="Addis Ababa, ET",
            coordinates=coordinates,
            current=CurrentConditions(
                temperature_c=14,
                condition_code=ConditionCode.FEW_CLOUDS,
                condition_label="FEW CLOUDS",
                wind_speed=100.0,
            ),
            forecast=tuple(
                ForecastEntry(label=label, temperature_c=temp, condition_code=code)
                for label, temp, code in days
            ),
        )


class OpenMeteoWeatherProvider:
    """Current conditions plus a 6-day daily forecast from Open-Meteo."""

    url = "https://api.open-meteo.com/v1/forecast"

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = openmeteo_client()
        return self._client

    def fetch(self, coordinates: Coordinates) -> WeatherSnapshot:
        lat, lon = coordinates.latitude, coordinates.longitude
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": ["temperature_2m", "weather_code", "wind_speed_10m"],
            "daily": ["temperature_2m_max", "weather_code"],
            "forecast_days": FORECAST_DAYS,
            "timezone": "auto",
        }
        responses = self.client.weather_api(self.url, params=params)
        response = responses[0]

        current = response.Current()
        code, label = condition_for_wmo(int(current.Variables(1).Value()))
        conditions = CurrentConditions(
            temperature_c=round(float(current.Variables(0).Value()), 1),
            condition_code=code,
            condition_label=label,
            wind_speed=round(float(current.Variables(2).Value()), 2),
        )

        # Daily timestamps are UTC; shift to local so labels name the local day.
        offset = response.UtcOffsetSeconds()
        daily = response.Daily()
        df = pd.DataFrame(
            {
                "date": pd.date_range(
                    start=pd.to_datetime(daily.Time() + offset, unit="s"),
                    end=pd.to_datetime(daily.TimeEnd() + offset, unit="s"),
                    freq=pd.Timedelta(seconds=daily.Interval()),
                    inclusive="left",
                ),
                "temperature_2m_max": daily.Variables(0).ValuesAsNumpy(),
                "weather_code": daily.Variables(1).ValuesAsNumpy(),
            }
        )
        forecast = tuple(
            ForecastEntry(
                label=f"{row.date:%b} {row.date.day}",
                temperature_c=round(float(row.temperature_2m_max), 1),
                condition_code=condition_for_wmo(int(row.weather_code))[0],
            )
            for row in df.itertuples(index=False)
        )

        return WeatherSnapshot(
            location_label=f"{lat:.2f}°N, {lon:.2f}°E",
            coordinates=coordinates,
            current=conditions,
            forecast=forecast,
        )


class WeatherService:
    """Turns provider lookups into `(snapshot, error)` results. Never raises."""

    def __init__(self, provider: WeatherProvider | None = None):
        self.provider = provider or SimulatedWeatherProvider()

    def fetch(
        self, coordinates: Coordinates | None = None
    ) -> tuple[WeatherSnapshot | None, ClientError | None]:
        resolved = resolve_coordinates(coordinates)
        try:
            snapshot = self.provider.fetch(resolved)
        except Exception as e:
            logger.error("Weather lookup for %s failed: %s", resolved, e)
            return None, WeatherUnavailable(str(e))

        if not isinstance(snapshot, WeatherSnapshot):
            logger.error("Weather provider returned %s, not a snapshot", type(snapshot).__name__)
            return None, WeatherUnavailable("Provider returned no snapshot")
        if len(snapshot.forecast) != FORECAST_DAYS:
            logger.error(
                "Weather provider returned %d forecast entries, expected %d",
                len(snapshot.forecast),
                FORECAST_DAYS,
            )
            return None, WeatherUnavailable("Incomplete forecast")
        return snapshot, None
