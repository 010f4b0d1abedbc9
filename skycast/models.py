"""Data model shared by the weather, suggestion and session modules."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ConditionCode(str, Enum):
    CLEAR = "clear"
    FEW_CLOUDS = "few_clouds"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"


class View(str, Enum):
    WELCOME = "welcome"
    SEARCH = "search"
    RESULTS = "results"


class Coordinates(BaseModel):
    """Latitude/longitude pair. Either component may be missing (None)."""

    model_config = ConfigDict(frozen=True)

    latitude: float | None = None
    longitude: float | None = None


class CurrentConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature_c: float
    condition_code: ConditionCode
    condition_label: str
    wind_speed: float = Field(ge=0)


class ForecastEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    temperature_c: float
    condition_code: ConditionCode


class WeatherSnapshot(BaseModel):
    """
    Immutable weather result. A new fetch replaces it wholesale.

    `forecast` is chronological; that order is also the display order.
    """

    model_config = ConfigDict(frozen=True)

    location_label: str
    coordinates: Coordinates
    current: CurrentConditions
    forecast: tuple[ForecastEntry, ...]


class Suggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str


@dataclass
class SessionState:
    """Mutable session record. Only SessionController writes to it."""

    view: View = View.WELCOME
    coordinates: Coordinates = field(default_factory=Coordinates)
    weather: WeatherSnapshot | None = None
    suggestions: list[Suggestion] = field(default_factory=list)
    weather_loading: bool = False
    suggestions_loading: bool = False
    weather_error: Exception | None = None
    suggestions_error: Exception | None = None
