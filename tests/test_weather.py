import pytest
from pydantic import ValidationError

from skycast.errors import WeatherUnavailable
from skycast.models import ConditionCode, Coordinates, ForecastEntry
from skycast.weather import (
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    OpenMeteoWeatherProvider,
    SimulatedWeatherProvider,
    WeatherService,
    condition_for_wmo,
    resolve_coordinates,
)

SIMULATED_LABELS = ["Aug 5", "Aug 6", "Aug 7", "Aug 8", "Aug 9", "Aug 10"]


@pytest.mark.parametrize(
    "coordinates",
    [None, Coordinates(), Coordinates(latitude=51.5), Coordinates(latitude=-33.9, longitude=18.4)],
)
def test_fetch_always_yields_six_chronological_entries(coordinates):
    service = WeatherService(SimulatedWeatherProvider(latency=0))

    snapshot, error = service.fetch(coordinates)

    assert error is None
    assert [entry.label for entry in snapshot.forecast] == SIMULATED_LABELS


def test_missing_axes_fall_back_to_defaults():
    assert resolve_coordinates(None) == Coordinates(
        latitude=DEFAULT_LATITUDE, longitude=DEFAULT_LONGITUDE
    )
    assert resolve_coordinates(Coordinates(longitude=12.0)) == Coordinates(
        latitude=DEFAULT_LATITUDE, longitude=12.0
    )
    assert resolve_coordinates(Coordinates(latitude=0.0, longitude=0.0)) == Coordinates(
        latitude=0.0, longitude=0.0
    )


def test_snapshot_carries_resolved_coordinates():
    service = WeatherService(SimulatedWeatherProvider(latency=0))

    snapshot, _ = service.fetch(Coordinates(latitude=1.5))

    assert snapshot.coordinates == Coordinates(latitude=1.5, longitude=DEFAULT_LONGITUDE)
    assert snapshot.location_label == "Addis Ababa, ET"
    assert snapshot.current.condition_code is ConditionCode.FEW_CLOUDS


def test_simulated_provider_waits(clock):
    provider = SimulatedWeatherProvider(latency=1.5, sleep=clock.sleep)

    provider.fetch(resolve_coordinates(None))

    assert clock.sleeps == [1.5]


def test_snapshot_is_immutable(snapshot):
    with pytest.raises(ValidationError):
        snapshot.location_label = "Elsewhere"


class _BrokenProvider:
    def fetch(self, coordinates):
        raise ConnectionError("provider down")


class _EmptyProvider:
    def fetch(self, coordinates):
        return None


class _ShortProvider:
    def __init__(self, snapshot):
        self.snapshot = snapshot

    def fetch(self, coordinates):
        return self.snapshot.model_copy(update={"forecast": self.snapshot.forecast[:5]})


def test_provider_failure_is_weather_unavailable():
    snapshot, error = WeatherService(_BrokenProvider()).fetch(None)

    assert snapshot is None
    assert isinstance(error, WeatherUnavailable)
    assert "provider down" in str(error)


def test_missing_snapshot_is_weather_unavailable():
    snapshot, error = WeatherService(_EmptyProvider()).fetch(None)

    assert snapshot is None
    assert isinstance(error, WeatherUnavailable)


def test_partial_forecast_is_rejected(snapshot):
    result, error = WeatherService(_ShortProvider(snapshot)).fetch(None)

    assert result is None
    assert isinstance(error, WeatherUnavailable)


def test_wmo_codes_map_to_conditions():
    assert condition_for_wmo(0) == (ConditionCode.CLEAR, "CLEAR SKY")
    assert condition_for_wmo(2)[0] is ConditionCode.FEW_CLOUDS
    assert condition_for_wmo(45)[0] is ConditionCode.CLOUDY
    assert condition_for_wmo(63)[0] is ConditionCode.RAIN
    assert condition_for_wmo(75)[0] is ConditionCode.SNOW
    with pytest.raises(ValueError):
        condition_for_wmo(42)


# Minimal stand-ins for the openmeteo_requests FlatBuffers response objects


class _Variable:
    def __init__(self, value=None, values=None):
        self._value = value
        self._values = values

    def Value(self):
        return self._value

    def ValuesAsNumpy(self):
        return self._values


class _Block:
    def __init__(self, variables, time=0, time_end=0, interval=0):
        self._variables = variables
        self._time = time
        self._time_end = time_end
        self._interval = interval

    def Variables(self, index):
        return self._variables[index]

    def Time(self):
        return self._time

    def TimeEnd(self):
        return self._time_end

    def Interval(self):
        return self._interval


class _Response:
    def __init__(self, current, daily, utc_offset):
        self._current = current
        self._daily = daily
        self._utc_offset = utc_offset

    def Current(self):
        return self._current

    def Daily(self):
        return self._daily

    def UtcOffsetSeconds(self):
        return self._utc_offset


class _OpenMeteoClient:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def weather_api(self, url, params):
        self.calls.append((url, params))
        return [self.response]


# 2024-08-05 00:00 in UTC+3, expressed as a UTC epoch
_AUG_5_LOCAL_MIDNIGHT = 1722816000 - 3 * 3600
_DAY = 86400


def _openmeteo_response():
    current = _Block([_Variable(18.26), _Variable(2.0), _Variable(7.5)])
    daily = _Block(
        [
            _Variable(values=[20.4, 21.0, 19.5, 18.0, 15.2, 17.8]),
            _Variable(values=[0.0, 2.0, 3.0, 61.0, 71.0, 95.0]),
        ],
        time=_AUG_5_LOCAL_MIDNIGHT,
        time_end=_AUG_5_LOCAL_MIDNIGHT + 6 * _DAY,
        interval=_DAY,
    )
    return _Response(current, daily, utc_offset=3 * 3600)


def test_openmeteo_provider_builds_snapshot():
    client = _OpenMeteoClient(_openmeteo_response())
    service = WeatherService(OpenMeteoWeatherProvider(client=client))

    snapshot, error = service.fetch(Coordinates())

    assert error is None
    assert snapshot.location_label == "8.98°N, 38.76°E"
    assert snapshot.current.temperature_c == pytest.approx(18.3)
    assert snapshot.current.condition_code is ConditionCode.FEW_CLOUDS
    assert snapshot.current.condition_label == "FEW CLOUDS"
    assert snapshot.current.wind_speed == pytest.approx(7.5)
    assert snapshot.forecast == (
        ForecastEntry(label="Aug 5", temperature_c=20.4, condition_code=ConditionCode.CLEAR),
        ForecastEntry(label="Aug 6", temperature_c=21.0, condition_code=ConditionCode.FEW_CLOUDS),
        ForecastEntry(label="Aug 7", temperature_c=19.5, condition_code=ConditionCode.CLOUDY),
        ForecastEntry(label="Aug 8", temperature_c=18.0, condition_code=ConditionCode.RAIN),
        ForecastEntry(label="Aug 9", temperature_c=15.2, condition_code=ConditionCode.SNOW),
        ForecastEntry(label="Aug 10", temperature_c=17.8, condition_code=ConditionCode.RAIN),
    )

    url, params = client.calls[0]
    assert url == OpenMeteoWeatherProvider.url
    assert params["latitude"] == DEFAULT_LATITUDE
    assert params["longitude"] == DEFAULT_LONGITUDE
    assert params["forecast_days"] == 6


def test_openmeteo_unknown_code_is_weather_unavailable():
    response = _openmeteo_response()
    response._current = _Block([_Variable(18.0), _Variable(42.0), _Variable(1.0)])
    service = WeatherService(OpenMeteoWeatherProvider(client=_OpenMeteoClient(response)))

    snapshot, error = service.fetch(None)

    assert snapshot is None
    assert isinstance(error, WeatherUnavailable)
