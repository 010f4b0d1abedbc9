import pytest

from skycast.models import Coordinates
from skycast.weather import SimulatedWeatherProvider, resolve_coordinates


@pytest.fixture()
def snapshot():
    return SimulatedWeatherProvider(latency=0).fetch(resolve_coordinates(Coordinates()))


class FakeClock:
    """Clock and sleep in one: sleeping advances the clock instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()
