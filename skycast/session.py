"""Session controller: the welcome -> search -> results flow around the weather and suggestion services."""

import logging
import threading
from dataclasses import replace

from skycast.config import Settings
from skycast.errors import InvalidCoordinates, InvalidTransition
from skycast.http_client import RetryingHttpClient, RetryPolicy
from skycast.models import Coordinates, SessionState, View
from skycast.suggestions import SuggestionService
from skycast.weather import OpenMeteoWeatherProvider, SimulatedWeatherProvider, WeatherService

logger = logging.getLogger(__name__)


def _parse_axis(value, name: str, limit: float) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinates(f"{name} must be a number, got {value!r}") from None
    if not -limit <= number <= limit:
        raise InvalidCoordinates(f"{name} must be between -{limit:g} and {limit:g}")
    return number


def parse_coordinates(latitude=None, longitude=None) -> Coordinates:
    """
    Build Coordinates from raw user input (numbers or strings).

    Blank or missing values stay None so the weather service can apply its
    defaults. Raises InvalidCoordinates for non-numeric or out-of-range input.
    """
    return Coordinates(
        latitude=_parse_axis(latitude, "latitude", 90),
        longitude=_parse_axis(longitude, "longitude", 180),
    )


class SessionController:
    """
    Owns the session state and is the only thing that mutates it.

    Every weather and suggestion call is tagged with a generation number. A
    result whose generation is no longer current (superseded, or the user went
    back to the welcome view meanwhile) is dropped instead of applied.
    """

    def __init__(self, weather_service: WeatherService, suggestion_service: SuggestionService):
        self.weather_service = weather_service
        self.suggestion_service = suggestion_service
        self._state = SessionState()
        self._lock = threading.Lock()
        self._weather_generation = 0
        self._suggestion_generation = 0

    @property
    def state(self) -> SessionState:
        """A copy of the current state; edits to it do not reach the session."""
        return replace(self._state, suggestions=list(self._state.suggestions))

    def start_search(self) -> None:
        with self._lock:
            self._require(View.WELCOME, "start_search")
            self._move_to(View.SEARCH)

    def submit_coordinates(self, latitude=None, longitude=None) -> bool:
        """
        Fetch weather for the given coordinates and show the results view.

        Returns True when the snapshot was applied. A call made while another
        fetch is in flight is rejected (False, state untouched). On failure the
        session stays on the search view with `weather_error` set.
        """
        state = self._state
        with self._lock:
            self._require(View.SEARCH, "submit_coordinates")
            if state.weather_loading:
                logger.warning("Weather fetch already in flight; submit rejected")
                return False
            try:
                coordinates = parse_coordinates(latitude, longitude)
            except InvalidCoordinates as e:
                state.weather_error = e
                return False

            self._weather_generation += 1
            self._suggestion_generation += 1
            generation = self._weather_generation
            state.coordinates = coordinates
            state.weather = None
            state.suggestions = []
            state.suggestions_loading = False
            state.weather_error = None
            state.weather_loading = True

        snapshot, error = self.weather_service.fetch(coordinates)

        with self._lock:
            if generation != self._weather_generation:
                logger.info("Dropping stale weather result (generation %d)", generation)
                return False
            state.weather_loading = False
            if error is not None:
                state.weather_error = error
                return False
            state.weather = snapshot
            self._move_to(View.RESULTS)
            return True

    def request_suggestions(self) -> bool:
        """
        Replace the suggestion list with a fresh set for the current weather.

        On failure the previous suggestions are kept and `suggestions_error`
        is set. Returns True when a new list was applied.
        """
        state = self._state
        with self._lock:
            self._require(View.RESULTS, "request_suggestions")
            if state.suggestions_loading:
                logger.warning("Suggestion request already in flight; request rejected")
                return False
            self._suggestion_generation += 1
            generation = self._suggestion_generation
            weather = state.weather
            state.suggestions_error = None
            state.suggestions_loading = True

        suggestions, error = self.suggestion_service.generate(weather)

        with self._lock:
            if generation != self._suggestion_generation:
                logger.info("Dropping stale suggestions (generation %d)", generation)
                return False
            state.suggestions_loading = False
            if error is not None:
                state.suggestions_error = error
                return False
            state.suggestions = list(suggestions)
            return True

    def return_to_welcome(self) -> None:
        """Back to the welcome view from anywhere. Weather is kept, suggestions are not."""
        state = self._state
        with self._lock:
            self._weather_generation += 1
            self._suggestion_generation += 1
            state.suggestions = []
            state.weather_loading = False
            state.suggestions_loading = False
            state.weather_error = None
            state.suggestions_error = None
            self._move_to(View.WELCOME)

    def _require(self, view: View, operation: str) -> None:
        if self._state.view is not view:
            raise InvalidTransition(
                f"{operation} is only allowed from {view.value}, not {self._state.view.value}"
            )

    def _move_to(self, view: View) -> None:
        logger.debug("View %s -> %s", self._state.view.value, view.value)
        self._state.view = view


def build_controller(settings: Settings | None = None) -> SessionController:
    """Wire services from settings. Raises ConfigurationError without an API key."""
    settings = settings or Settings.from_env()
    if settings.weather_provider == "openmeteo":
        provider = OpenMeteoWeatherProvider()
    else:
        provider = SimulatedWeatherProvider()
    client = RetryingHttpClient(
        policy=RetryPolicy(
            max_retries=settings.max_retries,
            initial_delay=settings.initial_delay,
            total_timeout=settings.total_timeout,
        ),
        request_timeout=settings.request_timeout,
    )
    suggestion_service = SuggestionService(
        settings.require_api_key(), client, model=settings.model
    )
    return SessionController(WeatherService(provider), suggestion_service)
