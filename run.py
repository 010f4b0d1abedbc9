"""Demo: drive one session through welcome -> search -> results. Loads .env from project root."""

import os
from datetime import datetime

from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env"))

from skycast import build_controller
from skycast.config import Settings, configure_logging


def print_display(state) -> None:
    """Print a results summary (console-style)."""
    weather = state.weather
    print("\n" + "=" * 45)
    print(f"🌤  SKYCAST: {weather.location_label.upper()}")
    print(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    print("-" * 45)
    current = weather.current
    print(f"Now: {current.temperature_c:g}°C, {current.condition_label}, wind {current.wind_speed:.2f}")
    for entry in weather.forecast:
        print(f"  {entry.label:>7}: {entry.temperature_c:g}°C {entry.condition_code.value}")
    if state.suggestions:
        print("-" * 45)
        for suggestion in state.suggestions:
            print(f"• {suggestion.title}: {suggestion.description}")
    print("=" * 45 + "\n")


if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    session = build_controller(settings)

    session.start_search()
    # Blank inputs fall back to the default location
    if session.submit_coordinates(
        os.environ.get("SKYCAST_LATITUDE", ""), os.environ.get("SKYCAST_LONGITUDE", "")
    ):
        if not session.request_suggestions():
            print(f"⚠️ Suggestions unavailable: {session.state.suggestions_error}")
        print_display(session.state)
    else:
        print(f"⚠️ Forecast unavailable: {session.state.weather_error}")
    session.return_to_welcome()
