"""Skycast: weather lookup and activity suggestions behind a three-view session flow."""

from skycast.session import SessionController, build_controller

__all__ = ["SessionController", "build_controller"]
