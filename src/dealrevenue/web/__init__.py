"""JSON web API for deal revenue schedules."""

from .app import create_app

__all__ = ["create_app"]
