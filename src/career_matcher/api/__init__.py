"""API package for Career Matcher."""

from .main import app, create_app

__all__ = ["app", "create_app"]
