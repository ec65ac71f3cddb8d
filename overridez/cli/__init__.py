"""Command-line interface for overridez."""

from .app import app

__all__ = ["app"]
