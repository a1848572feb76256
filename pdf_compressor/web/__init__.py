"""Web front-end: upload page and compression API."""

from .app import create_app

__all__ = ["create_app"]
