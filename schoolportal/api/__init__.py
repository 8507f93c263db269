"""HTTP surface of the school portal."""

from .app import create_app

__all__ = ["create_app"]
