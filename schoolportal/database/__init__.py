"""Database module for the school portal."""

from .connection import Database
from .repository import Repository
from .seed import seed_database

__all__ = ["Database", "Repository", "seed_database"]
