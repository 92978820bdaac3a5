"""Command-line interface for objectmap."""

from .main import main

__all__ = ["main"]
