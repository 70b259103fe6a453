"""Command-line interface for ghfolio."""

from .main import main

__all__ = ["main"]
