"""Command-line interface for the meshhttp transport."""

from meshhttp import __version__

__all__ = ["__version__"]
