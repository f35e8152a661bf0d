"""
Logging Infrastructure

Stream handler plus an optional size-rotated log file, configured once per process.
"""

from .setup import configure_logging

__all__ = ["configure_logging"]
