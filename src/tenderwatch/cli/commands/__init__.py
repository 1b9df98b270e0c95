"""CLI command modules."""

from . import scan, schedule

__all__ = [
    "scan",
    "schedule",
]
