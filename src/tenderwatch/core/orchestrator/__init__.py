"""Orchestrator - scan runner and observable scan state."""

from .runner import ScanResult, ScanRunner, build_runner, run_scan
from .state import ScanEvent, ScanState

__all__ = [
    "ScanRunner",
    "ScanResult",
    "ScanState",
    "ScanEvent",
    "build_runner",
    "run_scan",
]
