"""Scan orchestration: poll, classify and aggregate results."""

from .models import (
    AlertEvent,
    CycleSummary,
    FetchLogEntry,
    ScannerView,
    ScanResult,
    ScanState,
    sort_results,
)
from .processing import MIN_CANDLES, build_scan_result, error_result
from .service import ScanOrchestrator

__all__ = [
    "AlertEvent",
    "CycleSummary",
    "FetchLogEntry",
    "MIN_CANDLES",
    "ScanOrchestrator",
    "ScanResult",
    "ScanState",
    "ScannerView",
    "build_scan_result",
    "error_result",
    "sort_results",
]
