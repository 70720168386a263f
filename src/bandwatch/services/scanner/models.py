"""Data models for scan results and the consumer-facing view."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ...config.symbols import AssetClass
from ...core.classifier import AlertStatus
from ...core.indicators import Bands


class ScanState(Enum):
    """Phase of the poll cycle state machine."""

    IDLE = "idle"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"


@dataclass
class ScanResult:
    """
    Latest reading for one symbol.

    When ``fetch_error`` is set the status, band position and proximity hold
    neutral sentinels and must not be read as a market classification.
    """

    symbol: str
    display: str
    asset_class: AssetClass
    current_price: float
    bands: Optional[Bands]
    status: AlertStatus
    last_updated: datetime
    history: List[float] = field(default_factory=list)
    band_position: float = 0.5
    proximity_percent: float = 0.0
    fetch_error: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return self.fetch_error is not None

    @property
    def is_alert(self) -> bool:
        return not self.has_error and self.status.is_alert

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "display": self.display,
            "asset_class": self.asset_class.value,
            "current_price": self.current_price,
            "bands": self.bands.to_dict() if self.bands else None,
            "status": self.status.value,
            "has_error": self.has_error,
            "last_updated": self.last_updated.isoformat(),
            "history": list(self.history),
            "band_position": self.band_position,
            "proximity_percent": self.proximity_percent,
            "fetch_error": self.fetch_error,
        }


@dataclass(frozen=True)
class FetchLogEntry:
    """Diagnostic record of one symbol fetch."""

    symbol: str
    time: datetime
    ok: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "time": self.time.isoformat(),
            "ok": self.ok,
            "message": self.message,
        }


@dataclass(frozen=True)
class AlertEvent:
    """A symbol entered a non-neutral status during a poll."""

    symbol: str
    alert_type: AlertStatus
    time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "type": self.alert_type.value,
            "time": self.time.isoformat(),
        }


@dataclass
class CycleSummary:
    """Outcome of one completed poll cycle."""

    cycle: int
    started_at: datetime
    finished_at: datetime
    success_count: int
    failure_count: int
    results: Dict[str, ScanResult] = field(default_factory=dict)
    alerts: List[AlertEvent] = field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        return (self.finished_at - self.started_at).total_seconds() * 1000


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class ScannerView:
    """Read-only snapshot of everything consumers display."""

    results: Dict[str, ScanResult]
    loading: bool
    state: ScanState
    last_alert: Optional[AlertEvent]
    fetch_logs: List[FetchLogEntry]
    last_fetch_time: Optional[datetime]
    next_fetch_time: Optional[datetime]
    success_count: int
    fail_count: int
    cycles_completed: int
    market_open: Dict[str, bool] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return any(not result.has_error for result in self.results.values())

    def sorted_results(self) -> List[ScanResult]:
        return sort_results(self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": {s: r.to_dict() for s, r in self.results.items()},
            "loading": self.loading,
            "state": self.state.value,
            "last_alert": self.last_alert.to_dict() if self.last_alert else None,
            "fetch_logs": [entry.to_dict() for entry in self.fetch_logs],
            "last_fetch_time": _iso(self.last_fetch_time),
            "next_fetch_time": _iso(self.next_fetch_time),
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "cycles_completed": self.cycles_completed,
            "has_data": self.has_data,
            "market_open": dict(self.market_open),
        }


def sort_results(results) -> List[ScanResult]:
    """Alerts first (breaches before proximity), then by ticker."""
    return sorted(
        results,
        key=lambda r: (-(0 if r.has_error else r.status.severity), r.symbol),
    )
