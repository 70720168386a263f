"""Poll cycle orchestration across all tracked symbols."""

from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, Iterable, List, Optional

from ...config.logging import cycle_context, get_logger, log_timing
from ...config.settings import Settings, get_settings
from ...config.symbols import SymbolSpec
from ...core.market_hours import is_market_open
from ...events import AlertTriggeredEvent, EventBus, ScanCycleCompletedEvent
from ...exceptions import TransportError
from ..quotes import BatchEntry, QuoteSourceAdapter
from .models import (
    AlertEvent,
    CycleSummary,
    FetchLogEntry,
    ScannerView,
    ScanResult,
    ScanState,
)
from .processing import build_scan_result, error_result

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanOrchestrator:
    """
    Runs poll cycles: fetch every symbol, classify, merge into the snapshot.

    Only one cycle runs at a time; a cycle requested while another is in
    flight returns immediately without touching any state.
    """

    def __init__(
        self,
        symbols: Iterable[SymbolSpec],
        adapter: QuoteSourceAdapter,
        event_bus: Optional[EventBus] = None,
        settings: Optional[Settings] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.symbols: List[SymbolSpec] = list(symbols)
        self.adapter = adapter
        self.event_bus = event_bus
        self.settings = settings or get_settings()
        self._now = now
        self.logger = logger.bind(service="scan_orchestrator")

        self._snapshot: Dict[str, ScanResult] = {}
        self._fetch_logs: Deque[FetchLogEntry] = deque(
            maxlen=self.settings.fetch_log_size
        )
        self._state = ScanState.IDLE
        self._in_flight = False
        self._loading = True

        self.last_alert: Optional[AlertEvent] = None
        self.last_fetch_time: Optional[datetime] = None
        self.next_fetch_time: Optional[datetime] = None
        self.success_count = 0
        self.fail_count = 0
        self.cycles_completed = 0
        self.skipped_cycles = 0

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def run_cycle(self) -> Optional[CycleSummary]:
        """
        Execute one poll cycle.

        Returns:
            The cycle summary, or None if a cycle was already running
        """
        if self._in_flight:
            self.skipped_cycles += 1
            self.logger.info("Scan cycle already in flight, skipping tick")
            return None

        self._in_flight = True
        try:
            with cycle_context(self.cycles_completed + 1):
                return await self._execute_cycle()
        finally:
            self._state = ScanState.IDLE
            self._loading = False
            self._in_flight = False

    async def _execute_cycle(self) -> CycleSummary:
        started_at = self._now()
        cycle = self.cycles_completed + 1
        self._state = ScanState.FETCHING
        self._loading = True
        self.logger.info("Starting scan cycle", symbols=len(self.symbols))

        entries = await self._fetch_all()

        self._state = ScanState.AGGREGATING
        results: Dict[str, ScanResult] = {}
        alerts: List[AlertEvent] = []
        ok = 0
        fail = 0

        for spec in self.symbols:
            result = self._process_symbol(spec, entries.get(spec.provider_key))
            results[spec.symbol] = result

            if result.has_error:
                fail += 1
                self._add_log(spec.symbol, False, result.fetch_error)
                continue

            ok += 1
            self._add_log(
                spec.symbol,
                True,
                f"Price: {spec.format_price(result.current_price)} | "
                f"Proximity: {result.proximity_percent:.0f}%",
            )
            if result.status.is_alert:
                alerts.append(
                    AlertEvent(
                        symbol=spec.symbol,
                        alert_type=result.status,
                        time=result.last_updated,
                    )
                )

        self._snapshot.update(results)
        self.success_count = ok
        self.fail_count = fail
        if alerts:
            self.last_alert = alerts[-1]

        finished_at = self._now()
        self.last_fetch_time = finished_at
        self.next_fetch_time = finished_at + timedelta(
            seconds=self.settings.poll_interval_seconds
        )
        self.cycles_completed = cycle

        summary = CycleSummary(
            cycle=cycle,
            started_at=started_at,
            finished_at=finished_at,
            success_count=ok,
            failure_count=fail,
            results=results,
            alerts=alerts,
        )

        log_timing("scan_cycle", summary.duration_ms, ok=ok, failed=fail)
        await self._publish(summary)
        return summary

    async def _fetch_all(self) -> Dict[str, BatchEntry]:
        keys = [spec.provider_key for spec in self.symbols]
        try:
            return await self.adapter.fetch_batch(keys)
        except Exception as e:
            # Per-key errors are captured by fetch_batch; anything else fails every symbol.
            self.logger.error("Batch fetch failed", error=str(e), exc_info=True)
            message = str(e) or "Network error"
            return {key: _failed_entry(key, message) for key in keys}

    def _process_symbol(
        self, spec: SymbolSpec, entry: Optional[BatchEntry]
    ) -> ScanResult:
        now = self._now()

        if entry is None:
            return error_result(spec, "No chart data", now)
        if entry.error is not None:
            self.logger.warning(
                "Symbol fetch failed", symbol=spec.symbol, error=entry.error.message
            )
            return error_result(spec, entry.error.message or "Network error", now)

        try:
            result = build_scan_result(
                spec, entry.series, now, history_length=self.settings.history_length
            )
        except Exception as e:
            self.logger.error(
                "Failed to process series",
                symbol=spec.symbol,
                error=str(e),
                exc_info=True,
            )
            return error_result(spec, str(e) or "Invalid chart data", now)

        if result.has_error:
            self.logger.warning(
                "Symbol series rejected", symbol=spec.symbol, error=result.fetch_error
            )
        elif result.status.is_alert:
            self.logger.info(
                "Band alert detected",
                symbol=spec.symbol,
                status=result.status.value,
                price=result.current_price,
            )
        return result

    def _add_log(self, symbol: str, ok: bool, message: str) -> None:
        self._fetch_logs.appendleft(
            FetchLogEntry(symbol=symbol, time=self._now(), ok=ok, message=message)
        )

    async def _publish(self, summary: CycleSummary) -> None:
        if self.event_bus is None:
            return

        for alert in summary.alerts:
            result = summary.results[alert.symbol]
            await self.event_bus.publish(
                AlertTriggeredEvent(
                    symbol=alert.symbol,
                    alert_type=alert.alert_type.value,
                    current_price=result.current_price,
                    band_position=result.band_position,
                    proximity_percent=result.proximity_percent,
                    severity=alert.alert_type.severity,
                    timestamp=alert.time,
                )
            )

        await self.event_bus.publish(
            ScanCycleCompletedEvent(
                cycle=summary.cycle,
                success_count=summary.success_count,
                failure_count=summary.failure_count,
                alerts=[f"{a.symbol}:{a.alert_type.value}" for a in summary.alerts],
                duration_ms=summary.duration_ms,
            )
        )

    def get_result(self, symbol: str) -> Optional[ScanResult]:
        return self._snapshot.get(symbol.upper())

    def snapshot(self) -> Dict[str, ScanResult]:
        """Copy of the latest result per symbol."""
        return dict(self._snapshot)

    def fetch_logs(self) -> List[FetchLogEntry]:
        """Fetch log, newest first."""
        return list(self._fetch_logs)

    def is_stale(self) -> bool:
        """True when a cycle has completed but no symbol produced data."""
        if self.cycles_completed == 0:
            return False
        return not any(not r.has_error for r in self._snapshot.values())

    def view(self) -> ScannerView:
        """Everything consumers read, as an immutable-by-convention copy."""
        now = self._now()
        return ScannerView(
            results=self.snapshot(),
            loading=self._loading,
            state=self._state,
            last_alert=self.last_alert,
            fetch_logs=self.fetch_logs(),
            last_fetch_time=self.last_fetch_time,
            next_fetch_time=self.next_fetch_time,
            success_count=self.success_count,
            fail_count=self.fail_count,
            cycles_completed=self.cycles_completed,
            market_open={
                spec.symbol: is_market_open(spec.asset_class, now)
                for spec in self.symbols
            },
        )


def _failed_entry(key: str, message: str) -> BatchEntry:
    return BatchEntry(symbol_key=key, error=TransportError(message, symbol_key=key))
