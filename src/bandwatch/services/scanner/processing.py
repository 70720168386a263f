"""Turn a provider series into a classified ScanResult."""

from datetime import datetime
from typing import List, Optional

from ...config.symbols import SymbolSpec
from ...core.classifier import AlertStatus, classify
from ...core.indicators import BAND_PERIOD, BAND_SD_MULTIPLIER, volatility_bands
from ...exceptions import InsufficientHistoryError
from ..quotes.models import RawSeries
from .models import ScanResult

MIN_CANDLES = BAND_PERIOD


def error_result(
    spec: SymbolSpec,
    message: str,
    now: datetime,
    current_price: float = 0.0,
    history: Optional[List[float]] = None,
) -> ScanResult:
    """Result carrying a fetch error and neutral sentinel values."""
    return ScanResult(
        symbol=spec.symbol,
        display=spec.display,
        asset_class=spec.asset_class,
        current_price=current_price,
        bands=None,
        status=AlertStatus.OK,
        last_updated=now,
        history=history or [],
        band_position=0.5,
        proximity_percent=0.0,
        fetch_error=message,
    )


def build_scan_result(
    spec: SymbolSpec,
    raw: RawSeries,
    now: datetime,
    history_length: int = 30,
) -> ScanResult:
    """
    Compute bands and status for the latest close.

    Fewer than ``MIN_CANDLES`` usable closes yields an error result even though
    the fetch itself succeeded.
    """
    closes = list(raw.price_series().closes)

    if len(closes) < MIN_CANDLES:
        error = InsufficientHistoryError(len(closes), MIN_CANDLES)
        fallback_price = closes[-1] if closes else raw.regular_market_price
        return error_result(
            spec,
            error.message,
            now,
            current_price=fallback_price or 0.0,
            history=closes[-MIN_CANDLES:],
        )

    current_price = closes[-1]
    bands = volatility_bands(closes, BAND_PERIOD, BAND_SD_MULTIPLIER)
    classification = classify(current_price, bands)

    return ScanResult(
        symbol=spec.symbol,
        display=spec.display,
        asset_class=spec.asset_class,
        current_price=current_price,
        bands=bands,
        status=classification.status,
        last_updated=now,
        history=closes[-history_length:],
        band_position=classification.band_position,
        proximity_percent=classification.proximity_percent,
    )
