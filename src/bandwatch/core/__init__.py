"""Indicator engine, classifier and session helpers."""

from .classifier import AlertStatus, Classification, classify, classify_status
from .indicators import (
    BAND_PERIOD,
    Bands,
    band_position,
    moving_average,
    proximity_percent,
    volatility_bands,
)
from .market_hours import is_market_open

__all__ = [
    "AlertStatus",
    "BAND_PERIOD",
    "Bands",
    "Classification",
    "band_position",
    "classify",
    "classify_status",
    "is_market_open",
    "moving_average",
    "proximity_percent",
    "volatility_bands",
]
