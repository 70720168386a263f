"""Quote source adapter: cached, throttled access to the chart provider."""

from .cache import CacheEntry, QuoteCache, RequestThrottle
from .client import QuoteSourceAdapter, parse_symbol_keys
from .models import BatchEntry, PriceSeries, RawSeries, validate_chart_payload

__all__ = [
    "BatchEntry",
    "CacheEntry",
    "PriceSeries",
    "QuoteCache",
    "QuoteSourceAdapter",
    "RawSeries",
    "RequestThrottle",
    "parse_symbol_keys",
    "validate_chart_payload",
]
