"""Data models for the chart payloads returned by the quote provider."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...exceptions import ParseError, ProviderError, UpstreamError


class ChartMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    symbol: Optional[str] = None
    regular_market_price: Optional[float] = Field(None, alias="regularMarketPrice")


class ChartQuote(BaseModel):
    model_config = ConfigDict(extra="ignore")

    open: List[Optional[float]] = Field(default_factory=list)
    high: List[Optional[float]] = Field(default_factory=list)
    low: List[Optional[float]] = Field(default_factory=list)
    close: Optional[List[Optional[float]]] = None


class ChartIndicators(BaseModel):
    model_config = ConfigDict(extra="ignore")

    quote: List[ChartQuote] = Field(default_factory=list)


class ChartResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meta: ChartMeta = Field(default_factory=ChartMeta)
    timestamp: List[Optional[int]] = Field(default_factory=list)
    indicators: ChartIndicators = Field(default_factory=ChartIndicators)


class ChartErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: Optional[str] = None
    description: Optional[str] = None


class ChartBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: Optional[List[ChartResult]] = None
    error: Optional[ChartErrorEnvelope] = None


class ChartResponse(BaseModel):
    """Top-level chart document: ``{"chart": {"result": [...], "error": ...}}``."""

    model_config = ConfigDict(extra="ignore")

    chart: ChartBody


@dataclass(frozen=True)
class PriceSeries:
    """Usable close prices (oldest first) with their timestamps."""

    closes: Tuple[float, ...]
    timestamps: Tuple[Optional[int], ...]

    def __len__(self) -> int:
        return len(self.closes)

    @property
    def last_close(self) -> Optional[float]:
        return self.closes[-1] if self.closes else None


@dataclass(frozen=True)
class RawSeries:
    """One symbol's OHLC close series as delivered by the provider."""

    symbol_key: str
    regular_market_price: Optional[float]
    timestamps: Tuple[Optional[int], ...]
    closes: Tuple[Optional[float], ...]

    def price_series(self) -> PriceSeries:
        """Drop null and NaN closes, keeping timestamps aligned."""
        closes: List[float] = []
        timestamps: List[Optional[int]] = []
        for index, close in enumerate(self.closes):
            if close is None or math.isnan(close):
                continue
            closes.append(float(close))
            timestamps.append(
                self.timestamps[index] if index < len(self.timestamps) else None
            )
        return PriceSeries(closes=tuple(closes), timestamps=tuple(timestamps))


def validate_chart_payload(payload: Any, symbol_key: str) -> RawSeries:
    """
    Decode a chart document into a RawSeries.

    Raises:
        ProviderError: If the document carries an error envelope
        ParseError: If the document shape is unexpected or holds no closes
    """
    try:
        response = ChartResponse.model_validate(payload)
    except ValidationError as e:
        raise ParseError(
            f"Unexpected chart payload: {e.error_count()} validation errors",
            symbol_key=symbol_key,
        )

    body = response.chart
    if body.error is not None:
        raise ProviderError(
            code=body.error.code,
            description=body.error.description,
            symbol_key=symbol_key,
        )

    if not body.result:
        raise ParseError("No chart data", symbol_key=symbol_key)

    result = body.result[0]
    if not result.indicators.quote or result.indicators.quote[0].close is None:
        raise ParseError("No chart data", symbol_key=symbol_key)

    return RawSeries(
        symbol_key=symbol_key,
        regular_market_price=result.meta.regular_market_price,
        timestamps=tuple(result.timestamp),
        closes=tuple(result.indicators.quote[0].close),
    )


@dataclass
class BatchEntry:
    """Outcome of one key within a batch request."""

    symbol_key: str
    payload: Optional[Dict[str, Any]] = None
    series: Optional[RawSeries] = None
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: the raw payload, or ``{"error": message}``."""
        if self.error is not None:
            return {"error": self.error.message}
        return self.payload or {}
