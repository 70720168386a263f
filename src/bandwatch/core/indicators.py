"""Moving average and volatility band calculations.

All functions are pure: they never mutate their input and return the same
output for the same input.
"""

import math
import statistics
from dataclasses import dataclass
from typing import Optional, Sequence

BAND_PERIOD = 20
BAND_SD_MULTIPLIER = 2.0


@dataclass(frozen=True)
class Bands:
    """Volatility bands around a simple moving average."""

    lower: float
    middle: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    @property
    def is_degenerate(self) -> bool:
        """True when the window had zero variance."""
        return self.upper == self.lower

    def to_dict(self) -> dict:
        return {"lower": self.lower, "middle": self.middle, "upper": self.upper}


def moving_average(series: Sequence[float], period: int) -> float:
    """
    Arithmetic mean of the last ``period`` values.

    Returns 0 when the series is shorter than ``period``; callers must check the
    length before treating the result as meaningful.
    """
    if period <= 0 or len(series) < period:
        return 0.0
    return statistics.mean(series[-period:])


def volatility_bands(
    series: Sequence[float],
    period: int = BAND_PERIOD,
    sd_multiplier: float = BAND_SD_MULTIPLIER,
) -> Optional[Bands]:
    """
    Compute bands over the trailing ``period`` window.

    Uses the population standard deviation (variance divided by ``period``).
    Mean and variance are computed exactly, so a window of identical values
    always yields zero-width bands.

    Args:
        series: Close prices, oldest first
        period: Window length
        sd_multiplier: Band distance from the mean in standard deviations

    Returns:
        Bands, or None when the series is shorter than ``period``
    """
    if period <= 0 or len(series) < period:
        return None

    window = series[-period:]
    mean = statistics.mean(window)
    variance = statistics.pvariance(window, mean)
    spread = sd_multiplier * math.sqrt(variance)

    return Bands(lower=mean - spread, middle=mean, upper=mean + spread)


def band_position(price: float, bands: Bands) -> float:
    """
    Normalized position of ``price`` inside the bands.

    0 is the lower band and 1 the upper band; values outside 0..1 mean price is
    outside the bands. Zero-width bands yield exactly 0.5.
    """
    width = bands.upper - bands.lower
    if width == 0:
        return 0.5
    return (price - bands.lower) / width


def proximity_percent(price: float, bands: Bands) -> float:
    """
    Distance from the middle band as a percentage of the half band width.

    100 means price sits on a band edge, above 100 beyond it. Zero-width bands
    yield 0.
    """
    half_range = (bands.upper - bands.lower) / 2
    if half_range == 0:
        return 0.0
    return abs(price - bands.middle) / half_range * 100
