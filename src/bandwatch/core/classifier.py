"""Alert classification of a price against its volatility bands."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .indicators import Bands, band_position, proximity_percent

NEAR_THRESHOLD_RATIO = 0.05


class AlertStatus(Enum):
    """Position of price relative to the bands."""

    OK = "ok"
    NEAR_UPPER = "near-upper"
    NEAR_LOWER = "near-lower"
    ABOVE_UPPER = "above-upper"
    BELOW_LOWER = "below-lower"

    @property
    def severity(self) -> int:
        """Sort weight: breaches 2, proximity 1, neutral 0."""
        if self in (AlertStatus.ABOVE_UPPER, AlertStatus.BELOW_LOWER):
            return 2
        if self in (AlertStatus.NEAR_UPPER, AlertStatus.NEAR_LOWER):
            return 1
        return 0

    @property
    def is_alert(self) -> bool:
        return self is not AlertStatus.OK


@dataclass(frozen=True)
class Classification:
    """Status plus the derived band metrics for one price."""

    status: AlertStatus
    band_position: float
    proximity_percent: float


NEUTRAL_CLASSIFICATION = Classification(
    status=AlertStatus.OK, band_position=0.5, proximity_percent=0.0
)


def classify_status(price: float, bands: Bands) -> AlertStatus:
    """
    Map a price to an alert status.

    Breaches are checked before proximity, so a price exactly on a band edge
    is a breach. The one exception is a price sitting on zero-width bands,
    which is OK; any other price against zero-width bands is a breach.
    """
    if bands.is_degenerate and price == bands.middle:
        return AlertStatus.OK

    threshold = (bands.upper - bands.lower) * NEAR_THRESHOLD_RATIO

    if price >= bands.upper:
        return AlertStatus.ABOVE_UPPER
    if price <= bands.lower:
        return AlertStatus.BELOW_LOWER
    if price >= bands.upper - threshold:
        return AlertStatus.NEAR_UPPER
    if price <= bands.lower + threshold:
        return AlertStatus.NEAR_LOWER
    return AlertStatus.OK


def classify(price: float, bands: Optional[Bands]) -> Classification:
    """Classify ``price``; absent bands give the neutral sentinel values."""
    if bands is None:
        return NEUTRAL_CLASSIFICATION

    return Classification(
        status=classify_status(price, bands),
        band_position=band_position(price, bands),
        proximity_percent=proximity_percent(price, bands),
    )
