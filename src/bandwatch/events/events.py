"""Domain events emitted by the scanner."""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DomainEvent(ABC):
    """Base class for all domain events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=_utcnow)
    event_version: str = "1.0"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        result = {
            "event_type": self.__class__.__name__,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
            "event_version": self.event_version,
            "metadata": self.metadata,
        }

        for field_name, field_value in self.__dict__.items():
            if field_name not in ["event_id", "timestamp", "event_version", "metadata"]:
                if isinstance(field_value, datetime):
                    result[field_name] = field_value.isoformat()
                else:
                    result[field_name] = field_value

        return result


@dataclass
class AlertTriggeredEvent(DomainEvent):
    """A symbol's status is outside the neutral zone after a poll."""

    symbol: str = ""
    alert_type: str = ""
    current_price: float = 0.0
    band_position: float = 0.5
    proximity_percent: float = 0.0
    severity: int = 0

    def trigger_key(self) -> str:
        """Identity of the alert as seen by notification consumers."""
        return f"{self.symbol}:{self.alert_type}:{self.timestamp.isoformat()}"


@dataclass
class ScanCycleCompletedEvent(DomainEvent):
    """A poll cycle finished and the snapshot was updated."""

    cycle: int = 0
    success_count: int = 0
    failure_count: int = 0
    alerts: List[str] = field(default_factory=list)
    duration_ms: float = 0.0
