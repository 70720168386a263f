"""Event-driven delivery of scanner results."""

from .event_bus import EventBus
from .event_handlers import (
    AlertNotificationHandler,
    CycleSummaryHandler,
    EventHandler,
    register_default_handlers,
)
from .events import AlertTriggeredEvent, DomainEvent, ScanCycleCompletedEvent

__all__ = [
    # Events
    "DomainEvent",
    "AlertTriggeredEvent",
    "ScanCycleCompletedEvent",
    # Event Bus
    "EventBus",
    # Event Handlers
    "EventHandler",
    "AlertNotificationHandler",
    "CycleSummaryHandler",
    "register_default_handlers",
]
