"""Event handlers consuming scanner output."""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..config.logging import get_logger
from .event_bus import EventBus
from .events import AlertTriggeredEvent, DomainEvent, ScanCycleCompletedEvent

logger = get_logger(__name__)


class EventHandler(ABC):
    """Base class for event handlers."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logger.bind(handler=name)

    @abstractmethod
    async def handle(self, event: DomainEvent):
        """Handle the domain event."""


class AlertNotificationHandler(EventHandler):
    """
    Turns alert events into notifications.

    A trigger identical to the previous one is ignored, so redelivery of the
    same event never notifies twice. Playback is delegated to ``notifier``.
    """

    def __init__(
        self,
        notifier: Optional[Callable[[AlertTriggeredEvent], None]] = None,
        enabled: bool = True,
    ):
        super().__init__("alert_notification_handler")
        self.notifier = notifier
        self.enabled = enabled
        self.notifications_sent = 0
        self._last_trigger_key: Optional[str] = None

    async def handle(self, event: DomainEvent):
        if not isinstance(event, AlertTriggeredEvent) or not self.enabled:
            return

        trigger_key = event.trigger_key()
        if trigger_key == self._last_trigger_key:
            return
        self._last_trigger_key = trigger_key

        self.logger.warning(
            "Band alert",
            symbol=event.symbol,
            alert_type=event.alert_type,
            price=event.current_price,
            proximity_pct=round(event.proximity_percent, 1),
        )
        self.notifications_sent += 1
        if self.notifier is not None:
            self.notifier(event)


class CycleSummaryHandler(EventHandler):
    """Logs a one-line summary of each completed poll cycle."""

    def __init__(self):
        super().__init__("cycle_summary_handler")

    async def handle(self, event: DomainEvent):
        if not isinstance(event, ScanCycleCompletedEvent):
            return

        self.logger.info(
            "Scan cycle summary",
            cycle=event.cycle,
            ok=event.success_count,
            failed=event.failure_count,
            alerts=event.alerts,
            duration_ms=round(event.duration_ms, 1),
        )


def register_default_handlers(
    event_bus: EventBus,
    notifier: Optional[Callable[[AlertTriggeredEvent], None]] = None,
) -> AlertNotificationHandler:
    """Subscribe the standard logging consumers; returns the alert handler."""
    alert_handler = AlertNotificationHandler(notifier=notifier)
    cycle_handler = CycleSummaryHandler()
    event_bus.subscribe(AlertTriggeredEvent, alert_handler.handle)
    event_bus.subscribe(ScanCycleCompletedEvent, cycle_handler.handle)
    return alert_handler
