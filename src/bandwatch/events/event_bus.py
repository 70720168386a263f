"""Event bus for dispatching scanner events to consumers."""

import inspect
import time
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Type

from ..config.logging import get_logger
from .events import DomainEvent

logger = get_logger(__name__)

Handler = Callable[[DomainEvent], Any]


class EventBus:
    """Publish/subscribe hub for domain events."""

    def __init__(self, name: str = "default", max_history_size: int = 200):
        self.name = name
        self.logger = logger.bind(event_bus=name)

        # event_type -> handlers, in subscription order
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = defaultdict(list)

        self._event_history: Deque[Dict[str, Any]] = deque(maxlen=max_history_size)

        self._stats = {
            "events_published": 0,
            "handlers_executed": 0,
            "errors_count": 0,
            "last_event_time": None,
        }

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        """
        Subscribe a handler to an event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Handler function (sync or async)
        """
        self._handlers[event_type].append(handler)

        self.logger.debug(
            "Event handler subscribed",
            event_type=event_type.__name__,
            handler=getattr(handler, "__name__", repr(handler)),
            total_handlers=len(self._handlers[event_type]),
        )

    def unsubscribe(self, event_type: Type[DomainEvent], handler: Handler) -> bool:
        """
        Unsubscribe a handler from an event type.

        Returns:
            True if handler was found and removed
        """
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)
            return True
        return False

    async def publish(self, event: DomainEvent) -> Dict[str, Any]:
        """
        Deliver an event to every subscribed handler, in subscription order.

        Handler failures are logged and counted; they never propagate to the
        publisher.

        Returns:
            Dictionary with publication results
        """
        started = time.perf_counter()
        event_type = type(event)

        self._stats["events_published"] += 1
        self._stats["last_event_time"] = datetime.now(timezone.utc)
        self._event_history.append(
            {
                "event_type": event_type.__name__,
                "event_id": event.event_id,
                "timestamp": event.timestamp.isoformat(),
            }
        )

        handlers = list(self._handlers.get(event_type, []))
        successful = 0
        failed = 0

        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
                successful += 1
            except Exception as e:
                failed += 1
                self._stats["errors_count"] += 1
                self.logger.error(
                    "Handler execution failed",
                    event_type=event_type.__name__,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(e),
                    exc_info=True,
                )

        self._stats["handlers_executed"] += len(handlers)

        return {
            "event_id": event.event_id,
            "handlers_executed": len(handlers),
            "successful_handlers": successful,
            "failed_handlers": failed,
            "execution_time_ms": (time.perf_counter() - started) * 1000,
        }

    def get_statistics(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        return {
            **self._stats,
            "registered_event_types": len(self._handlers),
            "total_handlers": sum(len(h) for h in self._handlers.values()),
            "history_size": len(self._event_history),
        }

    def get_event_history(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Get recent event history, oldest first."""
        return list(self._event_history)[-limit:]

