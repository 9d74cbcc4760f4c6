"""
StoreAdmin - Event Bus
======================
Zdarzenia domenowe warstwy produktów.

Repozytorium publikuje zdarzenie dopiero PO potwierdzeniu operacji przez
bazę/Storage. Odbiorcy (logowanie, odświeżanie widoków) nie mogą przerwać
operacji, która zdarzenie wywołała - ich błędy są tylko logowane.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
import uuid
import logging

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Zdarzenia produktów i ich obrazów"""

    PRODUCT_CREATED = "product.created"
    PRODUCT_UPDATED = "product.updated"
    PRODUCT_DELETED = "product.deleted"
    PRODUCT_IMAGE_UPLOADED = "product.image_uploaded"
    PRODUCT_IMAGE_DELETED = "product.image_deleted"


@dataclass(frozen=True)
class Event:
    """
    Zdarzenie domenowe.

    Attributes:
        type: Typ zdarzenia
        data: Payload (np. product_id, fields, url)
        timestamp: Czas publikacji
        event_id: Unikalny identyfikator
        source: Moduł, który opublikował zdarzenie
    """
    type: EventType
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    source: Optional[str] = None

    @property
    def product_id(self) -> Optional[str]:
        return self.data.get("product_id")

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "type": self.type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source
        }


EventHandler = Callable[[Event], None]
Unsubscribe = Callable[[], bool]


class EventBus:
    """
    Jeden bus na proces (singleton); `EventBus.reset()` w testach.

    Użycie:
        bus = EventBus()
        release = bus.subscribe(EventType.PRODUCT_DELETED, on_deleted)
        ...
        release()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._handlers = {}
            instance._global_handlers = []
            cls._instance = instance
        return cls._instance

    @classmethod
    def reset(cls):
        cls._instance = None

    def subscribe(self, event_type: EventType, handler: EventHandler) -> Unsubscribe:
        """
        Zarejestruj handler dla jednego typu zdarzenia.

        Returns:
            Funkcja wyrejestrowująca handler
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"[EventBus] +handler {event_type.value}")
        return lambda: self.unsubscribe(event_type, handler)

    def subscribe_all(self, handler: EventHandler) -> Unsubscribe:
        """Zarejestruj handler dla wszystkich typów zdarzeń"""
        self._global_handlers.append(handler)
        logger.debug("[EventBus] +global handler")
        return lambda: self._remove(self._global_handlers, handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> bool:
        """False jeśli handler nie był zarejestrowany"""
        removed = self._remove(self._handlers.get(event_type, []), handler)
        if removed:
            logger.debug(f"[EventBus] -handler {event_type.value}")
        return removed

    def publish(self, event: Event) -> int:
        """
        Dostarcz zdarzenie synchronicznie do handlerów typu i globalnych.

        Returns:
            Liczba handlerów, które obsłużyły zdarzenie bez błędu
        """
        logger.debug(f"[EventBus] {event.type.value} ({event.event_id[:8]}) from {event.source}")

        handlers = list(self._handlers.get(event.type, [])) + list(self._global_handlers)
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"[EventBus] Handler failed on {event.type.value}: {e}", exc_info=True)
            else:
                delivered += 1
        return delivered

    def clear(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()

    def get_handler_count(self, event_type: EventType = None) -> int:
        if event_type:
            return len(self._handlers.get(event_type, []))
        return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)

    @staticmethod
    def _remove(handlers: List[EventHandler], handler: EventHandler) -> bool:
        if handler not in handlers:
            return False
        handlers.remove(handler)
        return True


# ============================================================
# Helpers
# ============================================================

def create_event(
    event_type: EventType,
    data: Dict[str, Any],
    source: str = None
) -> Event:
    return Event(type=event_type, data=dict(data), source=source)


def get_event_bus() -> EventBus:
    return EventBus()


def logging_handler(event: Event) -> None:
    """Loguje każde zdarzenie na poziomie INFO"""
    logger.info(f"[EVENT] {event.type.value} | {event.data}")


def setup_event_logging(bus: EventBus = None) -> Unsubscribe:
    """Podłącz logging_handler do wszystkich zdarzeń busa"""
    return (bus or EventBus()).subscribe_all(logging_handler)
