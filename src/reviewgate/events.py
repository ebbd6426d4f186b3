"""Typed publish/subscribe channel for pipeline lifecycle events."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping

from reviewgate.models import utcnow

logger = logging.getLogger(__name__)


class EventType(Enum):
  """Named lifecycle events emitted by the pipeline components."""

  ANALYSIS_STARTED = "analysis:started"
  ANALYSIS_COMPLETED = "analysis:completed"
  ANALYSIS_ERROR = "analysis:error"
  REVIEW_STARTED = "review:started"
  REVIEW_COMPLETED = "review:completed"
  REVIEW_ERROR = "review:error"
  APPROVAL_REQUIRED = "approval:required"
  APPROVAL_DECISION = "approval:decision"
  APPROVAL_EXPIRED = "approval:expired"
  FILE_COMPLETED = "file:completed"
  SESSION_STARTED = "session:started"
  SESSION_COMPLETED = "session:completed"


@dataclass(frozen=True)
class Event:
  """A single notification."""

  type: EventType
  payload: Mapping[str, Any] = field(default_factory=dict)
  timestamp: datetime = field(default_factory=utcnow)


EventHandler = Callable[[Event], None]


class EventBus:
  """Synchronous, fire-and-forget event delivery.

  Handlers run in subscription order. A handler that raises is logged
  and skipped; it never affects the publisher or other handlers.

  Example:
    bus = EventBus()
    unsubscribe = bus.subscribe(EventType.SESSION_STARTED, print)
    bus.emit(EventType.SESSION_STARTED, session_id="abc")
    unsubscribe()
  """

  def __init__(self) -> None:
    self._handlers: dict[EventType, list[EventHandler]] = {}
    self._wildcard: list[EventHandler] = []

  def subscribe(self, event_type: EventType, handler: EventHandler) -> Callable[[], None]:
    """Register `handler` for one event type. Returns an unsubscribe callable."""
    self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe() -> None:
      handlers = self._handlers.get(event_type, [])
      if handler in handlers:
        handlers.remove(handler)

    return unsubscribe

  def subscribe_all(self, handler: EventHandler) -> Callable[[], None]:
    """Register `handler` for every event type."""
    self._wildcard.append(handler)

    def unsubscribe() -> None:
      if handler in self._wildcard:
        self._wildcard.remove(handler)

    return unsubscribe

  def publish(self, event: Event) -> None:
    for handler in [*self._handlers.get(event.type, []), *self._wildcard]:
      try:
        handler(event)
      except Exception:
        logger.warning("Event handler failed for %s", event.type.value, exc_info=True)

  def emit(self, event_type: EventType, **payload: Any) -> None:
    """Build and publish an event from keyword payload."""
    self.publish(Event(type=event_type, payload=payload))

  def clear(self) -> None:
    self._handlers.clear()
    self._wildcard.clear()

