"""Event records published after committed state changes."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..core.curve.types import Event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmittedEvent:
    event: Event
    mint: str
    payload: Dict[str, Any] = field(default_factory=dict)
    seq: int = 0


Subscriber = Callable[[EmittedEvent], None]


class EventBus:
    """
    Synchronous fan-out of events to subscribers, with an in-memory history.

    Events are published only after the state change they describe has been
    committed. Subscriber exceptions propagate to the publisher's caller.
    """

    def __init__(self, keep_history: bool = True) -> None:
        self._subscribers: List[Subscriber] = []
        self._history: List[EmittedEvent] = []
        self._keep_history = keep_history
        self._seq = 0
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def publish(self, event: Event, mint: str, payload: Optional[Dict[str, Any]] = None) -> EmittedEvent:
        with self._lock:
            self._seq += 1
            emitted = EmittedEvent(event=event, mint=mint, payload=dict(payload or {}), seq=self._seq)
            if self._keep_history:
                self._history.append(emitted)
            subscribers = list(self._subscribers)
        logger.debug("event %s mint=%s seq=%d", event.value, mint, emitted.seq)
        for callback in subscribers:
            callback(emitted)
        return emitted

    def history(self, event: Optional[Event] = None, mint: Optional[str] = None) -> List[EmittedEvent]:
        with self._lock:
            items = list(self._history)
        return [
            e for e in items
            if (event is None or e.event is event) and (mint is None or e.mint == mint)
        ]
