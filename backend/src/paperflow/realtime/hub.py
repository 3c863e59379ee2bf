"""In-process publish/subscribe broadcaster.

Subscribers are registered per connection. Publishing fans an event out to
every subscriber registered at that moment; there is no backlog, so late
subscribers never see earlier events. A failing subscriber is logged and
skipped and never affects the publisher or the other subscribers.
"""

import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..observability.metrics import realtime_subscribers, record_notification

logger = logging.getLogger(__name__)

MAX_PENDING_EVENTS = 100


@dataclass(frozen=True)
class ChangeEvent:
    """A single event delivered to subscribers."""
    event: str
    data: Any
    ts_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> Dict[str, Any]:
        return {"event": self.event, "data": self.data}


class Subscriber:
    """Receives events from the broadcaster."""

    def deliver(self, event: ChangeEvent) -> None:
        raise NotImplementedError


class QueueSubscriber(Subscriber):
    """Hands events to a bounded asyncio queue owned by a WebSocket connection.

    publish() may run in a worker thread (sync endpoints), so delivery is
    scheduled on the connection's event loop. A client that stops reading
    loses events once MAX_PENDING_EVENTS are queued for it.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        maxsize: int = MAX_PENDING_EVENTS,
    ):
        self.loop = loop or asyncio.get_running_loop()
        self.queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue(maxsize=maxsize)

    def deliver(self, event: ChangeEvent) -> None:
        if self.loop.is_closed():
            raise RuntimeError("subscriber event loop is closed")
        if self.queue.full():
            raise asyncio.QueueFull(f"{self.queue.qsize()} events pending")
        self.loop.call_soon_threadsafe(self._enqueue, event)

    def _enqueue(self, event: ChangeEvent) -> None:
        # Another publisher may have filled the queue since deliver() checked
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            record_notification(event.event, "failed")
            logger.warning(f"Dropping {event.event}: subscriber queue full", extra={"event": event.event})

    async def next_event(self) -> ChangeEvent:
        return await self.queue.get()


class Broadcaster:
    """Process-wide registry of subscribers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscribers: Dict[int, Subscriber] = {}

    def subscribe(self, subscriber: Subscriber) -> int:
        """Register a subscriber and return its handle."""
        with self._lock:
            handle = next(self._ids)
            self._subscribers[handle] = subscriber
            count = len(self._subscribers)
        realtime_subscribers.set(count)
        logger.info(f"Realtime subscriber {handle} registered ({count} connected)")
        return handle

    def unsubscribe(self, handle: int) -> bool:
        """Remove a subscriber. Unknown handles are ignored."""
        with self._lock:
            removed = self._subscribers.pop(handle, None) is not None
            count = len(self._subscribers)
        if removed:
            realtime_subscribers.set(count)
            logger.info(f"Realtime subscriber {handle} removed ({count} connected)")
        return removed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: str, data: Any) -> int:
        """Deliver an event to every current subscriber.

        Returns:
            int: Number of subscribers the event was handed to
        """
        change = ChangeEvent(event=event, data=data)
        with self._lock:
            targets: List = list(self._subscribers.items())

        delivered = 0
        for handle, subscriber in targets:
            try:
                subscriber.deliver(change)
                delivered += 1
            except Exception as e:
                record_notification(event, "failed")
                logger.warning(
                    f"Dropping {event} for subscriber {handle}: {e}",
                    extra={"event": event},
                )
        return delivered


_broadcaster = Broadcaster()


def get_broadcaster() -> Broadcaster:
    """Process-wide broadcaster shared by the notifier and WebSocket endpoint."""
    return _broadcaster
