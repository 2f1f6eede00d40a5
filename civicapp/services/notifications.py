"""
In-process notification bus for real-time updates

civicapp/services/notifications.py

"""
from typing import Any, AsyncGenerator, Dict, Optional, Set
from datetime import datetime
import asyncio
from pydantic import BaseModel, Field
from civicapp.core.config import settings
import logging

logger = logging.getLogger(__name__)


class Event(BaseModel):
    event: str
    room: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    emitted_at: datetime = Field(default_factory=datetime.utcnow)


class NotificationBus:
    """
    Fans state-change events out to subscribers.

    Publishing is fire-and-forget and runs after the change has been
    committed: it never raises, and a slow subscriber only loses its own
    events.
    """
    def __init__(self, queue_size: int = None):
        self.queue_size = queue_size or settings.NOTIFICATION_QUEUE_SIZE
        self._subscribers: Set[asyncio.Queue] = set()
        self.published = 0
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def publish(self, event: str, payload: Optional[Dict[str, Any]] = None, room: Optional[str] = None) -> None:
        """Broadcast an event to every subscriber"""
        try:
            message = Event(event=event, room=room, payload=payload or {})
        except Exception as e:
            logger.error(f"Could not build notification {event}: {e}")
            return

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning(f"Subscriber queue full, dropping {event}")
            except Exception as e:
                self.dropped += 1
                logger.error(f"Error delivering {event}: {e}")
        self.published += 1
        logger.debug(f"Published {event} to {len(self._subscribers)} subscribers")

    async def listen(self, room: Optional[str] = None) -> AsyncGenerator[Event, None]:
        """Yield events as they arrive; global events are always delivered"""
        queue = self.subscribe()
        try:
            while True:
                message = await queue.get()
                if room is None or message.room is None or message.room == room:
                    yield message
        finally:
            self.unsubscribe(queue)


# Global notification bus instance
notification_bus = NotificationBus()
