"""Real-time reservation change fan-out, one channel per hotel"""
import asyncio
from typing import Any, Dict, Set

from config.logging import get_logger
from domain.enums import ReservationEvent

logger = get_logger(__name__)


class ReservationEventHub:
    """Pushes reservation events to every subscriber of a hotel"""

    def __init__(self, max_queue_size: int = 100):
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._max_queue_size = max_queue_size

    def subscribe(self, hotel_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.setdefault(hotel_id, set()).add(queue)
        return queue

    def unsubscribe(self, hotel_id: str, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(hotel_id)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[hotel_id]

    def subscriber_count(self, hotel_id: str) -> int:
        return len(self._subscribers.get(hotel_id, ()))

    def publish(self, hotel_id: str, event: ReservationEvent, payload: Dict[str, Any]) -> int:
        """Queue ``event`` for every subscriber; returns how many received it"""
        delivered = 0
        for queue in list(self._subscribers.get(hotel_id, ())):
            try:
                queue.put_nowait({"event": event.value, "data": payload})
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping event for slow subscriber", hotel_id=hotel_id, event=event.value)
        if delivered:
            logger.info("Emitted reservation event", hotel_id=hotel_id, event=event.value, subscribers=delivered)
        return delivered
