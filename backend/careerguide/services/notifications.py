"""
Notification Hub

In-process fan-out of user notifications:
- Every open notification stream subscribes a bounded asyncio.Queue
- `notify()` persists the notification, then pushes it to the user's
  streams and chat sockets
- `notification_event_stream()` renders a subscription as server-sent events
"""

import asyncio
import json
from datetime import datetime
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional, Set

from careerguide.core.config import settings
from careerguide.core.logging_config import logger
from careerguide.services import collections
from careerguide.services.store import DocumentStore


class NotificationHub:
    """Per-user set of subscriber queues"""

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, user_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        async with self._lock:
            self._subscribers.setdefault(user_id, set()).add(queue)
        logger.debug(f"[Notifications] {user_id} subscribed ({self.subscriber_count(user_id)} open)")
        return queue

    async def unsubscribe(self, user_id: str, queue: asyncio.Queue) -> None:
        async with self._lock:
            queues = self._subscribers.get(user_id)
            if queues is None:
                return
            queues.discard(queue)
            if not queues:
                del self._subscribers[user_id]
        logger.debug(f"[Notifications] {user_id} unsubscribed")

    def subscriber_count(self, user_id: str) -> int:
        return len(self._subscribers.get(user_id, ()))

    def is_connected(self, user_id: str) -> bool:
        return self.subscriber_count(user_id) > 0

    async def publish(self, user_id: str, event: Dict[str, Any]) -> int:
        """Queue event for every stream of the user; returns deliveries"""
        delivered = 0
        for queue in list(self._subscribers.get(user_id, ())):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"[Notifications] Queue full for {user_id}, dropping event")
        return delivered


notification_hub = NotificationHub(queue_size=settings.NOTIFICATION_QUEUE_SIZE)


async def notify(
    store: DocumentStore,
    user_id: str,
    type: str,
    title: str,
    message: str,
    **extra: Any,
) -> Dict[str, Any]:
    """Persist a notification and push it to the user's live channels"""
    # Imported here; chat imports this module for the socket push
    from careerguide.services.chat import chat_manager

    created_at = datetime.utcnow().isoformat()
    doc = {
        "userId": user_id,
        "type": type,
        "title": title,
        "message": message,
        "createdAt": created_at,
        **extra,
    }
    doc_id = await store.add(collections.NOTIFICATIONS, doc)

    event = {"id": doc_id, "type": type, "title": title, "message": message, "createdAt": created_at, **extra}
    await notification_hub.publish(user_id, event)
    await chat_manager.send_to_user(user_id, {**event, "type": "notification", "notificationType": type})
    return {"id": doc_id, **doc}


def format_sse(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data, default=str)}\n\n"


async def notification_event_stream(
    user_id: str,
    hub: NotificationHub,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive_seconds: float = 15.0,
    retry_ms: int = 5000,
) -> AsyncGenerator[str, None]:
    """
    Server-sent event stream of a user's notifications.

    Starts with the `retry:` hint, then one data frame per notification.
    A comment line is sent whenever the queue stays quiet for
    `keepalive_seconds`.
    """
    queue = await hub.subscribe(user_id)
    try:
        yield f"retry: {retry_ms}\n\n"
        yield format_sse({"type": "connected", "userId": user_id})
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(event)
    finally:
        await hub.unsubscribe(user_id, queue)
