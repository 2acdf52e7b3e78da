"""
Chat WebSocket Manager

Tracks open chat sockets per user (a user may have several tabs open),
answers presence queries and persists direct messages.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import WebSocket

from careerguide.core.logging_config import logger
from careerguide.services import collections
from careerguide.services.store import DocumentStore, eq


class ChatEventType(str, Enum):
    """WebSocket frame types"""
    CHAT = "chat"
    NOTIFICATION = "notification"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"


@dataclass
class ChatConnection:
    websocket: WebSocket
    user_id: str
    role: Optional[str] = None
    connected_at: datetime = field(default_factory=datetime.utcnow)
    last_activity: datetime = field(default_factory=datetime.utcnow)


class ChatConnectionManager:
    """Manages chat sockets keyed by user id"""

    def __init__(self):
        self._connections: Dict[str, List[ChatConnection]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str, role: Optional[str] = None) -> ChatConnection:
        await websocket.accept()
        connection = ChatConnection(websocket=websocket, user_id=user_id, role=role)
        async with self._lock:
            self._connections.setdefault(user_id, []).append(connection)
        logger.info(f"Chat socket connected: user {user_id}")
        return connection

    async def disconnect(self, connection: ChatConnection) -> None:
        async with self._lock:
            connections = self._connections.get(connection.user_id, [])
            if connection in connections:
                connections.remove(connection)
            if not connections:
                self._connections.pop(connection.user_id, None)
        logger.info(f"Chat socket disconnected: user {connection.user_id}")

    def is_online(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def online_users(self) -> List[str]:
        return [uid for uid, conns in self._connections.items() if conns]

    async def send_to_user(self, user_id: str, message: Dict[str, Any]) -> int:
        """Send a frame to every socket of the user; returns deliveries"""
        delivered = 0
        dead: List[ChatConnection] = []
        for connection in list(self._connections.get(user_id, [])):
            try:
                await connection.websocket.send_json(message)
                connection.last_activity = datetime.utcnow()
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending to user {user_id}: {e}")
                dead.append(connection)

        for connection in dead:
            await self.disconnect(connection)
        return delivered


chat_manager = ChatConnectionManager()


def conversation_id(user_a: str, user_b: str) -> str:
    """Stable id for the conversation between two users"""
    return "_".join(sorted([user_a, user_b]))


async def save_message(store: DocumentStore, sender_id: str, recipient_id: str, content: str) -> Dict[str, Any]:
    message = {
        "conversationId": conversation_id(sender_id, recipient_id),
        "senderId": sender_id,
        "recipientId": recipient_id,
        "content": content,
        "timestamp": datetime.utcnow().isoformat(),
    }
    message_id = await store.add(collections.MESSAGES, message)
    return {"id": message_id, **message}


async def get_history(store: DocumentStore, user_a: str, user_b: str, limit: int = 100) -> List[Dict[str, Any]]:
    """Most recent messages between two users, oldest first"""
    messages = await store.query(
        collections.MESSAGES,
        filters=[eq("conversationId", conversation_id(user_a, user_b))],
        order_by="timestamp",
        descending=True,
        limit=limit,
    )
    return list(reversed(messages))
