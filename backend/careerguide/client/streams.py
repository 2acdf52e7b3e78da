"""
Long-lived client channels: notification stream (SSE) and chat (WebSocket)

Both reconnect through `Reconnector`. Authentication failures are not
retried; they propagate as ApiError. For chat that covers a handshake
answered with 401/403 and a socket closed with code 4001/4003.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx
import websockets
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from careerguide.client.api import ApiError
from careerguide.client.config import ClientConfig
from careerguide.client.reconnect import ConnectionStatus, Reconnector, ReconnectPolicy

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]

AUTH_STATUS_CODES = (401, 403)
AUTH_CLOSE_CODES = (4001, 4003)

RETRYABLE = (
    httpx.TransportError,
    WebSocketException,
    ConnectionError,
    OSError,
)


class StreamError(ConnectionError):
    """Channel closed or answered with an unexpected status"""


def policy_from_config(config: ClientConfig) -> ReconnectPolicy:
    return ReconnectPolicy(
        base_delay=config.reconnect_base_delay,
        max_delay=config.reconnect_max_delay,
        multiplier=config.reconnect_multiplier,
        jitter=config.reconnect_jitter,
    )


async def parse_sse(lines: AsyncIterator[str]) -> AsyncIterator[Dict[str, Any]]:
    """Decode `data:` frames; comments, `retry:` hints and bad JSON are skipped"""
    buffer = []
    async for line in lines:
        if line.startswith("data:"):
            buffer.append(line[5:].strip())
            continue
        if line == "" and buffer:
            payload, buffer = "\n".join(buffer), []
            try:
                yield json.loads(payload)
            except json.JSONDecodeError:
                logger.debug(f"Skipping malformed event: {payload[:80]}")
    if buffer:
        try:
            yield json.loads("\n".join(buffer))
        except json.JSONDecodeError:
            pass


class NotificationStream:
    """
    Server-sent notifications for the signed-in role.

    Usage:
        stream = NotificationStream(config, on_event=handle)
        task = asyncio.create_task(stream.run())
        ...
        stream.close()
    """

    def __init__(
        self,
        config: ClientConfig,
        on_event: EventHandler,
        policy: Optional[ReconnectPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.on_event = on_event
        self.reconnector = Reconnector(policy or policy_from_config(config), cancel, retry_on=RETRYABLE)
        self.status = ConnectionStatus.DISCONNECTED
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.config.api_url}{self.config.api_prefix}/{self.config.role}/notifications/stream"

    async def connect_once(self) -> bool:
        """One stream session; returns True once the server accepted it"""
        timeout = httpx.Timeout(self.config.timeout, read=None)
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            async with client.stream(
                "GET",
                self.url,
                params={"token": self.config.token},
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code in (401, 403):
                    raise ApiError("Notification stream rejected credentials", response.status_code)
                if response.status_code != 200:
                    raise StreamError(f"Notification stream returned {response.status_code}")

                self.status = ConnectionStatus.CONNECTED
                self.reconnector.mark_established()
                try:
                    async for event in parse_sse(response.aiter_lines()):
                        await self.on_event(event)
                        if self.reconnector.cancel.is_set():
                            break
                finally:
                    self.status = ConnectionStatus.DISCONNECTED
        return True

    async def run(self) -> None:
        await self.reconnector.run(self.connect_once)

    def close(self) -> None:
        self.reconnector.cancel.set()


class ChatConnection:
    """
    Chat socket with automatic reconnect.

    Usage:
        chat = ChatConnection(config, on_message=handle)
        task = asyncio.create_task(chat.run())
        await chat.send_chat(student_id, "Hello")
    """

    def __init__(
        self,
        config: ClientConfig,
        on_message: EventHandler,
        policy: Optional[ReconnectPolicy] = None,
        cancel: Optional[asyncio.Event] = None,
        connect: Callable[..., Any] = websockets.connect,
    ):
        self.config = config
        self.on_message = on_message
        self.reconnector = Reconnector(policy or policy_from_config(config), cancel, retry_on=RETRYABLE)
        self.status = ConnectionStatus.DISCONNECTED
        self._connect = connect
        self._ws = None

    @property
    def url(self) -> str:
        return f"{self.config.ws_url}?{urlencode({'token': self.config.token or ''})}"

    async def connect_once(self) -> bool:
        try:
            async with self._connect(self.url, open_timeout=self.config.timeout) as ws:
                self._ws = ws
                self.status = ConnectionStatus.CONNECTED
                self.reconnector.mark_established()
                try:
                    async for raw in ws:
                        try:
                            message = json.loads(raw)
                        except json.JSONDecodeError:
                            continue
                        await self.on_message(message)
                        if self.reconnector.cancel.is_set():
                            break
                except ConnectionClosed as e:
                    if e.rcvd is not None and e.rcvd.code in AUTH_CLOSE_CODES:
                        raise ApiError(f"Chat connection rejected: {e.rcvd.reason}", e.rcvd.code)
                    logger.info(f"Chat connection closed: {e}")
                finally:
                    self._ws = None
                    self.status = ConnectionStatus.DISCONNECTED
        except InvalidStatus as e:
            if e.response.status_code in AUTH_STATUS_CODES:
                raise ApiError("Chat connection rejected credentials", e.response.status_code)
            raise
        return True

    async def run(self) -> None:
        await self.reconnector.run(self.connect_once)

    async def _send(self, frame: Dict[str, Any]) -> None:
        if self._ws is None:
            raise StreamError("Chat connection lost. Trying to reconnect...")
        await self._ws.send(json.dumps(frame))

    async def send_chat(self, recipient_id: str, content: str) -> None:
        content = content.strip()
        if not content:
            return
        await self._send({"type": "chat", "recipientId": recipient_id, "content": content})

    async def ping(self) -> None:
        await self._send({"type": "ping"})

    def close(self) -> None:
        self.reconnector.cancel.set()
