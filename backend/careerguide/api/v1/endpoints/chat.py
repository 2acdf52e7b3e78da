"""
Chat WebSocket Endpoint

Connection URL: WS /ws/chat?token=<id token>

Client frames:
    {"type": "chat", "recipientId": "...", "content": "..."}
    {"type": "ping"}

Server frames:
    chat         - a persisted message (echoed to the sender as well)
    notification - pushed notifications
    pong         - response to ping
    error        - malformed or unsupported frame
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from careerguide.core.exceptions import AuthorizationError, CareerGuideError
from careerguide.core.logging_config import logger
from careerguide.modules.auth.dependencies import authenticate
from careerguide.schemas.enums import Role
from careerguide.services.chat import ChatEventType, chat_manager, save_message
from careerguide.services.firebase import get_document_store, get_identity_provider
from careerguide.services.notifications import notify
from careerguide.services.store import DocumentStore, IdentityProvider

router = APIRouter()


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"type": ChatEventType.ERROR.value, "message": message})


@router.websocket("/ws/chat")
async def chat_websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    identity: IdentityProvider = Depends(get_identity_provider),
    store: DocumentStore = Depends(get_document_store),
):
    try:
        principal = await authenticate(token, identity, list(Role))
    except AuthorizationError as e:
        await websocket.close(code=4003, reason=e.message)
        return
    except CareerGuideError as e:
        await websocket.close(code=4001, reason=e.message)
        return

    connection = await chat_manager.connect(websocket, principal.uid, principal.role)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await _send_error(websocket, "Invalid JSON")
                continue
            if not isinstance(frame, dict):
                await _send_error(websocket, "Invalid frame")
                continue

            frame_type = frame.get("type")
            if frame_type == ChatEventType.PING.value:
                await websocket.send_json({"type": ChatEventType.PONG.value})

            elif frame_type == ChatEventType.CHAT.value:
                recipient_id = frame.get("recipientId")
                content = str(frame.get("content") or "").strip()
                if not recipient_id or not content:
                    await _send_error(websocket, "recipientId and content are required")
                    continue

                message = await save_message(store, principal.uid, recipient_id, content)
                outgoing = {"type": ChatEventType.CHAT.value, **message}
                await chat_manager.send_to_user(principal.uid, outgoing)
                if chat_manager.is_online(recipient_id):
                    await chat_manager.send_to_user(recipient_id, outgoing)
                else:
                    await notify(
                        store,
                        recipient_id,
                        type="message",
                        title="New message",
                        message=content[:120],
                        senderId=principal.uid,
                    )

            else:
                await _send_error(websocket, f"Unsupported message type: {frame_type}")

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.log_error_with_context(e, context=f"chat websocket ({principal.uid})")
    finally:
        await chat_manager.disconnect(connection)
