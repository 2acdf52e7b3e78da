"""
Notification stream endpoints

Each role router mounts its own `/notifications/stream`. EventSource
cannot send headers, so the token may also come from `?token=`.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from careerguide.core.config import settings
from careerguide.modules.auth.dependencies import require_roles
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import Role
from careerguide.services.notifications import notification_event_stream, notification_hub

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def notification_stream_router(role: Role) -> APIRouter:
    router = APIRouter(tags=["Notifications"])

    @router.get("/notifications/stream")
    async def notification_stream(
        request: Request,
        principal: Principal = Depends(require_roles(role, allow_query_token=True)),
    ):
        return StreamingResponse(
            notification_event_stream(
                principal.uid,
                notification_hub,
                is_disconnected=request.is_disconnected,
                keepalive_seconds=settings.NOTIFICATION_KEEPALIVE_SECONDS,
                retry_ms=settings.NOTIFICATION_RETRY_MS,
            ),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return router
