from fastapi import APIRouter

from careerguide.core.config import settings

router = APIRouter(tags=["Config"])


@router.get("/config")
async def client_config():
    """Public client configuration (API/WebSocket URLs and Firebase web config)"""
    return {"success": True, "config": settings.get_public_config()}
