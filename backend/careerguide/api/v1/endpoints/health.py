"""
Health Check Endpoints

- /health       - Basic status (process up, Firebase initialized)
- /health/live  - Liveness (app is running)
- /health/ready - Readiness (document store round-trip works)
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any
import time

from careerguide import __version__
from careerguide.core.config import settings
from careerguide.core.logging_config import logger
from careerguide.services import collections
from careerguide.services.firebase import get_document_store, is_firebase_initialized
from careerguide.services.store import DocumentStore


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_store(store: DocumentStore) -> Dict[str, Any]:
    """Write and read back a heartbeat document"""
    start = time.time()
    try:
        now = datetime.utcnow().isoformat()
        await store.set(collections.HEALTH, "heartbeat", {"checkedAt": now})
        heartbeat = await store.get(collections.HEALTH, "heartbeat")
        latency = (time.time() - start) * 1000
        return {
            "status": "healthy" if heartbeat else "degraded",
            "latency_ms": round(latency, 2),
            "message": "Document store reachable",
        }
    except Exception as e:
        latency = (time.time() - start) * 1000
        logger.error(f"[HealthCheck] Document store check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "error": str(e),
            "message": "Document store unreachable",
        }


def check_config() -> Dict[str, Any]:
    """Report configuration gaps that degrade features"""
    warnings = []
    if not settings.FIREBASE_PROJECT_ID:
        warnings.append("FIREBASE_PROJECT_ID")
    if not settings.firebase_configured:
        warnings.append("FIREBASE_SERVICE_ACCOUNT or FIREBASE_CREDENTIALS_PATH")
    if not settings.FIREBASE_STORAGE_BUCKET:
        warnings.append("FIREBASE_STORAGE_BUCKET")
    return {
        "status": "degraded" if warnings else "healthy",
        "warnings": warnings,
    }


async def basic_health() -> Dict[str, Any]:
    return {
        "success": True,
        "status": "OK",
        "timestamp": datetime.utcnow().isoformat(),
        "firebase": "Connected" if is_firebase_initialized() else "Not initialized",
    }


@router.get("/live")
async def liveness_check():
    return {
        "success": True,
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(store: DocumentStore = Depends(get_document_store)):
    """
    Readiness check - 200 only when the document store answers.

    Configuration gaps are reported but do not fail the check, since
    Application Default Credentials may cover them.
    """
    store_check = await check_store(store)
    is_ready = store_check["status"] != "unhealthy"
    response = {
        "success": is_ready,
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {"store": store_check, "environment": check_config()},
    }
    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response)
    return response
