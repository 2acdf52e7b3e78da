from fastapi import APIRouter

from careerguide.api.v1.endpoints import auth, health, client_config, chat, student, company
from careerguide.api.v1.endpoints.institution import institution_router

# Mounted at the application root
root_router = APIRouter()
root_router.include_router(auth.router, tags=["Authentication"])
root_router.include_router(health.router)
root_router.include_router(client_config.router)
root_router.include_router(chat.router, tags=["Chat"])


@root_router.get("/health", tags=["Health"])
async def health_check():
    """Basic status: process up and Firebase initialization state"""
    return await health.basic_health()


# Mounted under API_PREFIX
api_router = APIRouter()
api_router.include_router(institution_router)
api_router.include_router(student.router)
api_router.include_router(company.router)
