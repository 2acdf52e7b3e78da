"""
Institution API endpoints for the institution dashboard.
All endpoints require the `institution` role.
"""
from fastapi import APIRouter

from careerguide.api.v1.endpoints.institution import courses, applications, students, admissions
from careerguide.api.v1.endpoints.notifications import notification_stream_router
from careerguide.schemas.enums import Role

institution_router = APIRouter(prefix="/institution", tags=["Institution"])

# Include all institution sub-routers
institution_router.include_router(courses.router, tags=["Institution Courses"])
institution_router.include_router(applications.router, tags=["Institution Applications"])
institution_router.include_router(students.router, tags=["Institution Students"])
institution_router.include_router(admissions.router, prefix="/admissions", tags=["Institution Admissions"])
institution_router.include_router(notification_stream_router(Role.INSTITUTION))
