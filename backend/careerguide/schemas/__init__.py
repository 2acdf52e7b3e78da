# Pydantic schemas
from careerguide.schemas.enums import (
    Role,
    CourseStatus,
    ApplicationStatus,
    AdmissionStatus,
    JobStatus,
    parse_enum,
)
from careerguide.schemas.auth import RegisterRequest, LoginRequest, Principal
from careerguide.schemas.institution import (
    FacultyCreate,
    CourseCreate,
    CourseUpdate,
    CourseStatusUpdate,
    ApplicationReview,
    EnrollmentUpdate,
    ReportRequest,
    BroadcastRequest,
)
from careerguide.schemas.student import ApplicationCreate
from careerguide.schemas.company import JobCreate, JobUpdate, JobStatusUpdate

__all__ = [
    "Role",
    "CourseStatus",
    "ApplicationStatus",
    "AdmissionStatus",
    "JobStatus",
    "parse_enum",
    "RegisterRequest",
    "LoginRequest",
    "Principal",
    "FacultyCreate",
    "CourseCreate",
    "CourseUpdate",
    "CourseStatusUpdate",
    "ApplicationReview",
    "EnrollmentUpdate",
    "ReportRequest",
    "BroadcastRequest",
    "ApplicationCreate",
    "JobCreate",
    "JobUpdate",
    "JobStatusUpdate",
]
