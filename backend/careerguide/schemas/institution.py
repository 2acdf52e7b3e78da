"""
Institution Schemas - Pydantic models for API validation
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date

from careerguide.schemas.enums import AdmissionStatus, ApplicationStatus, CourseStatus


# ============================================
# Faculty / Course Schemas
# ============================================

class FacultyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class CourseCreate(BaseModel):
    """Create a new course"""
    name: str = Field(..., min_length=1, max_length=255)
    facultyId: Optional[str] = None
    code: str = Field(..., min_length=1, max_length=50)
    duration: Optional[str] = None
    totalSeats: int = Field(..., ge=0)
    fees: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    status: CourseStatus = CourseStatus.ACTIVE


class CourseUpdate(BaseModel):
    """Update course; omitted fields are left unchanged"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    facultyId: Optional[str] = None
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    duration: Optional[str] = None
    totalSeats: Optional[int] = Field(default=None, ge=0)
    fees: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    requirements: Optional[List[str]] = None


class CourseStatusUpdate(BaseModel):
    # None toggles ACTIVE <-> INACTIVE
    status: Optional[CourseStatus] = None


# ============================================
# Application / Admission Schemas
# ============================================

class ApplicationReview(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None


class EnrollmentUpdate(BaseModel):
    status: AdmissionStatus
    enrollmentDate: Optional[date] = None
    notes: Optional[str] = None


class ReportRequest(BaseModel):
    """Admissions report parameters"""
    type: str = Field(default="summary", pattern="^(summary|detailed)$")
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    format: str = Field(default="csv", pattern="^(csv|json)$")


# ============================================
# Communication Schemas
# ============================================

class BroadcastRequest(BaseModel):
    """Message sent to a group of students"""
    type: str = Field(default="announcement", max_length=50)
    subject: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    recipientType: str = Field(default="all", pattern="^(all|course|year|custom)$")
    recipients: List[str] = Field(default_factory=list)
