"""
Typed view models and per-view state

API payloads are converted into these models before rendering, so
templates only ever see display-ready fields. Each dashboard keeps its
data in its own state object instead of module-level globals.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from careerguide.client.formatting import (
    activity_icon,
    format_date,
    format_event_date,
    format_event_time,
    gpa_color,
    gpa_percentage,
    status_class,
    time_ago,
)

DEFAULT_AVATAR = "img/default-avatar.png"


# ============================================
# Shared
# ============================================

class NotificationView(BaseModel):
    type: str = "info"
    title: str = ""
    message: str = ""
    createdAt: str = ""

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "NotificationView":
        return cls(
            type=str(event.get("notificationType") or event.get("type") or "info"),
            title=str(event.get("title") or ""),
            message=str(event.get("message") or ""),
            createdAt=time_ago(event.get("createdAt")),
        )


# ============================================
# Student dashboard
# ============================================

class ProfileView(BaseModel):
    name: str = ""
    email: str = ""
    photo: str = DEFAULT_AVATAR
    bio: str = ""
    skills: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)

    @classmethod
    def from_api(cls, profile: Dict[str, Any]) -> "ProfileView":
        return cls(
            name=profile.get("name") or profile.get("email") or "",
            email=profile.get("email") or "",
            photo=profile.get("photo") or DEFAULT_AVATAR,
            bio=profile.get("bio") or "",
            skills=list(profile.get("skills") or []),
            interests=list(profile.get("interests") or []),
        )


class ApplicationStatsView(BaseModel):
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    total: int = 0


class RecommendationView(BaseModel):
    id: str
    title: str
    subtitle: str = ""
    matchScore: int = 0

    @classmethod
    def from_course(cls, course: Dict[str, Any]) -> "RecommendationView":
        return cls(
            id=course["id"],
            title=course.get("name", ""),
            subtitle=course.get("institution") or course.get("faculty") or "",
            matchScore=int(course.get("matchScore") or 0),
        )

    @classmethod
    def from_job(cls, job: Dict[str, Any]) -> "RecommendationView":
        return cls(
            id=job["id"],
            title=job.get("title", ""),
            subtitle=" - ".join(p for p in (job.get("company"), job.get("location")) if p),
            matchScore=int(job.get("matchScore") or 0),
        )


class ActivityView(BaseModel):
    type: str = ""
    icon: str = ""
    title: str = ""
    description: str = ""
    date: str = ""
    actionUrl: Optional[str] = None
    actionText: Optional[str] = None

    @classmethod
    def from_api(cls, activity: Dict[str, Any]) -> "ActivityView":
        return cls(
            type=activity.get("type", ""),
            icon=activity_icon(activity.get("type")),
            title=activity.get("title", ""),
            description=activity.get("description", ""),
            date=format_date(activity.get("date")),
            actionUrl=activity.get("actionUrl"),
            actionText=activity.get("actionText"),
        )


class EventView(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    day: str = ""
    time: str = ""
    canRSVP: bool = False

    @classmethod
    def from_api(cls, event: Dict[str, Any]) -> "EventView":
        return cls(
            id=event["id"],
            title=event.get("title", ""),
            description=event.get("description", ""),
            day=format_event_date(event.get("date")),
            time=format_event_time(event.get("date")),
            canRSVP=bool(event.get("canRSVP")),
        )


class StudentDashboardState(BaseModel):
    profile: Optional[ProfileView] = None
    stats: ApplicationStatsView = Field(default_factory=ApplicationStatsView)
    courses: List[RecommendationView] = Field(default_factory=list)
    jobs: List[RecommendationView] = Field(default_factory=list)
    activities: List[ActivityView] = Field(default_factory=list)
    events: List[EventView] = Field(default_factory=list)
    notifications: List[NotificationView] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    loadedAt: Optional[datetime] = None


# ============================================
# Institution dashboard
# ============================================

class AdmissionStatsView(BaseModel):
    total: int = 0
    acceptanceRate: float = 0.0
    enrollmentRate: float = 0.0


class ApplicationRowView(BaseModel):
    id: str
    studentId: str = ""
    studentName: str = ""
    studentEmail: str = ""
    studentPhoto: str = DEFAULT_AVATAR
    courseName: str = ""
    faculty: str = ""
    appliedDate: str = ""
    appliedAgo: str = ""
    gpa: Optional[float] = None
    gpaColor: str = ""
    gpaPercent: float = 0.0
    status: str = ""
    statusClass: str = ""

    @classmethod
    def from_api(cls, application: Dict[str, Any], now: Optional[datetime] = None) -> "ApplicationRowView":
        student = application.get("student") or {}
        course = application.get("course") or {}
        gpa = student.get("gpa")
        gpa = float(gpa) if gpa not in (None, "") else None
        return cls(
            id=application["id"],
            studentId=application.get("studentId") or student.get("id") or "",
            studentName=student.get("name", ""),
            studentEmail=student.get("email", ""),
            studentPhoto=student.get("photo") or DEFAULT_AVATAR,
            courseName=course.get("name", ""),
            faculty=course.get("faculty") or "",
            appliedDate=format_date(application.get("appliedDate")),
            appliedAgo=time_ago(application.get("appliedDate"), now),
            gpa=gpa,
            gpaColor=gpa_color(gpa),
            gpaPercent=gpa_percentage(gpa),
            status=application.get("status", ""),
            statusClass=status_class(application.get("status")),
        )


class CourseSummaryView(BaseModel):
    id: str
    name: str = ""
    code: str = ""
    status: str = ""
    availableSeats: int = 0
    totalSeats: int = 0
    applicationCount: int = 0

    @classmethod
    def from_api(cls, course: Dict[str, Any]) -> "CourseSummaryView":
        return cls(
            id=course["id"],
            name=course.get("name", ""),
            code=course.get("code", ""),
            status=course.get("status", ""),
            availableSeats=int(course.get("availableSeats") or 0),
            totalSeats=int(course.get("totalSeats") or 0),
            applicationCount=int(course.get("applicationCount") or 0),
        )


class InstitutionDashboardState(BaseModel):
    filters: Dict[str, str] = Field(default_factory=dict)
    page: int = 1
    stats: AdmissionStatsView = Field(default_factory=AdmissionStatsView)
    applications: List[ApplicationRowView] = Field(default_factory=list)
    hasMore: bool = False
    popularCourses: List[CourseSummaryView] = Field(default_factory=list)
    notifications: List[NotificationView] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    loadedAt: Optional[datetime] = None
