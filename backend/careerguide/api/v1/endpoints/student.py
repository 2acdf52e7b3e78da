"""
Student API - profile, applications, recommendations, activity and events
"""
import uuid
from collections import Counter
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from careerguide.api.v1.endpoints.notifications import notification_stream_router
from careerguide.core.config import settings
from careerguide.core.exceptions import (
    CourseNotFoundError,
    DuplicateApplicationError,
    EventNotFoundError,
    FileTooLargeError,
    InvalidFileTypeError,
    ValidationError,
)
from careerguide.core.logging_config import logger
from careerguide.modules.auth.dependencies import get_current_student
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import ApplicationStatus, CourseStatus, JobStatus, Role
from careerguide.schemas.student import ApplicationCreate, split_list
from careerguide.services import collections
from careerguide.services.activity import list_activity, record_activity
from careerguide.services.firebase import get_document_store, get_file_storage
from careerguide.services.matching import course_keywords, job_keywords, rank
from careerguide.services.notifications import notify
from careerguide.services.records import course_summary, load_many
from careerguide.services.store import DocumentStore, FileStorage, eq
from careerguide.utils.dates import to_datetime

router = APIRouter(prefix="/student", tags=["Student"])
router.include_router(notification_stream_router(Role.STUDENT))


async def _profile(store: DocumentStore, principal: Principal) -> dict:
    user = await store.get(collections.USERS, principal.uid) or {}
    return user.get("profileData") or {}


# ============================================
# Profile
# ============================================

@router.get("/profile")
async def get_profile(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    user = await store.get(collections.USERS, principal.uid) or {}
    profile = {
        **(user.get("profileData") or {}),
        "uid": principal.uid,
        "email": user.get("email") or principal.email,
    }
    return {"success": True, "profile": profile}


@router.put("/profile")
async def update_profile(
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    skills: Optional[str] = Form(None, description="Comma-separated"),
    interests: Optional[str] = Form(None, description="Comma-separated"),
    photo: Optional[UploadFile] = File(None),
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
    storage: FileStorage = Depends(get_file_storage),
):
    """Update profile fields; an attached photo is uploaded and its URL stored"""
    changes = {}
    for field, value in (("name", name), ("phone", phone), ("bio", bio)):
        if value is not None:
            changes[field] = value.strip()
    if skills is not None:
        changes["skills"] = split_list(skills)
    if interests is not None:
        changes["interests"] = split_list(interests)

    if photo is not None and photo.filename:
        extension = photo.filename.rsplit(".", 1)[-1].lower() if "." in photo.filename else ""
        if extension not in settings.ALLOWED_PHOTO_EXTENSIONS:
            raise InvalidFileTypeError(extension or photo.content_type or "unknown", settings.ALLOWED_PHOTO_EXTENSIONS)
        data = await photo.read()
        if len(data) > settings.MAX_UPLOAD_SIZE:
            raise FileTooLargeError(len(data), settings.MAX_UPLOAD_SIZE)
        path = f"profile-photos/{principal.uid}/{uuid.uuid4().hex}.{extension}"
        changes["photo"] = await storage.upload(path, data, photo.content_type or f"image/{extension}")

    profile = {**(await _profile(store, principal)), **changes}
    await store.set(collections.USERS, principal.uid, {
        "profileData": profile,
        "updatedAt": datetime.utcnow().isoformat(),
    }, merge=True)
    await record_activity(store, principal.uid, type="profile", title="Profile updated",
                          description=", ".join(sorted(changes)) or "No changes")
    return {"success": True, "message": "Profile updated successfully", "profile": profile}


# ============================================
# Applications
# ============================================

@router.get("/applications")
async def list_my_applications(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    applications = await store.query(collections.APPLICATIONS, [eq("studentId", principal.uid)])
    courses = await load_many(store, collections.COURSES, (a.get("courseId") for a in applications))
    applications = [{**a, "course": course_summary(courses.get(a.get("courseId")))} for a in applications]
    applications.sort(key=lambda a: to_datetime(a.get("appliedDate")) or datetime.min, reverse=True)
    return {"success": True, "applications": applications}


@router.post("/applications", status_code=status.HTTP_201_CREATED)
async def apply(
    application_data: ApplicationCreate,
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    """Apply to an active course; one application per course"""
    course = await store.get(collections.COURSES, application_data.courseId)
    if not course:
        raise CourseNotFoundError(application_data.courseId)
    if course.get("status") != CourseStatus.ACTIVE.value:
        raise ValidationError("Course is not accepting applications", field="courseId", code="COURSE_INACTIVE")

    existing = await store.query(collections.APPLICATIONS, [
        eq("studentId", principal.uid),
        eq("courseId", application_data.courseId),
    ])
    if existing:
        raise DuplicateApplicationError(application_data.courseId)

    application = {
        "studentId": principal.uid,
        "courseId": course["id"],
        "institutionId": course.get("institutionId"),
        "status": ApplicationStatus.PENDING.value,
        "appliedDate": datetime.utcnow().isoformat(),
        "reviewNotes": "",
        "reviewedAt": None,
        "documents": application_data.documents,
    }
    application_id = await store.add(collections.APPLICATIONS, application)

    user = await store.get(collections.USERS, principal.uid) or {}
    student_name = (user.get("profileData") or {}).get("name") or user.get("email") or "A student"
    await notify(
        store,
        course.get("institutionId"),
        type="new_application",
        title="New application",
        message=f"{student_name} applied to {course.get('name', 'a course')}",
        applicationId=application_id,
    )
    await record_activity(
        store, principal.uid, type="application", title="Application submitted",
        description=course.get("name", ""),
        action_url=f"/student/applications/{application_id}", action_text="View application",
    )
    logger.info(f"[Applications] {principal.uid} applied to {course['id']}")
    return {
        "success": True,
        "message": "Application submitted successfully",
        "application": {"id": application_id, **application},
    }


@router.get("/applications/stats")
async def application_stats(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    applications = await store.query(collections.APPLICATIONS, [eq("studentId", principal.uid)])
    counts = Counter(a.get("status") for a in applications)
    stats = {
        "pending": counts[ApplicationStatus.PENDING.value] + counts[ApplicationStatus.UNDER_REVIEW.value],
        "accepted": counts[ApplicationStatus.ACCEPTED.value],
        "rejected": counts[ApplicationStatus.REJECTED.value],
        "total": len(applications),
    }
    return {"success": True, "stats": stats}


# ============================================
# Recommendations
# ============================================

@router.get("/recommendations/courses")
async def recommend_courses(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    """Active courses the student has not applied to, best match first"""
    profile = await _profile(store, principal)
    applied = {a.get("courseId") for a in await store.query(collections.APPLICATIONS, [eq("studentId", principal.uid)])}
    courses = await store.query(collections.COURSES, [eq("status", CourseStatus.ACTIVE.value)])
    candidates = [c for c in courses if c["id"] not in applied]
    ranked = rank(candidates, profile, course_keywords)

    institutions = await load_many(store, collections.USERS, (c.get("institutionId") for c in ranked))
    for course in ranked:
        owner = institutions.get(course.get("institutionId")) or {}
        course["institution"] = (owner.get("profileData") or {}).get("name") or owner.get("email", "")
    return {"success": True, "courses": ranked}


@router.get("/recommendations/jobs")
async def recommend_jobs(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    profile = await _profile(store, principal)
    jobs = await store.query(collections.JOBS, [eq("status", JobStatus.OPEN.value)])
    return {"success": True, "jobs": rank(jobs, profile, job_keywords)}


# ============================================
# Activity & Events
# ============================================

@router.get("/activity")
async def get_activity(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    return {"success": True, "activities": await list_activity(store, principal.uid)}


@router.get("/events")
async def upcoming_events(
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    """Events that have not happened yet, soonest first"""
    now = datetime.utcnow()
    events = [e for e in await store.query(collections.EVENTS) if (to_datetime(e.get("date")) or now) >= now]
    rsvped = {r.get("eventId") for r in await store.query(collections.RSVPS, [eq("userId", principal.uid)])}

    events = [
        {
            **event,
            "hasRSVP": event["id"] in rsvped,
            "canRSVP": bool(event.get("rsvpOpen", True)) and event["id"] not in rsvped,
        }
        for event in events
    ]
    events.sort(key=lambda e: to_datetime(e.get("date")) or now)
    return {"success": True, "events": events}


@router.post("/events/{event_id}/rsvp")
async def rsvp(
    event_id: str,
    principal: Principal = Depends(get_current_student),
    store: DocumentStore = Depends(get_document_store),
):
    """RSVP to an event; repeating the call is a no-op"""
    event = await store.get(collections.EVENTS, event_id)
    if not event:
        raise EventNotFoundError(event_id)

    rsvp_id = f"{event_id}_{principal.uid}"
    if await store.get(collections.RSVPS, rsvp_id):
        return {"success": True, "message": "Already registered for this event"}

    if not event.get("rsvpOpen", True):
        raise ValidationError("RSVP is closed for this event", code="RSVP_CLOSED")

    await store.set(collections.RSVPS, rsvp_id, {
        "eventId": event_id,
        "userId": principal.uid,
        "createdAt": datetime.utcnow().isoformat(),
    })
    await record_activity(store, principal.uid, type="event", title="Registered for event",
                          description=event.get("title", ""))
    return {"success": True, "message": "RSVP confirmed"}
