"""
Institution Students API - applicant directory, broadcasts and chat history
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from fastapi import APIRouter, Depends, Query

from careerguide.core.config import settings
from careerguide.core.exceptions import StudentNotFoundError, ValidationError
from careerguide.core.logging_config import logger
from careerguide.modules.auth.dependencies import get_current_institution
from careerguide.schemas.auth import Principal
from careerguide.schemas.institution import BroadcastRequest
from careerguide.services import collections
from careerguide.services.chat import chat_manager, get_history
from careerguide.services.firebase import get_document_store
from careerguide.services.notifications import notify
from careerguide.services.records import load_many, student_summary
from careerguide.services.store import DocumentStore, eq

router = APIRouter()


async def _applicants(store: DocumentStore, institution_id: str) -> Dict[str, Set[str]]:
    """Student id -> ids of the institution's courses they applied to"""
    applications = await store.query(collections.APPLICATIONS, [eq("institutionId", institution_id)])
    courses_by_student: Dict[str, Set[str]] = defaultdict(set)
    for application in applications:
        courses_by_student[application["studentId"]].add(application.get("courseId"))
    return courses_by_student


def _student_card(user: Dict[str, Any], course_ids: Set[str]) -> Dict[str, Any]:
    return {
        **student_summary(user),
        "courseIds": sorted(c for c in course_ids if c),
        "isOnline": chat_manager.is_online(user["id"]),
    }


@router.get("/students")
async def list_students(
    search: Optional[str] = Query(None),
    course: Optional[str] = Query(None, description="Course id"),
    year: Optional[str] = Query(None),
    student_status: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Students who applied to any of the institution's courses"""
    applicants = await _applicants(store, principal.uid)
    users = await load_many(store, collections.USERS, applicants.keys())

    needle = (search or "").strip().lower()
    students = []
    for student_id, course_ids in applicants.items():
        user = users.get(student_id)
        if not user:
            continue
        card = _student_card(user, course_ids)
        if course and course not in course_ids:
            continue
        if year and str(card.get("year") or "") != year:
            continue
        if student_status and str(card.get("status") or "").upper() != student_status.upper():
            continue
        if needle and needle not in f"{card['name']} {card['email']}".lower():
            continue
        students.append(card)

    students.sort(key=lambda s: (s["name"] or "").lower())
    return {"success": True, "students": students}


@router.get("/students/{student_id}")
async def get_student(
    student_id: str,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    applicants = await _applicants(store, principal.uid)
    if student_id not in applicants:
        raise StudentNotFoundError(student_id)
    user = await store.get(collections.USERS, student_id)
    if not user:
        raise StudentNotFoundError(student_id)

    profile = user.get("profileData") or {}
    history = await get_history(store, principal.uid, student_id, limit=settings.CHAT_HISTORY_LIMIT)
    student = {
        **_student_card(user, applicants[student_id]),
        "bio": profile.get("bio", ""),
        "skills": profile.get("skills") or [],
        "interests": profile.get("interests") or [],
        "academics": profile.get("academics") or [],
        "communications": history,
    }
    return {"success": True, "student": student}


async def _broadcast_recipients(
    store: DocumentStore, institution_id: str, request: BroadcastRequest
) -> List[str]:
    applicants = await _applicants(store, institution_id)

    if request.recipientType == "all":
        return sorted(applicants)
    if request.recipientType == "course":
        wanted = set(request.recipients)
        return sorted(sid for sid, course_ids in applicants.items() if course_ids & wanted)
    if request.recipientType == "year":
        users = await load_many(store, collections.USERS, applicants.keys())
        wanted = {str(y) for y in request.recipients}
        return sorted(
            sid for sid, user in users.items()
            if str((user.get("profileData") or {}).get("year") or "") in wanted
        )
    # custom: explicit ids, limited to the institution's applicants
    return sorted(set(request.recipients) & set(applicants))


@router.post("/broadcast")
async def broadcast(
    message: BroadcastRequest,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Send a notification to a group of students"""
    recipients = await _broadcast_recipients(store, principal.uid, message)
    if not recipients:
        raise ValidationError("No recipients matched", field="recipients", code="NO_RECIPIENTS")

    for student_id in recipients:
        await notify(
            store,
            student_id,
            type=message.type,
            title=message.subject,
            message=message.content,
            senderId=principal.uid,
        )

    logger.info(f"[Broadcast] {principal.uid} sent '{message.subject}' to {len(recipients)} students")
    return {
        "success": True,
        "message": f"Message sent to {len(recipients)} students",
        "recipientCount": len(recipients),
    }


@router.get("/chat/{student_id}/history")
async def chat_history(
    student_id: str,
    limit: int = Query(settings.CHAT_HISTORY_LIMIT, ge=1, le=500),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    messages = await get_history(store, principal.uid, student_id, limit=limit)
    return {"success": True, "messages": messages}
