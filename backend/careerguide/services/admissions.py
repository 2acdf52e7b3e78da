"""
Admissions Service

Application review workflow and admissions analytics.

Seat counts and statuses are only ever changed through
`DocumentStore.compare_and_update`, so two reviewers accepting the last
seat at the same time cannot both succeed.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from careerguide.core.config import settings
from careerguide.core.exceptions import (
    CourseNotFoundError,
    NoSeatsAvailableError,
    StaleStatusError,
)
from careerguide.core.logging_config import logger
from careerguide.schemas.enums import AdmissionStatus, ApplicationStatus
from careerguide.services import collections
from careerguide.services.activity import record_activity
from careerguide.services.notifications import notify
from careerguide.services.store import DocumentStore, eq
from careerguide.utils.dates import to_datetime


# ==================== Seats ====================

async def reserve_seat(store: DocumentStore, course_id: str, max_retries: Optional[int] = None) -> int:
    """Decrement availableSeats by one; returns the remaining count"""
    attempts = max_retries or settings.SEAT_RESERVATION_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        course = await store.get(collections.COURSES, course_id)
        if not course:
            raise CourseNotFoundError(course_id)

        seats = int(course.get("availableSeats") or 0)
        if seats <= 0:
            raise NoSeatsAvailableError(course_id)

        swapped = await store.compare_and_update(
            collections.COURSES,
            course_id,
            expected={"availableSeats": course.get("availableSeats")},
            changes={"availableSeats": seats - 1, "updatedAt": datetime.utcnow().isoformat()},
        )
        if swapped:
            return seats - 1
        logger.warning(f"[Admissions] Seat reservation on {course_id} lost a race (attempt {attempt}/{attempts})")

    raise StaleStatusError("Course", course_id)


async def release_seat(store: DocumentStore, course_id: str, max_retries: Optional[int] = None) -> Optional[int]:
    """Give a seat back, never exceeding totalSeats"""
    attempts = max_retries or settings.SEAT_RESERVATION_MAX_RETRIES
    for _ in range(attempts):
        course = await store.get(collections.COURSES, course_id)
        if not course:
            return None
        seats = int(course.get("availableSeats") or 0)
        total = int(course.get("totalSeats") or 0)
        if seats >= total:
            return seats
        swapped = await store.compare_and_update(
            collections.COURSES,
            course_id,
            expected={"availableSeats": course.get("availableSeats")},
            changes={"availableSeats": seats + 1, "updatedAt": datetime.utcnow().isoformat()},
        )
        if swapped:
            return seats + 1
    logger.error(f"[Admissions] Could not release seat on {course_id} after {attempts} attempts")
    return None


async def transition_status(
    store: DocumentStore,
    collection: str,
    resource_type: str,
    doc_id: str,
    expected_status: Any,
    changes: Dict[str, Any],
) -> None:
    """Apply changes only if the status is still what the caller saw"""
    swapped = await store.compare_and_update(collection, doc_id, {"status": expected_status}, changes)
    if not swapped:
        raise StaleStatusError(resource_type, doc_id)


# ==================== Review workflow ====================

async def review_application(
    store: DocumentStore,
    application: Dict[str, Any],
    new_status: ApplicationStatus,
    notes: Optional[str],
    reviewer_id: str,
) -> Dict[str, Any]:
    """
    Move an application to `new_status`.

    Accepting reserves a seat first and creates the admission record;
    moving away from ACCEPTED withdraws the admission and frees the seat.
    The student is notified and the change lands in their activity feed.
    """
    application_id = application["id"]
    previous = application.get("status", ApplicationStatus.PENDING.value)
    accepting = new_status == ApplicationStatus.ACCEPTED and previous != ApplicationStatus.ACCEPTED.value
    unaccepting = previous == ApplicationStatus.ACCEPTED.value and new_status != ApplicationStatus.ACCEPTED

    if accepting:
        await reserve_seat(store, application["courseId"])

    now = datetime.utcnow().isoformat()
    changes = {"status": new_status.value, "reviewNotes": notes or "", "reviewedAt": now, "reviewedBy": reviewer_id}
    try:
        await transition_status(store, collections.APPLICATIONS, "Application", application_id, previous, changes)
    except Exception:
        if accepting:
            await release_seat(store, application["courseId"])
        raise

    linked = []
    if accepting or unaccepting:
        linked = await store.query(collections.ADMISSIONS, [eq("applicationId", application_id)])
    if accepting:
        admitted = {
            "status": AdmissionStatus.ADMITTED.value,
            "admissionDate": now,
            "enrollmentDate": None,
            "notes": notes or "",
        }
        if linked:
            await store.update(collections.ADMISSIONS, linked[0]["id"], admitted)
        else:
            await store.add(collections.ADMISSIONS, {
                "applicationId": application_id,
                "studentId": application["studentId"],
                "courseId": application["courseId"],
                "institutionId": application["institutionId"],
                **admitted,
            })
    elif unaccepting:
        # A WITHDRAWN admission already gave its seat back
        holding = [a for a in linked if a.get("status") != AdmissionStatus.WITHDRAWN.value]
        if holding or not linked:
            await release_seat(store, application["courseId"])
        for admission in holding:
            await store.update(collections.ADMISSIONS, admission["id"], {
                "status": AdmissionStatus.WITHDRAWN.value,
                "notes": notes or admission.get("notes", ""),
            })

    course = await store.get(collections.COURSES, application["courseId"]) or {}
    course_name = course.get("name", "your course")
    readable = new_status.value.replace("_", " ").lower()
    await notify(
        store,
        application["studentId"],
        type="application_status",
        title="Application update",
        message=f"Your application for {course_name} is now {readable}",
        applicationId=application_id,
        status=new_status.value,
    )
    await record_activity(
        store,
        application["studentId"],
        type="application",
        title=f"Application {readable}",
        description=f"{course_name}: {notes}" if notes else course_name,
        action_url=f"/student/applications/{application_id}",
        action_text="View application",
    )
    logger.info(f"[Admissions] Application {application_id}: {previous} -> {new_status.value}")
    return {**application, **changes}


async def change_admission_status(
    store: DocumentStore,
    admission: Dict[str, Any],
    new_status: AdmissionStatus,
    changes: Dict[str, Any],
) -> None:
    """
    Apply an enrollment change to an admission.

    Withdrawing gives the seat back. Leaving WITHDRAWN takes a seat again,
    so it fails with 409 when the course is full.
    """
    previous = admission.get("status")
    withdrawn = AdmissionStatus.WITHDRAWN.value
    rejoining = previous == withdrawn and new_status != AdmissionStatus.WITHDRAWN
    withdrawing = previous != withdrawn and new_status == AdmissionStatus.WITHDRAWN

    if rejoining:
        await reserve_seat(store, admission["courseId"])
    try:
        await transition_status(store, collections.ADMISSIONS, "Admission", admission["id"], previous, changes)
    except Exception:
        if rejoining:
            await release_seat(store, admission["courseId"])
        raise

    if withdrawing:
        await release_seat(store, admission["courseId"])
    logger.info(f"[Admissions] Admission {admission['id']}: {previous} -> {new_status.value}")


# ==================== Analytics ====================

def _rate(part: int, whole: int) -> float:
    return round(part * 100.0 / whole, 1) if whole else 0.0


def admission_stats(applications: List[Dict[str, Any]], admissions: List[Dict[str, Any]]) -> Dict[str, Any]:
    accepted = sum(1 for a in applications if a.get("status") == ApplicationStatus.ACCEPTED.value)
    enrolled = sum(1 for a in admissions if a.get("status") == AdmissionStatus.ENROLLED.value)
    return {
        "total": len(admissions),
        "acceptanceRate": _rate(accepted, len(applications)),
        "enrollmentRate": _rate(enrolled, len(admissions)),
    }


PERIODS = {"daily": 7, "weekly": 8, "monthly": 6}


def _bucket(dt: datetime, period: str) -> str:
    if period == "daily":
        return dt.strftime("%Y-%m-%d")
    if period == "weekly":
        year, week, _ = dt.isocalendar()
        return f"{year}-W{week:02d}"
    return dt.strftime("%Y-%m")


def _labels(period: str, now: datetime) -> List[str]:
    count = PERIODS[period]
    if period == "daily":
        points = [now - timedelta(days=i) for i in range(count)]
    elif period == "weekly":
        points = [now - timedelta(weeks=i) for i in range(count)]
    else:
        points = []
        year, month = now.year, now.month
        for _ in range(count):
            points.append(datetime(year, month, 1))
            year, month = (year - 1, 12) if month == 1 else (year, month - 1)
    return [_bucket(p, period) for p in reversed(points)]


def admission_trends(admissions: List[Dict[str, Any]], period: str = "monthly",
                     now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Admissions per day/week/month over a fixed trailing window"""
    if period not in PERIODS:
        period = "monthly"
    now = now or datetime.utcnow()
    counts = Counter(
        _bucket(dt, period)
        for dt in (to_datetime(a.get("admissionDate")) for a in admissions)
        if dt is not None
    )
    return [{"label": label, "count": counts.get(label, 0)} for label in _labels(period, now)]


def course_distribution(admissions: List[Dict[str, Any]], courses: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    counts = Counter(a.get("courseId") for a in admissions)
    return sorted(
        (
            {"courseId": course_id, "course": courses.get(course_id, {}).get("name", "Unknown course"), "count": n}
            for course_id, n in counts.items()
        ),
        key=lambda d: d["count"],
        reverse=True,
    )
