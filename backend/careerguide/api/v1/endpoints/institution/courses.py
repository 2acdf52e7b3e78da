"""
Institution Courses API - faculties and course catalogue
"""
from collections import Counter
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from careerguide.core.exceptions import CourseNotFoundError, StaleStatusError, ValidationError
from careerguide.core.logging_config import logger
from careerguide.modules.auth.dependencies import get_current_institution
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import CourseStatus, parse_enum
from careerguide.schemas.institution import CourseCreate, CourseStatusUpdate, CourseUpdate, FacultyCreate
from careerguide.services import collections
from careerguide.services.admissions import transition_status
from careerguide.services.firebase import get_document_store
from careerguide.services.records import get_owned
from careerguide.services.store import DocumentStore, eq

router = APIRouter()


async def _application_counts(store: DocumentStore, institution_id: str) -> Counter:
    applications = await store.query(collections.APPLICATIONS, [eq("institutionId", institution_id)])
    return Counter(a.get("courseId") for a in applications)


async def _resolve_faculty(store: DocumentStore, institution_id: str, faculty_id: Optional[str]) -> Optional[str]:
    """Faculty name for a faculty id owned by the institution"""
    if not faculty_id:
        return None
    faculty = await get_owned(store, collections.FACULTIES, faculty_id, "institutionId", institution_id)
    if not faculty:
        raise ValidationError("Invalid faculty", field="facultyId", code="INVALID_FACULTY")
    return faculty.get("name")


async def _owned_course(store: DocumentStore, course_id: str, institution_id: str) -> dict:
    course = await get_owned(store, collections.COURSES, course_id, "institutionId", institution_id)
    if not course:
        raise CourseNotFoundError(course_id)
    return course


# ============================================
# Faculties
# ============================================

@router.get("/faculties")
async def list_faculties(
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    faculties = await store.query(collections.FACULTIES, [eq("institutionId", principal.uid)])
    faculties.sort(key=lambda f: (f.get("name") or "").lower())
    return {"success": True, "faculties": faculties}


@router.post("/faculties", status_code=status.HTTP_201_CREATED)
async def create_faculty(
    faculty_data: FacultyCreate,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    faculty = {
        "institutionId": principal.uid,
        "name": faculty_data.name.strip(),
        "createdAt": datetime.utcnow().isoformat(),
    }
    faculty_id = await store.add(collections.FACULTIES, faculty)
    return {"success": True, "message": "Faculty created", "faculty": {"id": faculty_id, **faculty}}


# ============================================
# Courses
# ============================================

@router.get("/courses")
async def list_courses(
    search: Optional[str] = Query(None),
    faculty: Optional[str] = Query(None, description="Faculty id"),
    course_status: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """List the institution's courses with their application counts"""
    courses = await store.query(collections.COURSES, [eq("institutionId", principal.uid)])
    counts = await _application_counts(store, principal.uid)

    wanted_status = parse_enum(CourseStatus, course_status)
    needle = (search or "").strip().lower()

    results = []
    for course in courses:
        if faculty and course.get("facultyId") != faculty:
            continue
        if wanted_status and course.get("status") != wanted_status.value:
            continue
        if needle and needle not in f"{course.get('name', '')} {course.get('code', '')}".lower():
            continue
        results.append({**course, "applicationCount": counts.get(course["id"], 0)})

    results.sort(key=lambda c: (c.get("name") or "").lower())
    return {"success": True, "courses": results}


@router.get("/courses/{course_id}")
async def get_course(
    course_id: str,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    course = await _owned_course(store, course_id, principal.uid)
    counts = await _application_counts(store, principal.uid)
    return {"success": True, "course": {**course, "applicationCount": counts.get(course_id, 0)}}


@router.post("/courses", status_code=status.HTTP_201_CREATED)
async def create_course(
    course_data: CourseCreate,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    faculty_name = await _resolve_faculty(store, principal.uid, course_data.facultyId)
    now = datetime.utcnow().isoformat()
    course = {
        **course_data.model_dump(mode="json"),
        "institutionId": principal.uid,
        "faculty": faculty_name,
        "availableSeats": course_data.totalSeats,
        "createdAt": now,
        "updatedAt": now,
    }
    course_id = await store.add(collections.COURSES, course)
    logger.info(f"[Courses] {principal.uid} created course {course_id}")
    return {
        "success": True,
        "message": "Course created successfully",
        "course": {"id": course_id, **course, "applicationCount": 0},
    }


@router.put("/courses/{course_id}")
async def update_course(
    course_id: str,
    course_data: CourseUpdate,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Update course details; changing totalSeats keeps the number of taken seats"""
    course = await _owned_course(store, course_id, principal.uid)
    changes = course_data.model_dump(mode="json", exclude_unset=True)

    if "facultyId" in changes:
        changes["faculty"] = await _resolve_faculty(store, principal.uid, changes["facultyId"])

    expected = {}
    if changes.get("totalSeats") is not None:
        total = int(course.get("totalSeats") or 0)
        available = int(course.get("availableSeats") or 0)
        taken = max(0, total - available)
        changes["availableSeats"] = max(0, changes["totalSeats"] - taken)
        expected = {"availableSeats": course.get("availableSeats")}

    changes["updatedAt"] = datetime.utcnow().isoformat()
    if expected:
        swapped = await store.compare_and_update(collections.COURSES, course_id, expected, changes)
        if not swapped:
            raise StaleStatusError("Course", course_id)
    else:
        await store.update(collections.COURSES, course_id, changes)

    return {"success": True, "message": "Course updated successfully", "course": {**course, **changes}}


@router.put("/courses/{course_id}/status")
async def update_course_status(
    course_id: str,
    status_data: Optional[CourseStatusUpdate] = None,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Set the course status, or toggle ACTIVE <-> INACTIVE when none is given"""
    course = await _owned_course(store, course_id, principal.uid)
    current = parse_enum(CourseStatus, course.get("status")) or CourseStatus.ACTIVE
    target = status_data.status if status_data and status_data.status else current.toggled()

    changes = {"status": target.value, "updatedAt": datetime.utcnow().isoformat()}
    await transition_status(store, collections.COURSES, "Course", course_id, course.get("status"), changes)
    return {"success": True, "message": f"Course is now {target.value}", "course": {**course, **changes}}
