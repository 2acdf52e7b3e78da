"""
Record hydration helpers

Applications and admissions only store ids; API responses embed short
`student` and `course` summaries. Lookups are batched per request.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

from careerguide.services import collections
from careerguide.services.store import DocumentStore


def student_summary(user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not user:
        return {"id": None, "name": "Unknown student", "email": "", "photo": None}
    profile = user.get("profileData") or {}
    return {
        "id": user.get("id"),
        "name": profile.get("name") or user.get("email", ""),
        "email": user.get("email", ""),
        "photo": profile.get("photo"),
        "phone": profile.get("phone"),
        "gpa": profile.get("gpa"),
        "year": profile.get("year"),
        "course": profile.get("course"),
        "status": profile.get("status", "ACTIVE"),
    }


def course_summary(course: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not course:
        return {"id": None, "name": "Unknown course", "code": ""}
    return {
        "id": course.get("id"),
        "name": course.get("name", ""),
        "code": course.get("code", ""),
        "faculty": course.get("faculty"),
    }


async def load_many(store: DocumentStore, collection: str, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """Fetch documents by id concurrently; missing ids are left out"""
    unique = [doc_id for doc_id in dict.fromkeys(ids) if doc_id]
    docs = await asyncio.gather(*(store.get(collection, doc_id) for doc_id in unique))
    return {doc_id: doc for doc_id, doc in zip(unique, docs) if doc}


async def hydrate(store: DocumentStore, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Attach `student` and `course` summaries to application/admission records"""
    users, courses = await asyncio.gather(
        load_many(store, collections.USERS, (r.get("studentId") for r in records)),
        load_many(store, collections.COURSES, (r.get("courseId") for r in records)),
    )
    return [
        {
            **record,
            "student": student_summary(users.get(record.get("studentId"))),
            "course": course_summary(courses.get(record.get("courseId"))),
        }
        for record in records
    ]


def matches_search(record: Dict[str, Any], search: Optional[str]) -> bool:
    """Case-insensitive substring match on the embedded student/course names"""
    if not search:
        return True
    needle = search.strip().lower()
    haystack = [
        record.get("student", {}).get("name"),
        record.get("student", {}).get("email"),
        record.get("course", {}).get("name"),
        record.get("course", {}).get("code"),
    ]
    return any(needle in str(value).lower() for value in haystack if value)


async def get_owned(
    store: DocumentStore,
    collection: str,
    doc_id: str,
    owner_field: str,
    owner_id: str,
) -> Optional[Dict[str, Any]]:
    """Document by id, or None when it is missing or belongs to someone else"""
    doc = await store.get(collection, doc_id)
    if not doc or doc.get(owner_field) != owner_id:
        return None
    return doc
