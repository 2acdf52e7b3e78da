"""
Institution Applications API - review queue, export and documents
"""
import os
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from urllib.parse import urlparse

from careerguide.core.config import settings
from careerguide.core.exceptions import ApplicationNotFoundError
from careerguide.modules.auth.dependencies import get_current_institution
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import ApplicationStatus, parse_enum
from careerguide.schemas.institution import ApplicationReview
from careerguide.services import collections
from careerguide.services.admissions import review_application
from careerguide.services.firebase import get_document_store
from careerguide.services.records import get_owned, hydrate, matches_search
from careerguide.services.reports import APPLICATION_COLUMNS, csv_response, to_csv
from careerguide.services.store import DocumentStore, eq
from careerguide.utils.dates import in_range, to_datetime
from careerguide.utils.pagination import paginate

router = APIRouter()


async def filtered_applications(
    store: DocumentStore,
    institution_id: str,
    search: Optional[str] = None,
    course: Optional[str] = None,
    application_status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Hydrated applications matching the filters, newest first"""
    filters = [eq("institutionId", institution_id)]
    if course:
        filters.append(eq("courseId", course))
    wanted = parse_enum(ApplicationStatus, application_status)
    if wanted:
        filters.append(eq("status", wanted.value))

    applications = await store.query(collections.APPLICATIONS, filters)
    applications = [a for a in applications if in_range(a.get("appliedDate"), date_from, date_to)]
    applications = [a for a in await hydrate(store, applications) if matches_search(a, search)]
    applications.sort(key=lambda a: to_datetime(a.get("appliedDate")) or datetime.min, reverse=True)
    return applications


def _document_entry(document: Any) -> Dict[str, Any]:
    if isinstance(document, dict):
        return {"name": document.get("name") or document.get("url", ""), **document}
    url = str(document)
    return {"name": os.path.basename(urlparse(url).path) or url, "url": url}


async def _owned_application(store: DocumentStore, application_id: str, institution_id: str) -> dict:
    application = await get_owned(store, collections.APPLICATIONS, application_id, "institutionId", institution_id)
    if not application:
        raise ApplicationNotFoundError(application_id)
    return application


@router.get("/applications")
async def list_applications(
    search: Optional[str] = Query(None),
    course: Optional[str] = Query(None, description="Course id"),
    application_status: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    applications = await filtered_applications(
        store, principal.uid, search, course, application_status, date_from, date_to
    )
    result = paginate(applications, page, limit)
    return {"success": True, "applications": result["items"], "pagination": result["pagination"]}


@router.get("/applications/export")
async def export_applications(
    search: Optional[str] = Query(None),
    course: Optional[str] = Query(None),
    application_status: Optional[str] = Query(None, alias="status"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Export the filtered application list as CSV"""
    applications = await filtered_applications(
        store, principal.uid, search, course, application_status, date_from, date_to
    )
    return csv_response(to_csv(applications, APPLICATION_COLUMNS), "applications_export.csv")


@router.get("/applications/{application_id}")
async def get_application(
    application_id: str,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _owned_application(store, application_id, principal.uid)
    hydrated = (await hydrate(store, [application]))[0]
    return {"success": True, "application": hydrated}


@router.put("/applications/{application_id}/review")
async def review(
    application_id: str,
    review_data: ApplicationReview,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Change an application's status; accepting reserves a seat and admits the student"""
    application = await _owned_application(store, application_id, principal.uid)
    updated = await review_application(store, application, review_data.status, review_data.notes, principal.uid)
    return {
        "success": True,
        "message": f"Application {review_data.status.value.replace('_', ' ').lower()}",
        "application": updated,
    }


@router.get("/applications/{application_id}/documents")
async def get_application_documents(
    application_id: str,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    application = await _owned_application(store, application_id, principal.uid)
    documents = [_document_entry(d) for d in application.get("documents") or []]
    return {"success": True, "documents": documents}
