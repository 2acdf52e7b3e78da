"""
Institution Admissions API - analytics, enrollment and reports
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from careerguide.core.config import settings
from careerguide.core.exceptions import AdmissionNotFoundError
from careerguide.modules.auth.dependencies import get_current_institution
from careerguide.schemas.auth import Principal
from careerguide.schemas.enums import AdmissionStatus, parse_enum
from careerguide.schemas.institution import EnrollmentUpdate, ReportRequest
from careerguide.services import collections
from careerguide.services.admissions import (
    admission_stats,
    admission_trends,
    change_admission_status,
    course_distribution,
)
from careerguide.services.firebase import get_document_store
from careerguide.services.notifications import notify
from careerguide.services.records import get_owned, hydrate, matches_search
from careerguide.services.reports import (
    ADMISSION_COLUMNS,
    SUMMARY_COLUMNS,
    csv_response,
    rows_as_dicts,
    summarize_by_course,
    to_csv,
)
from careerguide.services.store import DocumentStore, eq
from careerguide.utils.dates import in_range, to_datetime
from careerguide.utils.pagination import paginate

router = APIRouter()


async def _admissions(store: DocumentStore, institution_id: str):
    return await store.query(collections.ADMISSIONS, [eq("institutionId", institution_id)])


def _newest_first(records):
    return sorted(records, key=lambda a: to_datetime(a.get("admissionDate")) or datetime.min, reverse=True)


@router.get("/stats")
async def get_stats(
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    applications = await store.query(collections.APPLICATIONS, [eq("institutionId", principal.uid)])
    admissions = await _admissions(store, principal.uid)
    return {"success": True, "stats": admission_stats(applications, admissions)}


@router.get("/trends")
async def get_trends(
    period: str = Query("monthly", pattern="^(daily|weekly|monthly)$"),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    admissions = await _admissions(store, principal.uid)
    return {"success": True, "trends": admission_trends(admissions, period)}


@router.get("/distribution")
async def get_distribution(
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    admissions = await _admissions(store, principal.uid)
    courses = await store.query(collections.COURSES, [eq("institutionId", principal.uid)])
    distribution = course_distribution(admissions, {c["id"]: c for c in courses})
    return {"success": True, "distribution": distribution}


@router.get("/recent")
async def get_recent(
    search: Optional[str] = Query(None),
    course: Optional[str] = Query(None, description="Course id"),
    admission_status: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    admissions = await _admissions(store, principal.uid)
    wanted = parse_enum(AdmissionStatus, admission_status)
    admissions = [
        a for a in admissions
        if (not course or a.get("courseId") == course) and (not wanted or a.get("status") == wanted.value)
    ]
    admissions = [a for a in await hydrate(store, admissions) if matches_search(a, search)]
    result = paginate(_newest_first(admissions), page, limit)
    return {"success": True, "admissions": result["items"], "pagination": result["pagination"]}


@router.put("/{admission_id}/enrollment")
async def update_enrollment(
    admission_id: str,
    enrollment: EnrollmentUpdate,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Move an admission to ENROLLED, DEFERRED or WITHDRAWN"""
    admission = await get_owned(store, collections.ADMISSIONS, admission_id, "institutionId", principal.uid)
    if not admission:
        raise AdmissionNotFoundError(admission_id)

    previous = admission.get("status")
    changes = {"status": enrollment.status.value, "updatedAt": datetime.utcnow().isoformat()}
    if enrollment.notes is not None:
        changes["notes"] = enrollment.notes
    if enrollment.enrollmentDate:
        changes["enrollmentDate"] = enrollment.enrollmentDate.isoformat()
    elif enrollment.status == AdmissionStatus.ENROLLED and not admission.get("enrollmentDate"):
        changes["enrollmentDate"] = datetime.utcnow().date().isoformat()

    await change_admission_status(store, admission, enrollment.status, changes)

    if previous != enrollment.status.value:
        await notify(
            store,
            admission["studentId"],
            type="admission_status",
            title="Admission update",
            message=f"Your admission status is now {enrollment.status.value.lower()}",
            admissionId=admission_id,
            status=enrollment.status.value,
        )

    hydrated = (await hydrate(store, [{**admission, **changes}]))[0]
    return {"success": True, "message": "Enrollment status updated", "admission": hydrated}


@router.get("/export")
async def export_admissions(
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    admissions = _newest_first(await hydrate(store, await _admissions(store, principal.uid)))
    return csv_response(to_csv(admissions, ADMISSION_COLUMNS), "admissions_export.csv")


@router.post("/report")
async def generate_report(
    report: ReportRequest,
    principal: Principal = Depends(get_current_institution),
    store: DocumentStore = Depends(get_document_store),
):
    """Summary (per course) or detailed admissions report for a date range"""
    admissions = [
        a for a in await _admissions(store, principal.uid)
        if in_range(a.get("admissionDate"), report.startDate, report.endDate)
    ]
    admissions = _newest_first(await hydrate(store, admissions))

    if report.type == "summary":
        rows, columns = summarize_by_course(admissions), SUMMARY_COLUMNS
    else:
        rows, columns = admissions, ADMISSION_COLUMNS

    if report.format == "csv":
        return csv_response(to_csv(rows, columns), f"admissions_{report.type}_report.csv")

    return {
        "success": True,
        "report": {
            "type": report.type,
            "startDate": report.startDate.isoformat() if report.startDate else None,
            "endDate": report.endDate.isoformat() if report.endDate else None,
            "generatedAt": datetime.utcnow().isoformat(),
            "rows": rows_as_dicts(rows, columns),
        },
    }
