"""
Company API - job postings
"""
from datetime import datetime

from fastapi import APIRouter, Depends, status

from careerguide.api.v1.endpoints.notifications import notification_stream_router
from careerguide.core.exceptions import JobNotFoundError
from careerguide.modules.auth.dependencies import get_current_company
from careerguide.schemas.auth import Principal
from careerguide.schemas.company import JobCreate, JobStatusUpdate, JobUpdate
from careerguide.schemas.enums import Role
from careerguide.services import collections
from careerguide.services.admissions import transition_status
from careerguide.services.firebase import get_document_store
from careerguide.services.records import get_owned
from careerguide.services.store import DocumentStore, eq
from careerguide.utils.dates import to_datetime

router = APIRouter(prefix="/company", tags=["Company"])
router.include_router(notification_stream_router(Role.COMPANY))


async def _owned_job(store: DocumentStore, job_id: str, company_id: str) -> dict:
    job = await get_owned(store, collections.JOBS, job_id, "companyId", company_id)
    if not job:
        raise JobNotFoundError(job_id)
    return job


@router.get("/jobs")
async def list_jobs(
    principal: Principal = Depends(get_current_company),
    store: DocumentStore = Depends(get_document_store),
):
    jobs = await store.query(collections.JOBS, [eq("companyId", principal.uid)])
    jobs.sort(key=lambda j: to_datetime(j.get("createdAt")) or datetime.min, reverse=True)
    return {"success": True, "jobs": jobs}


@router.post("/jobs", status_code=status.HTTP_201_CREATED)
async def create_job(
    job_data: JobCreate,
    principal: Principal = Depends(get_current_company),
    store: DocumentStore = Depends(get_document_store),
):
    user = await store.get(collections.USERS, principal.uid) or {}
    company_name = (user.get("profileData") or {}).get("name") or user.get("email") or principal.email
    job = {
        **job_data.model_dump(mode="json"),
        "companyId": principal.uid,
        "company": company_name,
        "createdAt": datetime.utcnow().isoformat(),
    }
    job_id = await store.add(collections.JOBS, job)
    return {"success": True, "message": "Job posted successfully", "job": {"id": job_id, **job}}


@router.put("/jobs/{job_id}")
async def update_job(
    job_id: str,
    job_data: JobUpdate,
    principal: Principal = Depends(get_current_company),
    store: DocumentStore = Depends(get_document_store),
):
    job = await _owned_job(store, job_id, principal.uid)
    changes = job_data.model_dump(mode="json", exclude_unset=True)
    changes["updatedAt"] = datetime.utcnow().isoformat()
    await store.update(collections.JOBS, job_id, changes)
    return {"success": True, "message": "Job updated successfully", "job": {**job, **changes}}


@router.put("/jobs/{job_id}/status")
async def update_job_status(
    job_id: str,
    status_data: JobStatusUpdate,
    principal: Principal = Depends(get_current_company),
    store: DocumentStore = Depends(get_document_store),
):
    job = await _owned_job(store, job_id, principal.uid)
    changes = {"status": status_data.status.value, "updatedAt": datetime.utcnow().isoformat()}
    await transition_status(store, collections.JOBS, "Job", job_id, job.get("status"), changes)
    return {"success": True, "message": f"Job is now {status_data.status.value}", "job": {**job, **changes}}
