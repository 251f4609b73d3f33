"""
Job Routes

POST   /jobs - Create job posting (recruiter or admin)
GET    /jobs - List active, approved jobs with filters
GET    /jobs/search/suggestions - Title suggestions
GET    /jobs/recruiter/my-jobs - Caller's own postings
GET    /jobs/{job_id} - Job details (counts a view)
PUT    /jobs/{job_id} - Update job (owner or admin)
DELETE /jobs/{job_id} - Delete job (owner or admin)
POST   /jobs/{job_id}/toggle-status - Flip active flag (owner or admin)
POST   /jobs/{job_id}/increment-views - Count a view
"""

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.database import Database

from app.db.mongodb import get_db
from app.core.auth import get_optional_user, is_recruiter, require_owner, Identity
from app.services.job_service import JobFilters, JobService
from app.utils.pagination import Pagination, get_pagination
from app.schemas.schemas import (
    ExperienceLevel, JobCreate, JobUpdate, JobResponse, JobEnvelope, JobListResponse,
    JobType, MessageResponse, SuggestionsResponse, ViewCountResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

owned_job = require_owner(lambda db, job_id: JobService(db).get_by_id(job_id), "Job", param="job_id")


def _job_list(service: JobService, docs, total, pagination: Pagination) -> JobListResponse:
    recruiters = service.recruiters_for(docs)
    return JobListResponse(
        jobs=[JobResponse.from_doc(d, recruiters.get(str(d["recruiter_id"]))) for d in docs],
        has_next_page=pagination.has_next(total),
        has_prev_page=pagination.has_prev(),
        **pagination.meta(total)
    )


@router.post("", response_model=JobEnvelope, status_code=201)
def create_job(job: JobCreate, user: Identity = Depends(is_recruiter), db: Database = Depends(get_db)):
    """Create a new job posting. Recruiter postings wait for admin approval."""
    service = JobService(db)
    doc = service.create(job, user)
    return JobEnvelope(message="Job created successfully", job=JobResponse.from_doc(doc, user.document))


@router.get("", response_model=JobListResponse)
def list_jobs(
    search: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[JobType] = Query(None, alias="jobType"),
    experience: Optional[ExperienceLevel] = None,
    min_salary: Optional[float] = Query(None, alias="minSalary"),
    max_salary: Optional[float] = Query(None, alias="maxSalary"),
    skills: Optional[str] = Query(None, description="Comma-separated, matches any"),
    sort_by: Literal["createdAt", "title", "salary", "views", "applications"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    pagination: Pagination = Depends(get_pagination),
    db: Database = Depends(get_db)
):
    """
    List jobs visible to the public (active and approved).

    Salary bounds match postings whose range overlaps [minSalary, maxSalary].
    """
    filters = JobFilters(
        search=search,
        location=location,
        job_type=job_type.value if job_type else None,
        experience=experience.value if experience else None,
        min_salary=min_salary,
        max_salary=max_salary,
        skills=skills,
    )
    service = JobService(db)
    docs, total = service.list_public(filters, pagination, sort_by, sort_order)
    return _job_list(service, docs, total, pagination)


@router.get("/search/suggestions", response_model=SuggestionsResponse)
def job_suggestions(q: str = "", db: Database = Depends(get_db)):
    return SuggestionsResponse(suggestions=JobService(db).suggestions(q))


@router.get("/recruiter/my-jobs", response_model=JobListResponse)
def my_jobs(
    status_filter: Optional[Literal["active", "pending", "inactive"]] = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    user: Identity = Depends(is_recruiter),
    db: Database = Depends(get_db)
):
    service = JobService(db)
    docs, total = service.list_for_recruiter(user.id, pagination, status_filter)
    return _job_list(service, docs, total, pagination)


@router.get("/{job_id}", response_model=JobEnvelope)
def get_job(job_id: str, user: Optional[Identity] = Depends(get_optional_user), db: Database = Depends(get_db)):
    """
    Job details. Every fetch counts one view.

    Inactive or unapproved postings are only visible to their owner and admins.
    """
    service = JobService(db)
    job = service.get_by_id(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    if not (job.get("is_active") and job.get("is_approved")):
        privileged = user is not None and (user.is_admin or str(job["recruiter_id"]) == user.id)
        if not privileged:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    job = service.increment_views(job["_id"]) or job
    recruiter = service.users.get_by_id(job["recruiter_id"])
    return JobEnvelope(job=JobResponse.from_doc(job, recruiter))


@router.put("/{job_id}", response_model=JobEnvelope)
def update_job(job_id: str, update: JobUpdate, job: dict = Depends(owned_job), db: Database = Depends(get_db)):
    """Update job. Only the owning recruiter or an admin."""
    service = JobService(db)
    doc = service.update(job["_id"], update)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    recruiter = service.users.get_by_id(doc["recruiter_id"])
    return JobEnvelope(message="Job updated successfully", job=JobResponse.from_doc(doc, recruiter))


@router.delete("/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, job: dict = Depends(owned_job), db: Database = Depends(get_db)):
    if not JobService(db).delete(job["_id"]):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return MessageResponse(message="Job deleted successfully")


@router.post("/{job_id}/toggle-status", response_model=JobEnvelope)
def toggle_job_status(job_id: str, job: dict = Depends(owned_job), db: Database = Depends(get_db)):
    service = JobService(db)
    doc = service.set_active(job["_id"], not job.get("is_active", True))
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    message = "Job activated successfully" if doc["is_active"] else "Job deactivated successfully"
    return JobEnvelope(message=message, job=JobResponse.from_doc(doc))


@router.post("/{job_id}/increment-views", response_model=ViewCountResponse)
def increment_views(job_id: str, db: Database = Depends(get_db)):
    doc = JobService(db).increment_views(job_id)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return ViewCountResponse(views=doc["views"])
