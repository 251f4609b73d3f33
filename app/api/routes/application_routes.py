"""
Application Routes

POST   /applications - Apply to a job (job seeker)
GET    /applications/my-applications - Caller's applications (job seeker)
GET    /applications/recruiter/applications - Applications to caller's jobs (recruiter)
GET    /applications/stats - Counts for caller's jobs (recruiter)
GET    /applications/job/{job_id} - Applications for one owned job (recruiter)
GET    /applications/check-applied/{job_id} - Has the caller applied? (job seeker)
GET    /applications/{application_id} - Details (applicant, recruiter or admin)
PUT    /applications/{application_id}/status - Review (recruiter party or admin)
DELETE /applications/{application_id} - Withdraw (applicant only)
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.database import Database

from app.db.mongodb import get_db
from app.core.auth import (
    check_application_access, get_current_user, is_job_seeker, is_recruiter, require_owner, Identity
)
from app.services.analytics_service import AnalyticsService
from app.services.application_service import ApplicationService
from app.services.job_service import JobService
from app.utils.pagination import Pagination, get_pagination
from app.schemas.schemas import (
    ApplicationCreate, ApplicationEnvelope, ApplicationListResponse, ApplicationStatsResponse,
    ApplicationStatus, ApplicationStatusUpdate, AppliedStatus, CheckAppliedResponse
)

router = APIRouter(prefix="/applications", tags=["Applications"])

owned_job = require_owner(lambda db, job_id: JobService(db).get_by_id(job_id), "Job", param="job_id")


def _load(service: ApplicationService, application_id: str) -> dict:
    application = service.get_by_id(application_id)
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return application


def _page(service: ApplicationService, docs, total, pagination: Pagination, viewer: Identity):
    return ApplicationListResponse(applications=service.to_responses(docs, viewer), **pagination.meta(total))


@router.post("", response_model=ApplicationEnvelope, status_code=201)
def apply_to_job(
    request: ApplicationCreate,
    user: Identity = Depends(is_job_seeker),
    db: Database = Depends(get_db)
):
    """
    Apply to an active, approved job.

    A second application to the same job is rejected by the unique
    (job, applicant) index.
    """
    service = ApplicationService(db)
    doc = service.create(request, user)
    return ApplicationEnvelope(message="Application submitted successfully", application=service.to_response(doc, user))


@router.get("/my-applications", response_model=ApplicationListResponse)
def my_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    user: Identity = Depends(is_job_seeker),
    db: Database = Depends(get_db)
):
    service = ApplicationService(db)
    docs, total = service.list_for_applicant(
        user.id, pagination, status_filter.value if status_filter else None
    )
    return _page(service, docs, total, pagination, user)


@router.get("/recruiter/applications", response_model=ApplicationListResponse)
def recruiter_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    job_id: Optional[str] = Query(None, alias="jobId"),
    pagination: Pagination = Depends(get_pagination),
    user: Identity = Depends(is_recruiter),
    db: Database = Depends(get_db)
):
    service = ApplicationService(db)
    docs, total = service.list_for_recruiter(
        user.id, pagination, status_filter.value if status_filter else None, job_id
    )
    return _page(service, docs, total, pagination, user)


@router.get("/stats", response_model=ApplicationStatsResponse)
def application_stats(user: Identity = Depends(is_recruiter), db: Database = Depends(get_db)):
    """Totals for applications to the caller's jobs: all, last 7 days, per status."""
    return ApplicationStatsResponse(**AnalyticsService(db).recruiter_stats(user.id))


@router.get("/job/{job_id}", response_model=ApplicationListResponse, dependencies=[Depends(is_recruiter)])
def job_applications(
    job_id: str,
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    job: dict = Depends(owned_job),
    user: Identity = Depends(get_current_user),
    db: Database = Depends(get_db)
):
    service = ApplicationService(db)
    docs, total = service.list_for_job(job["_id"], pagination, status_filter.value if status_filter else None)
    return _page(service, docs, total, pagination, user)


@router.get("/check-applied/{job_id}", response_model=CheckAppliedResponse)
def check_applied(job_id: str, user: Identity = Depends(is_job_seeker), db: Database = Depends(get_db)):
    application = ApplicationService(db).find_for(job_id, user.id)
    if not application:
        return CheckAppliedResponse(has_applied=False)
    return CheckAppliedResponse(
        has_applied=True,
        application=AppliedStatus(
            id=str(application["_id"]), status=application["status"], applied_at=application.get("applied_at")
        )
    )


@router.get("/{application_id}", response_model=ApplicationEnvelope)
def get_application(application_id: str, user: Identity = Depends(get_current_user), db: Database = Depends(get_db)):
    service = ApplicationService(db)
    application = _load(service, application_id)
    check_application_access(user, application)
    return ApplicationEnvelope(application=service.to_response(application, user))


@router.put("/{application_id}/status", response_model=ApplicationEnvelope)
def update_application_status(
    application_id: str,
    request: ApplicationStatusUpdate,
    user: Identity = Depends(is_recruiter),
    db: Database = Depends(get_db)
):
    """Any review status may be set from any other; "reviewed" stamps reviewedAt."""
    service = ApplicationService(db)
    application = _load(service, application_id)
    check_application_access(user, application, parties=("recruiter",))
    doc = service.update_status(application, request)
    return ApplicationEnvelope(
        message="Application status updated successfully", application=service.to_response(doc, user)
    )


@router.delete("/{application_id}", response_model=ApplicationEnvelope)
def withdraw_application(
    application_id: str,
    user: Identity = Depends(is_job_seeker),
    db: Database = Depends(get_db)
):
    """Withdraw own application. Admins cannot withdraw on an applicant's behalf."""
    service = ApplicationService(db)
    application = _load(service, application_id)
    check_application_access(user, application, parties=("applicant",), allow_admin=False)
    doc = service.withdraw(application)
    return ApplicationEnvelope(message="Application withdrawn successfully", application=service.to_response(doc, user))
