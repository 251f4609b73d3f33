"""
Admin Routes (admin role required on every route)

GET    /admin/dashboard - Totals and recent activity
GET    /admin/users - All users with filters
PUT    /admin/users/{user_id}/status - Activate / deactivate a user
DELETE /admin/users/{user_id} - Delete a user
GET    /admin/jobs - All jobs with filters
PUT    /admin/jobs/{job_id}/approve - Approve / reject a job
DELETE /admin/jobs/{job_id} - Delete a job
GET    /admin/applications - All applications with filters
GET    /admin/analytics - Daily trends, top skills and locations
"""

from typing import Literal, Optional

import structlog
from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.database import Database

from app.db.mongodb import get_db
from app.core.auth import is_admin, Identity
from app.services.analytics_service import AnalyticsService
from app.services.application_service import ApplicationService
from app.services.job_service import JobService
from app.services.user_service import UserService
from app.utils.pagination import Pagination, get_pagination
from app.schemas.schemas import (
    AnalyticsResponse, ApplicationListResponse, ApplicationStatus, DashboardResponse, JobApproval,
    JobEnvelope, JobListResponse, JobResponse, MessageResponse, Role, UserEnvelope, UserListResponse,
    UserResponse, UserStatusUpdate
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(is_admin)])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(db: Database = Depends(get_db)):
    return DashboardResponse(**AnalyticsService(db).dashboard())


# ---------------- users ----------------

@router.get("/users", response_model=UserListResponse)
def list_users(
    role: Optional[Role] = None,
    status_filter: Optional[Literal["active", "inactive"]] = Query(None, alias="status"),
    search: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    db: Database = Depends(get_db)
):
    docs, total = UserService(db).list_admin(pagination, role, status_filter, search)
    return UserListResponse(users=[UserResponse.from_doc(d) for d in docs], **pagination.meta(total))


@router.put("/users/{user_id}/status", response_model=UserEnvelope)
def set_user_status(user_id: str, request: UserStatusUpdate, db: Database = Depends(get_db)):
    """A deactivated user is rejected by every protected route on the next request."""
    doc = UserService(db).set_active(user_id, request.is_active)
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    state = "activated" if request.is_active else "deactivated"
    return UserEnvelope(message=f"User {state} successfully", user=UserResponse.from_doc(doc))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, admin: Identity = Depends(is_admin), db: Database = Depends(get_db)):
    if not UserService(db).delete(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    logger.info("admin deleted user", admin_id=admin.id, user_id=user_id)
    return MessageResponse(message="User deleted successfully")


# ---------------- jobs ----------------

@router.get("/jobs", response_model=JobListResponse)
def list_jobs(
    status_filter: Optional[Literal["approved", "pending", "active", "inactive"]] = Query(None, alias="status"),
    search: Optional[str] = None,
    recruiter: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    db: Database = Depends(get_db)
):
    service = JobService(db)
    docs, total = service.list_admin(pagination, status_filter, search, recruiter)
    recruiters = service.recruiters_for(docs)
    return JobListResponse(
        jobs=[JobResponse.from_doc(d, recruiters.get(str(d["recruiter_id"]))) for d in docs],
        has_next_page=pagination.has_next(total),
        has_prev_page=pagination.has_prev(),
        **pagination.meta(total)
    )


@router.put("/jobs/{job_id}/approve", response_model=JobEnvelope)
def approve_job(job_id: str, request: JobApproval, db: Database = Depends(get_db)):
    service = JobService(db)
    doc = service.set_approved(job_id, request.is_approved)
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    if request.reason:
        logger.info("job approval reason", job_id=job_id, reason=request.reason)
    state = "approved" if request.is_approved else "rejected"
    recruiter = service.users.get_by_id(doc["recruiter_id"])
    return JobEnvelope(message=f"Job {state} successfully", job=JobResponse.from_doc(doc, recruiter))


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, db: Database = Depends(get_db)):
    if not JobService(db).delete(job_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return MessageResponse(message="Job deleted successfully")


# ---------------- applications ----------------

@router.get("/applications", response_model=ApplicationListResponse)
def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    job_id: Optional[str] = Query(None, alias="jobId"),
    applicant: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    admin: Identity = Depends(is_admin),
    db: Database = Depends(get_db)
):
    service = ApplicationService(db)
    docs, total = service.list_admin(
        pagination, status_filter.value if status_filter else None, job_id, applicant
    )
    return ApplicationListResponse(applications=service.to_responses(docs, admin), **pagination.meta(total))


# ---------------- analytics ----------------

@router.get("/analytics", response_model=AnalyticsResponse)
def analytics(period: int = Query(30, ge=1, le=365, description="Days to look back"), db: Database = Depends(get_db)):
    return AnalyticsResponse(**AnalyticsService(db).analytics(period))
