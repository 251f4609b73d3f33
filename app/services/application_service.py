"""
Application Service - job applications.

An application joins one job and one applicant. Its recruiter_id is copied
from the job when the application is created and is not re-derived later.

Invariants kept by the database rather than by this module:
- one application per (job, applicant): unique index, DuplicateKeyError
- job.applications counter: atomic $inc
"""

from datetime import datetime
from typing import List, Optional, Tuple

import structlog
from fastapi import HTTPException, status
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.auth import Identity
from app.db.mongodb import get_collection, to_mongo, to_object_id
from app.schemas.schemas import (
    ApplicationCreate, ApplicationResponse, ApplicationStatus, ApplicationStatusUpdate
)
from app.services.job_service import JobService
from app.services.user_service import UserService
from app.utils.pagination import Pagination, paginate

logger = structlog.get_logger(__name__)

NEWEST_FIRST = [("applied_at", DESCENDING), ("_id", DESCENDING)]

# Statuses from which an applicant can no longer withdraw
FINAL_FOR_APPLICANT = (ApplicationStatus.hired.value, ApplicationStatus.withdrawn.value)
WITHDRAWN_MESSAGE = "Cannot update a withdrawn application"


class ApplicationService:
    """Handles the applications collection."""

    def __init__(self, db: Database):
        self.collection: Collection = get_collection(db, "applications")
        self.jobs = JobService(db)
        self.users = UserService(db)

    def get_by_id(self, application_id) -> Optional[dict]:
        oid = to_object_id(application_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def find_for(self, job_id, applicant_id) -> Optional[dict]:
        job_oid = to_object_id(job_id)
        if job_oid is None:
            return None
        return self.collection.find_one({"job_id": job_oid, "applicant_id": to_object_id(applicant_id)})

    # ---------------- create ----------------

    def create(self, data: ApplicationCreate, applicant: Identity) -> dict:
        """
        Submit an application.

        Two writes: insert, then +1 on the job's counter. If the counter write
        fails the insert is rolled back by deleting it, so the two never diverge.
        """
        job = self.jobs.get_by_id(data.job_id)
        if not job:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        if not job.get("is_active") or not job.get("is_approved"):
            raise HTTPException(status_code=400, detail="This job is not available for applications")

        now = datetime.utcnow()
        doc = to_mongo(data.model_dump(exclude={"job_id"}))
        doc.update({
            "job_id": job["_id"],
            "applicant_id": to_object_id(applicant.id),
            "recruiter_id": job["recruiter_id"],
            "status": ApplicationStatus.pending.value,
            "applied_at": now,
            "created_at": now,
            "updated_at": now,
        })

        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="You have already applied for this job")
        doc["_id"] = result.inserted_id

        try:
            if not self.jobs.increment_applications(job["_id"]):
                logger.warning("application counter target missing", job_id=str(job["_id"]))
        except PyMongoError:
            self.collection.delete_one({"_id": result.inserted_id})
            logger.error("application rolled back after counter failure",
                         application_id=str(result.inserted_id), job_id=str(job["_id"]))
            raise

        logger.info("application submitted", application_id=str(result.inserted_id),
                    job_id=str(job["_id"]), applicant_id=applicant.id)
        return doc

    # ---------------- mutations ----------------

    def update_status(self, application: dict, data: ApplicationStatusUpdate) -> dict:
        """Any review status may follow any other; there is no transition table.

        A withdrawn application is closed to reviewers.
        """
        if application.get("status") == ApplicationStatus.withdrawn.value:
            raise HTTPException(status_code=400, detail=WITHDRAWN_MESSAGE)

        now = datetime.utcnow()
        updates = {"status": data.status.value, "updated_at": now}
        if data.recruiter_notes is not None:
            updates["recruiter_notes"] = data.recruiter_notes.strip()
        if data.interview_date:
            updates["interview_date"] = data.interview_date
        if data.status.value == ApplicationStatus.reviewed.value:
            updates["reviewed_at"] = now

        doc = self.collection.find_one_and_update(
            {"_id": application["_id"], "status": {"$ne": ApplicationStatus.withdrawn.value}},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            if self.get_by_id(application["_id"]) is not None:
                raise HTTPException(status_code=400, detail=WITHDRAWN_MESSAGE)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
        logger.info("application status changed", application_id=str(doc["_id"]),
                    previous=application.get("status"), status=doc["status"])
        return doc

    def withdraw(self, application: dict) -> dict:
        current = application.get("status")
        if current == ApplicationStatus.hired.value:
            raise HTTPException(status_code=400, detail="Cannot withdraw a hired application")
        if current == ApplicationStatus.withdrawn.value:
            raise HTTPException(status_code=400, detail="Application already withdrawn")

        now = datetime.utcnow()
        # Guarded write: a concurrent hire between read and write is not overwritten
        doc = self.collection.find_one_and_update(
            {"_id": application["_id"], "status": {"$nin": list(FINAL_FOR_APPLICANT)}},
            {"$set": {"status": ApplicationStatus.withdrawn.value, "withdrawn_at": now, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            fresh = self.get_by_id(application["_id"])
            if fresh is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
            return self.withdraw(fresh)

        logger.info("application withdrawn", application_id=str(doc["_id"]))
        return doc

    # ---------------- queries ----------------

    def list_for_applicant(self, applicant_id: str, pagination: Pagination,
                           status_filter: Optional[str] = None) -> Tuple[List[dict], int]:
        query: dict = {"applicant_id": to_object_id(applicant_id)}
        if status_filter:
            query["status"] = status_filter
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    def list_for_recruiter(self, recruiter_id: str, pagination: Pagination,
                           status_filter: Optional[str] = None,
                           job_id: Optional[str] = None) -> Tuple[List[dict], int]:
        query: dict = {"recruiter_id": to_object_id(recruiter_id)}
        if status_filter:
            query["status"] = status_filter
        if job_id:
            query["job_id"] = to_object_id(job_id)
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    def list_for_job(self, job_id: str, pagination: Pagination,
                     status_filter: Optional[str] = None) -> Tuple[List[dict], int]:
        query: dict = {"job_id": to_object_id(job_id)}
        if status_filter:
            query["status"] = status_filter
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    def list_admin(self, pagination: Pagination, status_filter: Optional[str] = None,
                   job_id: Optional[str] = None, applicant: Optional[str] = None) -> Tuple[List[dict], int]:
        query: dict = {}
        if status_filter:
            query["status"] = status_filter
        if job_id:
            query["job_id"] = to_object_id(job_id)
        if applicant:
            query["applicant_id"] = to_object_id(applicant)
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    # ---------------- serialization ----------------

    def to_responses(self, applications: List[dict], viewer: Identity) -> List[ApplicationResponse]:
        """Populate job/applicant/recruiter summaries. Recruiter notes are hidden from applicants."""
        job_ids = {app["job_id"] for app in applications}
        jobs = {str(job["_id"]): job for job in self.jobs.collection.find({"_id": {"$in": list(job_ids)}})}
        users = self.users.get_many(
            uid for app in applications for uid in (app["applicant_id"], app["recruiter_id"])
        )
        responses = []
        for app in applications:
            hide_notes = not viewer.is_admin and str(app["applicant_id"]) == viewer.id
            responses.append(ApplicationResponse.from_doc(
                app,
                job=jobs.get(str(app["job_id"])),
                applicant=users.get(str(app["applicant_id"])),
                recruiter=users.get(str(app["recruiter_id"])),
                include_recruiter_notes=not hide_notes,
            ))
        return responses

    def to_response(self, application: dict, viewer: Identity) -> ApplicationResponse:
        return self.to_responses([application], viewer)[0]
