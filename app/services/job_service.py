"""
Job Service - job postings owned by recruiters.

Public listing only ever shows postings that are both active and approved.
View and application counters are bumped with $inc, never read-then-write.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import structlog
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.auth import Identity
from app.db.mongodb import get_collection, icontains, to_mongo, to_object_id
from app.schemas.schemas import JobCreate, JobUpdate
from app.services.user_service import UserService
from app.utils.pagination import Pagination, paginate, split_csv

logger = structlog.get_logger(__name__)

PUBLIC = {"is_active": True, "is_approved": True}

# sortBy (wire name) -> document field
SORT_FIELDS = {
    "createdAt": "created_at",
    "title": "title",
    "salary": "salary.min",
    "views": "views",
    "applications": "applications",
}

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


@dataclass(frozen=True)
class JobFilters:
    search: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    experience: Optional[str] = None
    min_salary: Optional[float] = None
    max_salary: Optional[float] = None
    skills: Optional[str] = None


def build_public_query(filters: JobFilters) -> dict:
    """Mongo filter for the public job listing."""
    query: dict = dict(PUBLIC)

    if filters.search and filters.search.strip():
        pattern = icontains(filters.search)
        query["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"skills": pattern},
            {"location": pattern},
            {"company.name": pattern},
        ]
    if filters.location and filters.location.strip():
        query["location"] = icontains(filters.location)
    if filters.job_type:
        query["job_type"] = filters.job_type
    if filters.experience:
        query["experience"] = filters.experience

    # Salary bounds select postings whose range overlaps [min_salary, max_salary]
    if filters.min_salary is not None:
        query["salary.max"] = {"$gte": filters.min_salary}
    if filters.max_salary is not None:
        query["salary.min"] = {"$lte": filters.max_salary}

    skills = split_csv(filters.skills)
    if skills:
        query["skills"] = {"$in": skills}
    return query


def build_sort(sort_by: str = "createdAt", sort_order: str = "desc") -> List[Tuple[str, int]]:
    direction = ASCENDING if sort_order == "asc" else DESCENDING
    return [(SORT_FIELDS.get(sort_by, "created_at"), direction), ("_id", direction)]


class JobService:
    """Handles the jobs collection."""

    def __init__(self, db: Database):
        self.collection: Collection = get_collection(db, "jobs")
        self.users = UserService(db)

    def get_by_id(self, job_id) -> Optional[dict]:
        oid = to_object_id(job_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def recruiters_for(self, jobs: List[dict]) -> Dict[str, dict]:
        """Populate helper: {recruiter_id_str: user_doc} for the given jobs."""
        return self.users.get_many(job["recruiter_id"] for job in jobs)

    # ---------------- mutations ----------------

    def create(self, data: JobCreate, recruiter: Identity) -> dict:
        now = datetime.utcnow()
        doc = to_mongo(data.model_dump())
        doc.update({
            "recruiter_id": to_object_id(recruiter.id),
            "is_active": True,
            # Admin-authored postings skip the approval queue
            "is_approved": recruiter.is_admin,
            "views": 0,
            "applications": 0,
            "created_at": now,
            "updated_at": now,
        })
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("job created", job_id=str(result.inserted_id), recruiter_id=recruiter.id,
                    approved=doc["is_approved"])
        return doc

    def update(self, job_id, data: JobUpdate) -> Optional[dict]:
        updates = to_mongo(data.model_dump(exclude_unset=True))
        updates["updated_at"] = datetime.utcnow()
        return self.collection.find_one_and_update(
            {"_id": to_object_id(job_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, job_id) -> bool:
        oid = to_object_id(job_id)
        if oid is None:
            return False
        deleted = self.collection.delete_one({"_id": oid}).deleted_count > 0
        if deleted:
            logger.info("job deleted", job_id=str(oid))
        return deleted

    def set_active(self, job_id, is_active: bool) -> Optional[dict]:
        return self.collection.find_one_and_update(
            {"_id": to_object_id(job_id)},
            {"$set": {"is_active": is_active, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def set_approved(self, job_id, is_approved: bool) -> Optional[dict]:
        oid = to_object_id(job_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"is_approved": is_approved, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            logger.info("job approval changed", job_id=str(oid), is_approved=is_approved)
        return doc

    def increment_views(self, job_id) -> Optional[dict]:
        """One atomic +1 per call. Not deduplicated per viewer."""
        oid = to_object_id(job_id)
        if oid is None:
            return None
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$inc": {"views": 1}},
            return_document=ReturnDocument.AFTER,
        )

    def increment_applications(self, job_id) -> bool:
        result = self.collection.update_one({"_id": to_object_id(job_id)}, {"$inc": {"applications": 1}})
        return result.matched_count > 0

    # ---------------- queries ----------------

    def list_public(
        self,
        filters: JobFilters,
        pagination: Pagination,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> Tuple[List[dict], int]:
        return paginate(self.collection, build_public_query(filters), pagination, build_sort(sort_by, sort_order))

    def list_for_recruiter(
        self,
        recruiter_id: str,
        pagination: Pagination,
        status: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        query: dict = {"recruiter_id": to_object_id(recruiter_id)}
        if status == "active":
            query.update(PUBLIC)
        elif status == "pending":
            query["is_approved"] = False
        elif status == "inactive":
            query["is_active"] = False
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    def list_admin(
        self,
        pagination: Pagination,
        status: Optional[str] = None,
        search: Optional[str] = None,
        recruiter: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        query: dict = {}
        if status == "approved":
            query["is_approved"] = True
        elif status == "pending":
            query["is_approved"] = False
        elif status == "active":
            query.update(PUBLIC)
        elif status == "inactive":
            query["is_active"] = False
        if search and search.strip():
            pattern = icontains(search)
            query["$or"] = [{"title": pattern}, {"description": pattern}, {"company.name": pattern}]
        if recruiter:
            query["recruiter_id"] = to_object_id(recruiter)
        return paginate(self.collection, query, pagination, NEWEST_FIRST)

    def suggestions(self, q: str, limit: int = 5) -> List[str]:
        """Most common public titles matching q."""
        if not q or len(q.strip()) < 2:
            return []
        pipeline = [
            {"$match": {**PUBLIC, "title": icontains(q)}},
            {"$group": {"_id": "$title", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        return [row["_id"] for row in self.collection.aggregate(pipeline)]
