"""
Analytics Service - aggregate counts for the admin dashboard, admin
analytics and recruiter application stats.

All numbers come from MongoDB aggregation pipelines ($group / $unwind);
nothing is cached.
"""

from datetime import datetime, timedelta
from typing import Dict, List

from pymongo import DESCENDING
from pymongo.database import Database

from app.db.mongodb import get_collection, to_object_id

RECENT_LIMIT = 5
TOP_LIMIT = 10


def _counts_by(collection, field: str, match: dict = None) -> Dict[str, int]:
    pipeline = []
    if match:
        pipeline.append({"$match": match})
    pipeline.append({"$group": {"_id": f"${field}", "count": {"$sum": 1}}})
    return {row["_id"]: row["count"] for row in collection.aggregate(pipeline)}


def _daily_trend(collection, date_field: str, since: datetime) -> List[dict]:
    """[{"_id": "YYYY-MM-DD", "count": n}] ascending by day."""
    pipeline = [
        {"$match": {date_field: {"$gte": since}}},
        {"$group": {
            "_id": {
                "year": {"$year": f"${date_field}"},
                "month": {"$month": f"${date_field}"},
                "day": {"$dayOfMonth": f"${date_field}"},
            },
            "count": {"$sum": 1},
        }},
    ]
    rows = [
        {"_id": "%04d-%02d-%02d" % (row["_id"]["year"], row["_id"]["month"], row["_id"]["day"]),
         "count": row["count"]}
        for row in collection.aggregate(pipeline)
    ]
    return sorted(rows, key=lambda row: row["_id"])


def _top(collection, field: str, unwind: bool = False) -> List[dict]:
    pipeline = []
    if unwind:
        pipeline.append({"$unwind": f"${field}"})
    pipeline += [
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
        {"$limit": TOP_LIMIT},
    ]
    return [{"_id": row["_id"], "count": row["count"]} for row in collection.aggregate(pipeline)]


class AnalyticsService:

    def __init__(self, db: Database):
        self.users = get_collection(db, "users")
        self.jobs = get_collection(db, "jobs")
        self.applications = get_collection(db, "applications")

    def dashboard(self) -> dict:
        approval = _counts_by(self.jobs, "is_approved")

        recent_users = [
            {"id": str(u["_id"]), "name": u.get("name"), "email": u.get("email"),
             "role": u.get("role"), "created_at": u.get("created_at")}
            for u in self.users.find({}, {"password_hash": 0})
            .sort("created_at", DESCENDING).limit(RECENT_LIMIT)
        ]
        recent_jobs = [
            {"id": str(j["_id"]), "title": j.get("title"), "company": j.get("company"),
             "location": j.get("location"), "recruiter_id": str(j.get("recruiter_id")),
             "created_at": j.get("created_at")}
            for j in self.jobs.find().sort("created_at", DESCENDING).limit(RECENT_LIMIT)
        ]
        recent_apps = list(self.applications.find().sort("applied_at", DESCENDING).limit(RECENT_LIMIT))
        titles = {
            str(j["_id"]): j.get("title")
            for j in self.jobs.find({"_id": {"$in": [a["job_id"] for a in recent_apps]}}, {"title": 1})
        }
        applicants = {
            str(u["_id"]): u
            for u in self.users.find({"_id": {"$in": [a["applicant_id"] for a in recent_apps]}},
                                     {"name": 1, "email": 1})
        }
        recent_applications = [
            {"id": str(a["_id"]), "status": a.get("status"), "applied_at": a.get("applied_at"),
             "job_id": str(a["job_id"]), "job_title": titles.get(str(a["job_id"])),
             "applicant_id": str(a["applicant_id"]),
             "applicant_name": applicants.get(str(a["applicant_id"]), {}).get("name")}
            for a in recent_apps
        ]

        return {
            "users": {
                "total": self.users.count_documents({}),
                "by_role": _counts_by(self.users, "role"),
            },
            "jobs": {
                "total": self.jobs.count_documents({}),
                "pending": self.jobs.count_documents({"is_approved": False}),
                "active": self.jobs.count_documents({"is_active": True, "is_approved": True}),
                "by_status": {("approved" if key else "pending"): count for key, count in approval.items()},
            },
            "applications": {
                "total": self.applications.count_documents({}),
                "by_status": _counts_by(self.applications, "status"),
            },
            "recent": {
                "users": recent_users,
                "jobs": recent_jobs,
                "applications": recent_applications,
            },
        }

    def analytics(self, period_days: int = 30) -> dict:
        since = datetime.utcnow() - timedelta(days=period_days)
        return {
            "user_trends": _daily_trend(self.users, "created_at", since),
            "job_trends": _daily_trend(self.jobs, "created_at", since),
            "application_trends": _daily_trend(self.applications, "applied_at", since),
            "top_skills": _top(self.jobs, "skills", unwind=True),
            "top_locations": _top(self.jobs, "location"),
        }

    def recruiter_stats(self, recruiter_id: str, recent_days: int = 7) -> dict:
        oid = to_object_id(recruiter_id)
        since = datetime.utcnow() - timedelta(days=recent_days)
        return {
            "total": self.applications.count_documents({"recruiter_id": oid}),
            "recent": self.applications.count_documents({"recruiter_id": oid, "applied_at": {"$gte": since}}),
            "by_status": _counts_by(self.applications, "status", {"recruiter_id": oid}),
        }
