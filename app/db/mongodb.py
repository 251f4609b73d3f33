"""
MongoDB Connection Utility

MongoDB stores every record of the job board:
- users:        identities (job seekers, recruiters, admins)
- jobs:         recruiter-owned job postings
- applications: one document per (job, applicant) pair

Cross-request consistency is left to the database: unique indexes guard
emails and (job, applicant) pairs, and counters are bumped with $inc.
"""
import re
from enum import Enum
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from app.core.config import get_settings

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the job board database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_db() -> Database:
    """
    Dependency for FastAPI route injection.
    Usage:
        @app.get("/jobs")
        def list_jobs(db: Database = Depends(get_db)):
            ...
    Tests override this to point at an in-memory database.
    """
    return get_mongo_db()


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "jobs": "jobs",
    "applications": "applications",
}


def get_collection(db: Database, name: str) -> Collection:
    return db[COLLECTIONS[name]]


def test_mongo_connection(db: Database = None) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        (db if db is not None else get_mongo_db()).command("ping")
        return True
    except Exception:
        return False


def init_mongo_indexes(db: Database) -> None:
    """
    Create indexes. Call this once during app startup.
    The unique indexes carry the uniqueness invariants; nothing else does.
    """
    users = get_collection(db, "users")
    users.create_index("email", unique=True)
    users.create_index([("role", ASCENDING), ("is_active", ASCENDING)])

    jobs = get_collection(db, "jobs")
    jobs.create_index("recruiter_id")
    jobs.create_index([
        ("is_active", ASCENDING),
        ("is_approved", ASCENDING),
        ("created_at", DESCENDING)
    ])

    applications = get_collection(db, "applications")
    applications.create_index([
        ("job_id", ASCENDING),
        ("applicant_id", ASCENDING)
    ], unique=True)
    applications.create_index([("applicant_id", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("recruiter_id", ASCENDING), ("status", ASCENDING)])


# ============================================================
# QUERY HELPERS
# ============================================================

def to_object_id(value) -> Optional[ObjectId]:
    """ObjectId for a valid id string (or ObjectId), else None."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def icontains(text: str) -> dict:
    """Case-insensitive substring match; user input is matched literally."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}


def to_mongo(value):
    """Plain BSON-friendly values: enums become their string values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: to_mongo(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_mongo(item) for item in value]
    return value
