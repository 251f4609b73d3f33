"""
User Service - identities: registration, login, profile self-service,
public directories and admin management.

Password hashes live only in the `password_hash` field and are excluded from
every read that leaves this module.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import structlog
from fastapi import HTTPException, status
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from app.core.auth import hash_password, verify_password
from app.db.mongodb import get_collection, icontains, to_mongo, to_object_id
from app.schemas.schemas import ProfileUpdate, RegisterRequest, Role
from app.utils.pagination import Pagination, paginate, split_csv

logger = structlog.get_logger(__name__)

# Never leaves the service
HIDDEN = {"password_hash": 0}

# Fields shown in public directories and profiles
PUBLIC_FIELDS = {
    "name": 1, "email": 1, "role": 1, "bio": 1, "skills": 1, "experience": 1,
    "location": 1, "company": 1, "avatar": 1, "created_at": 1
}

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


class UserService:
    """Handles the users collection."""

    def __init__(self, db: Database):
        self.collection: Collection = get_collection(db, "users")

    # ---------------- lookups ----------------

    def get_by_id(self, user_id, public: bool = False) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid}, PUBLIC_FIELDS if public else HIDDEN)

    def get_many(self, user_ids: Iterable) -> Dict[str, dict]:
        """Batch lookup for populating references: {id_str: doc}."""
        oids = {oid for oid in (to_object_id(u) for u in user_ids) if oid is not None}
        if not oids:
            return {}
        return {str(doc["_id"]): doc for doc in self.collection.find({"_id": {"$in": list(oids)}}, HIDDEN)}

    # ---------------- auth ----------------

    def register(self, data: RegisterRequest) -> dict:
        now = datetime.utcnow()
        doc = {
            "name": data.name,
            "email": data.email.strip().lower(),
            "password_hash": hash_password(data.password),
            "role": data.role.value,
            "phone": data.phone,
            "location": data.location,
            "skills": [],
            "is_active": True,
            "is_verified": False,
            "created_at": now,
            "updated_at": now,
        }
        if data.role is Role.jobseeker:
            doc["experience"] = "entry"
        if data.company is not None:
            doc["company"] = data.company.model_dump(exclude_none=True)

        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise HTTPException(status_code=400, detail="User already exists with this email")

        logger.info("user registered", user_id=str(result.inserted_id), role=doc["role"])
        return self.get_by_id(result.inserted_id)

    def authenticate(self, email: str, password: str) -> dict:
        doc = self.collection.find_one({"email": email.strip().lower()})
        if not doc or not verify_password(password, doc["password_hash"]):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
        if not doc.get("is_active", True):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")
        doc.pop("password_hash")
        return doc

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        doc = self.collection.find_one({"_id": to_object_id(user_id)}, {"password_hash": 1})
        if not doc or not verify_password(current_password, doc["password_hash"]):
            raise HTTPException(status_code=400, detail="Current password is incorrect")
        self.collection.update_one(
            {"_id": doc["_id"]},
            {"$set": {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()}}
        )
        logger.info("password changed", user_id=user_id)

    # ---------------- self-service ----------------

    def update_profile(self, user_id: str, data: ProfileUpdate) -> dict:
        updates = to_mongo(data.model_dump(exclude_unset=True, exclude={"company"}))
        # Company fields are merged, not replaced
        if data.company is not None:
            for key, value in data.company.model_dump(exclude_unset=True).items():
                updates[f"company.{key}"] = value
        updates["updated_at"] = datetime.utcnow()

        return self.collection.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": updates},
            projection=HIDDEN,
            return_document=ReturnDocument.AFTER,
        )

    def set_avatar(self, user_id: str, avatar_url: str) -> dict:
        return self.collection.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": {"avatar": avatar_url, "updated_at": datetime.utcnow()}},
            projection=HIDDEN,
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, user_id) -> bool:
        oid = to_object_id(user_id)
        if oid is None:
            return False
        deleted = self.collection.delete_one({"_id": oid}).deleted_count > 0
        if deleted:
            logger.info("user deleted", user_id=str(oid))
        return deleted

    # ---------------- directories ----------------

    def list_public(
        self,
        role: Role,
        pagination: Pagination,
        search: Optional[str] = None,
        skills: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        """Active recruiters or job seekers, newest first."""
        query: dict = {"role": role.value, "is_active": True}
        if search:
            if role is Role.recruiter:
                fields = ["name", "company.name", "location"]
            else:
                fields = ["name", "bio", "location"]
            query["$or"] = [{f: icontains(search)} for f in fields]
        skill_list = split_csv(skills)
        if skill_list:
            query["skills"] = {"$in": skill_list}
        return paginate(self.collection, query, pagination, NEWEST_FIRST, PUBLIC_FIELDS)

    # ---------------- admin ----------------

    def list_admin(
        self,
        pagination: Pagination,
        role: Optional[Role] = None,
        status_filter: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[dict], int]:
        query: dict = {}
        if role:
            query["role"] = role.value
        if status_filter == "active":
            query["is_active"] = True
        elif status_filter == "inactive":
            query["is_active"] = False
        if search:
            query["$or"] = [{f: icontains(search)} for f in ("name", "email", "company.name")]
        return paginate(self.collection, query, pagination, NEWEST_FIRST, HIDDEN)

    def set_active(self, user_id, is_active: bool) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"is_active": is_active, "updated_at": datetime.utcnow()}},
            projection=HIDDEN,
            return_document=ReturnDocument.AFTER,
        )
        if doc:
            logger.info("user status changed", user_id=str(oid), is_active=is_active)
        return doc

    def ensure_admin(self, data: RegisterRequest) -> Tuple[dict, bool]:
        """Create an admin, or promote the existing account with that email. Returns (user, created)."""
        email = data.email.strip().lower()
        existing = self.collection.find_one({"email": email}, {"_id": 1})
        if existing is None:
            return self.register(data.model_copy(update={"role": Role.admin})), True

        doc = self.collection.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": {
                "role": Role.admin.value,
                "is_active": True,
                "password_hash": hash_password(data.password),
                "updated_at": datetime.utcnow(),
            }},
            projection=HIDDEN,
            return_document=ReturnDocument.AFTER,
        )
        logger.info("user promoted to admin", user_id=str(doc["_id"]))
        return doc, False
