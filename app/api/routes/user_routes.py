"""
User Routes

GET    /users/profile - Own profile
PUT    /users/profile - Update own profile
DELETE /users/profile - Delete own account
GET    /users/recruiters - Public recruiter directory
GET    /users/jobseekers - Public job seeker directory
POST   /users/upload-avatar - Set avatar URL
GET    /users/{user_id} - Public profile

Static paths are declared before /{user_id} so they are not captured by it.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, status
from pymongo.database import Database

from app.db.mongodb import get_db
from app.core.auth import get_current_user, Identity
from app.services.user_service import UserService
from app.utils.pagination import Pagination, get_pagination
from app.schemas.schemas import (
    ProfileUpdate, AvatarUpdate, UserEnvelope, UserResponse, PublicUserEnvelope,
    PublicUserResponse, RecruiterListResponse, JobSeekerListResponse, MessageResponse, Role
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserEnvelope)
def get_profile(user: Identity = Depends(get_current_user)):
    return UserEnvelope(user=UserResponse.from_doc(user.document))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(
    request: ProfileUpdate,
    user: Identity = Depends(get_current_user),
    db: Database = Depends(get_db)
):
    """Update own profile. Email, password, role and account flags are not editable here."""
    doc = UserService(db).update_profile(user.id, request)
    if doc is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserEnvelope(message="Profile updated successfully", user=UserResponse.from_doc(doc))


@router.delete("/profile", response_model=MessageResponse)
def delete_profile(user: Identity = Depends(get_current_user), db: Database = Depends(get_db)):
    if not UserService(db).delete(user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return MessageResponse(message="Account deleted successfully")


@router.get("/recruiters", response_model=RecruiterListResponse)
def list_recruiters(
    search: Optional[str] = None,
    pagination: Pagination = Depends(get_pagination),
    db: Database = Depends(get_db)
):
    docs, total = UserService(db).list_public(Role.recruiter, pagination, search=search)
    return RecruiterListResponse(
        recruiters=[PublicUserResponse.from_doc(d) for d in docs],
        **pagination.meta(total)
    )


@router.get("/jobseekers", response_model=JobSeekerListResponse)
def list_jobseekers(
    search: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma-separated skill list"),
    pagination: Pagination = Depends(get_pagination),
    db: Database = Depends(get_db)
):
    docs, total = UserService(db).list_public(Role.jobseeker, pagination, search=search, skills=skills)
    return JobSeekerListResponse(
        jobseekers=[PublicUserResponse.from_doc(d) for d in docs],
        **pagination.meta(total)
    )


@router.post("/upload-avatar", response_model=UserEnvelope)
def upload_avatar(
    request: AvatarUpdate,
    user: Identity = Depends(get_current_user),
    db: Database = Depends(get_db)
):
    """Store an already-uploaded avatar URL on the profile."""
    if not request.avatar_url or not request.avatar_url.strip():
        raise HTTPException(status_code=400, detail="Avatar URL is required")
    doc = UserService(db).set_avatar(user.id, request.avatar_url.strip())
    return UserEnvelope(message="Avatar updated successfully", user=UserResponse.from_doc(doc))


@router.get("/{user_id}", response_model=PublicUserEnvelope)
def get_user(user_id: str, db: Database = Depends(get_db)):
    doc = UserService(db).get_by_id(user_id, public=True)
    if not doc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return PublicUserEnvelope(user=PublicUserResponse.from_doc(doc))
