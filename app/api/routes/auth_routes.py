"""
Authentication Routes

POST /auth/register - Register new user, returns JWT token
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
POST /auth/change-password - Change own password
"""

from fastapi import APIRouter, HTTPException, Depends, status
from pymongo.database import Database

from app.db.mongodb import get_db
from app.core.auth import create_access_token, get_current_user, Identity
from app.core.config import get_settings
from app.services.user_service import UserService
from app.schemas.schemas import (
    RegisterRequest, LoginRequest, ChangePasswordRequest, AuthResponse,
    UserEnvelope, UserResponse, MessageResponse, Role
)

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_for(user: dict) -> str:
    return create_access_token(data={"sub": str(user["_id"]), "role": user["role"]})


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, db: Database = Depends(get_db)):
    """
    Register a new user account.

    Admin accounts cannot self-register unless ALLOW_ADMIN_REGISTRATION is set;
    use scripts/create_admin.py instead.
    """
    if request.role is Role.admin and not settings.allow_admin_registration:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin registration is disabled")

    user = UserService(db).register(request)
    return AuthResponse(
        message="User registered successfully",
        token=_token_for(user),
        user=UserResponse.from_doc(user)
    )


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Database = Depends(get_db)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = UserService(db).authenticate(request.email, request.password)
    return AuthResponse(message="Login successful", token=_token_for(user), user=UserResponse.from_doc(user))


@router.get("/me", response_model=UserEnvelope)
def get_me(user: Identity = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return UserEnvelope(user=UserResponse.from_doc(user.document))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    request: ChangePasswordRequest,
    user: Identity = Depends(get_current_user),
    db: Database = Depends(get_db)
):
    UserService(db).change_password(user.id, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")
