"""
Authentication & Authorization - JWT, passwords and access gates.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- get_current_user: bearer token -> active Identity (or 401/500)
- require_roles / is_admin / is_recruiter / is_job_seeker: role gates (admin always admitted)
- require_owner: ownership gate for recruiter-owned resources (admin override)
- check_application_access: applicant / recruiter / admin gate for applications
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

import structlog
from bson import ObjectId
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import PyMongoError

from app.core.config import get_settings
from app.db.mongodb import get_collection, get_db
from app.schemas.schemas import Role

settings = get_settings()
logger = structlog.get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)

# Bearer token extractor; a missing token is reported by get_current_user, not here
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """
    Decode and verify JWT token.
    Raises jose.ExpiredSignatureError for expired tokens, JWTError for anything else.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


# ============================================================
# IDENTITY
# ============================================================

@dataclass
class Identity:
    """A resolved, active account attached to the current request."""
    id: str
    email: str
    role: Role
    is_active: bool
    document: dict = field(repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin

    @classmethod
    def from_document(cls, doc: dict) -> "Identity":
        # Role(...) raises ValueError for role strings outside the enum
        return cls(
            id=str(doc["_id"]),
            email=doc["email"],
            role=Role(doc["role"]),
            is_active=bool(doc.get("is_active", True)),
            document=doc,
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_identity(token: str, db: Database) -> Identity:
    """Token -> active Identity. Every failure is an HTTPException (401, or 500 for infra)."""
    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        logger.warning("auth rejected", reason="token_expired")
        raise _unauthorized("Token expired")
    except JWTError:
        logger.warning("auth rejected", reason="token_invalid")
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id or not ObjectId.is_valid(user_id):
        raise _unauthorized("Invalid token")

    try:
        doc = get_collection(db, "users").find_one({"_id": ObjectId(user_id)}, {"password_hash": 0})
    except PyMongoError as exc:
        logger.error("identity lookup failed", user_id=user_id, exc_info=exc)
        raise HTTPException(status_code=500, detail="Authentication error") from exc

    if not doc:
        logger.warning("auth rejected", reason="unknown_subject", user_id=user_id)
        raise _unauthorized("Invalid token")

    try:
        identity = Identity.from_document(doc)
    except ValueError:
        logger.warning("auth rejected", reason="unknown_role", user_id=user_id, role=doc.get("role"))
        raise _unauthorized("Invalid token")

    if not identity.is_active:
        logger.warning("auth rejected", reason="deactivated", user_id=user_id)
        raise _unauthorized("Account is deactivated")

    return identity


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
) -> Identity:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        def route(user: Identity = Depends(get_current_user)):
            return user
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")

    identity = resolve_identity(credentials.credentials, db)
    request.state.user = identity
    return identity


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
) -> Optional[Identity]:
    """Like get_current_user, but anonymous (None) instead of 401 for public routes."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        identity = resolve_identity(credentials.credentials, db)
    except HTTPException as exc:
        if exc.status_code != status.HTTP_401_UNAUTHORIZED:
            raise
        return None
    request.state.user = identity
    return identity


# ============================================================
# ROLE GATE
# ============================================================

def authorize_role(user: Optional[Identity], allowed: Iterable[Role]) -> Identity:
    """Admit `user` if its role is allowed. Admin is always allowed."""
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    if user.role is not Role.admin and user.role not in set(allowed):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Insufficient permissions."
        )
    return user


def require_roles(*roles: Role) -> Callable[..., Identity]:
    """Dependency factory: authenticated caller whose role is in `roles` (or admin)."""
    allowed = frozenset(roles)

    def dependency(user: Identity = Depends(get_current_user)) -> Identity:
        return authorize_role(user, allowed)

    return dependency


is_admin = require_roles(Role.admin)
is_recruiter = require_roles(Role.recruiter)
is_job_seeker = require_roles(Role.jobseeker)


# ============================================================
# OWNERSHIP GATE
# ============================================================

def ensure_owner(user: Identity, resource: dict) -> dict:
    """Admit admins and the recorded recruiter of `resource`."""
    if user.is_admin:
        return resource
    owner_id = resource.get("recruiter_id")
    if owner_id is not None and str(owner_id) == user.id:
        return resource
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Not the owner.")


def require_owner(
    lookup: Callable[[Database, str], Optional[dict]],
    resource_name: str = "Resource",
    param: str = "id",
) -> Callable[..., dict]:
    """
    Dependency factory for recruiter-owned resources.

    `lookup(db, id)` returns the document or None. The id comes from the
    route path parameter named `param`. Returns the resource on success.
    Not-found (404) is decided before ownership (403).
    """

    def dependency(
        request: Request,
        user: Identity = Depends(get_current_user),
        db: Database = Depends(get_db),
    ) -> dict:
        resource_id = request.path_params.get(param)
        try:
            resource = lookup(db, resource_id)
        except PyMongoError as exc:
            logger.error("ownership lookup failed", resource=resource_name, resource_id=resource_id, exc_info=exc)
            raise HTTPException(status_code=500, detail="Authorization error") from exc

        if resource is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource_name} not found")
        return ensure_owner(user, resource)

    return dependency


# ============================================================
# APPLICATION ACCESS
# ============================================================

def check_application_access(
    user: Identity,
    application: dict,
    parties: Iterable[str] = ("applicant", "recruiter"),
    allow_admin: bool = True,
) -> None:
    """
    Three-way gate for applications.

    Admits an admin (when allow_admin), or a caller whose id matches one of
    the application's `parties` ("applicant" -> applicant_id, "recruiter" ->
    recruiter_id). Raises 403 otherwise.
    """
    if allow_admin and user.is_admin:
        return
    for party in parties:
        party_id = application.get(f"{party}_id")
        if party_id is not None and str(party_id) == user.id:
            return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
