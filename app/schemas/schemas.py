"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Wire format is camelCase (alias generator); snake_case is accepted on input too.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, List, Any, Dict
from datetime import datetime
from enum import Enum

from bson import ObjectId


# ============================================================
# ENUMS
# ============================================================

class Role(str, Enum):
    jobseeker = "jobseeker"
    recruiter = "recruiter"
    admin = "admin"


class ExperienceLevel(str, Enum):
    entry = "entry"
    mid = "mid"
    senior = "senior"
    expert = "expert"


class JobType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    contract = "contract"
    internship = "internship"
    remote = "remote"


class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    rejected = "rejected"
    hired = "hired"
    withdrawn = "withdrawn"


class ReviewStatus(str, Enum):
    """Statuses a recruiter or admin may write. Withdrawal is the applicant's call."""
    pending = "pending"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    rejected = "rejected"
    hired = "hired"


class Availability(str, Enum):
    immediate = "immediate"
    two_weeks = "2-weeks"
    one_month = "1-month"
    three_months = "3-months"
    negotiable = "negotiable"


# URLs are validated as http(s) but stored and returned as plain strings
UrlStr = Annotated[HttpUrl, PlainSerializer(lambda v: str(v), return_type=str)]


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _strip_required(value: str, field: str, min_length: int) -> str:
    value = value.strip()
    if len(value) < min_length:
        if min_length == 1:
            raise ValueError(f"{field} is required")
        raise ValueError(f"{field} must be at least {min_length} characters")
    return value


def _reject_null(value: Any, info) -> Any:
    if value is None:
        raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} cannot be null")
    return value


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# USER SCHEMAS
# ============================================================

class UserCompany(APIModel):
    name: Optional[str] = None
    description: Optional[str] = None
    website: Optional[UrlStr] = None
    location: Optional[str] = None


class RegisterRequest(APIModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.jobseeker
    phone: Optional[str] = None
    location: Optional[str] = None
    company: Optional[UserCompany] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _strip_required(v, "Name", 2)


class LoginRequest(APIModel):
    email: EmailStr
    password: str


class ChangePasswordRequest(APIModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class ProfileUpdate(APIModel):
    """Self-service profile fields. Email, password, role and flags are not here on purpose."""
    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[ExperienceLevel] = None
    resume_url: Optional[UrlStr] = None
    company: Optional[UserCompany] = None

    @field_validator("name", "skills", mode="before")
    @classmethod
    def check_not_null(cls, v, info):
        return _reject_null(v, info)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Name", 2) if v is not None else v

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return [s.strip() for s in v if s.strip()] if v is not None else v


class AvatarUpdate(APIModel):
    avatar_url: Optional[str] = None


class UserResponse(APIModel):
    id: str
    name: str
    email: str
    role: Role
    bio: Optional[str] = None
    skills: List[str] = []
    resume_url: Optional[str] = None
    experience: Optional[ExperienceLevel] = None
    company: Optional[UserCompany] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "UserResponse":
        return cls(
            id=str(doc["_id"]), name=doc.get("name", ""), email=doc["email"], role=doc["role"],
            bio=doc.get("bio"), skills=doc.get("skills") or [], resume_url=doc.get("resume_url"),
            experience=doc.get("experience"), company=doc.get("company"), phone=doc.get("phone"),
            location=doc.get("location"), avatar=doc.get("avatar"),
            is_active=doc.get("is_active", True), is_verified=doc.get("is_verified", False),
            created_at=doc.get("created_at"), updated_at=doc.get("updated_at")
        )


class PublicUserResponse(APIModel):
    """What anyone may see about a user."""
    id: str
    name: str
    email: str
    role: Role
    bio: Optional[str] = None
    skills: List[str] = []
    experience: Optional[ExperienceLevel] = None
    location: Optional[str] = None
    company: Optional[UserCompany] = None
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "PublicUserResponse":
        return cls(
            id=str(doc["_id"]), name=doc.get("name", ""), email=doc["email"], role=doc["role"],
            bio=doc.get("bio"), skills=doc.get("skills") or [], experience=doc.get("experience"),
            location=doc.get("location"), company=doc.get("company"), avatar=doc.get("avatar"),
            created_at=doc.get("created_at")
        )


class UserSummary(APIModel):
    """Populated reference to a user inside another record."""
    id: str
    name: str
    email: str
    company: Optional[UserCompany] = None

    @classmethod
    def from_doc(cls, doc: Optional[dict]) -> Optional["UserSummary"]:
        if not doc:
            return None
        return cls(id=str(doc["_id"]), name=doc.get("name", ""), email=doc["email"], company=doc.get("company"))


class AuthResponse(APIModel):
    message: str
    token: str
    user: UserResponse


class UserEnvelope(APIModel):
    message: Optional[str] = None
    user: UserResponse


class PublicUserEnvelope(APIModel):
    user: PublicUserResponse


class UserStatusUpdate(APIModel):
    is_active: bool


# ============================================================
# JOB SCHEMAS
# ============================================================

class SalaryRange(APIModel):
    # min <= max is expected but not enforced
    min: float
    max: float
    currency: str = "USD"


class JobCompany(APIModel):
    name: str
    description: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _strip_required(v, "Company name", 1)


class JobCreate(APIModel):
    title: str
    description: str
    requirements: str
    responsibilities: str
    skills: List[str]
    experience: ExperienceLevel
    salary: SalaryRange
    location: str
    job_type: JobType
    company: JobCompany
    application_deadline: Optional[datetime] = None
    benefits: List[str] = []
    tags: List[str] = []

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return _strip_required(v, "Title", 3)

    @field_validator("description", "requirements", "responsibilities")
    @classmethod
    def check_long_text(cls, v: str, info) -> str:
        return _strip_required(v, info.field_name.capitalize(), 10)

    @field_validator("location")
    @classmethod
    def check_location(cls, v: str) -> str:
        return _strip_required(v, "Location", 1)

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: List[str]) -> List[str]:
        skills = [s.strip() for s in v if s.strip()]
        if not skills:
            raise ValueError("At least one skill is required")
        return skills


class JobUpdate(APIModel):
    """Partial update. The owning recruiter is not editable."""
    title: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[ExperienceLevel] = None
    salary: Optional[SalaryRange] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    company: Optional[JobCompany] = None
    application_deadline: Optional[datetime] = None
    benefits: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None

    # applicationDeadline may be cleared with null; nothing else may
    @field_validator("title", "description", "requirements", "responsibilities", "skills", "experience",
                     "salary", "location", "job_type", "company", "benefits", "tags", "is_active", mode="before")
    @classmethod
    def check_not_null(cls, v, info):
        return _reject_null(v, info)

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Title", 3) if v is not None else v

    @field_validator("description", "requirements", "responsibilities")
    @classmethod
    def check_long_text(cls, v: Optional[str], info) -> Optional[str]:
        return _strip_required(v, info.field_name.capitalize(), 10) if v is not None else v

    @field_validator("location")
    @classmethod
    def check_location(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v, "Location", 1) if v is not None else v

    @field_validator("skills")
    @classmethod
    def check_skills(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        skills = [s.strip() for s in v if s.strip()]
        if not skills:
            raise ValueError("At least one skill is required")
        return skills


class JobResponse(APIModel):
    id: str
    title: str
    description: str
    requirements: str
    responsibilities: str
    skills: List[str] = []
    experience: ExperienceLevel
    salary: SalaryRange
    location: str
    job_type: JobType
    company: JobCompany
    recruiter_id: str
    recruiter: Optional[UserSummary] = None
    is_active: bool
    is_approved: bool
    application_deadline: Optional[datetime] = None
    benefits: List[str] = []
    tags: List[str] = []
    views: int = 0
    applications: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict, recruiter: Optional[dict] = None) -> "JobResponse":
        return cls(
            id=str(doc["_id"]), title=doc["title"], description=doc["description"],
            requirements=doc["requirements"], responsibilities=doc["responsibilities"],
            skills=doc.get("skills") or [], experience=doc["experience"], salary=doc["salary"],
            location=doc["location"], job_type=doc["job_type"], company=doc["company"],
            recruiter_id=str(doc["recruiter_id"]), recruiter=UserSummary.from_doc(recruiter),
            is_active=doc.get("is_active", True), is_approved=doc.get("is_approved", False),
            application_deadline=doc.get("application_deadline"),
            benefits=doc.get("benefits") or [], tags=doc.get("tags") or [],
            views=doc.get("views", 0), applications=doc.get("applications", 0),
            created_at=doc.get("created_at"), updated_at=doc.get("updated_at")
        )


class JobSummary(APIModel):
    id: str
    title: str
    company: Optional[JobCompany] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    salary: Optional[SalaryRange] = None

    @classmethod
    def from_doc(cls, doc: Optional[dict]) -> Optional["JobSummary"]:
        if not doc:
            return None
        return cls(
            id=str(doc["_id"]), title=doc["title"], company=doc.get("company"),
            location=doc.get("location"), job_type=doc.get("job_type"), salary=doc.get("salary")
        )


class JobEnvelope(APIModel):
    message: Optional[str] = None
    job: JobResponse


class JobApproval(APIModel):
    is_approved: bool
    reason: Optional[str] = None


class SuggestionsResponse(APIModel):
    suggestions: List[str]


class ViewCountResponse(APIModel):
    views: int


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(APIModel):
    job_id: str
    cover_letter: str
    resume_url: Optional[UrlStr] = None
    expected_salary: Optional[float] = None
    availability: Availability = Availability.negotiable
    notes: Optional[str] = None

    @field_validator("job_id")
    @classmethod
    def check_job_id(cls, v: str) -> str:
        if not ObjectId.is_valid(v):
            raise ValueError("Valid job ID is required")
        return v

    @field_validator("cover_letter")
    @classmethod
    def check_cover_letter(cls, v: str) -> str:
        return _strip_required(v, "Cover letter", 50)

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class ApplicationStatusUpdate(APIModel):
    status: ReviewStatus
    recruiter_notes: Optional[str] = None
    interview_date: Optional[datetime] = None


class ApplicationResponse(APIModel):
    id: str
    job_id: str
    applicant_id: str
    recruiter_id: str
    job: Optional[JobSummary] = None
    applicant: Optional[UserSummary] = None
    recruiter: Optional[UserSummary] = None
    status: ApplicationStatus
    is_withdrawn: bool = False
    cover_letter: str
    resume_url: Optional[str] = None
    expected_salary: Optional[float] = None
    availability: Optional[Availability] = None
    notes: Optional[str] = None
    recruiter_notes: Optional[str] = None
    applied_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    interview_date: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict, job: Optional[dict] = None, applicant: Optional[dict] = None,
                 recruiter: Optional[dict] = None, include_recruiter_notes: bool = True) -> "ApplicationResponse":
        return cls(
            id=str(doc["_id"]), job_id=_str_id(doc["job_id"]), applicant_id=_str_id(doc["applicant_id"]),
            recruiter_id=_str_id(doc["recruiter_id"]), job=JobSummary.from_doc(job),
            applicant=UserSummary.from_doc(applicant), recruiter=UserSummary.from_doc(recruiter),
            status=doc["status"], is_withdrawn=doc["status"] == ApplicationStatus.withdrawn.value,
            cover_letter=doc["cover_letter"], resume_url=doc.get("resume_url"),
            expected_salary=doc.get("expected_salary"), availability=doc.get("availability"),
            notes=doc.get("notes"),
            recruiter_notes=doc.get("recruiter_notes") if include_recruiter_notes else None,
            applied_at=doc.get("applied_at"), reviewed_at=doc.get("reviewed_at"),
            interview_date=doc.get("interview_date"), withdrawn_at=doc.get("withdrawn_at"),
            updated_at=doc.get("updated_at")
        )


class ApplicationEnvelope(APIModel):
    message: Optional[str] = None
    application: ApplicationResponse


class AppliedStatus(APIModel):
    id: str
    status: ApplicationStatus
    applied_at: Optional[datetime] = None


class CheckAppliedResponse(APIModel):
    has_applied: bool
    application: Optional[AppliedStatus] = None


class ApplicationStatsResponse(APIModel):
    total: int
    recent: int
    by_status: Dict[str, int]


# ============================================================
# PAGINATED LISTS
# ============================================================

class PageMeta(APIModel):
    total: int
    total_pages: int
    current_page: int


class JobListResponse(PageMeta):
    jobs: List[JobResponse]
    has_next_page: bool = False
    has_prev_page: bool = False


class ApplicationListResponse(PageMeta):
    applications: List[ApplicationResponse]


class UserListResponse(PageMeta):
    users: List[UserResponse]


class RecruiterListResponse(PageMeta):
    recruiters: List[PublicUserResponse]


class JobSeekerListResponse(PageMeta):
    jobseekers: List[PublicUserResponse]


# ============================================================
# ADMIN / ANALYTICS SCHEMAS
# ============================================================

class CountBucket(APIModel):
    id: Optional[str] = Field(None, alias="_id")
    count: int


class AnalyticsResponse(APIModel):
    user_trends: List[CountBucket]
    job_trends: List[CountBucket]
    application_trends: List[CountBucket]
    top_skills: List[CountBucket]
    top_locations: List[CountBucket]


class UserTotals(APIModel):
    total: int
    by_role: Dict[str, int]


class JobTotals(APIModel):
    total: int
    pending: int
    active: int
    by_status: Dict[str, int]


class ApplicationTotals(APIModel):
    total: int
    by_status: Dict[str, int]


class RecentUser(APIModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    created_at: Optional[datetime] = None


class RecentJob(APIModel):
    id: str
    title: Optional[str] = None
    company: Optional[JobCompany] = None
    location: Optional[str] = None
    recruiter_id: Optional[str] = None
    created_at: Optional[datetime] = None


class RecentApplication(APIModel):
    id: str
    status: ApplicationStatus
    applied_at: Optional[datetime] = None
    job_id: str
    job_title: Optional[str] = None
    applicant_id: str
    applicant_name: Optional[str] = None


class RecentActivity(APIModel):
    users: List[RecentUser]
    jobs: List[RecentJob]
    applications: List[RecentApplication]


class DashboardResponse(APIModel):
    users: UserTotals
    jobs: JobTotals
    applications: ApplicationTotals
    recent: RecentActivity


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(APIModel):
    message: str
    success: bool = True


class HealthResponse(APIModel):
    status: str
    mongodb: str
