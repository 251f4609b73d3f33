import itertools
import os

# Settings are cached on first import; cheap hashing and a fixed secret for tests
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import mongomock
import pytest
from fastapi.testclient import TestClient

from app.core.auth import create_access_token
from app.db.mongodb import get_db, init_mongo_indexes
from app.main import app
from app.schemas.schemas import RegisterRequest, Role
from app.services.user_service import UserService

PASSWORD = "secret1"

JOB_PAYLOAD = {
    "title": "Backend Engineer",
    "description": "Build and operate the services behind our job search.",
    "requirements": "Three or more years writing Go and SQL in production.",
    "responsibilities": "Own the search API from design through on-call.",
    "skills": ["Go", "SQL"],
    "experience": "mid",
    "salary": {"min": 80000, "max": 120000, "currency": "USD"},
    "location": "Berlin",
    "jobType": "full-time",
    "company": {"name": "Acme"},
}

COVER_LETTER = (
    "I have spent five years building Go and SQL backends "
    "and would be glad to bring that experience to your team."
)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db():
    database = mongomock.MongoClient()["job_board_test"]
    init_mongo_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Factory: register through the API, return (user, auth headers)."""
    counter = itertools.count(1)

    def _register(role: str = "jobseeker", **overrides):
        n = next(counter)
        payload = {
            "name": f"{role.title()} {n}",
            "email": f"{role}{n}@example.com",
            "password": PASSWORD,
            "role": role,
        }
        if role == "recruiter":
            payload["company"] = {"name": f"Company {n}"}
        payload.update(overrides)
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], bearer(body["token"])

    return _register


@pytest.fixture
def jobseeker(register_user):
    return register_user("jobseeker")


@pytest.fixture
def recruiter(register_user):
    return register_user("recruiter")


@pytest.fixture
def admin(db):
    """Admins cannot self-register; seed one directly."""
    request = RegisterRequest(name="Site Admin", email="admin@example.com", password=PASSWORD, role=Role.admin)
    user, _ = UserService(db).ensure_admin(request)
    token = create_access_token({"sub": str(user["_id"]), "role": "admin"})
    return {"id": str(user["_id"]), "email": user["email"], "role": "admin"}, bearer(token)


@pytest.fixture
def create_job(client):
    """Factory: create a job as the given caller and return it."""

    def _create(headers: dict, **overrides):
        response = client.post("/api/jobs", json={**JOB_PAYLOAD, **overrides}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["job"]

    return _create


@pytest.fixture
def approve_job(client, admin):
    def _approve(job_id: str, is_approved: bool = True):
        response = client.put(
            f"/api/admin/jobs/{job_id}/approve", json={"isApproved": is_approved}, headers=admin[1]
        )
        assert response.status_code == 200, response.text
        return response.json()["job"]

    return _approve


@pytest.fixture
def open_job(recruiter, create_job, approve_job):
    """An active, approved job owned by the `recruiter` fixture."""
    job = create_job(recruiter[1])
    return approve_job(job["id"])


@pytest.fixture
def application(client, jobseeker, open_job):
    response = client.post(
        "/api/applications",
        json={"jobId": open_job["id"], "coverLetter": COVER_LETTER},
        headers=jobseeker[1],
    )
    assert response.status_code == 201, response.text
    return response.json()["application"]
