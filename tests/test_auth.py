from datetime import timedelta

import pytest
from bson import ObjectId
from fastapi import HTTPException
from jose import jwt
from pymongo.errors import ServerSelectionTimeoutError

from app.core.auth import create_access_token, resolve_identity
from conftest import PASSWORD, bearer


class _DownCollection:
    def find_one(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("mongodb unreachable")


class _DownDatabase:
    def __getitem__(self, name):
        return _DownCollection()


# ---------------- registration & login ----------------

def test_register_returns_token_and_user_without_password(client):
    response = client.post("/api/auth/register", json={
        "name": "Jane Doe", "email": "Jane@Example.com", "password": PASSWORD
    })

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "jane@example.com"
    assert body["user"]["role"] == "jobseeker"
    assert body["user"]["isActive"] is True
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]


def test_register_duplicate_email_rejected(client, jobseeker):
    response = client.post("/api/auth/register", json={
        "name": "Someone Else", "email": jobseeker[0]["email"].upper(), "password": PASSWORD
    })

    assert response.status_code == 400
    assert response.json() == {"message": "User already exists with this email"}


def test_register_as_admin_is_disabled(client):
    response = client.post("/api/auth/register", json={
        "name": "Sneaky", "email": "sneaky@example.com", "password": PASSWORD, "role": "admin"
    })

    assert response.status_code == 403


def test_register_validation_errors_are_listed(client):
    response = client.post("/api/auth/register", json={"name": "J", "email": "not-an-email", "password": "123"})

    assert response.status_code == 400
    errors = response.json()["errors"]
    params = {error["param"] for error in errors}
    assert {"name", "email", "password"} <= params
    assert any(error["msg"] == "Name must be at least 2 characters" for error in errors)


def test_login_and_me(client, jobseeker):
    response = client.post("/api/auth/login", json={"email": jobseeker[0]["email"], "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/api/auth/me", headers=bearer(token))
    assert me.status_code == 200
    assert me.json()["user"]["id"] == jobseeker[0]["id"]


def test_login_wrong_password(client, jobseeker):
    response = client.post("/api/auth/login", json={"email": jobseeker[0]["email"], "password": "wrong-one"})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


def test_login_unknown_email(client):
    response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid credentials"}


def test_change_password(client, jobseeker):
    user, headers = jobseeker

    wrong = client.post("/api/auth/change-password", json={"currentPassword": "nope", "newPassword": "newpass1"},
                        headers=headers)
    assert wrong.status_code == 400
    assert wrong.json() == {"message": "Current password is incorrect"}

    ok = client.post("/api/auth/change-password", json={"currentPassword": PASSWORD, "newPassword": "newpass1"},
                     headers=headers)
    assert ok.status_code == 200

    assert client.post("/api/auth/login", json={"email": user["email"], "password": PASSWORD}).status_code == 401
    assert client.post("/api/auth/login", json={"email": user["email"], "password": "newpass1"}).status_code == 200


# ---------------- identity verification ----------------

def test_missing_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json() == {"message": "Access token required"}


def test_malformed_token(client):
    response = client.get("/api/auth/me", headers=bearer("not.a.jwt"))

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_token_signed_with_another_key(client, jobseeker):
    token = jwt.encode({"sub": jobseeker[0]["id"]}, "some-other-secret", algorithm="HS256")
    response = client.get("/api/auth/me", headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_expired_token_is_distinguished(client, jobseeker):
    token = create_access_token({"sub": jobseeker[0]["id"]}, expires_delta=timedelta(minutes=-5))
    response = client.get("/api/auth/me", headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {"message": "Token expired"}


def test_token_for_unknown_user(client):
    token = create_access_token({"sub": str(ObjectId())})
    response = client.get("/api/auth/me", headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_unknown_stored_role_is_rejected(client, db):
    user_id = db["users"].insert_one({
        "name": "Odd", "email": "odd@example.com", "password_hash": "x", "role": "superuser", "is_active": True
    }).inserted_id
    response = client.get("/api/auth/me", headers=bearer(create_access_token({"sub": str(user_id)})))

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_deactivated_account_rejected_with_valid_token(client, db, jobseeker):
    db["users"].update_one({"_id": ObjectId(jobseeker[0]["id"])}, {"$set": {"is_active": False}})

    response = client.get("/api/auth/me", headers=jobseeker[1])
    assert response.status_code == 401
    assert response.json() == {"message": "Account is deactivated"}

    login = client.post("/api/auth/login", json={"email": jobseeker[0]["email"], "password": PASSWORD})
    assert login.status_code == 401
    assert login.json() == {"message": "Account is deactivated"}


def test_persistence_failure_is_a_server_error():
    token = create_access_token({"sub": str(ObjectId())})

    with pytest.raises(HTTPException) as exc_info:
        resolve_identity(token, _DownDatabase())

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Authentication error"


def test_responses_carry_request_id(client):
    response = client.get("/api/auth/me")

    assert response.headers.get("X-Request-ID")
