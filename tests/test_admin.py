from bson import ObjectId

from app.schemas.schemas import RegisterRequest, Role
from app.services.user_service import UserService
from conftest import JOB_PAYLOAD, PASSWORD


def test_admin_routes_reject_other_roles(client, jobseeker, recruiter):
    for path in ("/api/admin/dashboard", "/api/admin/users", "/api/admin/jobs",
                 "/api/admin/applications", "/api/admin/analytics"):
        assert client.get(path).status_code == 401
        for headers in (jobseeker[1], recruiter[1]):
            response = client.get(path, headers=headers)
            assert response.status_code == 403
            assert response.json() == {"message": "Access denied. Insufficient permissions."}


def test_dashboard(client, admin, jobseeker, recruiter, create_job, application):
    create_job(recruiter[1], title="Still Pending")

    stats = client.get("/api/admin/dashboard", headers=admin[1]).json()

    assert stats["users"]["total"] == 3
    assert stats["users"]["byRole"] == {"admin": 1, "jobseeker": 1, "recruiter": 1}
    assert stats["jobs"]["total"] == 2
    assert stats["jobs"]["pending"] == 1
    assert stats["jobs"]["active"] == 1
    assert stats["jobs"]["byStatus"] == {"approved": 1, "pending": 1}
    assert stats["applications"] == {"total": 1, "byStatus": {"pending": 1}}
    assert len(stats["recent"]["users"]) == 3
    assert stats["recent"]["applications"][0]["id"] == application["id"]
    assert stats["recent"]["applications"][0]["applicantId"] == jobseeker[0]["id"]
    assert stats["recent"]["applications"][0]["jobTitle"] == JOB_PAYLOAD["title"]
    assert {job["recruiterId"] for job in stats["recent"]["jobs"]} == {recruiter[0]["id"]}
    assert all("passwordHash" not in u and "password_hash" not in u for u in stats["recent"]["users"])


def test_deactivate_user(client, admin, jobseeker):
    user, headers = jobseeker

    response = client.put(f"/api/admin/users/{user['id']}/status", json={"isActive": False}, headers=admin[1])

    assert response.status_code == 200
    assert response.json()["message"] == "User deactivated successfully"
    assert response.json()["user"]["isActive"] is False

    rejected = client.get("/api/auth/me", headers=headers)
    assert rejected.status_code == 401
    assert rejected.json() == {"message": "Account is deactivated"}

    client.put(f"/api/admin/users/{user['id']}/status", json={"isActive": True}, headers=admin[1])
    assert client.get("/api/auth/me", headers=headers).status_code == 200


def test_set_status_of_unknown_user(client, admin):
    response = client.put(f"/api/admin/users/{ObjectId()}/status", json={"isActive": False}, headers=admin[1])

    assert response.status_code == 404
    assert response.json() == {"message": "User not found"}


def test_delete_user(client, admin, jobseeker):
    missing = client.delete(f"/api/admin/users/{ObjectId()}", headers=admin[1])
    assert missing.status_code == 404
    assert missing.json() == {"message": "User not found"}

    deleted = client.delete(f"/api/admin/users/{jobseeker[0]['id']}", headers=admin[1])
    assert deleted.status_code == 200

    response = client.get("/api/auth/me", headers=jobseeker[1])
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


def test_list_users_filters(client, admin, db, register_user):
    register_user("jobseeker", name="Alice Seeker")
    bob, _ = register_user("recruiter", name="Bob Recruiter")
    db["users"].update_one({"_id": ObjectId(bob["id"])}, {"$set": {"is_active": False}})

    everyone = client.get("/api/admin/users", headers=admin[1]).json()
    recruiters = client.get("/api/admin/users", params={"role": "recruiter"}, headers=admin[1]).json()
    inactive = client.get("/api/admin/users", params={"status": "inactive"}, headers=admin[1]).json()
    alice = client.get("/api/admin/users", params={"search": "alice"}, headers=admin[1]).json()

    assert everyone["total"] == 3
    assert [u["name"] for u in recruiters["users"]] == ["Bob Recruiter"]
    assert [u["name"] for u in inactive["users"]] == ["Bob Recruiter"]
    assert [u["name"] for u in alice["users"]] == ["Alice Seeker"]


def test_job_moderation(client, admin, recruiter, create_job):
    job = create_job(recruiter[1])

    pending = client.get("/api/admin/jobs", params={"status": "pending"}, headers=admin[1]).json()
    assert [j["id"] for j in pending["jobs"]] == [job["id"]]

    approved = client.put(f"/api/admin/jobs/{job['id']}/approve", json={"isApproved": True}, headers=admin[1])
    assert approved.json()["message"] == "Job approved successfully"
    assert client.get("/api/jobs").json()["total"] == 1

    rejected = client.put(f"/api/admin/jobs/{job['id']}/approve",
                          json={"isApproved": False, "reason": "Duplicate posting"}, headers=admin[1])
    assert rejected.json()["message"] == "Job rejected successfully"
    assert client.get("/api/jobs").json()["total"] == 0

    missing = client.put(f"/api/admin/jobs/{ObjectId()}/approve", json={"isApproved": True}, headers=admin[1])
    assert missing.status_code == 404
    assert missing.json() == {"message": "Job not found"}


def test_admin_deletes_job(client, admin, open_job):
    assert client.delete(f"/api/admin/jobs/{open_job['id']}", headers=admin[1]).status_code == 200
    assert client.delete(f"/api/admin/jobs/{open_job['id']}", headers=admin[1]).status_code == 404


def test_admin_application_listing(client, admin, jobseeker, open_job, application):
    by_job = client.get("/api/admin/applications", params={"jobId": open_job["id"]}, headers=admin[1]).json()
    by_status = client.get("/api/admin/applications", params={"status": "hired"}, headers=admin[1]).json()

    assert [a["id"] for a in by_job["applications"]] == [application["id"]]
    assert by_job["applications"][0]["applicant"]["id"] == jobseeker[0]["id"]
    assert by_status["total"] == 0


def test_analytics(client, admin, create_job):
    create_job(admin[1], skills=["Go", "SQL"], location="Berlin")
    create_job(admin[1], skills=["Go"], location="Berlin")
    create_job(admin[1], skills=["Python"], location="Paris")

    analytics = client.get("/api/admin/analytics", params={"period": 7}, headers=admin[1]).json()

    assert analytics["topSkills"][0] == {"_id": "Go", "count": 2}
    assert analytics["topLocations"][0] == {"_id": "Berlin", "count": 2}
    assert sum(bucket["count"] for bucket in analytics["jobTrends"]) == 3
    assert sum(bucket["count"] for bucket in analytics["userTrends"]) == 1
    assert analytics["applicationTrends"] == []


def test_ensure_admin_promotes_existing_account(db, jobseeker):
    request = RegisterRequest(name="Whoever", email=jobseeker[0]["email"], password="newsecret", role=Role.admin)

    user, created = UserService(db).ensure_admin(request)

    assert created is False
    assert user["role"] == "admin"
    assert str(user["_id"]) == jobseeker[0]["id"]
    assert UserService(db).authenticate(jobseeker[0]["email"], "newsecret")["role"] == "admin"


def test_ensure_admin_creates_account(db):
    request = RegisterRequest(name="Root", email="root@example.com", password=PASSWORD, role=Role.admin)

    user, created = UserService(db).ensure_admin(request)

    assert created is True
    assert user["role"] == "admin"
    assert "password_hash" not in user
