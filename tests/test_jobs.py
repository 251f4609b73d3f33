from bson import ObjectId

from conftest import JOB_PAYLOAD


def test_recruiter_job_waits_for_approval(client, recruiter, create_job, approve_job):
    job = create_job(recruiter[1], title="Backend Engineer", skills=["Go", "SQL"],
                     salary={"min": 80000, "max": 120000}, jobType="full-time")

    assert job["isApproved"] is False
    assert job["isActive"] is True
    assert job["recruiterId"] == recruiter[0]["id"]
    assert client.get("/api/jobs").json()["total"] == 0

    approve_job(job["id"])

    listing = client.get("/api/jobs").json()
    assert listing["total"] == 1
    assert listing["jobs"][0]["id"] == job["id"]
    assert listing["jobs"][0]["recruiter"]["id"] == recruiter[0]["id"]


def test_admin_created_job_is_approved_immediately(client, admin, create_job):
    job = create_job(admin[1])

    assert job["isApproved"] is True
    assert client.get("/api/jobs").json()["total"] == 1


def test_jobseeker_cannot_post_jobs(client, jobseeker):
    response = client.post("/api/jobs", json=JOB_PAYLOAD, headers=jobseeker[1])

    assert response.status_code == 403
    assert response.json() == {"message": "Access denied. Insufficient permissions."}


def test_posting_requires_token(client):
    response = client.post("/api/jobs", json=JOB_PAYLOAD)

    assert response.status_code == 401
    assert response.json() == {"message": "Access token required"}


def test_job_validation(client, recruiter):
    payload = {**JOB_PAYLOAD, "title": "Go", "description": "short", "skills": [" "]}
    response = client.post("/api/jobs", json=payload, headers=recruiter[1])

    assert response.status_code == 400
    messages = {error["msg"] for error in response.json()["errors"]}
    assert "Title must be at least 3 characters" in messages
    assert "Description must be at least 10 characters" in messages
    assert "At least one skill is required" in messages


# ---------------- ownership ----------------

def test_owner_can_update(client, recruiter, create_job):
    job = create_job(recruiter[1])

    response = client.put(f"/api/jobs/{job['id']}", json={"title": "Senior Backend Engineer"}, headers=recruiter[1])

    assert response.status_code == 200
    assert response.json()["job"]["title"] == "Senior Backend Engineer"
    assert response.json()["job"]["recruiterId"] == recruiter[0]["id"]


def test_update_rejects_null_for_required_fields(client, recruiter, open_job):
    path = f"/api/jobs/{open_job['id']}"

    for field in ("title", "salary", "jobType", "company", "isActive"):
        response = client.put(path, json={field: None}, headers=recruiter[1])
        assert response.status_code == 400
        assert response.json()["errors"][0]["msg"].endswith("cannot be null")

    assert client.get("/api/jobs").json()["total"] == 1
    assert client.get(path).json()["job"]["title"] == open_job["title"]


def test_update_can_clear_deadline(client, recruiter, open_job):
    path = f"/api/jobs/{open_job['id']}"
    client.put(path, json={"applicationDeadline": "2030-01-01T00:00:00"}, headers=recruiter[1])

    response = client.put(path, json={"applicationDeadline": None}, headers=recruiter[1])

    assert response.status_code == 200
    assert response.json()["job"]["applicationDeadline"] is None


def test_other_recruiter_cannot_update_or_delete(client, register_user, recruiter, create_job):
    job = create_job(recruiter[1])
    _, other = register_user("recruiter")

    update = client.put(f"/api/jobs/{job['id']}", json={"title": "Hijacked"}, headers=other)
    delete = client.delete(f"/api/jobs/{job['id']}", headers=other)
    toggle = client.post(f"/api/jobs/{job['id']}/toggle-status", headers=other)

    for response in (update, delete, toggle):
        assert response.status_code == 403
        assert response.json() == {"message": "Access denied. Not the owner."}


def test_admin_can_update_any_job(client, admin, recruiter, create_job):
    job = create_job(recruiter[1])

    response = client.put(f"/api/jobs/{job['id']}", json={"location": "Remote"}, headers=admin[1])

    assert response.status_code == 200
    assert response.json()["job"]["location"] == "Remote"


def test_missing_job_is_404_before_ownership(client, recruiter):
    for job_id in (str(ObjectId()), "not-an-id"):
        response = client.put(f"/api/jobs/{job_id}", json={"title": "Whatever"}, headers=recruiter[1])
        assert response.status_code == 404
        assert response.json() == {"message": "Job not found"}


def test_owner_can_delete(client, recruiter, create_job):
    job = create_job(recruiter[1])

    assert client.delete(f"/api/jobs/{job['id']}", headers=recruiter[1]).status_code == 200
    assert client.get(f"/api/jobs/{job['id']}", headers=recruiter[1]).status_code == 404


def test_toggle_status_hides_job(client, recruiter, open_job):
    response = client.post(f"/api/jobs/{open_job['id']}/toggle-status", headers=recruiter[1])

    assert response.status_code == 200
    assert response.json()["job"]["isActive"] is False
    assert client.get("/api/jobs").json()["total"] == 0

    again = client.post(f"/api/jobs/{open_job['id']}/toggle-status", headers=recruiter[1])
    assert again.json()["job"]["isActive"] is True


# ---------------- detail & views ----------------

def test_detail_counts_every_view(client, open_job):
    first = client.get(f"/api/jobs/{open_job['id']}").json()["job"]["views"]
    second = client.get(f"/api/jobs/{open_job['id']}").json()["job"]["views"]

    assert second == first + 1


def test_increment_views_endpoint(client, open_job):
    before = client.get(f"/api/jobs/{open_job['id']}").json()["job"]["views"]

    response = client.post(f"/api/jobs/{open_job['id']}/increment-views")

    assert response.status_code == 200
    assert response.json() == {"views": before + 1}
    assert client.post(f"/api/jobs/{ObjectId()}/increment-views").status_code == 404


def test_unapproved_job_detail_visible_only_to_owner_and_admin(client, register_user, admin, recruiter, create_job):
    job = create_job(recruiter[1])
    _, seeker = register_user("jobseeker")

    assert client.get(f"/api/jobs/{job['id']}").status_code == 404
    assert client.get(f"/api/jobs/{job['id']}", headers=seeker).status_code == 404
    assert client.get(f"/api/jobs/{job['id']}", headers=recruiter[1]).status_code == 200
    assert client.get(f"/api/jobs/{job['id']}", headers=admin[1]).status_code == 200


# ---------------- listing ----------------

def test_listing_filters(client, admin, create_job):
    create_job(admin[1], title="Backend Engineer", skills=["Go", "SQL"], location="Berlin",
               salary={"min": 80000, "max": 120000}, jobType="full-time", experience="mid")
    create_job(admin[1], title="Frontend Developer", skills=["React", "CSS"], location="Remote - EU",
               salary={"min": 50000, "max": 70000}, jobType="contract", experience="entry",
               company={"name": "Pixel Works"})

    def titles(**params):
        return sorted(job["title"] for job in client.get("/api/jobs", params=params).json()["jobs"])

    assert titles(search="backend") == ["Backend Engineer"]
    assert titles(search="pixel") == ["Frontend Developer"]
    assert titles(search="react") == ["Frontend Developer"]
    assert titles(location="remote") == ["Frontend Developer"]
    assert titles(jobType="contract") == ["Frontend Developer"]
    assert titles(experience="mid") == ["Backend Engineer"]
    assert titles(skills="SQL,Haskell") == ["Backend Engineer"]
    assert titles(minSalary=75000) == ["Backend Engineer"]
    assert titles(maxSalary=60000) == ["Frontend Developer"]
    assert titles(minSalary=65000, maxSalary=85000) == ["Backend Engineer", "Frontend Developer"]
    assert titles(search="(") == []


def test_listing_is_repeatable(client, admin, create_job):
    for n in range(3):
        create_job(admin[1], title=f"Engineer {n}")

    first = client.get("/api/jobs", params={"search": "engineer", "limit": 2}).json()
    second = client.get("/api/jobs", params={"search": "engineer", "limit": 2}).json()

    assert first == second
    assert first["total"] == 3


def test_listing_pagination(client, admin, create_job):
    for n in range(5):
        create_job(admin[1], title=f"Engineer {n}")

    page = client.get("/api/jobs", params={"page": 2, "limit": 2}).json()

    assert page["total"] == 5
    assert page["totalPages"] == 3
    assert page["currentPage"] == 2
    assert len(page["jobs"]) == 2
    assert page["hasNextPage"] is True
    assert page["hasPrevPage"] is True

    last = client.get("/api/jobs", params={"page": 3, "limit": 2}).json()
    assert len(last["jobs"]) == 1
    assert last["hasNextPage"] is False


def test_listing_sort(client, admin, create_job):
    create_job(admin[1], title="Mid Salary", salary={"min": 60000, "max": 90000})
    create_job(admin[1], title="Low Salary", salary={"min": 30000, "max": 40000})
    create_job(admin[1], title="High Salary", salary={"min": 150000, "max": 200000})

    jobs = client.get("/api/jobs", params={"sortBy": "salary", "sortOrder": "asc"}).json()["jobs"]

    assert [job["title"] for job in jobs] == ["Low Salary", "Mid Salary", "High Salary"]


def test_invalid_query_parameters(client):
    assert client.get("/api/jobs", params={"page": 0}).status_code == 400
    assert client.get("/api/jobs", params={"sortBy": "password"}).status_code == 400


def test_search_suggestions(client, admin, create_job):
    create_job(admin[1], title="Backend Engineer")
    create_job(admin[1], title="Backend Engineer")
    create_job(admin[1], title="Data Engineer")

    response = client.get("/api/jobs/search/suggestions", params={"q": "engineer"})

    assert response.json()["suggestions"] == ["Backend Engineer", "Data Engineer"]
    assert client.get("/api/jobs/search/suggestions", params={"q": "e"}).json() == {"suggestions": []}


def test_my_jobs(client, register_user, recruiter, create_job, approve_job):
    approved = create_job(recruiter[1], title="Approved Role")
    approve_job(approved["id"])
    create_job(recruiter[1], title="Pending Role")
    _, other = register_user("recruiter")
    create_job(other, title="Someone Else's Role")

    everything = client.get("/api/jobs/recruiter/my-jobs", headers=recruiter[1]).json()
    pending = client.get("/api/jobs/recruiter/my-jobs", params={"status": "pending"}, headers=recruiter[1]).json()
    active = client.get("/api/jobs/recruiter/my-jobs", params={"status": "active"}, headers=recruiter[1]).json()

    assert everything["total"] == 2
    assert [job["title"] for job in pending["jobs"]] == ["Pending Role"]
    assert [job["title"] for job in active["jobs"]] == ["Approved Role"]
