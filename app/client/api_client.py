"""
Job board API client (httpx).

Every non-2xx response goes through translate_error(), which turns it into
an ApiError carrying a user-facing message. A 401 also expires the session.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from app.client.session import Session

logger = structlog.get_logger(__name__)

SESSION_EXPIRED = "Session expired. Please login again."
FORBIDDEN = "You do not have permission to perform this action."
NOT_FOUND = "Resource not found."
VALIDATION_ERROR = "Validation error"
SERVER_ERROR = "Server error. Please try again later."
GENERIC_ERROR = "An error occurred"
NETWORK_ERROR = "Network error. Please check your connection."


class ApiError(Exception):
    """A failed API call. status is None for transport failures."""

    def __init__(self, status: Optional[int], message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.errors = errors or []


def _body(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def translate_error(response: httpx.Response, session: Optional[Session] = None) -> ApiError:
    """Map an error response to the message shown to the user."""
    status = response.status_code
    body = _body(response)

    if status == 401:
        if session is not None:
            session.expire()
        return ApiError(status, SESSION_EXPIRED)
    if status == 403:
        return ApiError(status, FORBIDDEN)
    if status == 404:
        return ApiError(status, NOT_FOUND)
    if status in (400, 422):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            messages = [
                (err.get("msg") if isinstance(err, dict) else None) or VALIDATION_ERROR
                for err in errors
            ]
            return ApiError(status, messages[0], messages)
        return ApiError(status, body.get("message") or VALIDATION_ERROR)
    if status == 500:
        return ApiError(status, SERVER_ERROR)
    return ApiError(status, body.get("message") or GENERIC_ERROR)


class JobBoardClient:
    """
    Synchronous client for the /api surface.

    `base_url` includes the /api prefix. Pass `transport` to route requests
    somewhere other than the network (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[Session] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.session = session if session is not None else Session()
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "JobBoardClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, *, json: Any = None, params: Optional[dict] = None) -> Any:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        try:
            response = self._http.request(
                method, path, json=json, params=params, headers=self.session.auth_headers()
            )
        except httpx.TransportError as exc:
            logger.warning("api unreachable", method=method, path=path, error=str(exc))
            raise ApiError(None, NETWORK_ERROR) from exc

        if response.is_error:
            error = translate_error(response, self.session)
            logger.warning("api error", method=method, path=path, status=error.status, message=error.message)
            raise error
        return response.json()

    # ---------------- auth ----------------

    def register(self, name: str, email: str, password: str, role: str = "jobseeker", **extra) -> dict:
        data = self._request("POST", "/auth/register",
                             json={"name": name, "email": email, "password": password, "role": role, **extra})
        self.session.start(data["token"], data["user"])
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.session.start(data["token"], data["user"])
        return data

    def logout(self) -> None:
        self.session.clear()

    def me(self) -> dict:
        data = self._request("GET", "/auth/me")
        self.session.update_user(data["user"])
        return data["user"]

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self._request("POST", "/auth/change-password",
                             json={"currentPassword": current_password, "newPassword": new_password})

    # ---------------- users ----------------

    def get_profile(self) -> dict:
        return self._request("GET", "/users/profile")["user"]

    def update_profile(self, **fields) -> dict:
        user = self._request("PUT", "/users/profile", json=fields)["user"]
        self.session.update_user(user)
        return user

    def delete_account(self) -> dict:
        data = self._request("DELETE", "/users/profile")
        self.session.clear()
        return data

    def upload_avatar(self, avatar_url: str) -> dict:
        return self._request("POST", "/users/upload-avatar", json={"avatarUrl": avatar_url})["user"]

    def get_user(self, user_id: str) -> dict:
        return self._request("GET", f"/users/{user_id}")["user"]

    def get_recruiters(self, **params) -> dict:
        return self._request("GET", "/users/recruiters", params=params)

    def get_jobseekers(self, **params) -> dict:
        return self._request("GET", "/users/jobseekers", params=params)

    # ---------------- jobs ----------------

    def list_jobs(self, **params) -> dict:
        """Params use wire names: search, location, jobType, minSalary, sortBy, page, limit..."""
        return self._request("GET", "/jobs", params=params)

    def get_job(self, job_id: str) -> dict:
        return self._request("GET", f"/jobs/{job_id}")["job"]

    def create_job(self, job: dict) -> dict:
        return self._request("POST", "/jobs", json=job)["job"]

    def update_job(self, job_id: str, changes: dict) -> dict:
        return self._request("PUT", f"/jobs/{job_id}", json=changes)["job"]

    def delete_job(self, job_id: str) -> dict:
        return self._request("DELETE", f"/jobs/{job_id}")

    def my_jobs(self, **params) -> dict:
        return self._request("GET", "/jobs/recruiter/my-jobs", params=params)

    def toggle_job_status(self, job_id: str) -> dict:
        return self._request("POST", f"/jobs/{job_id}/toggle-status")["job"]

    def job_suggestions(self, query: str) -> List[str]:
        return self._request("GET", "/jobs/search/suggestions", params={"q": query})["suggestions"]

    def increment_views(self, job_id: str) -> int:
        return self._request("POST", f"/jobs/{job_id}/increment-views")["views"]

    # ---------------- applications ----------------

    def apply(self, job_id: str, cover_letter: str, **extra) -> dict:
        payload = {"jobId": job_id, "coverLetter": cover_letter, **extra}
        return self._request("POST", "/applications", json=payload)["application"]

    def my_applications(self, **params) -> dict:
        return self._request("GET", "/applications/my-applications", params=params)

    def recruiter_applications(self, **params) -> dict:
        return self._request("GET", "/applications/recruiter/applications", params=params)

    def application_stats(self) -> dict:
        return self._request("GET", "/applications/stats")

    def job_applications(self, job_id: str, **params) -> dict:
        return self._request("GET", f"/applications/job/{job_id}", params=params)

    def check_applied(self, job_id: str) -> dict:
        return self._request("GET", f"/applications/check-applied/{job_id}")

    def get_application(self, application_id: str) -> dict:
        return self._request("GET", f"/applications/{application_id}")["application"]

    def update_application_status(self, application_id: str, status: str,
                                  recruiter_notes: Optional[str] = None,
                                  interview_date: Optional[str] = None) -> dict:
        payload = {"status": status, "recruiterNotes": recruiter_notes, "interviewDate": interview_date}
        payload = {key: value for key, value in payload.items() if value is not None}
        return self._request("PUT", f"/applications/{application_id}/status", json=payload)["application"]

    def withdraw_application(self, application_id: str) -> dict:
        return self._request("DELETE", f"/applications/{application_id}")["application"]

    # ---------------- admin ----------------

    def admin_dashboard(self) -> dict:
        return self._request("GET", "/admin/dashboard")

    def admin_users(self, **params) -> dict:
        return self._request("GET", "/admin/users", params=params)

    def admin_set_user_status(self, user_id: str, is_active: bool) -> dict:
        return self._request("PUT", f"/admin/users/{user_id}/status", json={"isActive": is_active})["user"]

    def admin_delete_user(self, user_id: str) -> dict:
        return self._request("DELETE", f"/admin/users/{user_id}")

    def admin_jobs(self, **params) -> dict:
        return self._request("GET", "/admin/jobs", params=params)

    def admin_approve_job(self, job_id: str, is_approved: bool = True, reason: Optional[str] = None) -> dict:
        payload = {"isApproved": is_approved}
        if reason:
            payload["reason"] = reason
        return self._request("PUT", f"/admin/jobs/{job_id}/approve", json=payload)["job"]

    def admin_delete_job(self, job_id: str) -> dict:
        return self._request("DELETE", f"/admin/jobs/{job_id}")

    def admin_applications(self, **params) -> dict:
        return self._request("GET", "/admin/applications", params=params)

    def admin_analytics(self, period: int = 30) -> dict:
        return self._request("GET", "/admin/analytics", params={"period": period})

    # ---------------- misc ----------------

    def health(self) -> dict:
        return self._request("GET", "/health")
