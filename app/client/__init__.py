"""
Client module - Python client for the job board API.

Usage:
    from app.client import JobBoardClient, Session
    client = JobBoardClient("http://localhost:8000/api", session=Session())
    client.login("jane@example.com", "secret1")
"""

from app.client.api_client import ApiError, JobBoardClient, translate_error
from app.client.navigation import home_path, resolve_route
from app.client.session import Session, SessionState

__all__ = [
    "ApiError",
    "JobBoardClient",
    "Session",
    "SessionState",
    "home_path",
    "resolve_route",
    "translate_error"
]
