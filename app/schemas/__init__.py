"""
Schemas module - Request/Response schemas for API endpoints.

Documents in MongoDB use snake_case keys; these schemas are the API
contract and speak camelCase on the wire.
"""

from app.schemas.schemas import ApplicationStatus, ExperienceLevel, JobType, Role

__all__ = ["ApplicationStatus", "ExperienceLevel", "JobType", "Role"]
