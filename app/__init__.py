"""
Job Board
A three-role (job seeker / recruiter / admin) job board backend.

Architecture:
- MongoDB: users, jobs, applications
- FastAPI: REST API under /api with JWT bearer authentication
- app.client: Python client with an explicit session and error translation
"""

__version__ = "1.0.0"
