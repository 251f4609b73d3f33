"""
Client session - who the client is acting as.

Lifecycle:
    anonymous --start()--> active --expire()--> expired
                              |                    |
                              +-----clear()--------+--> cleared

A session is passed to the client explicitly; nothing is read from
process-wide state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

import structlog

from app.schemas.schemas import Role

logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    anonymous = "anonymous"
    active = "active"
    expired = "expired"
    cleared = "cleared"


@dataclass
class Session:
    token: Optional[str] = None
    user: Optional[dict] = field(default=None, repr=False)
    state: SessionState = SessionState.anonymous

    def start(self, token: str, user: dict) -> None:
        """Login or registration succeeded."""
        self.token = token
        self.user = user
        self.state = SessionState.active
        logger.debug("session started", user_id=user.get("id"), role=user.get("role"))

    def expire(self) -> None:
        """The server rejected the credential (any 401)."""
        if self.state is not SessionState.active:
            return
        self.token = None
        self.user = None
        self.state = SessionState.expired
        logger.info("session expired")

    def clear(self) -> None:
        """Explicit logout."""
        self.token = None
        self.user = None
        self.state = SessionState.cleared

    def update_user(self, user: dict) -> None:
        if self.state is SessionState.active:
            self.user = user

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.active and bool(self.token)

    @property
    def role(self) -> Optional[Role]:
        if not self.is_authenticated or not self.user:
            return None
        try:
            return Role(self.user.get("role"))
        except ValueError:
            return None

    def auth_headers(self) -> Dict[str, str]:
        if not self.is_authenticated:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
