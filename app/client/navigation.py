"""
Client navigation - which screens a session may open.

resolve_route() answers with either the requested path or a redirect:
- /login         not signed in, screen needs an account
- /unauthorized  signed in, wrong role (admins are never sent here)
- /404           no such screen
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern

from app.client.session import Session
from app.schemas.schemas import Role

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
NOT_FOUND_PATH = "/404"


class Access(str, Enum):
    public = "public"
    authenticated = "authenticated"
    recruiter = "recruiter"
    admin = "admin"


@dataclass(frozen=True)
class Screen:
    path: str
    access: Access
    pattern: Pattern

    @classmethod
    def define(cls, path: str, access: Access) -> "Screen":
        # ":param" segments match any single path segment
        regex = "^" + re.sub(r":[A-Za-z_]+", r"[^/]+", path) + "/?$"
        return cls(path=path, access=access, pattern=re.compile(regex))


# Literal paths come before parameterized siblings (/jobs/post before /jobs/:id)
SCREENS: List[Screen] = [
    Screen.define("/", Access.public),
    Screen.define("/login", Access.public),
    Screen.define("/register", Access.public),
    Screen.define("/forgot-password", Access.public),
    Screen.define("/reset-password/:token", Access.public),
    Screen.define("/jobs", Access.public),
    Screen.define("/jobs/post", Access.recruiter),
    Screen.define("/jobs/edit/:id", Access.recruiter),
    Screen.define("/jobs/:id/applications", Access.recruiter),
    Screen.define("/jobs/:id", Access.public),
    Screen.define("/users/:id", Access.public),
    Screen.define("/dashboard", Access.authenticated),
    Screen.define("/profile", Access.authenticated),
    Screen.define("/applications", Access.authenticated),
    Screen.define("/applications/:id", Access.authenticated),
    Screen.define("/recruiter/dashboard", Access.recruiter),
    Screen.define("/recruiter/jobs", Access.recruiter),
    Screen.define("/admin/dashboard", Access.admin),
    Screen.define("/admin/users", Access.admin),
    Screen.define("/admin/jobs", Access.admin),
    Screen.define("/admin/applications", Access.admin),
    Screen.define("/admin/analytics", Access.admin),
    Screen.define("/unauthorized", Access.public),
    Screen.define("/404", Access.public),
]

HOME_PATHS = {
    Role.jobseeker: "/dashboard",
    Role.recruiter: "/recruiter/dashboard",
    Role.admin: "/admin/dashboard",
}


@dataclass(frozen=True)
class RouteDecision:
    path: str
    allowed: bool
    redirect: Optional[str] = None


def find_screen(path: str) -> Optional[Screen]:
    path = path.split("?", 1)[0]
    for screen in SCREENS:
        if screen.pattern.match(path):
            return screen
    return None


def resolve_route(path: str, session: Session) -> RouteDecision:
    screen = find_screen(path)
    if screen is None:
        return RouteDecision(path=path, allowed=False, redirect=NOT_FOUND_PATH)
    if screen.access is Access.public:
        return RouteDecision(path=path, allowed=True)

    role = session.role
    if role is None:
        return RouteDecision(path=path, allowed=False, redirect=LOGIN_PATH)
    if screen.access is Access.authenticated or role is Role.admin:
        return RouteDecision(path=path, allowed=True)
    if screen.access.value != role.value:
        return RouteDecision(path=path, allowed=False, redirect=UNAUTHORIZED_PATH)
    return RouteDecision(path=path, allowed=True)


def home_path(role: Optional[Role]) -> str:
    """Landing screen after login."""
    if role is None:
        return "/"
    return HOME_PATHS.get(Role(role), "/")
