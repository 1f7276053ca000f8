from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import parse_qsl, urlsplit

SIGN_IN = "/sign-in"
SIGN_UP = "/sign-up"
VERIFY_EMAIL = "/verify-email"
HOME = "/"

PUBLIC_ROUTES = {SIGN_IN: "sign_in", SIGN_UP: "sign_up", VERIFY_EMAIL: "verify_email"}
NAVBAR_HIDDEN = {SIGN_IN, SIGN_UP}


@dataclass
class Route:
    name: str
    path: str
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def show_navbar(self) -> bool:
        return self.path not in NAVBAR_HIDDEN


def project_path(project_id: str) -> str:
    return f"/project/{project_id}"


class Router:
    """Maps paths to views, redirecting on authentication state."""

    def resolve(self, path: str, session) -> Route:
        parts = urlsplit(path or HOME)
        route_path = parts.path.rstrip("/") or HOME
        params = dict(parse_qsl(parts.query))
        authed = bool(session and session.is_authenticated)

        if route_path in PUBLIC_ROUTES:
            if authed and route_path in (SIGN_IN, SIGN_UP):
                return Route("dashboard", HOME)
            return Route(PUBLIC_ROUTES[route_path], route_path, params)

        if not authed:
            return Route("sign_in", SIGN_IN)

        if route_path.startswith("/project/"):
            project_id = route_path[len("/project/"):]
            if project_id and "/" not in project_id:
                return Route("project", route_path, {"id": project_id})
        return Route("dashboard", HOME)
