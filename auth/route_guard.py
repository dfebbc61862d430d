"""
Route guard: decides whether a view is reachable for the current session.

The decision functions are pure; the Streamlit layer turns a decision into
a spinner, a redirect or a rendered page.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from services.auth_service.models import Identity, Role


LOGIN_PATH = "/auth"
LANDING_PATH = "/"
ADMIN_HOME = "/admin"
USER_HOME = "/dashboard"
BROWSE_EVENTS_PATH = "/dashboard/browse-events"
SHARE_PREFIX = "/share/"


class RouteAction(Enum):
    WAIT = "wait"
    REDIRECT = "redirect"
    RENDER = "render"


class GuardKind(Enum):
    NONE = "none"          # anyone, no chrome
    PUBLIC_ONLY = "public"  # anonymous only (login page)
    PROTECTED = "protected"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    target: Optional[str] = None
    with_chrome: bool = False

    @classmethod
    def wait(cls) -> 'RouteDecision':
        return cls(RouteAction.WAIT)

    @classmethod
    def redirect(cls, target: str) -> 'RouteDecision':
        return cls(RouteAction.REDIRECT, target)

    @classmethod
    def render(cls, with_chrome: bool = False) -> 'RouteDecision':
        return cls(RouteAction.RENDER, with_chrome=with_chrome)


@dataclass(frozen=True)
class Route:
    path: str
    view: str
    guard: GuardKind = GuardKind.PROTECTED
    required_role: Optional[Role] = None


ROUTES: Dict[str, Route] = {
    route.path: route for route in [
        Route(LANDING_PATH, "landing", GuardKind.NONE),
        Route(LOGIN_PATH, "auth", GuardKind.PUBLIC_ONLY),
        Route(ADMIN_HOME, "admin_dashboard", required_role=Role.ADMIN),
        Route("/admin/events", "manage_events", required_role=Role.ADMIN),
        Route("/admin/create-event", "event_form", required_role=Role.ADMIN),
        Route("/admin/messages", "send_messages", required_role=Role.ADMIN),
        Route(USER_HOME, "user_dashboard"),
        Route("/dashboard/registrations", "user_registrations"),
        Route(BROWSE_EVENTS_PATH, "browse_events"),
    ]
}

SHARED_EVENT_ROUTE = Route(SHARE_PREFIX + "<share_id>", "shared_event", GuardKind.NONE)


def role_home(role: Role) -> str:
    """Default landing path for a role"""
    return ADMIN_HOME if role == Role.ADMIN else USER_HOME


def guard_protected(identity: Optional[Identity], loading: bool,
                    required_role: Optional[Role] = None) -> RouteDecision:
    if loading:
        return RouteDecision.wait()
    if identity is None:
        return RouteDecision.redirect(LOGIN_PATH)
    if required_role is not None and identity.role != required_role:
        return RouteDecision.redirect(role_home(identity.role))
    return RouteDecision.render(with_chrome=True)


def guard_public(identity: Optional[Identity], loading: bool) -> RouteDecision:
    if loading:
        return RouteDecision.wait()
    if identity is not None:
        return RouteDecision.redirect(role_home(identity.role))
    return RouteDecision.render()


def match_route(path: str) -> Optional[Route]:
    """Route for a path; share links carry their id in the path"""
    normalized = path.rstrip("/") or LANDING_PATH
    if normalized.startswith(SHARE_PREFIX) and len(normalized) > len(SHARE_PREFIX):
        return SHARED_EVENT_ROUTE
    return ROUTES.get(normalized)


def share_id_from_path(path: str) -> Optional[str]:
    normalized = path.rstrip("/")
    if normalized.startswith(SHARE_PREFIX):
        return normalized[len(SHARE_PREFIX):] or None
    return None


def decide(path: str, identity: Optional[Identity], loading: bool) -> RouteDecision:
    """Full decision for a requested path; unknown paths go to the landing page"""
    route = match_route(path)
    if route is None:
        return RouteDecision.redirect(LANDING_PATH)
    if route.guard == GuardKind.PUBLIC_ONLY:
        return guard_public(identity, loading)
    if route.guard == GuardKind.PROTECTED:
        return guard_protected(identity, loading, route.required_role)
    return RouteDecision.render()


def shared_event_path(share_id: str) -> str:
    return f"{SHARE_PREFIX}{share_id}"


def post_auth_destination(identity: Identity, pending_share_id: Optional[str] = None) -> str:
    """Where to go right after sign-in or sign-up"""
    if pending_share_id:
        return shared_event_path(pending_share_id)
    return role_home(identity.role)
