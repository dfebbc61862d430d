"""
Tests for route guarding decisions
"""

import pytest

from auth.route_guard import (
    ADMIN_HOME, LANDING_PATH, LOGIN_PATH, USER_HOME, RouteAction, RouteDecision,
    decide, guard_protected, guard_public, match_route, post_auth_destination,
    role_home, share_id_from_path
)
from services.auth_service.models import Identity, Role


USER = Identity(id="u1", email="user@example.com", role=Role.USER)
ADMIN = Identity(id="a1", email="admin@example.com", role=Role.ADMIN)


class TestProtectedGuard:
    """Test guard_protected"""

    def test_waits_while_loading(self):
        assert guard_protected(None, loading=True) == RouteDecision.wait()

    def test_anonymous_goes_to_login(self):
        assert guard_protected(None, loading=False) == RouteDecision.redirect(LOGIN_PATH)

    def test_user_on_admin_route_goes_to_dashboard(self):
        decision = guard_protected(USER, loading=False, required_role=Role.ADMIN)

        assert decision == RouteDecision.redirect(USER_HOME)

    def test_admin_on_user_only_route_goes_to_admin_home(self):
        decision = guard_protected(ADMIN, loading=False, required_role=Role.USER)

        assert decision == RouteDecision.redirect(ADMIN_HOME)

    def test_matching_role_renders_with_chrome(self):
        decision = guard_protected(ADMIN, loading=False, required_role=Role.ADMIN)

        assert decision.action == RouteAction.RENDER
        assert decision.with_chrome is True

    def test_any_role_accepted_without_requirement(self):
        assert guard_protected(ADMIN, loading=False).action == RouteAction.RENDER
        assert guard_protected(USER, loading=False).action == RouteAction.RENDER


class TestPublicGuard:
    """Test guard_public"""

    def test_waits_while_loading(self):
        assert guard_public(USER, loading=True) == RouteDecision.wait()

    def test_anonymous_sees_page_without_chrome(self):
        decision = guard_public(None, loading=False)

        assert decision.action == RouteAction.RENDER
        assert decision.with_chrome is False

    @pytest.mark.parametrize("identity,home", [(USER, USER_HOME), (ADMIN, ADMIN_HOME)])
    def test_authenticated_goes_home(self, identity, home):
        assert guard_public(identity, loading=False) == RouteDecision.redirect(home)


class TestRouting:
    """Test the route table"""

    def test_role_home(self):
        assert role_home(Role.ADMIN) == "/admin"
        assert role_home(Role.USER) == "/dashboard"

    def test_match_known_routes(self):
        assert match_route("/admin/events").view == "manage_events"
        assert match_route("/dashboard/browse-events/").view == "browse_events"
        assert match_route("").view == "landing"

    def test_match_share_route(self):
        assert match_route("/share/abc123").view == "shared_event"
        assert share_id_from_path("/share/abc123") == "abc123"
        assert share_id_from_path("/share/") is None
        assert share_id_from_path("/admin") is None

    def test_unknown_path_goes_to_landing(self):
        assert decide("/nope", USER, loading=False) == RouteDecision.redirect(LANDING_PATH)

    def test_landing_and_share_need_no_session(self):
        assert decide("/", None, loading=False) == RouteDecision.render()
        assert decide("/share/xyz", None, loading=True) == RouteDecision.render()

    def test_anonymous_protected_route(self):
        assert decide("/dashboard/registrations", None, loading=False) == RouteDecision.redirect(LOGIN_PATH)

    def test_user_on_admin_routes(self):
        for path in ("/admin", "/admin/events", "/admin/create-event", "/admin/messages"):
            assert decide(path, USER, loading=False) == RouteDecision.redirect(USER_HOME)

    def test_admin_may_open_attendee_routes(self):
        assert decide("/dashboard", ADMIN, loading=False).action == RouteAction.RENDER

    def test_login_page_redirects_signed_in_user(self):
        assert decide(LOGIN_PATH, ADMIN, loading=False) == RouteDecision.redirect(ADMIN_HOME)


class TestPostAuthDestination:
    """Test where sign-in lands"""

    def test_user_lands_on_dashboard(self):
        assert post_auth_destination(USER) == "/dashboard"

    def test_admin_lands_on_admin(self):
        assert post_auth_destination(ADMIN) == "/admin"

    def test_pending_share_link_wins(self):
        assert post_auth_destination(USER, "abc") == "/share/abc"
