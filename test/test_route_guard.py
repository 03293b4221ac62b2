"""
Tests for navigation decisions
"""

from datetime import datetime, timedelta, timezone

import pytest

from inventory_portal.constants.routes import RouteAccess, access_for, is_exempt
from inventory_portal.schemas import TenantConfig
from inventory_portal.services.route_guard import (
    ClientRedirect,
    CrossOriginRedirect,
    RenderLoading,
    RenderRoute,
    RenderTenantError,
    RouteGuard,
)
from inventory_portal.services.session_store import Session
from inventory_portal.services.tenant_resolver import Failed, Loading, NoTenant, NotFound, Resolved

ROOT = "http://portal.test"


def session(*roles: str) -> Session:
    return Session(
        raw_token="tok",
        subject="alice",
        email=None,
        roles=tuple(roles),
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def guard():
    return RouteGuard(root_origin=ROOT)


RESOLVED = Resolved("acme", TenantConfig())


class TestRouteTable:
    """Access levels by path"""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/login", RouteAccess.PUBLIC),
            ("/index", RouteAccess.PUBLIC),
            ("/dashboard", RouteAccess.PROTECTED),
            ("/inventory/", RouteAccess.PROTECTED),
            ("/batches/P-1/INV-1/delete", RouteAccess.PROTECTED),
            ("/users", RouteAccess.ADMIN),
            ("/users/bob/delete", RouteAccess.ADMIN),
            ("/settings/initialize", RouteAccess.ADMIN),
            ("/no-such-page", RouteAccess.PUBLIC),
        ],
    )
    def test_access_for(self, path, expected):
        assert access_for(path) is expected

    def test_exempt_paths(self):
        assert is_exempt("/health")
        assert is_exempt("/static/app.css")
        assert not is_exempt("/healthcheck")
        assert not is_exempt("/dashboard")


class TestTenantStates:
    """Tenant state takes precedence over route access"""

    def test_no_tenant_renders_marketing(self, guard):
        assert guard.evaluate("/index", NoTenant(), None) == RenderRoute()

    @pytest.mark.parametrize("path", ["/", "/login", "/dashboard", "/users"])
    def test_no_tenant_redirects_to_marketing(self, guard, path):
        assert guard.evaluate(path, NoTenant(), session("ADMIN")) == ClientRedirect("/index")

    def test_loading(self, guard):
        assert guard.evaluate("/dashboard", Loading("acme"), session("USER")) == RenderLoading()

    @pytest.mark.parametrize("path", ["/", "/login", "/index", "/dashboard"])
    def test_not_found_leaves_for_root_origin(self, guard, path):
        assert guard.evaluate(path, NotFound("acme"), None) == CrossOriginRedirect(ROOT)

    def test_failed_surfaces_reason(self, guard):
        decision = guard.evaluate("/login", Failed("acme", "backend down"), None)
        assert decision == RenderTenantError("backend down")

    def test_failed_can_redirect_instead(self):
        guard = RouteGuard(root_origin=ROOT, redirect_on_tenant_failure=True)
        assert guard.evaluate("/login", Failed("acme", "x"), None) == CrossOriginRedirect(ROOT)


class TestResolvedAccess:
    """Per-route checks once the tenant is resolved"""

    def test_root_goes_to_login(self, guard):
        assert guard.evaluate("/", RESOLVED, session("USER")) == ClientRedirect("/login")

    @pytest.mark.parametrize("path", ["/login", "/signup", "/logout", "/index", "/unknown"])
    def test_public_routes_render_without_session(self, guard, path):
        assert guard.evaluate(path, RESOLVED, None) == RenderRoute()

    @pytest.mark.parametrize("path", ["/dashboard", "/inventory", "/suppliers", "/invoices", "/batches", "/sales"])
    def test_protected_routes(self, guard, path):
        assert guard.evaluate(path, RESOLVED, None) == ClientRedirect("/login")
        assert guard.evaluate(path, RESOLVED, session("ROLE_USER")) == RenderRoute()

    @pytest.mark.parametrize("path", ["/users", "/settings"])
    def test_admin_routes(self, guard, path):
        assert guard.evaluate(path, RESOLVED, None) == ClientRedirect("/login")
        assert guard.evaluate(path, RESOLVED, session("ROLE_USER")) == ClientRedirect("/login")
        assert guard.evaluate(path, RESOLVED, session("ROLE_USER", "ROLE_ADMIN")) == RenderRoute()
        assert guard.evaluate(path, RESOLVED, session("admin")) == RenderRoute()

    def test_custom_paths(self):
        guard = RouteGuard(root_origin=ROOT, marketing_path="/welcome", login_path="/signin")
        assert guard.evaluate("/dashboard", NoTenant(), None) == ClientRedirect("/welcome")
        assert guard.evaluate("/dashboard", RESOLVED, None) == ClientRedirect("/signin")
