"""
End-to-end tests for the navigation gate

Requests go through the full middleware stack with the backend simulated by
httpx.MockTransport.
"""

import json
from urllib.parse import quote

from utils.backend import ROOT_ORIGIN, auth_cookie_header, deleted_cookies, make_token, sign_cookie


class TestTenantContext:
    """Tenant resolution drives navigation"""

    def test_unknown_subdomain_redirects_to_root_origin(self, make_client, backend):
        backend.add("GET", "/tenant-config/by-subdomain/acme", 404, {"message": "No such tenant"})
        client = make_client("acme.localhost")

        for path in ("/", "/login", "/dashboard", "/index"):
            response = client.get(path)
            assert response.status_code == 302
            assert response.headers["location"] == ROOT_ORIGIN

    def test_bare_domain_redirects_to_marketing(self, make_client, backend):
        client = make_client("example.com")

        response = client.get("/dashboard", headers=auth_cookie_header())

        assert response.status_code == 302
        assert response.headers["location"] == "/index"
        # No tenant key, so no lookup is made
        assert backend.calls == []

    def test_bare_domain_renders_marketing(self, make_client):
        client = make_client("localhost")

        response = client.get("/index")

        assert response.status_code == 200
        assert "Inventory management" in response.text

    def test_resolution_failure_renders_error_page(self, make_client, backend):
        backend.add("GET", "/tenant-config/by-subdomain/acme", 500, {"message": "Config service down"})
        client = make_client("acme.localhost")

        response = client.get("/login")

        assert response.status_code == 502
        assert "Config service down" in response.text

    def test_resolution_failure_can_redirect(self, make_client, backend):
        backend.add("GET", "/tenant-config/by-subdomain/acme", 500)
        client = make_client("acme.localhost", redirect_on_tenant_failure=True)

        response = client.get("/login")

        assert response.status_code == 302
        assert response.headers["location"] == ROOT_ORIGIN

    def test_config_fetched_once_per_browser_session(self, make_client, backend):
        backend.add_tenant("shop", {"brand": {"name": "Shop & Co"}})
        client = make_client("shop.example.com")

        first = client.get("/login")
        second = client.get("/login")

        assert first.status_code == second.status_code == 200
        assert "Shop &amp; Co" in second.text
        assert len(backend.requested("GET", "/tenant-config/by-subdomain/shop")) == 1

    def test_health_is_exempt(self, make_client, backend):
        client = make_client("ghost.localhost")

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert backend.calls == []


class TestSessionGate:
    """Session checks on a resolved tenant"""

    def test_resolved_tenant_non_admin_reaches_inventory(self, make_client, backend):
        backend.add_tenant("shop")
        backend.add("GET", "/products", json=[{"productId": "P-1", "name": "Milk", "remainingQuantity": 4}])
        client = make_client("shop.example.com")

        response = client.get("/inventory", headers=auth_cookie_header(roles=["ROLE_USER"]))

        assert response.status_code == 200
        assert "Milk" in response.text
        # Admin links are hidden for non-admins
        assert 'href="/users"' not in response.text

    def test_root_redirects_to_login(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client("shop.localhost")

        response = client.get("/")

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_protected_route_without_session(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client()

        response = client.get("/dashboard")

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_admin_route_for_non_admin(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client()

        response = client.get("/users", headers=auth_cookie_header(roles=["ROLE_USER"]))

        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert backend.requested("GET", "/users") == []

    def test_admin_route_for_admin(self, make_client, backend):
        backend.add_tenant("shop")
        backend.add("GET", "/users", json=[{"username": "alice", "roles": ["ROLE_ADMIN"]}, {"username": "bob", "roles": ["ROLE_USER"]}])
        client = make_client()

        response = client.get("/users", headers=auth_cookie_header(roles=["ROLE_USER", "ROLE_ADMIN"]))

        assert response.status_code == 200
        assert "bob" in response.text
        # Cannot delete yourself
        assert "/users/alice/delete" not in response.text
        assert "/users/bob/delete" in response.text

    def test_edited_identity_cookie_does_not_grant_admin(self, make_client, backend):
        backend.add_tenant("shop")
        backend.add("GET", "/tenant-config", json={"brand": {"name": "Shop"}})
        client = make_client()
        forged = json.dumps({"type": "Bearer", "username": "alice", "roles": ["ROLE_USER", "ROLE_ADMIN"]})
        cookie = f"token={sign_cookie(make_token())}; user={quote(forged, safe='')}"

        response = client.get("/settings", headers={"cookie": cookie})

        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert {"token", "user"} <= deleted_cookies(response)
        assert backend.requested("GET", "/tenant-config") == []

    def test_expired_session_is_purged_and_redirected(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client()

        response = client.get("/dashboard", headers=auth_cookie_header(token=make_token(minutes=-1)))

        assert response.status_code == 302
        assert response.headers["location"] == "/login"
        assert {"token", "user"} <= deleted_cookies(response)

    def test_backend_401_purges_and_redirects(self, make_client, backend):
        backend.add_tenant("shop")
        backend.add("GET", "/products", 401, {"message": "Token revoked"})
        client = make_client()

        response = client.get("/inventory", headers=auth_cookie_header())

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert {"token", "user"} <= deleted_cookies(response)

    def test_request_id_is_echoed(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client()

        response = client.get("/login", headers={"X-Request-ID": "req-123"})

        assert response.headers["x-request-id"] == "req-123"

    def test_unknown_path_is_404(self, make_client, backend):
        backend.add_tenant("shop")
        client = make_client()

        response = client.get("/no-such-page", headers={"accept": "application/json"})

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "Not Found"
