"""
Navigation Middleware

Runs the tenant/session gate on every request:

  1. restore the session from the durable auth cookies (no network)
  2. derive the tenant key from the Host header and resolve its configuration
     (session-cached after the first fetch)
  3. ask the RouteGuard for a NavigationDecision and carry it out

Sets request.state.portal (PortalContext) for downstream views. Cookie
changes made anywhere in the request are written onto the final response.

Starlette middleware is LIFO: SessionMiddleware is registered AFTER this
middleware in create_app(), so request.session is already loaded here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from inventory_portal.constants.routes import is_exempt
from inventory_portal.dependencies import build_portal_context
from inventory_portal.services.route_guard import (
    ClientRedirect,
    CrossOriginRedirect,
    RenderLoading,
    RenderRoute,
    RenderTenantError,
    RouteGuard,
)
from inventory_portal.services.tenant_resolver import derive_tenant_key
from inventory_portal.templating import render

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx
    from fastapi import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from inventory_portal.config import Settings
    from inventory_portal.services.route_guard import NavigationDecision

logger = logging.getLogger(__name__)


class NavigationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        super().__init__(app)
        self.settings = settings
        self.transport = transport
        self.guard = RouteGuard(
            root_origin=settings.root_origin,
            marketing_path=settings.marketing_path,
            login_path=settings.login_path,
            admin_role=settings.admin_role,
            redirect_on_tenant_failure=settings.redirect_on_tenant_failure,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if is_exempt(request.url.path):
            return await call_next(request)

        portal = build_portal_context(request, self.settings, self.transport)
        request.state.portal = portal

        # Session restore is local and must finish before any route evaluation
        portal.session_store.restore()

        portal.tenant_key = derive_tenant_key(request.headers.get("host", ""), self.settings.loopback_label)
        request.state.tenant_key = portal.tenant_key
        state = await portal.resolver.current(portal.tenant_key)

        decision = self.guard.evaluate(request.url.path, state, portal.session_store.current())
        session = portal.session_store.current()
        request.state.username = session.subject if session else None

        response = await self._execute(decision, request, call_next)
        portal.durable.flush(response)
        return response

    async def _execute(self, decision: NavigationDecision, request: Request, call_next: Callable) -> Response:
        if isinstance(decision, RenderRoute):
            return await call_next(request)

        if isinstance(decision, ClientRedirect):
            logger.debug("Redirecting %s → %s", request.url.path, decision.path)
            return RedirectResponse(decision.path, status_code=302)

        if isinstance(decision, CrossOriginRedirect):
            logger.warning(
                "Leaving tenant context '%s', redirecting to %s",
                request.state.tenant_key,
                decision.url,
            )
            return RedirectResponse(decision.url, status_code=302)

        if isinstance(decision, RenderLoading):
            return render(request, "loading.html", status_code=503)

        if isinstance(decision, RenderTenantError):
            return render(request, "tenant_error.html", {"reason": decision.reason}, status_code=502)

        raise TypeError(f"Unknown navigation decision: {decision!r}")
