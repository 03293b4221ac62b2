"""
Route Guard

Decides what a navigation does, given the tenant resolution state and the
current session. The guard only returns a decision; the hosting shell
(NavigationMiddleware) carries it out.

Evaluation order:
  1. NoTenant            → marketing page (redirect there from any other path)
  2. Loading             → loading placeholder
  3. NotFound / Failed   → full redirect to the root origin / error page
  4. Resolved            → per-route access check
"""

import logging
from dataclasses import dataclass
from typing import Union

from inventory_portal.constants.roles import normalize_role
from inventory_portal.constants.routes import ROOT_PATH, RouteAccess, access_for
from inventory_portal.services.session_store import Session
from inventory_portal.services.tenant_resolver import (
    Failed,
    Loading,
    NoTenant,
    NotFound,
    Resolved,
    ResolutionState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderRoute:
    pass


@dataclass(frozen=True)
class RenderLoading:
    pass


@dataclass(frozen=True)
class RenderTenantError:
    reason: str


@dataclass(frozen=True)
class ClientRedirect:
    path: str


@dataclass(frozen=True)
class CrossOriginRedirect:
    url: str


NavigationDecision = Union[RenderRoute, RenderLoading, RenderTenantError, ClientRedirect, CrossOriginRedirect]


class RouteGuard:
    def __init__(
        self,
        root_origin: str,
        marketing_path: str = "/index",
        login_path: str = "/login",
        admin_role: str = "ADMIN",
        redirect_on_tenant_failure: bool = False,
    ):
        self.root_origin = root_origin
        self.marketing_path = marketing_path
        self.login_path = login_path
        self.admin_role = admin_role
        self.redirect_on_tenant_failure = redirect_on_tenant_failure

    def evaluate(self, path: str, state: ResolutionState, session: Session | None) -> NavigationDecision:
        """
        Decide the outcome of navigating to ``path``.

        Args:
            path: Requested URL path
            state: Tenant resolution state for the request host
            session: Valid session, or None (callers pass SessionStore.current())

        Returns:
            NavigationDecision for the hosting shell to execute
        """
        if isinstance(state, NoTenant):
            if path == self.marketing_path:
                return RenderRoute()
            return ClientRedirect(self.marketing_path)

        if isinstance(state, Loading):
            return RenderLoading()

        if isinstance(state, NotFound):
            return CrossOriginRedirect(self.root_origin)

        if isinstance(state, Failed):
            if self.redirect_on_tenant_failure:
                return CrossOriginRedirect(self.root_origin)
            return RenderTenantError(state.reason)

        if isinstance(state, Resolved):
            return self._authorize(path, session)

        raise TypeError(f"Unknown resolution state: {state!r}")

    def _authorize(self, path: str, session: Session | None) -> NavigationDecision:
        if path == ROOT_PATH:
            return ClientRedirect(self.login_path)

        access = access_for(path)
        if access is RouteAccess.PUBLIC:
            return RenderRoute()

        if session is None:
            logger.debug("No session for protected path %s", path)
            return ClientRedirect(self.login_path)

        if access is RouteAccess.ADMIN:
            wanted = normalize_role(self.admin_role)
            if not any(normalize_role(role) == wanted for role in session.roles):
                # Forbidden is not distinguished from unauthenticated at this layer
                logger.info("User '%s' lacks role %s for %s", session.subject, self.admin_role, path)
                return ClientRedirect(self.login_path)

        return RenderRoute()
