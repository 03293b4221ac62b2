"""
Per-request portal context and the FastAPI dependencies that expose it.

NavigationMiddleware builds one PortalContext per request and stores it on
``request.state.portal``; views receive it through ``get_portal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
from fastapi import Depends, Request

from inventory_portal.config import Settings
from inventory_portal.exceptions import SessionExpiredError
from inventory_portal.services.api_client import ApiClient
from inventory_portal.services.record_service import RecordGateway
from inventory_portal.services.session_store import Session, SessionStore
from inventory_portal.services.tenant_resolver import TenantResolver
from inventory_portal.utils.storage import CookieStore, MappingStore

if TYPE_CHECKING:
    from inventory_portal.schemas import TenantConfig


@dataclass
class PortalContext:
    settings: Settings
    durable: CookieStore
    session_store: SessionStore
    resolver: TenantResolver
    gateway: RecordGateway
    tenant_key: str | None = None

    @property
    def session(self) -> Session | None:
        return self.session_store.current()

    @property
    def tenant_config(self) -> TenantConfig | None:
        return self.resolver.config

    @property
    def is_admin(self) -> bool:
        return self.session_store.is_in_role(self.settings.admin_role)


def build_portal_context(
    request: Request,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PortalContext:
    """Wire the session store, resolver and gateway for one request."""
    durable = CookieStore(
        request,
        secret_key=settings.secret_key,
        max_age=settings.auth_cookie_max_age,
        secure=settings.secure_cookies,
    )
    session_store = SessionStore(durable)
    client = ApiClient(
        settings.api_base_url,
        token_provider=lambda: session_store.token,
        on_unauthorized=session_store.handle_unauthorized,
        timeout=settings.request_timeout_seconds,
        transport=transport,
    )
    session_store.client = client
    resolver = TenantResolver(client, MappingStore(request.session))
    return PortalContext(
        settings=settings,
        durable=durable,
        session_store=session_store,
        resolver=resolver,
        gateway=RecordGateway(client),
    )


def get_portal(request: Request) -> PortalContext:
    return request.state.portal


def require_session(portal: PortalContext = Depends(get_portal)) -> Session:
    """Return the active session or raise SessionExpiredError."""
    session = portal.session
    if session is None:
        raise SessionExpiredError()
    return session
