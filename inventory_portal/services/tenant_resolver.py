"""
Tenant Resolver

Resolves the current tenant from the subdomain of the request host, e.g.
acme.localhost or acme.example.com, and classifies the outcome:

  NoTenant  : no key derivable from the host (marketing/root context)
  Loading   : configuration fetch in flight
  Resolved  : configuration fetched; proceed to the app
  NotFound  : backend has no such tenant (404)
  Failed    : any other fetch error

The resolved configuration is cached in session-scoped storage under a
single key; one browser session drives one tenant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from inventory_portal.exceptions import ApiError, TenantNotFoundError, TenantResolutionError
from inventory_portal.schemas import TenantConfig
from inventory_portal.services.api_client import ApiClient
from inventory_portal.utils.storage import KeyValueStore

logger = logging.getLogger(__name__)

CONFIG_CACHE_KEY = "tenantConfig"
GENERIC_RESOLUTION_FAILURE = "Invalid subdomain - configuration not found"


def derive_tenant_key(host: str, loopback_label: str = "localhost") -> str | None:
    """
    Extract the tenant key from the request host.

    Examples:
        "acme.localhost"       → "acme"
        "localhost"            → None
        "acme.localhost:8000"  → "acme"
        "acme.example.com"     → "acme"
        "example.com"          → None
    """
    # Strip port if present
    hostname = host.split(":")[0].strip().lower()
    if not hostname:
        return None
    parts = hostname.split(".")

    if loopback_label in hostname:
        if len(parts) >= 2 and parts[0] != loopback_label:
            return parts[0]
        return None

    # A bare second-level domain is the root/marketing context
    if len(parts) > 2:
        return parts[0]
    return None


# ── Resolution states ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NoTenant:
    key: None = None


@dataclass(frozen=True)
class Loading:
    key: str


@dataclass(frozen=True)
class Resolved:
    key: str
    config: TenantConfig


@dataclass(frozen=True)
class NotFound:
    key: str


@dataclass(frozen=True)
class Failed:
    key: str
    reason: str


ResolutionState = Union[NoTenant, Loading, Resolved, NotFound, Failed]


class TenantResolver:
    """
    Fetches, caches and updates the active tenant's configuration.

    Args:
        client: Backend client; by-subdomain lookups go out unauthenticated
        cache: Session-scoped store holding the resolved configuration
    """

    def __init__(self, client: ApiClient, cache: KeyValueStore):
        self.client = client
        self.cache = cache
        self.state: ResolutionState = NoTenant()

    # ── cache ──────────────────────────────────────────────────────────────────

    def cached_config(self) -> TenantConfig | None:
        raw = self.cache.get(CONFIG_CACHE_KEY)
        if not raw:
            return None
        try:
            return TenantConfig.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable cached tenant config")
            self.cache.delete(CONFIG_CACHE_KEY)
            return None

    def _store(self, config: TenantConfig) -> None:
        # Whole-object replace; never merged into the previous copy
        self.cache.set(CONFIG_CACHE_KEY, config.model_dump_json(by_alias=True, exclude_none=True))

    def clear_cache(self) -> None:
        self.cache.delete(CONFIG_CACHE_KEY)

    # ── resolution ─────────────────────────────────────────────────────────────

    async def fetch_config(self, key: str) -> TenantConfig:
        """
        Fetch a tenant's configuration by subdomain key.

        Raises:
            TenantNotFoundError: backend answered 404
            TenantResolutionError: any other failure
        """
        try:
            data = await self.client.get(f"/tenant-config/by-subdomain/{key}", authenticated=False)
        except ApiError as e:
            if e.backend_status == 404:
                raise TenantNotFoundError(key) from e
            raise TenantResolutionError(key, e.message or GENERIC_RESOLUTION_FAILURE) from e
        try:
            return TenantConfig.model_validate(data or {})
        except PydanticValidationError as e:
            raise TenantResolutionError(key, "Tenant configuration is malformed") from e

    async def resolve(self, key: str) -> ResolutionState:
        """Fetch the configuration for ``key`` and move to a terminal state. No retries."""
        self.state = Loading(key)
        try:
            config = await self.fetch_config(key)
        except TenantNotFoundError as e:
            logger.warning("Subdomain '%s' not found, redirecting to root domain", e.tenant_key)
            self.state = NotFound(key)
        except TenantResolutionError as e:
            logger.error("Failed to resolve tenant '%s': %s", key, e.reason)
            self.state = Failed(key, e.reason)
        else:
            self._store(config)
            logger.debug("Resolved tenant '%s'", key)
            self.state = Resolved(key, config)
        return self.state

    async def current(self, key: str | None) -> ResolutionState:
        """Resolve ``key``, reusing the session-cached configuration when present."""
        if key is None:
            self.state = NoTenant()
            return self.state
        cached = self.cached_config()
        if cached is not None:
            self.state = Resolved(key, cached)
            return self.state
        return await self.resolve(key)

    # ── administration ─────────────────────────────────────────────────────────

    @property
    def config(self) -> TenantConfig | None:
        if isinstance(self.state, Resolved):
            return self.state.config
        return None

    def _replace(self, config: TenantConfig) -> TenantConfig:
        self._store(config)
        if self.state.key is not None:
            self.state = Resolved(self.state.key, config)
        return config

    async def load_config(self) -> TenantConfig | None:
        """
        Fetch the signed-in tenant's configuration.

        Returns None when the tenant has no configuration yet (400/404).
        """
        try:
            data = await self.client.get("/tenant-config")
        except ApiError as e:
            if e.backend_status in (400, 404):
                return None
            raise
        return TenantConfig.model_validate(data or {})

    async def update_config(self, config: TenantConfig) -> TenantConfig:
        """Submit a full replacement; the cache is only touched on success."""
        data = await self.client.put("/tenant-config", json=config.to_wire())
        updated = TenantConfig.model_validate(data) if data else config
        logger.info("Tenant configuration updated")
        return self._replace(updated)

    async def initialize_default_config(self) -> TenantConfig:
        """Ask the backend to create a default configuration for the current tenant."""
        data = await self.client.post("/tenant-config/initialize")
        config = TenantConfig.model_validate(data or {})
        logger.info("Tenant configuration initialized")
        return self._replace(config)
