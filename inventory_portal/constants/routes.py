"""Route access table used by the route guard."""

from enum import Enum


class RouteAccess(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    ADMIN = "admin"


ROOT_PATH = "/"

ROUTE_ACCESS = {
    "/login": RouteAccess.PUBLIC,
    "/signup": RouteAccess.PUBLIC,
    "/logout": RouteAccess.PUBLIC,
    "/index": RouteAccess.PUBLIC,
    "/dashboard": RouteAccess.PROTECTED,
    "/inventory": RouteAccess.PROTECTED,
    "/suppliers": RouteAccess.PROTECTED,
    "/invoices": RouteAccess.PROTECTED,
    "/batches": RouteAccess.PROTECTED,
    "/sales": RouteAccess.PROTECTED,
    "/users": RouteAccess.ADMIN,
    "/settings": RouteAccess.ADMIN,
}

# Served regardless of tenant or session state
EXEMPT_PREFIXES = ("/static", "/health")


def access_for(path: str) -> RouteAccess:
    """
    Return the access level for a path.

    Sub-paths inherit their parent's level ("/users/bob/delete" → ADMIN).
    Paths missing from the table are public so the framework can answer 404.
    """
    path = path.rstrip("/") or ROOT_PATH
    while path and path != ROOT_PATH:
        if path in ROUTE_ACCESS:
            return ROUTE_ACCESS[path]
        path = path.rsplit("/", 1)[0]
    return RouteAccess.PUBLIC


def is_exempt(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in EXEMPT_PREFIXES)
