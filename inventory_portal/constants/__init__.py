"""Constants package for the Inventory Portal."""

from .roles import ROLE_HIERARCHY, RoleName, display_role, normalize_role, role_rank
from .routes import ROUTE_ACCESS, RouteAccess, access_for, is_exempt

__all__ = [
    # Role constants
    "RoleName",
    "ROLE_HIERARCHY",
    "display_role",
    "normalize_role",
    "role_rank",
    # Route constants
    "RouteAccess",
    "ROUTE_ACCESS",
    "access_for",
    "is_exempt",
]
