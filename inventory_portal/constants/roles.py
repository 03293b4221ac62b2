"""
Role Constants for the Inventory Portal

The backend reports roles as an array of labels, sometimes prefixed
("ROLE_ADMIN") and sometimes bare ("ADMIN"). Labels are normalised before
any comparison.
"""

from collections.abc import Iterable
from enum import Enum

ROLE_PREFIX = "ROLE_"


class RoleName(str, Enum):
    """Enumeration of role names known to the portal."""

    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


# Role hierarchy (higher number = more privileges)
ROLE_HIERARCHY = {
    RoleName.USER: 1,
    RoleName.MANAGER: 2,
    RoleName.ADMIN: 3,
}


def normalize_role(role: str) -> str:
    """Upper-case a role label and strip the ``ROLE_`` prefix."""
    label = role.strip().upper()
    if label.startswith(ROLE_PREFIX):
        label = label[len(ROLE_PREFIX):]
    return label


def role_rank(role: str) -> int:
    """Return the hierarchy rank of a role, 0 for unknown roles."""
    try:
        return ROLE_HIERARCHY[RoleName(normalize_role(role))]
    except ValueError:
        return 0


def display_role(roles: Iterable[str] | None) -> str:
    """
    Pick the role to show next to a username.

    Returns the highest-privilege role by ROLE_HIERARCHY. Unknown roles rank
    below every known role; ties keep the first one seen.

    Examples:
        ["USER", "ADMIN"]        → "ADMIN"
        ["ROLE_ADMIN"]           → "ADMIN"
        []                       → ""
    """
    best = ""
    best_rank = -1
    for role in roles or ():
        rank = role_rank(role)
        if rank > best_rank:
            best, best_rank = normalize_role(role), rank
    return best
