"""
Role-based permissions.

A profile's role is the only authorization input. Admin operations accept
`admin` and `super_admin`; only a `super_admin` may hand out `super_admin`.
"""
import logging
from enum import Enum
from typing import FrozenSet, List, Optional

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Profile roles."""
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Map a stored role string to a Role, or None if unrecognised."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# ═══════════════════════════════════════════════════════════════════════════════
# ROLE SETS
# ═══════════════════════════════════════════════════════════════════════════════

ADMIN_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
ANY_ROLE: FrozenSet[Role] = frozenset(Role)
ASSIGNABLE_ROLES: FrozenSet[str] = frozenset(r.value for r in Role)


# ═══════════════════════════════════════════════════════════════════════════════
# PERMISSION HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def is_allowed(role: Optional[str], allowed: FrozenSet[Role]) -> bool:
    """
    Check if a stored role string is one of the allowed roles.

    Unknown role strings are never allowed.
    """
    parsed = Role.parse(role)
    return parsed is not None and parsed in allowed


def is_admin(role: Optional[str]) -> bool:
    """Check if a role may use the back-office."""
    return is_allowed(role, ADMIN_ROLES)


def is_super_admin(role: Optional[str]) -> bool:
    return Role.parse(role) is Role.SUPER_ADMIN


def can_assign_role(actor_role: Optional[str], target_role: str) -> bool:
    """
    Check if an actor may set another profile's role to target_role.

    Args:
        actor_role: Role of the caller
        target_role: Role being granted

    Returns:
        True if permitted, False otherwise
    """
    if target_role not in ASSIGNABLE_ROLES:
        return False
    if not is_admin(actor_role):
        return False
    if target_role == Role.SUPER_ADMIN.value:
        return is_super_admin(actor_role)
    return True


def get_all_roles() -> List[dict]:
    """Get list of all roles with metadata."""
    return [
        {"key": Role.USER.value, "name": "User", "description": "Storefront customer"},
        {"key": Role.ADMIN.value, "name": "Admin", "description": "Back-office access"},
        {"key": Role.SUPER_ADMIN.value, "name": "Super admin", "description": "Back-office access and role escalation"},
    ]
