"""
Closed catalogs of role and permission names.

Role and permission names are never free-form strings inside the service:
anything arriving from the outside is parsed into one of these enums first,
so an unknown name is rejected at the boundary.
"""
import enum
from typing import Dict, FrozenSet

from userservice.auth.errors import InvalidRoleName


class PermissionName(str, enum.Enum):
    """Fine-grained capabilities."""
    USER_READ = "USER_READ"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    ROLE_READ = "ROLE_READ"
    ROLE_UPDATE = "ROLE_UPDATE"
    VIEW_DASHBOARD = "VIEW_DASHBOARD"


class RoleName(str, enum.Enum):
    """Assignable roles."""
    ROLE_ADMIN = "ROLE_ADMIN"
    ROLE_MANAGER = "ROLE_MANAGER"
    ROLE_USER = "ROLE_USER"
    ROLE_GUEST = "ROLE_GUEST"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


# Role granted on registration and administrative creation
DEFAULT_ROLE = RoleName.ROLE_USER

ROLE_DESCRIPTIONS: Dict[RoleName, str] = {
    RoleName.ROLE_ADMIN: "Administrator with full access",
    RoleName.ROLE_MANAGER: "Manager with limited access",
    RoleName.ROLE_USER: "Regular user with basic access",
    RoleName.ROLE_GUEST: "Guest with minimal access",
}

ROLE_GRANTS: Dict[RoleName, FrozenSet[PermissionName]] = {
    RoleName.ROLE_ADMIN: frozenset(PermissionName),
    RoleName.ROLE_MANAGER: frozenset({
        PermissionName.USER_READ,
        PermissionName.USER_UPDATE,
        PermissionName.ROLE_READ,
        PermissionName.VIEW_DASHBOARD,
    }),
    RoleName.ROLE_USER: frozenset({
        PermissionName.USER_READ,
        PermissionName.VIEW_DASHBOARD,
    }),
    RoleName.ROLE_GUEST: frozenset({PermissionName.USER_READ}),
}


def permission_description(name: PermissionName) -> str:
    return f"Permission for {name.value}"


def parse_role_name(value: str) -> RoleName:
    """
    Resolve a role name from external input.

    Raises:
        InvalidRoleName: If ``value`` is not one of the known roles
    """
    try:
        return RoleName(value)
    except ValueError:
        raise InvalidRoleName(value) from None
