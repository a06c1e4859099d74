"""
Authority derivation.

An authority is either a role held by a principal or a permission reachable
through one of those roles. The two kinds are kept apart by an explicit tag
rather than by a naming convention.
"""
import enum
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Union

from userservice.auth.catalog import PermissionName, RoleName


class AuthorityKind(str, enum.Enum):
    ROLE = "role"
    PERMISSION = "permission"


@dataclass(frozen=True)
class Authority:
    kind: AuthorityKind
    name: str

    @classmethod
    def role(cls, name: Union[RoleName, str]) -> "Authority":
        return cls(AuthorityKind.ROLE, RoleName(name).value)

    @classmethod
    def permission(cls, name: Union[PermissionName, str]) -> "Authority":
        return cls(AuthorityKind.PERMISSION, PermissionName(name).value)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class AuthoritySet:
    """Immutable set of authorities with role/permission views."""
    authorities: FrozenSet[Authority] = frozenset()

    @classmethod
    def of(cls, authorities: Iterable[Authority]) -> "AuthoritySet":
        return cls(frozenset(authorities))

    @classmethod
    def from_names(cls, roles: Iterable[str] = (), permissions: Iterable[str] = ()) -> "AuthoritySet":
        """Rebuild a set from separate role and permission name lists (e.g. token claims)."""
        items = {Authority.role(r) for r in roles}
        items.update(Authority.permission(p) for p in permissions)
        return cls(frozenset(items))

    @property
    def role_names(self) -> FrozenSet[str]:
        return frozenset(a.name for a in self.authorities if a.kind is AuthorityKind.ROLE)

    @property
    def permission_names(self) -> FrozenSet[str]:
        return frozenset(a.name for a in self.authorities if a.kind is AuthorityKind.PERMISSION)

    def has_role(self, role: Union[RoleName, str]) -> bool:
        try:
            return Authority.role(role) in self.authorities
        except ValueError:
            # Outside the catalog, so never held
            return False

    def has_permission(self, permission: Union[PermissionName, str]) -> bool:
        try:
            return Authority.permission(permission) in self.authorities
        except ValueError:
            return False

    def __contains__(self, item: Authority) -> bool:
        return item in self.authorities

    def __iter__(self):
        return iter(self.authorities)

    def __len__(self) -> int:
        return len(self.authorities)


def derive_authorities(user) -> AuthoritySet:
    """
    Flatten a user's roles and their permissions into one authority set.

    Recomputed from the current role membership on every call; nothing is
    cached across role mutations.
    """
    items = set()
    for role in user.roles:
        items.add(Authority.role(role.name))
        for permission in role.permissions:
            items.add(Authority.permission(permission.name))
    return AuthoritySet(frozenset(items))
