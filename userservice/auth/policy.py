"""
Access decision point.

Policies are small immutable expressions over an AuthoritySet:

    AnyRole(RoleName.ROLE_ADMIN, RoleName.ROLE_MANAGER)
    AllPermissions(PermissionName.USER_UPDATE, PermissionName.ROLE_UPDATE)
    AnyRole(RoleName.ROLE_ADMIN) | AllPermissions(PermissionName.USER_DELETE)

Evaluation is a pure set-membership test.
"""
import enum
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from userservice.auth.authorities import AuthoritySet
from userservice.auth.catalog import PermissionName, RoleName
from userservice.auth.errors import Forbidden


class Decision(str, enum.Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class Policy:
    """Base class for required-authority expressions."""

    def allows(self, authorities: AuthoritySet) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def __and__(self, other: "Policy") -> "Policy":
        return AllOf((self, other))

    def __or__(self, other: "Policy") -> "Policy":
        return AnyOf((self, other))

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True, init=False)
class AnyRole(Policy):
    """Satisfied when at least one of the roles is held."""
    roles: FrozenSet[RoleName]

    def __init__(self, *roles):
        if not roles:
            raise ValueError("AnyRole needs at least one role")
        object.__setattr__(self, "roles", frozenset(RoleName(r) for r in roles))

    def allows(self, authorities: AuthoritySet) -> bool:
        return any(authorities.has_role(r) for r in self.roles)

    def describe(self) -> str:
        return "any role of [" + ", ".join(sorted(r.value for r in self.roles)) + "]"


@dataclass(frozen=True, init=False)
class AllPermissions(Policy):
    """Satisfied when every listed permission is held."""
    permissions: FrozenSet[PermissionName]

    def __init__(self, *permissions):
        if not permissions:
            raise ValueError("AllPermissions needs at least one permission")
        object.__setattr__(self, "permissions", frozenset(PermissionName(p) for p in permissions))

    def allows(self, authorities: AuthoritySet) -> bool:
        return all(authorities.has_permission(p) for p in self.permissions)

    def describe(self) -> str:
        return "all permissions of [" + ", ".join(sorted(p.value for p in self.permissions)) + "]"


@dataclass(frozen=True)
class AllOf(Policy):
    policies: Tuple[Policy, ...]

    def allows(self, authorities: AuthoritySet) -> bool:
        return all(p.allows(authorities) for p in self.policies)

    def describe(self) -> str:
        return "(" + " AND ".join(p.describe() for p in self.policies) + ")"


@dataclass(frozen=True)
class AnyOf(Policy):
    policies: Tuple[Policy, ...]

    def allows(self, authorities: AuthoritySet) -> bool:
        return any(p.allows(authorities) for p in self.policies)

    def describe(self) -> str:
        return "(" + " OR ".join(p.describe() for p in self.policies) + ")"


def decide(policy: Policy, authorities: AuthoritySet) -> Decision:
    """Evaluate ``policy`` against a presented authority set."""
    return Decision.ALLOW if policy.allows(authorities) else Decision.DENY


def ensure(policy: Policy, authorities: AuthoritySet) -> None:
    """
    Raise Forbidden unless ``authorities`` satisfy ``policy``.

    Raises:
        Forbidden: If the decision is DENY
    """
    if decide(policy, authorities) is Decision.DENY:
        raise Forbidden(f"Access denied: requires {policy.describe()}")
