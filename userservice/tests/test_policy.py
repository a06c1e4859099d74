import pytest

from userservice.auth.authorities import AuthoritySet
from userservice.auth.catalog import PermissionName, RoleName
from userservice.auth.errors import Forbidden
from userservice.auth.policy import AllPermissions, AnyRole, Decision, decide, ensure

REGULAR_USER = AuthoritySet.from_names(roles=["ROLE_USER"], permissions=["USER_READ", "VIEW_DASHBOARD"])
MANAGER = AuthoritySet.from_names(
    roles=["ROLE_MANAGER"],
    permissions=["USER_READ", "USER_UPDATE", "ROLE_READ", "VIEW_DASHBOARD"],
)


def test_missing_permission_is_denied():
    assert decide(AllPermissions(PermissionName.USER_DELETE), REGULAR_USER) is Decision.DENY


def test_held_permission_is_allowed():
    assert decide(AllPermissions("USER_READ"), REGULAR_USER) is Decision.ALLOW


def test_all_permissions_needs_every_one():
    policy = AllPermissions(PermissionName.USER_UPDATE, PermissionName.ROLE_UPDATE)
    assert decide(policy, MANAGER) is Decision.DENY


def test_any_role_needs_one():
    policy = AnyRole(RoleName.ROLE_ADMIN, RoleName.ROLE_MANAGER)
    assert decide(policy, MANAGER) is Decision.ALLOW
    assert decide(policy, REGULAR_USER) is Decision.DENY


def test_role_name_does_not_satisfy_permission_requirement():
    # ROLE_READ is a permission; holding a role called ROLE_* must not count
    admin_role_only = AuthoritySet.from_names(roles=["ROLE_ADMIN"])
    assert decide(AllPermissions(PermissionName.ROLE_READ), admin_role_only) is Decision.DENY


def test_composition():
    admin_or_deleter = AnyRole(RoleName.ROLE_ADMIN) | AllPermissions(PermissionName.USER_DELETE)
    manager_and_reader = AnyRole(RoleName.ROLE_MANAGER) & AllPermissions(PermissionName.ROLE_READ)

    assert decide(admin_or_deleter, REGULAR_USER) is Decision.DENY
    assert decide(admin_or_deleter, AuthoritySet.from_names(permissions=["USER_DELETE"])) is Decision.ALLOW
    assert decide(manager_and_reader, MANAGER) is Decision.ALLOW
    assert decide(manager_and_reader, REGULAR_USER) is Decision.DENY


def test_empty_authorities_always_denied():
    assert decide(AllPermissions(PermissionName.USER_READ), AuthoritySet()) is Decision.DENY
    assert decide(AnyRole(RoleName.ROLE_GUEST), AuthoritySet()) is Decision.DENY


def test_ensure_raises_forbidden():
    with pytest.raises(Forbidden) as exc:
        ensure(AllPermissions(PermissionName.USER_DELETE), REGULAR_USER)
    assert "USER_DELETE" in exc.value.message
    assert exc.value.status_code == 403


def test_ensure_passes_silently():
    ensure(AnyRole(RoleName.ROLE_USER), REGULAR_USER)


def test_policies_reject_bad_arguments():
    with pytest.raises(ValueError):
        AnyRole()
    with pytest.raises(ValueError):
        AllPermissions("NOT_A_PERMISSION")


def test_describe():
    policy = AllPermissions(PermissionName.USER_UPDATE) & AllPermissions(PermissionName.ROLE_UPDATE)
    assert str(policy) == "(all permissions of [USER_UPDATE] AND all permissions of [ROLE_UPDATE])"
