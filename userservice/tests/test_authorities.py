from types import SimpleNamespace

import pytest

from userservice.auth.authorities import Authority, AuthorityKind, AuthoritySet, derive_authorities
from userservice.auth.catalog import ROLE_GRANTS, PermissionName, RoleName


def make_role(name, *permissions):
    return SimpleNamespace(name=name, permissions=[SimpleNamespace(name=p) for p in permissions])


def make_user(*roles):
    return SimpleNamespace(roles=list(roles))


def test_derive_includes_roles_and_reachable_permissions():
    user = make_user(
        make_role(RoleName.ROLE_USER, PermissionName.USER_READ, PermissionName.VIEW_DASHBOARD),
        make_role(RoleName.ROLE_GUEST, PermissionName.USER_READ),
    )

    authorities = derive_authorities(user)

    assert authorities.role_names == {"ROLE_USER", "ROLE_GUEST"}
    assert authorities.permission_names == {"USER_READ", "VIEW_DASHBOARD"}
    # USER_READ reachable through two roles collapses to one authority
    assert len(authorities) == 4


def test_derive_every_catalog_role():
    for role_name, grants in ROLE_GRANTS.items():
        authorities = derive_authorities(make_user(make_role(role_name, *grants)))
        assert authorities.has_role(role_name)
        for permission in grants:
            assert authorities.has_permission(permission)


def test_derive_user_without_roles_is_empty():
    assert len(derive_authorities(make_user())) == 0


def test_role_and_permission_are_distinct_kinds():
    role = Authority.role(RoleName.ROLE_ADMIN)
    permission = Authority.permission("USER_READ")

    assert role.kind is AuthorityKind.ROLE
    assert permission.kind is AuthorityKind.PERMISSION
    assert str(role) == "ROLE_ADMIN"
    assert Authority.role("ROLE_ADMIN") == role


@pytest.mark.parametrize("factory,value", [
    (Authority.role, "ROLE_ROOT"),
    (Authority.permission, "USER_PURGE"),
    (Authority.role, "USER_READ"),
])
def test_unknown_names_are_rejected(factory, value):
    with pytest.raises(ValueError):
        factory(value)


def test_from_names_splits_by_source_not_prefix():
    authorities = AuthoritySet.from_names(roles=["ROLE_MANAGER"], permissions=["ROLE_READ", "ROLE_UPDATE"])

    assert authorities.role_names == {"ROLE_MANAGER"}
    assert authorities.permission_names == {"ROLE_READ", "ROLE_UPDATE"}
    assert not authorities.has_role("ROLE_USER")


def test_unknown_names_are_never_held():
    authorities = AuthoritySet.from_names(roles=["ROLE_ADMIN"], permissions=["USER_READ"])

    assert authorities.has_role("ROLE_ROOT") is False
    assert authorities.has_permission("USER_PURGE") is False
    assert authorities.has_role("USER_READ") is False
