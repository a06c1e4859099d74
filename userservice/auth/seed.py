"""
Reference data initialisation.

Populates the permission catalog, the role registry and, optionally, a set
of demo users. Each table is only populated when it is empty, so running
this on every start is safe.
"""
import os
import logging
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.auth.catalog import (
    ROLE_DESCRIPTIONS, ROLE_GRANTS, PermissionName, RoleName, UserStatus, permission_description,
)
from userservice.auth.models import Permission, Role, User
from userservice.auth.repository import PermissionRepository, RoleRepository, UserRepository

logger = logging.getLogger(__name__)

SEED_DEFAULT_USERS = os.getenv("SEED_DEFAULT_USERS", "true").lower() == "true"

# (username, password, first name, role)
DEFAULT_USERS = [
    ("admin", "admin123", "Admin", RoleName.ROLE_ADMIN),
    ("manager", "manager123", "Manager", RoleName.ROLE_MANAGER),
    ("user", "user123", "Regular", RoleName.ROLE_USER),
    ("guest", "guest123", "Guest", RoleName.ROLE_GUEST),
]


async def _init_permissions(db: AsyncSession) -> bool:
    repo = PermissionRepository(db)
    if await repo.count() > 0:
        return False
    for name in PermissionName:
        await repo.save(Permission(name=name, description=permission_description(name)))
    return True


async def _init_roles(db: AsyncSession) -> bool:
    repo = RoleRepository(db)
    if await repo.count() > 0:
        return False
    permissions = {p.name: p for p in await PermissionRepository(db).find_all()}
    for name in RoleName:
        grants = [permissions[p] for p in sorted(ROLE_GRANTS[name], key=lambda p: p.value)]
        await repo.save(Role(name=name, description=ROLE_DESCRIPTIONS[name], permissions=grants))
    return True


async def _init_users(db: AsyncSession) -> bool:
    repo = UserRepository(db)
    if await repo.count() > 0:
        return False
    roles = RoleRepository(db)
    for username, password, first_name, role_name in DEFAULT_USERS:
        role = await roles.find_by_name(role_name)
        await repo.save(User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=User.get_password_hash(password),
            first_name=first_name,
            last_name="User",
            status=UserStatus.ACTIVE,
            enabled=True,
            roles=[role],
        ))
    return True


async def init_reference_data(db: AsyncSession, seed_users: bool = None) -> None:
    """
    Seed permissions, roles and (optionally) demo users in one transaction.

    Args:
        db: Database session
        seed_users: Override for the SEED_DEFAULT_USERS setting
    """
    if seed_users is None:
        seed_users = SEED_DEFAULT_USERS
    try:
        if await _init_permissions(db):
            logger.info("EVENT: seed.permissions | Details: %s", {"count": len(PermissionName)})
        if await _init_roles(db):
            logger.info("EVENT: seed.roles | Details: %s", {"count": len(RoleName)})
        if seed_users and await _init_users(db):
            logger.info("EVENT: seed.users | Details: %s", {"usernames": [u[0] for u in DEFAULT_USERS]})
        await db.commit()
    except Exception:
        await db.rollback()
        raise
