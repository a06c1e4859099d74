"""
Persistence access for principals and reference data.

Thin wrappers over an AsyncSession; they never commit; the calling
service owns the transaction boundary.
"""
from typing import List, Optional
from sqlalchemy import func, select, exists
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.auth.catalog import PermissionName, RoleName
from userservice.auth.models import Permission, Role, User


class UserRepository:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_id(self, user_id: int, for_update: bool = False) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        if for_update:
            # Row lock held until the surrounding transaction ends; reload
            # the role set even if the user is already in the identity map
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self._db.execute(query)
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self._db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        result = await self._db.execute(select(exists().where(User.username == username)))
        return bool(result.scalar())

    async def exists_by_email(self, email: str) -> bool:
        result = await self._db.execute(select(exists().where(User.email == email)))
        return bool(result.scalar())

    async def find_all(self) -> List[User]:
        result = await self._db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._db.execute(select(func.count()).select_from(User))
        return result.scalar_one()

    async def save(self, user: User) -> User:
        self._db.add(user)
        await self._db.flush()
        return user

    async def delete(self, user: User) -> None:
        await self._db.delete(user)
        await self._db.flush()

    async def delete_by_id(self, user_id: int) -> bool:
        user = await self.find_by_id(user_id)
        if user is None:
            return False
        await self.delete(user)
        return True


class RoleRepository:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_name(self, name: RoleName) -> Optional[Role]:
        result = await self._db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def exists_by_name(self, name: RoleName) -> bool:
        result = await self._db.execute(select(exists().where(Role.name == name)))
        return bool(result.scalar())

    async def find_all(self) -> List[Role]:
        result = await self._db.execute(select(Role).order_by(Role.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._db.execute(select(func.count()).select_from(Role))
        return result.scalar_one()

    async def save(self, role: Role) -> Role:
        self._db.add(role)
        await self._db.flush()
        return role


class PermissionRepository:
    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_by_name(self, name: PermissionName) -> Optional[Permission]:
        result = await self._db.execute(select(Permission).where(Permission.name == name))
        return result.scalar_one_or_none()

    async def exists_by_name(self, name: PermissionName) -> bool:
        result = await self._db.execute(select(exists().where(Permission.name == name)))
        return bool(result.scalar())

    async def find_all(self) -> List[Permission]:
        result = await self._db.execute(select(Permission).order_by(Permission.id))
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._db.execute(select(func.count()).select_from(Permission))
        return result.scalar_one()

    async def save(self, permission: Permission) -> Permission:
        self._db.add(permission)
        await self._db.flush()
        return permission
