"""
User management service.

This module provides functionality for:
- User registration
- User authentication and token issuance
- User lookup, enablement and deletion
- Role assignment and removal
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional, List, Tuple
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, EmailStr, Field, field_validator

from userservice.base_microservice import AsyncSessionLocal
from userservice.auth.authorities import AuthoritySet, derive_authorities
from userservice.auth.catalog import DEFAULT_ROLE, UserStatus, parse_role_name
from userservice.auth.errors import (
    AccountDisabled, DuplicateEmail, DuplicateUsername, InvalidCredentials,
    PrincipalNotFound, RoleNotFound,
)
from userservice.auth.jwt import TOKEN_TYPE, issue_token
from userservice.auth.models import User
from userservice.auth.passwords import burn_verification
from userservice.auth.repository import PermissionRepository, RoleRepository, UserRepository

logger = logging.getLogger(__name__)


# Pydantic models for request validation
class LoginRequest(BaseModel):
    """Model for user login."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Model for user registration and administrative creation."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=50)
    nid: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1, max_length=15)

    @field_validator('password')
    @classmethod
    def password_fits_bcrypt(cls, v):
        if len(v.encode('utf-8')) > 72:
            raise ValueError('Password must be at most 72 bytes')
        return v


class EnabledUpdate(BaseModel):
    enabled: bool


class UserOut(BaseModel):
    """Model for user information returned to clients."""
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    nid: Optional[str] = None
    phone: Optional[str] = None
    status: UserStatus
    enabled: bool
    roles: List[str] = []
    permissions: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JwtResponse(BaseModel):
    """Login result."""
    token: str
    type: str = TOKEN_TYPE
    id: int
    username: str
    email: str
    roles: List[str] = []
    permissions: List[str] = []
    expires_at: int


class RegistrationResult(BaseModel):
    success: bool
    message: str


class RoleOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    permissions: List[str] = []


class PermissionOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


def to_user_out(user: User) -> UserOut:
    """Project a user row together with its freshly derived authorities."""
    authorities = derive_authorities(user)
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        name=user.name,
        nid=user.nid,
        phone=user.phone,
        status=user.status,
        enabled=user.enabled,
        roles=sorted(authorities.role_names),
        permissions=sorted(authorities.permission_names),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@asynccontextmanager
async def _session_scope(db: Optional[AsyncSession]):
    """Use the caller's session, or open (and close) a private one."""
    if db is not None:
        yield db
        return
    async with AsyncSessionLocal() as session:
        yield session


class UserService:
    """
    Service for user management operations.
    """
    @staticmethod
    async def authenticate_user(
        login_data: LoginRequest,
        db: AsyncSession = None
    ) -> Tuple[User, AuthoritySet]:
        """
        Verify credentials and derive the user's authorities.

        Unknown usernames and wrong passwords fail identically, and both
        pay the cost of one bcrypt verification. The enabled flag is checked
        before the password.

        Raises:
            InvalidCredentials: Unknown username or wrong password
            AccountDisabled: The account exists but is disabled
        """
        async with _session_scope(db) as db:
            user = await UserRepository(db).find_by_username(login_data.username)

            if user is None:
                burn_verification(login_data.password)
                raise InvalidCredentials()

            if not user.enabled:
                raise AccountDisabled()

            if not user.verify_password(login_data.password):
                raise InvalidCredentials()

            return user, derive_authorities(user)

    @staticmethod
    async def login(
        login_data: LoginRequest,
        db: AsyncSession = None
    ) -> JwtResponse:
        """
        Authenticate a user and issue a fresh token.

        Args:
            login_data: Login credentials
            db: Database session

        Returns:
            Token plus the identity and authority snapshot it encodes
        """
        user, authorities = await UserService.authenticate_user(login_data, db)
        token = issue_token(
            user_id=user.id,
            username=user.username,
            email=user.email,
            authorities=authorities,
        )
        return JwtResponse(
            token=token.access_token,
            type=token.token_type,
            id=user.id,
            username=user.username,
            email=user.email,
            roles=sorted(authorities.role_names),
            permissions=sorted(authorities.permission_names),
            expires_at=token.expires_at,
        )

    @staticmethod
    async def _create_with_default_role(user_data: RegisterRequest, db: AsyncSession) -> User:
        """
        Validate uniqueness, insert the user and grant the default role.
        The caller commits.
        """
        users = UserRepository(db)

        # Username first, then email; each has its own rejection reason
        if await users.exists_by_username(user_data.username):
            logger.debug("registration rejected: username %s taken", user_data.username)
            raise DuplicateUsername()
        if await users.exists_by_email(user_data.email):
            logger.debug("registration rejected: email taken for %s", user_data.username)
            raise DuplicateEmail()

        default_role = await RoleRepository(db).find_by_name(DEFAULT_ROLE)
        if default_role is None:
            raise RoleNotFound(DEFAULT_ROLE.value)

        user = User(
            username=user_data.username,
            email=user_data.email,
            hashed_password=User.get_password_hash(user_data.password),
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            name=user_data.name,
            nid=user_data.nid,
            phone=user_data.phone,
            status=UserStatus.ACTIVE,
            enabled=True,
            roles=[],
        )
        await users.save(user)

        user.roles.append(default_role)
        await db.flush()
        return user

    @staticmethod
    async def _commit_new_user(user_data: RegisterRequest, db: AsyncSession) -> User:
        try:
            user = await UserService._create_with_default_role(user_data, db)
            await db.commit()
            return user
        except IntegrityError:
            # Lost a race with a concurrent registration; report which key collided
            await db.rollback()
            users = UserRepository(db)
            if await users.exists_by_username(user_data.username):
                raise DuplicateUsername()
            if await users.exists_by_email(user_data.email):
                raise DuplicateEmail()
            raise
        except Exception:
            await db.rollback()
            raise

    @staticmethod
    async def register_user(
        user_data: RegisterRequest,
        db: AsyncSession = None
    ) -> RegistrationResult:
        """
        Register a new user holding exactly the default role.

        Raises:
            DuplicateUsername: If the username is taken
            DuplicateEmail: If the email is taken
        """
        async with _session_scope(db) as db:
            user = await UserService._commit_new_user(user_data, db)
            logger.debug("registration complete for %s", user.username)
            return RegistrationResult(success=True, message="User registered successfully!")

    @staticmethod
    async def create_user(
        user_data: RegisterRequest,
        db: AsyncSession = None
    ) -> UserOut:
        """Administrative creation; same rules as registration, returns the projection."""
        async with _session_scope(db) as db:
            user = await UserService._commit_new_user(user_data, db)
            return to_user_out(user)

    @staticmethod
    async def get_user_by_id(
        user_id: int,
        db: AsyncSession = None
    ) -> UserOut:
        async with _session_scope(db) as db:
            user = await UserRepository(db).find_by_id(user_id)
            if user is None:
                raise PrincipalNotFound(user_id)
            return to_user_out(user)

    @staticmethod
    async def get_user_by_username(
        username: str,
        db: AsyncSession = None
    ) -> UserOut:
        async with _session_scope(db) as db:
            user = await UserRepository(db).find_by_username(username)
            if user is None:
                raise PrincipalNotFound(username)
            return to_user_out(user)

    @staticmethod
    async def list_users(db: AsyncSession = None) -> List[UserOut]:
        async with _session_scope(db) as db:
            return [to_user_out(u) for u in await UserRepository(db).find_all()]

    @staticmethod
    async def assign_role(
        user_id: int,
        role_name: str,
        db: AsyncSession = None
    ) -> UserOut:
        """
        Add a role to a user. Re-assigning a held role is a no-op.

        The user row is read under a row lock and the role set is written
        back in the same transaction, so concurrent assignments cannot lose
        each other's updates.

        Args:
            user_id: User ID
            role_name: Name of the role to add
            db: Database session

        Returns:
            The refreshed user projection

        Raises:
            InvalidRoleName: ``role_name`` is not a known role
            PrincipalNotFound: No user with ``user_id``
            RoleNotFound: The role is known but absent from the registry
        """
        name = parse_role_name(role_name)
        async with _session_scope(db) as db:
            try:
                user = await UserRepository(db).find_by_id(user_id, for_update=True)
                if user is None:
                    raise PrincipalNotFound(user_id)

                role = await RoleRepository(db).find_by_name(name)
                if role is None:
                    raise RoleNotFound(name.value)

                if not user.has_role(name):
                    user.roles.append(role)
                    user.updated_at = datetime.utcnow()
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return to_user_out(user)

    @staticmethod
    async def remove_role(
        user_id: int,
        role_name: str,
        db: AsyncSession = None
    ) -> UserOut:
        """
        Remove a role from a user. Removing a role that is not held is a
        no-op; removing the last role leaves the user with no roles.

        Raises:
            InvalidRoleName: ``role_name`` is not a known role
            PrincipalNotFound: No user with ``user_id``
        """
        name = parse_role_name(role_name)
        async with _session_scope(db) as db:
            try:
                user = await UserRepository(db).find_by_id(user_id, for_update=True)
                if user is None:
                    raise PrincipalNotFound(user_id)

                held = [r for r in user.roles if r.name == name]
                for role in held:
                    user.roles.remove(role)
                if held:
                    user.updated_at = datetime.utcnow()
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return to_user_out(user)

    @staticmethod
    async def set_enabled(
        user_id: int,
        enabled: bool,
        db: AsyncSession = None
    ) -> UserOut:
        async with _session_scope(db) as db:
            try:
                user = await UserRepository(db).find_by_id(user_id, for_update=True)
                if user is None:
                    raise PrincipalNotFound(user_id)
                if user.enabled != enabled:
                    user.enabled = enabled
                    user.updated_at = datetime.utcnow()
                await db.commit()
            except Exception:
                await db.rollback()
                raise
            return to_user_out(user)

    @staticmethod
    async def delete_user(
        user_id: int,
        db: AsyncSession = None
    ) -> None:
        """Delete a user. Its role associations go with it; roles themselves stay."""
        async with _session_scope(db) as db:
            try:
                if not await UserRepository(db).delete_by_id(user_id):
                    raise PrincipalNotFound(user_id)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    @staticmethod
    async def get_roles(db: AsyncSession = None) -> List[RoleOut]:
        async with _session_scope(db) as db:
            roles = await RoleRepository(db).find_all()
            return [
                RoleOut(
                    id=role.id,
                    name=role.name.value,
                    description=role.description,
                    permissions=sorted(p.name.value for p in role.permissions),
                )
                for role in roles
            ]

    @staticmethod
    async def get_permissions(db: AsyncSession = None) -> List[PermissionOut]:
        async with _session_scope(db) as db:
            permissions = await PermissionRepository(db).find_all()
            return [
                PermissionOut(id=p.id, name=p.name.value, description=p.description)
                for p in permissions
            ]
