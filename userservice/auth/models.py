"""
Identity models.

This module defines SQLAlchemy models for:
- Users (principals)
- Roles and Permissions
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Table, Enum
from sqlalchemy.orm import relationship
from userservice.base_microservice import Base
from userservice.auth.catalog import PermissionName, RoleName, UserStatus
from userservice.auth.passwords import hash_password, verify_password

# Association table for many-to-many relationship between users and roles
user_roles = Table(
    'user_roles',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete="CASCADE"), primary_key=True),
    Column('role_id', Integer, ForeignKey('roles.id'), primary_key=True)
)

# Association table for many-to-many relationship between roles and permissions
role_permissions = Table(
    'role_permissions',
    Base.metadata,
    Column('role_id', Integer, ForeignKey('roles.id'), primary_key=True),
    Column('permission_id', Integer, ForeignKey('permissions.id'), primary_key=True)
)


class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String(50), nullable=True)
    nid = Column(String, nullable=True)
    phone = Column(String(15), nullable=True)
    status = Column(Enum(UserStatus, native_enum=False), default=UserStatus.ACTIVE, nullable=False)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Roles are shared reference data; deleting a user only drops the association rows
    roles = relationship("Role", secondary=user_roles, lazy="selectin")

    def verify_password(self, password: str) -> bool:
        """Check if provided password matches the stored hash."""
        return verify_password(password, self.hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        return hash_password(password)

    def has_role(self, role_name: RoleName) -> bool:
        """Check if user has a specific role."""
        return any(role.name == role_name for role in self.roles)


class Permission(Base):
    """Permission model for RBAC."""
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Enum(PermissionName, native_enum=False), unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)


class Role(Base):
    """Role model for RBAC."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Enum(RoleName, native_enum=False), unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)

    permissions = relationship("Permission", secondary=role_permissions, lazy="selectin")
