"""
User administration router.

Every endpoint is gated by a policy over the caller's token authorities.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.base_microservice import BaseMicroservice, get_db_session
from userservice.auth.catalog import PermissionName, RoleName
from userservice.auth.jwt import TokenData
from userservice.auth.middleware import RBACMiddleware
from userservice.auth.policy import AllPermissions, AnyRole
from userservice.auth.users import UserService, RegisterRequest, EnabledUpdate

router = APIRouter(tags=["users"])

base_service = BaseMicroservice("userservice.users")

CAN_READ = RBACMiddleware.require(AllPermissions(PermissionName.USER_READ))
CAN_MANAGE_ROLES = RBACMiddleware.require(
    AllPermissions(PermissionName.USER_UPDATE) & AllPermissions(PermissionName.ROLE_UPDATE)
)
CAN_UPDATE = RBACMiddleware.require(AllPermissions(PermissionName.USER_UPDATE))
CAN_DELETE = RBACMiddleware.require(AllPermissions(PermissionName.USER_DELETE))
IS_ADMIN = RBACMiddleware.require(AnyRole(RoleName.ROLE_ADMIN))


@router.get("")
async def list_users(
    token_data: TokenData = Depends(CAN_READ),
    db: AsyncSession = Depends(get_db_session)
):
    users = await UserService.list_users(db)
    return base_service.mcp_response(message="Users retrieved successfully", data=users)


@router.post("")
async def create_user(
    user_data: RegisterRequest,
    token_data: TokenData = Depends(IS_ADMIN),
    db: AsyncSession = Depends(get_db_session)
):
    user = await UserService.create_user(user_data, db)
    base_service.log_event("user.created", {"admin_id": token_data.user_id, "user_id": user.id})
    return base_service.mcp_response(message="User created successfully", data=user, status_code=201)


@router.get("/username/{username}")
async def get_user_by_username(
    username: str,
    token_data: TokenData = Depends(CAN_READ),
    db: AsyncSession = Depends(get_db_session)
):
    user = await UserService.get_user_by_username(username, db)
    return base_service.mcp_response(message="User retrieved successfully", data=user)


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    token_data: TokenData = Depends(CAN_READ),
    db: AsyncSession = Depends(get_db_session)
):
    user = await UserService.get_user_by_id(user_id, db)
    return base_service.mcp_response(message="User retrieved successfully", data=user)


@router.post("/{user_id}/roles/{role_name}")
async def add_role_to_user(
    user_id: int,
    role_name: str,
    token_data: TokenData = Depends(CAN_MANAGE_ROLES),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Add a role to a user. The user's existing tokens keep their old
    authorities until the next login.
    """
    user = await UserService.assign_role(user_id, role_name, db)
    base_service.log_event("user.role.added", {
        "admin_id": token_data.user_id,
        "user_id": user_id,
        "role_name": role_name
    })
    return base_service.mcp_response(message=f"Role '{role_name}' assigned", data=user)


@router.delete("/{user_id}/roles/{role_name}")
async def remove_role_from_user(
    user_id: int,
    role_name: str,
    token_data: TokenData = Depends(CAN_MANAGE_ROLES),
    db: AsyncSession = Depends(get_db_session)
):
    user = await UserService.remove_role(user_id, role_name, db)
    base_service.log_event("user.role.removed", {
        "admin_id": token_data.user_id,
        "user_id": user_id,
        "role_name": role_name
    })
    return base_service.mcp_response(message=f"Role '{role_name}' removed", data=user)


@router.patch("/{user_id}/enabled")
async def set_user_enabled(
    user_id: int,
    update: EnabledUpdate,
    token_data: TokenData = Depends(CAN_UPDATE),
    db: AsyncSession = Depends(get_db_session)
):
    user = await UserService.set_enabled(user_id, update.enabled, db)
    base_service.log_event("user.enabled.changed", {
        "admin_id": token_data.user_id,
        "user_id": user_id,
        "enabled": update.enabled
    })
    return base_service.mcp_response(message="User updated successfully", data=user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    token_data: TokenData = Depends(CAN_DELETE),
    db: AsyncSession = Depends(get_db_session)
):
    await UserService.delete_user(user_id, db)
    base_service.log_event("user.deleted", {"admin_id": token_data.user_id, "user_id": user_id})
    return base_service.mcp_response(message="User deleted successfully", data={"user_id": user_id})
