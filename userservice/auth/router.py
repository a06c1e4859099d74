"""
Authentication router.

This module provides FastAPI router for authentication endpoints:
- User registration and login
- Current user profile
- Role and permission catalog
"""
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.base_microservice import BaseMicroservice, AsyncSessionLocal, create_tables, get_db_session
from userservice.auth.catalog import PermissionName
from userservice.auth.errors import AuthServiceError
from userservice.auth.jwt import TokenData
from userservice.auth.middleware import RBACMiddleware, get_current_user
from userservice.auth.policy import AllPermissions
from userservice.auth.seed import init_reference_data
from userservice.auth.users import UserService, LoginRequest, RegisterRequest

# Create router
router = APIRouter(tags=["auth"])

# Create service instance
base_service = BaseMicroservice("userservice.auth")


async def start_auth_service():
    """Create tables and seed reference data."""
    base_service.log_event("service.startup", {"service": "auth"})
    try:
        await create_tables()
        async with AsyncSessionLocal() as session:
            await init_reference_data(session)
        base_service.logger.info("Initialized roles and permissions")
    except Exception as e:
        base_service.log_error(e, context="Auth service startup")
        raise


# --- Basic Auth Endpoints ---

@router.post("/register")
async def register_user(
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Register a new user with the default role.
    """
    try:
        result = await UserService.register_user(user_data, db)
    except AuthServiceError as e:
        base_service.log_event("user.register.rejected", {
            "username": user_data.username,
            "reason": e.code
        })
        raise

    base_service.log_event("user.registered", {
        "username": user_data.username,
        "email": user_data.email
    })
    return base_service.mcp_response(data=result, message=result.message)


@router.post("/login")
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a user and return a freshly issued token.
    """
    try:
        result = await UserService.login(login_data, db)
    except AuthServiceError as e:
        # Never log the presented secret
        base_service.log_event("user.login.failed", {
            "username": login_data.username,
            "reason": e.code
        })
        raise

    base_service.log_event("user.login", {
        "username": result.username,
        "id": result.id
    })
    return base_service.mcp_response(data=result, message="Login successful")


@router.get("/me")
async def get_current_user_info(
    token_data: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Get the caller's token claims and current user record.
    """
    user_info = await UserService.get_user_by_id(token_data.user_id, db)
    return base_service.mcp_response(
        message="User information retrieved successfully",
        data={"token": token_data, "user": user_info}
    )


# --- Role Catalog ---

@router.get("/roles")
async def get_roles(
    token_data: TokenData = Depends(RBACMiddleware.require(AllPermissions(PermissionName.ROLE_READ))),
    db: AsyncSession = Depends(get_db_session)
):
    roles = await UserService.get_roles(db)
    return base_service.mcp_response(message="Roles retrieved successfully", data=roles)


@router.get("/permissions")
async def get_permissions(
    token_data: TokenData = Depends(RBACMiddleware.require(AllPermissions(PermissionName.ROLE_READ))),
    db: AsyncSession = Depends(get_db_session)
):
    permissions = await UserService.get_permissions(db)
    return base_service.mcp_response(message="Permissions retrieved successfully", data=permissions)


# --- Health Check ---

@router.get("/ping")
async def ping():
    """
    Health check endpoint for the auth service.
    """
    return base_service.mcp_response(
        message="Auth service is alive",
        data={"timestamp": datetime.utcnow().isoformat()}
    )
