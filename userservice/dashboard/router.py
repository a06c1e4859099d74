from fastapi import APIRouter, Depends

from userservice.base_microservice import BaseMicroservice
from userservice.auth.catalog import RoleName
from userservice.auth.jwt import TokenData
from userservice.auth.middleware import RBACMiddleware
from userservice.auth.policy import AnyRole

router = APIRouter(tags=["dashboard"])
base_service = BaseMicroservice("userservice.dashboard")


@router.get("/admin/dashboard")
async def admin_dashboard(
    token_data: TokenData = Depends(RBACMiddleware.require(AnyRole(RoleName.ROLE_ADMIN)))
):
    return base_service.mcp_response(
        message="Welcome to Admin Dashboard",
        data={"access": "Admin Only"}
    )


@router.get("/manager/dashboard")
async def manager_dashboard(
    token_data: TokenData = Depends(RBACMiddleware.require(AnyRole(RoleName.ROLE_ADMIN, RoleName.ROLE_MANAGER)))
):
    return base_service.mcp_response(
        message="Welcome to Manager Dashboard",
        data={"access": "Admin and Manager Only"}
    )
