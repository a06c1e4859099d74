"""
Authentication middleware.

This module provides FastAPI dependencies for:
- Recovering the caller's identity from a bearer token
- Policy-based access control on routes

Access checks read only the verified token's authority snapshot; role
changes take effect at the caller's next login.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from userservice.base_microservice import BaseMicroservice
from userservice.auth.errors import Forbidden, InvalidToken
from userservice.auth.jwt import TokenData, verify_token
from userservice.auth.policy import Policy, ensure

base_service = BaseMicroservice("userservice.auth")

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)
) -> TokenData:
    """
    FastAPI dependency to get the current authenticated user from token.

    Raises:
        InvalidToken: If the header is missing or the token is invalid or expired
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise InvalidToken("Authentication required")
    return verify_token(credentials.credentials)


class RBACMiddleware:
    """
    Creates FastAPI dependencies protecting routes with a Policy.
    """

    @staticmethod
    def require(policy: Policy):
        """
        Dependency that admits the caller only if its token satisfies ``policy``.

        Args:
            policy: Required-authority expression for the route

        Returns:
            Dependency function yielding the caller's TokenData
        """
        async def verify_policy(token_data: TokenData = Depends(get_current_user)) -> TokenData:
            try:
                ensure(policy, token_data.authorities)
            except Forbidden:
                base_service.log_event(
                    "access.denied",
                    {"user_id": token_data.user_id, "required": policy.describe()},
                )
                raise
            return token_data

        return verify_policy
