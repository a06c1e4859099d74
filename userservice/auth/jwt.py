"""
JWT token handling for authentication.

This module provides functionality for:
- Issuing signed access tokens carrying a principal's authority snapshot
- Verifying tokens and recovering their claims

Tokens are stateless: nothing is stored server-side and expiry is the only
way a token stops being valid.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional, List
import jwt
from jwt.exceptions import PyJWTError
from pydantic import BaseModel

from userservice.auth.authorities import AuthoritySet
from userservice.auth.catalog import PermissionName, RoleName
from userservice.auth.errors import InvalidToken

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "highly_secure_secret_key")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ISSUER = os.getenv("JWT_ISSUER", "userservice")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
TOKEN_TYPE = "Bearer"


class Token(BaseModel):
    """Issued token and its metadata."""
    access_token: str
    token_type: str = TOKEN_TYPE
    issued_at: int  # Unix timestamp
    expires_at: int  # Unix timestamp


class TokenData(BaseModel):
    """Verified token payload."""
    user_id: int
    username: str
    email: str
    roles: List[RoleName] = []
    permissions: List[PermissionName] = []
    iat: Optional[int] = None
    exp: Optional[int] = None

    @property
    def authorities(self) -> AuthoritySet:
        return AuthoritySet.from_names(self.roles, self.permissions)


def issue_token(
    user_id: int,
    username: str,
    email: str,
    authorities: AuthoritySet,
    expires_delta: Optional[timedelta] = None
) -> Token:
    """
    Create a signed access token for an authenticated user.

    Args:
        user_id: User's ID
        username: User's username
        email: User's email
        authorities: Authority set derived at login time
        expires_delta: Custom lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Token with the encoded JWT and its timestamps
    """
    issued_at = datetime.now(timezone.utc)
    expires = issued_at + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user_id),
        "username": username,
        "email": email,
        "roles": sorted(authorities.role_names),
        "permissions": sorted(authorities.permission_names),
        "iss": ISSUER,
        "iat": issued_at,
        "exp": expires,
    }
    encoded_jwt = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    return Token(
        access_token=encoded_jwt,
        issued_at=int(issued_at.timestamp()),
        expires_at=int(expires.timestamp()),
    )


def verify_token(token: str) -> TokenData:
    """
    Verify a JWT token and return its data.

    Args:
        token: JWT token string

    Returns:
        TokenData for a correctly signed, unexpired token

    Raises:
        InvalidToken: If the signature, issuer or expiry check fails, or
            the claims are malformed or name roles or permissions outside
            the catalog
    """
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            options={"require": ["sub", "exp", "iat"]},
        )
        return TokenData(
            user_id=int(payload["sub"]),
            username=payload["username"],
            email=payload["email"],
            roles=payload.get("roles", []),
            permissions=payload.get("permissions", []),
            iat=payload.get("iat"),
            exp=payload.get("exp"),
        )
    except PyJWTError as e:
        raise InvalidToken() from e
    except (KeyError, ValueError, TypeError) as e:
        # Signed by us but missing, malformed or unknown claims
        raise InvalidToken() from e
