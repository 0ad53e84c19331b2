"""
shared/middleware/auth.py
FastAPI dependency functions for authentication and authorization.
Firebase ID tokens are verified here; the profile row is resolved through Hasura
using the caller's own token so row-level permissions still apply.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.hasura_client import HasuraClient, get_hasura
from config.redis_client import RedisCache, get_redis
from shared.models.models import UserRole
from shared.utils.security import (
    InvalidTokenError,
    role_from_claims,
    token_fingerprint,
    user_id_from_claims,
    verify_id_token,
)

security = HTTPBearer(auto_error=False)

GET_PROFILE_BY_ID = """
query GetProfileById($id: String!) {
  profiles_by_pk(id: $id) {
    id
    email
    full_name
    phone
    country
    user_type
    avatar_url
    registration_complete
    is_active
    created_at
  }
}
"""


class TokenData:
    def __init__(self, claims: dict, token: str):
        self.claims = claims
        self.token = token
        self.user_id: str = user_id_from_claims(claims)
        self.email: Optional[str] = claims.get("email")
        self.role: Optional[UserRole] = role_from_claims(claims)
        self.fingerprint: str = token_fingerprint(token)


class CurrentUser:
    """Authenticated caller: verified claims plus their `profiles` row."""

    def __init__(self, token_data: TokenData, profile: dict):
        self.id: str = profile["id"]
        self.email: Optional[str] = profile.get("email") or token_data.email
        self.full_name: Optional[str] = profile.get("full_name")
        self.profile = profile
        self.token = token_data.token
        self.token_data = token_data
        # admin is a claim-only role; everything else follows the profile row
        if token_data.role == UserRole.ADMIN:
            self.role = UserRole.ADMIN
        else:
            self.role = UserRole(profile.get("user_type") or UserRole.SPONSOR.value)


async def get_token_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    redis=Depends(get_redis),
) -> TokenData:
    """
    Extract and verify the Firebase ID token from the Authorization header.
    Checks the Redis deny-list so logged-out tokens stop working immediately.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = verify_id_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = TokenData(claims, credentials.credentials)
    if await RedisCache(redis).is_token_revoked(token_data.fingerprint):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
        )
    return token_data


async def get_current_user(
    token_data: TokenData = Depends(get_token_data),
    gql: HasuraClient = Depends(get_hasura),
) -> CurrentUser:
    """Load the caller's profile row. A verified identity without one must register first."""
    data = await gql.execute(GET_PROFILE_BY_ID, {"id": token_data.user_id}, token=token_data.token)
    profile = data.get("profiles_by_pk")

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found. Complete registration first.",
        )
    if profile.get("is_active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    return CurrentUser(token_data, profile)


class RoleRequired:
    """Dependency factory for role-based access control."""

    def __init__(self, *roles: UserRole):
        self.roles = roles

    async def __call__(
        self,
        current_user: CurrentUser = Depends(get_current_user),
    ) -> CurrentUser:
        if current_user.role not in self.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Required role: {[r.value for r in self.roles]}",
            )
        return current_user


# Convenience role dependencies
require_sponsor = RoleRequired(UserRole.SPONSOR, UserRole.ADMIN)
require_maid = RoleRequired(UserRole.MAID, UserRole.ADMIN)
require_agency = RoleRequired(UserRole.AGENCY, UserRole.ADMIN)
require_admin = RoleRequired(UserRole.ADMIN)
