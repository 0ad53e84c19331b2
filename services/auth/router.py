"""
services/auth/router.py
Session endpoints on top of Firebase Authentication.
Implements: Login (resolve profile) → Register (create profile) → Me → Logout
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from config.hasura_client import HasuraClient, HasuraError, error_status_code, friendly_error_message, get_hasura
from config.redis_client import RedisCache, get_redis
from shared.middleware.auth import GET_PROFILE_BY_ID, CurrentUser, TokenData, get_current_user, get_token_data
from shared.models.models import UserRole
from shared.schemas.schemas import LoginResponse, MessageResponse, ProfileResponse, RegisterRequest
from shared.utils.security import get_token_remaining_ttl

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

GET_PROFILE_BY_EMAIL = """
query GetUserProfileType($email: String!) {
  profiles(where: {email: {_eq: $email}}, limit: 1) {
    id
    email
    full_name
    phone
    country
    user_type
    avatar_url
    registration_complete
    is_active
  }
}
"""

UPSERT_PROFILE = """
mutation CreateProfile($data: profiles_insert_input!) {
  insert_profiles_one(
    object: $data,
    on_conflict: {constraint: profiles_pkey, update_columns: [full_name, phone, country, user_type, updated_at]}
  ) {
    id
    email
    full_name
    phone
    country
    user_type
    avatar_url
    registration_complete
  }
}
"""


def _profile_response(profile: dict, role: str | None = None) -> ProfileResponse:
    return ProfileResponse(**profile, role=role or profile.get("user_type"))


# ── Endpoints ─────────────────────────────────────────────────

@router.post("/login", response_model=LoginResponse, summary="Resolve the signed-in identity")
async def login(
    token_data: TokenData = Depends(get_token_data),
    gql: HasuraClient = Depends(get_hasura),
):
    """
    Called after Firebase sign-in. Looks the profile up by UID, then by email.
    `needs_registration` tells the client to show the registration step.
    """
    data = await gql.execute(GET_PROFILE_BY_ID, {"id": token_data.user_id}, token=token_data.token)
    profile = data.get("profiles_by_pk")

    if not profile and token_data.email:
        data = await gql.execute(GET_PROFILE_BY_EMAIL, {"email": token_data.email}, token=token_data.token)
        rows = data.get("profiles") or []
        profile = rows[0] if rows else None

    if profile and profile.get("is_active") is False:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    role = token_data.role.value if token_data.role else None
    if profile and token_data.role != UserRole.ADMIN:
        role = profile.get("user_type") or role

    return LoginResponse(
        user_id=token_data.user_id,
        email=token_data.email,
        role=role,
        needs_registration=profile is None,
        profile=_profile_response(profile, role) if profile else None,
    )


@router.post(
    "/register",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create or update the caller's base profile",
)
async def register(
    data: RegisterRequest,
    token_data: TokenData = Depends(get_token_data),
    gql: HasuraClient = Depends(get_hasura),
):
    email = token_data.email or data.email
    if not email:
        raise HTTPException(status_code=400, detail="An email address is required to register")

    now = datetime.now(timezone.utc).isoformat()
    profile_data = {
        "id": token_data.user_id,
        "email": email,
        "full_name": data.full_name,
        "phone": data.phone,
        "country": data.country,
        "user_type": data.user_type,
        "registration_complete": False,
        "created_at": now,
        "updated_at": now,
    }
    try:
        result = await gql.execute(UPSERT_PROFILE, {"data": profile_data}, token=token_data.token)
    except HasuraError as e:
        logger.error(f"Profile creation failed for {token_data.user_id}: {e}")
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Unable to create your profile. Please try again."),
        )

    return _profile_response(result.get("insert_profiles_one") or profile_data)


@router.post("/logout", response_model=MessageResponse, summary="Logout user")
async def logout(
    token_data: TokenData = Depends(get_token_data),
    redis=Depends(get_redis),
):
    """Deny-list the current ID token in Redis until it expires."""
    ttl = get_token_remaining_ttl(token_data.claims)
    if ttl > 0:
        await RedisCache(redis).revoke_token(token_data.fingerprint, ttl)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=ProfileResponse, summary="Get current user")
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Returns the authenticated user's profile."""
    return _profile_response(current_user.profile, current_user.role.value)
