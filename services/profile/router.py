"""
services/profile/router.py
Profile management: the base `profiles` row plus the role-specific row
(maid_profiles, sponsor_profiles or agency_profiles), and public maid profiles.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from config.hasura_client import HasuraClient, HasuraError, error_status_code, friendly_error_message, get_hasura
from shared.middleware.auth import CurrentUser, get_current_user
from shared.models.models import UserRole, VerificationStatus
from shared.schemas.schemas import ProfileResponse, ProfileUpdateRequest, RoleProfileUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])

# Role table per user type, and the column that holds the profile id
ROLE_TABLES = {
    UserRole.MAID: ("maid_profiles", "user_id"),
    UserRole.SPONSOR: ("sponsor_profiles", "id"),
    UserRole.AGENCY: ("agency_profiles", "id"),
}

# Columns only the platform (or an admin) may write
PROTECTED_FIELDS = {
    "id",
    "user_id",
    "verification_status",
    "phone_verified",
    "medical_certificate_valid",
    "police_clearance_valid",
    "is_agency_managed",
    "agency_id",
    "average_rating",
    "profile_completion_percentage",
    "created_at",
}

UPDATE_PROFILE = """
mutation UpdateProfile($id: String!, $data: profiles_set_input!) {
  update_profiles_by_pk(pk_columns: {id: $id}, _set: $data) {
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

GET_PUBLIC_MAID = """
query GetPublicMaid($id: String!) {
  maid_profiles_by_pk(id: $id) {
    id
    user_id
    full_name
    nationality
    current_location
    country
    primary_profession
    experience_years
    skills
    languages
    education_level
    about_me
    profile_photo_url
    introduction_video_url
    availability_status
    verification_status
    preferred_salary_min
    preferred_salary_max
    preferred_currency
    average_rating
  }
}
"""


def _get_role_row(table: str, key: str) -> str:
    return f"""
query GetRoleProfile($id: String!) {{
  {table}(where: {{{key}: {{_eq: $id}}}}, limit: 1) {{
    id
    full_name
  }}
}}
"""


def _upsert_role_row(table: str) -> str:
    return f"""
mutation UpsertRoleProfile($data: {table}_insert_input!, $columns: [{table}_update_column!]!) {{
  insert_{table}_one(object: $data, on_conflict: {{constraint: {table}_pkey, update_columns: $columns}}) {{
    id
    full_name
  }}
}}
"""


def _role_table(current_user: CurrentUser) -> tuple[str, str]:
    if current_user.role not in ROLE_TABLES:
        raise HTTPException(status_code=400, detail="This account has no role profile")
    return ROLE_TABLES[current_user.role]


# ── Base profile ──────────────────────────────────────────────

@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(current_user: CurrentUser = Depends(get_current_user)):
    return ProfileResponse(**current_user.profile, role=current_user.role.value)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    changes["updated_at"] = datetime.now(timezone.utc).isoformat()

    try:
        result = await gql.execute(UPDATE_PROFILE, {"id": current_user.id, "data": changes}, token=current_user.token)
    except HasuraError as e:
        logger.error(f"Profile update failed for {current_user.id}: {e}")
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Unable to save profile changes. Please try again."),
        )

    profile = result.get("update_profiles_by_pk")
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse(**profile, role=current_user.role.value)


# ── Role profile ──────────────────────────────────────────────

@router.get("/me/details")
async def get_my_role_profile(
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    table, key = _role_table(current_user)
    data = await gql.execute(_get_role_row(table, key), {"id": current_user.id}, token=current_user.token)
    rows = data.get(table) or []
    return {"role": current_user.role.value, "profile": rows[0] if rows else None}


@router.put("/me/details")
async def save_my_role_profile(
    data: RoleProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """
    Create or update the caller's role profile. `full_name` is mandatory.
    Platform-managed columns (verification status, agency link, ratings) are rejected.
    """
    table, key = _role_table(current_user)
    protected = PROTECTED_FIELDS & set(data.fields)
    if protected:
        raise HTTPException(status_code=400, detail=f"Fields not editable: {sorted(protected)}")

    row = {**data.fields, "full_name": data.full_name, "updated_at": datetime.now(timezone.utc).isoformat()}
    if table == "maid_profiles":
        # A maid's own row: keyed by id == user_id on first insert, starts pending review
        existing = await gql.execute(_get_role_row(table, key), {"id": current_user.id}, token=current_user.token)
        rows = existing.get(table) or []
        row["id"] = rows[0]["id"] if rows else current_user.id
        row["user_id"] = current_user.id
        if not rows:
            row["verification_status"] = VerificationStatus.PENDING.value
    else:
        row["id"] = current_user.id

    columns = [c for c in row if c not in ("id", "user_id", "verification_status")]
    try:
        result = await gql.execute(
            _upsert_role_row(table),
            {"data": row, "columns": columns},
            token=current_user.token,
        )
    except HasuraError as e:
        logger.error(f"{table} save failed for {current_user.id}: {e}")
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Unable to save profile changes. Please try again."),
        )
    return {"role": current_user.role.value, "profile": result.get(f"insert_{table}_one")}


# ── Public ────────────────────────────────────────────────────

@router.get("/maids/{maid_id}")
async def get_public_maid_profile(
    maid_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Verified maid profiles are visible to every signed-in user; others only to admins and themselves."""
    data = await gql.execute(GET_PUBLIC_MAID, {"id": maid_id}, token=current_user.token)
    maid = data.get("maid_profiles_by_pk")
    if not maid:
        raise HTTPException(status_code=404, detail="Maid not found")

    visible = (
        maid.get("verification_status") == VerificationStatus.VERIFIED.value
        or current_user.role == UserRole.ADMIN
        or maid.get("user_id") == current_user.id
    )
    if not visible:
        raise HTTPException(status_code=404, detail="Maid not found")
    return maid
