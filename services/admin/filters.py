"""
services/admin/filters.py
Translate admin list filters into Hasura `where` / `order_by` arguments and
flatten maid rows for display.
"""

from typing import Optional

from shared.models.models import availability_display, verification_display

# Experience bands: (exclusive lower bound, inclusive upper bound)
EXPERIENCE_BANDS = {
    "entry": (None, 1),
    "junior": (1, 3),
    "mid": (3, 5),
    "senior": (5, None),
}

SEARCH_FIELDS = ("full_name", "phone_number", "nationality", "primary_profession")

SORTABLE_FIELDS = {
    "created_at",
    "updated_at",
    "full_name",
    "nationality",
    "experience_years",
    "average_rating",
    "profile_completion_percentage",
    "verification_status",
    "availability_status",
}

COMMON_NATIONALITIES = [
    "Ethiopian",
    "Filipino",
    "Indonesian",
    "Sri Lankan",
    "Indian",
    "Kenyan",
    "Ugandan",
    "Nepalese",
]


def build_where(
    search: Optional[str] = None,
    availability_status: Optional[str] = None,
    verification_status: Optional[str] = None,
    nationality: Optional[str] = None,
    location: Optional[str] = None,
    experience: Optional[str] = None,
) -> dict:
    where: dict = {}
    term = (search or "").strip()
    if term:
        where["_or"] = [{field: {"_ilike": f"%{term}%"}} for field in SEARCH_FIELDS]
    if availability_status and availability_status != "all":
        where["availability_status"] = {"_eq": availability_status}
    if verification_status and verification_status != "all":
        where["verification_status"] = {"_eq": verification_status}
    if nationality and nationality != "all":
        where["nationality"] = {"_eq": nationality}
    if location and location != "all":
        where["current_location"] = {"_eq": location}
    if experience in EXPERIENCE_BANDS:
        low, high = EXPERIENCE_BANDS[experience]
        band = {}
        if low is not None:
            band["_gt"] = low
        if high is not None:
            band["_lte"] = high
        where["experience_years"] = band
    return where


def build_order_by(sort_by: Optional[str] = None, sort_order: str = "desc") -> list[dict]:
    field = sort_by if sort_by in SORTABLE_FIELDS else "created_at"
    direction = "asc" if sort_order == "asc" else "desc"
    return [{field: direction}]


def to_list_item(maid: dict) -> dict:
    """Flatten a maid row into what the admin table shows."""
    number = maid.get("phone_number")
    phone = f"{maid.get('phone_country_code') or ''}{number}" if number else "N/A"
    availability = availability_display(maid.get("availability_status"))
    verification = verification_display(maid.get("verification_status"))
    return {
        **maid,
        "phone": phone,
        "location": maid.get("current_location") or maid.get("country") or "Not specified",
        "avatar_url": maid.get("profile_photo_url") or maid.get("avatar_url"),
        "profile_completion": maid.get("profile_completion_percentage") or 0,
        "rating": maid.get("average_rating") or 0,
        "availability_label": availability.label,
        "availability_color": availability.color,
        "verification_label": verification.label,
        "verification_color": verification.color,
    }
