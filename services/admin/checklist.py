"""
services/admin/checklist.py
Profile completeness checklist for maid verification.

The rules are data: each Requirement names a field group, its category and
whether approval is blocked while it is missing. Evaluation is pure, so the
same profile + documents always yield the same checklist.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional


CATEGORY_LABELS = {
    "identity": "Identity & Documents",
    "name": "Name Information",
    "contact": "Contact Information",
    "location": "Location",
    "personal": "Personal Information",
    "professional": "Professional Information",
    "salary": "Salary & Availability",
    "documents": "Additional Documents",
    "bio": "Biography",
}

IDENTITY_DOCUMENT_MARKERS = ("passport", "national", "id")


@dataclass(frozen=True)
class Requirement:
    key: str
    label: str
    category: str
    required: bool
    check: Callable[[dict, list], bool]


@dataclass(frozen=True)
class ChecklistItem:
    key: str
    label: str
    category: str
    required: bool
    is_complete: bool

    @property
    def category_label(self) -> str:
        return CATEGORY_LABELS.get(self.category, self.category)


# ── Predicates ────────────────────────────────────────────────

def _present(*fields: str) -> Callable[[dict, list], bool]:
    """Any of the fields holds a truthy value."""
    return lambda maid, docs: any(maid.get(f) for f in fields)


def _not_blank(field: str) -> Callable[[dict, list], bool]:
    return lambda maid, docs: bool((maid.get(field) or "").strip())


def _not_none(field: str) -> Callable[[dict, list], bool]:
    return lambda maid, docs: maid.get(field) is not None


def _is_true(field: str) -> Callable[[dict, list], bool]:
    return lambda maid, docs: maid.get(field) is True


def _non_empty_list(field: str) -> Callable[[dict, list], bool]:
    return lambda maid, docs: isinstance(maid.get(field), list) and len(maid[field]) > 0


def _document_type(doc: dict) -> str:
    return (doc.get("document_type") or doc.get("type") or "").lower()


def is_identity_document(doc: dict) -> bool:
    """An uploaded passport/national-ID document with a resolvable URL."""
    doc_type = _document_type(doc)
    if not doc_type or not (doc.get("document_url") or doc.get("file_url")):
        return False
    return any(marker in doc_type for marker in IDENTITY_DOCUMENT_MARKERS)


def _has_identity(maid: dict, docs: list) -> bool:
    structured = (
        maid.get("passport_number")
        or maid.get("passport_number_encrypted")
        or maid.get("national_id_encrypted")
        or maid.get("national_id_hash")
    )
    return bool(structured) or any(is_identity_document(d) for d in docs or [])


# ── Rules ─────────────────────────────────────────────────────

REQUIREMENTS: tuple[Requirement, ...] = (
    # Required
    Requirement("profile_photo", "Profile Photo", "identity", True,
                _present("avatar_url", "profile_photo_url", "primary_image_processed_url")),
    Requirement("video_cv", "Video CV (Introduction Video)", "identity", True,
                _present("introduction_video_url")),
    Requirement("passport_id", "Passport/National ID", "identity", True, _has_identity),
    Requirement("full_name", "Full Name", "name", True, _not_blank("full_name")),
    Requirement("phone_number", "Phone Number", "contact", True, _present("phone_number")),
    Requirement("nationality", "Nationality", "location", True, _present("nationality")),
    Requirement("current_location", "Current Location/Country", "location", True,
                _present("current_location", "country")),
    Requirement("date_of_birth", "Date of Birth", "personal", True, _present("date_of_birth")),
    Requirement("primary_profession", "Primary Profession", "professional", True,
                _present("primary_profession")),
    Requirement("experience_years", "Years of Experience", "professional", True,
                _not_none("experience_years")),
    Requirement("skills", "Skills (at least 1)", "professional", True, _non_empty_list("skills")),
    Requirement("languages", "Languages (at least 1)", "professional", True,
                _non_empty_list("languages")),
    # Recommended
    Requirement("passport_expiry", "Passport Expiry Date", "identity", False, _present("passport_expiry")),
    Requirement("phone_verified", "Phone Verified", "contact", False, _is_true("phone_verified")),
    Requirement("alternative_phone", "Alternative Phone", "contact", False, _present("alternative_phone")),
    Requirement("state_province", "State/Province", "location", False, _present("state_province")),
    Requirement("street_address", "Street Address", "location", False, _present("street_address")),
    Requirement("marital_status", "Marital Status", "personal", False, _present("marital_status")),
    Requirement("children_count", "Number of Children", "personal", False, _not_none("children_count")),
    Requirement("religion", "Religion", "personal", False, _present("religion")),
    Requirement("education_level", "Education Level", "professional", False, _present("education_level")),
    Requirement("special_skills", "Special Skills", "professional", False, _non_empty_list("special_skills")),
    Requirement("work_preferences", "Work Preferences", "professional", False,
                _non_empty_list("work_preferences")),
    Requirement("work_history", "Work History", "professional", False, _present("work_history")),
    Requirement("previous_countries", "Previous Work Countries", "professional", False,
                _non_empty_list("previous_countries")),
    Requirement("salary_expectation", "Salary Expectation", "salary", False,
                _present("preferred_salary_min")),
    Requirement("contract_duration", "Contract Duration Preference", "salary", False,
                _present("contract_duration_preference")),
    Requirement("live_in_preference", "Live-in Preference", "salary", False,
                _not_none("live_in_preference")),
    Requirement("available_from", "Available From Date", "salary", False, _present("available_from")),
    Requirement("visa_status", "Visa Status", "documents", False,
                _present("visa_status", "current_visa_status")),
    Requirement("medical_certificate", "Medical Certificate", "documents", False,
                _is_true("medical_certificate_valid")),
    Requirement("police_clearance", "Police Clearance", "documents", False,
                _is_true("police_clearance_valid")),
    Requirement("about_me", "About Me / Bio", "bio", False, _not_blank("about_me")),
)

REQUIREMENTS_BY_KEY = {r.key: r for r in REQUIREMENTS}


# ── Evaluation ────────────────────────────────────────────────

def evaluate(maid: Optional[dict], documents: Optional[Iterable[dict]] = None) -> list[ChecklistItem]:
    """Evaluate every rule against a maid profile and its identity documents."""
    if not maid:
        return []
    docs = list(documents or [])
    return [
        ChecklistItem(
            key=r.key,
            label=r.label,
            category=r.category,
            required=r.required,
            is_complete=bool(r.check(maid, docs)),
        )
        for r in REQUIREMENTS
    ]


def required_missing(items: Iterable[ChecklistItem]) -> list[ChecklistItem]:
    return [i for i in items if i.required and not i.is_complete]


def optional_missing(items: Iterable[ChecklistItem]) -> list[ChecklistItem]:
    return [i for i in items if not i.required and not i.is_complete]


def completed_count(items: Iterable[ChecklistItem]) -> int:
    return sum(1 for i in items if i.is_complete)


def is_eligible_for_approval(items: list[ChecklistItem], documents_loading: bool = False) -> bool:
    """Approvable only once documents are loaded and nothing required is missing."""
    if documents_loading or not items:
        return False
    return not required_missing(items)


def summarize(items: list[ChecklistItem], documents_loading: bool = False) -> dict:
    return {
        "items": [
            {
                "key": i.key,
                "label": i.label,
                "category": i.category,
                "category_label": i.category_label,
                "required": i.required,
                "is_complete": i.is_complete,
            }
            for i in items
        ],
        "completed_count": completed_count(items),
        "total_count": len(items),
        "required_missing": [i.key for i in required_missing(items)],
        "optional_missing": [i.key for i in optional_missing(items)],
        "is_eligible_for_approval": is_eligible_for_approval(items, documents_loading),
    }
