"""
services/admin/export.py
CSV export of the filtered maid list.
"""

import csv
import io
from datetime import date
from typing import Iterable, Optional

CSV_HEADERS = [
    "ID",
    "Full Name",
    "Phone",
    "Nationality",
    "Location",
    "Experience (Years)",
    "Status",
    "Verification",
    "Rating",
    "Profile Completion",
    "Skills",
    "Languages",
    "Education",
    "Salary Min",
    "Salary Max",
    "Currency",
    "Created At",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(str(v) for v in value)
    return str(value)


def maid_row(maid: dict) -> list[str]:
    """One CSV row from a raw maid_profiles row; missing values stay empty."""
    number = maid.get("phone_number")
    phone = f"{maid.get('phone_country_code') or ''}{number}" if number else None
    return [
        _cell(maid.get("id")),
        _cell(maid.get("full_name")),
        _cell(phone),
        _cell(maid.get("nationality")),
        _cell(maid.get("current_location") or maid.get("country")),
        _cell(maid.get("experience_years") or 0),
        _cell(maid.get("availability_status")),
        _cell(maid.get("verification_status")),
        _cell(maid.get("average_rating") or 0),
        _cell(maid.get("profile_completion_percentage") or 0),
        _cell(maid.get("skills")),
        _cell(maid.get("languages")),
        _cell(maid.get("education_level")),
        _cell(maid.get("preferred_salary_min")),
        _cell(maid.get("preferred_salary_max")),
        _cell(maid.get("preferred_currency")),
        _cell(maid.get("created_at")),
    ]


def render_csv(maids: Iterable[dict]) -> str:
    """Every cell double-quoted, embedded quotes doubled, rows joined with '\\n'."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for maid in maids:
        writer.writerow(maid_row(maid))
    return buffer.getvalue().rstrip("\n")


def export_filename(today: Optional[date] = None) -> str:
    return f"maids_export_{(today or date.today()).isoformat()}.csv"
