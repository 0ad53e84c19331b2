"""
tests/test_admin_checklist.py
Profile completeness rules and approval eligibility.
"""

from services.admin import checklist


def _keys(items):
    return {i.key for i in items}


def test_complete_profile_is_eligible(complete_maid_profile):
    items = checklist.evaluate(complete_maid_profile, [])
    assert checklist.required_missing(items) == []
    assert checklist.is_eligible_for_approval(items) is True


def test_not_eligible_while_documents_loading(complete_maid_profile):
    items = checklist.evaluate(complete_maid_profile, [])
    assert checklist.is_eligible_for_approval(items, documents_loading=True) is False


def test_no_profile_gives_empty_checklist():
    assert checklist.evaluate(None) == []
    assert checklist.is_eligible_for_approval([]) is False


def test_incomplete_profile_scenario(complete_maid_profile):
    maid = {**complete_maid_profile, "skills": [], "languages": [], "passport_number": None}
    items = checklist.evaluate(maid, [])

    missing = _keys(checklist.required_missing(items))
    assert {"skills", "languages", "passport_id"} <= missing
    assert checklist.is_eligible_for_approval(items) is False


def test_identity_document_satisfies_passport_rule(complete_maid_profile):
    maid = {**complete_maid_profile, "passport_number": None}
    docs = [{"document_type": "Passport", "document_url": "https://cdn.example.com/p.pdf"}]
    items = checklist.evaluate(maid, docs)
    assert "passport_id" not in _keys(checklist.required_missing(items))


def test_identity_document_without_url_does_not_count(complete_maid_profile):
    maid = {**complete_maid_profile, "passport_number": None}
    docs = [{"type": "national_id", "file_url": None}]
    items = checklist.evaluate(maid, docs)
    assert "passport_id" in _keys(checklist.required_missing(items))


def test_other_documents_do_not_count():
    assert checklist.is_identity_document({"document_type": "medical", "document_url": "x"}) is False
    assert checklist.is_identity_document({"type": "national_id_card", "file_url": "x"}) is True


def test_blank_full_name_is_missing(complete_maid_profile):
    items = checklist.evaluate({**complete_maid_profile, "full_name": "   "}, [])
    assert "full_name" in _keys(checklist.required_missing(items))


def test_zero_experience_counts_as_complete(complete_maid_profile):
    items = checklist.evaluate({**complete_maid_profile, "experience_years": 0}, [])
    assert "experience_years" not in _keys(checklist.required_missing(items))


def test_location_falls_back_to_country(complete_maid_profile):
    maid = {**complete_maid_profile, "current_location": None, "country": "Ethiopia"}
    items = checklist.evaluate(maid, [])
    assert "current_location" not in _keys(checklist.required_missing(items))


def test_optional_items_never_block_approval(complete_maid_profile):
    items = checklist.evaluate(complete_maid_profile, [])
    assert "about_me" in _keys(checklist.optional_missing(items))
    assert checklist.is_eligible_for_approval(items) is True


def test_summarize_counts(complete_maid_profile):
    items = checklist.evaluate(complete_maid_profile, [])
    summary = checklist.summarize(items)

    assert summary["total_count"] == len(checklist.REQUIREMENTS)
    assert summary["completed_count"] == checklist.completed_count(items)
    assert summary["required_missing"] == []
    assert summary["is_eligible_for_approval"] is True
    first = summary["items"][0]
    assert first["key"] == "profile_photo"
    assert first["category_label"] == "Identity & Documents"


def test_requirement_keys_are_unique():
    keys = [r.key for r in checklist.REQUIREMENTS]
    assert len(keys) == len(set(keys))
