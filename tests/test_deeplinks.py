"""
tests/test_deeplinks.py
Notification → mobile route resolution and rejection bullet parsing.
"""

import pytest

from services.admin.messages import generate_rejection_message, maid_notification_text
from services.notification.deeplinks import rejection_reasons, resolve_route
from shared.models.models import VerificationAction


@pytest.mark.parametrize(
    "notification, route",
    [
        ({"type": "profile_rejected", "link": "/maids/123"}, "/profile"),
        ({"type": "profile_approved"}, "/profile"),
        ({"type": "message_received", "related_id": "c1"}, "/chat/c1"),
        ({"type": "message_received", "link": "/messages?conversation=c9&x=1"}, "/chat/c9"),
        ({"type": "message_received"}, "/messages"),
        ({"type": "system_announcement", "link": "/dashboard/maid/profile"}, "/profile"),
        ({"type": "other", "link": "/messages"}, "/messages"),
        ({"type": "other", "link": "/dashboard/agency/maids/m7"}, "/maid/m7"),
        ({"type": "booking_request", "link": "/dashboard/maid/bookings"}, "/sponsor/bookings"),
        ({"type": "other", "link": "/jobs/42"}, "/sponsor/jobs"),
        ({"type": "other", "related_type": "job", "related_id": "j1"}, "/job/j1"),
        ({"type": "other", "related_type": "conversation", "related_id": "c2"}, "/chat/c2"),
        ({"type": "other", "related_type": "application", "related_id": "a1"}, "/agency/applicants"),
        ({"type": "other", "related_type": "job"}, None),
        ({"type": "other", "link": "/somewhere"}, None),
    ],
)
def test_resolve_route(notification, route):
    assert resolve_route(notification) == route


def test_rejection_reasons_keeps_only_bullet_lines():
    message = "Please fix:\n- Skills\n• Languages\n\n-   Passport\nSee you in 24-48 hours.\n-"
    assert rejection_reasons(message) == ["Skills", "Languages", "Passport"]


def test_rejection_reasons_from_generated_rejection():
    message = generate_rejection_message("Almaz", ["live_in_preference", "skills"])
    text = maid_notification_text(VerificationAction.REJECT, "Almaz", message)

    assert rejection_reasons(text) == ["Skills (at least 1)", "Live-in Preference"]


def test_rejection_reasons_empty():
    assert rejection_reasons(None) == []
    assert rejection_reasons("") == []

