"""
services/admin/messages.py
Message templates for the maid verification workflow.
"""

from typing import Iterable, Optional

from config.settings import settings
from services.admin.checklist import REQUIREMENTS_BY_KEY
from shared.models.models import NotificationPriority, NotificationType, VerificationAction

SIGN_OFF = f"Best regards,\n{settings.PLATFORM_NAME} Team"


# ── Default admin messages (editable before sending) ──────────

DEFAULT_MESSAGES = {
    VerificationAction.APPROVE: (
        "Dear {name},\n\n"
        f"Congratulations! Your profile has been verified and approved on {settings.PLATFORM_NAME}.\n\n"
        "You can now:\n"
        "- Appear in search results for employers\n"
        "- Receive job applications and inquiries\n"
        "- Access all platform features\n\n"
        "Welcome to our community! We wish you success in finding the perfect job opportunity.\n\n"
        + SIGN_OFF
    ),
    VerificationAction.REJECT: (
        "Dear {name},\n\n"
        "We regret to inform you that your profile verification was not successful at this time.\n\n"
        "Reason: [Please specify the reason]\n\n"
        "To improve your profile, please:\n"
        "- Ensure all information is accurate and complete\n"
        "- Upload clear profile photos\n"
        "- Provide valid contact information\n"
        "- Complete all required fields\n\n"
        "You can resubmit your profile for review after making the necessary updates.\n\n"
        + SIGN_OFF
    ),
    VerificationAction.PENDING: (
        "Dear {name},\n\n"
        f"Thank you for registering on {settings.PLATFORM_NAME}.\n\n"
        "Your profile is currently under review by our admin team. "
        "This process typically takes 24-48 hours.\n\n"
        "While waiting, you can:\n"
        "- Complete any missing profile information\n"
        "- Upload additional documents\n"
        "- Update your skills and experience\n\n"
        "We will notify you once your profile has been reviewed.\n\n"
        + SIGN_OFF
    ),
}

# Notification wording keyed by action: (type, priority, maid title, agency title, past tense)
ACTION_NOTIFICATIONS = {
    VerificationAction.APPROVE: {
        "type": NotificationType.PROFILE_APPROVED.value,
        "priority": NotificationPriority.HIGH.value,
        "title": "Profile Approved!",
        "agency_title": "Maid Profile Approved",
        "past_tense": "approved",
    },
    VerificationAction.REJECT: {
        "type": NotificationType.PROFILE_REJECTED.value,
        "priority": NotificationPriority.URGENT.value,
        "title": "Profile Rejected",
        "agency_title": "Maid Profile Rejected",
        "past_tense": "rejected",
    },
    VerificationAction.PENDING: {
        "type": NotificationType.SYSTEM_ANNOUNCEMENT.value,
        "priority": NotificationPriority.HIGH.value,
        "title": "Profile Under Review",
        "agency_title": "Maid Profile Set to Pending",
        "past_tense": "set to pending",
    },
}


def _render(template: str, **kwargs) -> str:
    """Simple string template renderer."""
    for key, value in kwargs.items():
        template = template.replace(f"{{{key}}}", str(value))
    return template


def default_message(action: VerificationAction, full_name: Optional[str]) -> str:
    return _render(DEFAULT_MESSAGES[action], name=full_name or "User")


def generate_rejection_message(full_name: Optional[str], selected_keys: Iterable[str]) -> str:
    """
    Build a rejection message listing the selected missing checklist items.
    Required and recommended items go under separate headings; unknown keys are dropped.
    """
    selected = [REQUIREMENTS_BY_KEY[k] for k in dict.fromkeys(selected_keys) if k in REQUIREMENTS_BY_KEY]
    if not selected:
        return default_message(VerificationAction.REJECT, full_name)

    required = [r for r in selected if r.required]
    recommended = [r for r in selected if not r.required]

    message = (
        f"Dear {full_name or 'User'},\n\n"
        "We have reviewed your profile and found that it is incomplete. "
        "To get your profile approved, please update the following information:\n\n"
    )
    if required:
        message += "**Required Information (Must Complete):**\n"
        message += "".join(f"- {r.label}\n" for r in required)
        message += "\n"
    if recommended:
        message += "**Recommended Information:**\n"
        message += "".join(f"- {r.label}\n" for r in recommended)
        message += "\n"
    message += (
        "Please log in to your account and update your profile with the missing information. "
        "Once completed, your profile will be reviewed again for approval.\n\n"
        "If you have any questions, please contact our support team.\n\n"
        + SIGN_OFF
    )
    return message


# ── Fan-out wording ───────────────────────────────────────────

def maid_notification_text(action: VerificationAction, full_name: Optional[str], message: str) -> str:
    name = full_name or "there"
    if action == VerificationAction.REJECT:
        return (
            f"Dear {name},\n\nYour profile has been rejected due to the following missing information:\n\n"
            f"{message}\n\nPlease update your profile and resubmit for verification."
        )
    if action == VerificationAction.APPROVE:
        return (
            f"Dear {name},\n\nCongratulations! Your profile has been approved and is now visible to employers."
            f"\n\n{message}"
        )
    return f"Dear {name},\n\nYour profile is currently under review.\n\n{message}"


def agency_notification_text(
    action: VerificationAction,
    agency_name: str,
    maid_name: Optional[str],
    message: str,
) -> str:
    maid = maid_name or "the maid"
    if action == VerificationAction.REJECT:
        return (
            f"Dear {agency_name},\n\nThe profile for \"{maid}\" has been rejected due to the following "
            f"missing information:\n\n{message}\n\nPlease update the profile and resubmit for verification."
        )
    if action == VerificationAction.APPROVE:
        return (
            f"Dear {agency_name},\n\nGreat news! The profile for \"{maid}\" has been approved and is now "
            f"visible to employers.\n\n{message}"
        )
    return f"Dear {agency_name},\n\nThe profile for \"{maid}\" has been set to pending review.\n\n{message}"


def status_change_summary(
    action: VerificationAction,
    full_name: Optional[str],
    channels: list[str],
    agency_name: Optional[str] = None,
) -> str:
    """Admin-facing summary: what changed, which channels delivered, whether the agency heard."""
    summary = f"{full_name or 'Profile'} has been {ACTION_NOTIFICATIONS[action]['past_tense']}."
    if channels:
        summary += f" Notifications sent via: {', '.join(channels)}."
    if agency_name is not None:
        summary += f" Agency ({agency_name or 'Unknown'}) has been notified."
    return summary
