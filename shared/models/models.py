"""
shared/models/models.py
Domain enumerations for the marketplace. Rows live in Hasura/Postgres;
these enums close the status strings the schema stores as free text.
"""

from enum import Enum as PyEnum
from typing import NamedTuple


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    SPONSOR = "sponsor"
    MAID = "maid"
    AGENCY = "agency"
    ADMIN = "admin"


class VerificationStatus(str, PyEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class AvailabilityStatus(str, PyEnum):
    AVAILABLE = "available"
    BUSY = "busy"
    INACTIVE = "inactive"


class VerificationAction(str, PyEnum):
    APPROVE = "approve"
    REJECT = "reject"
    PENDING = "pending"

    @property
    def target_status(self) -> VerificationStatus:
        return {
            VerificationAction.APPROVE: VerificationStatus.VERIFIED,
            VerificationAction.REJECT: VerificationStatus.REJECTED,
            VerificationAction.PENDING: VerificationStatus.PENDING,
        }[self]


class BulkAction(str, PyEnum):
    VERIFY = "verify"
    REJECT = "reject"
    STATUS = "status"


class NotificationPriority(str, PyEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class NotificationType(str, PyEnum):
    PROFILE_APPROVED = "profile_approved"
    PROFILE_REJECTED = "profile_rejected"
    SYSTEM_ANNOUNCEMENT = "system_announcement"
    MESSAGE_RECEIVED = "message_received"
    BOOKING_REQUEST = "booking_request"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_COMPLETED = "booking_completed"


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class JobStatus(str, PyEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    FILLED = "filled"
    EXPIRED = "expired"


class ChannelStatus(str, PyEnum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


# ── Display metadata ──────────────────────────────────────────

class StatusDisplay(NamedTuple):
    label: str
    color: str


STATUS_DISPLAY: dict[PyEnum, StatusDisplay] = {
    AvailabilityStatus.AVAILABLE: StatusDisplay("Available", "green"),
    AvailabilityStatus.BUSY: StatusDisplay("Busy", "yellow"),
    AvailabilityStatus.INACTIVE: StatusDisplay("Inactive", "gray"),
    VerificationStatus.VERIFIED: StatusDisplay("Verified", "green"),
    VerificationStatus.PENDING: StatusDisplay("Pending", "yellow"),
    VerificationStatus.REJECTED: StatusDisplay("Rejected", "red"),
}


def availability_display(value: str | None) -> StatusDisplay:
    """Unknown or missing values render as Inactive."""
    try:
        return STATUS_DISPLAY[AvailabilityStatus(value)]
    except ValueError:
        return STATUS_DISPLAY[AvailabilityStatus.INACTIVE]


def verification_display(value: str | None) -> StatusDisplay:
    """Unknown or missing values render as Pending."""
    try:
        return STATUS_DISPLAY[VerificationStatus(value)]
    except ValueError:
        return STATUS_DISPLAY[VerificationStatus.PENDING]
