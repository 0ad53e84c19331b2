"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from shared.models.models import (
    AvailabilityStatus,
    BulkAction,
    ChannelStatus,
    JobStatus,
    UserRole,
    VerificationAction,
    VerificationStatus,
)


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError("must not be blank")
    return v.strip()


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


# ── Auth / Profile ────────────────────────────────────────────

class ProfileResponse(BaseSchema):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    user_type: Optional[str] = None
    avatar_url: Optional[str] = None
    registration_complete: Optional[bool] = False
    role: Optional[str] = None


class LoginResponse(BaseSchema):
    user_id: str
    email: Optional[str]
    role: Optional[str]
    needs_registration: bool
    profile: Optional[ProfileResponse] = None


class RegisterRequest(BaseSchema):
    full_name: NonBlankStr = Field(..., max_length=255)
    user_type: UserRole = UserRole.SPONSOR
    phone: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("user_type")
    @classmethod
    def no_self_service_admin(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("admin accounts cannot self-register")
        return v


class ProfileUpdateRequest(BaseSchema):
    full_name: Optional[NonBlankStr] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = None


class RoleProfileUpdateRequest(BaseSchema):
    """Partial update of the role table (maid_profiles / sponsor_profiles / agency_profiles)."""
    full_name: NonBlankStr = Field(..., max_length=255)
    fields: Dict[str, Any] = Field(default_factory=dict)


# ── Jobs ──────────────────────────────────────────────────────

class JobCreateRequest(BaseSchema):
    title: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=200)
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    currency: str = Field("USD", max_length=3)
    required_skills: List[str] = Field(default_factory=list)

    @field_validator("salary_max")
    @classmethod
    def max_above_min(cls, v, info):
        low = info.data.get("salary_min")
        if v is not None and low is not None and v < low:
            raise ValueError("salary_max must be >= salary_min")
        return v


class JobUpdateRequest(BaseSchema):
    title: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, max_length=200)
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=3)
    required_skills: Optional[List[str]] = None


class JobStatusRequest(BaseSchema):
    status: JobStatus


# ── Bookings ──────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    maid_id: str
    requested_start_date: date
    requested_duration_months: int = Field(..., ge=1, le=60)
    offered_salary: float = Field(..., ge=0)
    currency: str = Field("USD", max_length=3)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("requested_start_date")
    @classmethod
    def validate_start_date(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Start date must not be in the past")
        return v


class BookingRespondRequest(BaseSchema):
    accept: bool
    rejection_reason: Optional[str] = Field(None, max_length=1000)


# ── Messaging ─────────────────────────────────────────────────

class ConversationStartRequest(BaseSchema):
    participant_id: str


class MessageSendRequest(BaseSchema):
    content: NonBlankStr = Field(..., max_length=5000)


# ── Notifications ─────────────────────────────────────────────

class NotificationResponse(BaseSchema):
    id: str
    user_id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    read: bool = False
    read_at: Optional[datetime] = None
    priority: Optional[str] = None
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    link: Optional[str] = None
    action_url: Optional[str] = None
    created_at: Optional[datetime] = None
    route: Optional[str] = None
    rejection_reasons: List[str] = Field(default_factory=list)


# ── Invoices ──────────────────────────────────────────────────

class InvoiceResponse(BaseSchema):
    id: str
    invoice_number: str
    amount: float
    currency: str = "USD"
    status: str = "paid"
    description: Optional[str] = None
    issued_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    paid_date: Optional[datetime] = None
    receipt_url: Optional[str] = None


# ── Admin ─────────────────────────────────────────────────────

class VerificationChangeRequest(BaseSchema):
    action: VerificationAction
    message: NonBlankStr = Field(..., max_length=10000)


class AvailabilityChangeRequest(BaseSchema):
    status: AvailabilityStatus


class RejectionMessageRequest(BaseSchema):
    selected_items: List[str] = Field(default_factory=list)


class BulkActionRequest(BaseSchema):
    action: BulkAction
    selected_ids: List[str] = Field(default_factory=list)
    status: Optional[AvailabilityStatus] = None


class ChannelOutcomeResponse(BaseSchema):
    channel: str
    status: ChannelStatus
    detail: Optional[str] = None


class VerificationChangeResponse(BaseSchema):
    maid_id: str
    verification_status: VerificationStatus
    summary: str
    channels: List[str]
    outcomes: List[ChannelOutcomeResponse]
    agency_notified: bool = False


class MaidStatsResponse(BaseSchema):
    total: int
    available: int
    busy: int
    verified: int
    pending: int
    rejected: int


# ── Generic ───────────────────────────────────────────────────

class MessageResponse(BaseSchema):
    message: str
    success: bool = True

