"""
services/admin/fanout.py
Multi-channel notification fan-out after a maid verification change.

Channels are independent: each one is attempted, its outcome recorded, and
a failure in one never stops the others or undoes the status mutation.
Nothing is retried.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from config.hasura_client import HasuraClient, HasuraError
from config.settings import settings
from services.admin import queries
from services.admin.messages import (
    ACTION_NOTIFICATIONS,
    agency_notification_text,
    maid_notification_text,
    status_change_summary,
)
from services.notification.router import CREATE_NOTIFICATION
from shared.models.models import ChannelStatus, VerificationAction

logger = logging.getLogger(__name__)

MAID_PROFILE_LINK = "/dashboard/maid/profile"
AGENCY_MAID_LINK = "/dashboard/agency/maids/{maid_id}"

_PHONE_JUNK = re.compile(r"[^\d+]")


@dataclass
class ChannelOutcome:
    channel: str
    status: ChannelStatus
    detail: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == ChannelStatus.SENT


@dataclass
class FanoutReport:
    outcomes: list[ChannelOutcome] = field(default_factory=list)
    agency_outcomes: list[ChannelOutcome] = field(default_factory=list)
    agency: Optional[dict] = None

    @property
    def agency_notified(self) -> bool:
        return any(o.sent for o in self.agency_outcomes)

    @property
    def channels(self) -> list[str]:
        """Delivered channel tokens, e.g. ["in-app", "whatsapp", "agency(in-app,email)"]."""
        tokens = [o.channel for o in self.outcomes if o.sent]
        if self.agency_notified:
            tokens.append(f"agency({','.join(o.channel for o in self.agency_outcomes if o.sent)})")
        return tokens

    def as_list(self) -> list[dict]:
        rows = [{"channel": o.channel, "status": o.status.value, "detail": o.detail} for o in self.outcomes]
        rows += [
            {"channel": f"agency:{o.channel}", "status": o.status.value, "detail": o.detail}
            for o in self.agency_outcomes
        ]
        return rows


def clean_phone(raw: Optional[str]) -> Optional[str]:
    """Keep only '+' and digits. Numbers too short to dial come back as None."""
    if not raw:
        return None
    cleaned = _PHONE_JUNK.sub("", raw)
    if len(cleaned) < settings.MIN_WHATSAPP_PHONE_LENGTH:
        return None
    return cleaned


# ── Channel senders ───────────────────────────────────────────

async def send_in_app(
    gql: HasuraClient,
    token: Optional[str],
    user_id: str,
    action: VerificationAction,
    title: str,
    message: str,
    link: str,
    related_id: str,
) -> ChannelOutcome:
    meta = ACTION_NOTIFICATIONS[action]
    data = {
        "user_id": user_id,
        "type": meta["type"],
        "title": title,
        "message": message,
        "priority": meta["priority"],
        "related_id": related_id,
        "related_type": "maid_profile",
        "link": link,
        "action_url": link,
        "read": False,
    }
    try:
        await gql.execute(CREATE_NOTIFICATION, {"data": data}, token=token)
        return ChannelOutcome("in-app", ChannelStatus.SENT)
    except HasuraError as e:
        logger.warning(f"In-app notification to {user_id} failed: {e}")
        return ChannelOutcome("in-app", ChannelStatus.FAILED, str(e))


async def send_whatsapp(
    gql: HasuraClient,
    token: Optional[str],
    phone: Optional[str],
    message: str,
) -> ChannelOutcome:
    """Queue a WhatsApp message row; delivery belongs to the WhatsApp worker."""
    cleaned = clean_phone(phone)
    if not cleaned:
        return ChannelOutcome("whatsapp", ChannelStatus.SKIPPED, "no usable phone number")

    data = {
        "phone_number": cleaned,
        "message_content": message,
        "message_type": "text",
        "sender": "assistant",
        "processed": False,
    }
    try:
        await gql.execute(queries.CREATE_WHATSAPP_MESSAGE, {"data": data}, token=token)
        logger.info(f"WhatsApp message queued for {cleaned}")
        return ChannelOutcome("whatsapp", ChannelStatus.SENT)
    except HasuraError as e:
        logger.warning(f"Failed to queue WhatsApp message for {cleaned}: {e}")
        return ChannelOutcome("whatsapp", ChannelStatus.FAILED, str(e))


def log_email(to_email: Optional[str], subject: str, **context) -> ChannelOutcome:
    # No email provider is wired in; the intent is logged so ops can replay it.
    if not to_email:
        return ChannelOutcome("email", ChannelStatus.SKIPPED, "no email address")
    logger.info(f"Email notification for {to_email}: {subject} {context}")
    return ChannelOutcome("email", ChannelStatus.SENT, "logged")


# ── Agency ────────────────────────────────────────────────────

async def notify_agency(
    gql: HasuraClient,
    token: Optional[str],
    maid: dict,
    action: VerificationAction,
    message: str,
    report: FanoutReport,
) -> None:
    agency_id = maid.get("agency_id")
    try:
        data = await gql.execute(queries.GET_AGENCY_BY_ID, {"id": agency_id}, token=token)
    except HasuraError as e:
        logger.warning(f"Agency lookup {agency_id} failed: {e}")
        report.agency_outcomes.append(ChannelOutcome("lookup", ChannelStatus.FAILED, str(e)))
        return

    agency = data.get("agency_profiles_by_pk")
    if not agency:
        logger.warning(f"Agency not found: {agency_id}")
        report.agency_outcomes.append(ChannelOutcome("lookup", ChannelStatus.SKIPPED, "agency not found"))
        return

    report.agency = agency
    agency_name = agency.get("business_name") or agency.get("full_name") or "Agency"
    title = ACTION_NOTIFICATIONS[action]["agency_title"]
    text = agency_notification_text(action, agency_name, maid.get("full_name"), message)

    report.agency_outcomes.append(await send_in_app(
        gql, token, agency_id, action, title, text,
        AGENCY_MAID_LINK.format(maid_id=maid["id"]), maid["id"],
    ))

    phone = (
        agency.get("business_phone")
        or agency.get("phone")
        or agency.get("authorized_person_phone")
        or agency.get("emergency_contact_phone")
    )
    whatsapp = await send_whatsapp(gql, token, phone, text)
    if whatsapp.status != ChannelStatus.SKIPPED:
        report.agency_outcomes.append(whatsapp)

    email = log_email(
        agency.get("business_email") or agency.get("authorized_person_email"),
        title,
        maid_name=maid.get("full_name"),
        action=action.value,
    )
    if email.status != ChannelStatus.SKIPPED:
        report.agency_outcomes.append(email)


# ── Entry point ───────────────────────────────────────────────

async def fan_out_status_change(
    gql: HasuraClient,
    token: Optional[str],
    maid: dict,
    action: VerificationAction,
    message: str,
) -> FanoutReport:
    """Notify the maid (and her agency, if any) about a verification change."""
    report = FanoutReport()
    text = maid_notification_text(action, maid.get("full_name"), message)

    report.outcomes.append(await send_in_app(
        gql, token, maid.get("user_id") or maid["id"], action,
        ACTION_NOTIFICATIONS[action]["title"], text, MAID_PROFILE_LINK, maid["id"],
    ))
    report.outcomes.append(await send_whatsapp(
        gql, token, maid.get("phone_number") or maid.get("alternative_phone"), text,
    ))

    if maid.get("is_agency_managed") and maid.get("agency_id"):
        await notify_agency(gql, token, maid, action, message, report)

    logger.info(f"Email notification queued for maid {maid['id']} ({action.value}, {len(message)} chars)")
    report.outcomes.append(ChannelOutcome("email", ChannelStatus.SKIPPED, "logged only"))
    return report


def summarize(report: FanoutReport, maid: dict, action: VerificationAction) -> str:
    agency_name = None
    if report.agency_notified:
        agency_name = (report.agency or {}).get("full_name") or ""
    return status_change_summary(action, maid.get("full_name"), report.channels, agency_name)
