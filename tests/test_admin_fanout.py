"""
tests/test_admin_fanout.py
Notification fan-out after a verification change: per-channel outcomes,
agency notification and failure isolation.
"""

import pytest

from config.hasura_client import HasuraError
from services.admin import fanout
from services.notification.router import CREATE_NOTIFICATION
from shared.models.models import ChannelStatus, VerificationAction

AGENCY = {
    "id": "agency-1",
    "full_name": "Addis Placement",
    "business_name": "Addis Placement PLC",
    "business_phone": "+251 (911) 555-000",
    "business_email": "desk@addis.example.com",
}


def _agency_maid(maid: dict) -> dict:
    return {**maid, "is_agency_managed": True, "agency_id": "agency-1"}


def test_clean_phone():
    assert fanout.clean_phone("+251 (911) 22-33-44") == "+251911223344"
    assert fanout.clean_phone("12 34") is None
    assert fanout.clean_phone(None) is None


@pytest.mark.asyncio
async def test_independent_maid_gets_in_app_and_whatsapp(hasura, complete_maid_profile):
    report = await fanout.fan_out_status_change(
        hasura, "tok", complete_maid_profile, VerificationAction.APPROVE, "Welcome!"
    )

    assert report.channels == ["in-app", "whatsapp"]
    assert report.agency_notified is False

    notification = hasura.called("CreateNotification")[0].variables["data"]
    assert notification["user_id"] == "maid-1"
    assert notification["type"] == "profile_approved"
    assert notification["priority"] == "high"
    assert notification["link"] == "/dashboard/maid/profile"

    whatsapp = hasura.called("CreateWhatsAppMessage")[0].variables["data"]
    assert whatsapp["phone_number"] == "+251911223344"
    assert whatsapp["sender"] == "assistant"
    assert whatsapp["processed"] is False

    email = [o for o in report.outcomes if o.channel == "email"][0]
    assert email.status == ChannelStatus.SKIPPED


@pytest.mark.asyncio
async def test_agency_with_phone_is_notified_on_whatsapp(hasura, complete_maid_profile):
    hasura.on("GetAgencyById", {"agency_profiles_by_pk": AGENCY})
    maid = _agency_maid(complete_maid_profile)

    report = await fanout.fan_out_status_change(hasura, "tok", maid, VerificationAction.REJECT, "- Skills")
    summary = fanout.summarize(report, maid, VerificationAction.REJECT)

    assert report.agency_notified is True
    assert "in-app" in summary
    assert "whatsapp" in summary
    assert "agency(in-app,whatsapp,email)" in report.channels
    assert "Agency (Addis Placement) has been notified." in summary

    agency_notification = hasura.called("CreateNotification")[1].variables["data"]
    assert agency_notification["user_id"] == "agency-1"
    assert agency_notification["link"] == "/dashboard/agency/maids/maid-1"
    assert agency_notification["priority"] == "urgent"


@pytest.mark.asyncio
async def test_no_phone_anywhere_means_no_whatsapp(hasura, complete_maid_profile):
    hasura.on("GetAgencyById", {"agency_profiles_by_pk": {"id": "agency-1", "full_name": "Quiet Agency"}})
    maid = {**_agency_maid(complete_maid_profile), "phone_number": None, "alternative_phone": None}

    report = await fanout.fan_out_status_change(hasura, "tok", maid, VerificationAction.APPROVE, "ok")
    summary = fanout.summarize(report, maid, VerificationAction.APPROVE)

    assert "whatsapp" not in summary
    assert hasura.called("CreateWhatsAppMessage") == []
    assert report.channels == ["in-app", "agency(in-app)"]


@pytest.mark.asyncio
async def test_channel_failure_does_not_stop_others(hasura, complete_maid_profile):
    hasura.on("CreateNotification", HasuraError("connection error: timed out"))

    report = await fanout.fan_out_status_change(
        hasura, "tok", complete_maid_profile, VerificationAction.PENDING, "Under review"
    )

    statuses = {o.channel: o.status for o in report.outcomes}
    assert statuses["in-app"] == ChannelStatus.FAILED
    assert statuses["whatsapp"] == ChannelStatus.SENT
    assert report.channels == ["whatsapp"]


@pytest.mark.asyncio
async def test_missing_agency_is_recorded(hasura, complete_maid_profile):
    hasura.on("GetAgencyById", {"agency_profiles_by_pk": None})
    maid = _agency_maid(complete_maid_profile)

    report = await fanout.fan_out_status_change(hasura, "tok", maid, VerificationAction.APPROVE, "ok")

    assert report.agency_notified is False
    assert report.as_list()[-1] == {"channel": "agency:lookup", "status": "skipped", "detail": "agency not found"}
    assert "Agency" not in fanout.summarize(report, maid, VerificationAction.APPROVE)


def test_fanout_shares_notification_document():
    assert fanout.CREATE_NOTIFICATION is CREATE_NOTIFICATION
