"""
tests/test_bookings.py
Tests for the booking request lifecycle: create → accept/reject → cancel/complete.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from tests.conftest import auth_headers

VERIFIED_MAID = {
    "id": "maid-1",
    "user_id": "maid-1",
    "full_name": "Almaz Bekele",
    "verification_status": "verified",
    "availability_status": "available",
}


def _booking(status: str = "pending", **extra) -> dict:
    return {
        "id": "b1",
        "maid_id": "maid-1",
        "sponsor_id": "sponsor-1",
        "status": status,
        "requested_start_date": str(date.today() + timedelta(days=10)),
        "requested_duration_months": 12,
        "offered_salary": 400,
        "currency": "USD",
        **extra,
    }


def _payload(**overrides) -> dict:
    return {
        "maid_id": "maid-1",
        "requested_start_date": str(date.today() + timedelta(days=10)),
        "requested_duration_months": 12,
        "offered_salary": 400,
        **overrides,
    }


def _echo_update(variables):
    return {"update_booking_requests_by_pk": {**_booking(), **variables["data"]}}


# ── Creation ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_booking_success(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookableMaid", {"maid_profiles_by_pk": VERIFIED_MAID})
    hasura.on("FindOpenBookingRequest", {"booking_requests": []})
    hasura.on("CreateBookingRequest", lambda v: {"insert_booking_requests_one": {"id": "b1", **v["data"]}})

    response = await client.post("/bookings", json=_payload(), headers=auth_headers(sponsor))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["sponsor_id"] == "sponsor-1"

    notification = hasura.called("CreateNotification")[0].variables["data"]
    assert notification["user_id"] == "maid-1"
    assert notification["type"] == "booking_request"
    assert notification["related_id"] == "b1"


@pytest.mark.asyncio
async def test_create_booking_past_date_rejected(client: AsyncClient, sponsor):
    payload = _payload(requested_start_date=str(date.today() - timedelta(days=1)))
    response = await client.post("/bookings", json=payload, headers=auth_headers(sponsor))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_maid_cannot_create_booking(client: AsyncClient, maid):
    response = await client.post("/bookings", json=_payload(), headers=auth_headers(maid))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_booking_unverified_maid_rejected(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookableMaid", {"maid_profiles_by_pk": {**VERIFIED_MAID, "verification_status": "pending"}})
    response = await client.post("/bookings", json=_payload(), headers=auth_headers(sponsor))
    assert response.status_code == 400
    assert hasura.called("CreateBookingRequest") == []


@pytest.mark.asyncio
async def test_duplicate_pending_request_conflicts(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookableMaid", {"maid_profiles_by_pk": VERIFIED_MAID})
    hasura.on("FindOpenBookingRequest", {"booking_requests": [{"id": "b0"}]})
    response = await client.post("/bookings", json=_payload(), headers=auth_headers(sponsor))
    assert response.status_code == 409


# ── Listing ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_bookings_with_counts(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequests", {
        "booking_requests": [_booking()],
        "booking_requests_aggregate": {"aggregate": {"count": 1}},
    })
    hasura.on("GetBookingCounts", {
        "pending": {"aggregate": {"count": 1}},
        "accepted": {"aggregate": {"count": 2}},
    })

    response = await client.get("/bookings", params={"status": "pending"}, headers=auth_headers(maid))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["counts"] == {"pending": 1, "accepted": 2, "rejected": 0, "cancelled": 0, "completed": 0}

    assert hasura.called("GetBookingRequests")[0].variables["where"] == {
        "maid_id": {"_eq": "maid-1"},
        "status": {"_eq": "pending"},
    }
    assert hasura.called("GetBookingCounts")[0].variables["where"] == {"maid_id": {"_eq": "maid-1"}}


@pytest.mark.asyncio
async def test_get_booking_not_found(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": None})
    response = await client.get("/bookings/missing", headers=auth_headers(sponsor))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_other_sponsor_cannot_view_booking(client: AsyncClient, other_sponsor, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking()})
    response = await client.get("/bookings/b1", headers=auth_headers(other_sponsor))
    assert response.status_code == 403


# ── Maid Response ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_maid_accepts_booking(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking()})
    hasura.on("UpdateBookingRequest", _echo_update)

    response = await client.post("/bookings/b1/respond", json={"accept": True}, headers=auth_headers(maid))
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    fields = hasura.called("UpdateBookingRequest")[0].variables["data"]
    assert "responded_at" in fields
    notification = hasura.called("CreateNotification")[0].variables["data"]
    assert notification["user_id"] == "sponsor-1"
    assert notification["type"] == "booking_accepted"


@pytest.mark.asyncio
async def test_maid_reject_requires_reason(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking()})
    response = await client.post("/bookings/b1/respond", json={"accept": False}, headers=auth_headers(maid))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_maid_rejects_booking(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking()})
    hasura.on("UpdateBookingRequest", _echo_update)

    response = await client.post(
        "/bookings/b1/respond",
        json={"accept": False, "rejection_reason": "Already employed"},
        headers=auth_headers(maid),
    )
    assert response.status_code == 200
    assert response.json()["rejection_reason"] == "Already employed"
    assert hasura.called("CreateNotification")[0].variables["data"]["type"] == "booking_rejected"


@pytest.mark.asyncio
async def test_cannot_respond_twice(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking("accepted")})
    response = await client.post("/bookings/b1/respond", json={"accept": True}, headers=auth_headers(maid))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_wrong_maid_cannot_respond(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking(maid_id="maid-2")})
    response = await client.post("/bookings/b1/respond", json={"accept": True}, headers=auth_headers(maid))
    assert response.status_code == 403


# ── Cancel / Complete ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sponsor_cancels_accepted_booking(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking("accepted")})
    hasura.on("UpdateBookingRequest", _echo_update)

    response = await client.post("/bookings/b1/cancel", headers=auth_headers(sponsor))
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_cannot_cancel_completed_booking(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking("completed")})
    response = await client.post("/bookings/b1/cancel", headers=auth_headers(sponsor))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_maid_completes_accepted_booking(client: AsyncClient, maid, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking("accepted")})
    hasura.on("UpdateBookingRequest", _echo_update)

    response = await client.post("/bookings/b1/complete", headers=auth_headers(maid))
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert hasura.called("CreateNotification")[0].variables["data"]["user_id"] == "sponsor-1"


@pytest.mark.asyncio
async def test_cannot_complete_pending_booking(client: AsyncClient, sponsor, hasura):
    hasura.on("GetBookingRequest", {"booking_requests_by_pk": _booking()})
    response = await client.post("/bookings/b1/complete", headers=auth_headers(sponsor))
    assert response.status_code == 400
