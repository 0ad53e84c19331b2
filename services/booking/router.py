"""
services/booking/router.py
Booking request lifecycle between a sponsor and a maid.
States: PENDING → ACCEPTED | REJECTED
        PENDING | ACCEPTED → CANCELLED (sponsor)
        ACCEPTED → COMPLETED (either party)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config.hasura_client import HasuraClient, HasuraError, error_status_code, friendly_error_message, get_hasura
from services.notification.router import dispatch_notification
from shared.middleware.auth import CurrentUser, get_current_user, require_maid, require_sponsor
from shared.models.models import BookingStatus, NotificationPriority, NotificationType, UserRole, VerificationStatus
from shared.schemas.schemas import BookingCreateRequest, BookingRespondRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

BOOKING_FIELDS = """
    id
    maid_id
    sponsor_id
    status
    requested_start_date
    requested_duration_months
    offered_salary
    currency
    message
    rejection_reason
    responded_at
    created_at
    updated_at
"""

GET_BOOKING = f"""
query GetBookingRequest($id: uuid!) {{
  booking_requests_by_pk(id: $id) {{
    {BOOKING_FIELDS}
  }}
}}
"""

GET_BOOKINGS = f"""
query GetBookingRequests($where: booking_requests_bool_exp!, $limit: Int, $offset: Int) {{
  booking_requests(where: $where, order_by: {{created_at: desc}}, limit: $limit, offset: $offset) {{
    {BOOKING_FIELDS}
  }}
  booking_requests_aggregate(where: $where) {{
    aggregate {{
      count
    }}
  }}
}}
"""

GET_BOOKING_COUNTS = """
query GetBookingCounts($where: booking_requests_bool_exp!) {
  pending: booking_requests_aggregate(where: {_and: [$where, {status: {_eq: "pending"}}]}) { aggregate { count } }
  accepted: booking_requests_aggregate(where: {_and: [$where, {status: {_eq: "accepted"}}]}) { aggregate { count } }
  rejected: booking_requests_aggregate(where: {_and: [$where, {status: {_eq: "rejected"}}]}) { aggregate { count } }
  cancelled: booking_requests_aggregate(where: {_and: [$where, {status: {_eq: "cancelled"}}]}) { aggregate { count } }
  completed: booking_requests_aggregate(where: {_and: [$where, {status: {_eq: "completed"}}]}) { aggregate { count } }
}
"""

GET_BOOKABLE_MAID = """
query GetBookableMaid($id: String!) {
  maid_profiles_by_pk(id: $id) {
    id
    user_id
    full_name
    verification_status
    availability_status
  }
}
"""

FIND_OPEN_REQUEST = """
query FindOpenBookingRequest($maidId: String!, $sponsorId: String!) {
  booking_requests(
    where: {maid_id: {_eq: $maidId}, sponsor_id: {_eq: $sponsorId}, status: {_eq: "pending"}},
    limit: 1
  ) {
    id
  }
}
"""

CREATE_BOOKING = f"""
mutation CreateBookingRequest($data: booking_requests_insert_input!) {{
  insert_booking_requests_one(object: $data) {{
    {BOOKING_FIELDS}
  }}
}}
"""

UPDATE_BOOKING = f"""
mutation UpdateBookingRequest($id: uuid!, $data: booking_requests_set_input!) {{
  update_booking_requests_by_pk(pk_columns: {{id: $id}}, _set: $data) {{
    {BOOKING_FIELDS}
  }}
}}
"""


# ── Helpers ───────────────────────────────────────────────────

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _get_booking_or_404(gql: HasuraClient, booking_id: str, token: str) -> dict:
    data = await gql.execute(GET_BOOKING, {"id": booking_id}, token=token)
    booking = data.get("booking_requests_by_pk")
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def _party(booking: dict, current_user: CurrentUser) -> Optional[str]:
    """Which side of the booking the caller is on: 'sponsor', 'maid', or None."""
    if booking["sponsor_id"] == current_user.id:
        return "sponsor"
    if booking["maid_id"] == current_user.id:
        return "maid"
    return None


def _require_status(booking: dict, *allowed: BookingStatus):
    if booking["status"] not in {s.value for s in allowed}:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot perform this action on a {booking['status']} booking",
        )


async def _update(gql: HasuraClient, booking_id: str, fields: dict, token: str) -> dict:
    fields = {**fields, "updated_at": _now()}
    try:
        result = await gql.execute(UPDATE_BOOKING, {"id": booking_id, "data": fields}, token=token)
    except HasuraError as e:
        logger.error(f"Booking {booking_id} update failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Failed to update booking. Please try again."),
        )
    return result.get("update_booking_requests_by_pk") or {**fields, "id": booking_id}


def _where_for(current_user: CurrentUser) -> dict:
    if current_user.role == UserRole.MAID:
        return {"maid_id": {"_eq": current_user.id}}
    if current_user.role == UserRole.SPONSOR:
        return {"sponsor_id": {"_eq": current_user.id}}
    if current_user.role == UserRole.ADMIN:
        return {}
    raise HTTPException(status_code=403, detail="Bookings are only available to sponsors and maids")


# ── Sponsor: create ───────────────────────────────────────────

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreateRequest,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    """
    Request a maid. The maid must be verified and not inactive, and the sponsor
    may hold only one pending request per maid. The maid is notified in-app.
    """
    result = await gql.execute(GET_BOOKABLE_MAID, {"id": data.maid_id}, token=current_user.token)
    maid = result.get("maid_profiles_by_pk")
    if not maid:
        raise HTTPException(status_code=404, detail="Maid not found")
    if maid.get("verification_status") != VerificationStatus.VERIFIED.value:
        raise HTTPException(status_code=400, detail="Maid profile is not verified")
    if maid.get("availability_status") == "inactive":
        raise HTTPException(status_code=400, detail="Maid is not accepting bookings")

    existing = await gql.execute(
        FIND_OPEN_REQUEST,
        {"maidId": data.maid_id, "sponsorId": current_user.id},
        token=current_user.token,
    )
    if existing.get("booking_requests"):
        raise HTTPException(status_code=409, detail="You already have a pending request for this maid")

    booking = {
        **data.model_dump(mode="json"),
        "sponsor_id": current_user.id,
        "status": BookingStatus.PENDING.value,
    }
    try:
        created = await gql.execute(CREATE_BOOKING, {"data": booking}, token=current_user.token)
    except HasuraError as e:
        logger.error(f"Booking creation failed for sponsor {current_user.id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Failed to create booking request. Please try again."),
        )
    booking = created.get("insert_booking_requests_one") or booking

    sponsor_name = current_user.full_name or "A sponsor"
    await dispatch_notification(
        gql,
        current_user.token,
        user_id=maid.get("user_id") or maid["id"],
        notification_type=NotificationType.BOOKING_REQUEST.value,
        title="New booking request",
        message=f"{sponsor_name} sent you a booking request starting {data.requested_start_date}.",
        related_id=booking.get("id"),
        related_type="booking",
        link="/dashboard/maid/bookings",
        priority=NotificationPriority.HIGH.value,
    )
    logger.info(f"Booking request {booking.get('id')} created by {current_user.id} for maid {data.maid_id}")
    return booking


# ── Listing ───────────────────────────────────────────────────

@router.get("")
async def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Caller's bookings (as sponsor or maid) with a count per status."""
    base = _where_for(current_user)
    where = dict(base)
    if status_filter:
        where["status"] = {"_eq": status_filter.value}

    data = await gql.execute(
        GET_BOOKINGS,
        {"where": where, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    counts = await gql.execute(GET_BOOKING_COUNTS, {"where": base}, token=current_user.token)

    return {
        "items": data.get("booking_requests") or [],
        "total": ((data.get("booking_requests_aggregate") or {}).get("aggregate") or {}).get("count") or 0,
        "page": page,
        "page_size": page_size,
        "counts": {
            s.value: ((counts.get(s.value) or {}).get("aggregate") or {}).get("count") or 0
            for s in BookingStatus
        },
    }


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    booking = await _get_booking_or_404(gql, booking_id, current_user.token)
    if _party(booking, current_user) is None and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Access denied")
    return booking


# ── Maid: respond ─────────────────────────────────────────────

@router.post("/{booking_id}/respond")
async def respond_to_booking(
    booking_id: str,
    data: BookingRespondRequest,
    current_user: CurrentUser = Depends(require_maid),
    gql: HasuraClient = Depends(get_hasura),
):
    """Maid accepts or rejects a pending request. Rejection requires a reason."""
    booking = await _get_booking_or_404(gql, booking_id, current_user.token)
    if _party(booking, current_user) != "maid":
        raise HTTPException(status_code=403, detail="This booking is not addressed to you")
    _require_status(booking, BookingStatus.PENDING)

    if data.accept:
        fields = {"status": BookingStatus.ACCEPTED.value, "responded_at": _now()}
        n_type, title = NotificationType.BOOKING_ACCEPTED, "Booking accepted"
        message = f"{current_user.full_name or 'The maid'} accepted your booking request."
    else:
        reason = (data.rejection_reason or "").strip()
        if not reason:
            raise HTTPException(status_code=400, detail="Please provide a reason for rejecting this request")
        fields = {
            "status": BookingStatus.REJECTED.value,
            "rejection_reason": reason,
            "responded_at": _now(),
        }
        n_type, title = NotificationType.BOOKING_REJECTED, "Booking declined"
        message = f"{current_user.full_name or 'The maid'} declined your booking request: {reason}"

    updated = await _update(gql, booking_id, fields, current_user.token)
    await dispatch_notification(
        gql,
        current_user.token,
        user_id=booking["sponsor_id"],
        notification_type=n_type.value,
        title=title,
        message=message,
        related_id=booking_id,
        related_type="booking",
        link="/dashboard/sponsor/bookings",
    )
    return updated


# ── Sponsor: cancel / either: complete ────────────────────────

@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(require_sponsor),
    gql: HasuraClient = Depends(get_hasura),
):
    booking = await _get_booking_or_404(gql, booking_id, current_user.token)
    if _party(booking, current_user) != "sponsor":
        raise HTTPException(status_code=403, detail="Only the requesting sponsor can cancel")
    _require_status(booking, BookingStatus.PENDING, BookingStatus.ACCEPTED)

    updated = await _update(gql, booking_id, {"status": BookingStatus.CANCELLED.value}, current_user.token)
    await dispatch_notification(
        gql,
        current_user.token,
        user_id=booking["maid_id"],
        notification_type=NotificationType.BOOKING_CANCELLED.value,
        title="Booking cancelled",
        message=f"{current_user.full_name or 'The sponsor'} cancelled a booking request.",
        related_id=booking_id,
        related_type="booking",
    )
    return updated


@router.post("/{booking_id}/complete")
async def complete_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    booking = await _get_booking_or_404(gql, booking_id, current_user.token)
    side = _party(booking, current_user)
    if side is None:
        raise HTTPException(status_code=403, detail="Access denied")
    _require_status(booking, BookingStatus.ACCEPTED)

    updated = await _update(gql, booking_id, {"status": BookingStatus.COMPLETED.value}, current_user.token)
    other = booking["maid_id"] if side == "sponsor" else booking["sponsor_id"]
    await dispatch_notification(
        gql,
        current_user.token,
        user_id=other,
        notification_type=NotificationType.BOOKING_COMPLETED.value,
        title="Booking completed",
        message="A booking has been marked as completed.",
        related_id=booking_id,
        related_type="booking",
    )
    return updated
