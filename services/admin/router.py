"""
services/admin/router.py
Admin-only endpoints: maid listing and stats, completeness review,
verification changes with notification fan-out, bulk actions, CSV export,
and the admin activity log.

Every mutation is recorded in admin_activity_logs (best effort).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from config.hasura_client import HasuraClient, HasuraError, error_status_code, get_hasura
from config.redis_client import RedisCache, get_redis
from config.settings import settings
from services.admin import checklist, fanout, queries
from services.admin.export import export_filename, render_csv
from services.admin.filters import COMMON_NATIONALITIES, build_order_by, build_where, to_list_item
from services.admin.messages import default_message, generate_rejection_message
from shared.middleware.auth import CurrentUser, require_admin
from shared.models.models import BulkAction, VerificationAction, VerificationStatus
from shared.schemas.schemas import (
    AvailabilityChangeRequest,
    BulkActionRequest,
    MaidStatsResponse,
    MessageResponse,
    RejectionMessageRequest,
    VerificationChangeRequest,
    VerificationChangeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

FILTER_OPTIONS_CACHE_KEY = "admin:maid_filter_options"


# ── Helpers ────────────────────────────────────────────────────────────────────

async def _log(
    gql: HasuraClient,
    admin: CurrentUser,
    action: str,
    target_type: str,
    target_id: str,
    details: dict | None = None,
):
    """Append an admin activity record. A failed write is logged, never raised."""
    data = {
        "admin_id": admin.id,
        "action": action,
        "target_type": target_type,
        "target_id": target_id,
        "details": details or {},
    }
    try:
        await gql.execute(queries.LOG_ADMIN_ACTIVITY, {"data": data}, token=admin.token)
    except HasuraError as e:
        logger.warning(f"Admin activity log '{action}' failed: {e}")


async def _get_maid_or_404(gql: HasuraClient, admin: CurrentUser, maid_id: str) -> dict:
    data = await gql.execute(queries.GET_MAID_BY_ID, {"id": maid_id}, token=admin.token)
    maid = data.get("maid_profiles_by_pk")
    if not maid:
        raise HTTPException(status_code=404, detail="Maid not found")
    return maid


async def _get_documents(gql: HasuraClient, admin: CurrentUser, maid_id: str) -> Optional[list]:
    """Identity documents for a maid, or None when they could not be loaded."""
    try:
        data = await gql.execute(queries.GET_MAID_DOCUMENTS, {"maidId": maid_id}, token=admin.token)
    except HasuraError as e:
        logger.warning(f"Could not load documents for maid {maid_id}: {e}")
        return None
    return data.get("maid_documents") or []


def _count(data: dict, alias: str) -> int:
    return ((data.get(alias) or {}).get("aggregate") or {}).get("count") or 0


# ── Listing ────────────────────────────────────────────────────────────────────

@router.get("/maids")
async def list_maids(
    search: Optional[str] = Query(None, max_length=200),
    availability_status: Optional[str] = Query(None),
    verification_status: Optional[str] = Query(None),
    nationality: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    experience: Optional[str] = Query(None, pattern="^(all|entry|junior|mid|senior)$"),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=100),
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """Filtered, sorted, paginated maid list for the verification dashboard."""
    variables = {
        "where": build_where(search, availability_status, verification_status, nationality, location, experience),
        "order_by": build_order_by(sort_by, sort_order),
        "limit": page_size,
        "offset": (page - 1) * page_size,
    }
    data = await gql.execute(queries.GET_MAIDS, variables, token=current_user.token)
    total = _count(data, "maid_profiles_aggregate")

    return {
        "items": [to_list_item(m) for m in data.get("maid_profiles") or []],
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": -(-total // page_size),  # ceiling division
    }


@router.get("/maids/stats", response_model=MaidStatsResponse)
async def get_maid_stats(
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(queries.GET_MAID_STATS, token=current_user.token)
    return MaidStatsResponse(
        **{alias: _count(data, alias) for alias in ("total", "available", "busy", "verified", "pending", "rejected")}
    )


@router.get("/maids/filter-options")
async def get_filter_options(
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
    redis=Depends(get_redis),
):
    """Distinct nationalities and locations. Falls back to common nationalities when none exist yet."""
    cache = RedisCache(redis)
    cached = await cache.get(FILTER_OPTIONS_CACHE_KEY)
    if cached:
        return cached

    nationalities_data = await gql.execute(queries.GET_NATIONALITIES, token=current_user.token)
    locations_data = await gql.execute(queries.GET_LOCATIONS, token=current_user.token)

    nationalities = [r["nationality"] for r in nationalities_data.get("maid_profiles") or [] if r.get("nationality")]
    locations = [r["current_location"] for r in locations_data.get("maid_profiles") or [] if r.get("current_location")]
    options = {
        "nationalities": nationalities or COMMON_NATIONALITIES,
        "locations": locations,
    }
    await cache.set(FILTER_OPTIONS_CACHE_KEY, options, ttl=settings.FILTER_OPTIONS_CACHE_TTL)
    return options


@router.get("/maids/export")
async def export_maids(
    search: Optional[str] = Query(None, max_length=200),
    availability_status: Optional[str] = Query(None),
    verification_status: Optional[str] = Query(None),
    nationality: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    experience: Optional[str] = Query(None, pattern="^(all|entry|junior|mid|senior)$"),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """Every maid matching the current filters as CSV."""
    variables = {
        "where": build_where(search, availability_status, verification_status, nationality, location, experience),
        "order_by": build_order_by(sort_by, sort_order),
        "limit": settings.EXPORT_ROW_LIMIT,
        "offset": 0,
    }
    data = await gql.execute(queries.GET_MAIDS, variables, token=current_user.token)
    maids = data.get("maid_profiles") or []

    await _log(gql, current_user, "export_maids", "maid", "all", {"count": len(maids)})

    return Response(
        content=render_csv(maids),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


# ── Bulk Actions ───────────────────────────────────────────────────────────────

@router.post("/maids/bulk")
async def bulk_update_maids(
    data: BulkActionRequest,
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """
    Apply one action to the selected maids with a single mutation.
    There is no per-row rollback; the selection is cleared on success.
    """
    ids = list(dict.fromkeys(data.selected_ids))
    if not ids:
        raise HTTPException(status_code=400, detail="Please select at least one maid to perform bulk action.")

    action = BulkAction(data.action)
    if action == BulkAction.STATUS:
        if not data.status:
            raise HTTPException(status_code=400, detail="An availability status is required for status updates.")
        document = queries.BULK_UPDATE_STATUS
        variables = {"ids": ids, "availability_status": data.status}
        log_action = "bulk_status_update"
    else:
        document = queries.BULK_UPDATE_VERIFICATION
        status = VerificationStatus.VERIFIED if action == BulkAction.VERIFY else VerificationStatus.REJECTED
        variables = {"ids": ids, "verification_status": status.value}
        log_action = f"bulk_{action.value}"

    try:
        result = await gql.execute(document, variables, token=current_user.token)
    except HasuraError as e:
        logger.error(f"Bulk {action.value} on {len(ids)} maids failed: {e}", exc_info=True)
        raise HTTPException(status_code=error_status_code(e), detail="Failed to perform bulk action.")

    affected = (result.get("update_maid_profiles") or {}).get("affected_rows", 0)
    await _log(gql, current_user, log_action, "maid", ",".join(ids), variables)

    return {
        "message": f"Bulk action completed for {affected} maid(s).",
        "affected_rows": affected,
        "selected_ids": [],
    }


# ── Activity Log ───────────────────────────────────────────────────────────────

@router.get("/activity")
async def get_activity_log(
    action: Optional[str] = Query(None, description="Filter by action e.g. maid_verification_approve"),
    target_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    where: dict = {}
    if action:
        where["action"] = {"_eq": action}
    if target_type:
        where["target_type"] = {"_eq": target_type}

    data = await gql.execute(
        queries.GET_ADMIN_ACTIVITY,
        {"where": where, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    return {
        "items": data.get("admin_activity_logs") or [],
        "total": _count(data, "admin_activity_logs_aggregate"),
        "page": page,
        "page_size": page_size,
    }


# ── Single Maid Review ─────────────────────────────────────────────────────────

@router.get("/maids/{maid_id}")
async def get_maid_detail(
    maid_id: str,
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """Full profile, uploaded documents and the completeness checklist."""
    maid = await _get_maid_or_404(gql, current_user, maid_id)
    documents = await _get_documents(gql, current_user, maid_id)
    items = checklist.evaluate(maid, documents or [])

    return {
        "maid": to_list_item(maid),
        "documents": documents or [],
        "documents_loaded": documents is not None,
        "checklist": checklist.summarize(items, documents_loading=documents is None),
    }


@router.get("/maids/{maid_id}/default-message", response_model=MessageResponse)
async def get_default_message(
    maid_id: str,
    action: VerificationAction = Query(...),
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    maid = await _get_maid_or_404(gql, current_user, maid_id)
    return MessageResponse(message=default_message(action, maid.get("full_name")))


@router.post("/maids/{maid_id}/rejection-message", response_model=MessageResponse)
async def build_rejection_message(
    maid_id: str,
    data: RejectionMessageRequest,
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """Draft a rejection message from the checklist items the admin ticked."""
    maid = await _get_maid_or_404(gql, current_user, maid_id)
    return MessageResponse(message=generate_rejection_message(maid.get("full_name"), data.selected_items))


@router.post("/maids/{maid_id}/verification", response_model=VerificationChangeResponse)
async def change_verification(
    maid_id: str,
    data: VerificationChangeRequest,
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    """
    Approve, reject or reset a maid's verification.
    - Approve requires every required checklist item to be complete
    - Status is written first; notifications then fan out channel by channel
    - Channel failures are reported, never raised
    """
    action = VerificationAction(data.action)
    maid = await _get_maid_or_404(gql, current_user, maid_id)

    if action == VerificationAction.APPROVE:
        documents = await _get_documents(gql, current_user, maid_id)
        items = checklist.evaluate(maid, documents or [])
        if not checklist.is_eligible_for_approval(items, documents_loading=documents is None):
            missing = [i.label for i in checklist.required_missing(items)]
            raise HTTPException(
                status_code=400,
                detail=f"Profile is not eligible for approval. Missing: {', '.join(missing) or 'documents'}",
            )

    new_status = action.target_status
    try:
        result = await gql.execute(
            queries.UPDATE_MAID_VERIFICATION,
            {"id": maid_id, "verification_status": new_status.value},
            token=current_user.token,
        )
    except HasuraError as e:
        logger.error(f"Failed to update verification status for maid {maid_id}: {e}", exc_info=True)
        raise HTTPException(status_code=error_status_code(e), detail="Failed to update verification status.")

    if not result.get("update_maid_profiles_by_pk"):
        raise HTTPException(status_code=404, detail="Maid not found")

    await _log(gql, current_user, f"maid_verification_{action.value}", "maid", maid_id)

    report = await fanout.fan_out_status_change(gql, current_user.token, maid, action, data.message)
    return VerificationChangeResponse(
        maid_id=maid_id,
        verification_status=new_status,
        summary=fanout.summarize(report, maid, action),
        channels=report.channels,
        outcomes=report.as_list(),
        agency_notified=report.agency_notified,
    )


@router.patch("/maids/{maid_id}/availability", response_model=MessageResponse)
async def change_availability(
    maid_id: str,
    data: AvailabilityChangeRequest,
    current_user: CurrentUser = Depends(require_admin),
    gql: HasuraClient = Depends(get_hasura),
):
    try:
        result = await gql.execute(
            queries.UPDATE_MAID_STATUS,
            {"id": maid_id, "availability_status": data.status},
            token=current_user.token,
        )
    except HasuraError as e:
        logger.error(f"Failed to update availability for maid {maid_id}: {e}", exc_info=True)
        raise HTTPException(status_code=error_status_code(e), detail="Failed to update maid status.")

    if not result.get("update_maid_profiles_by_pk"):
        raise HTTPException(status_code=404, detail="Maid not found")

    await _log(gql, current_user, "maid_status_update", "maid", maid_id, {"availability_status": data.status})
    return MessageResponse(message=f"Maid status updated to {data.status}")
