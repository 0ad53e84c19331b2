"""
services/notification/router.py
In-app notification feed: listing with filters, unread count, mark read,
mark all read, delete. Each item carries the mobile route it opens.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from config.hasura_client import HasuraClient, HasuraError, get_hasura
from services.notification.deeplinks import FILTERS, rejection_reasons, resolve_route
from shared.middleware.auth import CurrentUser, get_current_user
from shared.models.models import NotificationPriority
from shared.schemas.schemas import MessageResponse, NotificationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])

NOTIFICATION_FIELDS = """
    id
    user_id
    title
    message
    type
    link
    action_url
    read
    read_at
    priority
    related_id
    related_type
    created_at
"""

GET_NOTIFICATIONS = f"""
query GetNotifications($where: notifications_bool_exp!, $limit: Int, $offset: Int) {{
  notifications(where: $where, order_by: {{created_at: desc}}, limit: $limit, offset: $offset) {{
    {NOTIFICATION_FIELDS}
  }}
  notifications_aggregate(where: $where) {{
    aggregate {{
      count
    }}
  }}
}}
"""

GET_UNREAD_COUNT = """
query GetUnreadCount($userId: String!) {
  notifications_aggregate(where: {user_id: {_eq: $userId}, read: {_eq: false}}) {
    aggregate {
      count
    }
  }
}
"""

MARK_READ = """
mutation MarkNotificationsRead($where: notifications_bool_exp!, $readAt: timestamptz!) {
  update_notifications(where: $where, _set: {read: true, read_at: $readAt}) {
    affected_rows
  }
}
"""

DELETE_NOTIFICATION = """
mutation DeleteNotification($id: uuid!, $userId: String!) {
  delete_notifications(where: {id: {_eq: $id}, user_id: {_eq: $userId}}) {
    affected_rows
  }
}
"""

CREATE_NOTIFICATION = """
mutation CreateNotification($data: notifications_insert_input!) {
  insert_notifications_one(object: $data) {
    id
  }
}
"""


def _to_response(row: dict) -> NotificationResponse:
    reasons = rejection_reasons(row.get("message")) if row.get("type") == "profile_rejected" else []
    return NotificationResponse(**row, route=resolve_route(row), rejection_reasons=reasons)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def dispatch_notification(
    gql: HasuraClient,
    token: Optional[str],
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    related_id: Optional[str] = None,
    related_type: Optional[str] = None,
    link: Optional[str] = None,
    priority: str = NotificationPriority.NORMAL.value,
) -> bool:
    """
    Insert an in-app notification for another user.
    Non-critical: a failure is logged and reported as False, never raised.
    """
    data = {
        "user_id": user_id,
        "type": notification_type,
        "title": title,
        "message": message,
        "priority": priority,
        "related_id": related_id,
        "related_type": related_type,
        "link": link,
        "action_url": link,
        "read": False,
    }
    try:
        await gql.execute(CREATE_NOTIFICATION, {"data": data}, token=token)
        return True
    except HasuraError as e:
        logger.warning(f"Notification '{notification_type}' to {user_id} failed: {e}")
        return False


# ── REST Endpoints ────────────────────────────────────────────

@router.get("")
async def get_my_notifications(
    unread_only: bool = Query(False),
    filter: str = Query("all", description=f"One of {', '.join(FILTERS)}"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Authenticated user's notifications, newest first."""
    if filter not in FILTERS:
        raise HTTPException(status_code=400, detail=f"Invalid filter. Valid: {list(FILTERS)}")

    where: dict = {"user_id": {"_eq": current_user.id}}
    if unread_only or filter == "unread":
        where["read"] = {"_eq": False}
    elif filter != "all":
        where["type"] = {"_ilike": f"%{filter}%"}

    data = await gql.execute(
        GET_NOTIFICATIONS,
        {"where": where, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    total = ((data.get("notifications_aggregate") or {}).get("aggregate") or {}).get("count") or 0
    return {
        "items": [_to_response(n) for n in data.get("notifications") or []],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@router.get("/unread-count")
async def unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(GET_UNREAD_COUNT, {"userId": current_user.id}, token=current_user.token)
    count = ((data.get("notifications_aggregate") or {}).get("aggregate") or {}).get("count")
    return {"unread_count": count or 0}


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    where = {"user_id": {"_eq": current_user.id}, "read": {"_eq": False}}
    data = await gql.execute(MARK_READ, {"where": where, "readAt": _now()}, token=current_user.token)
    affected = (data.get("update_notifications") or {}).get("affected_rows", 0)
    return MessageResponse(message=f"{affected} notification(s) marked as read")


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Open one notification. Opening marks it read."""
    where = {"id": {"_eq": notification_id}, "user_id": {"_eq": current_user.id}}
    data = await gql.execute(GET_NOTIFICATIONS, {"where": where, "limit": 1, "offset": 0}, token=current_user.token)
    rows = data.get("notifications") or []
    if not rows:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification = rows[0]
    if not notification.get("read"):
        read_at = _now()
        await gql.execute(MARK_READ, {"where": where, "readAt": read_at}, token=current_user.token)
        notification = {**notification, "read": True, "read_at": read_at}
    return _to_response(notification)


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    where = {"id": {"_eq": notification_id}, "user_id": {"_eq": current_user.id}}
    data = await gql.execute(MARK_READ, {"where": where, "readAt": _now()}, token=current_user.token)
    if not (data.get("update_notifications") or {}).get("affected_rows"):
        raise HTTPException(status_code=404, detail="Notification not found")
    return MessageResponse(message="Marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(
        DELETE_NOTIFICATION,
        {"id": notification_id, "userId": current_user.id},
        token=current_user.token,
    )
    if not (data.get("delete_notifications") or {}).get("affected_rows"):
        raise HTTPException(status_code=404, detail="Notification not found")
    return MessageResponse(message="Notification deleted")
