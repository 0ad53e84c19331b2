"""
services/notification/deeplinks.py
Resolve a notification to the mobile route it should open, and pull the
bullet list out of a rejection message.
"""

import re
from typing import Optional

_CONVERSATION_RE = re.compile(r"conversation=([^&]+)")
_MAID_RE = re.compile(r"/maids/([^/?]+)")
_BULLET_RE = re.compile(r"^\s*[-•]\s*(.+?)\s*$")

PROFILE_TYPES = {"profile_rejected", "profile_approved"}

FILTERS = ("all", "unread", "message", "application", "job", "booking")

RELATED_TYPE_ROUTES = {
    "maid": "/maid/{id}",
    "maid_profile": "/maid/{id}",
    "job": "/job/{id}",
    "message": "/chat/{id}",
    "conversation": "/chat/{id}",
    "application": "/agency/applicants",
    "booking": "/sponsor/bookings",
}


def _route_from_link(link: str) -> Optional[str]:
    if "/profile" in link:
        return "/profile"
    if "/messages" in link:
        match = _CONVERSATION_RE.search(link)
        return f"/chat/{match.group(1)}" if match else "/messages"
    if "/maids/" in link:
        match = _MAID_RE.search(link)
        if match:
            return f"/maid/{match.group(1)}"
    if "/booking" in link:
        return "/sponsor/bookings"
    if "/job" in link:
        return "/sponsor/jobs"
    return None


def resolve_route(notification: dict) -> Optional[str]:
    """
    Checked in order: notification type, then link, then related_type/related_id.
    Returns None when nothing matches.
    """
    n_type = notification.get("type")
    related_id = notification.get("related_id")
    link = notification.get("link") or ""

    if n_type in PROFILE_TYPES:
        return "/profile"

    if n_type == "message_received":
        conversation_id = related_id
        if not conversation_id:
            match = _CONVERSATION_RE.search(link)
            conversation_id = match.group(1) if match else None
        return f"/chat/{conversation_id}" if conversation_id else "/messages"

    if link:
        route = _route_from_link(link)
        if route:
            return route

    related_type = notification.get("related_type")
    if related_type and related_id and related_type in RELATED_TYPE_ROUTES:
        return RELATED_TYPE_ROUTES[related_type].format(id=related_id)
    return None


def rejection_reasons(message: Optional[str]) -> list[str]:
    """Bullet items of a rejection message: lines starting with '-' or '•', marker stripped."""
    if not message:
        return []
    reasons = []
    for line in message.splitlines():
        match = _BULLET_RE.match(line)
        if match:
            reasons.append(match.group(1))
    return reasons
