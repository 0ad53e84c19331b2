"""
services/message/router.py
Direct messaging between two profiles. Clients poll; there is no live push.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from config.hasura_client import HasuraClient, HasuraError, error_status_code, friendly_error_message, get_hasura
from services.notification.router import dispatch_notification
from shared.middleware.auth import CurrentUser, get_current_user
from shared.models.models import NotificationType
from shared.schemas.schemas import ConversationStartRequest, MessageSendRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Messaging"])

PREVIEW_LENGTH = 100

CONVERSATION_FIELDS = """
    id
    participant1_id
    participant2_id
    last_message_at
    last_message_preview
    status
    created_at
"""

GET_CONVERSATIONS = f"""
query GetConversations($userId: String!) {{
  conversations(
    where: {{_or: [{{participant1_id: {{_eq: $userId}}}}, {{participant2_id: {{_eq: $userId}}}}]}},
    order_by: {{last_message_at: desc_nulls_last}}
  ) {{
    {CONVERSATION_FIELDS}
  }}
}}
"""

GET_CONVERSATION = f"""
query GetConversation($id: uuid!) {{
  conversations_by_pk(id: $id) {{
    {CONVERSATION_FIELDS}
  }}
}}
"""

FIND_CONVERSATION = f"""
query FindConversation($a: String!, $b: String!) {{
  conversations(
    where: {{_or: [
      {{participant1_id: {{_eq: $a}}, participant2_id: {{_eq: $b}}}},
      {{participant1_id: {{_eq: $b}}, participant2_id: {{_eq: $a}}}}
    ]}},
    limit: 1
  ) {{
    {CONVERSATION_FIELDS}
  }}
}}
"""

CREATE_CONVERSATION = f"""
mutation CreateConversation($data: conversations_insert_input!) {{
  insert_conversations_one(object: $data) {{
    {CONVERSATION_FIELDS}
  }}
}}
"""

GET_MESSAGES = """
query GetMessages($conversationId: uuid!, $limit: Int, $offset: Int) {
  messages(
    where: {conversation_id: {_eq: $conversationId}},
    order_by: {created_at: asc},
    limit: $limit,
    offset: $offset
  ) {
    id
    conversation_id
    sender_id
    receiver_id
    content
    message_type
    is_read
    read_at
    created_at
  }
}
"""

MARK_MESSAGES_READ = """
mutation MarkMessagesRead($conversationId: uuid!, $userId: String!, $readAt: timestamptz!) {
  update_messages(
    where: {conversation_id: {_eq: $conversationId}, receiver_id: {_eq: $userId}, is_read: {_eq: false}},
    _set: {is_read: true, read_at: $readAt}
  ) {
    affected_rows
  }
}
"""

SEND_MESSAGE = """
mutation SendMessage($data: messages_insert_input!) {
  insert_messages_one(object: $data) {
    id
    conversation_id
    sender_id
    receiver_id
    content
    message_type
    is_read
    created_at
  }
}
"""

TOUCH_CONVERSATION = """
mutation TouchConversation($id: uuid!, $at: timestamptz!, $preview: String!) {
  update_conversations_by_pk(pk_columns: {id: $id}, _set: {last_message_at: $at, last_message_preview: $preview}) {
    id
  }
}
"""


# ── Helpers ───────────────────────────────────────────────────

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def other_participant(conversation: dict, user_id: str) -> str:
    if conversation["participant1_id"] == user_id:
        return conversation["participant2_id"]
    return conversation["participant1_id"]


def preview(content: str) -> str:
    content = " ".join(content.split())
    if len(content) <= PREVIEW_LENGTH:
        return content
    return content[: PREVIEW_LENGTH - 3] + "..."


async def _get_own_conversation(gql: HasuraClient, conversation_id: str, current_user: CurrentUser) -> dict:
    data = await gql.execute(GET_CONVERSATION, {"id": conversation_id}, token=current_user.token)
    conversation = data.get("conversations_by_pk")
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    if current_user.id not in (conversation["participant1_id"], conversation["participant2_id"]):
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


# ── Conversations ─────────────────────────────────────────────

@router.get("")
async def list_conversations(
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    data = await gql.execute(GET_CONVERSATIONS, {"userId": current_user.id}, token=current_user.token)
    items = [
        {**c, "other_participant_id": other_participant(c, current_user.id)}
        for c in data.get("conversations") or []
    ]
    return {"items": items, "total": len(items)}


@router.post("")
async def start_conversation(
    data: ConversationStartRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Return the existing conversation with `participant_id`, creating it if needed."""
    if data.participant_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot start a conversation with yourself")

    found = await gql.execute(
        FIND_CONVERSATION,
        {"a": current_user.id, "b": data.participant_id},
        token=current_user.token,
    )
    rows = found.get("conversations") or []
    if rows:
        return {"conversation": rows[0], "created": False}

    row = {
        "participant1_id": current_user.id,
        "participant2_id": data.participant_id,
        "status": "active",
    }
    try:
        result = await gql.execute(CREATE_CONVERSATION, {"data": row}, token=current_user.token)
    except HasuraError as e:
        logger.error(f"Conversation creation failed for {current_user.id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Unable to start the conversation. Please try again."),
        )
    return {"conversation": result.get("insert_conversations_one"), "created": True}


# ── Messages ──────────────────────────────────────────────────

@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    """Messages oldest first. Incoming unread messages are marked read."""
    await _get_own_conversation(gql, conversation_id, current_user)
    data = await gql.execute(
        GET_MESSAGES,
        {"conversationId": conversation_id, "limit": page_size, "offset": (page - 1) * page_size},
        token=current_user.token,
    )
    messages = data.get("messages") or []

    if any(m.get("receiver_id") == current_user.id and not m.get("is_read") for m in messages):
        await gql.execute(
            MARK_MESSAGES_READ,
            {"conversationId": conversation_id, "userId": current_user.id, "readAt": _now()},
            token=current_user.token,
        )
    return {"items": messages, "page": page, "page_size": page_size}


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    data: MessageSendRequest,
    current_user: CurrentUser = Depends(get_current_user),
    gql: HasuraClient = Depends(get_hasura),
):
    conversation = await _get_own_conversation(gql, conversation_id, current_user)
    receiver_id = other_participant(conversation, current_user.id)
    content = data.content.strip()

    message = {
        "conversation_id": conversation_id,
        "sender_id": current_user.id,
        "receiver_id": receiver_id,
        "content": content,
        "message_type": "text",
        "is_read": False,
    }
    try:
        result = await gql.execute(SEND_MESSAGE, {"data": message}, token=current_user.token)
    except HasuraError as e:
        logger.error(f"Message send failed in {conversation_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=error_status_code(e),
            detail=friendly_error_message(e, "Failed to send message. Please try again."),
        )

    await gql.execute(
        TOUCH_CONVERSATION,
        {"id": conversation_id, "at": _now(), "preview": preview(content)},
        token=current_user.token,
    )
    await dispatch_notification(
        gql,
        current_user.token,
        user_id=receiver_id,
        notification_type=NotificationType.MESSAGE_RECEIVED.value,
        title=f"New message from {current_user.full_name or 'a user'}",
        message=preview(content),
        related_id=conversation_id,
        related_type="conversation",
        link=f"/messages?conversation={conversation_id}",
    )
    return result.get("insert_messages_one") or message
