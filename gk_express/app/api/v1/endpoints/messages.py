"""
Inter-office Messaging API Endpoints.

The office of the authenticated user is the mailbox: received, sent and
conversation listings are all relative to it.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status

from gk_express.app.core.dependencies import get_current_user, get_message_store
from gk_express.app.core.guards import require_office
from gk_express.app.schemas.message import (
    MessageCreate,
    MessageReadResponse,
    MessageResponse,
    UnreadCountResponse,
)
from gk_express.app.services.message_store import MessageStore

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_message(
    message_data: MessageCreate,
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """
    Send a message to another office.

    The receiving office gets the resolved message in real time as ``new_message``.
    """
    return await store.create(
        from_user_id=current_user["user_id"],
        to_office_id=message_data.to_office_id,
        subject=message_data.subject,
        content=message_data.content,
        related_parcel_id=message_data.related_parcel_id
    )


@router.get("/received", response_model=List[MessageResponse])
async def list_received_messages(
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """Messages received by the current office, newest first."""
    return await store.list_received(require_office(current_user))


@router.get("/sent", response_model=List[MessageResponse])
async def list_sent_messages(
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """Messages sent by the current office, newest first."""
    return await store.list_sent(require_office(current_user))


@router.get("/conversation/{office_id}", response_model=List[MessageResponse])
async def get_conversation(
    office_id: str = Path(..., description="Other office ID"),
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """Every message exchanged with another office, oldest first."""
    return await store.list_conversation(require_office(current_user), office_id)


@router.get("/unread/count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """Number of unread messages for the current office."""
    count = await store.unread_count(require_office(current_user))
    return UnreadCountResponse(unread_count=count)


@router.patch("/{message_id}/read", response_model=MessageReadResponse)
async def mark_message_read(
    message_id: str = Path(..., description="Message ID"),
    current_user: dict = Depends(get_current_user),
    store: MessageStore = Depends(get_message_store)
):
    """Mark a received message as read. Only the receiving office may do this."""
    return await store.mark_read(message_id, current_user.get("office_id"))
