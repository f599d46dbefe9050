from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import get_current_user
from ..models.user import User
from ..services.messaging_service import MessagingService
from ..utils.formatting import iso, user_summary
from ..utils.json_store import DepartmentStore, get_department_store

router = APIRouter(prefix="/api", tags=["Messaging"])


class MessageCreate(BaseModel):
    recipient_id: UUID
    content: str = Field(..., min_length=1, max_length=5000)


class BroadcastRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    scope: str
    class_ids: Optional[List[UUID]] = None
    department: Optional[str] = None


def message_to_dict(message) -> dict:
    return {
        "id": str(message.id),
        "conversation_id": str(message.conversation_id),
        "sender_id": str(message.sender_id),
        "sender_name": message.sender.name if message.sender else None,
        "content": message.content,
        "sent_at": iso(message.sent_at),
    }


@router.get("/conversations")
async def list_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await MessagingService(db).list_conversations(user)
    return [
        {
            "id": str(item["conversation"].id),
            "participants": [user_summary(p) for p in item["participants"]],
            "last_message": message_to_dict(item["last_message"]) if item["last_message"] else None,
            "unread_count": item["unread_count"],
        }
        for item in items
    ]


@router.get("/conversations/{conversation_id}/messages")
async def conversation_messages(
    conversation_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    messages = await MessagingService(db).messages(user, conversation_id)
    return [message_to_dict(m) for m in messages]


@router.post("/conversations/{conversation_id}/read")
async def mark_conversation_read(
    conversation_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    participant = await MessagingService(db).mark_read(user, conversation_id)
    return {"conversation_id": str(conversation_id), "last_read_at": iso(participant.last_read_at)}


@router.post("/messages", status_code=201)
async def send_message(
    payload: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Send a direct message, reusing the existing conversation with the recipient"""
    message = await MessagingService(db).send(user, payload.recipient_id, payload.content)
    return message_to_dict(message)


@router.post("/messages/broadcast")
async def broadcast_message(
    payload: BroadcastRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    departments: DepartmentStore = Depends(get_department_store),
):
    count = await MessagingService(db).broadcast(
        user,
        payload.content,
        payload.scope,
        class_ids=payload.class_ids,
        department=payload.department,
        department_store=departments,
    )
    return {"count": count}


@router.get("/recipients")
async def list_recipients(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [user_summary(u) for u in await MessagingService(db).recipients(user)]
