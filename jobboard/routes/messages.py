"""Application messaging, open to the owning company and the owning candidate"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union

from jobboard.database import get_db
from jobboard.middleware.auth import get_principal
from jobboard.services import messages as message_store
from jobboard.services.events import NotificationDispatcher, get_dispatcher
from jobboard.services.guard import Principal

router = APIRouter()


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional here so missing fields get the combined "required fields" message
    application_id: Optional[int] = Field(None, alias="applicationId")
    content: Optional[str] = None
    receiver_id: Optional[Union[str, int]] = Field(None, alias="receiverId")
    receiver_type: Optional[str] = Field(None, alias="receiverType")
    attachments: Optional[List[str]] = None


@router.post("/send")
async def send_message(
    data: SendMessageRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    message, events = await message_store.send_message(
        db,
        principal,
        data.application_id,
        data.content,
        str(data.receiver_id) if data.receiver_id is not None else None,
        data.receiver_type,
        attachments=data.attachments,
    )
    await dispatcher.dispatch(events)
    return {"success": True, "message": "Message sent", "sent": message.to_dict()}


@router.get("/application/{application_id}")
async def get_application_messages(
    application_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    messages = await message_store.list_application_messages(db, principal, application_id)
    return {"success": True, "messages": [m.to_dict() for m in messages]}


@router.get("/unread")
async def get_unread_count(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "unreadCount": await message_store.unread_count(db, principal)}
