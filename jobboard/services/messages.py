"""Messages between the owning company and candidate of an application."""
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import AuthorizationError, NotFoundError, ValidationError
from jobboard.models.application import JobApplication
from jobboard.models.candidate import Candidate
from jobboard.models.company import Company
from jobboard.models.message import Message, PARTICIPANT_TYPES
from jobboard.services import applications as application_store
from jobboard.services.events import MessageReceived
from jobboard.services.guard import CompanyPrincipal, Principal, can_message
from jobboard.utils.logger import get_logger

logger = get_logger("messages")


async def _participant_application(
    db: AsyncSession, principal: Principal, application_id: int, denied: str
) -> JobApplication:
    application = await application_store.get_application(db, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    if not can_message(principal, application):
        raise AuthorizationError(denied)
    return application


async def _message_event(
    db: AsyncSession, message: Message, application: JobApplication
) -> Optional[MessageReceived]:
    if application.job is None:
        logger.error(f"Job not found for application {application.id}", extra={"message_id": message.id})
        return None

    if message.receiver_type == 'candidate':
        receiver = await db.get(Candidate, message.receiver_id)
        sender = await db.get(Company, int(message.sender_id))
    else:
        receiver = await db.get(Company, int(message.receiver_id)) if message.receiver_id.isdigit() else None
        sender = await db.get(Candidate, message.sender_id)

    return MessageReceived(
        message_id=message.id,
        recipient=receiver.email if receiver else None,
        sender_name=sender.name if sender else "a participant",
        job_title=application.job.title,
    )


async def send_message(
    db: AsyncSession,
    principal: Principal,
    application_id: int,
    content: str,
    receiver_id: str,
    receiver_type: str,
    attachments: Optional[List[str]] = None,
) -> Tuple[Message, List[MessageReceived]]:
    if not application_id or not content or not receiver_id or not receiver_type:
        raise ValidationError(
            "Missing required fields: applicationId, content, receiverId, and receiverType are required"
        )
    if receiver_type not in PARTICIPANT_TYPES:
        raise ValidationError("Invalid receiverType. Must be either recruiter or candidate")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content cannot be empty")

    application = await _participant_application(
        db, principal, application_id, "Not authorized to send messages for this application"
    )

    message = Message(
        application_id=application.id,
        sender_id=principal.participant_id,
        sender_type=principal.kind,
        receiver_id=str(receiver_id),
        receiver_type=receiver_type,
        content=content,
        is_read=False,
        attachments=attachments or [],
    )
    db.add(message)
    await db.commit()

    # Recipient lookup belongs to the notification, so it may fail without failing the send
    events = []
    try:
        event = await _message_event(db, message, application)
        if event is not None:
            events.append(event)
    except (SQLAlchemyError, ValueError) as exc:
        logger.error(
            "notification.lookup_failed",
            extra={"message_id": message.id, "error": str(exc)[:500]},
        )
    return message, events


async def list_application_messages(
    db: AsyncSession, principal: Principal, application_id: int
) -> List[Message]:
    """Conversation in chronological order; marks the caller's unread messages read."""
    await _participant_application(db, principal, application_id, "Not authorized to view these messages")

    result = await db.execute(
        select(Message)
        .where(Message.application_id == application_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    messages = list(result.scalars().all())

    await db.execute(
        update(Message)
        .where(
            Message.application_id == application_id,
            Message.receiver_id == principal.participant_id,
            Message.receiver_type == principal.kind,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
    )
    await db.commit()
    return messages


async def unread_count(db: AsyncSession, principal: Principal) -> int:
    count = await db.scalar(
        select(func.count(Message.id)).where(
            Message.receiver_id == principal.participant_id,
            Message.receiver_type == principal.kind,
            Message.is_read.is_(False),
        )
    )
    return count or 0
