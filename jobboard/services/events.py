"""
Domain events emitted by workflow mutations and the dispatcher that turns
them into emails.

Services return events alongside the mutated record; routes hand them to
NotificationDispatcher.dispatch() only after the mutation is committed.
Delivery problems end here: they are logged and counted, never raised.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from fastapi import Depends

from jobboard.config import get_settings
from jobboard.services import email_templates
from jobboard.services.notifier import Notifier, get_notifier
from jobboard.utils import metrics
from jobboard.utils.logger import get_logger

logger = get_logger("events")


@dataclass(frozen=True)
class ApplicationStatusChanged:
    application_id: int
    recipient: Optional[str]
    job_title: str
    status: str


@dataclass(frozen=True)
class InterviewScheduled:
    interview_id: int
    recipient: Optional[str]
    scheduled_time: datetime
    duration: int
    meeting_type: str
    location: Optional[str] = None
    join_url: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MessageReceived:
    message_id: int
    recipient: Optional[str]
    sender_name: str
    job_title: str


class NotificationDispatcher:

    def __init__(self, notifier: Notifier, brand: str):
        self.notifier = notifier
        self.brand = brand

    def render(self, event) -> tuple:
        """Return (subject, html) for an event."""
        if isinstance(event, ApplicationStatusChanged):
            return (
                f"Application Status Update - {self.brand}",
                email_templates.application_status_update(event.job_title, event.status, self.brand),
            )
        if isinstance(event, InterviewScheduled):
            return (
                f"Interview Scheduled - {self.brand}",
                email_templates.interview_scheduled(
                    event.scheduled_time, event.duration, event.meeting_type, self.brand,
                    location=event.location, join_url=event.join_url, notes=event.notes,
                ),
            )
        if isinstance(event, MessageReceived):
            return (
                f"New Message Received - {self.brand}",
                email_templates.new_message(event.sender_name, event.job_title, self.brand),
            )
        raise TypeError(f"No email template for {type(event).__name__}")

    async def dispatch(self, events: Iterable) -> int:
        """Deliver every event; returns how many emails went out."""
        sent = 0
        for event in events:
            if await self._deliver(event):
                sent += 1
        return sent

    async def _deliver(self, event) -> bool:
        event_name = type(event).__name__
        if not event.recipient:
            logger.warning("notification.skipped", extra={"event": event_name, "error": "no recipient"})
            metrics.inc("notifications.skipped")
            return False
        try:
            subject, html = self.render(event)
            delivered = await self.notifier.send_email(event.recipient, subject, html)
        except Exception as exc:
            logger.error(
                "notification.failed",
                extra={"event": event_name, "error": str(exc)[:500], "error_type": type(exc).__name__},
                exc_info=True,
            )
            metrics.inc("notifications.failed")
            return False

        if delivered:
            metrics.inc("notifications.sent")
        else:
            logger.warning("notification.undelivered", extra={"event": event_name})
            metrics.inc("notifications.failed")
        return delivered


def get_dispatcher(notifier: Notifier = Depends(get_notifier)) -> NotificationDispatcher:
    return NotificationDispatcher(notifier, get_settings().brand_name)
