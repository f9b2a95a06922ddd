"""
Best-effort email delivery.

send_email() never raises: transport failures are logged and reported as
False. There is no retry and no queue, so every message is delivered at
most once. Each transport bounds its network call with
settings.email_timeout_seconds so a slow provider cannot stall a request.
"""
import asyncio
import smtplib
from email.message import EmailMessage
from functools import lru_cache

import httpx

from jobboard.config import Settings, get_settings
from jobboard.errors import NotificationError
from jobboard.utils import metrics
from jobboard.utils.logger import get_logger

logger = get_logger("notifier")


def mask_email(address: str) -> str:
    """Keep the first character and the domain: casey@mail.test -> c***@mail.test."""
    local, at, domain = (address or "").partition("@")
    if not at:
        return "***"
    return f"{local[:1]}***@{domain}"


class Notifier:
    name = "base"

    def __init__(self, sender: str, timeout: float = 5.0):
        self.sender = sender
        self.timeout = timeout

    async def deliver(self, to: str, subject: str, html: str) -> None:
        raise NotImplementedError

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        try:
            async with metrics.track_duration("email", self.name):
                await self.deliver(to, subject, html)
        except Exception as exc:
            logger.error(
                "email.failed",
                extra={"transport": self.name, "recipient": mask_email(to), "error": str(exc)[:500],
                       "error_type": type(exc).__name__},
            )
            return False
        logger.info("email.sent", extra={"transport": self.name, "recipient": mask_email(to)})
        return True


class HttpApiNotifier(Notifier):
    """Transactional mail provider reached over a JSON HTTP API."""
    name = "http"

    def __init__(self, api_url: str, api_key: str, sender: str, timeout: float = 5.0,
                 transport: httpx.AsyncBaseTransport = None):
        super().__init__(sender, timeout)
        self.api_url = api_url
        self.api_key = api_key
        self.transport = transport

    async def deliver(self, to: str, subject: str, html: str) -> None:
        payload = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.api_url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationError(f"Mail API request failed: {exc}") from exc


class SmtpNotifier(Notifier):
    name = "smtp"

    def __init__(self, host: str, port: int, username: str, password: str,
                 sender: str, timeout: float = 5.0):
        super().__init__(sender, timeout)
        self.host = host
        self.port = port
        self.username = username
        self.password = password

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def deliver(self, to: str, subject: str, html: str) -> None:
        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"SMTP delivery failed: {exc}") from exc


class LogNotifier(Notifier):
    """Used when no delivery is configured (local development)."""
    name = "log"

    async def deliver(self, to: str, subject: str, html: str) -> None:
        logger.info(f"[email disabled] to={mask_email(to)} subject={subject!r}")


def build_notifier(settings: Settings) -> Notifier:
    timeout = settings.email_timeout_seconds
    if settings.email_api_url:
        return HttpApiNotifier(settings.email_api_url, settings.email_api_key,
                               settings.email_from, timeout)
    if settings.smtp_host:
        return SmtpNotifier(settings.smtp_host, settings.smtp_port, settings.smtp_user,
                            settings.smtp_password, settings.email_from, timeout)
    logger.warning("No email transport configured; notifications are only logged")
    return LogNotifier(settings.email_from, timeout)


@lru_cache()
def get_notifier() -> Notifier:
    """FastAPI dependency; tests override it with a recording notifier."""
    return build_notifier(get_settings())
