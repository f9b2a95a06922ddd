"""HTML bodies for outbound notification emails."""
from datetime import datetime
from html import escape
from typing import Optional

_WRAPPER = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>{heading}</h2>
{body}
</div>
"""

_SIGNATURE = """    <div style="margin-top: 20px; padding: 10px; background-color: #f5f5f5;">
        <p style="margin: 0;">Best regards,</p>
        <p style="margin: 5px 0;">The {brand} Team</p>
    </div>"""


def _render(heading: str, lines: list, brand: str, signed: bool = True) -> str:
    body = "\n".join(f"    {line}" for line in lines)
    if signed:
        body += "\n" + _SIGNATURE.format(brand=escape(brand))
    return _WRAPPER.format(heading=escape(heading), body=body)


def format_interview_time(value: datetime) -> str:
    return value.strftime("%A, %B %d, %Y at %I:%M %p UTC")


def application_status_update(job_title: str, status: str, brand: str) -> str:
    return _render("Application Status Update", [
        f"<p>The status of your application for {escape(job_title)} has been updated to: "
        f"<strong>{escape(status)}</strong></p>",
        "<p>Login to your account to view more details about your application.</p>",
    ], brand)


def interview_scheduled(
    scheduled_time: datetime,
    duration: int,
    meeting_type: str,
    brand: str,
    location: Optional[str] = None,
    join_url: Optional[str] = None,
    notes: Optional[str] = None,
) -> str:
    lines = [
        f"<p>Your interview has been scheduled for {escape(format_interview_time(scheduled_time))}</p>",
        f"<p><strong>Duration:</strong> {duration} minutes</p>",
        f"<p><strong>Type:</strong> {escape(meeting_type)}</p>",
    ]
    if location:
        lines.append(f"<p><strong>Location:</strong> {escape(location)}</p>")
    if join_url:
        url = escape(join_url, quote=True)
        lines.append(f'<p><strong>Meeting Link:</strong> <a href="{url}">{url}</a></p>')
    if notes:
        lines.append(f"<p><strong>Notes:</strong> {escape(notes)}</p>")
    return _render("Interview Scheduled", lines, brand, signed=False)


def new_message(sender_name: str, job_title: str, brand: str) -> str:
    return _render("New Message Received", [
        f"<p>You have received a new message from {escape(sender_name)} "
        f"regarding the application for {escape(job_title)}.</p>",
        "<p>Login to your account to view and respond to the message.</p>",
    ], brand)


def password_reset(code: str, ttl_minutes: int, brand: str) -> str:
    return _render("Password Reset Request", [
        f"<p>Your OTP for password reset is: <strong>{escape(code)}</strong></p>",
        f"<p>This OTP will expire in {ttl_minutes} minutes.</p>",
        "<p>If you didn't request this, please ignore this email.</p>",
    ], brand)
