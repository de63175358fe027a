"""
Email composition.

Maps each email kind to a subject line and a Jinja2 template, and delivers
through the transactional email service.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from dailybread.services.transactional_email_service import (
    TransactionalEmailService,
    get_transactional_email_service,
)
from dailybread.utils import urls

logger = logging.getLogger(__name__)

TEMPLATE_WELCOME = "welcome"
TEMPLATE_PLAN_INVITE = "plan_invite"
TEMPLATE_LESSON_REMINDER = "lesson_reminder"
TEMPLATE_VERIFY_EMAIL = "verify_email"
TEMPLATE_PASSWORD_RESET = "password_reset"

WELCOME_SUBJECT = "Welcome to My Daily Bread - Your Spiritual Journey Begins"
VERIFY_EMAIL_SUBJECT = "Verify Your Email - My Daily Bread"
PASSWORD_RESET_SUBJECT = "Reset Your Password - My Daily Bread"


class MailError(Exception):
    pass


def invite_subject(inviter_name: str, plan_title: str) -> str:
    return f'{inviter_name} invited you to join "{plan_title}"'


def reminder_subject(overdue_count: int) -> str:
    noun = "lesson" if overdue_count == 1 else "lessons"
    return f"{overdue_count} overdue {noun} waiting for you"


def compose_queued_email(email_type: str, data: Dict[str, Any]) -> Tuple[str, str, Dict[str, Any]]:
    """Return (subject, template, context) for a queued email row."""
    data = dict(data or {})
    data.setdefault("app_url", urls.get_app_base_url())
    data.setdefault("dashboard_url", urls.build_dashboard_link())

    if email_type == TEMPLATE_WELCOME:
        return WELCOME_SUBJECT, TEMPLATE_WELCOME, data
    if email_type == TEMPLATE_PLAN_INVITE:
        inviter = data.get("inviter_name") or "A friend"
        plan_title = data.get("plan_title") or "a reading plan"
        data.update(inviter_name=inviter, plan_title=plan_title)
        return invite_subject(inviter, plan_title), TEMPLATE_PLAN_INVITE, data
    if email_type == TEMPLATE_LESSON_REMINDER:
        lessons = list(data.get("lessons") or [])
        count = int(data.get("overdue_count") or len(lessons))
        if count < 1:
            raise MailError("Reminder email has no overdue lessons")
        data.update(lessons=lessons, overdue_count=count)
        return reminder_subject(count), TEMPLATE_LESSON_REMINDER, data
    raise MailError(f"Unknown email type: {email_type}")


def send_templated(
    to_email: str,
    subject: str,
    template: str,
    context: Dict[str, Any],
    *,
    service: Optional[TransactionalEmailService] = None,
) -> Dict[str, Any]:
    """Render ``template`` and deliver it; raise ``MailError`` if delivery fails."""
    service = service or get_transactional_email_service()
    try:
        html_content, text_content = service.render_template(template, context)
    except Exception as exc:
        raise MailError(f"Template rendering failed for {template}: {exc}") from exc

    result = asyncio.run(service.send_email(
        to_email=to_email,
        subject=subject,
        html_content=html_content,
        text_content=text_content,
    ))
    if not result.get("success"):
        raise MailError(result.get("error") or "Unknown error")
    return result


def send_verification_email(to_email: str, first_name: Optional[str], token: str) -> Dict[str, Any]:
    return send_templated(
        to_email,
        VERIFY_EMAIL_SUBJECT,
        TEMPLATE_VERIFY_EMAIL,
        {"first_name": first_name, "verify_url": urls.build_verify_email_link(token)},
    )


def send_password_reset_email(to_email: str, first_name: Optional[str], token: str) -> Dict[str, Any]:
    return send_templated(
        to_email,
        PASSWORD_RESET_SUBJECT,
        TEMPLATE_PASSWORD_RESET,
        {"first_name": first_name, "reset_url": urls.build_password_reset_link(token)},
    )
