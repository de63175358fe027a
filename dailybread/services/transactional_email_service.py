"""
Transactional Email Service

Delivers rendered emails through a hosted provider:
- Resend (default)
- SendGrid

Templates are Jinja2 files under ``dailybread/templates/email``; each
``<name>.html`` may have a ``<name>.txt`` companion.
"""

import os
import re
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

import resend
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, From, To, Subject, HtmlContent, PlainTextContent

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class EmailProvider(Enum):
    """Supported email service providers."""
    RESEND = "resend"
    SENDGRID = "sendgrid"


class TransactionalEmailConfig:
    """Configuration for transactional email services."""

    def __init__(self):
        self.provider = EmailProvider(os.getenv('EMAIL_PROVIDER', 'resend').lower())

        self.from_email = os.getenv('FROM_EMAIL', 'noreply@mydailybread.faith')
        self.from_name = os.getenv('FROM_NAME', 'My Daily Bread')
        self.reply_to_email = os.getenv('REPLY_TO_EMAIL', '')

        self.resend_api_key = os.getenv('RESEND_API_KEY', '')
        self.sendgrid_api_key = os.getenv('SENDGRID_API_KEY', '')

        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR', str(DEFAULT_TEMPLATE_DIR))

    def is_configured(self) -> bool:
        """Check if the selected provider is properly configured."""
        if self.provider == EmailProvider.RESEND:
            return bool(self.resend_api_key and self.from_email)
        if self.provider == EmailProvider.SENDGRID:
            return bool(self.sendgrid_api_key and self.from_email)
        return False

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.from_email:
            errors.append("FROM_EMAIL is required")
        if self.provider == EmailProvider.RESEND and not self.resend_api_key:
            errors.append("RESEND_API_KEY is required for Resend provider")
        if self.provider == EmailProvider.SENDGRID and not self.sendgrid_api_key:
            errors.append("SENDGRID_API_KEY is required for SendGrid provider")
        return errors

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>"


class ResendEmailService:
    """Email service implementation for Resend."""

    def __init__(self, config: TransactionalEmailConfig):
        self.config = config
        resend.api_key = config.resend_api_key

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "from": self.config.sender,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content
        if self.config.reply_to_email:
            params["reply_to"] = self.config.reply_to_email

        try:
            result = resend.Emails.send(params)
        except Exception as e:
            return {'success': False, 'provider': 'resend', 'error': str(e)}
        return {
            'success': True,
            'provider': 'resend',
            'message_id': result.get('id', '') if isinstance(result, dict) else '',
        }


class SendGridEmailService:
    """Email service implementation for SendGrid."""

    def __init__(self, config: TransactionalEmailConfig):
        self.config = config
        self.client = SendGridAPIClient(api_key=config.sendgrid_api_key)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> Dict[str, Any]:
        mail = Mail(
            from_email=From(self.config.from_email, self.config.from_name),
            to_emails=To(to_email),
            subject=Subject(subject),
            html_content=HtmlContent(html_content),
        )
        if text_content:
            mail.plain_text_content = PlainTextContent(text_content)
        if self.config.reply_to_email:
            mail.reply_to = self.config.reply_to_email

        try:
            response = self.client.send(mail)
        except Exception as e:
            return {'success': False, 'provider': 'sendgrid', 'error': str(e)}
        return {
            'success': True,
            'provider': 'sendgrid',
            'message_id': response.headers.get('X-Message-Id', ''),
            'status_code': response.status_code,
        }


class TransactionalEmailService:
    """Delegates delivery to the configured provider and renders templates."""

    def __init__(self, config: Optional[TransactionalEmailConfig] = None):
        self.config = config or TransactionalEmailConfig()
        self.provider_service = None
        self._setup_provider()
        self.template_env = Environment(
            loader=FileSystemLoader(self.config.template_dir),
            autoescape=select_autoescape(['html']),
        )

    def _setup_provider(self):
        if not self.config.is_configured():
            logger.warning("Email service not configured (provider=%s)", self.config.provider.value)
            return
        if self.config.provider == EmailProvider.RESEND:
            self.provider_service = ResendEmailService(self.config)
        else:
            self.provider_service = SendGridEmailService(self.config)
        logger.info("Initialized %s email service", self.config.provider.value)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send an email via the configured provider.

        Returns:
            Dict with 'success', 'provider', 'message_id' or 'error' keys
        """
        if not self.provider_service:
            return {
                'success': False,
                'error': 'Email service not configured',
            }

        logger.info("Sending email to %s via %s", to_email, self.config.provider.value)
        result = await self.provider_service.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
        )
        if result['success']:
            logger.info("Email sent to %s via %s", to_email, result['provider'])
        else:
            logger.error("Email sending failed: %s", result['error'])
        return result

    def render_template(self, template_name: str, context: Dict[str, Any]) -> Tuple[str, str]:
        """
        Render email template with context.

        Returns:
            Tuple of (html_content, text_content)
        """
        html_content = self.template_env.get_template(f"{template_name}.html").render(**context)
        try:
            text_content = self.template_env.get_template(f"{template_name}.txt").render(**context)
        except TemplateNotFound:
            text_content = html_to_text(html_content)
        return html_content, text_content


def html_to_text(html_content: str) -> str:
    """Convert HTML to basic text content."""
    text = re.sub(r'<[^>]+>', '', html_content)
    text = text.replace('&amp;', '&').replace('&lt;', '<').replace('&gt;', '>')
    text = text.replace('&quot;', '"').replace('&#39;', "'")
    return re.sub(r'\s+', ' ', text).strip()


_email_service: Optional[TransactionalEmailService] = None


def get_transactional_email_service() -> TransactionalEmailService:
    """Get singleton transactional email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = TransactionalEmailService()
    return _email_service


def reset_transactional_email_service_for_tests() -> None:
    global _email_service
    _email_service = None
