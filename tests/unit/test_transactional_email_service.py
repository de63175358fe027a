import pytest

from dailybread.services import transactional_email_service as tes
from dailybread.services.transactional_email_service import (
    EmailProvider,
    TransactionalEmailConfig,
    TransactionalEmailService,
    html_to_text,
)


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for k in ["EMAIL_PROVIDER", "FROM_EMAIL", "FROM_NAME", "RESEND_API_KEY", "SENDGRID_API_KEY", "REPLY_TO_EMAIL", "EMAIL_TEMPLATE_DIR"]:
        monkeypatch.delenv(k, raising=False)


def test_config_defaults():
    config = TransactionalEmailConfig()
    assert config.provider == EmailProvider.RESEND
    assert config.sender == "My Daily Bread <noreply@mydailybread.faith>"
    assert config.is_configured() is False
    assert config.validate() == ["RESEND_API_KEY is required for Resend provider"]


def test_sendgrid_validation(monkeypatch):
    monkeypatch.setenv("EMAIL_PROVIDER", "sendgrid")
    assert TransactionalEmailConfig().validate() == ["SENDGRID_API_KEY is required for SendGrid provider"]


@pytest.mark.asyncio
async def test_unconfigured_service_reports_failure():
    out = await TransactionalEmailService().send_email("u@example.com", "Subject", "<p>Hi</p>")
    assert out == {"success": False, "error": "Email service not configured"}


@pytest.mark.asyncio
async def test_resend_provider_success(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "rk")
    sent = {}

    def fake_send(params):
        sent.update(params)
        return {"id": "msg-1"}

    monkeypatch.setattr(tes.resend.Emails, "send", fake_send)
    out = await TransactionalEmailService().send_email("u@example.com", "Subject", "<b>Hi</b>", "Hi")
    assert out == {"success": True, "provider": "resend", "message_id": "msg-1"}
    assert sent["to"] == ["u@example.com"]
    assert sent["from"] == "My Daily Bread <noreply@mydailybread.faith>"
    assert sent["text"] == "Hi"


@pytest.mark.asyncio
async def test_resend_provider_failure(monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "rk")

    def fake_send(params):
        raise RuntimeError("domain not verified")

    monkeypatch.setattr(tes.resend.Emails, "send", fake_send)
    out = await TransactionalEmailService().send_email("u@example.com", "Subject", "<b>Hi</b>")
    assert out["success"] is False
    assert out["error"] == "domain not verified"


@pytest.mark.asyncio
async def test_sendgrid_provider_success(monkeypatch):
    monkeypatch.setenv("EMAIL_PROVIDER", "sendgrid")
    monkeypatch.setenv("SENDGRID_API_KEY", "sk")

    class _Client:
        def __init__(self, api_key=None):
            self.api_key = api_key

        def send(self, mail):
            class Resp:
                status_code = 202
                headers = {"X-Message-Id": "sg-123"}
            return Resp()

    monkeypatch.setattr(tes, "SendGridAPIClient", _Client)
    out = await TransactionalEmailService().send_email("u@example.com", "Subject", "<b>Hi</b>", "Hi")
    assert out == {"success": True, "provider": "sendgrid", "message_id": "sg-123", "status_code": 202}


def test_render_welcome_template():
    html, text = TransactionalEmailService().render_template(
        "welcome", {"first_name": "Ruth", "dashboard_url": "http://localhost:3000/dashboard"}
    )
    assert "Hi Ruth," in html
    assert "href=\"http://localhost:3000/dashboard\"" in html
    assert text.startswith("Hi Ruth,")
    assert "Open your dashboard: http://localhost:3000/dashboard" in text


def test_render_template_falls_back_to_html_to_text():
    html, text = TransactionalEmailService().render_template(
        "lesson_reminder",
        {
            "first_name": "Ruth",
            "overdue_count": 1,
            "lessons": [{"reference": "John 1", "plan_title": "Gospels", "url": "http://x/lesson/a"}],
            "dashboard_url": "http://x/dashboard",
        },
    )
    assert "<a href=\"http://x/lesson/a\">John 1</a>" in html
    assert "<" not in text
    assert "John 1 (Gospels)" in text


def test_html_to_text():
    assert html_to_text("<p>Faith &amp; hope</p>\n<p>&lt;love&gt;</p>") == "Faith & hope <love>"
