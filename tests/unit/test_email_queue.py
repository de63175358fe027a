from dailybread.db.repositories import email_queue as queue_repo
from dailybread.services.email_queue import process_queue
from dailybread.services.mailer import MailError


def _recording_send(fail_for=()):
    calls = []

    def send(to_email, subject, template, context):
        calls.append((to_email, subject, template))
        if to_email in fail_for:
            raise MailError("provider rejected recipient")
        return {"success": True}

    send.calls = calls
    return send


def test_process_queue_sends_pending(db):
    queue_repo.enqueue_email(db, email_type="welcome", recipient_email="a@example.com", template_data={"first_name": "A"})
    queue_repo.enqueue_email(
        db,
        email_type="plan_invite",
        recipient_email="b@example.com",
        template_data={"inviter_name": "Naomi", "plan_title": "Psalms", "join_url": "http://x/join/t"},
    )
    send = _recording_send()

    out = process_queue(db, delay_seconds=0, send=send)

    assert out["processed"] == 2
    assert out["sent"] == 2
    assert out["failed"] == 0
    assert {r["status"] for r in out["results"]} == {"sent"}
    assert {c[2] for c in send.calls} == {"welcome", "plan_invite"}
    assert queue_repo.queue_stats(db) == {"pending": 0, "sent": 2, "failed": 0}


def test_process_queue_records_failures(db):
    entry = queue_repo.enqueue_email(db, email_type="welcome", recipient_email="bad@example.com")
    send = _recording_send(fail_for={"bad@example.com"})

    out = process_queue(db, delay_seconds=0, send=send)

    assert out["failed"] == 1
    assert out["results"][0]["error"] == "provider rejected recipient"
    db.refresh(entry)
    assert entry.sent is False
    assert entry.attempts == 1
    assert entry.last_error == "provider rejected recipient"


def test_entries_stop_retrying_after_max_attempts(db):
    queue_repo.enqueue_email(db, email_type="welcome", recipient_email="bad@example.com")
    send = _recording_send(fail_for={"bad@example.com"})

    for _ in range(queue_repo.MAX_ATTEMPTS):
        process_queue(db, delay_seconds=0, send=send)
    out = process_queue(db, delay_seconds=0, send=send)

    assert out["processed"] == 0
    assert len(send.calls) == queue_repo.MAX_ATTEMPTS
    assert queue_repo.queue_stats(db) == {"pending": 0, "sent": 0, "failed": 1}


def test_unknown_type_fails_without_sending(db):
    queue_repo.enqueue_email(db, email_type="digest", recipient_email="a@example.com")
    send = _recording_send()

    out = process_queue(db, delay_seconds=0, send=send)

    assert out["failed"] == 1
    assert "Unknown email type" in out["results"][0]["error"]
    assert send.calls == []


def test_batch_limit(db):
    for i in range(3):
        queue_repo.enqueue_email(db, email_type="welcome", recipient_email=f"u{i}@example.com")

    out = process_queue(db, limit=2, delay_seconds=0, send=_recording_send())

    assert out["processed"] == 2
    assert queue_repo.queue_stats(db)["pending"] == 1


def test_unconfigured_provider_marks_row_failed(db):
    queue_repo.enqueue_email(db, email_type="welcome", recipient_email="a@example.com")

    out = process_queue(db, delay_seconds=0)

    assert out["failed"] == 1
    assert out["results"][0]["error"] == "Email service not configured"
