"""
Email queue repository functions.

Rows are retried until sent or ``MAX_ATTEMPTS`` failures are recorded.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import now_utc

MAX_ATTEMPTS = 3
EMAIL_TYPES = ("welcome", "plan_invite", "lesson_reminder")


def enqueue_email(
    db: Session,
    *,
    email_type: str,
    recipient_email: str,
    template_data: Optional[Dict[str, Any]] = None,
    recipient_user_id: Optional[uuid.UUID] = None,
    commit: bool = True,
) -> models.EmailQueueEntry:
    entry = models.EmailQueueEntry(
        email_type=email_type,
        recipient_email=recipient_email,
        recipient_user_id=recipient_user_id,
        template_data=dict(template_data or {}),
        sent=False,
        attempts=0,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    else:
        db.flush()
    return entry


def fetch_pending(db: Session, limit: int = 10) -> List[models.EmailQueueEntry]:
    return (
        db.query(models.EmailQueueEntry)
        .filter(
            models.EmailQueueEntry.sent.is_(False),
            models.EmailQueueEntry.attempts < MAX_ATTEMPTS,
        )
        .order_by(models.EmailQueueEntry.created_at.asc())
        .limit(limit)
        .all()
    )


def mark_sent(db: Session, entry: models.EmailQueueEntry) -> None:
    entry.sent = True
    entry.sent_at = now_utc()
    entry.last_error = None
    db.commit()


def mark_failed(db: Session, entry: models.EmailQueueEntry, error: str) -> None:
    entry.attempts = (entry.attempts or 0) + 1
    entry.last_error = error[:2000]
    db.commit()


def queue_stats(db: Session) -> Dict[str, int]:
    def _count(*criteria) -> int:
        return db.query(func.count(models.EmailQueueEntry.id)).filter(*criteria).scalar() or 0

    return {
        "pending": _count(
            models.EmailQueueEntry.sent.is_(False),
            models.EmailQueueEntry.attempts < MAX_ATTEMPTS,
        ),
        "sent": _count(models.EmailQueueEntry.sent.is_(True)),
        "failed": _count(
            models.EmailQueueEntry.sent.is_(False),
            models.EmailQueueEntry.attempts >= MAX_ATTEMPTS,
        ),
    }
