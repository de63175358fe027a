"""
Email queue processing.

Invoked by the cron endpoint: drains a batch of pending rows, sends each
one and records the outcome on the row.
"""

import logging
import os
import time
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from dailybread.db.repositories import email_queue as queue_repo
from dailybread.services import mailer

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
DEFAULT_SEND_DELAY_SECONDS = 0.5


def _send_delay() -> float:
    raw = os.getenv("EMAIL_QUEUE_SEND_DELAY_SECONDS")
    if raw is None or raw.strip() == "":
        return DEFAULT_SEND_DELAY_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        return DEFAULT_SEND_DELAY_SECONDS


def process_queue(
    db: Session,
    *,
    limit: int = BATCH_SIZE,
    delay_seconds: Optional[float] = None,
    send: Optional[Callable[..., Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Send up to ``limit`` pending emails, oldest first."""
    send = send or mailer.send_templated
    delay = _send_delay() if delay_seconds is None else delay_seconds
    entries = queue_repo.fetch_pending(db, limit=limit)

    results: List[Dict[str, Any]] = []
    sent = failed = 0
    for position, entry in enumerate(entries):
        if position and delay:
            time.sleep(delay)
        try:
            subject, template, context = mailer.compose_queued_email(entry.email_type, entry.template_data)
            send(entry.recipient_email, subject, template, context)
        except mailer.MailError as exc:
            queue_repo.mark_failed(db, entry, str(exc))
            failed += 1
            logger.error("email_send_failed: id=%s type=%s error=%s", entry.id, entry.email_type, exc)
            results.append({"id": str(entry.id), "type": entry.email_type, "status": "failed", "error": str(exc)})
            continue
        queue_repo.mark_sent(db, entry)
        sent += 1
        results.append({"id": str(entry.id), "type": entry.email_type, "status": "sent"})

    logger.info("email_queue_processed: processed=%d sent=%d failed=%d", len(entries), sent, failed)
    return {"processed": len(entries), "sent": sent, "failed": failed, "results": results}
