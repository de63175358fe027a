"""
Queue ``lesson_reminder`` emails for users with overdue published lessons.

Run from cron before ``POST /emails/process-queue``; --dry-run prints what
would be queued without writing anything.
"""
import argparse
import logging
import sys

from dailybread.db import models
from dailybread.db.database import SessionLocal
from dailybread.db.repositories import email_queue as queue_repo
from dailybread.services import progress_tracker
from dailybread.services.mailer import TEMPLATE_LESSON_REMINDER
from dailybread.utils import urls
from dailybread.utils.schedule import today_utc

logger = logging.getLogger(__name__)

MAX_LESSONS_PER_EMAIL = 5


def reminder_data(user: models.User, overdue) -> dict:
    return {
        "first_name": user.first_name or user.display_name,
        "overdue_count": len(overdue),
        "lessons": [
            {
                "reference": s.item.primary_reference,
                "plan_title": s.plan.title,
                "url": urls.build_lesson_link(s.lesson.share_slug),
            }
            for s in overdue[:MAX_LESSONS_PER_EMAIL]
        ],
    }


def queue_reminders(db, *, today=None, dry_run: bool = False) -> int:
    today = today or today_utc()
    queued = 0
    for user in db.query(models.User).order_by(models.User.created_at.asc()).all():
        overdue = progress_tracker.overdue_items(db, user.id, today)
        if not overdue:
            continue
        data = reminder_data(user, overdue)
        if dry_run:
            print(f"  would remind {user.email}: {len(overdue)} overdue")
        else:
            queue_repo.enqueue_email(
                db,
                email_type=TEMPLATE_LESSON_REMINDER,
                recipient_email=user.email,
                recipient_user_id=user.id,
                template_data=data,
                commit=False,
            )
        queued += 1
    if not dry_run:
        db.commit()
    return queued


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Queue overdue lesson reminders")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        queued = queue_reminders(db, dry_run=args.dry_run)
        logger.info("reminders_queued: count=%d dry_run=%s", queued, args.dry_run)
        print(f"{'Would queue' if args.dry_run else 'Queued'} {queued} reminder(s)")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
