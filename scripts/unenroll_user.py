"""Deactivate a user's enrollment in a plan."""
import argparse
import logging
import sys
import uuid

from dailybread.db.database import SessionLocal
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import users as users_repo

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True)
    parser.add_argument("--plan-id", required=True, type=uuid.UUID)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = users_repo.get_user_by_email(db, args.email)
        if user is None:
            logger.error("User not found: %s", args.email)
            return 1
        enrollment = plans_repo.get_enrollment(db, user.id, args.plan_id)
        if enrollment is None or not enrollment.is_active:
            logger.error("No active enrollment for %s in plan %s", user.email, args.plan_id)
            return 1
        plans_repo.deactivate_enrollment(db, enrollment)
        print(f"Unenrolled {user.email} from plan {args.plan_id}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
