"""
List a user's plans with published/total item counts.

Usage: python scripts/list_plans.py --email someone@example.com
"""
import argparse
import logging
import sys

from dailybread.db.database import SessionLocal
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import users as users_repo

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--email", required=True)
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = users_repo.get_user_by_email(db, args.email)
        if user is None:
            logger.error("User not found: %s", args.email)
            return 1
        owned = plans_repo.list_owned_plans(db, user.id)
        enrolled = [plan for plan, _enrollment in plans_repo.list_enrolled_plans(db, user.id)]
        counts = plans_repo.item_counts(db, [p.id for p in owned + enrolled])

        print(f"Plans for {user.email} ({user.id})")
        for role, plans in (("owner", owned), ("participant", enrolled)):
            for plan in plans:
                c = counts.get(plan.id, {"total": 0, "published": 0})
                print(f"  [{role}] {plan.title} ({plan.id}): {c['published']}/{c['total']} published, mode={plan.schedule_mode}")
        if not owned and not enrolled:
            print("  (no plans)")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
