"""
Import a plan document (JSON) for an existing user.

The document has the same shape as ``POST /plans/import``.
"""
import argparse
import json
import logging
import sys

from dailybread.db.database import SessionLocal
from dailybread.db.repositories import users as users_repo
from dailybread.services.plan_importer import PlanImportError, import_plan

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a reading plan for a user")
    parser.add_argument("--email", required=True)
    parser.add_argument("--file", required=True, help="path to plan.json")
    args = parser.parse_args(argv)

    try:
        with open(args.file, encoding="utf-8") as fh:
            document = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read %s: %s", args.file, exc)
        return 1

    db = SessionLocal()
    try:
        user = users_repo.get_user_by_email(db, args.email)
        if user is None:
            logger.error("User not found: %s", args.email)
            return 1
        try:
            plan = import_plan(db, user_id=user.id, document=document)
        except PlanImportError as exc:
            db.rollback()
            logger.error("Import failed: %s", exc)
            return 1
        print(f"Imported '{plan.title}' ({plan.id}) with {len(plan.items)} items")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
