"""
Report plan items that have no lesson mapping.

With --fix, unmapped items are linked to an existing lesson whose canonical
passage matches the item's primary reference (dash style, whitespace and
case are ignored).
"""
import argparse
import logging
import sys
import uuid

from dailybread.db.database import SessionLocal
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo

logger = logging.getLogger(__name__)


def check_plan(db, plan_id: uuid.UUID, fix: bool = False) -> dict:
    items = plans_repo.list_plan_items(db, plan_id)
    mapped = lessons_repo.mapped_item_ids(db, [i.id for i in items])
    missing = [i for i in items if i.id not in mapped]
    fixed = 0
    for item in missing:
        print(f"  unmapped: #{item.index} {item.primary_reference} ({item.id}) status={item.status}")
        if not fix:
            continue
        lesson = lessons_repo.find_lesson_by_normalized_reference(db, item.primary_reference or "", item.translation)
        if lesson is None:
            print("    no matching lesson")
            continue
        lessons_repo.map_item_to_lesson(db, item, lesson)
        fixed += 1
        print(f"    mapped to {lesson.passage_canonical} ({lesson.share_slug})")
    return {"total": len(items), "unmapped": len(missing), "fixed": fixed}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Report plan items without lesson mappings")
    parser.add_argument("--plan-id", required=True, type=uuid.UUID)
    parser.add_argument("--fix", action="store_true", help="map items to existing lessons by reference")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        plan = plans_repo.get_plan(db, args.plan_id)
        if plan is None:
            logger.error("Plan not found: %s", args.plan_id)
            return 1
        print(f"Checking {plan.title} ({plan.id})")
        summary = check_plan(db, plan.id, fix=args.fix)
        print(f"{summary['unmapped']} of {summary['total']} items unmapped, {summary['fixed']} fixed")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
