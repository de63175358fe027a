"""
Delete lessons whose canonical passage matches --passage.

Mappings and progress rows for those lessons are removed and the affected
plan items go back to ``pending`` so they can be rebuilt.
"""
import argparse
import logging
import sys

from dailybread.db.database import SessionLocal
from dailybread.db.repositories import lessons as lessons_repo

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete lessons for a passage")
    parser.add_argument("--passage", required=True, help="substring of the canonical passage, e.g. 'John 3'")
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        lessons = lessons_repo.find_lessons_by_passage(db, args.passage)
        if not lessons:
            print(f"No lessons match '{args.passage}'")
            return 0
        for lesson in lessons:
            print(f"  {lesson.passage_canonical} [{lesson.translation}] {lesson.id} slug={lesson.share_slug}")
        if not args.yes:
            answer = input(f"Delete {len(lessons)} lesson(s)? [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                print("Aborted")
                return 1
        deleted = lessons_repo.delete_lessons(db, lessons)
        logger.info("lessons_deleted: passage=%s count=%d", args.passage, deleted)
        print(f"Deleted {deleted} lesson(s)")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
