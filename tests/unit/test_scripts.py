from datetime import timedelta

from dailybread.db.repositories import email_queue as queue_repo
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.utils.schedule import today_utc
from scripts.check_mappings import check_plan
from scripts.send_reminders import queue_reminders


def test_queue_reminders_for_overdue_users(db, make_user, make_plan, lesson_builder):
    behind = make_user("behind@example.com", first_name="Ruth")
    make_user("idle@example.com")
    today = today_utc()
    plan = make_plan(behind, ("John 1:1-5", "John 1:6-8"), start=today - timedelta(days=2))
    for item in plans_repo.list_plan_items(db, plan.id):
        lesson_builder.build_for_item(db, item)

    assert queue_reminders(db, today=today, dry_run=True) == 1
    assert queue_repo.fetch_pending(db) == []

    assert queue_reminders(db, today=today) == 1
    (entry,) = queue_repo.fetch_pending(db)
    assert entry.email_type == "lesson_reminder"
    assert entry.recipient_email == "behind@example.com"
    assert entry.template_data["first_name"] == "Ruth"
    assert entry.template_data["overdue_count"] == 2
    assert entry.template_data["lessons"][0]["url"].startswith("http://localhost:3000/lesson/")


def test_check_plan_maps_items_by_reference(db, make_user, make_plan, lesson_builder):
    owner = make_user()
    source = make_plan(owner, ("Psalm 23",))
    lesson = lesson_builder.build_for_item(db, plans_repo.list_plan_items(db, source.id)[0]).lesson
    target = make_plan(owner, ("psalm  23", "Psalm 24"), title="Psalms again")

    assert check_plan(db, target.id) == {"total": 2, "unmapped": 2, "fixed": 0}
    assert check_plan(db, target.id, fix=True) == {"total": 2, "unmapped": 2, "fixed": 1}

    first = plans_repo.list_plan_items(db, target.id)[0]
    assert lessons_repo.get_mapping_for_item(db, first.id).lesson_id == lesson.id
    assert check_plan(db, target.id) == {"total": 2, "unmapped": 1, "fixed": 0}
