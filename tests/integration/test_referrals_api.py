from datetime import timedelta

from dailybread.db.models import now_utc
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import progress as progress_repo


def test_referral_stats(client, auth_headers, db, make_user, make_plan, lesson_builder):
    referrer = make_user("naomi@example.com")
    active = make_user("ruth@example.com", referred_by_user_id=referrer.id)
    make_user("orpah@example.com", referred_by_user_id=referrer.id)
    lapsed = make_user("boaz@example.com", referred_by_user_id=referrer.id)

    plan = make_plan(referrer)
    lesson = lesson_builder.build_for_item(db, plans_repo.list_plan_items(db, plan.id)[0]).lesson
    progress_repo.upsert_progress(db, user_id=active.id, lesson_id=lesson.id)
    progress_repo.upsert_progress(db, user_id=lapsed.id, lesson_id=lesson.id, completed_at=now_utc() - timedelta(days=45))

    stats = client.get("/referrals/stats", headers=auth_headers("naomi@example.com")).json()

    assert stats["referralCode"] == referrer.referral_code
    assert stats["totalReferrals"] == 3
    assert stats["activeReferrals"] == 1
    assert stats["referralLink"] == f"http://localhost:3000/auth?ref={referrer.referral_code}"
