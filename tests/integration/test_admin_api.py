import pytest

from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import users as users_repo
from dailybread.utils import token_crypto

ADMIN = "admin@example.com"


@pytest.fixture(autouse=True)
def _admins(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", ADMIN)


def test_admin_routes_require_admin(client, auth_headers):
    r = client.get("/admin/users", headers=auth_headers("reader@example.com"))
    assert r.status_code == 403
    assert r.json()["detail"] == "Admin access required"


def test_list_users_with_plan_counts(client, auth_headers, make_user, make_plan):
    owner = make_user("owner@example.com")
    make_plan(owner)
    make_plan(owner, title="Second")

    users = client.get("/admin/users", headers=auth_headers(ADMIN)).json()["users"]

    counts = {u["email"]: u["plan_count"] for u in users}
    assert counts == {"owner@example.com": 2, ADMIN: 0}


def test_toggle_featured_plan(client, auth_headers, make_user, make_plan):
    plan = make_plan(make_user("owner@example.com"))

    r = client.post("/admin/toggle-featured-plan", json={"planId": str(plan.id), "featured": True}, headers=auth_headers(ADMIN))
    assert r.json()["plan"]["featured"] is True

    bad = client.post("/admin/toggle-featured-plan", json={"planId": str(plan.id), "featured": "yes"}, headers=auth_headers(ADMIN))
    assert bad.status_code == 400
    missing = client.post("/admin/toggle-featured-plan", json={"featured": True}, headers=auth_headers(ADMIN))
    assert missing.status_code == 400


def test_toggle_featured_lesson(client, auth_headers, db, make_user, make_plan, lesson_builder):
    plan = make_plan(make_user("owner@example.com"))
    lesson = lesson_builder.build_for_item(db, plans_repo.list_plan_items(db, plan.id)[0]).lesson

    r = client.post(
        "/admin/toggle-featured-lesson", json={"lessonId": str(lesson.id), "isFeatured": True}, headers=auth_headers(ADMIN),
    )
    assert r.json()["lesson"]["is_featured"] is True
    unknown = client.post(
        "/admin/toggle-featured-lesson",
        json={"lessonId": "00000000-0000-0000-0000-000000000000", "isFeatured": True},
        headers=auth_headers(ADMIN),
    )
    assert unknown.status_code == 404


def test_create_user_with_preloaded_plan(client, auth_headers, db):
    body = {
        "email": "New.Reader@example.com",
        "password": "welcome-to-bread",
        "firstName": "Lydia",
        "preloadPlan": {
            "title": "First Steps",
            "days": [{"date": "2024-06-01", "readings": [{"reference": "Mark 1:1-8"}]}],
        },
    }
    r = client.post("/admin/create-user", json=body, headers=auth_headers(ADMIN))

    assert r.status_code == 201
    user = users_repo.get_user_by_email(db, "new.reader@example.com")
    assert user.email_verified is True
    assert token_crypto.verify_password("welcome-to-bread", user.password_hash)
    plans = plans_repo.list_owned_plans(db, user.id)
    assert [p.title for p in plans] == ["First Steps"]
    assert r.json()["planId"] == str(plans[0].id)


def test_create_user_rolls_back_on_bad_plan(client, auth_headers, db):
    body = {"email": "lydia@example.com", "password": "welcome-to-bread", "preloadPlan": {"title": "Empty", "days": []}}
    r = client.post("/admin/create-user", json=body, headers=auth_headers(ADMIN))

    assert r.status_code == 400
    assert users_repo.get_user_by_email(db, "lydia@example.com") is None


def test_create_user_validation(client, auth_headers, make_user):
    make_user("taken@example.com")
    assert client.post("/admin/create-user", json={"email": "x", "password": "longenough"}, headers=auth_headers(ADMIN)).status_code == 400
    assert client.post("/admin/create-user", json={"email": "a@b.c", "password": "short"}, headers=auth_headers(ADMIN)).status_code == 400
    dup = client.post("/admin/create-user", json={"email": "taken@example.com", "password": "longenough"}, headers=auth_headers(ADMIN))
    assert dup.status_code == 400


def test_copy_lessons_between_plans(client, auth_headers, db, make_user, make_plan, lesson_builder):
    owner = make_user("owner@example.com")
    source = make_plan(owner, ("John 1:1-5", "John 1:6-8"))
    for item in plans_repo.list_plan_items(db, source.id):
        lesson_builder.build_for_item(db, item)
    target = make_plan(owner, ("john 1:1–5", "Psalm 23"), title="Copy target")

    r = client.post(
        "/admin/copy-lessons",
        json={"sourcePlanId": str(source.id), "targetPlanId": str(target.id)},
        headers=auth_headers(ADMIN),
    ).json()

    assert r == {"success": True, "copied": 1, "skipped": 1}
    first, second = plans_repo.list_plan_items(db, target.id)
    assert lessons_repo.get_mapping_for_item(db, first.id) is not None
    assert lessons_repo.get_mapping_for_item(db, second.id) is None
    db.refresh(first)
    assert first.status == "published"
