"""
Admin API endpoints.

Feature toggles for the library and lessons, account provisioning and
lesson mapping copies between plans.
"""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dailybread.api.deps import require_admin
from dailybread.db import models, schemas
from dailybread.db.database import get_db
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import users as users_repo
from dailybread.services.plan_importer import PlanImportError, import_plan
from dailybread.utils import token_crypto

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

MIN_PASSWORD_LENGTH = 8


def _uuid_or_404(value: Optional[str], what: str) -> uuid.UUID:
    if not value:
        raise HTTPException(status_code=400, detail=f"{what} id is required")
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=404, detail=f"{what} not found")


@router.post("/toggle-featured-lesson")
def toggle_featured_lesson(
    payload: schemas.ToggleFeaturedLesson,
    db: Session = Depends(get_db),
    admin_context=Depends(require_admin),
):
    if not isinstance(payload.is_featured, bool):
        raise HTTPException(status_code=400, detail="isFeatured must be a boolean")
    lesson = lessons_repo.get_lesson(db, _uuid_or_404(payload.lesson_id, "Lesson"))
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    lesson = lessons_repo.set_lesson_featured(db, lesson, payload.is_featured)
    logger.info("lesson_featured_toggled: lesson=%s featured=%s by=%s", lesson.id, lesson.is_featured, admin_context[0].id)
    return {"success": True, "lesson": schemas.LessonSummary.model_validate(lesson).model_dump(mode="json")}


@router.post("/toggle-featured-plan")
def toggle_featured_plan(
    payload: schemas.ToggleFeaturedPlan,
    db: Session = Depends(get_db),
    admin_context=Depends(require_admin),
):
    if not isinstance(payload.featured, bool):
        raise HTTPException(status_code=400, detail="featured must be a boolean")
    plan = plans_repo.get_plan(db, _uuid_or_404(payload.plan_id, "Plan"))
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    plan = plans_repo.set_plan_featured(db, plan, payload.featured)
    logger.info("plan_featured_toggled: plan=%s featured=%s by=%s", plan.id, plan.featured, admin_context[0].id)
    return {"success": True, "plan": schemas.Plan.model_validate(plan).model_dump(mode="json")}


@router.post("/create-user", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.AdminCreateUser,
    db: Session = Depends(get_db),
    admin_context=Depends(require_admin),
):
    email = users_repo.normalize_email(payload.email)
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if not payload.password or len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if users_repo.get_user_by_email(db, email) is not None:
        raise HTTPException(status_code=400, detail="A user with this email already exists")

    try:
        user = users_repo.create_user(
            db,
            email=email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            password_hash=token_crypto.hash_password(payload.password),
            email_verified=True,
            commit=False,
        )
        plan = None
        if payload.preload_plan is not None:
            plan = import_plan(db, user_id=user.id, document=payload.preload_plan, commit=False)
        db.commit()
    except PlanImportError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("admin_create_user_failed: email=%s error=%s", email, exc)
        raise HTTPException(status_code=500, detail="Failed to create user") from exc

    db.refresh(user)
    logger.info("admin_user_created: user=%s by=%s preload=%s", user.id, admin_context[0].id, plan is not None)
    return {
        "success": True,
        "userId": str(user.id),
        "email": user.email,
        "planId": str(plan.id) if plan is not None else None,
    }


@router.post("/copy-lessons")
def copy_lessons(
    payload: schemas.CopyLessonsRequest,
    db: Session = Depends(get_db),
    admin_context=Depends(require_admin),
):
    source = plans_repo.get_plan(db, _uuid_or_404(payload.source_plan_id, "Source plan"))
    target = plans_repo.get_plan(db, _uuid_or_404(payload.target_plan_id, "Target plan"))
    if source is None or target is None:
        raise HTTPException(status_code=404, detail="Plan not found")

    source_items = plans_repo.list_plan_items(db, source.id)
    source_lessons = lessons_repo.lessons_for_items(db, [i.id for i in source_items])
    by_reference = {}
    for item in source_items:
        lesson = source_lessons.get(item.id)
        if lesson is not None:
            by_reference.setdefault(lessons_repo.normalize_reference(item.primary_reference), lesson)

    target_items = plans_repo.list_plan_items(db, target.id)
    already = lessons_repo.mapped_item_ids(db, [i.id for i in target_items])
    copied = skipped = 0
    for item in target_items:
        lesson = by_reference.get(lessons_repo.normalize_reference(item.primary_reference))
        if item.id in already or lesson is None:
            skipped += 1
            continue
        lessons_repo.map_item_to_lesson(db, item, lesson, commit=False)
        copied += 1
    db.commit()
    logger.info("lessons_copied: source=%s target=%s copied=%d skipped=%d", source.id, target.id, copied, skipped)
    return {"success": True, "copied": copied, "skipped": skipped}


@router.get("/users")
def list_users(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin_context=Depends(require_admin),
):
    rows = users_repo.list_users_with_plan_counts(db, skip=max(0, skip), limit=max(1, min(limit, 500)))
    return {
        "users": [
            dict(row, id=str(row["id"]), created_at=models.ensure_utc(row["created_at"]).isoformat() if row["created_at"] else None)
            for row in rows
        ]
    }
