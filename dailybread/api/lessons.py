"""
Lessons API endpoints.

Building is owner-only and goes through the lesson builder; reading a lesson
by its share slug is public so shared links and quiz pages work signed out.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dailybread.api.deps import get_current_user_context
from dailybread.api.errors import raise_service_error, require_llm_features
from dailybread.db import models, schemas
from dailybread.db.database import get_db
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.services.lesson_builder import BuildResult, build_lesson_for_item
from dailybread.services.lesson_generator import LessonGenerationError
from dailybread.services.passage_adapter import PassageError
from dailybread.services.story_compiler import StoryValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["lessons"])

BUILD_ERRORS = (PassageError, LessonGenerationError, StoryValidationError)
MAX_BATCH_SIZE = 10
ALL_COMPLETE_MESSAGE = "All lessons have been generated!"


def _uuid_or_none(value: Optional[str]) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _owned_plan(db: Session, plan_id: Optional[str], user: models.User) -> models.Plan:
    if not plan_id:
        raise HTTPException(status_code=400, detail="planId is required")
    parsed = _uuid_or_none(plan_id)
    plan = plans_repo.get_plan(db, parsed) if parsed else None
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    if plan.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the plan owner can build lessons")
    return plan


def _lesson_ref(result: BuildResult) -> Dict[str, Any]:
    return {
        "id": str(result.lesson.id),
        "shareSlug": result.lesson.share_slug,
        "reference": result.lesson.passage_canonical,
        "wasReused": result.was_reused,
    }


def _plan_progress(db: Session, plan: models.Plan) -> Dict[str, int]:
    items = plans_repo.list_plan_items(db, plan.id)
    done = len(lessons_repo.mapped_item_ids(db, [i.id for i in items]))
    return {"completed": done, "total": len(items), "remaining": len(items) - done}


def _unbuilt_items(db: Session, plan: models.Plan) -> List[models.PlanItem]:
    items = plans_repo.list_plan_items(db, plan.id)
    mapped = lessons_repo.mapped_item_ids(db, [i.id for i in items])
    return [i for i in items if i.id not in mapped]


@router.post("/build")
def build_lesson(
    payload: schemas.BuildLessonRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not payload.plan_item_id:
        raise HTTPException(status_code=400, detail="planItemId is required")
    parsed = _uuid_or_none(payload.plan_item_id)
    item = plans_repo.get_plan_item(db, parsed) if parsed else None
    if item is None:
        raise HTTPException(status_code=404, detail="Plan item not found")
    if item.plan is None or item.plan.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the plan owner can build lessons")
    require_llm_features()

    try:
        result = build_lesson_for_item(db, item)
    except BUILD_ERRORS as exc:
        raise_service_error(exc, operation="lesson_build")
    return {"success": True, "message": result.message, "lesson": _lesson_ref(result)}


@router.post("/generate-one")
def generate_one(
    payload: schemas.GenerateOneRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    plan = _owned_plan(db, payload.plan_id, user)
    require_llm_features()

    pending = _unbuilt_items(db, plan)
    if not pending:
        return {"success": False, "message": ALL_COMPLETE_MESSAGE, "allComplete": True}

    try:
        result = build_lesson_for_item(db, pending[0])
    except BUILD_ERRORS as exc:
        raise_service_error(exc, operation="lesson_build")
    progress = _plan_progress(db, plan)
    return {
        "success": True,
        "message": result.message,
        "lesson": _lesson_ref(result),
        "progress": progress,
        "allComplete": progress["remaining"] == 0,
    }


@router.post("/generate-batch")
def generate_batch(
    payload: schemas.GenerateBatchRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not 1 <= payload.batch_size <= MAX_BATCH_SIZE:
        raise HTTPException(status_code=400, detail=f"batchSize must be between 1 and {MAX_BATCH_SIZE}")
    plan = _owned_plan(db, payload.plan_id, user)
    require_llm_features()

    pending = _unbuilt_items(db, plan)
    if not pending:
        return {"success": False, "message": ALL_COMPLETE_MESSAGE, "allComplete": True}

    results = []
    for item in pending[:payload.batch_size]:
        try:
            result = build_lesson_for_item(db, item)
        except BUILD_ERRORS as exc:
            logger.error("batch_item_failed: plan=%s item=%s error=%s", plan.id, item.id, exc)
            results.append({"itemId": str(item.id), "status": "error", "error": str(exc)})
            continue
        results.append({
            "itemId": str(item.id),
            "status": "reused" if result.was_reused else "created",
            "message": result.message,
            "lesson": _lesson_ref(result),
        })

    progress = _plan_progress(db, plan)
    return {
        "success": any(r["status"] != "error" for r in results),
        "results": results,
        "progress": progress,
        "allComplete": progress["remaining"] == 0,
    }


@router.get("/featured")
def featured_lessons(limit: int = 20, db: Session = Depends(get_db)):
    lessons = lessons_repo.list_featured_lessons(db, limit=max(1, min(limit, 100)))
    return {"lessons": [schemas.LessonSummary.model_validate(l).model_dump(mode="json") for l in lessons]}


@router.get("/{share_slug}", response_model=schemas.Lesson)
def get_lesson(share_slug: str, db: Session = Depends(get_db)):
    lesson = lessons_repo.get_lesson_by_slug(db, share_slug)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson
