"""
Plans API endpoints.

Covers plan creation (manual, AI-generated and imported), plan detail with
per-user schedules, share links, enrollment and the public library.
"""
import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dailybread.api.deps import get_current_user_context, get_optional_user_context
from dailybread.api.errors import raise_service_error, require_llm_features
from dailybread.db import models, schemas
from dailybread.db.database import get_db
from dailybread.db.models import ensure_utc, now_utc
from dailybread.db.repositories import email_queue as email_queue_repo
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import progress as progress_repo
from dailybread.services import mailer
from dailybread.services.plan_generator import DEPTH_LEVELS, MIN_THEME_LENGTH, PlanGenerationError, generate_ai_plan
from dailybread.services.plan_importer import PlanImportError, import_plan
from dailybread.services.progress_tracker import schedule_start
from dailybread.utils.schedule import (
    SCHEDULE_MODE_SELF_GUIDED,
    SCHEDULE_MODES,
    SCHEDULE_TYPES,
    calculate_completion_date,
    format_date_for_display,
    get_effective_date,
    get_schedule_mode_description,
    interval_days,
    parse_start_date,
    today_utc,
)
from dailybread.utils.token_crypto import generate_share_token
from dailybread.utils.urls import build_join_link

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/plans", tags=["plans"])

MAX_SHARE_DAYS = 365
LIBRARY_MAX_LIMIT = 100


def _parse_plan_id(value: Optional[str]) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _load_plan(db: Session, plan_id: str) -> models.Plan:
    parsed = _parse_plan_id(plan_id)
    plan = plans_repo.get_plan(db, parsed) if parsed else None
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan


def _load_owned_plan(db: Session, plan_id: str, user: models.User) -> models.Plan:
    plan = _load_plan(db, plan_id)
    if plan.user_id != user.id:
        raise HTTPException(status_code=403, detail="Only the plan owner can do that")
    return plan


def _plan_dict(plan: models.Plan, counts: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    data = schemas.Plan.model_validate(plan).model_dump(mode="json")
    if counts is not None:
        data["total_items"] = counts.get("total", 0)
        data["published_items"] = counts.get("published", 0)
    return data


def _validate_choice(value: Optional[str], allowed, label: str, default: str) -> str:
    value = value or default
    if value not in allowed:
        raise HTTPException(status_code=400, detail=f"Invalid {label}: {value}")
    return value


@router.post("", status_code=status.HTTP_201_CREATED)
def create_plan(
    payload: schemas.PlanCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    title = (payload.title or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    references = [r.strip() for r in (payload.references or []) if r and r.strip()]
    if not references:
        raise HTTPException(status_code=400, detail="At least one reference is required")
    schedule_type = _validate_choice(payload.schedule_type, SCHEDULE_TYPES, "schedule type", "daily")
    schedule_mode = _validate_choice(payload.schedule_mode, SCHEDULE_MODES, "schedule mode", "synchronized")
    if payload.depth_level and payload.depth_level not in DEPTH_LEVELS:
        raise HTTPException(status_code=400, detail=f"Invalid depth level: {payload.depth_level}")

    today = today_utc()
    step = interval_days(schedule_type)
    items = [
        plans_repo.NewPlanItem(references=[ref], date_target=today + timedelta(days=index * step))
        for index, ref in enumerate(references)
    ]
    plan = plans_repo.build_plan(
        user_id=user.id,
        title=title,
        description=payload.description,
        theme=payload.theme,
        schedule_type=schedule_type,
        schedule_mode=schedule_mode,
        source=payload.source or "custom",
        depth_level=payload.depth_level,
        is_public=payload.is_public,
    )
    try:
        plans_repo.create_plan_with_items(db, plan, items)
    except SQLAlchemyError as exc:
        logger.error("plan_create_failed: user=%s error=%s", user.id, exc)
        raise HTTPException(status_code=500, detail="Failed to create plan items") from exc
    logger.info("plan_created: plan=%s user=%s items=%d", plan.id, user.id, len(items))
    return {"planId": str(plan.id)}


@router.get("")
def list_plans(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    owned = plans_repo.list_owned_plans(db, user.id)
    enrolled = [(p, e) for p, e in plans_repo.list_enrolled_plans(db, user.id) if p.user_id != user.id]
    counts = plans_repo.item_counts(db, [p.id for p in owned] + [p.id for p, _e in enrolled])

    plans = []
    for plan in owned:
        data = _plan_dict(plan, counts.get(plan.id))
        data["role"] = "owner"
        plans.append(data)
    for plan, enrollment in enrolled:
        data = _plan_dict(plan, counts.get(plan.id))
        data["role"] = "participant"
        data["enrolled_at"] = ensure_utc(enrollment.enrolled_at).isoformat() if enrollment.enrolled_at else None
        data["custom_start_date"] = enrollment.custom_start_date.isoformat() if enrollment.custom_start_date else None
        plans.append(data)
    return {"plans": plans}


@router.post("/generate-ai-plan", status_code=status.HTTP_201_CREATED)
def create_ai_plan(
    payload: schemas.AIPlanRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    theme = (payload.theme or "").strip()
    if len(theme) < MIN_THEME_LENGTH:
        raise HTTPException(status_code=400, detail=f"Theme must be at least {MIN_THEME_LENGTH} characters")
    depth_level = _validate_choice(payload.depth_level, DEPTH_LEVELS, "depth level", "moderate")
    schedule_type = _validate_choice(payload.schedule_type, SCHEDULE_TYPES, "schedule type", "daily")
    require_llm_features()

    try:
        generated = generate_ai_plan(theme, payload.book_context, depth_level)
    except PlanGenerationError as exc:
        raise_service_error(exc, operation="ai_plan_generation")

    today = today_utc()
    step = interval_days(schedule_type)
    items = [
        plans_repo.NewPlanItem(
            references=[ref],
            date_target=today + timedelta(days=index * step),
            category=generated["category"],
        )
        for index, ref in enumerate(generated["passages"])
    ]
    plan = plans_repo.build_plan(
        user_id=user.id,
        title=generated["title"],
        description=generated["description"],
        theme=theme,
        schedule_type=schedule_type,
        source="ai-theme",
        depth_level=depth_level,
    )
    try:
        plans_repo.create_plan_with_items(db, plan, items)
    except SQLAlchemyError as exc:
        logger.error("ai_plan_create_failed: user=%s error=%s", user.id, exc)
        raise HTTPException(status_code=500, detail="Failed to create plan items") from exc
    return {
        "planId": str(plan.id),
        "title": plan.title,
        "description": plan.description,
        "reasoning": generated["reasoning"],
        "passageCount": len(items),
    }


@router.post("/import", status_code=status.HTTP_201_CREATED)
def import_plan_document(
    payload: schemas.PlanImport,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    try:
        plan = import_plan(db, user_id=user.id, document=payload)
    except PlanImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        logger.error("plan_import_failed: user=%s error=%s", user.id, exc)
        raise HTTPException(status_code=500, detail="Failed to import plan") from exc
    return {"planId": str(plan.id), "itemCount": len(plan.items)}


def _enroll(
    db: Session,
    user: models.User,
    plan: models.Plan,
    custom_start_date: Optional[str],
    share: Optional[models.PlanShare] = None,
) -> Dict[str, Any]:
    start = None
    if plan.schedule_mode == SCHEDULE_MODE_SELF_GUIDED:
        try:
            start = parse_start_date(custom_start_date) or today_utc()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    outcome, _enrollment = plans_repo.enroll_user(
        db, user_id=user.id, plan=plan, custom_start_date=start, share=share,
    )
    if outcome == plans_repo.ENROLL_ALREADY:
        return {
            "success": True,
            "message": "You are already enrolled in this plan",
            "alreadyEnrolled": True,
            "planId": str(plan.id),
        }
    if outcome == plans_repo.ENROLL_REACTIVATED:
        message = "Welcome back! Re-activated your enrollment."
    else:
        message = "Successfully enrolled in plan!"
    logger.info("plan_enrollment: plan=%s user=%s outcome=%s", plan.id, user.id, outcome)
    return {"success": True, "message": message, "planId": str(plan.id)}


@router.post("/join")
def join_plan(
    payload: schemas.JoinRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    token = (payload.share_token or "").strip()
    if not token:
        raise HTTPException(status_code=400, detail="Share token is required")
    share = plans_repo.get_share_by_token(db, token)
    if share is None:
        raise HTTPException(status_code=404, detail="Invalid share link")
    if share.expires_at is not None and ensure_utc(share.expires_at) <= now_utc():
        raise HTTPException(status_code=410, detail="This share link has expired")
    plan = plans_repo.get_plan(db, share.plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return _enroll(db, user, plan, payload.custom_start_date, share=share)


@router.get("/library")
def library(
    featured: Optional[bool] = None,
    depth_level: Optional[str] = Query(default=None, alias="depthLevel"),
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    limit = max(1, min(limit, LIBRARY_MAX_LIMIT))
    offset = max(0, offset)
    plans, total = plans_repo.list_library_plans(
        db, featured=featured, depth_level=depth_level, search=search, limit=limit, offset=offset,
    )
    counts = plans_repo.item_counts(db, [p.id for p in plans])
    return {
        "plans": [_plan_dict(p, counts.get(p.id)) for p in plans],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.post("/library/join")
def join_library_plan(
    payload: schemas.LibraryJoinRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not payload.plan_id:
        raise HTTPException(status_code=400, detail="planId is required")
    parsed = _parse_plan_id(payload.plan_id)
    plan = plans_repo.get_plan(db, parsed) if parsed else None
    if plan is None or not plan.is_public:
        raise HTTPException(status_code=404, detail="Plan not found")
    return _enroll(db, user, plan, payload.custom_start_date)


@router.get("/{plan_id}")
def get_plan_detail(
    plan_id: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user = user_context[0] if user_context else None
    plan = _load_plan(db, plan_id)
    enrollment = plans_repo.get_enrollment(db, user.id, plan.id) if user else None
    if enrollment is not None and not enrollment.is_active:
        enrollment = None
    is_owner = user is not None and plan.user_id == user.id
    if not (is_owner or enrollment is not None or plan.is_public):
        raise HTTPException(status_code=404, detail="Plan not found")

    items = plans_repo.list_plan_items(db, plan.id)
    start = schedule_start(plan, enrollment, items)
    lessons = lessons_repo.lessons_for_items(db, [i.id for i in items])
    completed = (
        progress_repo.completed_lesson_ids(db, user.id, [l.id for l in lessons.values()]) if user else set()
    )
    today = today_utc()

    item_rows = []
    for item in items:
        effective = get_effective_date(item, plan.schedule_mode, start, plan.schedule_type)
        lesson = lessons.get(item.id)
        row = schemas.PlanItem.model_validate(item).model_dump(mode="json")
        row.update(
            effective_date=effective.isoformat() if effective else None,
            display_date=format_date_for_display(effective, today),
            lesson={"id": str(lesson.id), "share_slug": lesson.share_slug} if lesson else None,
            completed=bool(lesson and lesson.id in completed),
        )
        item_rows.append(row)

    data = _plan_dict(plan, {
        "total": len(items),
        "published": sum(1 for i in items if i.status == "published"),
    })
    data.update(
        items=item_rows,
        is_owner=is_owner,
        is_enrolled=enrollment is not None,
        schedule_mode_description=get_schedule_mode_description(plan.schedule_mode),
        start_date=start.isoformat() if start else None,
        completion_date=calculate_completion_date(start, len(items), plan.schedule_type).isoformat() if start else None,
    )
    return data


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(
    plan_id: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    plan = _load_owned_plan(db, plan_id, user)
    plans_repo.delete_plan(db, plan)
    logger.info("plan_deleted: plan=%s user=%s", plan_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{plan_id}/share")
def share_plan(
    plan_id: str,
    payload: schemas.ShareCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    plan = _load_owned_plan(db, plan_id, user)

    expires_at = None
    if payload.expires_in_days is not None:
        if not 1 <= payload.expires_in_days <= MAX_SHARE_DAYS:
            raise HTTPException(status_code=400, detail=f"expiresInDays must be between 1 and {MAX_SHARE_DAYS}")
        expires_at = now_utc() + timedelta(days=payload.expires_in_days)
    invite_email = (payload.invite_email or "").strip().lower() or None
    if invite_email and "@" not in invite_email:
        raise HTTPException(status_code=400, detail="Invalid invite email")

    share = plans_repo.create_share(
        db,
        plan=plan,
        created_by=user.id,
        share_token=generate_share_token(),
        message=payload.message,
        expires_at=expires_at,
    )
    share_url = build_join_link(share.share_token)
    if invite_email:
        email_queue_repo.enqueue_email(
            db,
            email_type=mailer.TEMPLATE_PLAN_INVITE,
            recipient_email=invite_email,
            template_data={
                "inviter_name": user.display_name or user.email,
                "plan_title": plan.title,
                "message": payload.message,
                "join_url": share_url,
            },
        )
    return {
        "shareToken": share.share_token,
        "shareUrl": share_url,
        "expiresAt": ensure_utc(share.expires_at).isoformat() if share.expires_at else None,
        "invited": bool(invite_email),
    }


@router.post("/{plan_id}/unenroll")
def unenroll(
    plan_id: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    parsed = _parse_plan_id(plan_id)
    enrollment = plans_repo.get_enrollment(db, user.id, parsed) if parsed else None
    if enrollment is None or not enrollment.is_active:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    plans_repo.deactivate_enrollment(db, enrollment)
    return {"success": True, "planId": str(parsed)}
