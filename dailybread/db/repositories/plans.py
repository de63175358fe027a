"""
Plan repository functions.

Plans, their items, share links and enrollments. Multi-row writes
(plan plus items) commit once and roll back as a unit.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import now_utc


@dataclass
class NewPlanItem:
    references: List[str]
    date_target: Optional[date] = None
    category: Optional[str] = None
    translation: str = "ESV"


def build_plan(
    *,
    user_id: uuid.UUID,
    title: str,
    description: Optional[str] = None,
    theme: Optional[str] = None,
    schedule_type: str = "daily",
    schedule_mode: str = "synchronized",
    source: str = "custom",
    depth_level: Optional[str] = None,
    is_public: bool = False,
) -> models.Plan:
    return models.Plan(
        user_id=user_id,
        title=title.strip(),
        description=description,
        theme=theme,
        schedule_type=schedule_type or "daily",
        schedule_mode=schedule_mode or "synchronized",
        source=source or "custom",
        depth_level=depth_level,
        is_public=bool(is_public),
    )


def create_plan_with_items(
    db: Session,
    plan: models.Plan,
    items: Sequence[NewPlanItem],
    *,
    commit: bool = True,
) -> models.Plan:
    """Insert ``plan`` and its items; nothing is persisted if any insert fails."""
    try:
        db.add(plan)
        db.flush()
        for index, item in enumerate(items):
            db.add(models.PlanItem(
                plan_id=plan.id,
                index=index,
                date_target=item.date_target,
                references_text=list(item.references),
                category=item.category,
                translation=item.translation or "ESV",
                status="pending",
            ))
        db.flush()
        if commit:
            db.commit()
            db.refresh(plan)
    except Exception:
        db.rollback()
        raise
    return plan


def get_plan(db: Session, plan_id: uuid.UUID) -> Optional[models.Plan]:
    return db.query(models.Plan).filter(models.Plan.id == plan_id).first()


def get_plan_item(db: Session, item_id: uuid.UUID) -> Optional[models.PlanItem]:
    return db.query(models.PlanItem).filter(models.PlanItem.id == item_id).first()


def list_plan_items(db: Session, plan_id: uuid.UUID) -> List[models.PlanItem]:
    return (
        db.query(models.PlanItem)
        .filter(models.PlanItem.plan_id == plan_id)
        .order_by(models.PlanItem.index.asc())
        .all()
    )


def list_owned_plans(db: Session, user_id: uuid.UUID) -> List[models.Plan]:
    return (
        db.query(models.Plan)
        .filter(models.Plan.user_id == user_id)
        .order_by(models.Plan.created_at.desc())
        .all()
    )


def list_enrolled_plans(db: Session, user_id: uuid.UUID) -> List[Tuple[models.Plan, models.UserPlanEnrollment]]:
    return (
        db.query(models.Plan, models.UserPlanEnrollment)
        .join(models.UserPlanEnrollment, models.UserPlanEnrollment.plan_id == models.Plan.id)
        .filter(
            models.UserPlanEnrollment.user_id == user_id,
            models.UserPlanEnrollment.is_active.is_(True),
        )
        .order_by(models.UserPlanEnrollment.enrolled_at.desc())
        .all()
    )


def item_counts(db: Session, plan_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Dict[str, int]]:
    """Return {plan_id: {"total": n, "published": m}}."""
    plan_ids = list(plan_ids)
    if not plan_ids:
        return {}
    rows = (
        db.query(models.PlanItem.plan_id, models.PlanItem.status, func.count(models.PlanItem.id))
        .filter(models.PlanItem.plan_id.in_(plan_ids))
        .group_by(models.PlanItem.plan_id, models.PlanItem.status)
        .all()
    )
    counts: Dict[uuid.UUID, Dict[str, int]] = {pid: {"total": 0, "published": 0} for pid in plan_ids}
    for plan_id, status, count in rows:
        counts[plan_id]["total"] += count
        if status == "published":
            counts[plan_id]["published"] += count
    return counts


def delete_plan(db: Session, plan: models.Plan) -> None:
    item_ids = [i.id for i in list_plan_items(db, plan.id)]
    if item_ids:
        db.query(models.PlanItemLesson).filter(models.PlanItemLesson.plan_item_id.in_(item_ids)).delete(synchronize_session=False)
        db.query(models.Lesson).filter(models.Lesson.plan_item_id.in_(item_ids)).update(
            {models.Lesson.plan_item_id: None}, synchronize_session=False
        )
    db.query(models.PlanShare).filter(models.PlanShare.plan_id == plan.id).delete(synchronize_session=False)
    db.query(models.UserPlanEnrollment).filter(models.UserPlanEnrollment.plan_id == plan.id).delete(synchronize_session=False)
    db.delete(plan)
    db.commit()


def set_plan_featured(db: Session, plan: models.Plan, featured: bool) -> models.Plan:
    plan.featured = featured
    db.commit()
    db.refresh(plan)
    return plan


# Shares

def create_share(
    db: Session,
    *,
    plan: models.Plan,
    created_by: uuid.UUID,
    share_token: str,
    message: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> models.PlanShare:
    share = models.PlanShare(
        plan_id=plan.id,
        created_by=created_by,
        share_token=share_token,
        message=message,
        expires_at=expires_at,
    )
    db.add(share)
    db.commit()
    db.refresh(share)
    return share


def get_share_by_token(db: Session, share_token: str) -> Optional[models.PlanShare]:
    return db.query(models.PlanShare).filter(models.PlanShare.share_token == share_token).first()


# Enrollments

ENROLL_CREATED = "created"
ENROLL_REACTIVATED = "reactivated"
ENROLL_ALREADY = "already_enrolled"


def get_enrollment(db: Session, user_id: uuid.UUID, plan_id: uuid.UUID) -> Optional[models.UserPlanEnrollment]:
    return (
        db.query(models.UserPlanEnrollment)
        .filter(
            models.UserPlanEnrollment.user_id == user_id,
            models.UserPlanEnrollment.plan_id == plan_id,
        )
        .first()
    )


def enroll_user(
    db: Session,
    *,
    user_id: uuid.UUID,
    plan: models.Plan,
    custom_start_date: Optional[date] = None,
    share: Optional[models.PlanShare] = None,
) -> Tuple[str, models.UserPlanEnrollment]:
    """Enroll ``user_id`` in ``plan`` and return (outcome, enrollment).

    An inactive enrollment is reactivated (start date refreshed when given);
    only a brand-new enrollment counts towards share use and participants.
    """
    existing = get_enrollment(db, user_id, plan.id)
    if existing is not None:
        if existing.is_active:
            return ENROLL_ALREADY, existing
        existing.is_active = True
        if custom_start_date is not None:
            existing.custom_start_date = custom_start_date
        db.commit()
        db.refresh(existing)
        return ENROLL_REACTIVATED, existing

    enrollment = models.UserPlanEnrollment(
        user_id=user_id,
        plan_id=plan.id,
        custom_start_date=custom_start_date,
        is_active=True,
    )
    db.add(enrollment)
    if share is not None:
        share.use_count = (share.use_count or 0) + 1
    plan.participant_count = (plan.participant_count or 0) + 1
    plan.last_started_at = now_utc()
    db.commit()
    db.refresh(enrollment)
    return ENROLL_CREATED, enrollment


def deactivate_enrollment(db: Session, enrollment: models.UserPlanEnrollment) -> None:
    enrollment.is_active = False
    db.commit()


# Library

def list_library_plans(
    db: Session,
    *,
    featured: Optional[bool] = None,
    depth_level: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[models.Plan], int]:
    q = db.query(models.Plan).filter(models.Plan.is_public.is_(True))
    if featured is not None:
        q = q.filter(models.Plan.featured.is_(featured))
    if depth_level:
        q = q.filter(models.Plan.depth_level == depth_level)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        q = q.filter(or_(
            models.Plan.title.ilike(pattern),
            models.Plan.description.ilike(pattern),
            models.Plan.theme.ilike(pattern),
        ))
    total = q.count()
    plans = (
        q.order_by(models.Plan.featured.desc(), models.Plan.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return plans, total
