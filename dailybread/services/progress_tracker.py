"""
Reading progress across a user's plans.

A user's plans are the ones they own plus their active enrollments; each
item's effective date depends on the plan's schedule mode and the start
date the user chose when enrolling.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import ensure_utc
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import plans as plans_repo
from dailybread.db.repositories import progress as progress_repo
from dailybread.utils.schedule import SCHEDULE_MODE_SELF_GUIDED, get_days_offset, get_effective_date, today_utc

logger = logging.getLogger(__name__)


@dataclass
class ScheduledItem:
    plan: models.Plan
    item: models.PlanItem
    effective_date: Optional[date]
    lesson: Optional[models.Lesson] = None


def schedule_start(
    plan: models.Plan,
    enrollment: Optional[models.UserPlanEnrollment],
    items: List[models.PlanItem],
) -> Optional[date]:
    """Start date used for self-guided schedules.

    Owners without an enrollment read from the plan's first target date.
    """
    if plan.schedule_mode != SCHEDULE_MODE_SELF_GUIDED:
        return None
    if enrollment is not None and enrollment.custom_start_date is not None:
        return enrollment.custom_start_date
    if enrollment is None and items:
        return items[0].date_target
    return None


def user_plans(db: Session, user_id: uuid.UUID) -> List[Tuple[models.Plan, Optional[models.UserPlanEnrollment]]]:
    plans: Dict[uuid.UUID, Tuple[models.Plan, Optional[models.UserPlanEnrollment]]] = {}
    for plan in plans_repo.list_owned_plans(db, user_id):
        plans[plan.id] = (plan, None)
    for plan, enrollment in plans_repo.list_enrolled_plans(db, user_id):
        plans[plan.id] = (plan, enrollment)
    return list(plans.values())


def scheduled_items(db: Session, user_id: uuid.UUID) -> List[ScheduledItem]:
    result: List[ScheduledItem] = []
    for plan, enrollment in user_plans(db, user_id):
        items = plans_repo.list_plan_items(db, plan.id)
        start = schedule_start(plan, enrollment, items)
        lessons = lessons_repo.lessons_for_items(db, [i.id for i in items])
        for item in items:
            result.append(ScheduledItem(
                plan=plan,
                item=item,
                effective_date=get_effective_date(item, plan.schedule_mode, start, plan.schedule_type),
                lesson=lessons.get(item.id),
            ))
    return result


def current_streak(completions: Iterable[datetime], today: Optional[date] = None) -> int:
    """Consecutive days with a completion, ending today (or yesterday)."""
    today = today or today_utc()
    days = {ensure_utc(c).date() for c in completions if c is not None}
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def progress_overview(db: Session, user_id: uuid.UUID, today: Optional[date] = None) -> Dict[str, object]:
    today = today or today_utc()
    scheduled = [s for s in scheduled_items(db, user_id) if s.effective_date is not None and s.effective_date <= today]
    recent = [
        {
            "lessonId": str(lesson.id),
            "reference": lesson.passage_canonical,
            "shareSlug": lesson.share_slug,
            "completedAt": ensure_utc(row.completed_at).isoformat(),
            "quizScore": row.quiz_score,
        }
        for row, lesson in progress_repo.recent_completions(db, user_id)
    ]
    return {
        "completed": progress_repo.count_completed(db, user_id),
        "totalScheduled": len(scheduled),
        "averageQuizScore": progress_repo.average_quiz_score(db, user_id),
        "currentStreakDays": current_streak(progress_repo.completion_times(db, user_id), today),
        "recent": recent,
    }


def overdue_items(db: Session, user_id: uuid.UUID, today: Optional[date] = None) -> List[ScheduledItem]:
    """Published items dated before today whose lesson the user has not completed."""
    today = today or today_utc()
    candidates = [
        s for s in scheduled_items(db, user_id)
        if s.lesson is not None and s.effective_date is not None and s.effective_date < today
    ]
    done = progress_repo.completed_lesson_ids(db, user_id, {s.lesson.id for s in candidates})
    overdue = [s for s in candidates if s.lesson.id not in done]
    overdue.sort(key=lambda s: (s.effective_date, s.item.index))
    return overdue


def nudge_payload(scheduled: ScheduledItem, today: Optional[date] = None) -> Dict[str, object]:
    return {
        "planId": str(scheduled.plan.id),
        "planTitle": scheduled.plan.title,
        "itemId": str(scheduled.item.id),
        "reference": scheduled.item.primary_reference,
        "daysOverdue": -get_days_offset(scheduled.effective_date, today),
        "lessonSlug": scheduled.lesson.share_slug if scheduled.lesson else None,
    }


def record_plan_completions(db: Session, user_id: uuid.UUID, lesson_id: uuid.UUID) -> List[uuid.UUID]:
    """Bump ``completion_count`` on plans the user has just finished through ``lesson_id``."""
    finished: List[uuid.UUID] = []
    for plan, _enrollment in user_plans(db, user_id):
        items = plans_repo.list_plan_items(db, plan.id)
        if not items:
            continue
        lessons = lessons_repo.lessons_for_items(db, [i.id for i in items])
        if len(lessons) != len(items):
            continue
        lesson_ids = {lesson.id for lesson in lessons.values()}
        if lesson_id not in lesson_ids:
            continue
        if progress_repo.completed_lesson_ids(db, user_id, lesson_ids) == lesson_ids:
            plan.completion_count = (plan.completion_count or 0) + 1
            finished.append(plan.id)
    if finished:
        db.commit()
        logger.info("plans_completed: user=%s plans=%s", user_id, [str(p) for p in finished])
    return finished
