"""
Progress repository functions.

One progress row per (user, lesson); writes are upserts keyed on that pair.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from dailybread.db import models
from dailybread.db.models import now_utc

_UNSET = object()


def get_progress(db: Session, user_id: uuid.UUID, lesson_id: uuid.UUID) -> Optional[models.Progress]:
    return (
        db.query(models.Progress)
        .filter(models.Progress.user_id == user_id, models.Progress.lesson_id == lesson_id)
        .first()
    )


def upsert_progress(
    db: Session,
    *,
    user_id: uuid.UUID,
    lesson_id: uuid.UUID,
    completed_at: Optional[datetime] = None,
    quiz_score=_UNSET,
    time_spent_sec=_UNSET,
) -> models.Progress:
    row = get_progress(db, user_id, lesson_id)
    if row is None:
        row = models.Progress(user_id=user_id, lesson_id=lesson_id)
        db.add(row)
    row.completed_at = completed_at or now_utc()
    if quiz_score is not _UNSET:
        row.quiz_score = quiz_score
    if time_spent_sec is not _UNSET and time_spent_sec is not None:
        row.time_spent_sec = time_spent_sec
    db.commit()
    db.refresh(row)
    return row


def completed_lesson_ids(db: Session, user_id: uuid.UUID, lesson_ids: Optional[Iterable[uuid.UUID]] = None) -> Set[uuid.UUID]:
    q = db.query(models.Progress.lesson_id).filter(
        models.Progress.user_id == user_id,
        models.Progress.completed_at.isnot(None),
    )
    if lesson_ids is not None:
        lesson_ids = list(lesson_ids)
        if not lesson_ids:
            return set()
        q = q.filter(models.Progress.lesson_id.in_(lesson_ids))
    return {row[0] for row in q.all()}


def count_completed(db: Session, user_id: uuid.UUID) -> int:
    return (
        db.query(func.count(models.Progress.id))
        .filter(models.Progress.user_id == user_id, models.Progress.completed_at.isnot(None))
        .scalar()
        or 0
    )


def average_quiz_score(db: Session, user_id: uuid.UUID) -> Optional[float]:
    value = (
        db.query(func.avg(models.Progress.quiz_score))
        .filter(models.Progress.user_id == user_id, models.Progress.quiz_score.isnot(None))
        .scalar()
    )
    return round(float(value), 1) if value is not None else None


def completion_times(db: Session, user_id: uuid.UUID) -> List[datetime]:
    rows = (
        db.query(models.Progress.completed_at)
        .filter(models.Progress.user_id == user_id, models.Progress.completed_at.isnot(None))
        .all()
    )
    return [row[0] for row in rows]


def recent_completions(db: Session, user_id: uuid.UUID, limit: int = 5):
    return (
        db.query(models.Progress, models.Lesson)
        .join(models.Lesson, models.Lesson.id == models.Progress.lesson_id)
        .filter(models.Progress.user_id == user_id, models.Progress.completed_at.isnot(None))
        .order_by(models.Progress.completed_at.desc())
        .limit(limit)
        .all()
    )


def record_nudge_shown(db: Session, user_id: uuid.UUID, nudge_type: str) -> models.Nudge:
    nudge = (
        db.query(models.Nudge)
        .filter(models.Nudge.user_id == user_id, models.Nudge.type == nudge_type)
        .first()
    )
    if nudge is None:
        nudge = models.Nudge(user_id=user_id, type=nudge_type)
        db.add(nudge)
    nudge.last_shown_at = now_utc()
    db.commit()
    return nudge
