"""Progress API endpoints: completions, quiz scores, overview and nudges."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dailybread.api.deps import get_current_user_context
from dailybread.db import models
from dailybread.db import schemas
from dailybread.db.database import get_db
from dailybread.db.repositories import lessons as lessons_repo
from dailybread.db.repositories import progress as progress_repo
from dailybread.services import progress_tracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["progress"])

NUDGE_OVERDUE = "overdue"


def _load_lesson(db: Session, lesson_id: Optional[str]) -> models.Lesson:
    if not lesson_id:
        raise HTTPException(status_code=400, detail="lessonId is required")
    try:
        parsed = uuid.UUID(str(lesson_id))
    except ValueError:
        raise HTTPException(status_code=404, detail="Lesson not found")
    lesson = lessons_repo.get_lesson(db, parsed)
    if lesson is None:
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


def _progress_dict(row: models.Progress) -> dict:
    return {
        "lessonId": str(row.lesson_id),
        "completedAt": models.ensure_utc(row.completed_at).isoformat() if row.completed_at else None,
        "quizScore": row.quiz_score,
        "timeSpentSec": row.time_spent_sec,
    }


def _upsert_completion(db: Session, user: models.User, lesson: models.Lesson, **fields) -> models.Progress:
    previous = progress_repo.get_progress(db, user.id, lesson.id)
    was_completed = previous is not None and previous.completed_at is not None
    row = progress_repo.upsert_progress(db, user_id=user.id, lesson_id=lesson.id, **fields)
    if not was_completed:
        progress_tracker.record_plan_completions(db, user.id, lesson.id)
    return row


@router.post("/complete")
def complete_lesson(
    payload: schemas.CompleteRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    lesson = _load_lesson(db, payload.lesson_id)
    if payload.time_spent_sec is not None and payload.time_spent_sec < 0:
        raise HTTPException(status_code=400, detail="timeSpentSec must not be negative")
    row = _upsert_completion(db, user, lesson, time_spent_sec=payload.time_spent_sec)
    return {"success": True, "progress": _progress_dict(row)}


@router.post("/quiz")
def record_quiz_score(
    payload: schemas.QuizScoreRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if payload.score is None or not 0 <= payload.score <= 100:
        raise HTTPException(status_code=400, detail="Score must be between 0 and 100")
    lesson = _load_lesson(db, payload.lesson_id)
    row = _upsert_completion(db, user, lesson, quiz_score=payload.score)
    return {"success": True, "progress": _progress_dict(row)}


@router.get("")
def progress_overview(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return progress_tracker.progress_overview(db, user.id)


@router.get("/nudge")
def overdue_nudge(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    overdue = progress_tracker.overdue_items(db, user.id)
    if not overdue:
        return {"nudge": None}
    progress_repo.record_nudge_shown(db, user.id, NUDGE_OVERDUE)
    return {"nudge": progress_tracker.nudge_payload(overdue[0])}
